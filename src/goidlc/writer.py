from __future__ import annotations
import logging
import shutil
import subprocess
from pathlib import Path
from typing import Mapping, Optional, Union

from .nodes import Node
from .options import RenderOptions
from .render_map import Fragment
from .render_map_visitor import get_render_map

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]

def delete_directory(path: PathLike) -> None:
    p = Path(path)
    if p.exists():
        shutil.rmtree(p)

def write_render_map(render_map: Mapping[str, Optional[Fragment]], path: PathLike) -> int:
    """Write every present fragment under `path`. Returns the file count."""
    root = Path(path)
    written = 0
    for rel, fragment in sorted(render_map.items()):
        if fragment is None:
            continue
        out_path = root / rel
        if out_path.exists() and not fragment.overwrite:
            continue
        out_path.parent.mkdir(parents=True, exist_ok=True)
        out_path.write_text(fragment.content, encoding="utf-8")
        written += 1
    return written

def run_formatter(cmd: str, *args: str) -> None:
    try:
        p = subprocess.run([cmd, *args], capture_output=True, text=True)
    except FileNotFoundError:
        logger.warning("Could not find %s, skipping formatting.", cmd)
        return
    if p.stdout:
        logger.warning("(%s) %s", cmd, p.stdout)
    if p.stderr:
        logger.error("(%s) %s", cmd, p.stderr)

def render_visitor(root: Node, path: PathLike, options: Optional[RenderOptions]=None) -> int:
    options = options or RenderOptions()
    # Build the whole map first; a generation error leaves the folder untouched.
    render_map = get_render_map(root, options)
    if options.delete_folder_before_rendering:
        delete_directory(path)
    written = write_render_map(render_map, path)
    logger.info("wrote %d Go file(s) to %s", written, path)
    if options.format_code:
        run_formatter("gofmt", "-w", str(path))
    return written
