from __future__ import annotations
from dataclasses import dataclass
from typing import Dict, Iterable, Optional, Union

from .errors import GenNote, RenderMapConflictError

@dataclass(frozen=True)
class Fragment:
    content: str
    overwrite: bool = True

# None marks a path that conditionally produces no file.
RenderMap = Dict[str, Optional[Fragment]]

def create_render_map(
    path: Union[None, str, Dict[str, Optional[Fragment]]]=None,
    fragment: Optional[Fragment]=None,
) -> RenderMap:
    if path is None:
        return {}
    if isinstance(path, dict):
        return dict(path)
    return {path: fragment}

def _conflict(path: str) -> RenderMapConflictError:
    return RenderMapConflictError(GenNote(
        kind="ERROR", code="GO-MAP-0001",
        message=f"Two entities render to the same output path: {path}",
    ))

def add_to_render_map(render_map: RenderMap, path: str, fragment: Optional[Fragment]) -> RenderMap:
    return merge_render_maps([render_map, {path: fragment}])

def merge_render_maps(maps: Iterable[RenderMap]) -> RenderMap:
    out: RenderMap = {}
    for m in maps:
        for path, fragment in m.items():
            existing = out.get(path)
            if existing is not None and fragment is not None:
                raise _conflict(path)
            if existing is None:
                out[path] = fragment
    return out

def present(render_map: RenderMap) -> Dict[str, Fragment]:
    return {p: f for p, f in render_map.items() if f is not None}
