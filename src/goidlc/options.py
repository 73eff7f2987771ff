from __future__ import annotations
import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

LINK_OVERRIDE_GROUPS = ("accounts", "definedTypes", "instructions", "pdas", "programs", "resolvers")

@dataclass(frozen=True)
class RenderOptions:
    # internal key (e.g. "generatedTypes", "hooked") -> Go import path, "" = same package
    dependency_map: Dict[str, str] = field(default_factory=dict)
    # group -> {node name -> internal key or Go import path}
    link_overrides: Dict[str, Dict[str, str]] = field(default_factory=dict)
    render_parent_instructions: bool = False
    delete_folder_before_rendering: bool = True
    format_code: bool = True

def options_from_dict(data: Mapping[str, Any]) -> RenderOptions:
    unknown = set(data) - {
        "dependencyMap", "linkOverrides", "renderParentInstructions",
        "deleteFolderBeforeRendering", "formatCode",
    }
    if unknown:
        raise ValueError(f"Unknown option(s): {sorted(unknown)}")
    overrides = dict(data.get("linkOverrides") or {})
    bad_groups = set(overrides) - set(LINK_OVERRIDE_GROUPS)
    if bad_groups:
        raise ValueError(f"Unknown linkOverrides group(s): {sorted(bad_groups)}")
    return RenderOptions(
        dependency_map=dict(data.get("dependencyMap") or {}),
        link_overrides={k: dict(v) for k, v in overrides.items()},
        render_parent_instructions=bool(data.get("renderParentInstructions", False)),
        delete_folder_before_rendering=bool(data.get("deleteFolderBeforeRendering", True)),
        format_code=bool(data.get("formatCode", True)),
    )

def load_options(path: Optional[Union[str, Path]]) -> RenderOptions:
    if path is None:
        return RenderOptions()
    data = json.loads(Path(path).read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        raise ValueError("Options file must contain a JSON object")
    return options_from_dict(data)
