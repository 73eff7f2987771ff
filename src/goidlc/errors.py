from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Dict, Optional

@dataclass(frozen=True)
class GenNote:
    kind: str   # "ERROR" | "WARN"
    code: str
    message: str
    node_kind: Optional[str]=None

class GoGenError(Exception):
    """Fatal generation error. Aborts the whole run, no partial render map."""
    def __init__(self, note: GenNote):
        super().__init__(f"[{note.code}] {note.message}")
        self.note = note

class UnsupportedNodeError(GoGenError):
    pass

class MissingNameError(GoGenError):
    pass

class UnsupportedValueError(GoGenError):
    pass

class RenderMapConflictError(GoGenError):
    pass

class LinkResolutionError(GoGenError):
    pass

def _node_kind(node: Any) -> Optional[str]:
    if isinstance(node, dict):
        return node.get("kind")
    return None

def unsupported_node(node: Dict[str, Any], code: str="GO-TYPE-0301", message: Optional[str]=None) -> UnsupportedNodeError:
    k = _node_kind(node)
    return UnsupportedNodeError(GenNote(
        kind="ERROR", code=code,
        message=message or f"Node kind '{k}' is not supported by the Go renderer.",
        node_kind=k,
    ))

def missing_name(node: Dict[str, Any], what: str) -> MissingNameError:
    return MissingNameError(GenNote(
        kind="ERROR",
        code="GO-TYPE-0202" if what.startswith("Enum") else "GO-TYPE-0201",
        message=f"{what} must have a parent name.",
        node_kind=_node_kind(node),
    ))
