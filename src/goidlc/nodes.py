"""Helpers over Codama schema nodes (plain JSON dicts with a "kind" key).

Nodes are treated as immutable: helpers build new dicts, never edit inputs.
"""

from __future__ import annotations
import base64
from typing import Any, Dict, Iterable, List, Optional, Union

import base58

Node = Dict[str, Any]

VALUE_NODE_KINDS = frozenset({
    "arrayValueNode",
    "booleanValueNode",
    "bytesValueNode",
    "constantValueNode",
    "enumValueNode",
    "mapValueNode",
    "noneValueNode",
    "numberValueNode",
    "publicKeyValueNode",
    "setValueNode",
    "someValueNode",
    "stringValueNode",
    "structValueNode",
    "tupleValueNode",
})

# Wrappers that only alter layout or meaning, not the Go representation.
_WRAPS_TYPE = frozenset({
    "fixedSizeTypeNode",
    "sizePrefixTypeNode",
    "hiddenPrefixTypeNode",
    "hiddenSuffixTypeNode",
    "preOffsetTypeNode",
    "postOffsetTypeNode",
    "sentinelTypeNode",
})
_WRAPS_NUMBER = frozenset({"amountTypeNode", "dateTimeTypeNode", "solAmountTypeNode"})

def is_node(node: Any, kinds: Union[str, Iterable[str]]) -> bool:
    if not isinstance(node, dict):
        return False
    if isinstance(kinds, str):
        return node.get("kind") == kinds
    return node.get("kind") in set(kinds)

def is_value_node(node: Any) -> bool:
    return is_node(node, VALUE_NODE_KINDS)

def resolve_nested_type_node(node: Node) -> Node:
    while True:
        k = node.get("kind")
        if k in _WRAPS_TYPE:
            node = node["type"]
        elif k in _WRAPS_NUMBER:
            node = node["number"]
        else:
            return node

def is_scalar_enum(enum_type: Node) -> bool:
    return all(is_node(v, "enumEmptyVariantTypeNode") for v in enum_type.get("variants") or [])

def get_bytes_from_bytes_value_node(node: Node) -> bytes:
    encoding = node.get("encoding", "utf8")
    data = node.get("data", "")
    if encoding == "utf8":
        return data.encode("utf-8")
    if encoding == "base16":
        return bytes.fromhex(data)
    if encoding == "base58":
        return base58.b58decode(data)
    if encoding == "base64":
        return base64.b64decode(data)
    raise ValueError(f"Unsupported bytes encoding: {encoding}")

def bytes_value_node(encoding: str, data: str) -> Node:
    return {"kind": "bytesValueNode", "encoding": encoding, "data": data}

# --- traversal --------------------------------------------------------------

def get_all_programs(root: Node) -> List[Node]:
    if is_node(root, "programNode"):
        return [root]
    return [root["program"], *(root.get("additionalPrograms") or [])]

def get_all_accounts(node: Node) -> List[Node]:
    return [a for p in get_all_programs(node) for a in (p.get("accounts") or [])]

def get_all_defined_types(node: Node) -> List[Node]:
    return [t for p in get_all_programs(node) for t in (p.get("definedTypes") or [])]

def _instruction_with_subs(ix: Node, leaves_only: bool) -> List[Node]:
    subs = ix.get("subInstructions") or []
    out: List[Node] = []
    if not (leaves_only and subs):
        out.append(ix)
    for sub in subs:
        out.extend(_instruction_with_subs(sub, leaves_only))
    return out

def get_all_instructions_with_subs(node: Node, *, leaves_only: bool=False) -> List[Node]:
    if is_node(node, "instructionNode"):
        return _instruction_with_subs(node, leaves_only)
    return [
        sub
        for p in get_all_programs(node)
        for ix in (p.get("instructions") or [])
        for sub in _instruction_with_subs(ix, leaves_only)
    ]

def struct_type_node_from_instruction_arguments(arguments: List[Node]) -> Node:
    fields = []
    for arg in arguments:
        field: Node = {
            "kind": "structFieldTypeNode",
            "name": arg["name"],
            "type": arg["type"],
            "docs": arg.get("docs") or [],
        }
        default = arg.get("defaultValue")
        if is_value_node(default):
            field["defaultValue"] = default
            field["defaultValueStrategy"] = arg.get("defaultValueStrategy")
        fields.append(field)
    return {"kind": "structTypeNode", "fields": fields}

def find_field(fields: List[Node], name: str) -> Optional[Node]:
    for f in fields:
        if f.get("name") == name:
            return f
    return None
