"""Schema value node -> Go literal expression.

Enum literals follow the same naming as the type manifests: a variant of enum
`Foo` is addressed as `Foo_Variant` (the ordinal / variant index constant).
Composite values take an optional Go type hint so they can be emitted as typed
composite literals; without it they fall back to loosely typed forms.
"""

from __future__ import annotations
import re
from dataclasses import dataclass, field
from typing import List, Mapping, Optional, Tuple

from .errors import GenNote, UnsupportedValueError, unsupported_node
from .import_map import SOLANA, ImportMap, merged_dependency_map
from .naming import GetImportFrom, get_import_from_factory, go_string, link_reference, pascal_case
from .nodes import Node, bytes_value_node, get_bytes_from_bytes_value_node, is_node

@dataclass
class ValueManifest:
    render: str
    imports: ImportMap = field(default_factory=ImportMap)

_re_array_type = re.compile(r"^\[\d*\](.+)$", re.S)

def _element_hint(hint: Optional[str]) -> Optional[str]:
    if not hint:
        return None
    m = _re_array_type.match(hint)
    return m.group(1) if m else None

def _map_hint(hint: Optional[str]) -> Tuple[Optional[str], Optional[str]]:
    """Split `map[K]V` into (K, V)."""
    if not hint or not hint.startswith("map["):
        return None, None
    depth = 0
    for i in range(3, len(hint)):
        ch = hint[i]
        if ch == "[":
            depth += 1
        elif ch == "]":
            depth -= 1
            if depth == 0:
                return hint[4:i], hint[i + 1:]
    return None, None

def _bytes_literal(data: bytes, fixed: bool=True) -> str:
    items = ", ".join(str(b) for b in data)
    size = str(len(data)) if fixed else ""
    return f"[{size}]byte{{{items}}}"

def _short_u16(n: int) -> bytes:
    out = bytearray()
    while True:
        b = n & 0x7F
        n >>= 7
        if n == 0:
            out.append(b)
            return bytes(out)
        out.append(b | 0x80)

class ValueRenderer:
    def __init__(
        self,
        *,
        get_import_from: Optional[GetImportFrom]=None,
        dependency_map: Optional[Mapping[str, str]]=None,
    ):
        self.get_import_from = get_import_from or get_import_from_factory()
        self.dependency_map = merged_dependency_map(dependency_map)

    def _all(self, nodes: List[Node], hint: Optional[str]=None) -> Tuple[List[str], ImportMap]:
        items = [self.visit(n, hint) for n in nodes]
        return [i.render for i in items], ImportMap().merge_with(*(i.imports for i in items))

    def visit(self, node: Node, hint: Optional[str]=None) -> ValueManifest:
        k = node.get("kind")
        if k == "booleanValueNode":
            return ValueManifest("true" if node["boolean"] else "false")
        if k == "numberValueNode":
            return ValueManifest(str(node["number"]))
        if k == "stringValueNode":
            return ValueManifest(go_string(node["string"]))
        if k == "bytesValueNode":
            fixed = not (hint and hint.startswith("[]"))
            return ValueManifest(_bytes_literal(get_bytes_from_bytes_value_node(node), fixed=fixed))
        if k == "publicKeyValueNode":
            return ValueManifest(
                f'ag_solanago.MustPublicKeyFromBase58("{node["publicKey"]}")',
                ImportMap().add(SOLANA),
            )
        if k == "programIdValueNode":
            return ValueManifest("ProgramID")
        if k == "noneValueNode":
            return ValueManifest("nil")
        if k == "someValueNode":
            inner_hint = hint[1:] if hint and hint.startswith("*") else None
            child = self.visit(node["value"], inner_hint)
            ptr = inner_hint or "interface{}"
            return ValueManifest(f"func() *{ptr} {{ var v {ptr} = {child.render}; return &v }}()", child.imports)
        if k == "arrayValueNode":
            items, imports = self._all(node.get("items") or [], _element_hint(hint))
            return ValueManifest(f"{hint or '[]interface{}'}{{{', '.join(items)}}}", imports)
        if k == "setValueNode":
            key_hint, _ = _map_hint(hint)
            items, imports = self._all(node.get("items") or [], key_hint)
            body = ", ".join(f"{i}: {{}}" for i in items)
            return ValueManifest(f"{hint or 'map[interface{}]struct{}'}{{{body}}}", imports)
        if k == "mapValueNode":
            key_hint, value_hint = _map_hint(hint)
            entries = [self._map_entry(e, key_hint, value_hint) for e in node.get("entries") or []]
            imports = ImportMap().merge_with(*(e.imports for e in entries))
            body = ", ".join(e.render for e in entries)
            return ValueManifest(f"{hint or 'map[string]interface{}'}{{{body}}}", imports)
        if k == "tupleValueNode":
            values = node.get("items") or []
            if len(values) == 1:
                return self.visit(values[0], hint)
            items, imports = self._all(values)
            return ValueManifest(f"{hint or ''}{{{', '.join(items)}}}", imports)
        if k == "structValueNode":
            fields = [self._struct_field(f) for f in node.get("fields") or []]
            imports = ImportMap().merge_with(*(f.imports for f in fields))
            return ValueManifest(f"{hint or ''}{{{', '.join(f.render for f in fields)}}}", imports)
        if k == "enumValueNode":
            return self._enum(node)
        if k == "constantValueNode":
            return self._constant(node)
        raise unsupported_node(node, "GO-VAL-0999")

    def _map_entry(self, node: Node, key_hint: Optional[str], value_hint: Optional[str]) -> ValueManifest:
        key = self.visit(node["key"], key_hint)
        value = self.visit(node["value"], value_hint)
        return ValueManifest(f"{key.render}: {value.render}", key.imports.merge_with(value.imports))

    def _struct_field(self, node: Node) -> ValueManifest:
        value = self.visit(node["value"])
        return ValueManifest(f"{pascal_case(node['name'])}: {value.render}", value.imports)

    def _enum(self, node: Node) -> ValueManifest:
        link = node["enum"]
        enum_name, imports = link_reference(pascal_case(link["name"]), self.get_import_from(link), self.dependency_map)
        variant = f"{enum_name}_{pascal_case(node['variant'])}"
        if not node.get("value"):
            return ValueManifest(variant, imports)
        payload = self.visit(node["value"])
        return ValueManifest(f"{variant} {payload.render}", imports.merge_with(payload.imports))

    def _constant(self, node: Node) -> ValueManifest:
        type_node, value = node["type"], node["value"]
        if is_node(value, "bytesValueNode"):
            return self.visit(value)
        if is_node(type_node, "stringTypeNode") and is_node(value, "stringValueNode"):
            return self.visit(bytes_value_node(type_node.get("encoding", "utf8"), value["string"]))
        if is_node(type_node, "numberTypeNode") and is_node(value, "numberValueNode"):
            return fold_number(type_node, value["number"])
        raise UnsupportedValueError(GenNote(
            kind="ERROR", code="GO-VAL-0101",
            message="Unsupported constant value type.",
            node_kind=node.get("kind"),
        ))

def fold_number(number_type: Node, number) -> ValueManifest:
    """Encode a number constant into its on-wire bytes."""
    fmt = number_type["format"]
    endian = "BigEndian" if number_type.get("endian") == "be" else "LittleEndian"
    if fmt in ("u8", "i8"):
        return ValueManifest(f"byte({int(number) & 0xFF})")
    if fmt == "shortU16":
        return ValueManifest(_bytes_literal(_short_u16(int(number)), fixed=False))
    bits = int(fmt[1:])
    if fmt in ("u128", "i128"):
        order = "big" if endian == "BigEndian" else "little"
        data = (int(number) & ((1 << 128) - 1)).to_bytes(16, order)
        return ValueManifest(_bytes_literal(data, fixed=False))
    imports = ImportMap().add("encoding/binary")
    if fmt.startswith("f"):
        imports.add("math")
        arg = f"math.Float{bits}bits({number})"
    else:
        arg = str(int(number) & ((1 << bits) - 1))
    return ValueManifest(f"binary.{endian}.AppendUint{bits}(nil, {arg})", imports)

def render_value_node(value: Node, hint: Optional[str]=None, **options) -> ValueManifest:
    return ValueRenderer(**options).visit(value, hint)
