"""Schema type node -> Go type syntax.

A TypeManifest holds the Go syntax for one node, the named declarations that
must be hoisted to the top of the file (in discovery order) and the imports
the syntax needs. Naming state travels down in an immutable TypeContext.
"""

from __future__ import annotations
from dataclasses import dataclass, field, replace
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple, Union

from .errors import missing_name, unsupported_node
from .import_map import BINARY, SOLANA, ImportMap, merged_dependency_map
from .naming import GetImportFrom, get_import_from_factory, go_doc_comment, go_string, link_reference, parse_docs, pascal_case
from .nodes import Node, get_bytes_from_bytes_value_node, is_node, is_scalar_enum, resolve_nested_type_node

# Codama number formats -> Go types.
NUMBER_FORMAT_MAP: Dict[str, str] = {
    "f32": "float32",
    "f64": "float64",
    "i8": "int8",
    "i16": "int16",
    "i32": "int32",
    "i64": "int64",
    "i128": "ag_binary.Int128",
    "u8": "uint8",
    "u16": "uint16",
    "u32": "uint32",
    "u64": "uint64",
    "u128": "ag_binary.Uint128",
    "shortU16": "uint16",
}

@dataclass(frozen=True)
class TypeManifest:
    type: str
    nested_structs: List[str] = field(default_factory=list)
    imports: ImportMap = field(default_factory=ImportMap)
    # True only for the manifest an option node returns; the enclosing
    # struct field turns it into a `bin:"optional"` tag.
    optional: bool = False

    @property
    def inner_option_type(self) -> Optional[str]:
        return self.type[1:] if self.optional else None

@dataclass(frozen=True)
class TypeContext:
    parent_name: Optional[str] = None
    nested_struct: bool = False
    inline_struct: bool = False
    # int for a fixed-size wrapper, number node for a size-prefix wrapper.
    parent_size: Union[None, int, Node] = None

    def child(self, **changes: Any) -> "TypeContext":
        # Size wrappers only reach their immediate bytes/string child.
        changes.setdefault("parent_size", None)
        return replace(self, **changes)

def merge_manifests(manifests: List[TypeManifest]) -> Tuple[ImportMap, List[str]]:
    imports = ImportMap().merge_with(*(m.imports for m in manifests))
    nested = [s for m in manifests for s in m.nested_structs]
    return imports, nested

def _default_comment(value: Optional[Node]) -> str:
    if not value:
        return ""
    k = value.get("kind")
    if k == "numberValueNode":
        return f" // default: {value['number']}"
    if k == "booleanValueNode":
        return f" // default: {'true' if value['boolean'] else 'false'}"
    if k == "stringValueNode":
        return f" // default: {go_string(value['string'])}"
    if k == "bytesValueNode":
        return f" // default: 0x{get_bytes_from_bytes_value_node(value).hex()}"
    return ""

class TypeManifestVisitor:
    def __init__(
        self,
        *,
        get_import_from: Optional[GetImportFrom]=None,
        dependency_map: Optional[Mapping[str, str]]=None,
    ):
        self.get_import_from = get_import_from or get_import_from_factory()
        self.dependency_map = merged_dependency_map(dependency_map)
        self._visitors: Dict[str, Callable[[Node, TypeContext], TypeManifest]] = {
            "accountNode": self._account,
            "arrayTypeNode": self._array,
            "booleanTypeNode": self._boolean,
            "bytesTypeNode": self._bytes,
            "definedTypeNode": self._defined_type,
            "definedTypeLinkNode": self._defined_type_link,
            "enumTypeNode": self._enum,
            "fixedSizeTypeNode": self._fixed_size,
            "mapTypeNode": self._map,
            "numberTypeNode": self._number,
            "optionTypeNode": self._option,
            "publicKeyTypeNode": self._public_key,
            "setTypeNode": self._set,
            "sizePrefixTypeNode": self._size_prefix,
            "stringTypeNode": self._string,
            "structTypeNode": self._struct,
            "tupleTypeNode": self._tuple,
        }

    def visit(self, node: Node, ctx: Optional[TypeContext]=None) -> TypeManifest:
        ctx = ctx or TypeContext()
        k = node.get("kind")
        fn = self._visitors.get(k)
        if fn is not None:
            return fn(node, ctx)
        if k in ("remainderOptionTypeNode", "zeroableOptionTypeNode"):
            raise unsupported_node(node, "GO-TYPE-0301")
        if k in ("amountTypeNode", "dateTimeTypeNode", "solAmountTypeNode",
                 "hiddenPrefixTypeNode", "hiddenSuffixTypeNode",
                 "preOffsetTypeNode", "postOffsetTypeNode", "sentinelTypeNode"):
            return self.visit(resolve_nested_type_node(node), ctx)
        raise unsupported_node(node, "GO-TYPE-0999")

    # --- scalars ---------------------------------------------------------

    def _number(self, node: Node, ctx: TypeContext) -> TypeManifest:
        if node.get("endian", "le") != "le":
            raise unsupported_node(node, "GO-TYPE-0101", "Number endianness not supported by Borsh.")
        go_type = NUMBER_FORMAT_MAP.get(node.get("format"))
        if go_type is None:
            raise unsupported_node(node, "GO-TYPE-0103", f"Number format not supported: {node.get('format')}")
        imports = ImportMap()
        if go_type.startswith("ag_binary."):
            imports.add(BINARY)
        return TypeManifest(go_type, imports=imports)

    def _boolean(self, node: Node, ctx: TypeContext) -> TypeManifest:
        size = resolve_nested_type_node(node.get("size") or {"kind": "numberTypeNode", "format": "u8", "endian": "le"})
        if size.get("format") == "u8" and size.get("endian", "le") == "le":
            return TypeManifest("bool")
        raise unsupported_node(node, "GO-TYPE-0102", "Bool size not supported by Borsh.")

    def _public_key(self, node: Node, ctx: TypeContext) -> TypeManifest:
        return TypeManifest("ag_solanago.PublicKey", imports=ImportMap().add(SOLANA))

    def _string(self, node: Node, ctx: TypeContext) -> TypeManifest:
        if isinstance(ctx.parent_size, int):
            return TypeManifest(f"[{ctx.parent_size}]byte")
        # remainder or prefixed: the decoder handles the length
        return TypeManifest("string")

    def _bytes(self, node: Node, ctx: TypeContext) -> TypeManifest:
        if isinstance(ctx.parent_size, int):
            count: Node = {"kind": "fixedCountNode", "value": ctx.parent_size}
        elif isinstance(ctx.parent_size, dict):
            count = {"kind": "prefixedCountNode", "prefix": ctx.parent_size}
        else:
            count = {"kind": "remainderCountNode"}
        array = {"kind": "arrayTypeNode", "item": {"kind": "numberTypeNode", "format": "u8", "endian": "le"}, "count": count}
        return self.visit(array, ctx.child())

    # --- wrappers --------------------------------------------------------

    def _fixed_size(self, node: Node, ctx: TypeContext) -> TypeManifest:
        return self.visit(node["type"], replace(ctx, parent_size=int(node["size"])))

    def _size_prefix(self, node: Node, ctx: TypeContext) -> TypeManifest:
        return self.visit(node["type"], replace(ctx, parent_size=resolve_nested_type_node(node["prefix"])))

    def _option(self, node: Node, ctx: TypeContext) -> TypeManifest:
        m = self.visit(node["item"], self._item_context(node["item"], "Item", ctx))
        return replace(m, type=f"*{m.type}", optional=True)

    # --- collections -----------------------------------------------------

    def _item_context(self, item: Node, suffix: str, ctx: TypeContext) -> TypeContext:
        # Struct and enum items directly under a defined type are hoisted as
        # <Parent><suffix>, and the defined type becomes an alias.
        if ctx.nested_struct or ctx.inline_struct or not ctx.parent_name:
            return ctx.child()
        if is_node(resolve_nested_type_node(item), ("structTypeNode", "enumTypeNode")):
            return ctx.child(parent_name=pascal_case(ctx.parent_name) + suffix, nested_struct=True)
        return ctx.child()

    def _array(self, node: Node, ctx: TypeContext) -> TypeManifest:
        m = self.visit(node["item"], self._item_context(node["item"], "Item", ctx))
        count = node.get("count") or {"kind": "remainderCountNode"}
        if is_node(count, "fixedCountNode"):
            return replace(m, type=f"[{count['value']}]{m.type}", optional=False)
        # prefixed and remainder counts are both Go slices
        return replace(m, type=f"[]{m.type}", optional=False)

    def _set(self, node: Node, ctx: TypeContext) -> TypeManifest:
        m = self.visit(node["item"], self._item_context(node["item"], "Item", ctx))
        return replace(m, type=f"map[{m.type}]struct{{}}", optional=False)

    def _map(self, node: Node, ctx: TypeContext) -> TypeManifest:
        key = self.visit(node["key"], self._item_context(node["key"], "Key", ctx))
        value = self.visit(node["value"], self._item_context(node["value"], "Value", ctx))
        imports, nested = merge_manifests([key, value])
        return TypeManifest(f"map[{key.type}]{value.type}", nested, imports)

    def _tuple_fields(self, items: List[Node], parent_name: Optional[str], ctx: TypeContext) -> Tuple[List[str], List[TypeManifest]]:
        manifests = []
        for i, item in enumerate(items):
            item_parent = f"{parent_name}Field{i}" if parent_name else None
            manifests.append(self.visit(item, ctx.child(parent_name=item_parent, nested_struct=False, inline_struct=True)))
        return [f"\tField{i} {m.type}" for i, m in enumerate(manifests)], manifests

    def _tuple(self, node: Node, ctx: TypeContext) -> TypeManifest:
        items = node.get("items") or []
        if len(items) == 1:
            m = self.visit(items[0], self._item_context(items[0], "Item", ctx))
            return replace(m, optional=False)
        lines, manifests = self._tuple_fields(items, ctx.parent_name and pascal_case(ctx.parent_name), ctx)
        imports, nested = merge_manifests(manifests)
        return TypeManifest("struct {\n" + "\n".join(lines) + "\n}", nested, imports)

    # --- structs ---------------------------------------------------------

    def _struct_field(self, node: Node, ctx: TypeContext) -> TypeManifest:
        if not ctx.parent_name:
            raise missing_name(node, "Struct field type")
        field_name = pascal_case(node["name"])
        child = ctx.child(
            parent_name=pascal_case(ctx.parent_name) + field_name,
            nested_struct=True,
            inline_struct=False,
        )
        m = self.visit(node["type"], child)

        tags = []
        if m.optional:
            tags.append('bin:"optional"')
        tag_str = f" `{' '.join(tags)}`" if tags else ""
        docblock = go_doc_comment(parse_docs(node.get("docs")), "\t")
        comment = _default_comment(node.get("defaultValue"))
        return TypeManifest(f"{docblock}\t{field_name} {m.type}{tag_str}{comment}", m.nested_structs, m.imports)

    def _struct(self, node: Node, ctx: TypeContext) -> TypeManifest:
        if not ctx.parent_name:
            raise missing_name(node, "Struct type")
        name = pascal_case(ctx.parent_name)
        fields = [self._struct_field(f, ctx) for f in node.get("fields") or []]
        imports, nested = merge_manifests(fields)
        body = "struct {\n" + "\n".join(f.type for f in fields) + "\n}" if fields else "struct{}"

        if ctx.inline_struct:
            return TypeManifest(body, nested, imports)
        if ctx.nested_struct:
            return TypeManifest(name, nested + [f"type {name} {body}"], imports)
        return TypeManifest(f"type {name} {body}", nested, imports)

    # --- enums -----------------------------------------------------------

    def _enum(self, node: Node, ctx: TypeContext) -> TypeManifest:
        if not ctx.parent_name:
            raise missing_name(node, "Enum type")
        name = pascal_case(ctx.parent_name)
        variants = node.get("variants") or []
        variant_names = [pascal_case(v["name"]) for v in variants]

        if is_scalar_enum(node):
            # Contiguous ordinals in declaration order.
            const_lines = [
                f"\t{name}_{v} {name} = iota" if i == 0 else f"\t{name}_{v}"
                for i, v in enumerate(variant_names)
            ]
            decl = f"type {name} uint8\n\nconst (\n" + "\n".join(const_lines) + "\n)"
            imports, nested = ImportMap(), []
        else:
            field_lines = ['\tEnum ag_binary.BorshEnum `borsh_enum:"true"`']
            payloads: List[TypeManifest] = []
            for v, vname in zip(variants, variant_names):
                m = self._enum_variant(v, name + vname, ctx)
                payloads.append(m)
                field_lines.append(f"\t{vname} {m.type}")
            imports, nested = merge_manifests(payloads)
            imports.add(BINARY)
            index_lines = [
                f"\t{name}_{v} uint8 = iota" if i == 0 else f"\t{name}_{v}"
                for i, v in enumerate(variant_names)
            ]
            decl = (
                f"type {name} struct {{\n" + "\n".join(field_lines) + "\n}"
                + "\n\nconst (\n" + "\n".join(index_lines) + "\n)"
            )

        if ctx.nested_struct or ctx.inline_struct:
            return TypeManifest(name, nested + [decl], imports)
        return TypeManifest(decl, nested, imports)

    def _enum_variant(self, node: Node, payload_name: str, ctx: TypeContext) -> TypeManifest:
        k = node.get("kind")
        if k == "enumEmptyVariantTypeNode":
            return TypeManifest("ag_binary.EmptyVariant", imports=ImportMap().add(BINARY))
        if k == "enumStructVariantTypeNode":
            return self.visit(node["struct"], ctx.child(parent_name=payload_name, nested_struct=True, inline_struct=False))
        if k == "enumTupleVariantTypeNode":
            tuple_node = resolve_nested_type_node(node["tuple"])
            lines, manifests = self._tuple_fields(tuple_node.get("items") or [], payload_name, ctx)
            imports, nested = merge_manifests(manifests)
            decl = f"type {payload_name} struct {{\n" + "\n".join(lines) + "\n}"
            return TypeManifest(payload_name, nested + [decl], imports)
        raise unsupported_node(node, "GO-TYPE-0999")

    # --- named types -----------------------------------------------------

    def _defined_type(self, node: Node, ctx: TypeContext) -> TypeManifest:
        name = pascal_case(node["name"])
        m = self.visit(node["type"], TypeContext(parent_name=name))
        if is_node(resolve_nested_type_node(node["type"]), ("enumTypeNode", "structTypeNode")):
            return m
        return replace(m, type=f"type {name} = {m.type}", optional=False)

    def _defined_type_link(self, node: Node, ctx: TypeContext) -> TypeManifest:
        syntax, imports = link_reference(pascal_case(node["name"]), self.get_import_from(node), self.dependency_map)
        return TypeManifest(syntax, imports=imports)

    def _account(self, node: Node, ctx: TypeContext) -> TypeManifest:
        return self.visit(node["data"], TypeContext(parent_name=pascal_case(node["name"])))

def get_type_manifest(node: Node, ctx: Optional[TypeContext]=None, **options: Any) -> TypeManifest:
    return TypeManifestVisitor(**options).visit(node, ctx)
