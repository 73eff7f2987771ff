from __future__ import annotations
from dataclasses import dataclass, field
from typing import List, Optional

from .import_map import ImportMap
from .naming import pascal_case
from .nodes import Node, find_field, is_node, is_value_node
from .type_manifest import TypeContext, TypeManifestVisitor
from .values import ValueRenderer

@dataclass(frozen=True)
class DiscriminatorConstant:
    name: str
    kind: str      # "constant" | "field"
    offset: int
    render: str

@dataclass
class DiscriminatorConstants:
    constants: List[DiscriminatorConstant] = field(default_factory=list)
    imports: ImportMap = field(default_factory=ImportMap)

    @property
    def render(self) -> str:
        return "\n\n".join(c.render for c in self.constants)

    @property
    def leading(self) -> Optional[DiscriminatorConstant]:
        """The constant discriminator written before the data, if any."""
        for c in self.constants:
            if c.kind == "constant" and c.offset == 0:
                return c
        return None

def get_discriminator_constants(
    *,
    discriminator_nodes: List[Node],
    fields: List[Node],
    prefix: str,
    types: TypeManifestVisitor,
    values: ValueRenderer,
) -> DiscriminatorConstants:
    out = DiscriminatorConstants()
    constant_nodes = [d for d in discriminator_nodes if is_node(d, "constantDiscriminatorNode")]

    for node in discriminator_nodes:
        if is_node(node, "constantDiscriminatorNode"):
            index = next(i for i, d in enumerate(constant_nodes) if d is node)
            suffix = "" if index <= 0 else f"_{index + 1}"
            name = pascal_case(f"{prefix}_discriminator{suffix}")
            value = values.visit(node["constant"])
            out.imports.merge_with(value.imports)
            literal = value.render
            if literal.startswith("byte("):
                # single-byte fold; keep the constant sliceable
                literal = f"[]byte{{{literal}}}"
            out.constants.append(DiscriminatorConstant(
                name=name, kind="constant", offset=int(node.get("offset", 0)),
                render=f"var {name} = {literal}",
            ))
        elif is_node(node, "fieldDiscriminatorNode"):
            f = find_field(fields, node["name"])
            if f is None or not is_value_node(f.get("defaultValue")):
                continue
            name = pascal_case(f"{prefix}_{node['name']}")
            manifest = types.visit(f["type"], TypeContext(
                parent_name=pascal_case(prefix) + pascal_case(f["name"]), nested_struct=True,
            ))
            value = values.visit(f["defaultValue"], manifest.type)
            out.imports.merge_with(manifest.imports, value.imports)
            out.constants.append(DiscriminatorConstant(
                name=name, kind="field", offset=int(node.get("offset", 0)),
                render=f"var {name} {manifest.type} = {value.render}",
            ))
        # size discriminators carry no constant
    return out
