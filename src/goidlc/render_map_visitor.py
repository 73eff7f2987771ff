"""Schema root -> render map of Go files.

One Go package per output directory. Program-level pages are keyed by the
snake-case program name; the root index (`instructions.go`) by the first
program.
"""

from __future__ import annotations
import logging
from dataclasses import dataclass, field, replace
from typing import Dict, List, Optional, Tuple

from .discriminators import get_discriminator_constants
from .errors import GenNote, LinkResolutionError
from .import_map import BINARY, SOLANA, ImportMap
from .naming import go_param_name, parse_docs, pascal_case, snake_case, get_import_from_factory
from .nodes import (
    Node,
    bytes_value_node,
    get_all_accounts,
    get_all_defined_types,
    get_all_instructions_with_subs,
    get_all_programs,
    is_node,
    is_value_node,
    resolve_nested_type_node,
    struct_type_node_from_instruction_arguments,
)
from .options import RenderOptions
from .pages import (
    AccountField,
    InstructionAccount,
    InstructionArg,
    PdaSeed,
    account_page,
    defined_type_page,
    errors_page,
    instruction_page,
    instructions_mod_page,
)
from .render_map import Fragment, RenderMap, create_render_map, merge_render_maps, present
from .type_manifest import TypeContext, TypeManifestVisitor
from .values import ValueRenderer, fold_number

logger = logging.getLogger(__name__)

DEFAULT_PACKAGE_NAME = "generated"

@dataclass(frozen=True)
class RenderContext:
    options: RenderOptions
    program: Optional[Node] = None
    # (program name, pda name) -> pdaNode
    pdas: Dict[Tuple[str, str], Node] = field(default_factory=dict)
    programs: Dict[str, Node] = field(default_factory=dict)

    @property
    def package_name(self) -> str:
        if self.program is None:
            return DEFAULT_PACKAGE_NAME
        return snake_case(self.program["name"]) or DEFAULT_PACKAGE_NAME

    def find_pda(self, link: Node) -> Node:
        program_link = link.get("program")
        program_name = program_link["name"] if program_link else (self.program or {}).get("name")
        pda = self.pdas.get((program_name, link["name"]))
        if pda is None:
            raise LinkResolutionError(GenNote(
                kind="ERROR", code="GO-LINK-0001",
                message=f"Cannot find PDA '{link['name']}' in program '{program_name}'.",
                node_kind=link.get("kind"),
            ))
        return pda

def build_render_context(root: Node, options: RenderOptions) -> RenderContext:
    programs = get_all_programs(root)
    pdas: Dict[Tuple[str, str], Node] = {}
    for p in programs:
        for pda in p.get("pdas") or []:
            # first registration wins
            pdas.setdefault((p["name"], pda["name"]), pda)
    return RenderContext(
        options=options,
        pdas=pdas,
        programs={p["name"]: p for p in programs},
    )

def get_conflicts_for_instruction_accounts_and_args(instruction: Node) -> List[str]:
    names = [a["name"] for a in instruction.get("accounts") or []]
    names += [a["name"] for a in instruction.get("arguments") or []]
    seen, conflicts = set(), []
    for n in names:
        if n in seen and n not in conflicts:
            conflicts.append(n)
        seen.add(n)
    return conflicts

class RenderMapVisitor:
    def __init__(self, options: Optional[RenderOptions]=None):
        self.options = options or RenderOptions()
        get_import_from = get_import_from_factory(self.options.link_overrides)
        self.types = TypeManifestVisitor(get_import_from=get_import_from, dependency_map=self.options.dependency_map)
        self.values = ValueRenderer(get_import_from=get_import_from, dependency_map=self.options.dependency_map)

    def _imports(self, imports: ImportMap) -> str:
        return imports.to_string(self.options.dependency_map)

    # --- root & programs ---------------------------------------------------

    def visit_root(self, root: Node) -> RenderMap:
        ctx = build_render_context(root, self.options)
        programs = get_all_programs(root)
        instructions = get_all_instructions_with_subs(root, leaves_only=not self.options.render_parent_instructions)
        has_anything = bool(programs or get_all_accounts(root) or instructions or get_all_defined_types(root))

        index: Optional[Fragment] = None
        if has_anything:
            index_ctx = replace(ctx, program=programs[0] if programs else None)
            imports = ImportMap().add(SOLANA) if programs else ImportMap()
            index = Fragment(instructions_mod_page(
                package_name=index_ctx.package_name,
                imports=self._imports(imports),
                programs=programs,
                instructions=instructions,
            ))
        maps = [create_render_map("instructions.go", index)]
        maps += [self.visit_program(p, ctx) for p in programs]
        return present(merge_render_maps(maps))

    def visit_program(self, program: Node, ctx: RenderContext) -> RenderMap:
        ctx = replace(ctx, program=program)
        maps = [self.visit_account(a, ctx) for a in program.get("accounts") or []]
        maps += [self.visit_defined_type(t, ctx) for t in program.get("definedTypes") or []]
        maps += [
            self.visit_instruction(ix, ctx)
            for ix in get_all_instructions_with_subs(program, leaves_only=not self.options.render_parent_instructions)
        ]
        errors = program.get("errors") or []
        maps.append(create_render_map("errors.go", Fragment(errors_page(
            program_name=program["name"],
            package_name=ctx.package_name,
            imports=self._imports(ImportMap().add("fmt")),
            errors=errors,
        )) if errors else None))
        return merge_render_maps(maps)

    # --- accounts ----------------------------------------------------------

    def visit_account(self, node: Node, ctx: RenderContext) -> RenderMap:
        name = pascal_case(node["name"])
        manifest = self.types.visit(node)
        imports = ImportMap().merge_with(manifest.imports).add(BINARY)

        fields = resolve_nested_type_node(node["data"]).get("fields") or []
        discriminators = get_discriminator_constants(
            discriminator_nodes=node.get("discriminators") or [],
            fields=fields,
            prefix=node["name"],
            types=self.types,
            values=self.values,
        )
        imports.merge_with(discriminators.imports)
        if discriminators.leading:
            imports.add(["bytes", "fmt"])

        account_fields = []
        for f in fields:
            m = self.types.visit(f["type"], TypeContext(parent_name=name + pascal_case(f["name"]), nested_struct=True))
            account_fields.append(AccountField(name=pascal_case(f["name"]), inner_option_type=m.inner_option_type))

        seeds: Optional[List[PdaSeed]] = None
        if node.get("pda"):
            pda = ctx.find_pda(node["pda"])
            seeds, seed_imports = self._pda_seeds(name, pda)
            imports.merge_with(seed_imports).add(SOLANA)

        content = account_page(
            account_name=node["name"],
            docs=parse_docs(node.get("docs")),
            package_name=ctx.package_name,
            imports=self._imports(imports),
            type_manifest=manifest,
            discriminators=discriminators,
            fields=account_fields,
            seeds=seeds,
        )
        return create_render_map(f"account_{snake_case(node['name'])}.go", Fragment(content))

    def _pda_seeds(self, account_name: str, pda: Node) -> Tuple[List[PdaSeed], ImportMap]:
        imports = ImportMap()
        seeds: List[PdaSeed] = []
        for i, seed in enumerate(pda.get("seeds") or []):
            var = f"seed{i}"
            if is_node(seed, "variablePdaSeedNode"):
                param = go_param_name(seed["name"])
                m = self.types.visit(seed["type"], TypeContext(
                    parent_name=account_name + pascal_case(seed["name"]), nested_struct=True,
                ))
                imports.merge_with(m.imports)
                setup, expr = self._variable_seed_bytes(var, param, m.type, resolve_nested_type_node(seed["type"]), imports)
                seeds.append(PdaSeed(
                    kind="variable", bytes_expr=expr, setup=setup, param=param,
                    go_type=m.type, docs=parse_docs(seed.get("docs")),
                ))
                continue
            value = seed["value"]
            if is_node(value, "programIdValueNode"):
                seeds.append(PdaSeed(kind="programId", bytes_expr="ProgramID.Bytes()"))
                continue
            setup, expr = self._constant_seed_bytes(var, seed["type"], value, imports)
            seeds.append(PdaSeed(kind="constant", bytes_expr=expr, setup=setup))
        return seeds, imports

    def _variable_seed_bytes(self, var: str, param: str, go_type: str, type_node: Node, imports: ImportMap) -> Tuple[List[str], str]:
        k = type_node.get("kind")
        if k == "publicKeyTypeNode":
            return [], f"{param}.Bytes()"
        if k in ("stringTypeNode", "bytesTypeNode"):
            if go_type.startswith("[") and not go_type.startswith("[]"):
                return [], f"{param}[:]"
            if go_type == "string":
                return [], f"[]byte({param})"
            return [], param
        if k == "numberTypeNode" and type_node.get("endian", "le") == "le":
            fmt = type_node["format"]
            if fmt in ("u8", "i8"):
                return [], f"[]byte{{byte({param})}}"
            if fmt in ("u16", "u32", "u64", "i16", "i32", "i64"):
                imports.add("encoding/binary")
                return [], f"binary.LittleEndian.AppendUint{fmt[1:]}(nil, uint{fmt[1:]}({param}))"
            if fmt in ("f32", "f64"):
                imports.add(["encoding/binary", "math"])
                return [], f"binary.LittleEndian.AppendUint{fmt[1:]}(nil, math.Float{fmt[1:]}bits({param}))"
        return self._borsh_seed(var, param, imports)

    def _constant_seed_bytes(self, var: str, type_node: Node, value: Node, imports: ImportMap) -> Tuple[List[str], str]:
        resolved = resolve_nested_type_node(type_node)
        if is_node(value, "stringValueNode") and is_node(resolved, "stringTypeNode"):
            encoding = resolved.get("encoding", "utf8")
            if encoding == "utf8":
                return [], f"[]byte({self.values.visit(value).render})"
            return [], self.values.visit(bytes_value_node(encoding, value["string"]), "[]byte").render
        if is_node(value, "bytesValueNode"):
            return [], self.values.visit(value, "[]byte").render
        if is_node(value, "publicKeyValueNode"):
            rendered = self.values.visit(value)
            imports.merge_with(rendered.imports)
            return [], f"{rendered.render}.Bytes()"
        if is_node(value, "numberValueNode") and is_node(resolved, "numberTypeNode"):
            folded = fold_number(resolved, value["number"])
        elif is_node(value, "constantValueNode"):
            folded = self.values.visit(value)
        else:
            m = self.types.visit(type_node, TypeContext())
            rendered = self.values.visit(value, m.type)
            imports.merge_with(m.imports, rendered.imports)
            return self._borsh_seed(var, rendered.render, imports)
        imports.merge_with(folded.imports)
        literal = folded.render
        if literal.startswith("byte("):
            literal = f"[]byte{{{literal}}}"
        elif literal.startswith("["):
            literal = "[]" + literal[literal.index("]") + 1:]
        return [], literal

    def _borsh_seed(self, var: str, expr: str, imports: ImportMap) -> Tuple[List[str], str]:
        imports.add(BINARY)
        setup = [
            f"{var}, err := ag_binary.MarshalBorsh({expr})",
            "if err != nil {",
            "\treturn ag_solanago.PublicKey{}, 0, err",
            "}",
        ]
        return setup, var

    # --- defined types -----------------------------------------------------

    def visit_defined_type(self, node: Node, ctx: RenderContext) -> RenderMap:
        manifest = self.types.visit(node)
        content = defined_type_page(
            docs=parse_docs(node.get("docs")),
            package_name=ctx.package_name,
            imports=self._imports(ImportMap().merge_with_manifest(manifest)),
            type_manifest=manifest,
        )
        return create_render_map(f"type_{snake_case(node['name'])}.go", Fragment(content))

    # --- instructions ------------------------------------------------------

    def visit_instruction(self, node: Node, ctx: RenderContext) -> RenderMap:
        name = pascal_case(node["name"])
        data_name = f"{name}InstructionData"
        accounts = node.get("accounts") or []
        arguments = node.get("arguments") or []

        imports = ImportMap().add([SOLANA, BINARY, "bytes"])
        if any(not a.get("isOptional") for a in accounts):
            imports.add("fmt")

        conflicts = get_conflicts_for_instruction_accounts_and_args(node)
        if conflicts:
            logger.warning(
                "[Go] Accounts and args of instruction [%s] have the following conflicting attributes [%s]. "
                'Thus, the conflicting arguments will be suffixed with "Arg". '
                "You may want to rename the conflicting attributes.",
                node["name"], ", ".join(conflicts),
            )

        discriminators = get_discriminator_constants(
            discriminator_nodes=node.get("discriminators") or [],
            fields=arguments,
            prefix=node["name"],
            types=self.types,
            values=self.values,
        )
        imports.merge_with(discriminators.imports)

        args: List[InstructionArg] = []
        for argument in arguments:
            m = self.types.visit(argument["type"], TypeContext(
                parent_name=data_name + pascal_case(argument["name"]), nested_struct=True,
            ))
            imports.merge_with(m.imports)
            default = argument.get("defaultValue")
            has_default = is_value_node(default)
            value = None
            if has_default:
                rendered = self.values.visit(default, m.type)
                imports.merge_with(rendered.imports)
                value = rendered.render
            omitted = argument.get("defaultValueStrategy") == "omitted"
            arg_name = argument["name"] + "Arg" if argument["name"] in conflicts else argument["name"]
            args.append(InstructionArg(
                name=arg_name,
                data_name=argument["name"],
                type=m.type,
                default=has_default and omitted,
                optional=has_default and not omitted,
                value=value,
                docs=parse_docs(argument.get("docs")),
            ))

        struct = struct_type_node_from_instruction_arguments(arguments)
        manifest = self.types.visit(struct, TypeContext(parent_name=data_name))
        imports.merge_with(manifest.imports)

        content = instruction_page(
            instruction_name=node["name"],
            docs=parse_docs(node.get("docs")),
            package_name=ctx.package_name,
            imports=self._imports(imports),
            type_manifest=manifest,
            discriminators=discriminators,
            args=args,
            accounts=[
                InstructionAccount(
                    name=a["name"],
                    index=i,
                    is_writable=bool(a.get("isWritable")),
                    is_signer=a.get("isSigner") is True,
                    is_optional=bool(a.get("isOptional")),
                    docs=parse_docs(a.get("docs")),
                )
                for i, a in enumerate(accounts)
            ],
        )
        return create_render_map(f"instruction_{snake_case(node['name'])}.go", Fragment(content))

def get_render_map(root: Node, options: Optional[RenderOptions]=None) -> Dict[str, Fragment]:
    """Render every program of `root` into a path -> Fragment map."""
    return RenderMapVisitor(options).visit_root(root)
