"""Go file pages.

Pages only arrange fragments that were already rendered by the type manifest
engine and the value renderer; they never derive type or literal syntax.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import List, Optional

from .discriminators import DiscriminatorConstants
from .naming import go_doc_comment, go_param_name, go_string, pascal_case
from .type_manifest import TypeManifest

GENERATED_HEADER = "// Code generated by goidlc. DO NOT EDIT."

@dataclass(frozen=True)
class AccountField:
    name: str                       # Go field name
    inner_option_type: Optional[str]=None

@dataclass(frozen=True)
class PdaSeed:
    kind: str                       # "constant" | "variable" | "programId"
    bytes_expr: str                 # expression of type []byte
    setup: List[str] = field(default_factory=list)
    param: Optional[str]=None
    go_type: Optional[str]=None
    docs: List[str] = field(default_factory=list)

@dataclass(frozen=True)
class InstructionArg:
    name: str                       # builder field name, conflict suffix applied
    data_name: str                  # field name in the data struct
    type: str
    default: bool                   # value fixed, not exposed on the builder
    optional: bool                  # value defaulted, overridable on the builder
    value: Optional[str]=None
    docs: List[str] = field(default_factory=list)

@dataclass(frozen=True)
class InstructionAccount:
    name: str
    index: int
    is_writable: bool
    is_signer: bool
    is_optional: bool
    docs: List[str] = field(default_factory=list)

def _file(package_name: str, imports: str, body: List[str]) -> str:
    out: List[str] = []
    emit = out.append
    emit(GENERATED_HEADER)
    emit("")
    emit(f"package {package_name}")
    emit("")
    if imports:
        emit(imports)
        emit("")
    out.extend(body)
    return "\n".join(out).rstrip() + "\n"

def _declarations(manifest: TypeManifest, docs: List[str]) -> List[str]:
    out: List[str] = []
    for nested in manifest.nested_structs:
        out.append(nested)
        out.append("")
    doc = go_doc_comment(docs)
    out.append(doc + manifest.type if doc else manifest.type)
    out.append("")
    return out

def _return_on_err(pad: str, zero: str="err") -> List[str]:
    return [f"{pad}if err != nil {{", f"{pad}\treturn {zero}", f"{pad}}}"]

# --- accounts ----------------------------------------------------------------

def account_page(
    *,
    account_name: str,
    docs: List[str],
    package_name: str,
    imports: str,
    type_manifest: TypeManifest,
    discriminators: DiscriminatorConstants,
    fields: List[AccountField],
    seeds: Optional[List[PdaSeed]]=None,
) -> str:
    name = pascal_case(account_name)
    body: List[str] = []
    emit = body.append
    if discriminators.constants:
        emit(discriminators.render)
        emit("")
    body.extend(_declarations(type_manifest, docs))

    leading = discriminators.leading

    emit(f"func (obj {name}) MarshalWithEncoder(encoder *ag_binary.Encoder) (err error) {{")
    if leading:
        emit("\t// Write account discriminator:")
        emit(f"\tif err = encoder.WriteBytes({leading.name}[:], false); err != nil {{")
        emit("\t\treturn err")
        emit("\t}")
    for f in fields:
        emit(f"\t// Serialize `{f.name}`:")
        if f.inner_option_type is not None:
            emit(f"\tif obj.{f.name} == nil {{")
            emit("\t\tif err = encoder.WriteBool(false); err != nil {")
            emit("\t\t\treturn err")
            emit("\t\t}")
            emit("\t} else {")
            emit("\t\tif err = encoder.WriteBool(true); err != nil {")
            emit("\t\t\treturn err")
            emit("\t\t}")
            emit(f"\t\tif err = encoder.Encode(*obj.{f.name}); err != nil {{")
            emit("\t\t\treturn err")
            emit("\t\t}")
            emit("\t}")
        else:
            emit(f"\tif err = encoder.Encode(obj.{f.name}); err != nil {{")
            emit("\t\treturn err")
            emit("\t}")
    emit("\treturn nil")
    emit("}")
    emit("")

    emit(f"func (obj *{name}) UnmarshalWithDecoder(decoder *ag_binary.Decoder) (err error) {{")
    if leading:
        emit("\t// Read and check account discriminator:")
        emit("\t{")
        emit(f"\t\tdiscriminator, err := decoder.ReadNBytes(len({leading.name}))")
        body.extend(_return_on_err("\t\t"))
        emit(f"\t\tif !bytes.Equal(discriminator, {leading.name}[:]) {{")
        emit(f'\t\t\treturn fmt.Errorf("wrong discriminator: wanted %v, got %v", {leading.name}[:], discriminator)')
        emit("\t\t}")
        emit("\t}")
    for f in fields:
        emit(f"\t// Deserialize `{f.name}`:")
        if f.inner_option_type is not None:
            emit("\t{")
            emit("\t\tok, err := decoder.ReadBool()")
            body.extend(_return_on_err("\t\t"))
            emit("\t\tif ok {")
            emit(f"\t\t\tobj.{f.name} = new({f.inner_option_type})")
            emit(f"\t\t\tif err = decoder.Decode(obj.{f.name}); err != nil {{")
            emit("\t\t\t\treturn err")
            emit("\t\t\t}")
            emit("\t\t}")
            emit("\t}")
        else:
            emit(f"\tif err = decoder.Decode(&obj.{f.name}); err != nil {{")
            emit("\t\treturn err")
            emit("\t}")
    emit("\treturn nil")
    emit("}")

    if seeds is not None:
        emit("")
        body.extend(_pda_function(name, seeds))
    return _file(package_name, imports, body)

def _pda_function(name: str, seeds: List[PdaSeed]) -> List[str]:
    out: List[str] = []
    emit = out.append
    params = [s for s in seeds if s.kind == "variable"]
    for s in params:
        for d in s.docs:
            emit(f"// {s.param}: {d}")
    signature = ", ".join(f"{s.param} {s.go_type}" for s in params)
    emit(f"// Find{name}Address derives the program address of a {name} account.")
    emit(f"func Find{name}Address({signature}) (ag_solanago.PublicKey, uint8, error) {{")
    emit("\tseeds := [][]byte{}")
    for s in seeds:
        for line in s.setup:
            emit(f"\t{line}")
        emit(f"\tseeds = append(seeds, {s.bytes_expr})")
    emit("\treturn ag_solanago.FindProgramAddress(seeds, ProgramID)")
    emit("}")
    return out

# --- defined types -------------------------------------------------------------

def defined_type_page(*, docs: List[str], package_name: str, imports: str, type_manifest: TypeManifest) -> str:
    return _file(package_name, imports, _declarations(type_manifest, docs))

# --- instructions ----------------------------------------------------------------

def instruction_page(
    *,
    instruction_name: str,
    docs: List[str],
    package_name: str,
    imports: str,
    type_manifest: TypeManifest,
    discriminators: DiscriminatorConstants,
    args: List[InstructionArg],
    accounts: List[InstructionAccount],
) -> str:
    name = pascal_case(instruction_name)
    data_name = f"{name}InstructionData"
    builder_args = [a for a in args if not a.default]
    body: List[str] = []
    emit = body.append

    if discriminators.constants:
        emit(discriminators.render)
        emit("")
    body.extend(_declarations(type_manifest, []))

    # builder type
    for d in docs:
        emit(f"// {d}")
    emit(f"type {name} struct {{")
    for a in builder_args:
        emit(go_doc_comment(a.docs, "\t") + f"\t{pascal_case(a.name)} {a.type}")
    if builder_args:
        emit("")
    for acc in accounts:
        flags = [f for f, on in (("WRITE", acc.is_writable), ("SIGNER", acc.is_signer), ("OPTIONAL", acc.is_optional)) if on]
        emit(f"\t// [{acc.index}] = [{', '.join(flags)}] {acc.name}")
    emit('\tag_solanago.AccountMetaSlice `bin:"-"`')
    emit("}")
    emit("")

    emit(f"// New{name}InstructionBuilder creates a new `{name}` instruction builder.")
    emit(f"func New{name}InstructionBuilder() *{name} {{")
    emit(f"\tnd := &{name}{{")
    emit(f"\t\tAccountMetaSlice: make(ag_solanago.AccountMetaSlice, {len(accounts)}),")
    emit("\t}")
    for a in builder_args:
        if a.optional and a.value is not None:
            emit(f"\tnd.{pascal_case(a.name)} = {a.value}")
    emit("\treturn nd")
    emit("}")
    emit("")

    for a in builder_args:
        field_name = pascal_case(a.name)
        param = go_param_name(a.name)
        emit(f"// Set{field_name} sets the \"{a.name}\" parameter.")
        emit(f"func (inst *{name}) Set{field_name}({param} {a.type}) *{name} {{")
        emit(f"\tinst.{field_name} = {param}")
        emit("\treturn inst")
        emit("}")
        emit("")

    for acc in accounts:
        acc_name = pascal_case(acc.name)
        param = go_param_name(acc.name)
        meta = f"ag_solanago.Meta({param})"
        if acc.is_writable:
            meta += ".WRITE()"
        if acc.is_signer:
            meta += ".SIGNER()"
        for d in acc.docs:
            emit(f"// {d}")
        emit(f"func (inst *{name}) Set{acc_name}Account({param} ag_solanago.PublicKey) *{name} {{")
        emit(f"\tinst.AccountMetaSlice[{acc.index}] = {meta}")
        emit("\treturn inst")
        emit("}")
        emit("")
        emit(f"func (inst *{name}) Get{acc_name}Account() *ag_solanago.AccountMeta {{")
        emit(f"\treturn inst.AccountMetaSlice.Get({acc.index})")
        emit("}")
        emit("")

    emit(f"func (inst *{name}) Validate() error {{")
    for acc in accounts:
        if acc.is_optional:
            continue
        emit(f"\tif inst.AccountMetaSlice[{acc.index}] == nil {{")
        emit(f'\t\treturn fmt.Errorf("accounts.{pascal_case(acc.name)} is not set")')
        emit("\t}")
    emit("\treturn nil")
    emit("}")
    emit("")

    leading = discriminators.leading
    emit(f"func (inst *{name}) Data() ([]byte, error) {{")
    emit("\tbuf := new(bytes.Buffer)")
    emit("\tencoder := ag_binary.NewBorshEncoder(buf)")
    if leading:
        emit(f"\tif err := encoder.WriteBytes({leading.name}[:], false); err != nil {{")
        emit("\t\treturn nil, err")
        emit("\t}")
    emit(f"\tdata := {data_name}{{")
    for a in args:
        if a.default:
            emit(f"\t\t{pascal_case(a.data_name)}: {a.value},")
        else:
            emit(f"\t\t{pascal_case(a.data_name)}: inst.{pascal_case(a.name)},")
    emit("\t}")
    emit("\tif err := encoder.Encode(data); err != nil {")
    emit("\t\treturn nil, err")
    emit("\t}")
    emit("\treturn buf.Bytes(), nil")
    emit("}")
    emit("")

    emit(f"func (inst *{name}) Build() (ag_solanago.Instruction, error) {{")
    emit("\tif err := inst.Validate(); err != nil {")
    emit("\t\treturn nil, err")
    emit("\t}")
    emit("\tdata, err := inst.Data()")
    body.extend(_return_on_err("\t", "nil, err"))
    emit("\treturn ag_solanago.NewInstruction(ProgramID, inst.AccountMetaSlice, data), nil")
    emit("}")
    emit("")

    params = [f"{go_param_name(a.name)} {a.type}" for a in builder_args]
    params += [f"{go_param_name(acc.name)} ag_solanago.PublicKey" for acc in accounts]
    emit(f"// New{name}Instruction builds a `{name}` instruction with every parameter and account set.")
    emit(f"func New{name}Instruction({', '.join(params)}) *{name} {{")
    emit(f"\treturn New{name}InstructionBuilder().")
    chain = [f"Set{pascal_case(a.name)}({go_param_name(a.name)})" for a in builder_args]
    chain += [f"Set{pascal_case(acc.name)}Account({go_param_name(acc.name)})" for acc in accounts]
    if not chain:
        body[-1] = f"\treturn New{name}InstructionBuilder()"
    for i, c in enumerate(chain):
        emit(f"\t\t{c}" + ("." if i < len(chain) - 1 else ""))
    emit("}")
    return _file(package_name, imports, body)

# --- program level ---------------------------------------------------------------

def errors_page(*, program_name: str, package_name: str, imports: str, errors: List[dict]) -> str:
    body: List[str] = []
    emit = body.append
    emit(f"// CustomError is an error returned by the {pascal_case(program_name)} program.")
    emit("type CustomError struct {")
    emit("\tCode uint32")
    emit("\tName string")
    emit("\tMsg  string")
    emit("}")
    emit("")
    emit("func (e *CustomError) Error() string {")
    emit('\treturn fmt.Sprintf("%s (%d): %s", e.Name, e.Code, e.Msg)')
    emit("}")
    emit("")
    emit("var (")
    for err in errors:
        for d in err.get("docs") or []:
            emit(f"\t// {d}")
        emit(
            f"\tErr{pascal_case(err['name'])} = &CustomError{{"
            f"Code: {int(err['code'])}, Name: \"{pascal_case(err['name'])}\", Msg: {go_string(err.get('message', ''))}}}"
        )
    emit(")")
    emit("")
    emit("var errorsByCode = map[uint32]*CustomError{")
    for err in errors:
        emit(f"\t{int(err['code'])}: Err{pascal_case(err['name'])},")
    emit("}")
    emit("")
    emit("// DecodeCustomError returns the program error for a code, or nil when unknown.")
    emit("func DecodeCustomError(code uint32) *CustomError {")
    emit("\treturn errorsByCode[code]")
    emit("}")
    return _file(package_name, imports, body)

def instructions_mod_page(
    *,
    package_name: str,
    imports: str,
    programs: List[dict],
    instructions: List[dict],
) -> str:
    body: List[str] = []
    emit = body.append
    if programs:
        program = programs[0]
        emit("// ProgramName is the name of the program these bindings target.")
        emit(f"const ProgramName = {go_string(program['name'])}")
        emit("")
        emit(f"// ProgramID is the address of the {pascal_case(program['name'])} program.")
        emit(f"var ProgramID = ag_solanago.MustPublicKeyFromBase58({go_string(program['publicKey'])})")
        emit("")
        emit("// SetProgramID overrides the program address used by the instruction builders.")
        emit("func SetProgramID(pubkey ag_solanago.PublicKey) {")
        emit("\tProgramID = pubkey")
        emit("}")
        emit("")
    if instructions:
        emit("// Names of the exported instructions.")
        emit("const (")
        for ix in instructions:
            emit(f"\tInstruction_{pascal_case(ix['name'])} = {go_string(ix['name'])}")
        emit(")")
    return _file(package_name, imports, body)

