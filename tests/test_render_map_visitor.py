import copy
import json
import logging
from pathlib import Path

import pytest

from goidlc.errors import LinkResolutionError, RenderMapConflictError
from goidlc.options import RenderOptions
from goidlc.pages import GENERATED_HEADER
from goidlc.render_map_visitor import RenderContext, get_render_map

REPO_ROOT = Path(__file__).resolve().parents[1]
PUMP = json.loads((REPO_ROOT / "tests" / "idls" / "pump.json").read_text(encoding="utf-8"))

def pump():
    return copy.deepcopy(PUMP)

def num(fmt):
    return {"kind": "numberTypeNode", "format": fmt, "endian": "le"}

def program(name, **parts):
    return {
        "kind": "programNode", "name": name, "publicKey": "11111111111111111111111111111111",
        "accounts": [], "instructions": [], "definedTypes": [], "pdas": [], "errors": [], **parts,
    }

def root(main, *additional):
    return {"kind": "rootNode", "program": main, "additionalPrograms": list(additional)}

def instruction(name, **parts):
    return {"kind": "instructionNode", "name": name, "accounts": [], "arguments": [], **parts}

@pytest.fixture(scope="module")
def files():
    return {path: fragment.content for path, fragment in get_render_map(pump()).items()}

def test_paths(files):
    assert set(files) == {
        "instructions.go",
        "account_bonding_curve.go",
        "type_trade_direction.go",
        "type_fee_config.go",
        "instruction_buy.go",
        "errors.go",
    }

def test_every_file_is_a_go_file_of_the_program_package(files):
    for content in files.values():
        assert content.startswith(GENERATED_HEADER + "\n\npackage pump\n")
        assert content.endswith("}\n") or content.endswith(")\n")

def test_root_index(files):
    index = files["instructions.go"]
    assert 'var ProgramID = ag_solanago.MustPublicKeyFromBase58("6EF8rrecthR5Dkzon8Nwu78hRvfCKubJ14M5uBEwF6P")' in index
    assert 'const ProgramName = "pump"' in index
    assert '\tInstruction_Buy = "buy"' in index
    assert "func SetProgramID(pubkey ag_solanago.PublicKey) {" in index

def test_defined_types(files):
    assert "type TradeDirection uint8\n\nconst (\n\tTradeDirection_Buy TradeDirection = iota" in files["type_trade_direction.go"]
    fee = files["type_fee_config.go"]
    assert "// Fee settings.\ntype FeeConfig struct {\n\tBps uint16\n\tRecipient ag_solanago.PublicKey\n}" in fee
    assert 'ag_solanago "github.com/gagliardetto/solana-go"' in fee
    assert "import" not in files["type_trade_direction.go"]

def test_account_page(files):
    account = files["account_bonding_curve.go"]
    assert "var BondingCurveDiscriminator = [8]byte{23, 183, 248, 55, 96, 216, 172, 96}" in account
    assert "// State of a token bonding curve.\ntype BondingCurve struct {" in account
    assert '\tCreator *ag_solanago.PublicKey `bin:"optional"`' in account
    assert "func (obj BondingCurve) MarshalWithEncoder(encoder *ag_binary.Encoder) (err error) {" in account
    assert "if err = encoder.WriteBytes(BondingCurveDiscriminator[:], false); err != nil {" in account
    assert "func (obj *BondingCurve) UnmarshalWithDecoder(decoder *ag_binary.Decoder) (err error) {" in account
    assert "obj.Creator = new(ag_solanago.PublicKey)" in account
    for imp in ('\t"bytes"', '\t"fmt"', 'ag_binary "github.com/gagliardetto/binary"'):
        assert imp in account

def test_account_pda_function(files):
    account = files["account_bonding_curve.go"]
    assert "func FindBondingCurveAddress(mint ag_solanago.PublicKey) (ag_solanago.PublicKey, uint8, error) {" in account
    assert '\tseeds = append(seeds, []byte("bonding-curve"))' in account
    assert "\tseeds = append(seeds, mint.Bytes())" in account
    assert "\treturn ag_solanago.FindProgramAddress(seeds, ProgramID)" in account
    assert "// mint: Mint of the traded token." in account

def test_instruction_page(files):
    ix = files["instruction_buy.go"]
    assert "var BuyDiscriminator [8]uint8 = [8]byte{102, 6, 61, 18, 1, 218, 235, 234}" in ix
    assert "type BuyInstructionData struct {" in ix
    assert "\tDiscriminator [8]uint8 // default: 0x66063d1201daebea" in ix
    assert "// Buys tokens from a bonding curve.\ntype Buy struct {" in ix
    assert "\t// [1] = [WRITE, SIGNER] user" in ix
    assert "\t// [3] = [WRITE, OPTIONAL] referrer" in ix
    assert "func NewBuyInstructionBuilder() *Buy {" in ix
    assert "\tnd.Direction = TradeDirection_Buy" in ix
    assert "\tinst.AccountMetaSlice[1] = ag_solanago.Meta(user).WRITE().SIGNER()" in ix
    assert "func (inst *Buy) GetReferrerAccount() *ag_solanago.AccountMeta {" in ix
    assert '\t\treturn fmt.Errorf("accounts.Global is not set")' in ix
    assert "accounts.Referrer is not set" not in ix
    assert "\t\tDiscriminator: [8]byte{102, 6, 61, 18, 1, 218, 235, 234}," in ix
    assert "\t\tMaxSolCost: inst.MaxSolCost," in ix
    assert "return ag_solanago.NewInstruction(ProgramID, inst.AccountMetaSlice, data), nil" in ix
    # omitted-default arguments are not exposed on the builder
    assert "SetDiscriminator" not in ix

def test_conflicting_argument_is_suffixed_on_the_builder_only(caplog):
    with caplog.at_level(logging.WARNING, logger="goidlc.render_map_visitor"):
        ix = get_render_map(pump())["instruction_buy.go"].content
    assert "conflicting attributes [authority]" in caplog.text
    assert 'suffixed with "Arg"' in caplog.text
    assert "\tAuthorityArg ag_solanago.PublicKey" in ix
    assert "\tAuthority ag_solanago.PublicKey" in ix
    assert "\t\tAuthority: inst.AuthorityArg," in ix
    assert "func (inst *Buy) SetAuthorityArg(authorityArg ag_solanago.PublicKey) *Buy {" in ix
    assert "func (inst *Buy) SetAuthorityAccount(authority ag_solanago.PublicKey) *Buy {" in ix

def test_errors_page(files):
    errors = files["errors.go"]
    assert 'ErrNotAuthorized = &CustomError{Code: 6000, Name: "NotAuthorized", Msg: "The given account is not authorized"}' in errors
    assert "\t6000: ErrNotAuthorized," in errors
    assert '\t"fmt"' in errors

def test_no_errors_page_without_errors():
    files = get_render_map(root(program("empty")))
    assert set(files) == {"instructions.go"}

def test_leaf_instructions_only_by_default():
    parent = instruction("swap", subInstructions=[instruction("swapExactIn"), instruction("swapExactOut")])
    r = root(program("amm", instructions=[parent]))
    assert set(get_render_map(r)) == {
        "instructions.go", "instruction_swap_exact_in.go", "instruction_swap_exact_out.go",
    }
    with_parents = get_render_map(r, RenderOptions(render_parent_instructions=True))
    assert "instruction_swap.go" in with_parents
    assert '\tInstruction_Swap = "swap"' in with_parents["instructions.go"].content

def test_instruction_without_accounts_does_not_import_fmt():
    ix = get_render_map(root(program("amm", instructions=[instruction("ping")])))["instruction_ping.go"].content
    assert '"fmt"' not in ix
    assert "type PingInstructionData struct{}" in ix
    assert "\treturn NewPingInstructionBuilder()\n}" in ix

def test_struct_argument_is_declared_once():
    params = {"kind": "structTypeNode", "fields": [
        {"kind": "structFieldTypeNode", "name": "minOut", "type": num("u64"), "docs": []},
    ]}
    ix = instruction("swap", arguments=[
        {"kind": "instructionArgumentNode", "name": "params", "type": params, "docs": []},
    ])
    content = get_render_map(root(program("amm", instructions=[ix])))["instruction_swap.go"].content
    assert content.count("type SwapInstructionDataParams struct {") == 1
    assert "\tParams SwapInstructionDataParams" in content

def test_same_path_from_two_programs_conflicts():
    a = program("amm", instructions=[instruction("swap")])
    b = program("amm", instructions=[instruction("swap")], publicKey="22222222222222222222222222222222")
    with pytest.raises(RenderMapConflictError):
        get_render_map(root(a, b))

def test_unknown_pda_link():
    r = pump()
    r["program"]["pdas"] = []
    with pytest.raises(LinkResolutionError):
        get_render_map(r)

def test_pda_link_to_another_program():
    seeds = [{"kind": "constantPdaSeedNode", "type": num("u8"), "value": {"kind": "numberValueNode", "number": 1}}]
    other = program("registry", pdas=[{"kind": "pdaNode", "name": "entry", "seeds": seeds}])
    account = {
        "kind": "accountNode", "name": "entry",
        "data": {"kind": "structTypeNode", "fields": []},
        "pda": {"kind": "pdaLinkNode", "name": "entry", "program": {"kind": "programLinkNode", "name": "registry"}},
    }
    files = get_render_map(root(program("app", accounts=[account]), other))
    content = files["account_entry.go"].content
    assert "\tseeds = append(seeds, []byte{byte(1)})" in content
    assert "func FindEntryAddress() (ag_solanago.PublicKey, uint8, error) {" in content

def test_encoded_string_seed_is_decoded_before_hashing():
    seeds = [{
        "kind": "constantPdaSeedNode",
        "type": {"kind": "stringTypeNode", "encoding": "base16"},
        "value": {"kind": "stringValueNode", "string": "0102"},
    }]
    account = {
        "kind": "accountNode", "name": "entry",
        "data": {"kind": "structTypeNode", "fields": []},
        "pda": {"kind": "pdaLinkNode", "name": "entry"},
    }
    app = program("app", accounts=[account], pdas=[{"kind": "pdaNode", "name": "entry", "seeds": seeds}])
    content = get_render_map(root(app))["account_entry.go"].content
    assert "\tseeds = append(seeds, []byte{1, 2})" in content
    assert '"0102"' not in content

def test_error_messages_keep_non_bmp_characters():
    err = {"kind": "errorNode", "name": "tooFast", "code": 6001, "message": "Slow down 🚀", "docs": []}
    errors = get_render_map(root(program("app", errors=[err])))["errors.go"].content
    assert 'Msg: "Slow down 🚀"}' in errors
    assert "\\ud83d" not in errors

def test_dependency_map_moves_types_out_of_the_package():
    deps = {"generatedTypes": "github.com/acme/pump/types"}
    ix = get_render_map(pump(), RenderOptions(dependency_map=deps))["instruction_buy.go"].content
    assert "\tDirection types.TradeDirection" in ix
    assert '\t"github.com/acme/pump/types"' in ix
    assert "\tnd.Direction = types.TradeDirection_Buy" in ix

def test_default_package_name():
    assert RenderContext(options=RenderOptions()).package_name == "generated"

def test_rendering_is_deterministic():
    assert get_render_map(pump()) == get_render_map(pump())
