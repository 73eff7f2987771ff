import json
from pathlib import Path

import pytest

from goidlc.options import RenderOptions, load_options, options_from_dict

def test_defaults():
    o = load_options(None)
    assert o == RenderOptions()
    assert o.delete_folder_before_rendering and o.format_code
    assert not o.render_parent_instructions

def test_camel_case_keys(tmp_path: Path):
    path = tmp_path / "goidlc.json"
    path.write_text(json.dumps({
        "dependencyMap": {"hooked": "github.com/acme/hooked"},
        "linkOverrides": {"definedTypes": {"custom": "hooked"}},
        "renderParentInstructions": True,
        "formatCode": False,
    }), encoding="utf-8")
    o = load_options(path)
    assert o.dependency_map == {"hooked": "github.com/acme/hooked"}
    assert o.link_overrides == {"definedTypes": {"custom": "hooked"}}
    assert o.render_parent_instructions
    assert not o.format_code

@pytest.mark.parametrize("data", [
    {"dependencymap": {}},
    {"linkOverrides": {"events": {}}},
])
def test_unknown_keys_are_rejected(data):
    with pytest.raises(ValueError):
        options_from_dict(data)
