from __future__ import annotations
import json
from pathlib import Path
from typing import Any, Dict, Union

import jsonschema

SCHEMA_PATH = Path(__file__).with_name("codama_root.schema.json")

def load_schema() -> Dict[str, Any]:
    return json.loads(SCHEMA_PATH.read_text(encoding="utf-8"))

def validate_root(root: Dict[str, Any]) -> None:
    """Raise jsonschema.ValidationError when the outer shape is wrong."""
    jsonschema.validate(instance=root, schema=load_schema())

def load_root(path: Union[str, Path]) -> Dict[str, Any]:
    root = json.loads(Path(path).read_text(encoding="utf-8"))
    validate_root(root)
    return root
