from __future__ import annotations
import json
import re
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

from .import_map import GO_PACKAGE_ALIASES, ImportMap

_re_upper = re.compile(r"([A-Z])")
_re_split = re.compile(r"[-_\s+.]")

def _capitalize(word: str) -> str:
    if not word:
        return word
    return word[0].upper() + word[1:].lower()

def title_case(s: str) -> str:
    words = _re_split.split(_re_upper.sub(r" \1", s))
    return " ".join(_capitalize(w) for w in words if w)

def pascal_case(s: str) -> str:
    return "".join(title_case(s).split(" "))

def camel_case(s: str) -> str:
    p = pascal_case(s)
    return p[:1].lower() + p[1:]

def snake_case(s: str) -> str:
    return "_".join(title_case(s).split(" ")).lower()

GO_KEYWORDS = frozenset({
    "break", "case", "chan", "const", "continue", "default", "defer", "else",
    "fallthrough", "for", "func", "go", "goto", "if", "import", "interface",
    "map", "package", "range", "return", "select", "struct", "switch", "type", "var",
})

def go_param_name(s: str) -> str:
    name = camel_case(s)
    return name + "_" if name in GO_KEYWORDS else name


def go_string(s: str) -> str:
    # Go rejects \uD800-\uDFFF escapes, so non-ASCII stays raw UTF-8.
    return json.dumps(s, ensure_ascii=False)

def parse_docs(docs: Any) -> List[str]:
    if not docs:
        return []
    if isinstance(docs, str):
        docs = [docs]
    return [d.strip() for d in docs]

def go_doc_comment(docs: List[str], indent: str="") -> str:
    if not docs:
        return ""
    return "".join(f"{indent}// {d}".rstrip() + "\n" for d in docs)

# --- links -----------------------------------------------------------------

GetImportFrom = Callable[[Dict[str, Any]], str]

_LINK_DEFAULTS: Dict[str, Tuple[str, str]] = {
    "accountLinkNode": ("accounts", "generatedAccounts"),
    "definedTypeLinkNode": ("definedTypes", "generatedTypes"),
    "instructionLinkNode": ("instructions", "generatedInstructions"),
    "pdaLinkNode": ("pdas", "generatedAccounts"),
    "programLinkNode": ("programs", "generatedPrograms"),
    "resolverValueNode": ("resolvers", "hooked"),
}

def get_import_from_factory(link_overrides: Optional[Mapping[str, Mapping[str, str]]]=None) -> GetImportFrom:
    overrides = link_overrides or {}

    def get_import_from(node: Dict[str, Any]) -> str:
        k = node["kind"]
        if k not in _LINK_DEFAULTS:
            raise ValueError(f"Cannot get import from node kind: {k}")
        group, default = _LINK_DEFAULTS[k]
        return (overrides.get(group) or {}).get(node["name"], default)

    return get_import_from

def go_package_name(path: str) -> str:
    alias = GO_PACKAGE_ALIASES.get(path)
    if alias:
        return alias
    return path.rstrip("/").split("/")[-1].replace("-", "_").replace(".", "_")

def link_reference(
    name: str,
    import_from: str,
    dependency_map: Mapping[str, str],
) -> Tuple[str, ImportMap]:
    """Go syntax for a named symbol living under `import_from`.

    Same-package keys give a bare name with no import; anything else is
    qualified by the package name of the resolved path.
    """
    if import_from in dependency_map:
        path = dependency_map[import_from]
        if path == "":
            return name, ImportMap()
        return f"{go_package_name(path)}.{name}", ImportMap().add(f"{import_from}::{name}")
    return f"{go_package_name(import_from)}.{name}", ImportMap().add(import_from)
