"""Go import bookkeeping for generated files.

Identifiers are opaque strings. Two shapes exist:
  - a real Go package path, e.g. "github.com/gagliardetto/binary" or "fmt"
  - an internal reference "<key>::<Symbol>" (e.g. "generatedTypes::Foo") that
    points at code produced by this same run; it must go through
    resolve_dependency_map() before it can be printed as an import.
"""

from __future__ import annotations
from typing import Dict, Iterable, List, Mapping, Optional, Set, Union

# Internal keys for code generated into the same Go package. An empty value
# means "same package, no import needed".
DEFAULT_MODULE_MAP: Dict[str, str] = {
    "generated": "",
    "generatedAccounts": "",
    "generatedErrors": "",
    "generatedInstructions": "",
    "generatedPrograms": "",
    "generatedTypes": "",
    "hooked": "",
}

GO_PACKAGE_ALIASES: Dict[str, str] = {
    "github.com/gagliardetto/binary": "ag_binary",
    "github.com/gagliardetto/solana-go": "ag_solanago",
    "github.com/gagliardetto/solana-go/rpc": "ag_rpc",
    "github.com/gagliardetto/treeout": "ag_treeout",
}

BINARY = "github.com/gagliardetto/binary"
SOLANA = "github.com/gagliardetto/solana-go"

Imports = Union[str, Iterable[str]]

def _as_list(imports: Imports) -> List[str]:
    if isinstance(imports, str):
        return [imports]
    return list(imports)

def merged_dependency_map(dependencies: Optional[Mapping[str, str]]) -> Dict[str, str]:
    return {**DEFAULT_MODULE_MAP, **(dependencies or {})}

def resolve_identifier(identifier: str, dependency_map: Mapping[str, str]) -> str:
    """Resolve one identifier. Returns "" when no import is needed."""
    for key, value in dependency_map.items():
        if identifier.startswith(f"{key}::"):
            return value
    return identifier

def is_std_import(path: str) -> bool:
    # Standard library packages have no dot in their first path segment.
    return "." not in path.split("/")[0]

class ImportMap:
    def __init__(self, imports: Optional[Imports]=None):
        self._imports: Set[str] = set()
        self._aliases: Dict[str, str] = {}
        if imports is not None:
            self.add(imports)

    @property
    def imports(self) -> Set[str]:
        return self._imports

    @property
    def aliases(self) -> Dict[str, str]:
        return self._aliases

    def add(self, imports: Imports) -> "ImportMap":
        self._imports.update(_as_list(imports))
        return self

    def remove(self, imports: Imports) -> "ImportMap":
        for i in _as_list(imports):
            self._imports.discard(i)
        return self

    def merge_with(self, *others: "ImportMap") -> "ImportMap":
        for other in others:
            self.add(other._imports)
            for import_name, alias in other._aliases.items():
                # first alias wins when merging
                self._aliases.setdefault(import_name, alias)
        return self

    def merge_with_manifest(self, manifest) -> "ImportMap":
        return self.merge_with(manifest.imports)

    def add_alias(self, import_name: str, alias: str) -> "ImportMap":
        self._aliases[import_name] = alias
        return self

    def is_empty(self) -> bool:
        return not self._imports

    def copy(self) -> "ImportMap":
        return ImportMap().merge_with(self)

    def resolve_dependency_map(self, dependencies: Optional[Mapping[str, str]]=None) -> "ImportMap":
        dependency_map = merged_dependency_map(dependencies)
        resolved = ImportMap()
        for i in self._imports:
            r = resolve_identifier(i, dependency_map)
            if r:
                resolved.add(r)
        for i, alias in self._aliases.items():
            r = resolve_identifier(i, dependency_map)
            if r:
                resolved._aliases.setdefault(r, alias)
        return resolved

    def to_string(self, dependencies: Optional[Mapping[str, str]]=None) -> str:
        resolved = self.resolve_dependency_map(dependencies)
        if resolved.is_empty():
            return ""

        std_imports: List[str] = []
        ext_imports: List[str] = []
        for imp in sorted(resolved.imports):
            alias = resolved.aliases.get(imp) or GO_PACKAGE_ALIASES.get(imp)
            line = f'\t{alias} "{imp}"' if alias else f'\t"{imp}"'
            if is_std_import(imp):
                std_imports.append(line)
            else:
                ext_imports.append(line)

        groups = ["\n".join(g) for g in (std_imports, ext_imports) if g]
        return "import (\n" + "\n\n".join(groups) + "\n)"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ImportMap):
            return NotImplemented
        return self._imports == other._imports and self._aliases == other._aliases

    def __repr__(self) -> str:
        return f"ImportMap({sorted(self._imports)!r}, aliases={self._aliases!r})"
