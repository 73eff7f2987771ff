"""Codama IDL -> Go bindings generator."""

from .errors import (
    GenNote,
    GoGenError,
    LinkResolutionError,
    MissingNameError,
    RenderMapConflictError,
    UnsupportedNodeError,
    UnsupportedValueError,
)
from .import_map import ImportMap
from .options import RenderOptions, load_options
from .render_map import Fragment, create_render_map, merge_render_maps
from .render_map_visitor import get_render_map
from .type_manifest import TypeContext, TypeManifest, get_type_manifest
from .values import ValueManifest, render_value_node
from .writer import render_visitor, write_render_map

__all__ = [
    "Fragment",
    "GenNote",
    "GoGenError",
    "ImportMap",
    "LinkResolutionError",
    "MissingNameError",
    "RenderMapConflictError",
    "RenderOptions",
    "TypeContext",
    "TypeManifest",
    "UnsupportedNodeError",
    "UnsupportedValueError",
    "ValueManifest",
    "create_render_map",
    "get_render_map",
    "get_type_manifest",
    "load_options",
    "merge_render_maps",
    "render_value_node",
    "render_visitor",
    "write_render_map",
]
