from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import replace

import jsonschema

from .errors import GoGenError
from .options import load_options
from .schema import load_root
from .writer import render_visitor


def _parse_dependency(item: str):
    key, sep, path = item.partition("=")
    if not sep or not key:
        raise argparse.ArgumentTypeError(f"expected KEY=PATH, got {item!r}")
    return key, path


def main(argv: list[str] | None = None) -> int:
    p = argparse.ArgumentParser(prog="goidlc", description="Generate Go bindings from a Codama IDL.")
    p.add_argument("idl", help="Codama JSON file (rootNode)")
    p.add_argument("--out", dest="out_dir", required=True, help="Output folder for the Go package")
    p.add_argument("--config", default=None, help="JSON file with render options (camelCase keys)")
    p.add_argument("--render-parent-instructions", action="store_true", help="Also render instructions that have sub-instructions")
    p.add_argument("--no-format", action="store_true", help="Do not run gofmt on the output")
    p.add_argument("--keep-folder", action="store_true", help="Do not delete the output folder before writing")
    p.add_argument("--dependency", action="append", default=[], type=_parse_dependency, metavar="KEY=PATH",
                   help="Map an internal import key to a Go import path (repeatable)")
    p.add_argument("-v", "--verbose", action="store_true", help="Log progress")
    args = p.parse_args(argv)

    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        options = load_options(args.config)
        options = replace(
            options,
            dependency_map={**options.dependency_map, **dict(args.dependency)},
            render_parent_instructions=options.render_parent_instructions or args.render_parent_instructions,
            format_code=options.format_code and not args.no_format,
            delete_folder_before_rendering=options.delete_folder_before_rendering and not args.keep_folder,
        )
        root = load_root(args.idl)
        written = render_visitor(root, args.out_dir, options)
        print(f"OK. files={written} out={args.out_dir}")
        return 0
    except (GoGenError, jsonschema.ValidationError, ValueError, OSError) as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    raise SystemExit(main())
