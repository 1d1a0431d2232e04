#!/usr/bin/env python3
"""
Convert an EAGLE schematic to a KiCad schematic.

Writes the root .kicad_sch, one file per additional EAGLE sheet, the
imported symbol library (<project>-eagle-import.kicad_sym) and a
sym-lib-table referencing it.

Usage:
    eagle2kicad board.sch                     # Convert into the current directory
    eagle2kicad board.sch -o out/             # Convert into out/
    eagle2kicad board.sch --paper A3          # Start from an A3 page
    eagle2kicad board.sch --check             # Only check the file header
"""

import argparse
import logging
import sys

from .common import DEFAULT_PAPER, PAPER_SIZES
from .eagle import check_header
from .errors import EagleImportError
from .importer import EagleSchematicImporter
from .report import ERROR, WARNING


def build_parser():
    parser = argparse.ArgumentParser(
        prog="eagle2kicad",
        description="Convert an EAGLE schematic (.sch) to a KiCad schematic")
    parser.add_argument("input", help="EAGLE schematic file")
    parser.add_argument("-o", "--output-dir", default=".",
                        help="Directory for the KiCad files (default: .)")
    parser.add_argument("--project-name", default=None,
                        help="Project name used for the symbol library "
                             "(default: input file name)")
    parser.add_argument("--paper", default=DEFAULT_PAPER,
                        choices=sorted(PAPER_SIZES.keys()),
                        help=f"Initial page size (default: {DEFAULT_PAPER})")
    parser.add_argument("-v", "--verbose", action="store_true",
                        help="Log progress and informational messages")
    parser.add_argument("--check", action="store_true",
                        help="Only check that the input looks like an EAGLE file")
    return parser


def main(argv=None):
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=logging.INFO if args.verbose else logging.WARNING,
                        format="%(levelname)s %(name)s: %(message)s")

    if args.check:
        if check_header(args.input):
            print(f"  {args.input}: EAGLE schematic")
            return 0
        print(f"  {args.input}: not an EAGLE XML file")
        return 1

    importer = EagleSchematicImporter(project_name=args.project_name,
                                      paper=args.paper)
    try:
        result = importer.load(args.input)
    except EagleImportError as e:
        print(f"  ERROR: {e}")
        return 1

    written = result.save(args.output_dir)

    errors = result.reporter.messages(ERROR)
    warnings = result.reporter.messages(WARNING)
    for message in errors:
        print(f"  ERROR: {message}")
    for marker in result.markers:
        print(f"  MARKER: {marker.message} at {marker.position} on '{marker.sheet}'")

    print(f"\n  Wrote {len(written)} files "
          f"({len(errors)} errors, {len(warnings)} warnings)")
    for path in written:
        print(f"    {path}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
