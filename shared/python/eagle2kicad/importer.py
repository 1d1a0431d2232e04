"""
EAGLE schematic import.

EagleSchematicImporter converts a whole EAGLE ``.sch`` document: every
library is translated into one KiCad symbol library, every sheet into a
KiCad schematic, and units of multi-unit parts that no sheet draws are
added to the root sheet so their power pins still connect.

Usage:
    importer = EagleSchematicImporter(project_name="myboard")
    result = importer.load("myboard.sch")
    result.save("out/")
"""

import logging
import os
from collections import Counter
from pathlib import Path

from kiutils.items.schitems import HierarchicalSheetInstance
from kiutils.libraries import LibTable, Library
from kiutils.symbol import SymbolLib

from .common import (
    DEFAULT_PAPER, GENERATOR, LIB_SUFFIX, SHEET_PITCH, SYM_FILE_VERSION,
    paper_size_iu,
)
from .eagle import load_document, parse_document
from .report import Reporter
from .schematic import (
    ImportContext, SheetBuilder, missing_unit_symbol, sheet_naming,
    unit_extent,
)
from .strings import fix_illegal_chars
from .symbols import load_library

logger = logging.getLogger(__name__)

SYM_LIB_TABLE = "sym-lib-table"


def library_name(project_name, stem):
    """Nickname of the symbol library holding the imported symbols."""
    name = (project_name or stem or "noname") + LIB_SUFFIX
    return fix_illegal_chars(name, is_library=True)


def count_nets(document):
    """Number of sheets each net name appears on."""
    counts = Counter()
    for esheet in document.sheets:
        for enet in esheet.nets:
            counts[enet.name] += 1
    return dict(counts)


def sheet_block_positions(count):
    """Root-sheet positions of *count* sheet blocks, in IU."""
    x, y = 1, 1
    positions = []
    for _ in range(count):
        positions.append((x * SHEET_PITCH, y * SHEET_PITCH))
        x += 2
        if x > 10:
            x = 1
            y += 2
    return positions


def build_symbol_lib(libraries):
    """Collect every translated symbol into one SymbolLib."""
    symbol_lib = SymbolLib(version=SYM_FILE_VERSION, generator=GENERATOR)
    by_name = {}
    for library in libraries.values():
        by_name.update(library.symbols)
    symbol_lib.symbols = list(by_name.values())
    return symbol_lib


class ImportResult:
    """Schematics and symbol library produced by one import."""

    def __init__(self, root, sheets, library, lib_name, reporter):
        self.root = root
        self.sheets = sheets
        self.library = library
        self.lib_name = lib_name
        self.reporter = reporter

    def __repr__(self):
        return (f"ImportResult({self.root.filename!r}, sheets={len(self.sheets)}, "
                f"symbols={len(self.library.symbols)})")

    @property
    def markers(self):
        markers = list(self.root.markers)
        for sheet in self.sheets:
            markers.extend(sheet.markers)
        return markers

    @property
    def schematic(self):
        return self.root.schematic

    def save(self, directory):
        """
        Write the schematics, the symbol library and its sym-lib-table row.

        An existing sym-lib-table in *directory* is kept and only gains the
        row for the imported library.

        Returns:
            List of written file paths
        """
        os.makedirs(directory, exist_ok=True)
        written = []

        for sheet in [self.root] + list(self.sheets):
            path = os.path.join(directory, sheet.filename)
            sheet.schematic.to_file(path)
            written.append(path)

        lib_file = f"{self.lib_name}.kicad_sym"
        path = os.path.join(directory, lib_file)
        self.library.to_file(path)
        written.append(path)

        table_path = os.path.join(directory, SYM_LIB_TABLE)
        if os.path.exists(table_path):
            table = LibTable.from_file(table_path)
        else:
            table = LibTable.create_new(type="sym_lib_table")
        if not any(lib.name == self.lib_name for lib in table.libs):
            table.libs.append(Library(name=self.lib_name, type="KiCad",
                                      uri="${KIPRJMOD}/" + lib_file))
        table.to_file(table_path)
        written.append(table_path)

        logger.info("Wrote %d files to %s", len(written), directory)
        return written


class EagleSchematicImporter:
    """Converts EAGLE schematic documents to KiCad schematics."""

    def __init__(self, reporter=None, project_name=None, paper=DEFAULT_PAPER):
        paper_size_iu(paper)
        self.reporter = reporter if reporter is not None else Reporter()
        self.project_name = project_name
        self.paper = paper

    def load(self, path):
        """Import the EAGLE schematic at *path*."""
        logger.info("Importing %s", path)
        return self.convert(load_document(path), Path(path).stem)

    def load_string(self, text, filename="noname.sch"):
        """Import EAGLE XML held in a string."""
        return self.convert(parse_document(text), Path(filename).stem)

    def convert(self, document, stem):
        lib_name = library_name(self.project_name, stem)
        libraries = {name: load_library(elibrary, self.reporter)
                     for name, elibrary in document.libraries.items()}
        symbol_lib = build_symbol_lib(libraries)

        ctx = ImportContext(document=document, libraries=libraries,
                            lib_name=lib_name,
                            project_name=self.project_name or stem,
                            reporter=self.reporter,
                            net_counts=count_nets(document))

        root = SheetBuilder(ctx, name=stem, filename=f"{stem}.kicad_sch",
                            paper=self.paper)
        root.sch.sheetInstances = [HierarchicalSheetInstance(instancePath="/", page="1")]
        sheets = []
        root_result = None

        if len(document.sheets) > 1:
            positions = sheet_block_positions(len(document.sheets))
            for index, (esheet, position) in enumerate(zip(document.sheets, positions),
                                                       start=1):
                name, filename = sheet_naming(esheet.description, stem, index)
                block = root.add_sheet_block(position, name, filename, page=index + 1)
                child = SheetBuilder(ctx, name, filename, paper=self.paper)
                child.instance_path = f"{root.instance_path}/{block.uuid}"
                sheets.append(child.load_sheet(esheet))
        else:
            for esheet in document.sheets:
                root_result = root.load_sheet(esheet)

        added = self.add_missing_units(root, ctx)
        if added:
            logger.info("Added %d missing units to the root sheet", added)

        if root_result is None:
            root_result = root.result()

        logger.info("Imported %d sheets, %d symbols into '%s'",
                    len(document.sheets), len(symbol_lib.symbols), lib_name)
        return ImportResult(root_result, sheets, symbol_lib, lib_name, self.reporter)

    def add_missing_units(self, root, ctx):
        """
        Tile units no sheet draws onto the root sheet.

        Units are placed in rows from the bottom-left of the root content,
        starting a new row once the page width is reached.

        Returns:
            Number of units added
        """
        bbox = root.bounding_box()
        page_width = root.page_size[0]
        left = bbox.left or 0
        x, y = left, bbox.bottom or 0
        max_y = bbox.top or 0
        added = 0

        for record in ctx.missing_units.values():
            for unit in record.missing:
                extent = unit_extent(record.lib_symbol, unit)
                pos_y = y + extent.height
                sym = missing_unit_symbol(record, unit, root.instance_path,
                                          ctx.project_name, (x, pos_y))
                root.ensure_lib_symbol(record.name, record.lib_symbol)
                root.sch.schematicSymbols.append(sym)
                root.add_implicit_connections(sym, record.lib_symbol, update_set=False)
                added += 1

                x += extent.width
                max_y = max(max_y, pos_y)
                if x >= page_width:
                    x, y = left, max_y

        ctx.missing_units.clear()
        return added
