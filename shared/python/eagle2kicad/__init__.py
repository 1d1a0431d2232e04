"""
EAGLE schematic import for KiCad.

This package converts EAGLE XML schematics (.sch) into KiCad schematics
and a KiCad symbol library, using kiutils for the KiCad object model.
"""

__version__ = "0.1.0"

from .importer import EagleSchematicImporter, ImportResult
from .schematic import Marker, SheetBuilder, SheetResult
from .symbols import EagleLibrary, load_library
from .errors import EagleImportError, MissingSymbolError
from .report import Reporter, INFO, WARNING, ERROR
from .common import uid, GRID, IU_PER_MM, to_iu, to_mm
