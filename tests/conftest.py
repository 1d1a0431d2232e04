import pytest

from eagle2kicad.eagle import EDocument
from eagle2kicad.importer import EagleSchematicImporter
from eagle2kicad.report import Reporter
from eagle2kicad.schematic import ImportContext, SheetBuilder


@pytest.fixture
def reporter():
    return Reporter()


@pytest.fixture
def importer(reporter):
    return EagleSchematicImporter(reporter=reporter)


@pytest.fixture
def sheet(reporter):
    """An empty sheet with no document behind it."""
    ctx = ImportContext(document=EDocument(), libraries={}, lib_name="test-eagle-import",
                        project_name="test", reporter=reporter)
    return SheetBuilder(ctx, name="test", filename="test.kicad_sch")
