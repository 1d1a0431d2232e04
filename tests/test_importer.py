import pytest
from kiutils.items.schitems import PolyLine
from kiutils.libraries import LibTable

from eagle2kicad.common import GENERATOR, GRID, SHEET_PITCH, SYM_FILE_VERSION, iu_point
from eagle2kicad.eagle import parse_document
from eagle2kicad.geometry import lib_to_sheet
from eagle2kicad.importer import (
    EagleSchematicImporter, count_nets, library_name, sheet_block_positions,
)
from eagle2kicad.report import ERROR, Reporter
from eagle2kicad.schematic import sheet_naming
from eagle2kicad.symbols import get_field, pin_positions

from eagle_xml import (
    LOGIC_LIBRARY, RESISTOR_LIBRARY, SUPPLY_LIBRARY, bus, document, instance,
    label, net, part, segment, sheet, text, wire,
)


def resistor_doc(rot=None, nets=(), plain=()):
    return document(
        libraries=[RESISTOR_LIBRARY],
        parts=[part("R1", "rcl", "R", value="10k")],
        sheets=[sheet(instances=[instance("R1", "G$1", 10.16, 20.32, rot=rot)],
                      nets=nets, plain=plain)],
    )


def connections(sch):
    return [item for item in sch.graphicalItems if not isinstance(item, PolyLine)]


def lib_symbols(sch):
    return {s.entryName: s for s in sch.libSymbols}


def sheet_pins(sch, sym):
    lib_symbol = lib_symbols(sch)[sym.entryName]
    position = iu_point(sym.position)
    return {pin.name: lib_to_sheet(point, position, sym.position.angle or 0, sym.mirror)
            for pin, point in pin_positions(lib_symbol, sym.unit)}


def test_library_name():
    assert library_name(None, "demo") == "demo-eagle-import"
    assert library_name("my board", "demo") == "my_board-eagle-import"
    assert library_name(None, "") == "noname-eagle-import"


def test_sheet_block_positions_wrap():
    positions = sheet_block_positions(6)
    assert [(x // SHEET_PITCH, y // SHEET_PITCH) for x, y in positions] == [
        (1, 1), (3, 1), (5, 1), (7, 1), (9, 1), (1, 3)]


def test_sheet_naming():
    assert sheet_naming(None, "demo", 2) == ("demo_2", "demo_2.kicad_sch")
    assert sheet_naming("Power\nSupply", "demo", 1) == ("Power_Supply", "Power_Supply.kicad_sch")
    assert sheet_naming("a/b c", "demo", 1) == ("a/b c", "a_b_c.kicad_sch")


def test_count_nets():
    doc = parse_document(document(sheets=[
        sheet(nets=[net("VCC"), net("A")]),
        sheet(nets=[net("VCC")]),
    ]))
    assert count_nets(doc) == {"VCC": 2, "A": 1}


def test_unknown_paper():
    with pytest.raises(ValueError):
        EagleSchematicImporter(paper="Z9")


def test_resistor_import(importer):
    result = importer.load_string(resistor_doc(
        nets=[net("N1", segment(wire(5.08, 20.32, 0, 20.32)))]), "demo.sch")

    assert result.lib_name == "demo-eagle-import"
    assert result.root.filename == "demo.kicad_sch"
    assert [s.entryName for s in result.library.symbols] == ["R"]

    sch = result.schematic
    (sym,) = sch.schematicSymbols
    assert sym.libraryNickname == "demo-eagle-import"
    assert sym.entryName == "R"
    assert sym.unit == 1
    assert get_field(sym, "Reference").value == "R1"
    assert get_field(sym, "Value").value == "10k"
    assert get_field(sym, "Footprint").value == "R0603"
    (path,) = sym.instances[0].paths
    assert path.reference == "R1"
    assert path.sheetInstancePath == f"/{sch.uuid}"
    assert set(sym.pins) == {"1", "2"}

    # recentring moves by whole grid steps
    x, y = iu_point(sym.position)
    assert x % GRID == 0 and y % GRID == 0

    (conn,) = connections(sch)
    assert iu_point(conn.points[0]) == sheet_pins(sch, sym)["1"]
    assert sch.paper.paperSize == "A4"
    assert not result.reporter.has_errors()


def test_rotated_instance(importer):
    result = importer.load_string(resistor_doc(
        rot="R90", nets=[net("N1", segment(wire(10.16, 15.24, 10.16, 10.16)))]), "demo.sch")
    sch = result.schematic
    (sym,) = sch.schematicSymbols
    assert sym.position.angle == 90
    x, y = iu_point(sym.position)
    assert sheet_pins(sch, sym)["1"] == (x, y + 50800)
    (conn,) = connections(sch)
    assert iu_point(conn.points[0]) == (x, y + 50800)


def test_mirrored_instance(importer):
    result = importer.load_string(resistor_doc(
        rot="MR0", nets=[net("N1", segment(wire(15.24, 20.32, 20.32, 20.32)))]), "demo.sch")
    sch = result.schematic
    (sym,) = sch.schematicSymbols
    assert sym.mirror == "y"
    x, y = iu_point(sym.position)
    (conn,) = connections(sch)
    assert iu_point(conn.points[0]) == (x + 50800, y) == sheet_pins(sch, sym)["1"]


def test_page_grows_to_fit(importer):
    result = importer.load_string(resistor_doc(
        nets=[net("N1", segment(wire(0, 0, 400, 0)))]), "demo.sch")
    paper = result.schematic.paper
    assert paper.paperSize == "User"
    assert paper.width == pytest.approx(438.0992)
    assert paper.height == 210.0


def test_labels_across_sheets(importer):
    first = sheet(nets=[
        net("VCC", segment(wire(0, 0, 10.16, 0), label(2.54, 0))),
        net("LOCAL", segment(wire(0, 5.08, 10.16, 5.08)),
            segment(wire(0, 10.16, 10.16, 10.16))),
        net("SOLO", segment(wire(0, 15.24, 10.16, 15.24))),
    ])
    second = sheet(nets=[net("VCC", segment(wire(0, 0, 5.08, 0)))])
    result = importer.load_string(document(sheets=[first, second]), "demo.sch")

    assert [s.name for s in result.sheets] == ["demo_1", "demo_2"]
    assert [s.filename for s in result.sheets] == ["demo_1.kicad_sch", "demo_2.kicad_sch"]

    sch1 = result.sheets[0].schematic
    (vcc,) = sch1.globalLabels
    assert vcc.text == "VCC"
    assert vcc.effects.font.height == 1.3335
    assert [lb.text for lb in sch1.labels] == ["LOCAL", "LOCAL"]
    starts = {iu_point(c.points[0]) for c in connections(sch1)}
    assert {iu_point(lb.position) for lb in sch1.labels} <= starts

    sch2 = result.sheets[1].schematic
    (synth,) = sch2.globalLabels
    assert synth.text == "VCC"
    assert synth.effects.font.height == 1.016
    assert iu_point(synth.position) == iu_point(connections(sch2)[0].points[0])
    assert sch2.labels == []

    blocks = result.schematic.sheets
    assert [(b.position.X, b.position.Y) for b in blocks] == [(25.4, 25.4), (76.2, 25.4)]
    assert [b.sheetName.value for b in blocks] == ["demo_1", "demo_2"]
    assert [b.fileName.value for b in blocks] == ["demo_1.kicad_sch", "demo_2.kicad_sch"]
    assert [b.instances[0].paths[0].page for b in blocks] == ["2", "3"]
    root_path = f"/{result.schematic.uuid}"
    for block in blocks:
        assert block.instances[0].paths[0].sheetInstancePath == root_path


def test_sheet_description_names_the_sheet(importer):
    result = importer.load_string(document(sheets=[
        sheet(description="Power"), sheet(description="Logic"),
    ]), "demo.sch")
    assert [s.filename for s in result.sheets] == ["Power.kicad_sch", "Logic.kicad_sch"]


def logic_doc(*sheets, deviceset="74*00", name="IC1"):
    return document(libraries=[LOGIC_LIBRARY],
                    parts=[part(name, "74xx", deviceset, device="N")],
                    sheets=list(sheets))


def test_missing_units_are_added_to_root(importer):
    result = importer.load_string(
        logic_doc(sheet(instances=[instance("IC1", "A", 0, 0)])), "demo.sch")
    symbols = result.schematic.schematicSymbols
    assert sorted(s.unit for s in symbols) == [1, 2, 3]
    assert {s.entryName for s in symbols} == {"7400N"}
    assert {get_field(s, "Reference").value for s in symbols} == {"IC1"}
    assert {s.instances[0].paths[0].unit for s in symbols} == {1, 2, 3}
    assert len({s.uuid for s in symbols}) == 3


def test_units_drawn_elsewhere_are_not_added(importer):
    result = importer.load_string(logic_doc(
        sheet(instances=[instance("IC1", "A", 0, 0)]),
        sheet(instances=[instance("IC1", "B", 0, 0)]),
    ), "demo.sch")
    assert [s.unit for s in result.schematic.schematicSymbols] == [3]
    assert [s.unit for s in result.sheets[0].schematic.schematicSymbols] == [1]
    assert [s.unit for s in result.sheets[1].schematic.schematicSymbols] == [2]


def field_offsets(sym):
    x, y = iu_point(sym.position)
    return {p.key: (iu_point(p.position)[0] - x, iu_point(p.position)[1] - y,
                    p.position.angle)
            for p in sym.properties}


@pytest.mark.parametrize("rot", ["R90", "MR0", "MR270"])
def test_missing_units_ignore_drawn_orientation(importer, rot):
    def unit2(doc):
        result = importer.load_string(doc, "demo.sch")
        (sym,) = [s for s in result.schematic.schematicSymbols if s.unit == 2]
        return sym

    plain = unit2(logic_doc(sheet(instances=[instance("IC1", "A", 0, 0)])))
    turned = unit2(logic_doc(sheet(instances=[instance("IC1", "A", 0, 0, rot=rot)])))

    assert turned.position.angle == 0
    assert turned.mirror is None
    assert field_offsets(turned) == field_offsets(plain)


def test_hidden_power_unit_gets_labels(importer):
    result = importer.load_string(logic_doc(
        sheet(instances=[instance("IC2", "A", 0, 0)]),
        deviceset="74*02", name="IC2"), "demo.sch")
    sch = result.schematic
    (power,) = [s for s in sch.schematicSymbols if s.unit == 2]
    labels = {lb.text: iu_point(lb.position) for lb in sch.globalLabels}
    assert labels == sheet_pins(sch, power)


def supply_doc(*instances, nets=()):
    return document(libraries=[SUPPLY_LIBRARY],
                    parts=[part("U1", "supply1", "REG"), part("U2", "supply1", "REG"),
                           part("GND1", "supply1", "GND")],
                    sheets=[sheet(instances=instances, nets=nets)])


def test_unconnected_power_pin_gets_global_label(importer):
    result = importer.load_string(supply_doc(
        instance("U1", "G$1", 0, 0),
        instance("U2", "G$1", 50.8, 0),
        nets=[net("SUPPLY", segment(wire(43.18, 0, 38.1, 0)))],
    ), "demo.sch")
    sch = result.schematic
    (vin,) = sch.globalLabels
    assert vin.text == "VIN"
    (u1,) = [s for s in sch.schematicSymbols if get_field(s, "Reference").value == "U1"]
    assert iu_point(vin.position) == sheet_pins(sch, u1)["VIN"]


def test_power_symbol(importer):
    result = importer.load_string(supply_doc(instance("GND1", "1", 0, 0)), "demo.sch")
    sch = result.schematic
    (sym,) = sch.schematicSymbols
    assert get_field(sym, "Reference").value == "#GND1"
    assert lib_symbols(sch)["GND"].isPower
    assert sch.globalLabels == []


def test_unknown_part_is_reported(importer):
    result = importer.load_string(document(
        libraries=[RESISTOR_LIBRARY],
        parts=[part("C1", "rcl", "C")],
        sheets=[sheet(instances=[instance("X9", "G$1", 0, 0),
                                 instance("C1", "G$1", 0, 0)])],
    ), "demo.sch")
    assert result.schematic.schematicSymbols == []
    errors = result.reporter.messages(ERROR)
    assert any("Could not find 'X9'" in e for e in errors)
    assert any("Could not find 'C' in the imported library." in e for e in errors)


BROKEN_LIBRARY = """
<library name="misc">
<devicesets>
<deviceset name="BROKEN" prefix="X">
<gates><gate name="G$1" symbol="NOPE" x="0" y="0"/></gates>
<devices><device name="" package="SO8"/></devices>
</deviceset>
</devicesets>
</library>
"""


def test_importer_keeps_the_given_reporter():
    reporter = Reporter()
    assert EagleSchematicImporter(reporter=reporter).reporter is reporter


def test_library_errors_reach_the_result(importer, reporter):
    result = importer.load_string(document(
        libraries=[RESISTOR_LIBRARY, BROKEN_LIBRARY],
        parts=[part("R1", "rcl", "R"), part("X1", "misc", "BROKEN")],
        sheets=[sheet(instances=[instance("R1", "G$1", 0, 0),
                                 instance("X1", "G$1", 20.32, 0)])],
    ), "demo.sch")
    assert result.reporter is reporter
    assert reporter.has_errors()
    errors = reporter.messages(ERROR)
    assert any("NOPE" in e for e in errors)
    assert any("Could not find 'BROKEN'" in e for e in errors)
    assert [s.entryName for s in result.schematic.schematicSymbols] == ["R"]


def test_symbol_library_header(importer):
    result = importer.load_string(resistor_doc(), "demo.sch")
    assert result.library.version == SYM_FILE_VERSION
    assert result.library.generator == GENERATOR
    assert [s.entryName for s in result.library.symbols] == ["R"]


def test_bus_entry_in_sheet(importer):
    result = importer.load_string(document(sheets=[sheet(
        busses=[bus("D[0..3]", segment(wire(0, 0, 0, 12.7, layer=92)))],
        nets=[net("D0", segment(wire(0, 5.08, -12.7, 5.08)))],
    )]), "demo.sch")
    sch = result.schematic
    assert len(sch.busEntries) == 1
    assert [c.type for c in connections(sch)] == ["bus", "wire"]
    assert result.markers == []


def test_plain_items(importer):
    frame = '<frame x1="0" y1="0" x2="100" y2="50" columns="4" rows="2" layer="94"/>'
    result = importer.load_string(resistor_doc(plain=[
        text("Hello\n  world ", 0, 0),
        text("   ", 0, 10),
        wire(0, 0, 20, 0, layer=97),
        frame,
    ]), "demo.sch")
    sch = result.schematic
    assert [t.text for t in sch.texts] == ["Hello\nworld", '" "']
    notes = [item for item in sch.graphicalItems if isinstance(item, PolyLine)]
    assert len(notes) == 5
    assert connections(sch) == []


def test_project_name(reporter):
    result = EagleSchematicImporter(reporter, project_name="proj").load_string(
        resistor_doc(), "demo.sch")
    assert result.lib_name == "proj-eagle-import"
    (sym,) = result.schematic.schematicSymbols
    assert sym.instances[0].name == "proj"


def test_load_from_file(tmp_path, importer):
    path = tmp_path / "board.sch"
    path.write_text(resistor_doc())
    result = importer.load(str(path))
    assert result.lib_name == "board-eagle-import"
    assert result.root.filename == "board.kicad_sch"


def test_save(tmp_path, importer):
    result = importer.load_string(resistor_doc(), "demo.sch")
    out = tmp_path / "out"
    written = result.save(str(out))

    assert sorted(p.rsplit("/", 1)[-1] for p in written) == [
        "demo-eagle-import.kicad_sym", "demo.kicad_sch", "sym-lib-table"]
    for path in written:
        assert (out / path.rsplit("/", 1)[-1]).exists()

    sch_text = (out / "demo.kicad_sch").read_text()
    assert 'lib_id "demo-eagle-import:R"' in sch_text
    table_text = (out / "sym-lib-table").read_text()
    assert "${KIPRJMOD}/demo-eagle-import.kicad_sym" in table_text

    # saving again keeps a single table row
    result.save(str(out))
    table = LibTable.from_file(str(out / "sym-lib-table"))
    assert [lib.name for lib in table.libs] == ["demo-eagle-import"]


def test_markers_collected(importer):
    result = importer.load_string(document(sheets=[sheet(
        busses=[bus("B", segment(wire(0, -1.27, 0, 1.27, layer=92)))],
        nets=[net("N", segment(wire(0, 0, -12.7, 0)))],
    )]), "demo.sch")
    (marker,) = result.markers
    assert marker.sheet == "demo"
