import pytest

from eagle2kicad import eagle
from eagle2kicad.bus_entries import BUS_ENTRY_NEEDED, add_bus_entries, entry_between
from eagle2kicad.common import GRID, iu_point, to_iu
from eagle2kicad.geometry import Seg
from eagle2kicad.report import WARNING


def entry_ends(entry):
    x, y = iu_point(entry.position)
    return {(x, y), (x + to_iu(entry.size.X), y + to_iu(entry.size.Y))}


def test_entry_between_orders_by_x():
    assert entry_between((0, 0), (-GRID, -GRID)) == ((-GRID, -GRID), (GRID, GRID))
    assert entry_between((0, GRID), (GRID, 0)) == ((0, GRID), (GRID, -GRID))


@pytest.mark.parametrize("bus_dir", [-1, 1])
@pytest.mark.parametrize("side", [-1, 1])
@pytest.mark.parametrize("end_name", ["start", "end"])
@pytest.mark.parametrize("orientation", ["horizontal", "vertical"])
def test_perpendicular_wire(sheet, orientation, end_name, side, bus_dir):
    touch = (0, 0)
    if orientation == "horizontal":
        other = (side * 5 * GRID, 0)
        bus_end = (0, bus_dir * 5 * GRID)
        new_end = (side * GRID, 0)
        bus_point = (0, bus_dir * GRID)
    else:
        other = (0, side * 5 * GRID)
        bus_end = (bus_dir * 5 * GRID, 0)
        new_end = (0, side * GRID)
        bus_point = (bus_dir * GRID, 0)

    bus = Seg(touch, bus_end)
    sheet.add_wire(touch, bus_end, eagle.BUS)
    points = (touch, other) if end_name == "start" else (other, touch)
    wire = sheet.add_wire(*points, eagle.WIRE)

    assert add_bus_entries(sheet) == 1

    (entry,) = sheet.bus_entries
    assert entry_ends(entry) == {new_end, bus_point}
    assert bus.hit(bus_point)
    assert not bus.hit(new_end)

    start, end = (iu_point(p) for p in wire.points)
    assert (start if end_name == "start" else end) == new_end
    assert Seg(start, end).length == 4 * GRID
    assert sheet.markers == []


def test_wire_between_two_buses(sheet):
    sheet.add_wire((0, 0), (0, 5 * GRID), eagle.BUS)
    sheet.add_wire((10 * GRID, 0), (10 * GRID, 5 * GRID), eagle.BUS)
    wire = sheet.add_wire((0, 0), (10 * GRID, 0))

    assert add_bus_entries(sheet) == 2
    assert [iu_point(p) for p in wire.points] == [(GRID, 0), (9 * GRID, 0)]


def test_short_bus_gets_a_marker(sheet, reporter):
    sheet.add_wire((0, -GRID // 2), (0, GRID // 2), eagle.BUS)
    wire = sheet.add_wire((0, 0), (-5 * GRID, 0))

    assert add_bus_entries(sheet) == 0
    assert sheet.bus_entries == []
    assert [iu_point(p) for p in wire.points] == [(0, 0), (-5 * GRID, 0)]

    (marker,) = sheet.result().markers
    assert marker.message == BUS_ENTRY_NEEDED
    assert marker.position == (0, 0)
    assert marker.sheet == "test"
    assert any(BUS_ENTRY_NEEDED in m for m in reporter.messages(WARNING))


def test_free_angle_wire(sheet):
    sheet.add_wire((0, -10 * GRID), (0, 10 * GRID), eagle.BUS)
    wire = sheet.add_wire((0, 0), (-3 * GRID, -3 * GRID))

    assert add_bus_entries(sheet) == 1
    (entry,) = sheet.bus_entries
    assert (entry.position.X, entry.position.Y) == (-2.54, -2.54)
    assert (entry.size.X, entry.size.Y) == (2.54, 2.54)
    assert iu_point(wire.points[0]) == (-GRID, -GRID)


def test_wire_covered_by_entry_is_removed(sheet):
    sheet.add_wire((0, -10 * GRID), (0, 10 * GRID), eagle.BUS)
    wire = sheet.add_wire((0, 0), (GRID, GRID))

    assert add_bus_entries(sheet) == 1
    assert sheet.wires == []
    assert wire not in sheet.sch.graphicalItems
    (entry,) = sheet.bus_entries
    assert entry_ends(entry) == {(0, 0), (GRID, GRID)}


def test_labels_follow_the_wire_end(sheet):
    sheet.add_wire((0, 0), (0, -5 * GRID), eagle.BUS)
    sheet.add_wire((0, 0), (-3 * GRID, 0))
    on_wire = sheet.add_label("D0", (-2 * GRID, 0), GRID)
    elsewhere = sheet.add_label("D1", (5 * GRID, 5 * GRID), GRID)

    add_bus_entries(sheet)
    assert iu_point(on_wire.position) == (-GRID, 0)
    assert iu_point(elsewhere.position) == (5 * GRID, 5 * GRID)


def test_parallel_and_unsupported_pairs(sheet):
    sheet.add_wire((0, -5 * GRID), (0, 5 * GRID), eagle.BUS)
    sheet.add_wire((0, 0), (0, -2 * GRID))
    sheet.add_wire((10 * GRID, 0), (20 * GRID, 10 * GRID), eagle.BUS)
    sheet.add_wire((10 * GRID, 0), (15 * GRID, 0))

    assert add_bus_entries(sheet) == 0
    assert sheet.bus_entries == []
    assert sheet.markers == []
