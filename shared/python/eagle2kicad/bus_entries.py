"""
Bus entry synthesis.

EAGLE connects a wire to a bus by simply ending the wire on the bus line.
KiCad needs a bus entry: a 100 mil diagonal stub between the bus and the
wire.  For every wire ending exactly on a bus segment, the wire is pulled
back by 100 mil and an entry is drawn from the new wire end to a point of
the bus 100 mil along it, on whichever side the bus actually continues.

Perpendicular wires use ``ORTHOGONAL_CASES``; the bus is probed in the
listed order.  When no probe hits the bus the wire is left alone and a
marker is placed for a human to resolve.  Diagonal wires move their end
100 mil back along both axes.
"""

import logging

from .common import GRID, iu_point, move_to
from .geometry import Seg, add

logger = logging.getLogger(__name__)

BUS_ENTRY_NEEDED = "Bus Entry needed"

# (wire orientation, touching end, side the wire leaves to)
#     -> (wire end shift, bus probes in order), in 100 mil units.
# The entry spans from touch + shift to touch + probe.
ORTHOGONAL_CASES = {
    ("horizontal", "start", "left"):  ((-1, 0), [(0, -1), (0, 1)]),
    ("horizontal", "start", "right"): ((1, 0),  [(0, -1), (0, 1)]),
    ("horizontal", "end", "left"):    ((-1, 0), [(0, 1), (0, -1)]),
    ("horizontal", "end", "right"):   ((1, 0),  [(0, -1), (0, 1)]),
    ("vertical", "start", "above"):   ((0, -1), [(-1, 0), (1, 0)]),
    ("vertical", "start", "below"):   ((0, 1),  [(-1, 0), (1, 0)]),
    ("vertical", "end", "above"):     ((0, -1), [(-1, 0), (1, 0)]),
    ("vertical", "end", "below"):     ((0, 1),  [(-1, 0), (1, 0)]),
}


def _scaled(offset):
    return (offset[0] * GRID, offset[1] * GRID)


def entry_between(a, b):
    """
    Position and size of a bus entry joining two diagonal neighbours.

    Returns:
        (position, size) with a positive X size
    """
    if b[0] < a[0]:
        a, b = b, a
    return a, (b[0] - a[0], b[1] - a[1])


def _wire_side(orientation, other_end, bus):
    if orientation == "horizontal":
        return "left" if other_end[0] < bus.a[0] else "right"
    return "above" if other_end[1] < bus.a[1] else "below"


def _orthogonal_entry(sheet, wire, bus, end_name):
    """Handle one end of a wire perpendicular to the bus."""
    start, end = (iu_point(p) for p in wire.points)
    touch, other = (start, end) if end_name == "start" else (end, start)
    if not bus.hit(touch):
        return False

    orientation = "horizontal" if start[1] == end[1] else "vertical"
    side = _wire_side(orientation, other, bus)
    shift, probes = ORTHOGONAL_CASES[(orientation, end_name, side)]
    new_end = add(touch, _scaled(shift))

    for probe in probes:
        bus_point = add(touch, _scaled(probe))
        if bus.hit(bus_point):
            sheet.add_bus_entry(*entry_between(new_end, bus_point))
            sheet.move_labels(start, end, new_end)
            move_to(wire.points[0 if end_name == "start" else 1], new_end)
            return True

    sheet.add_marker(touch, BUS_ENTRY_NEEDED)
    return False


def _diagonal_entry(sheet, wire, bus, end_name):
    """Handle one end of a free-angle wire; returns False if the wire was deleted."""
    start, end = (iu_point(p) for p in wire.points)
    touch, other = (start, end) if end_name == "start" else (end, start)
    if not bus.hit(touch):
        return True

    vx, vy = other[0] - touch[0], other[1] - touch[1]
    step = (GRID if vx > 0 else -GRID, GRID if vy > 0 else -GRID)
    new_end = add(touch, step)

    sheet.add_bus_entry(*entry_between(touch, new_end))
    sheet.move_labels(start, end, new_end)
    if new_end == other:
        # the entry covers the whole wire
        sheet.remove_wire(wire)
        return False
    move_to(wire.points[0 if end_name == "start" else 1], new_end)
    return True


def add_bus_entries(sheet):
    """
    Insert bus entries where wires end on buses.

    *sheet* provides ``buses`` and ``wires`` (kiutils Connections) and the
    ``add_bus_entry``, ``move_labels``, ``remove_wire`` and ``add_marker``
    callbacks.

    Returns:
        Number of bus entries added
    """
    count = 0
    for bus_conn in list(sheet.buses):
        bus = Seg(*(iu_point(p) for p in bus_conn.points))
        if bus.a == bus.b:
            continue
        for wire in list(sheet.wires):
            if wire not in sheet.wires:
                continue
            seg = Seg(*(iu_point(p) for p in wire.points))
            if seg.a == seg.b:
                continue

            perpendicular = ((seg.is_horizontal() and bus.is_vertical())
                             or (seg.is_vertical() and bus.is_horizontal()))
            if perpendicular:
                for end_name in ("start", "end"):
                    if _orthogonal_entry(sheet, wire, bus, end_name):
                        count += 1
            elif not (seg.is_horizontal() or seg.is_vertical()):
                for end_name in ("start", "end"):
                    before = len(sheet.bus_entries)
                    alive = _diagonal_entry(sheet, wire, bus, end_name)
                    count += len(sheet.bus_entries) - before
                    if not alive:
                        break
    if count:
        logger.debug("Added %d bus entries", count)
    return count
