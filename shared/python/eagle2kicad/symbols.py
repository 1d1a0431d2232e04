"""
EAGLE library translation.

Each EAGLE device (a device set plus one package variant) becomes one
multi-unit KiCad symbol: one unit per gate, drawn from the gate's EAGLE
symbol.  The translation also records which unit each gate became and
which package each device uses, so that sheet instances can later find
their symbol and unit.

Library coordinates stay Y-up, the way KiCad symbol libraries store them.
"""

import copy
import logging
import math

from kiutils.symbol import Symbol, SymbolPin
from kiutils.items.common import Effects, Fill, Font, Position, Property, Stroke
from kiutils.items.syitems import SyArc, SyCircle, SyPolyLine, SyRect, SyText

from .alignment import eagle_text_attributes, text_effects
from .common import (
    DEFAULT_PIN_LENGTH, DEFAULT_TEXT_SIZE, PIN_LENGTHS, THIN_STROKE, mils,
    to_iu, to_mm,
)
from .eagle import ECircle, EFrame, EPin, EPolygon, ERect, EText, EWire
from .errors import MissingSymbolError
from .geometry import arc_center
from .report import Reporter
from .strings import escape_name, symbol_key

logger = logging.getLogger(__name__)

# EAGLE pin direction -> KiCad electrical type
PIN_TYPES = {
    "sup": "power_in",
    "pas": "passive",
    "out": "output",
    "in":  "input",
    "nc":  "no_connect",
    "io":  "bidirectional",
    "oc":  "open_collector",
    "hiz": "tri_state",
    "pwr": "power_in",
}
DEFAULT_PIN_TYPE = "bidirectional"

# EAGLE pin function -> KiCad graphic style
PIN_SHAPES = {
    "dot":    "inverted",
    "clk":    "clock",
    "dotclk": "inverted_clock",
}

# EAGLE pin rotation -> KiCad pin angle (right, up, left, down)
PIN_ORIENTATIONS = {0: 0, 90: 90, 180: 180, 270: 270}

FRAME_BORDER = mils(150)
FRAME_LEGEND_SIZE = (mils(90), mils(100))


class EagleLibrary:
    """Translated contents of one EAGLE library."""

    def __init__(self, name):
        self.name = name
        self.symbol_nodes = {}   # EAGLE symbol name -> ESymbol
        self.gate_units = {}     # deviceset + device + gate -> unit number
        self.packages = {}       # KiCad symbol name -> EAGLE package name
        self.symbols = {}        # KiCad symbol name -> kiutils Symbol

    def unit(self, deviceset, device, gate):
        return self.gate_units.get(deviceset + device + gate)

    def package(self, symbol_name):
        return self.packages.get(symbol_name)

    def symbol(self, symbol_name):
        return self.symbols.get(symbol_name)


# ==============================================================
# Fields
# ==============================================================

def _text_size_effects(hide=False):
    return text_effects(DEFAULT_TEXT_SIZE, DEFAULT_TEXT_SIZE, hide=hide)


def _field(key, value, field_id, hide=False):
    return Property(key=key, value=value, id=field_id,
                    position=Position(X=0, Y=0, angle=0),
                    effects=_text_size_effects(hide))


def get_field(symbol, key):
    for prop in symbol.properties:
        if prop.key == key:
            return prop
    return None


def _place_field(prop, etext):
    """Move a field to where the symbol's >NAME/>VALUE placeholder sits."""
    width, height, bold, alignment = eagle_text_attributes(etext)
    prop.position = Position(X=to_mm(etext.x), Y=to_mm(etext.y),
                             angle=alignment.angle)
    prop.effects = text_effects(width, height, alignment, bold=bold)


# ==============================================================
# Drawing primitives
# ==============================================================

def _pos(x, y):
    return Position(X=to_mm(x), Y=to_mm(y))


def symbol_circle(ecircle):
    return SyCircle(center=_pos(ecircle.x, ecircle.y),
                    radius=to_mm(ecircle.radius),
                    stroke=Stroke(type="default", width=to_mm(ecircle.width)),
                    fill=Fill(type="none"))


def symbol_rectangle(erect):
    # EAGLE rectangles are always filled
    return SyRect(start=_pos(erect.x1, erect.y1), end=_pos(erect.x2, erect.y2),
                  stroke=Stroke(type="default", width=0), fill=Fill(type="outline"))


def symbol_polygon(epoly):
    points = [_pos(x, y) for x, y in epoly.vertices]
    if points and (epoly.vertices[0] != epoly.vertices[-1]):
        points.append(_pos(*epoly.vertices[0]))
    return SyPolyLine(points=points, stroke=Stroke(type="default", width=to_mm(epoly.width)),
                      fill=Fill(type="outline"))


def symbol_wire(ewire):
    """
    Translate a symbol wire to a polyline or an arc.

    A thick arc whose stroke is wider than its chord-implied diameter is
    drawn as a filled arc through points pushed outward from the centre,
    which approximates the flat-capped filled semicircle EAGLE renders.

    Returns:
        SyPolyLine, SyArc, or None for a zero-length wire
    """
    begin = (ewire.x1, ewire.y1)
    end = (ewire.x2, ewire.y2)
    if begin == end:
        return None

    if not ewire.curve:
        return SyPolyLine(points=[_pos(*begin), _pos(*end)],
                          stroke=Stroke(type="default", width=to_mm(ewire.width)),
                          fill=Fill(type="none"))

    cx, cy = arc_center(begin, end, ewire.curve)
    diameter = 2.0 * math.hypot(begin[0] - cx, begin[1] - cy)

    fill = "none"
    width = ewire.width
    if ewire.width * 2 > diameter:
        scale = ewire.width * 2 / diameter
        begin = (cx + (begin[0] - cx) * scale, cy + (begin[1] - cy) * scale)
        end = (cx + (end[0] - cx) * scale, cy + (end[1] - cy) * scale)
        fill = "outline"
        width = THIN_STROKE

    radius = math.hypot(begin[0] - cx, begin[1] - cy)
    start_angle = math.atan2(begin[1] - cy, begin[0] - cx)
    mid_angle = start_angle + math.radians(ewire.curve) / 2.0
    mid = (cx + radius * math.cos(mid_angle), cy + radius * math.sin(mid_angle))

    if ewire.curve < 0:
        begin, end = end, begin

    return SyArc(start=_pos(round(begin[0]), round(begin[1])),
                 mid=_pos(round(mid[0]), round(mid[1])),
                 end=_pos(round(end[0]), round(end[1])),
                 stroke=Stroke(type="default", width=to_mm(width)),
                 fill=Fill(type=fill))


def symbol_text(etext):
    # symbol text cannot hold line breaks
    text = etext.text.replace("\n", "_").replace("\r", "_")
    width, height, bold, alignment = eagle_text_attributes(etext)
    # symbol text angles are stored in tenths of a degree
    return SyText(text=text or "~~",
                  position=Position(X=to_mm(etext.x), Y=to_mm(etext.y),
                                    angle=alignment.angle * 10),
                  effects=text_effects(width, height, alignment, bold=bold))


def _pin_text_effects(visible=True):
    size = DEFAULT_TEXT_SIZE if visible else 0
    return Effects(font=Font(width=to_mm(size), height=to_mm(size)))


def symbol_pin(epin, reporter):
    degrees = int(epin.rot.degrees) if epin.rot else 0
    angle = PIN_ORIENTATIONS.get(degrees)
    if angle is None:
        reporter.warning(f"Unhandled orientation ({degrees} degrees) of pin "
                         f"'{epin.name}', using 0")
        angle = 0

    length = PIN_LENGTHS.get(epin.length, DEFAULT_PIN_LENGTH) if epin.length \
        else DEFAULT_PIN_LENGTH

    show_name = epin.visible not in ("off", "pad")
    show_number = epin.visible not in ("off", "pin")

    pin = SymbolPin()
    pin.electricalType = PIN_TYPES.get((epin.direction or "").lower(),
                                       DEFAULT_PIN_TYPE)
    pin.graphicalStyle = PIN_SHAPES.get(epin.function, "line")
    pin.position = Position(X=to_mm(epin.x), Y=to_mm(epin.y), angle=angle)
    pin.length = to_mm(length)
    pin.name = epin.name
    pin.nameEffects = _pin_text_effects(show_name)
    pin.numberEffects = _pin_text_effects(show_number)
    return pin


def frame_items(eframe):
    """
    Outline of an EAGLE frame with its row and column legends.

    Each enabled border gets a 150 mil strip divided into rows (A, B, ...)
    or columns (1, 2, ...).
    """
    x_min, x_max = sorted((eframe.x1, eframe.x2))
    y_min, y_max = sorted((eframe.y1, eframe.y2))
    b = FRAME_BORDER
    half = b // 2

    def line(*pts):
        return SyPolyLine(points=[_pos(x, y) for x, y in pts],
                          stroke=Stroke(type="default", width=0), fill=Fill(type="none"))

    def legend(text, x, y):
        return SyText(text=text, position=Position(X=to_mm(x), Y=to_mm(y), angle=0),
                      effects=text_effects(*FRAME_LEGEND_SIZE))

    items = [line((x_min, y_min), (x_max, y_min), (x_max, y_max),
                  (x_min, y_max), (x_min, y_min))]

    rows = max(eframe.rows, 1)
    columns = max(eframe.columns, 1)
    row_spacing = (y_max - y_min) / rows
    column_spacing = (x_max - x_min) / columns

    for enabled, strip_x, x1, x2 in (
            (eframe.border_left, x_min + b, x_min, x_min + b),
            (eframe.border_right, x_max - b, x_max - b, x_max)):
        if not enabled:
            continue
        items.append(line((strip_x, y_min + b), (strip_x, y_max - b)))
        for i in range(1, rows):
            y = round(y_min + row_spacing * i)
            items.append(line((x1, y), (x2, y)))
        for i in range(rows):
            y = round(y_max - row_spacing / 2 - row_spacing * i)
            items.append(legend(chr(ord("A") + i), x1 + half, y))

    for enabled, strip_y, y1, y2 in (
            (eframe.border_top, y_max - b, y_max - b, y_max),
            (eframe.border_bottom, y_min + b, y_min, y_min + b)):
        if not enabled:
            continue
        items.append(line((x_max - b, strip_y), (x_min + b, strip_y)))
        for i in range(1, columns):
            x = round(x_min + column_spacing * i)
            items.append(line((x, y1), (x, y2)))
        for i in range(columns):
            x = round(x_min + column_spacing / 2 + column_spacing * i)
            items.append(legend(str(i + 1), x, y1 + half))

    return items


# ==============================================================
# Symbols and libraries
# ==============================================================

def load_symbol_unit(esymbol, symbol, unit, device, gate_name, reporter):
    """
    Translate one gate's EAGLE symbol into a unit of *symbol*.

    Pins are numbered after the device's pad connections: a pin connected
    to several pads is emitted once per pad with its number hidden, and a
    pin without a connection is dropped.  Devices without connections
    number their pins sequentially.

    Returns:
        True if the unit is a single-pin supply symbol
    """
    found_name = False
    found_value = False
    is_power = False
    pin_count = 0

    for item in esymbol.items:
        if isinstance(item, ECircle):
            unit.graphicItems.append(symbol_circle(item))
        elif isinstance(item, EPin):
            pin_count += 1
            pin = symbol_pin(item, reporter)
            if (item.direction or "").lower() == "sup":
                is_power = True

            if device.connects:
                for connect in device.connects:
                    if connect.gate == gate_name and connect.pin == item.name:
                        pads = connect.pad.split()
                        pin.name = escape_name(pin.name)
                        if len(pads) > 1:
                            pin.numberEffects = _pin_text_effects(False)
                        for pad in pads:
                            pad_pin = copy.deepcopy(pin)
                            pad_pin.number = pad
                            unit.pins.append(pad_pin)
                        break
            else:
                pin.number = str(pin_count)
                unit.pins.append(pin)
        elif isinstance(item, EPolygon):
            unit.graphicItems.append(symbol_polygon(item))
        elif isinstance(item, ERect):
            unit.graphicItems.append(symbol_rectangle(item))
        elif isinstance(item, EText):
            placeholder = item.text.strip().upper()
            if placeholder == ">NAME":
                _place_field(get_field(symbol, "Reference"), item)
                found_name = True
            elif placeholder == ">VALUE":
                _place_field(get_field(symbol, "Value"), item)
                found_value = True
            else:
                unit.graphicItems.append(symbol_text(item))
        elif isinstance(item, EWire):
            wire = symbol_wire(item)
            if wire is not None:
                unit.graphicItems.append(wire)
        elif isinstance(item, EFrame):
            unit.graphicItems.extend(frame_items(item))

    if not found_name:
        get_field(symbol, "Reference").effects.hide = True
    if not found_value:
        get_field(symbol, "Value").effects.hide = True

    return is_power if pin_count == 1 else False


def build_device_symbol(library, deviceset, device, reporter):
    """
    Build the multi-unit symbol for one device of a device set.

    Returns:
        (symbol, {gate_key: unit})

    Raises:
        MissingSymbolError: If a gate uses a symbol the library lacks
    """
    name = symbol_key(deviceset.name, device.name)

    symbol = Symbol()
    symbol.entryName = name
    symbol.inBom = True
    symbol.onBoard = True

    reference = _field("Reference", "", 0)
    if deviceset.prefix:
        # no footprint: '#' keeps the netlist updater quiet
        reference.value = deviceset.prefix if device.package else "#" + deviceset.prefix
    else:
        reference.effects.hide = True
    symbol.properties = [
        reference,
        _field("Value", name, 1),
        _field("Footprint", "", 2, hide=True),
        _field("Datasheet", "", 3, hide=True),
    ]

    gate_units = {}
    is_power = False
    for index, gate in enumerate(deviceset.gates, start=1):
        esymbol = library.symbol_nodes.get(gate.symbol)
        if esymbol is None:
            raise MissingSymbolError(library.name, deviceset.name, gate.name, gate.symbol)

        unit = Symbol()
        unit.entryName = name
        unit.unitId = index
        unit.styleId = 1
        is_power = load_symbol_unit(esymbol, symbol, unit, device, gate.name, reporter)
        symbol.units.append(unit)
        gate_units[deviceset.name + device.name + gate.name] = index

    if len(deviceset.gates) == 1 and is_power:
        symbol.isPower = True
        get_field(symbol, "Reference").effects.hide = True

    return symbol, gate_units


def load_library(elibrary, reporter=None):
    """
    Translate every device of an EAGLE library.

    Devices whose gates reference a missing symbol are reported and
    skipped; the rest of the library is still translated.

    Returns:
        EagleLibrary
    """
    if reporter is None:
        reporter = Reporter()
    library =EagleLibrary(elibrary.name)
    library.symbol_nodes = dict(elibrary.symbols)

    for deviceset in elibrary.devicesets:
        for device in deviceset.devices:
            name = symbol_key(deviceset.name, device.name)
            if not name:
                reporter.error(f"Library '{elibrary.name}': device set without a name")
                continue
            try:
                symbol, gate_units = build_device_symbol(library, deviceset,
                                                         device, reporter)
            except MissingSymbolError as e:
                reporter.error(str(e))
                continue

            library.gate_units.update(gate_units)
            if device.package:
                library.packages[name] = device.package
            library.symbols[name] = symbol

    logger.debug("Library '%s': %d symbols", library.name, len(library.symbols))
    return library


def symbol_units(symbol, unit=0):
    """Sub-symbols drawn for *unit* (0 means every unit)."""
    return [u for u in symbol.units
            if unit == 0 or not u.unitId or u.unitId == unit]


def unit_count(symbol):
    return max([u.unitId or 0 for u in symbol.units] + [1])


def unit_points(symbol, unit=0):
    """
    Library-space outline points of the drawn unit.

    Covers polylines, rectangles, circles, arcs, texts and both ends of
    every pin.

    Returns:
        List of (x, y) IU points, Y up
    """
    points = []

    def add(position):
        points.append((to_iu(position.X), to_iu(position.Y)))

    for sub in symbol_units(symbol, unit):
        for item in sub.graphicItems:
            if isinstance(item, SyPolyLine):
                for pt in item.points:
                    add(pt)
            elif isinstance(item, SyRect):
                add(item.start)
                add(item.end)
            elif isinstance(item, SyCircle):
                cx, cy, r = to_iu(item.center.X), to_iu(item.center.Y), to_iu(item.radius)
                points.extend([(cx - r, cy - r), (cx + r, cy + r)])
            elif isinstance(item, SyArc):
                add(item.start)
                add(item.mid)
                add(item.end)
            elif isinstance(item, SyText):
                add(item.position)

        for pin in sub.pins:
            px, py = to_iu(pin.position.X), to_iu(pin.position.Y)
            length = to_iu(pin.length or 0)
            rad = math.radians(pin.position.angle or 0)
            points.append((px, py))
            points.append((px + int(round(math.cos(rad) * length)),
                           py + int(round(math.sin(rad) * length))))
    return points


def pin_positions(symbol, unit=0):
    """(pin, library point) for every pin of the drawn unit."""
    return [(pin, (to_iu(pin.position.X), to_iu(pin.position.Y)))
            for sub in symbol_units(symbol, unit) for pin in sub.pins]
