"""
Sheet assembly using kiutils.

Provides SheetBuilder, which turns one EAGLE ``<sheet>`` into a KiCad
schematic.  A sheet is loaded strictly in phases: instances, buses,
nets (with label synthesis), label correction, bus entries, plain items,
page sizing, implicit power connections and finally recentring on the page.

All state of the sheet being loaded (segment tracker, connection points,
wire lists) lives on the builder and is discarded with it.  Only the
``ImportContext`` is shared between sheets.
"""

import copy
import logging
from collections import defaultdict, namedtuple
from dataclasses import dataclass, field
from typing import Dict

from kiutils.schematic import Schematic
from kiutils.items.schitems import (
    BusEntry, Connection, GlobalLabel, HierarchicalSheet,
    HierarchicalSheetProjectInstance, HierarchicalSheetProjectPath,
    Junction, LocalLabel, PolyLine, SchematicSymbol, SymbolProjectInstance,
    SymbolProjectPath, Text,
)
from kiutils.items.common import (
    ColorRGBA, Effects, Font, Justify, PageSettings, Position, Property,
    Stroke,
)

from . import eagle
from .alignment import eagle_to_kicad_alignment, to_justify
from .alignment import eagle_text_attributes, text_effects
from .bus_entries import add_bus_entries
from .common import (
    DEFAULT_PAPER, DEFAULT_TEXT_SIZE, GENERATOR, GLOBAL_LABEL_SCALE,
    IU_PER_MIL, LOCAL_LABEL_SCALE, PAGE_MARGIN, SCH_FILE_VERSION, SHEET_SIZE,
    SYNTH_LABEL_SIZE, iu_point, mils, move_to, paper_size_iu, to_iu, to_mm,
    trunc_to_grid, uid,
)
from .geometry import BoundingBox, Seg, hit_test, lib_to_sheet
from .labels import adjust_net_labels
from .report import Reporter
from .segments import SegmentTracker
from .strings import (
    CTX_NETNAME, escape_name, escape_string, replace_illegal_filename_chars,
    symbol_key, translate_bus_name, unescape_string,
)
from .symbols import get_field, pin_positions, unit_count, unit_points

logger = logging.getLogger(__name__)

# Label spin styles, indexed the way EAGLE rotations map onto them
LEFT, UP, RIGHT, BOTTOM = range(4)
SPIN_ANGLES = {RIGHT: 0, UP: 90, LEFT: 180, BOTTOM: 270}
SPIN_MIRROR = {LEFT: RIGHT, RIGHT: LEFT, UP: UP, BOTTOM: BOTTOM}

ROTATIONS = (0, 90, 180, 270)

Marker = namedtuple("Marker", ["sheet", "position", "message"])


@dataclass
class MissingUnits:
    """Units of a multi-unit part and whether each still has to be drawn."""
    symbol: SchematicSymbol
    lib_symbol: object
    name: str
    units: Dict[int, bool] = field(default_factory=dict)

    @property
    def missing(self):
        return sorted(u for u, needed in self.units.items() if needed)


@dataclass
class ImportContext:
    """State shared by every sheet of one import."""
    document: eagle.EDocument
    libraries: dict
    lib_name: str
    project_name: str
    reporter: Reporter
    net_counts: Dict[str, int] = field(default_factory=dict)
    missing_units: Dict[str, MissingUnits] = field(default_factory=dict)


def label_spin(rot):
    """Spin style of an EAGLE label rotation."""
    if rot is None:
        return RIGHT
    spin = int(round(rot.degrees / 90)) % 4
    if rot.mirror:
        spin = SPIN_MIRROR[spin]
    return spin


def label_effects(size, spin):
    justify = "right" if SPIN_ANGLES[spin] in (180, 270) else "left"
    return Effects(font=Font(width=to_mm(size), height=to_mm(size)),
                   justify=Justify(horizontally=justify))


def pin_net_name(pin_name):
    """Net a power pin implies: the pin name up to any ``@`` suffix."""
    return pin_name.split("@", 1)[0]


def sheet_naming(description, stem, index):
    """
    Sheet name and file name of an EAGLE sheet.

    Returns:
        (sheet_name, file_name)
    """
    if description:
        name = description.replace("\n", "_")
    else:
        name = f"{stem}_{index}"
    filename = replace_illegal_filename_chars(name).replace(" ", "_")
    return name, filename + ".kicad_sch"


class SheetBuilder:
    """Convenience wrapper around a kiutils Schematic for one imported sheet."""

    def __init__(self, context, name="", filename="", paper=DEFAULT_PAPER):
        self.ctx = context
        self.reporter = context.reporter
        self.name = name
        self.filename = filename

        self.sch = Schematic.create_new()
        self.sch.version = SCH_FILE_VERSION
        self.sch.generator = GENERATOR
        self.sch.uuid = uid()
        self.sch.paper = PageSettings(paperSize=paper)
        self.page_size = paper_size_iu(paper)
        self.instance_path = f"/{self.sch.uuid}"

        self.tracker = SegmentTracker()
        self.conn_points = defaultdict(set)
        self.wires = []
        self.buses = []
        self.markers = []
        self._embedded_symbols = set()

    def __repr__(self):
        return f"SheetBuilder({self.name!r})"

    @property
    def bus_entries(self):
        return self.sch.busEntries

    # -- library symbols --

    def ensure_lib_symbol(self, name, lib_symbol):
        """Embed a library symbol into this schematic's libSymbols once."""
        if name in self._embedded_symbols:
            return
        sym_copy = copy.deepcopy(lib_symbol)
        # set the fields directly: the libId setter would read a
        # trailing "_<n>_<n>" of the name as a unit suffix
        sym_copy.libraryNickname = self.ctx.lib_name
        sym_copy.entryName = name
        self.sch.libSymbols.append(sym_copy)
        self._embedded_symbols.add(name)

    # -- primitive items --

    def add_wire(self, start, end, kind=eagle.WIRE):
        """Add a wire, bus or notes line between two IU points."""
        points = [Position(X=to_mm(start[0]), Y=to_mm(start[1])),
                  Position(X=to_mm(end[0]), Y=to_mm(end[1]))]
        if kind == eagle.NOTES:
            item = PolyLine(points=points, stroke=Stroke(width=0, type="solid"),
                            uuid=uid())
        else:
            item = Connection(type=kind, points=points,
                              stroke=Stroke(width=0, type="default"), uuid=uid())
            (self.buses if kind == eagle.BUS else self.wires).append(item)
        self.sch.graphicalItems.append(item)

        self.conn_points[start].add(id(item))
        self.conn_points[end].add(id(item))
        return item

    def remove_wire(self, wire):
        if wire in self.wires:
            self.wires.remove(wire)
        self.sch.graphicalItems.remove(wire)

    def add_junction(self, point):
        j = Junction()
        j.position = Position(X=to_mm(point[0]), Y=to_mm(point[1]))
        j.diameter = 0
        j.color = ColorRGBA()
        j.uuid = uid()
        self.sch.junctions.append(j)
        return j

    def add_label(self, text, point, size, spin=RIGHT, is_global=False):
        """Add a local or global net label."""
        label = GlobalLabel(shape="bidirectional") if is_global else LocalLabel()
        label.text = text
        label.position = Position(X=to_mm(point[0]), Y=to_mm(point[1]),
                                  angle=SPIN_ANGLES[spin])
        label.effects = label_effects(size, spin)
        label.uuid = uid()
        (self.sch.globalLabels if is_global else self.sch.labels).append(label)
        return label

    def add_bus_entry(self, position, size):
        entry = BusEntry(position=Position(X=to_mm(position[0]), Y=to_mm(position[1])),
                         size=Position(X=to_mm(size[0]), Y=to_mm(size[1])),
                         stroke=Stroke(width=0, type="default"), uuid=uid())
        self.sch.busEntries.append(entry)
        return entry

    def add_text(self, text, point, effects, angle=0):
        item = Text(text=text,
                    position=Position(X=to_mm(point[0]), Y=to_mm(point[1]), angle=angle),
                    effects=effects, uuid=uid())
        self.sch.texts.append(item)
        return item

    def add_marker(self, point, message):
        """Draw a note where a human has to finish the conversion."""
        size = DEFAULT_TEXT_SIZE
        text = self.add_text(message, point,
                             Effects(font=Font(width=to_mm(size), height=to_mm(size))))
        self.markers.append(text)
        return text

    def move_labels(self, start, end, new_point):
        """Carry labels lying on the wire start-end to *new_point*."""
        for label in self.sch.labels + self.sch.globalLabels:
            if hit_test(iu_point(label.position), start, end):
                move_to(label.position, new_point)

    # -- instances --

    def _hidden_field(self, template, key, value):
        prop = copy.deepcopy(template)
        prop.key = key
        prop.value = value
        prop.effects.hide = True
        return prop

    def _apply_attribute(self, prop, eattr, einstance):
        """Position and align a field after an instance ``<attribute>``."""
        if eattr.x is not None and eattr.y is not None:
            prop.position.X = to_mm(eattr.x)
            prop.position.Y = to_mm(-eattr.y)

        align = eattr.align if eattr.align is not None else eagle.BOTTOM_LEFT
        abs_degrees = int(eattr.rot.degrees) if eattr.rot else 0
        mirror = eattr.rot.mirror if eattr.rot else False
        inst_rot = einstance.rot
        if inst_rot and inst_rot.mirror:
            mirror = not mirror
        rotation = int(inst_rot.degrees) if inst_rot else 0
        rel_degrees = (abs_degrees - rotation + 360) % 360

        if eattr.display in ("off", "name"):
            prop.effects.hide = True

        alignment = eagle_to_kicad_alignment(align, rel_degrees, mirror, abs_degrees)
        prop.position.angle = alignment.angle
        prop.effects.justify = to_justify(alignment)

    def place_instance(self, einstance):
        """
        Place one gate of a part.

        Unknown parts and symbols missing from the imported library are
        reported and skipped.

        Returns:
            The placed SchematicSymbol, or None
        """
        part = self.ctx.document.find_part(einstance.part)
        if part is None:
            self.reporter.error(
                f"Error parsing Eagle file. Could not find '{einstance.part}' "
                f"instance but it is referenced in the schematic.")
            return None

        name = symbol_key(part.deviceset, part.device)
        library = self.ctx.libraries.get(part.library)
        lib_symbol = library.symbol(name) if library else None
        unit = library.unit(part.deviceset, part.device, einstance.gate) if library else None
        if lib_symbol is None or unit is None:
            self.reporter.error(
                f"Could not find '{unescape_string(name)}' in the imported library.")
            return None
        package = library.package(name) or ""

        angle = 0
        mirror = None
        if einstance.rot:
            angle = int(einstance.rot.degrees)
            if angle not in ROTATIONS:
                self.reporter.warning(f"Unhandled orientation ({angle} degrees) of "
                                      f"'{einstance.part}', using 0")
                angle = 0
            if einstance.rot.mirror:
                mirror = "y"
        position = (einstance.x, -einstance.y)

        # no footprint: '#' keeps the netlist updater quiet
        reference = einstance.part if package else "#" + einstance.part
        # KiCad annotation needs a non-digit prefix
        if reference.isdigit():
            reference = "UNK" + reference
        value = part.value if part.value is not None else name

        self.ensure_lib_symbol(name, lib_symbol)

        sym = SchematicSymbol()
        sym.libId = f"{self.ctx.lib_name}:{name}"
        sym.position = Position(X=to_mm(position[0]), Y=to_mm(position[1]), angle=angle)
        sym.unit = unit
        sym.inBom = True
        sym.onBoard = True
        sym.uuid = uid()
        if mirror:
            sym.mirror = mirror

        overrides = {"Reference": reference, "Value": value, "Footprint": package}
        sym.properties = [
            field_from(p, overrides.get(p.key, p.value), position, angle, mirror)
            for p in lib_symbol.properties
        ]
        value_field = get_field(sym, "Value")
        for key, text in part.attributes.items():
            sym.properties.append(self._hidden_field(value_field, key, text))
        for variant, text in part.variants.items():
            sym.properties.append(self._hidden_field(value_field, "VARIANT_" + variant, text))

        name_found = False
        value_found = False
        for eattr in einstance.attributes:
            key = eattr.name.lower()
            if key == "name":
                prop = get_field(sym, "Reference")
                name_found = True
            elif key == "value":
                prop = value_field
                value_found = True
            else:
                prop = get_field(sym, eattr.name)
                if prop is not None:
                    prop.effects.hide = True
            if prop is not None:
                self._apply_attribute(prop, eattr, einstance)

        for variant, text in einstance.variants.items():
            sym.properties.append(self._hidden_field(value_field, "VARIANT_" + variant, text))

        if einstance.smashed:
            if not value_found:
                value_field.effects.hide = True
            if not name_found:
                get_field(sym, "Reference").effects.hide = True

        for i, prop in enumerate(sym.properties):
            prop.id = i

        for sub in lib_symbol.units:
            for pin in sub.pins:
                sym.pins[pin.number] = uid()

        sym.instances.append(SymbolProjectInstance(
            name=self.ctx.project_name,
            paths=[SymbolProjectPath(sheetInstancePath=self.instance_path,
                                     reference=reference, unit=unit)]
        ))
        self.sch.schematicSymbols.append(sym)

        for pin, point in self.pin_points(sym, lib_symbol):
            self.conn_points[point].add((sym.uuid, pin.number, id(pin)))
        return sym

    def pin_points(self, sym, lib_symbol):
        """Sheet positions of the drawn unit's pins."""
        position = iu_point(sym.position)
        angle = sym.position.angle or 0
        return [(pin, lib_to_sheet(point, position, angle, sym.mirror))
                for pin, point in pin_positions(lib_symbol, sym.unit)]

    # -- nets and buses --

    def load_segments(self, enet, net_name, is_bus=False):
        """
        Load the segments of one net or bus.

        Each segment becomes a segment group.  A group without an explicit
        label gets a small one at its first wire when its net also lives on
        another sheet (global) or is split into several segments here
        (local).
        """
        segment_count = len(enet.segments)
        text = escape_name(net_name)
        spans_sheets = self.ctx.net_counts.get(net_name, 0) > 1

        for esegment in enet.segments:
            group = self.tracker.new_group(net_name, is_bus)
            first_wire = None
            for ewire in esegment.wires:
                start = (ewire.x1, -ewire.y1)
                end = (ewire.x2, -ewire.y2)
                self.add_wire(start, end, self.ctx.document.layer_kind(ewire.layer))
                if first_wire is None:
                    first_wire = (start, end)
                self.tracker.add_wire(group, Seg(start, end))

            for ejunction in esegment.junctions:
                self.add_junction((ejunction.x, -ejunction.y))

            for elabel in esegment.labels:
                scale = GLOBAL_LABEL_SCALE if spans_sheets else LOCAL_LABEL_SCALE
                label = self.add_label(text, (elabel.x, -elabel.y),
                                       int(round(elabel.size * scale)),
                                       label_spin(elabel.rot), is_global=spans_sheets)
                self.tracker.add_label(group, label)

            if esegment.labels or first_wire is None:
                continue
            if spans_sheets:
                self.add_label(text, first_wire[0], SYNTH_LABEL_SIZE, LEFT, is_global=True)
            elif segment_count > 1:
                self.add_label(text, first_wire[0], SYNTH_LABEL_SIZE, LEFT)

    # -- plain items --

    def load_plain_text(self, etext):
        lines = [line.strip() for line in etext.text.splitlines() if line.strip()]
        text = escape_name("\n".join(lines)) if lines else '" "'
        width, height, bold, alignment = eagle_text_attributes(etext)
        return self.add_text(text, (etext.x, -etext.y),
                             text_effects(width, height, alignment, bold=bold),
                             angle=alignment.angle)

    def load_frame(self, eframe):
        """Outline of a frame as four notes lines."""
        c1 = (eframe.x1, -eframe.y1)
        c3 = (eframe.x2, -eframe.y2)
        c2 = (c3[0], c1[1])
        c4 = (c1[0], c3[1])
        return [self.add_wire(a, b, eagle.NOTES)
                for a, b in ((c1, c2), (c2, c3), (c3, c4), (c4, c1))]

    def load_plain(self, items):
        for item in items:
            if isinstance(item, eagle.EText):
                self.load_plain_text(item)
            elif isinstance(item, eagle.EWire):
                self.add_wire((item.x1, -item.y1), (item.x2, -item.y2),
                              self.ctx.document.layer_kind(item.layer))
            elif isinstance(item, eagle.EFrame):
                self.load_frame(item)
            else:
                logger.debug("Skipping plain %s", type(item).__name__)

    # -- implicit connections --

    def is_connected(self, point):
        return len(self.conn_points.get(point, ())) > 1

    def add_implicit_connections(self, sym, lib_symbol, update_set=True):
        """
        Label unconnected power input pins with the net they imply.

        With *update_set*, the unit of a multi-unit part is recorded as
        drawn and the part's other units are registered as missing until
        they turn up on some sheet.
        """
        if lib_symbol.isPower:
            return 0

        count = 0
        for pin, point in self.pin_points(sym, lib_symbol):
            if pin.electricalType != "power_in" or self.is_connected(point):
                continue
            self.add_label(escape_string(pin_net_name(pin.name), CTX_NETNAME), point,
                           SYNTH_LABEL_SIZE, LEFT, is_global=True)
            count += 1

        units = unit_count(lib_symbol)
        if update_set and units > 1:
            reference = get_field(sym, "Reference").value
            record = self.ctx.missing_units.get(reference)
            if record is None:
                record = MissingUnits(sym, lib_symbol, sym.entryName)
                self.ctx.missing_units[reference] = record
            record.units[sym.unit] = False
            for u in range(1, units + 1):
                record.units.setdefault(u, True)
        return count

    # -- page and translation --

    def bounding_box(self):
        bbox = BoundingBox()
        lib_symbols = {s.entryName: s for s in self.sch.libSymbols}
        for sym in self.sch.schematicSymbols:
            lib_symbol = lib_symbols.get(sym.entryName)
            position = iu_point(sym.position)
            bbox.merge(position)
            if lib_symbol is None:
                continue
            for point in unit_points(lib_symbol, sym.unit):
                bbox.merge(lib_to_sheet(point, position, sym.position.angle or 0,
                                        sym.mirror))
        for item in self.sch.graphicalItems:
            for pt in item.points:
                bbox.merge(iu_point(pt))
        for entry in self.sch.busEntries:
            start = iu_point(entry.position)
            bbox.merge(start)
            bbox.merge((start[0] + to_iu(entry.size.X), start[1] + to_iu(entry.size.Y)))
        for item in self.sch.junctions + self.sch.labels + self.sch.globalLabels + self.sch.texts:
            bbox.merge(iu_point(item.position))
        for sheet in self.sch.sheets:
            x, y = iu_point(sheet.position)
            bbox.merge((x, y))
            bbox.merge((x + to_iu(sheet.width), y + to_iu(sheet.height)))
        return bbox

    def fit_page(self, bbox):
        """Grow the page to the content plus margin; it never shrinks."""
        width, height = self.page_size
        target_w = bbox.width + PAGE_MARGIN
        target_h = bbox.height + PAGE_MARGIN
        if width >= target_w and height >= target_h:
            return False
        if width < target_w:
            width = mils(round(target_w / IU_PER_MIL))
        if height < target_h:
            height = mils(round(target_h / IU_PER_MIL))
        self.page_size = (width, height)
        self.sch.paper = PageSettings(paperSize="User", width=to_mm(width),
                                      height=to_mm(height))
        return True

    def translate(self, offset):
        """Move every item of the sheet by *offset*."""
        dx, dy = offset

        def shift(position):
            position.X = to_mm(to_iu(position.X) + dx)
            position.Y = to_mm(to_iu(position.Y) + dy)

        for sym in self.sch.schematicSymbols:
            shift(sym.position)
            for prop in sym.properties:
                shift(prop.position)
        for item in self.sch.graphicalItems:
            for pt in item.points:
                shift(pt)
        for item in (self.sch.junctions + self.sch.busEntries + self.sch.labels
                     + self.sch.globalLabels + self.sch.texts):
            shift(item.position)
        for sheet in self.sch.sheets:
            shift(sheet.position)
            shift(sheet.sheetName.position)
            shift(sheet.fileName.position)

    # -- sheet blocks --

    def add_sheet_block(self, position, name, filename, page):
        """Add a hierarchical sheet block on this (root) sheet."""
        width, height = SHEET_SIZE
        x, y = position
        size = DEFAULT_TEXT_SIZE
        sheet = HierarchicalSheet()
        sheet.position = Position(X=to_mm(x), Y=to_mm(y))
        sheet.width = to_mm(width)
        sheet.height = to_mm(height)
        sheet.stroke = Stroke(width=0, type="solid")
        sheet.uuid = uid()
        sheet.sheetName = Property(
            key="Sheetname", value=name, id=0,
            position=Position(X=to_mm(x), Y=to_mm(y - mils(10)), angle=0),
            effects=Effects(font=Font(width=to_mm(size), height=to_mm(size)),
                            justify=Justify(horizontally="left", vertically="bottom")))
        sheet.fileName = Property(
            key="Sheetfile", value=filename, id=1,
            position=Position(X=to_mm(x), Y=to_mm(y + height + mils(10)), angle=0),
            effects=Effects(font=Font(width=to_mm(size), height=to_mm(size)),
                            justify=Justify(horizontally="left", vertically="top")))
        sheet.instances.append(HierarchicalSheetProjectInstance(
            name=self.ctx.project_name,
            paths=[HierarchicalSheetProjectPath(sheetInstancePath=self.instance_path,
                                                page=str(page))]
        ))
        self.sch.sheets.append(sheet)
        return sheet

    # -- the whole sheet --

    def load_sheet(self, esheet):
        """
        Load one EAGLE sheet into this schematic.

        Returns:
            SheetResult
        """
        placed = []
        for einstance in esheet.instances:
            sym = self.place_instance(einstance)
            if sym is not None:
                placed.append(sym)

        for ebus in esheet.busses:
            self.load_segments(ebus, translate_bus_name(ebus.name), is_bus=True)
        for enet in esheet.nets:
            self.load_segments(enet, enet.name)

        moved = adjust_net_labels(self.tracker)
        if moved:
            logger.debug("Sheet '%s': moved %d labels onto their wires", self.name, moved)
        add_bus_entries(self)

        self.load_plain(esheet.plain)

        bbox = self.bounding_box()
        self.fit_page(bbox)
        width, height = self.page_size
        center = bbox.center
        translation = (trunc_to_grid(width // 2 - center[0]),
                       trunc_to_grid(height // 2 - center[1]))

        lib_symbols = {s.entryName: s for s in self.sch.libSymbols}
        for sym in placed:
            self.add_implicit_connections(sym, lib_symbols[sym.entryName])

        self.conn_points.clear()
        self.translate(translation)
        return self.result()

    def result(self):
        result = SheetResult(self.name, self.filename, self.sch)
        for text in self.markers:
            marker = Marker(self.name, (text.position.X, text.position.Y), text.text)
            result.markers.append(marker)
            self.reporter.warning(f"{marker.message} at ({marker.position[0]}, "
                                  f"{marker.position[1]}) mm on sheet '{self.name}'")
        return result


class SheetResult:
    """A converted sheet and the markers left on it."""

    def __init__(self, name, filename, schematic):
        self.name = name
        self.filename = filename
        self.schematic = schematic
        self.markers = []

    def __repr__(self):
        return f"SheetResult({self.name!r}, {self.filename!r})"


def field_from(lib_prop, value, position, angle=0, mirror=None) -> Property:
    """Instance field placed where the library symbol puts *lib_prop*."""
    lx, ly = to_iu(lib_prop.position.X), to_iu(lib_prop.position.Y)
    sx, sy = lib_to_sheet((lx, ly), position, angle, mirror)
    return Property(key=lib_prop.key, value=value, id=lib_prop.id,
                    position=Position(X=to_mm(sx), Y=to_mm(sy),
                                      angle=lib_prop.position.angle or 0),
                    effects=copy.deepcopy(lib_prop.effects) or Effects())


def missing_unit_symbol(record: MissingUnits, unit: int, instance_path: str,
                        project_name: str, position) -> SchematicSymbol:
    """
    Copy of a part's first drawn unit, switched to *unit* at orientation 0.

    Fields are laid out again from the library symbol, so the orientation of
    the drawn unit does not carry over.  Extra attribute fields sit on the
    Value field.
    """
    sym = copy.deepcopy(record.symbol)
    sym.uuid = uid()
    sym.unit = unit
    sym.mirror = None
    sym.position = Position(X=to_mm(position[0]), Y=to_mm(position[1]), angle=0)

    lib_props = {p.key: p for p in record.lib_symbol.properties}
    fields = []
    for prop in sym.properties:
        lib_prop = lib_props.get(prop.key) or lib_props["Value"]
        field = field_from(lib_prop, prop.value, position)
        field.key = prop.key
        field.id = prop.id
        field.effects.hide = prop.effects.hide
        fields.append(field)
    sym.properties = fields

    reference = get_field(sym, "Reference").value
    sym.instances = [SymbolProjectInstance(
        name=project_name,
        paths=[SymbolProjectPath(sheetInstancePath=instance_path,
                                 reference=reference, unit=unit)]
    )]
    return sym


def unit_extent(lib_symbol, unit) -> BoundingBox:
    """Sheet-space size of a unit placed at the origin, orientation 0."""
    bbox = BoundingBox()
    for point in unit_points(lib_symbol, unit):
        bbox.merge(lib_to_sheet(point, (0, 0)))
    return bbox
