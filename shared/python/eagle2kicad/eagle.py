"""
Typed views over an EAGLE schematic document.

The XML is parsed once with ElementTree and each element is decoded into
one of the dataclasses below.  Coordinates, sizes and widths are converted
to integer internal units on the way in; Y still points up as in EAGLE.
Library symbol primitives and sheet ``<plain>`` items are decoded through
``decode()``, which maps a tag to its dataclass and returns None for tags
the importer does not handle.
"""

import re
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from .common import (
    LAYER_BUSSES, LAYER_NETS, to_iu,
)
from .errors import EagleImportError

# EAGLE text alignment.  Negating a value rotates it by 180 degrees.
CENTER = 0
CENTER_LEFT = 1
TOP_CENTER = 2
TOP_LEFT = 3
TOP_RIGHT = 4
CENTER_RIGHT = -CENTER_LEFT
BOTTOM_CENTER = -TOP_CENTER
BOTTOM_LEFT = -TOP_RIGHT
BOTTOM_RIGHT = -TOP_LEFT

ALIGNMENTS: Dict[str, int] = {
    "center":        CENTER,
    "center-right":  CENTER_RIGHT,
    "top-left":      TOP_LEFT,
    "top-center":    TOP_CENTER,
    "top-right":     TOP_RIGHT,
    "bottom-left":   BOTTOM_LEFT,
    "bottom-center": BOTTOM_CENTER,
    "bottom-right":  BOTTOM_RIGHT,
    "center-left":   CENTER_LEFT,
}

# Layer kinds
WIRE = "wire"
BUS = "bus"
NOTES = "notes"

_ROT_RE = re.compile(r"^(S?)(M?)R([-+]?\d+(?:\.\d*)?)$")


# ==============================================================
# Attribute parsing helpers
# ==============================================================

def _required(el, name):
    value = el.get(name)
    if value is None:
        raise EagleImportError(f"<{el.tag}> is missing required attribute '{name}'")
    return value


def _float(el, name, default=None):
    value = el.get(name)
    if value is None:
        return default
    try:
        return float(value)
    except ValueError:
        raise EagleImportError(f"<{el.tag}> attribute '{name}' is not a number: {value!r}")


def _coord(el, name, default=None):
    """Read a millimetre attribute as internal units."""
    value = _float(el, name)
    if value is None:
        if default is None:
            raise EagleImportError(f"<{el.tag}> is missing required attribute '{name}'")
        return default
    return to_iu(value)


def _opt_coord(el, name):
    value = _float(el, name)
    return None if value is None else to_iu(value)


def _int(el, name, default=None):
    value = el.get(name)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        raise EagleImportError(f"<{el.tag}> attribute '{name}' is not an integer: {value!r}")


def _bool(el, name, default=False):
    value = el.get(name)
    if value is None:
        return default
    return value.lower() in ("yes", "true", "1")


def _align(el, name="align"):
    value = el.get(name)
    if value is None:
        return None
    return ALIGNMENTS.get(value, BOTTOM_LEFT)


# ==============================================================
# Element views
# ==============================================================

@dataclass
class ERot:
    degrees: float = 0.0
    mirror: bool = False
    spin: bool = False

    @classmethod
    def parse(cls, text):
        """Parse ``R90``, ``MR180``, ``SR0`` or ``SMR270``."""
        if not text:
            return cls()
        m = _ROT_RE.match(text.strip())
        if not m:
            raise EagleImportError(f"Invalid rotation: {text!r}")
        return cls(degrees=float(m.group(3)), mirror=bool(m.group(2)),
                   spin=bool(m.group(1)))


def _rot(el):
    value = el.get("rot")
    return ERot.parse(value) if value is not None else None


@dataclass
class EWire:
    x1: int
    y1: int
    x2: int
    y2: int
    width: int
    layer: int
    curve: Optional[float] = None

    @classmethod
    def from_element(cls, el):
        return cls(x1=_coord(el, "x1"), y1=_coord(el, "y1"),
                   x2=_coord(el, "x2"), y2=_coord(el, "y2"),
                   width=_coord(el, "width", 0), layer=_int(el, "layer", 0),
                   curve=_float(el, "curve"))


@dataclass
class EJunction:
    x: int
    y: int

    @classmethod
    def from_element(cls, el):
        return cls(x=_coord(el, "x"), y=_coord(el, "y"))


@dataclass
class ELabel:
    x: int
    y: int
    size: int
    layer: int
    rot: Optional[ERot] = None
    xref: bool = False

    @classmethod
    def from_element(cls, el):
        return cls(x=_coord(el, "x"), y=_coord(el, "y"),
                   size=_coord(el, "size"), layer=_int(el, "layer", 0),
                   rot=_rot(el), xref=_bool(el, "xref"))


@dataclass
class EText:
    text: str
    x: int
    y: int
    size: int
    layer: int
    font: Optional[str] = None
    ratio: Optional[int] = None
    rot: Optional[ERot] = None
    align: Optional[int] = None

    @classmethod
    def from_element(cls, el):
        return cls(text=el.text or "", x=_coord(el, "x"), y=_coord(el, "y"),
                   size=_coord(el, "size"), layer=_int(el, "layer", 0),
                   font=el.get("font"), ratio=_int(el, "ratio"),
                   rot=_rot(el), align=_align(el))


@dataclass
class EAttr:
    name: str
    value: Optional[str] = None
    x: Optional[int] = None
    y: Optional[int] = None
    size: Optional[int] = None
    layer: Optional[int] = None
    font: Optional[str] = None
    ratio: Optional[int] = None
    rot: Optional[ERot] = None
    display: Optional[str] = None
    align: Optional[int] = None

    @classmethod
    def from_element(cls, el):
        display = el.get("display")
        return cls(name=_required(el, "name"), value=el.get("value"),
                   x=_opt_coord(el, "x"), y=_opt_coord(el, "y"),
                   size=_opt_coord(el, "size"), layer=_int(el, "layer"),
                   font=el.get("font"), ratio=_int(el, "ratio"), rot=_rot(el),
                   display=display.lower() if display else None,
                   align=_align(el))


@dataclass
class EPin:
    name: str
    x: int
    y: int
    visible: Optional[str] = None
    length: Optional[str] = None
    direction: Optional[str] = None
    function: Optional[str] = None
    rot: Optional[ERot] = None

    @classmethod
    def from_element(cls, el):
        return cls(name=_required(el, "name"), x=_coord(el, "x"),
                   y=_coord(el, "y"), visible=el.get("visible"),
                   length=el.get("length"), direction=el.get("direction"),
                   function=el.get("function"), rot=_rot(el))


@dataclass
class ECircle:
    x: int
    y: int
    radius: int
    width: int
    layer: int

    @classmethod
    def from_element(cls, el):
        return cls(x=_coord(el, "x"), y=_coord(el, "y"),
                   radius=_coord(el, "radius"), width=_coord(el, "width", 0),
                   layer=_int(el, "layer", 0))


@dataclass
class ERect:
    x1: int
    y1: int
    x2: int
    y2: int
    layer: int
    rot: Optional[ERot] = None

    @classmethod
    def from_element(cls, el):
        return cls(x1=_coord(el, "x1"), y1=_coord(el, "y1"),
                   x2=_coord(el, "x2"), y2=_coord(el, "y2"),
                   layer=_int(el, "layer", 0), rot=_rot(el))


@dataclass
class EPolygon:
    width: int
    layer: int
    vertices: List[tuple] = field(default_factory=list)

    @classmethod
    def from_element(cls, el):
        vertices = [(_coord(v, "x"), _coord(v, "y")) for v in el.findall("vertex")]
        return cls(width=_coord(el, "width", 0), layer=_int(el, "layer", 0),
                   vertices=vertices)


@dataclass
class EFrame:
    x1: int
    y1: int
    x2: int
    y2: int
    columns: int
    rows: int
    layer: int
    border_left: bool = True
    border_top: bool = True
    border_right: bool = True
    border_bottom: bool = True

    @classmethod
    def from_element(cls, el):
        return cls(x1=_coord(el, "x1"), y1=_coord(el, "y1"),
                   x2=_coord(el, "x2"), y2=_coord(el, "y2"),
                   columns=_int(el, "columns", 0), rows=_int(el, "rows", 0),
                   layer=_int(el, "layer", 0),
                   border_left=_bool(el, "border-left", True),
                   border_top=_bool(el, "border-top", True),
                   border_right=_bool(el, "border-right", True),
                   border_bottom=_bool(el, "border-bottom", True))


_DECODERS = {
    "wire":      EWire.from_element,
    "junction":  EJunction.from_element,
    "label":     ELabel.from_element,
    "text":      EText.from_element,
    "pin":       EPin.from_element,
    "circle":    ECircle.from_element,
    "rectangle": ERect.from_element,
    "polygon":   EPolygon.from_element,
    "frame":     EFrame.from_element,
}


def decode(el):
    """Decode a drawing element into its typed view, or None if unsupported."""
    decoder = _DECODERS.get(el.tag)
    if decoder is None:
        return None
    return decoder(el)


# ==============================================================
# Library and schematic structure
# ==============================================================

@dataclass
class ELayer:
    number: int
    name: str
    visible: bool = True

    @classmethod
    def from_element(cls, el):
        return cls(number=_int(el, "number", 0), name=el.get("name", ""),
                   visible=_bool(el, "visible", True))


@dataclass
class EConnect:
    gate: str
    pin: str
    pad: str

    @classmethod
    def from_element(cls, el):
        return cls(gate=_required(el, "gate"), pin=_required(el, "pin"),
                   pad=_required(el, "pad"))


@dataclass
class EDevice:
    name: str
    package: Optional[str] = None
    connects: List[EConnect] = field(default_factory=list)

    @classmethod
    def from_element(cls, el):
        connects = [EConnect.from_element(c)
                    for c in el.findall("connects/connect")]
        return cls(name=el.get("name", ""), package=el.get("package"),
                   connects=connects)


@dataclass
class EGate:
    name: str
    symbol: str
    x: int = 0
    y: int = 0

    @classmethod
    def from_element(cls, el):
        return cls(name=_required(el, "name"), symbol=_required(el, "symbol"),
                   x=_coord(el, "x", 0), y=_coord(el, "y", 0))


@dataclass
class EDeviceSet:
    name: str
    prefix: str = ""
    gates: List[EGate] = field(default_factory=list)
    devices: List[EDevice] = field(default_factory=list)

    @classmethod
    def from_element(cls, el):
        return cls(name=_required(el, "name"), prefix=el.get("prefix", ""),
                   gates=[EGate.from_element(g) for g in el.findall("gates/gate")],
                   devices=[EDevice.from_element(d)
                            for d in el.findall("devices/device")])


@dataclass
class ESymbol:
    name: str
    items: list = field(default_factory=list)

    @classmethod
    def from_element(cls, el):
        items = [item for item in (decode(child) for child in el)
                 if item is not None]
        return cls(name=_required(el, "name"), items=items)


@dataclass
class ELibrary:
    name: str
    symbols: Dict[str, ESymbol] = field(default_factory=dict)
    devicesets: List[EDeviceSet] = field(default_factory=list)

    @classmethod
    def from_element(cls, el):
        symbols = {}
        for sym_el in el.findall("symbols/symbol"):
            sym = ESymbol.from_element(sym_el)
            symbols[sym.name] = sym
        return cls(name=el.get("name", ""), symbols=symbols,
                   devicesets=[EDeviceSet.from_element(d)
                               for d in el.findall("devicesets/deviceset")])


@dataclass
class EPart:
    name: str
    library: str
    deviceset: str
    device: str
    value: Optional[str] = None
    technology: Optional[str] = None
    attributes: Dict[str, str] = field(default_factory=dict)
    variants: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_element(cls, el):
        attributes = {a.get("name"): a.get("value", "")
                      for a in el.findall("attribute") if a.get("name")}
        variants = {v.get("name"): v.get("value", "")
                    for v in el.findall("variant") if v.get("name")}
        return cls(name=_required(el, "name"), library=_required(el, "library"),
                   deviceset=_required(el, "deviceset"),
                   device=el.get("device", ""), value=el.get("value"),
                   technology=el.get("technology"), attributes=attributes,
                   variants=variants)


@dataclass
class EInstance:
    part: str
    gate: str
    x: int
    y: int
    smashed: bool = False
    rot: Optional[ERot] = None
    attributes: List[EAttr] = field(default_factory=list)
    variants: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_element(cls, el):
        variants = {v.get("name"): v.get("value", "")
                    for v in el.findall("variant") if v.get("name")}
        return cls(part=_required(el, "part"), gate=_required(el, "gate"),
                   x=_coord(el, "x"), y=_coord(el, "y"),
                   smashed=_bool(el, "smashed"), rot=_rot(el),
                   attributes=[EAttr.from_element(a) for a in el.findall("attribute")],
                   variants=variants)


@dataclass
class ESegment:
    wires: List[EWire] = field(default_factory=list)
    junctions: List[EJunction] = field(default_factory=list)
    labels: List[ELabel] = field(default_factory=list)

    @classmethod
    def from_element(cls, el):
        return cls(wires=[EWire.from_element(w) for w in el.findall("wire")],
                   junctions=[EJunction.from_element(j) for j in el.findall("junction")],
                   labels=[ELabel.from_element(lb) for lb in el.findall("label")])


@dataclass
class ENet:
    name: str
    segments: List[ESegment] = field(default_factory=list)

    @classmethod
    def from_element(cls, el):
        return cls(name=el.get("name", ""),
                   segments=[ESegment.from_element(s) for s in el.findall("segment")])


@dataclass
class ESheet:
    description: Optional[str] = None
    plain: list = field(default_factory=list)
    instances: List[EInstance] = field(default_factory=list)
    busses: List[ENet] = field(default_factory=list)
    nets: List[ENet] = field(default_factory=list)

    @classmethod
    def from_element(cls, el):
        desc_el = el.find("description")
        plain_el = el.find("plain")
        plain = []
        if plain_el is not None:
            plain = [item for item in (decode(child) for child in plain_el)
                     if item is not None]
        return cls(description=desc_el.text if desc_el is not None else None,
                   plain=plain,
                   instances=[EInstance.from_element(i)
                              for i in el.findall("instances/instance")],
                   busses=[ENet.from_element(b) for b in el.findall("busses/bus")],
                   nets=[ENet.from_element(n) for n in el.findall("nets/net")])


@dataclass
class EDocument:
    version: str = ""
    layers: Dict[int, str] = field(default_factory=dict)
    libraries: Dict[str, ELibrary] = field(default_factory=dict)
    parts: Dict[str, EPart] = field(default_factory=dict)
    sheets: List[ESheet] = field(default_factory=list)

    def layer_kind(self, layer):
        """Map a layer number to WIRE or BUS; Info, Guide and unknown
        layers are NOTES."""
        name = self.layers.get(layer)
        if name == LAYER_NETS:
            return WIRE
        if name == LAYER_BUSSES:
            return BUS
        return NOTES

    def find_part(self, name):
        """Parts are matched case-insensitively."""
        return self.parts.get(name.upper())

    @classmethod
    def from_element(cls, root):
        if root.tag != "eagle":
            raise EagleImportError(f"Not an EAGLE document: root element is <{root.tag}>")
        drawing = root.find("drawing")
        if drawing is None:
            raise EagleImportError("EAGLE document has no <drawing> element")
        schematic = drawing.find("schematic")
        if schematic is None:
            raise EagleImportError("EAGLE document is not a schematic")

        layers = {}
        for layer_el in drawing.findall("layers/layer"):
            layer = ELayer.from_element(layer_el)
            layers[layer.number] = layer.name

        libraries = {}
        for lib_el in schematic.findall("libraries/library"):
            lib = ELibrary.from_element(lib_el)
            libraries[lib.name] = lib

        parts = {}
        for part_el in schematic.findall("parts/part"):
            part = EPart.from_element(part_el)
            parts[part.name.upper()] = part

        sheets = [ESheet.from_element(s) for s in schematic.findall("sheets/sheet")]
        return cls(version=root.get("version", ""), layers=layers,
                   libraries=libraries, parts=parts, sheets=sheets)


# ==============================================================
# Document reading
# ==============================================================

def parse_document(text):
    """Parse EAGLE XML text into an EDocument."""
    try:
        root = ET.fromstring(text)
    except ET.ParseError as e:
        raise EagleImportError(f"Malformed EAGLE XML: {e}") from e
    return EDocument.from_element(root)


def load_document(path):
    """Read and parse an EAGLE schematic file."""
    try:
        tree = ET.parse(path)
    except ET.ParseError as e:
        raise EagleImportError(f"Malformed EAGLE XML in {path}: {e}") from e
    except OSError as e:
        raise EagleImportError(f"Cannot read {path}: {e}") from e
    return EDocument.from_element(tree.getroot())


def check_header(path):
    """Check that the first lines of *path* look like an EAGLE XML file."""
    prefixes = ("<?xml", "<!DOCTYPE eagle SYSTEM", "<eagle version")
    try:
        with open(path, "r", encoding="utf-8", errors="replace") as f:
            for prefix in prefixes:
                line = f.readline()
                if not line.lstrip().startswith(prefix):
                    return False
    except OSError:
        return False
    return True
