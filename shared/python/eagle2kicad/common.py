"""
Common utilities for EAGLE schematic import.

Provides shared constants, unit conversions and small helpers used by the
library translator, the sheet assembler and the document importer.

All geometry inside the importer is kept in integer KiCad schematic
internal units (IU, 100 nm).  kiutils objects receive millimetres; a value
written with ``to_mm`` converts back to the same IU with ``to_iu``.
"""

import uuid
from typing import Dict, Tuple

# Internal units per millimetre (KiCad schematic IU = 100 nm)
IU_PER_MM = 10000
IU_PER_MIL = 254


def mils(value) -> int:
    """Convert mils to internal units."""
    return int(round(value * IU_PER_MIL))


# Grid and spacing
GRID = mils(100)                  # bus entry size, recentering grid
LABEL_STEP = mils(50)             # label search step along a segment
PAGE_MARGIN = mils(1500)          # added to the content bbox when sizing a page
SHEET_PITCH = mils(1000)          # sheet block placement grid on the root
SHEET_SIZE = (mils(500), mils(150))  # default hierarchical sheet block size
SYNTH_LABEL_SIZE = mils(40)       # text size of synthesized labels

# Label correction gives up after this many probes
MAX_LABEL_TRIALS = 1000

# Text size scaling of explicit labels
GLOBAL_LABEL_SCALE = 0.75
LOCAL_LABEL_SCALE = 0.85

# Pin lengths
PIN_LENGTHS: Dict[str, int] = {
    "point":  0,
    "short":  mils(100),
    "middle": mils(200),
    "long":   mils(300),
}
DEFAULT_PIN_LENGTH = mils(300)

# Stroke widths
THIN_STROKE = 1                   # capsule arcs, in IU
DEFAULT_TEXT_SIZE = mils(50)

# Paper sizes in mm (landscape)
PAPER_SIZES: Dict[str, Tuple[float, float]] = {
    "A5": (210.0, 148.0),
    "A4": (297.0, 210.0),
    "A3": (420.0, 297.0),
    "A2": (594.0, 420.0),
    "A1": (841.0, 594.0),
    "A0": (1189.0, 841.0),
    "A":  (279.4, 215.9),
    "B":  (431.8, 279.4),
    "C":  (558.8, 431.8),
    "D":  (863.6, 558.8),
    "E":  (1117.6, 863.6),
}
DEFAULT_PAPER = "A4"

# File format
SCH_FILE_VERSION = 20230121       # KiCad 7 schematic format
SYM_FILE_VERSION = 20220914
GENERATOR = "eagle2kicad"

# Suffix appended to the project name to build the library nickname
LIB_SUFFIX = "-eagle-import"

# EAGLE layers holding connections; every other layer is drawn as notes
LAYER_NETS = "Nets"
LAYER_BUSSES = "Busses"


def uid():
    return str(uuid.uuid4())


def to_iu(mm) -> int:
    """Convert millimetres to internal units."""
    return int(round(mm * IU_PER_MM))


def to_mm(iu) -> float:
    """Convert internal units to millimetres for kiutils."""
    return round(iu / IU_PER_MM, 4)


def iu_point(position) -> Tuple[int, int]:
    """IU point of a kiutils Position."""
    return to_iu(position.X), to_iu(position.Y)


def move_to(position, point):
    """Set a kiutils Position to an IU point, keeping its angle."""
    position.X = to_mm(point[0])
    position.Y = to_mm(point[1])
    return position


def trunc_to_grid(value: int, grid: int = GRID) -> int:
    """Round an IU value toward zero to a multiple of *grid*."""
    if value < 0:
        return -((-value) // grid) * grid
    return (value // grid) * grid


def paper_size_iu(paper: str) -> Tuple[int, int]:
    """
    Look up a paper size in internal units.

    Args:
        paper: Paper name (e.g. "A4", "A3")

    Returns:
        (width, height) in IU

    Raises:
        ValueError: If the paper name is unknown
    """
    size = PAPER_SIZES.get(paper)
    if size is None:
        raise ValueError(f"Unknown paper size: {paper}. "
                         f"Available: {', '.join(sorted(PAPER_SIZES.keys()))}")
    return to_iu(size[0]), to_iu(size[1])
