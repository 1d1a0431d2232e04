"""
EAGLE to KiCad text alignment.

EAGLE describes text anchoring with an eight-way alignment plus centre.
The alignment seen on screen depends on the rotation of the text relative
to its owner and on mirroring, both of which permute the alignment.  The
tables below are the complete permutation; nothing is derived from
trigonometry.
"""

from collections import namedtuple

from kiutils.items.common import Effects, Font, Justify

from .common import to_mm
from .eagle import (
    BOTTOM_CENTER, BOTTOM_LEFT, BOTTOM_RIGHT, CENTER, CENTER_LEFT,
    CENTER_RIGHT, TOP_CENTER, TOP_LEFT, TOP_RIGHT,
)

TextAlignment = namedtuple("TextAlignment", "angle horizontal vertical")

# Mirror about a vertical axis (text at 0 or 180 degrees)
HORIZONTAL_MIRROR = {
    BOTTOM_RIGHT: BOTTOM_LEFT,
    BOTTOM_LEFT:  BOTTOM_RIGHT,
    TOP_LEFT:     TOP_RIGHT,
    TOP_RIGHT:    TOP_LEFT,
    CENTER_LEFT:  CENTER_RIGHT,
    CENTER_RIGHT: CENTER_LEFT,
}

# Mirror of text standing at 90 or 270 degrees
VERTICAL_MIRROR = {
    BOTTOM_RIGHT: TOP_RIGHT,
    BOTTOM_LEFT:  TOP_LEFT,
    TOP_LEFT:     BOTTOM_LEFT,
    TOP_RIGHT:    BOTTOM_RIGHT,
}

# alignment -> (horizontal, vertical) justification
JUSTIFICATION = {
    CENTER:        ("center", "center"),
    CENTER_LEFT:   ("left",   "center"),
    CENTER_RIGHT:  ("right",  "center"),
    TOP_CENTER:    ("center", "top"),
    TOP_LEFT:      ("left",   "top"),
    TOP_RIGHT:     ("right",  "top"),
    BOTTOM_CENTER: ("center", "bottom"),
    BOTTOM_LEFT:   ("left",   "bottom"),
    BOTTOM_RIGHT:  ("right",  "bottom"),
}
DEFAULT_JUSTIFICATION = ("right", "bottom")


def rotate_alignment(align, rel_degrees):
    """Apply a relative rotation.

    Returns:
        (alignment, text_angle)
    """
    if rel_degrees == 90:
        return align, 90
    if rel_degrees == 180:
        return -align, 0
    if rel_degrees == 270:
        return -align, 90
    return align, 0


def mirror_alignment(align, abs_degrees):
    """Mirror an alignment for text at an absolute angle."""
    if abs_degrees in (90, 270):
        return VERTICAL_MIRROR.get(align, align)
    if abs_degrees in (0, 180):
        return HORIZONTAL_MIRROR.get(align, align)
    return align


def eagle_to_kicad_alignment(align, rel_degrees=0, mirror=False, abs_degrees=0):
    """
    Compute KiCad text angle and justification for an EAGLE text.

    Args:
        align: EAGLE alignment value, None meaning bottom-left
        rel_degrees: Rotation relative to the owning object
        mirror: Whether the text is mirrored
        abs_degrees: Absolute rotation, selects which mirror table applies

    Returns:
        TextAlignment(angle, horizontal, vertical)
    """
    if align is None:
        align = BOTTOM_LEFT
    align, angle = rotate_alignment(align, int(rel_degrees))
    if mirror:
        align = mirror_alignment(align, int(abs_degrees))
    horizontal, vertical = JUSTIFICATION.get(align, DEFAULT_JUSTIFICATION)
    return TextAlignment(angle, horizontal, vertical)


def to_justify(alignment):
    """Build a kiutils Justify; centred axes are left unset."""
    return Justify(
        horizontally=None if alignment.horizontal == "center" else alignment.horizontal,
        vertically=None if alignment.vertical == "center" else alignment.vertical,
    )


def convert_size(size, font=None):
    """EAGLE text size to (width, height) in IU.

    Proportional text (no font) is narrower than it is tall; the fixed font
    is wider.
    """
    if font is None:
        return int(round(size * 0.85)), size
    if font == "fixed":
        return size, int(round(size * 0.80))
    return size, size


def text_effects(width, height, alignment=None, bold=False, hide=False):
    """Build kiutils Effects for a text of the given IU size."""
    effects = Effects(font=Font(width=to_mm(width), height=to_mm(height),
                                bold=bold))
    if alignment is not None:
        effects.justify = to_justify(alignment)
    effects.hide = hide
    return effects


def eagle_text_attributes(etext, abs_degrees=0):
    """
    Size, weight and alignment of an EAGLE text or attribute.

    Args:
        etext: EText or EAttr view
        abs_degrees: Absolute angle selecting the mirror table

    Returns:
        (width, height, bold, TextAlignment)
    """
    width, height = convert_size(etext.size or 0, etext.font)
    bold = etext.ratio is not None and etext.ratio > 12
    rot = etext.rot
    alignment = eagle_to_kicad_alignment(
        etext.align,
        rot.degrees if rot else 0,
        rot.mirror if rot else False,
        abs_degrees,
    )
    return width, height, bold, alignment
