"""
Net label placement correction.

EAGLE labels may float next to the wire they name; KiCad only associates a
label with a wire it touches.  Every explicit label is moved onto one of
its own group's segments, away from points where that segment crosses a
wire of another net.
"""

import logging
import math

from .common import LABEL_STEP, MAX_LABEL_TRIALS, iu_point, move_to
from .geometry import resize

logger = logging.getLogger(__name__)


def find_nearest_line_point(point, segs):
    """
    Find the segment start, middle or end closest to *point*.

    Returns:
        (nearest_point, segment), or (None, None) when *segs* is empty
    """
    nearest = None
    nearest_seg = None
    best = math.inf
    for seg in segs:
        for candidate in (seg.a, seg.center, seg.b):
            d = math.hypot(point[0] - candidate[0], point[1] - candidate[1])
            if d < best:
                best = d
                nearest = candidate
                nearest_seg = seg
    return nearest, nearest_seg


def search_label_position(origin, seg, on_intersection, step=LABEL_STEP,
                          max_trials=MAX_LABEL_TRIALS):
    """
    Walk along *seg* from *origin* for a free label position.

    Positions are probed at 0, +step, -step, +2*step, -2*step, ... along the
    segment direction.  A direction stops once a probe leaves the segment.

    Returns:
        The first probe inside the segment and not on a crossing, or None
    """
    direction = resize(seg.direction, step)
    check_positive = True
    check_negative = True

    for trial in range(max_trials):
        k = (trial + 1) // 2
        if trial % 2 == 1:
            if not check_positive:
                continue
            pos = (origin[0] + direction[0] * k, origin[1] + direction[1] * k)
            check_positive = seg.contains(pos)
            inside = check_positive
        else:
            if not check_negative:
                continue
            pos = (origin[0] - direction[0] * k, origin[1] - direction[1] * k)
            check_negative = seg.contains(pos)
            inside = check_negative

        if inside and not on_intersection(pos):
            return pos
        if not (check_positive or check_negative):
            break
    return None


def adjust_net_labels(tracker):
    """
    Move explicit labels onto their own segments.

    A label already on one of its group's segments and not on a crossing
    stays put.  The tracker is cleared afterwards.

    Returns:
        Number of labels moved
    """
    moved = 0
    for group in tracker.groups:
        for label in group.labels:
            pos = iu_point(label.position)
            seg = group.label_attached(pos)
            if seg is not None and not tracker.on_intersection(pos):
                continue

            if seg is None:
                pos, seg = find_nearest_line_point(pos, group.segs)
                if seg is None:
                    logger.debug("Label %r has no wire to attach to", label.text)
                    continue

            new_pos = search_label_position(pos, seg, tracker.on_intersection)
            if new_pos is None:
                logger.debug("No free position for label %r", label.text)
                continue
            move_to(label.position, new_pos)
            moved += 1

    tracker.clear()
    return moved
