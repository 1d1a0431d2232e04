"""
Per-sheet bookkeeping of net and bus segments.

Every EAGLE ``<segment>`` is one continuously connected group of wires.
While a sheet is loaded the tracker remembers, for each group, its line
segments and its explicit labels, and collects the points where a wire
crosses a wire of a differently named group.  The label corrector uses
this to keep labels off those crossings.
"""

import bisect


class SegmentGroup:
    """Wires and explicit labels of one connected segment of a net or bus."""

    def __init__(self, net_name, is_bus=False):
        self.net_name = net_name
        self.is_bus = is_bus
        self.segs = []
        self.labels = []

    def __repr__(self):
        return (f"SegmentGroup({self.net_name!r}, segs={len(self.segs)}, "
                f"labels={len(self.labels)})")

    def label_attached(self, point):
        """Return the segment *point* lies on, or None."""
        for seg in self.segs:
            if seg.contains(point):
                return seg
        return None


class SegmentTracker:
    """Segment groups and wire crossings of the sheet being loaded."""

    def __init__(self):
        self.groups = []
        self._intersections = []

    def new_group(self, net_name, is_bus=False):
        group = SegmentGroup(net_name, is_bus)
        self.groups.append(group)
        return group

    def add_wire(self, group, seg):
        """Add a segment to *group*, recording crossings with other nets."""
        for other in self.groups:
            if other.net_name == group.net_name:
                continue
            for other_seg in other.segs:
                point = seg.intersect(other_seg, ignore_endpoints=True)
                if point is not None:
                    bisect.insort(self._intersections, point)
        group.segs.append(seg)
        return seg

    def add_label(self, group, label):
        group.labels.append(label)

    @property
    def intersections(self):
        return list(self._intersections)

    def on_intersection(self, point):
        i = bisect.bisect_left(self._intersections, point)
        return i < len(self._intersections) and self._intersections[i] == point

    def clear(self):
        self.groups = []
        self._intersections = []
