"""
Integer geometry primitives for schematic import.

Points are plain ``(x, y)`` tuples of internal units.  Segment hit tests
and intersections use exact integer arithmetic so that endpoint equality
decisions (bus entries, label placement, connection points) do not depend
on floating point rounding.
"""

import math


def _rescale(numerator, value, denominator):
    """Return numerator * value / denominator rounded half away from zero."""
    n = numerator * value
    q, r = divmod(abs(n), abs(denominator))
    if 2 * r >= abs(denominator):
        q += 1
    if (n < 0) != (denominator < 0):
        return -q
    return q


def add(p, q):
    return (p[0] + q[0], p[1] + q[1])


def sub(p, q):
    return (p[0] - q[0], p[1] - q[1])


def resize(vector, length):
    """Scale an integer vector to *length* keeping its direction."""
    norm = math.hypot(vector[0], vector[1])
    if norm == 0:
        return (0, 0)
    return (int(round(vector[0] * length / norm)),
            int(round(vector[1] * length / norm)))


def hit_test(point, start, end, tolerance=0):
    """Check if *point* lies on the segment start-end within *tolerance*."""
    if tolerance == 0:
        cross = ((end[0] - start[0]) * (point[1] - start[1])
                 - (end[1] - start[1]) * (point[0] - start[0]))
        if cross != 0:
            return False
        return (min(start[0], end[0]) <= point[0] <= max(start[0], end[0])
                and min(start[1], end[1]) <= point[1] <= max(start[1], end[1]))
    return Seg(start, end).distance(point) <= tolerance


class Seg:
    """A line segment between two integer points."""

    __slots__ = ("a", "b")

    def __init__(self, a, b):
        self.a = (int(a[0]), int(a[1]))
        self.b = (int(b[0]), int(b[1]))

    def __repr__(self):
        return f"Seg({self.a}, {self.b})"

    def __eq__(self, other):
        return isinstance(other, Seg) and self.a == other.a and self.b == other.b

    def __hash__(self):
        return hash((self.a, self.b))

    @property
    def center(self):
        return (self.a[0] + int((self.b[0] - self.a[0]) / 2),
                self.a[1] + int((self.b[1] - self.a[1]) / 2))

    @property
    def direction(self):
        return sub(self.b, self.a)

    @property
    def length(self):
        return math.hypot(*self.direction)

    def is_horizontal(self):
        return self.a[1] == self.b[1] and self.a[0] != self.b[0]

    def is_vertical(self):
        return self.a[0] == self.b[0] and self.a[1] != self.b[1]

    def distance(self, point):
        """Euclidean distance from *point* to the nearest point of the segment."""
        dx, dy = self.direction
        px, py = point[0] - self.a[0], point[1] - self.a[1]
        len_sq = dx * dx + dy * dy
        if len_sq == 0:
            return math.hypot(px, py)
        t = max(0.0, min(1.0, (px * dx + py * dy) / len_sq))
        return math.hypot(px - t * dx, py - t * dy)

    def contains(self, point):
        return self.distance(point) <= 1

    def hit(self, point, tolerance=0):
        return hit_test(point, self.a, self.b, tolerance)

    def intersect(self, other, ignore_endpoints=False):
        """
        Find the crossing point of two segments.

        Parallel (including collinear) segments never intersect.  With
        *ignore_endpoints*, a crossing at an endpoint of both segments is
        not reported.

        Returns:
            (x, y) of the crossing, or None
        """
        e = self.direction
        f = other.direction
        ac = sub(other.a, self.a)

        d = f[0] * e[1] - f[1] * e[0]
        p = f[0] * ac[1] - f[1] * ac[0]
        q = e[0] * ac[1] - e[1] * ac[0]

        if d == 0:
            return None
        if d > 0 and (q < 0 or q > d or p < 0 or p > d):
            return None
        if d < 0 and (q < d or p < d or p > 0 or q > 0):
            return None
        if ignore_endpoints and q in (0, d) and p in (0, d):
            return None

        return (other.a[0] + _rescale(q, f[0], d),
                other.a[1] + _rescale(q, f[1], d))


def arc_center(start, end, angle):
    """
    Compute the centre of an arc in a Y-up coordinate system.

    Args:
        start: Arc start point
        end: Arc end point
        angle: Sweep in degrees, positive counter-clockwise from start to end

    Returns:
        (cx, cy) as floats

    Raises:
        ValueError: If the chord length or the sweep is zero
    """
    dx = end[0] - start[0]
    dy = end[1] - start[1]
    dlen = math.hypot(dx, dy)
    if dlen == 0 or angle == 0:
        raise ValueError(f"Cannot compute arc centre for chord {start}-{end} "
                         f"with angle {angle}")
    mid_x = (start[0] + end[0]) / 2.0
    mid_y = (start[1] + end[1]) / 2.0
    dist = dlen / (2.0 * math.tan(math.radians(angle) / 2.0))
    return (mid_x - dist * dy / dlen, mid_y + dist * dx / dlen)


def rotate_point(point, angle):
    """Rotate an integer point about the origin by a multiple of 90 degrees.

    The rotation is counter-clockwise on screen in a Y-down system, which is
    how KiCad turns a symbol placed with a positive angle.
    """
    x, y = point
    a = angle % 360
    if a == 0:
        return (x, y)
    if a == 90:
        return (y, -x)
    if a == 180:
        return (-x, -y)
    if a == 270:
        return (-y, x)
    rad = math.radians(angle)
    cos_a = round(math.cos(rad), 10)
    sin_a = round(math.sin(rad), 10)
    return (int(round(cos_a * x + sin_a * y)),
            int(round(-sin_a * x + cos_a * y)))


def lib_to_sheet(lib_point, position, angle=0, mirror=None):
    """
    Transform a library-space point (Y-up) to sheet space (Y-down).

    The library point is flipped to Y-down, rotated, mirrored and then
    offset by the symbol position, the order KiCad applies a symbol's
    ``(at x y angle) (mirror y)``.  Mirror ``"y"`` flips about the Y axis,
    ``"x"`` about the X axis.
    """
    dx, dy = rotate_point((lib_point[0], -lib_point[1]), angle)
    if mirror == "y":
        dx = -dx
    elif mirror == "x":
        dy = -dy
    return (position[0] + dx, position[1] + dy)


class BoundingBox:
    """Axis-aligned bounding box accumulated from points."""

    def __init__(self):
        self.left = None
        self.top = None
        self.right = None
        self.bottom = None

    def __repr__(self):
        return f"BoundingBox({self.left}, {self.top}, {self.right}, {self.bottom})"

    @property
    def is_empty(self):
        return self.left is None

    def merge(self, point):
        x, y = point
        if self.left is None:
            self.left = self.right = x
            self.top = self.bottom = y
            return self
        self.left = min(self.left, x)
        self.right = max(self.right, x)
        self.top = min(self.top, y)
        self.bottom = max(self.bottom, y)
        return self

    def merge_box(self, other):
        if other is None or other.is_empty:
            return self
        self.merge((other.left, other.top))
        self.merge((other.right, other.bottom))
        return self

    @property
    def width(self):
        return 0 if self.is_empty else self.right - self.left

    @property
    def height(self):
        return 0 if self.is_empty else self.bottom - self.top

    @property
    def center(self):
        if self.is_empty:
            return (0, 0)
        return (self.left + (self.right - self.left) // 2,
                self.top + (self.bottom - self.top) // 2)
