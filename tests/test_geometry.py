import pytest

from eagle2kicad.common import GRID, mils, paper_size_iu, to_iu, to_mm, trunc_to_grid
from eagle2kicad.geometry import (
    BoundingBox, Seg, arc_center, hit_test, lib_to_sheet, resize, rotate_point,
)


def test_unit_conversions():
    assert to_iu(2.54) == 25400
    assert to_mm(25400) == 2.54
    assert mils(100) == GRID == 25400
    assert to_iu(-0.00004) == 0


def test_paper_size():
    assert paper_size_iu("A4") == (2970000, 2100000)
    with pytest.raises(ValueError):
        paper_size_iu("Letter-ish")


def test_trunc_to_grid_rounds_toward_zero():
    assert trunc_to_grid(2 * GRID + 100) == 2 * GRID
    assert trunc_to_grid(-(2 * GRID + 100)) == -2 * GRID
    assert trunc_to_grid(GRID - 1) == 0
    assert trunc_to_grid(0) == 0


def test_rotate_point():
    assert rotate_point((1, 0), 0) == (1, 0)
    assert rotate_point((1, 0), 90) == (0, -1)
    assert rotate_point((1, 0), 180) == (-1, 0)
    assert rotate_point((1, 0), 270) == (0, 1)
    assert rotate_point((1, 0), -90) == (0, 1)


@pytest.mark.parametrize("angle, mirror, expected", [
    (0, None, (49200, 200000)),
    (90, None, (100000, 250800)),
    (180, None, (150800, 200000)),
    (270, None, (100000, 149200)),
    (0, "y", (150800, 200000)),
    (0, "x", (49200, 200000)),
])
def test_lib_to_sheet_left_pin(angle, mirror, expected):
    assert lib_to_sheet((-50800, 0), (100000, 200000), angle, mirror) == expected


def test_lib_to_sheet_flips_y():
    assert lib_to_sheet((0, 25400), (100000, 200000)) == (100000, 174600)


def test_lib_to_sheet_mirror_applies_after_rotation():
    # top pin, turned to the left, then flipped to the right
    assert lib_to_sheet((0, 25400), (100000, 200000), 90, "y") == (125400, 200000)


def test_hit_test():
    assert hit_test((5, 0), (0, 0), (10, 0))
    assert hit_test((0, 0), (0, 0), (10, 0))
    assert not hit_test((11, 0), (0, 0), (10, 0))
    assert not hit_test((5, 1), (0, 0), (10, 0))
    assert hit_test((5, 1), (0, 0), (10, 0), tolerance=1)
    assert hit_test((3, 3), (0, 0), (10, 10))


def test_resize():
    assert resize((3, 4), 10) == (6, 8)
    assert resize((0, 0), 10) == (0, 0)
    assert resize((0, -7), GRID) == (0, -GRID)


def test_seg_center_truncates():
    assert Seg((0, 0), (5, 0)).center == (2, 0)
    assert Seg((0, 0), (-5, 0)).center == (-2, 0)


def test_seg_orientation():
    assert Seg((0, 0), (10, 0)).is_horizontal()
    assert Seg((0, 0), (0, 10)).is_vertical()
    point = Seg((0, 0), (0, 0))
    assert not point.is_horizontal()
    assert not point.is_vertical()


def test_seg_distance():
    seg = Seg((0, 0), (10, 0))
    assert seg.distance((5, 3)) == 3
    assert seg.distance((13, 4)) == 5
    assert seg.contains((5, 1))
    assert not seg.contains((5, 2))


def test_intersect_crossing():
    a = Seg((0, 0), (10, 0))
    b = Seg((5, -5), (5, 5))
    assert a.intersect(b) == (5, 0)
    assert b.intersect(a) == (5, 0)


def test_intersect_parallel_and_disjoint():
    a = Seg((0, 0), (10, 0))
    assert a.intersect(Seg((0, 5), (10, 5))) is None
    assert a.intersect(Seg((0, 0), (20, 0))) is None
    assert a.intersect(Seg((20, -5), (20, 5))) is None


def test_intersect_shared_endpoint():
    a = Seg((0, 0), (10, 0))
    corner = Seg((10, 0), (10, 10))
    assert a.intersect(corner) == (10, 0)
    assert a.intersect(corner, ignore_endpoints=True) is None
    # a T junction ends only one segment
    tee = Seg((5, 0), (5, 10))
    assert a.intersect(tee, ignore_endpoints=True) == (5, 0)


def test_arc_center():
    cx, cy = arc_center((10, 0), (0, 10), 90)
    assert cx == pytest.approx(0, abs=1e-9)
    assert cy == pytest.approx(0, abs=1e-9)

    cx, cy = arc_center((0, 0), (2, 0), 180)
    assert (cx, cy) == pytest.approx((1, 0))

    # clockwise sweep puts the centre on the other side of the chord
    cx, cy = arc_center((0, 10), (10, 0), -90)
    assert (cx, cy) == pytest.approx((0, 0))


def test_arc_center_degenerate():
    with pytest.raises(ValueError):
        arc_center((1, 1), (1, 1), 90)
    with pytest.raises(ValueError):
        arc_center((0, 0), (1, 1), 0)


def test_bounding_box():
    bbox = BoundingBox()
    assert bbox.is_empty
    assert bbox.center == (0, 0)
    assert bbox.width == 0

    bbox.merge((0, 0)).merge((10, -20))
    assert (bbox.left, bbox.top, bbox.right, bbox.bottom) == (0, -20, 10, 0)
    assert bbox.width == 10
    assert bbox.height == 20
    assert bbox.center == (5, -10)

    other = BoundingBox().merge((30, 30))
    bbox.merge_box(other).merge_box(BoundingBox())
    assert (bbox.right, bbox.bottom) == (30, 30)
