import pytest
from magnetizing_fpg.utils import geometry_utils as gu

SQUARE = [(0, 0), (10, 0), (10, 10), (0, 10)]


def test_aabb_and_empty_input():
    assert gu.aabb([(0, 0), (4, 0), (0, 3)]) == (0.0, 0.0, 4.0, 3.0)
    assert gu.aabb([]) == (0.0, 0.0, 0.0, 0.0)
    assert gu.aabb([(2, 3)]) == (2.0, 3.0, 2.0, 3.0)


def test_aabb_intersects_counts_edge_contact():
    assert gu.aabb_intersects((0, 0, 2, 2), (1, 1, 3, 3))
    assert gu.aabb_intersects((0, 0, 1, 1), (1, 0, 2, 1))
    assert not gu.aabb_intersects((0, 0, 1, 1), (2, 2, 3, 3))


def test_centroid_is_vertex_mean():
    assert gu.centroid(SQUARE) == pytest.approx((5.0, 5.0))
    assert gu.centroid([(0, 0), (3, 0), (0, 3)]) == pytest.approx((1.0, 1.0))
    assert gu.centroid([]) == (0.0, 0.0)


def test_polygon_area():
    # Right triangle with legs 4 and 3
    assert gu.polygon_area([(0, 0), (4, 0), (0, 3)]) == pytest.approx(6.0)
    assert gu.polygon_area(SQUARE) == pytest.approx(100.0)
    assert gu.polygon_area([(-5, -5), (5, -5), (5, 5), (-5, 5)]) == pytest.approx(100.0)
    assert gu.polygon_area([(0, 0), (1, 1)]) == 0.0


def test_point_in_polygon_and_projection():
    assert gu.point_in_polygon((5, 5), SQUARE) is True
    assert gu.point_in_polygon((11, 5), SQUARE) is False

    triangle = [(0, 0), (10, 0), (5, 10)]
    assert gu.point_in_polygon((5, 3), triangle) is True
    assert gu.point_in_polygon((1, 8), triangle) is False

    proj = gu.closest_point_on_boundary((11, 5), SQUARE)
    assert proj == pytest.approx((10.0, 5.0))
    # Inside points project onto the nearest edge too
    assert gu.closest_point_on_boundary((5, 1), SQUARE) == pytest.approx((5.0, 0.0))


def test_rectangle_returns_fresh_lists():
    r1 = gu.rectangle(1, 2, 3, 4)
    r2 = gu.rectangle(1, 2, 3, 4)
    assert r1 == [(1, 2), (4, 2), (4, 6), (1, 6)]
    assert r1 is not r2
    r1[0] = (99, 99)
    assert r2[0] == (1, 2)


def test_intersection_area():
    a = gu.rectangle(0, 0, 2, 2)
    b = gu.rectangle(1, 1, 2, 2)
    assert gu.intersection_area(a, b) == pytest.approx(1.0)
    assert gu.intersection_area(a, gu.rectangle(5, 5, 1, 1)) == 0.0
    inner = gu.rectangle(2, 2, 3, 3)
    assert gu.intersection_area(SQUARE, inner) == pytest.approx(9.0)
    assert gu.rect_intersection_area((0, 0, 2, 2), (1, 1, 3, 3)) == pytest.approx(1.0)


def test_contains_tolerates_slack():
    assert gu.contains(SQUARE, gu.rectangle(1, 1, 2, 2))
    assert gu.contains(SQUARE, SQUARE)
    assert not gu.contains(SQUARE, gu.rectangle(8, 8, 4, 4))
    assert not gu.contains(SQUARE, gu.rectangle(20, 20, 1, 1))


def test_scale_polygon_about_centroid():
    scaled = gu.scale_polygon(SQUARE, 2.0)
    assert gu.polygon_area(scaled) == pytest.approx(400.0)
    assert gu.centroid(scaled) == pytest.approx((5.0, 5.0))


def test_validate_boundary_rejects_degenerate_input():
    with pytest.raises(ValueError):
        gu.validate_boundary([(0, 0), (1, 1)])
    with pytest.raises(ValueError):
        gu.validate_boundary([(0, 0), (1, 1), (2, 2)])
    assert gu.validate_boundary([[0, 0], [1, 0], [1, 1]]) == [(0.0, 0.0), (1.0, 0.0), (1.0, 1.0)]
