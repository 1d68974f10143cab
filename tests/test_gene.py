"""Tests for Gene copies and the squish collision resolver."""
import pytest
from magnetizing_fpg.utils import geometry_utils as gu
from magnetizing_fpg.solvers.impl.gene import Gene, RoomState

BOUNDARY = [(0, 0), (100, 0), (100, 100), (0, 100)]


def square(rid, x, y, size=20.0, min_ratio=0.5, max_ratio=2.0):
    return RoomState(id=rid, x=x, y=y, width=size, height=size, target_area=size * size,
                     min_ratio=min_ratio, max_ratio=max_ratio)


def test_clone_does_not_share_rooms():
    gene = Gene([square("a", 10, 10)])
    gene.fitness = 3.0
    copy = gene.clone()
    assert copy.fitness == 3.0
    assert copy.rooms[0] is not gene.rooms[0]
    copy.rooms[0].x = 50.0
    assert gene.rooms[0].x == 10.0


def test_constructor_copies_input_rooms():
    room = square("a", 10, 10)
    gene = Gene([room])
    room.x = 99.0
    assert gene.rooms[0].x == 10.0


def test_corridor_prefix_marks_room():
    assert RoomState(id="corridor-1", x=0, y=0, width=1, height=5, target_area=5).is_corridor
    assert not square("hall", 0, 0).is_corridor


def test_resize_to_ratio_keeps_center_and_area():
    room = square("a", 10, 10)
    room.resize_to_ratio(2.0)
    assert room.center == pytest.approx((20.0, 20.0))
    assert room.area == pytest.approx(400.0)
    assert room.width / room.height == pytest.approx(2.0)


def test_squish_reduces_overlap():
    gene = Gene([square("a", 40, 40), square("b", 50, 40)])
    before = gu.intersection_area(gene.rooms[0].polygon(), gene.rooms[1].polygon())
    assert before == pytest.approx(200.0)

    gene.apply_squish_collisions(BOUNDARY)

    after = gu.intersection_area(gene.rooms[0].polygon(), gene.rooms[1].polygon())
    assert after < before


def test_squish_reshape_preserves_area_and_outer_edges():
    gene = Gene([square("a", 40, 40), square("b", 50, 40)])
    report = gene.apply_squish_collisions(BOUNDARY, margin=0.1)
    a, b = gene.rooms

    assert report.reshaped == [("a", "b")]
    assert report.translated == []
    assert a.area == pytest.approx(400.0)
    assert b.area == pytest.approx(400.0)
    assert a.width == pytest.approx(14.9)
    assert a.x == pytest.approx(40.0)
    assert b.x + b.width == pytest.approx(70.0)
    assert b.x - (a.x + a.width) == pytest.approx(0.2)
    assert a.center[1] == pytest.approx(50.0)
    assert gu.intersection_area(a.polygon(), b.polygon()) == 0.0


def test_squish_translates_when_reshape_breaks_ratio():
    gene = Gene([square("a", 40, 40, min_ratio=1.0, max_ratio=1.0),
                 square("b", 50, 40, min_ratio=1.0, max_ratio=1.0)])
    report = gene.apply_squish_collisions(BOUNDARY, margin=0.1)
    a, b = gene.rooms

    assert report.translated == [("a", "b")]
    assert (a.width, a.height, b.width, b.height) == (20.0, 20.0, 20.0, 20.0)
    assert a.x == pytest.approx(34.9)
    assert b.x == pytest.approx(55.1)
    assert a.y == 40.0 and b.y == 40.0


def test_global_ratio_overrides_rooms_but_not_corridors():
    rooms = Gene([square("a", 40, 40, 20, 1.0, 1.0), square("b", 50, 40, 20, 1.0, 1.0)])
    report = rooms.apply_squish_collisions(BOUNDARY, global_target_ratio=2.0)
    assert len(report.reshaped) == 1

    corridors = Gene([square("corridor-a", 40, 40, 20, 1.0, 1.0),
                      square("corridor-b", 50, 40, 20, 1.0, 1.0)])
    report = corridors.apply_squish_collisions(BOUNDARY, global_target_ratio=2.0)
    assert len(report.translated) == 1


def test_touching_rooms_are_left_alone():
    gene = Gene([square("a", 10, 10), square("b", 30, 10)])
    report = gene.apply_squish_collisions(BOUNDARY)
    assert report.resolved == 0
    assert gene.rooms[0].bounds == (10, 10, 30, 30)
    assert gene.rooms[1].bounds == (30, 10, 50, 30)


def test_squish_invalidates_fitness():
    gene = Gene([square("a", 10, 10)])
    gene.fitness = 1.0
    gene.apply_squish_collisions(BOUNDARY)
    assert gene.fitness == float('inf')


def test_rooms_clamped_into_boundary_box():
    gene = Gene([RoomState(id="a", x=-10, y=-10, width=10, height=10, target_area=100),
                 RoomState(id="b", x=95, y=50, width=10, height=10, target_area=100)])
    gene.apply_squish_collisions(BOUNDARY)
    assert (gene.rooms[0].x, gene.rooms[0].y) == (0, 0)
    assert gene.rooms[1].x == 90


def test_oversized_room_pins_to_min_edge():
    gene = Gene([RoomState(id="wide", x=30, y=30, width=200, height=10, target_area=2000)])
    gene.constrain_to_boundary(gu.aabb(BOUNDARY))
    assert gene.rooms[0].x == 0
    assert gene.rooms[0].y == 30


def test_inflation_grows_small_rooms_only():
    gene = Gene([RoomState(id="small", x=10, y=10, width=5, height=5, target_area=100),
                 square("full", 50, 50)])
    grown = gene.apply_inflation(rate=1.1)
    assert grown == 1
    assert gene.rooms[0].width == pytest.approx(5.5)
    assert gene.rooms[0].center == pytest.approx((12.5, 12.5))
    assert gene.rooms[1].width == 20.0


def test_adjacency_pull_moves_rooms_closer():
    from magnetizing_fpg.schemas import Adjacency
    gene = Gene([square("a", 0, 0, 10), square("b", 80, 0, 10)])
    before = gu.distance(gene.rooms[0].center, gene.rooms[1].center)
    gene.apply_adjacency_pull([Adjacency(a="a", b="b")], strength=0.1)
    after = gu.distance(gene.rooms[0].center, gene.rooms[1].center)
    assert after < before
