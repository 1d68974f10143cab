import pytest
from magnetizing_fpg.schemas import Adjacency
from magnetizing_fpg.solvers.impl.fitness import (DistanceFitness, FitnessWeights, SharedWallFitness,
                                                  gap_distance, make_fitness, measure_shared_wall)
from magnetizing_fpg.solvers.impl.gene import Gene, RoomState

BOUNDARY = [(0, 0), (100, 0), (100, 100), (0, 100)]


def rect(rid, x, y, w, h, target=None):
    return RoomState(id=rid, x=x, y=y, width=w, height=h, target_area=target or w * h)


def test_measure_shared_wall():
    a = rect("a", 0, 0, 10, 10)
    assert measure_shared_wall(a, rect("b", 10, 2, 10, 5)) == pytest.approx(5.0)
    assert measure_shared_wall(a, rect("c", 3, 10, 4, 4)) == pytest.approx(4.0)
    assert measure_shared_wall(a, rect("d", 15, 0, 5, 10)) == 0.0
    # within tolerance still counts
    assert measure_shared_wall(a, rect("e", 10.05, 0, 5, 10)) == pytest.approx(10.0)


def test_gap_distance():
    a = rect("a", 0, 0, 10, 10)
    assert gap_distance(a, rect("d", 15, 0, 5, 10)) == pytest.approx(5.0)
    assert gap_distance(a, rect("e", 13, 14, 1, 1)) == pytest.approx(5.0)
    assert gap_distance(a, rect("f", 5, 5, 10, 10)) == 0.0


def test_perfect_layout_scores_zero():
    gene = Gene([rect("a", 0, 0, 10, 10), rect("b", 10, 0, 10, 10)])
    fitness = SharedWallFitness().evaluate(gene, BOUNDARY, [Adjacency(a="a", b="b")])
    assert fitness == pytest.approx(0.0)
    assert gene.components["shared_wall"] == 0.0
    assert gene.components["geometric"] == 0.0


def test_short_wall_beats_no_contact():
    model = SharedWallFitness()
    adjacency = [Adjacency(a="a", b="b")]
    short = Gene([rect("a", 0, 0, 10, 10), rect("b", 10, 9, 10, 10)])
    apart = Gene([rect("a", 0, 0, 10, 10), rect("b", 10.5, 0, 10, 10)])

    model.evaluate(short, BOUNDARY, adjacency)
    model.evaluate(apart, BOUNDARY, adjacency)

    assert short.components["shared_wall"] == pytest.approx((0.5 * 0.1) ** 2)
    assert apart.components["shared_wall"] == pytest.approx(10.5 ** 2)
    assert short.fitness < apart.fitness


def test_overlap_terms():
    rooms = [rect("a", 0, 0, 10, 10), rect("b", 5, 0, 10, 10)]
    linear = Gene(rooms)
    SharedWallFitness(FitnessWeights(nonlinear_overlap=False)).evaluate(linear, BOUNDARY, [])
    assert linear.components["overlap"] == pytest.approx(50.0)

    shaped = Gene(rooms)
    SharedWallFitness().evaluate(shaped, BOUNDARY, [])
    assert shaped.components["overlap"] == pytest.approx(50.0 ** 1.5)


def test_out_of_bounds_weighted_heavily():
    gene = Gene([rect("a", -5, 0, 10, 10)])
    SharedWallFitness().evaluate(gene, BOUNDARY, [])
    assert gene.components["out_of_bounds"] == pytest.approx(50.0)
    assert gene.components["geometric"] == pytest.approx(5000.0)
    assert gene.fitness == pytest.approx(10.0 * 5000.0)


def test_area_deviation_term():
    gene = Gene([rect("a", 10, 10, 10, 10, target=120)])
    SharedWallFitness().evaluate(gene, BOUNDARY, [])
    assert gene.components["area_deviation"] == pytest.approx(20.0)
    assert gene.fitness == pytest.approx(20.0 * 20.0)

    squared = Gene([rect("a", 10, 10, 10, 10, target=120)])
    SharedWallFitness(FitnessWeights(area_deviation_squared=True)).evaluate(squared, BOUNDARY, [])
    assert squared.components["area_deviation"] == pytest.approx(400.0)


def test_normalized_components():
    gene = Gene([rect("a", -5, 0, 10, 10), rect("b", 50, 50, 10, 10)])
    SharedWallFitness(FitnessWeights(normalize_components=True)).evaluate(gene, BOUNDARY, [])
    assert gene.fitness == pytest.approx(10.0 * 5000.0 / 2)


def test_unknown_rooms_in_adjacency_are_skipped():
    gene = Gene([rect("a", 10, 10, 10, 10)])
    SharedWallFitness().evaluate(gene, BOUNDARY, [Adjacency(a="a", b="ghost")])
    assert gene.components["shared_wall"] == 0.0


def test_distance_model_balance():
    rooms = [rect("a", 0, 0, 10, 10), rect("b", 20, 0, 10, 10)]
    adjacency = [Adjacency(a="a", b="b")]

    geometry_only = Gene(rooms)
    DistanceFitness(FitnessWeights(fitness_balance=0.0)).evaluate(geometry_only, BOUNDARY, adjacency)
    assert geometry_only.fitness == pytest.approx(0.0)

    topology_only = Gene(rooms)
    DistanceFitness(FitnessWeights(fitness_balance=1.0)).evaluate(topology_only, BOUNDARY, adjacency)
    assert topology_only.components["distance"] == pytest.approx(20.0)
    assert topology_only.fitness == pytest.approx(1.0 / 20.0)

    unresolved = Gene(rooms)
    DistanceFitness(FitnessWeights(fitness_balance=1.0)).evaluate(unresolved, BOUNDARY, [])
    assert unresolved.components["topological"] == 0.0


def test_make_fitness():
    assert isinstance(make_fitness("shared_wall"), SharedWallFitness)
    assert isinstance(make_fitness("distance"), DistanceFitness)
    with pytest.raises(ValueError):
        make_fitness("spring")
