"""Tests for the population life cycle."""
import math
import pytest
from magnetizing_fpg.schemas import Adjacency
from magnetizing_fpg.utils.random import Random
from magnetizing_fpg.solvers.impl.gene import RoomState
from magnetizing_fpg.solvers.impl.population import EvolutionaryConfig, PopulationManager

BOUNDARY = [(0, 0), (30, 0), (30, 30), (0, 30)]
ADJACENCIES = [Adjacency(a="living", b="kitchen"), Adjacency(a="kitchen", b="bath", weight=2.0)]


def seed_rooms():
    return [
        RoomState(id="living", x=5, y=5, width=12, height=10, target_area=120),
        RoomState(id="kitchen", x=8, y=8, width=8, height=8, target_area=64),
        RoomState(id="bath", x=20, y=20, width=5, height=6, target_area=30),
    ]


def make_manager(seed=1, **overrides):
    options = dict(population_size=8, max_generations=30, physics_iterations=3)
    options.update(overrides)
    config = EvolutionaryConfig(**options)
    return PopulationManager(seed_rooms(), BOUNDARY, ADJACENCIES, config, Random(seed))


def test_initial_population_is_scored_and_sorted():
    manager = make_manager()
    fitnesses = [g.fitness for g in manager.get_all()]
    assert len(fitnesses) == 8
    assert all(math.isfinite(f) for f in fitnesses)
    assert fitnesses == sorted(fitnesses)
    assert manager.generation == 0


@pytest.mark.parametrize("reproduction", ["mutation", "crossover"])
def test_generation_invariants(reproduction):
    manager = make_manager(reproduction=reproduction, use_fresh_blood=True,
                           fresh_blood_interval=3, fresh_blood_warm_up=3)
    for generation in range(1, 10):
        manager.iterate()
        genes = manager.get_all()
        assert manager.generation == generation
        assert len(genes) == 8
        for gene in genes:
            assert gene.room_ids() == ["living", "kitchen", "bath"]
            assert math.isfinite(gene.fitness)


@pytest.mark.parametrize("reproduction", ["mutation", "crossover"])
def test_best_fitness_never_worsens(reproduction):
    manager = make_manager(seed=5, reproduction=reproduction, use_simulated_annealing=True,
                           use_fresh_blood=True, fresh_blood_interval=4, fresh_blood_warm_up=2)
    best = manager.get_best().fitness
    for _ in range(12):
        manager.iterate()
        current = manager.get_best().fitness
        assert current <= best
        best = current


def test_survivors_are_half_of_expanded_pool():
    manager = make_manager(seed=1, population_size=8)
    manager.iterate()
    layouts = {tuple(r.bounds for r in gene.rooms) for gene in manager.get_all()}
    assert len(layouts) == 8


def test_genes_share_no_room_objects():
    manager = make_manager()
    manager.iterate()
    seen = set()
    for gene in manager.get_all():
        for room in gene.rooms:
            assert id(room) not in seen
            seen.add(id(room))


def test_fresh_blood_replaces_worst_quarter_and_keeps_best():
    manager = make_manager(fresh_blood_warm_up=2)
    best = manager.get_best().fitness
    assert manager.inject_fresh_blood() == 2
    assert len(manager.get_all()) == 8
    assert manager.get_best().fitness <= best


def test_fresh_blood_needs_more_than_one_gene():
    manager = make_manager(population_size=1)
    assert manager.inject_fresh_blood() == 0
    assert len(manager.get_all()) == 1


def test_incubation_only_keeps_improvements():
    manager = make_manager(fresh_blood_warm_up=5)
    gene = manager.get_all()[-1].clone()
    reference = gene.clone()
    manager._settle(reference, manager.config.physics_iterations)
    start = manager._evaluate(reference)
    incubated = manager.incubate(gene)
    assert incubated.fitness <= start


def test_annealing_schedule():
    manager = make_manager(use_simulated_annealing=True, mutation_strength=2.0, max_generations=10)
    assert manager.annealed_strength() == pytest.approx(2.0)
    manager.generation = 5
    assert manager.annealed_strength() == pytest.approx(1.0)
    manager.generation = 20
    assert manager.annealed_strength() == 0.0

    flat = make_manager(mutation_strength=2.0)
    flat.generation = 5
    assert flat.annealed_strength() == 2.0


def test_stats_report_best_components():
    manager = make_manager()
    stats = manager.get_stats()
    fitnesses = [g.fitness for g in manager.get_all()]
    assert stats["generation"] == 0
    assert stats["best_fitness"] == min(fitnesses)
    assert stats["worst_fitness"] == max(fitnesses)
    assert stats["avg_fitness"] == pytest.approx(sum(fitnesses) / len(fitnesses))
    assert "best_shared_wall" in stats
    assert "best_area_deviation" in stats


def test_same_seed_same_population():
    first = make_manager(seed=3)
    second = make_manager(seed=3)
    for _ in range(3):
        first.iterate()
        second.iterate()
    assert [g.fitness for g in first.get_all()] == [g.fitness for g in second.get_all()]


@pytest.mark.parametrize("options", [
    {"population_size": 0},
    {"max_generations": 0},
    {"survival_rate": 0.0},
    {"reproduction": "cloning"},
    {"fresh_blood_interval": 0},
    {"max_mutations": 0},
])
def test_invalid_config(options):
    with pytest.raises(ValueError):
        EvolutionaryConfig(**options)
