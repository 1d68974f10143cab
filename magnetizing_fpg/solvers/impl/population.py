"""
Population management for the continuous evolutionary phase.

One generation is expand -> settle -> evaluate -> cull -> refill, with
optional annealing, warm-up passes and periodic fresh blood.
"""
from typing import Dict, List, Optional, Sequence
from dataclasses import dataclass, field
import logging
import math
import numpy as np
from ...utils import geometry_utils as gu
from ...utils.random import Random
from .fitness import FitnessWeights, make_fitness
from .gene import Gene, RoomState, ratio_bounds
from .mutations import MutationWeights, crossover, mutate_gene, nudge

logger = logging.getLogger(__name__)

REPRODUCTION_MODES = ("mutation", "crossover")


def _incubation_weights() -> MutationWeights:
    # incubation also runs at twice mutation_strength with one squish pass per round
    return MutationWeights(teleport=0.5, swap=0.5, rotate=0.1, reshape=0.5, nudge=0.5)


@dataclass
class EvolutionaryConfig:
    population_size: int = 25
    max_generations: int = 100
    physics_iterations: int = 10  # squish passes per offspring per generation
    survival_rate: float = 0.5  # fraction of the expanded pool kept
    reproduction: str = "mutation"  # "mutation" or "crossover"
    crossover_rate: float = 0.5  # children per generation as fraction of population
    # Mutation
    mutation_weights: MutationWeights = field(default_factory=MutationWeights)
    mutation_rate: float = 0.3  # per-room chance of a nudge
    mutation_strength: float = 1.0  # metres of nudge jitter
    aspect_ratio_mutation_rate: float = 0.1
    partner_bias: float = 0.0  # chance a nudge pulls toward an adjacency partner
    center_gravity: float = 0.0  # fraction pulled toward the layout centre per nudge
    max_mutations: int = 3
    # Heuristics
    use_simulated_annealing: bool = False
    warm_up_iterations: int = 0  # extra squish passes before an offspring is scored
    use_fresh_blood: bool = False
    fresh_blood_interval: int = 20  # generations
    fresh_blood_warm_up: int = 30  # incubation rounds
    fresh_blood_margin: float = 0.0  # metres kept clear of the boundary box when scattering
    incubation_weights: MutationWeights = field(default_factory=_incubation_weights)
    # Fitness
    fitness_model: str = "shared_wall"
    fitness: FitnessWeights = field(default_factory=FitnessWeights)
    # Physics
    squish_margin: float = 0.1
    overlap_epsilon: float = 0.01  # m², smaller overlaps are ignored
    use_inflation: bool = False
    inflation_rate: float = 1.05
    use_adjacency_pull: bool = False
    adjacency_pull_strength: float = 0.1
    global_target_ratio: Optional[float] = None  # overrides non-corridor ratio bounds
    # Boundary
    auto_scale_boundary: bool = False
    boundary_scale: float = 1.0
    strict_adjacency: bool = False

    def __post_init__(self):
        if self.population_size < 1:
            raise ValueError(f"population_size must be >= 1, got {self.population_size}")
        if self.max_generations < 1:
            raise ValueError(f"max_generations must be >= 1, got {self.max_generations}")
        if self.physics_iterations < 0 or self.warm_up_iterations < 0:
            raise ValueError("physics and warm-up iteration counts cannot be negative")
        if not 0 < self.survival_rate <= 1:
            raise ValueError(f"survival_rate must be in (0, 1], got {self.survival_rate}")
        if self.reproduction not in REPRODUCTION_MODES:
            raise ValueError(f"reproduction must be one of {REPRODUCTION_MODES}, got {self.reproduction!r}")
        if self.fresh_blood_interval < 1:
            raise ValueError(f"fresh_blood_interval must be >= 1, got {self.fresh_blood_interval}")
        if self.max_mutations < 1:
            raise ValueError(f"max_mutations must be >= 1, got {self.max_mutations}")


class PopulationManager:
    """Owns the Genes of one evolutionary run.

    Gene 0 of the initial population is the seed layout; the rest scatter the
    same rooms across the boundary box. All genes are settled and scored
    before the first generation, and the list is kept sorted best-first.
    """

    def __init__(self, seed_rooms: Sequence[RoomState], boundary, adjacencies,
                 config: EvolutionaryConfig, rng: Random):
        self.boundary = list(boundary)
        self.box = gu.aabb(self.boundary)
        self.adjacencies = list(adjacencies)
        self.config = config
        self.rng = rng
        self.fitness = make_fitness(config.fitness_model, config.fitness)
        self.generation = 0
        self.genes: List[Gene] = []
        self._initialize(seed_rooms)

    def _initialize(self, seed_rooms: Sequence[RoomState]) -> None:
        base = Gene(seed_rooms)
        self.genes.append(base)
        for _ in range(1, self.config.population_size):
            gene = base.clone()
            self._scatter(gene, reset_dims=False)
            self.genes.append(gene)
        for gene in self.genes:
            self._settle(gene, self.config.physics_iterations)
            self._evaluate(gene)
        self._sort()
        logger.debug(f"Initial population of {len(self.genes)}: best={self.genes[0].fitness:.4f}")

    def _scatter(self, gene: Gene, reset_dims: bool, margin: float = 0.0) -> None:
        min_x, min_y, max_x, max_y = self.box
        margin = min(margin, (max_x - min_x) / 4.0, (max_y - min_y) / 4.0)
        for room in gene.rooms:
            if reset_dims:
                low, high = ratio_bounds(room, self.config.global_target_ratio)
                room.resize_to_ratio(self.rng.uniform(low, high))
            lo_x, lo_y = min_x + margin, min_y + margin
            room.x = self.rng.uniform(lo_x, max(lo_x, max_x - margin - room.width))
            room.y = self.rng.uniform(lo_y, max(lo_y, max_y - margin - room.height))
        gene.invalidate()

    def _settle(self, gene: Gene, passes: int) -> None:
        cfg = self.config
        for _ in range(passes):
            if cfg.use_adjacency_pull:
                gene.apply_adjacency_pull(self.adjacencies, cfg.adjacency_pull_strength)
            if cfg.use_inflation:
                gene.apply_inflation(cfg.inflation_rate)
            gene.apply_squish_collisions(
                self.boundary,
                margin=cfg.squish_margin,
                overlap_epsilon=cfg.overlap_epsilon,
                global_target_ratio=cfg.global_target_ratio
            )

    def _evaluate(self, gene: Gene) -> float:
        if not gene.is_finite():
            logger.warning("Gene with non-finite coordinates scored as infinitely bad")
            gene.fitness = float('inf')
            gene.components = {}
            return gene.fitness
        return self.fitness.evaluate(gene, self.boundary, self.adjacencies)

    def _sort(self) -> None:
        self.genes.sort(key=lambda g: g.fitness)

    def annealed_strength(self) -> float:
        cfg = self.config
        if not cfg.use_simulated_annealing:
            return cfg.mutation_strength
        progress = min(1.0, self.generation / cfg.max_generations)
        return cfg.mutation_strength * (1.0 - progress)

    def _mutate(self, gene: Gene, weights: MutationWeights, strength: float) -> List[str]:
        cfg = self.config
        return mutate_gene(
            gene, self.rng, weights, self.boundary,
            adjacencies=self.adjacencies,
            strength=strength,
            mutation_rate=cfg.mutation_rate,
            aspect_ratio_mutation_rate=cfg.aspect_ratio_mutation_rate,
            partner_bias=cfg.partner_bias,
            center_gravity=cfg.center_gravity,
            global_target_ratio=cfg.global_target_ratio,
            max_mutations=cfg.max_mutations
        )

    def _offspring(self, strength: float) -> List[Gene]:
        cfg = self.config
        children = []
        if cfg.reproduction == "mutation":
            for parent in self.genes:
                child = parent.clone()
                self._mutate(child, cfg.mutation_weights, strength)
                children.append(child)
            return children

        top = self.genes[:max(1, len(self.genes) // 2)]
        for _ in range(max(1, math.ceil(cfg.population_size * cfg.crossover_rate))):
            parent_a = self.rng.pick(top)
            parent_b = self.rng.pick(top)
            child = crossover(parent_a, parent_b, self.rng)
            self._mutate(child, cfg.mutation_weights, strength)
            nudge(child, self.rng, self.adjacencies, cfg.mutation_rate, strength,
                  cfg.aspect_ratio_mutation_rate, cfg.partner_bias, cfg.center_gravity,
                  cfg.global_target_ratio)
            children.append(child)
        return children

    def iterate(self) -> None:
        """Run one generation."""
        cfg = self.config
        strength = self.annealed_strength()

        offspring = self._offspring(strength)
        for child in offspring:
            self._settle(child, cfg.warm_up_iterations + cfg.physics_iterations)
            self._evaluate(child)

        pool = self.genes + offspring
        pool.sort(key=lambda g: g.fitness)
        keep = max(1, math.ceil(len(pool) * cfg.survival_rate))
        survivors = pool[:keep]

        refilled = []
        while len(refilled) < cfg.population_size:
            refilled.append(survivors[len(refilled) % len(survivors)].clone())
        self.genes = refilled
        self.generation += 1

        if cfg.use_fresh_blood and self.generation % cfg.fresh_blood_interval == 0:
            self.inject_fresh_blood()
        self._sort()
        logger.debug(
            f"Generation {self.generation}: best={self.genes[0].fitness:.4f} "
            f"worst={self.genes[-1].fitness:.4f} strength={strength:.3f}"
        )

    def inject_fresh_blood(self) -> int:
        """Replace the worst quarter with scattered, incubated newcomers.

        The best gene is never replaced. Returns how many genes were swapped in.
        """
        self._sort()
        n = len(self.genes)
        count = min(max(1, n // 4), n - 1)
        if count <= 0:
            return 0
        self.genes = self.genes[:n - count]
        template = self.genes[0]
        for _ in range(count):
            fresh = template.clone()
            self._scatter(fresh, reset_dims=True, margin=self.config.fresh_blood_margin)
            self.genes.append(self.incubate(fresh))
        logger.info(f"Generation {self.generation}: injected {count} fresh genes")
        return count

    def incubate(self, gene: Gene) -> Gene:
        """Private mutate+settle loop that keeps only improvements."""
        cfg = self.config
        self._settle(gene, cfg.physics_iterations)
        self._evaluate(gene)
        best = gene
        for _ in range(cfg.fresh_blood_warm_up):
            candidate = best.clone()
            self._mutate(candidate, cfg.incubation_weights, cfg.mutation_strength * 2.0)
            self._settle(candidate, 1)
            self._evaluate(candidate)
            if candidate.fitness < best.fitness:
                best = candidate
        return best

    def get_best(self) -> Gene:
        return min(self.genes, key=lambda g: g.fitness)

    def get_all(self) -> List[Gene]:
        return list(self.genes)

    def get_stats(self) -> Dict:
        if not self.genes:
            inf = float('inf')
            return {"generation": self.generation, "best_fitness": inf,
                    "worst_fitness": inf, "avg_fitness": inf}
        fitnesses = np.array([g.fitness for g in self.genes], dtype=float)
        best = self.get_best()
        stats = {
            "generation": self.generation,
            "best_fitness": float(fitnesses.min()),
            "worst_fitness": float(fitnesses.max()),
            "avg_fitness": float(fitnesses.mean()),
        }
        for name, value in best.components.items():
            stats[f"best_{name}"] = value
        return stats
