"""
Evolutionary floor plan solver: step/simulate driver around the population.
"""
from typing import Dict, List, Optional, Sequence
import logging
import math
import pandas as pd
from ...utils import geometry_utils as gu
from ...utils.random import Random
from ...schemas.rooms import filter_adjacencies
from .gene import Gene, RoomState
from .population import EvolutionaryConfig, PopulationManager

logger = logging.getLogger(__name__)


class EvolutionarySolver:
    """Population-based refinement of continuous room rectangles.

    ``step()`` runs exactly one generation and is a no-op once
    ``max_generations`` is reached, so N calls to ``step()`` and one call to
    ``simulate(N)`` leave the solver in the same state.
    """

    def __init__(self, rooms: Sequence[RoomState], boundary, adjacencies=(),
                 config: Optional[EvolutionaryConfig] = None, seed: Optional[int] = None):
        self.config = config or EvolutionaryConfig()
        self.rng = Random(seed)
        if not rooms:
            raise ValueError("at least one room is required")
        ids = [r.id for r in rooms]
        if len(set(ids)) != len(ids):
            raise ValueError(f"room ids must be unique, got {ids}")
        for room in rooms:
            if not (math.isfinite(room.target_area) and room.target_area > 0):
                raise ValueError(f"room {room.id!r} needs a positive target_area, got {room.target_area}")
            if not 0 < room.min_ratio <= room.max_ratio:
                raise ValueError(
                    f"room {room.id!r} has invalid ratio bounds [{room.min_ratio}, {room.max_ratio}]"
                )

        self.boundary = gu.validate_boundary(boundary)
        if self.config.auto_scale_boundary:
            self.boundary = self._scale_boundary(rooms)
        self.adjacencies = filter_adjacencies(adjacencies, ids, self.config.strict_adjacency)

        seed_rooms = [r.copy() for r in rooms]
        self.population = PopulationManager(seed_rooms, self.boundary, self.adjacencies,
                                            self.config, self.rng)
        self._history: List[Dict] = [self.population.get_stats()]
        logger.info(
            f"EvolutionarySolver ready: {len(rooms)} rooms, {len(self.adjacencies)} adjacencies, "
            f"population {self.config.population_size}, seed {self.rng.seed}"
        )

    def _scale_boundary(self, rooms: Sequence[RoomState]) -> List[gu.Point]:
        total_target = sum(r.target_area for r in rooms)
        factor = math.sqrt(total_target / gu.polygon_area(self.boundary)) * self.config.boundary_scale
        logger.info(f"Scaling boundary by {factor:.3f} to fit {total_target:.1f} m² of rooms")
        return gu.scale_polygon(self.boundary, factor)

    def step(self) -> bool:
        """Advance one generation; False when the generation budget is spent."""
        if self.has_reached_max_generations():
            return False
        self.population.iterate()
        self._history.append(self.population.get_stats())
        return True

    def simulate(self, generations: int) -> int:
        """Run up to ``generations`` steps; returns how many actually ran."""
        ran = 0
        for _ in range(generations):
            if not self.step():
                break
            ran += 1
        return ran

    def get_best(self) -> Gene:
        return self.population.get_best()

    def get_population(self) -> List[Gene]:
        return self.population.get_all()

    def get_state(self) -> List[Dict]:
        """Best layout as plain dicts; velocities are always zero."""
        state = []
        for room in self.get_best().rooms:
            entry = room.to_dict()
            entry["vx"] = 0.0
            entry["vy"] = 0.0
            state.append(entry)
        return state

    def get_rooms(self) -> List[RoomState]:
        return [r.copy() for r in self.get_best().rooms]

    def get_stats(self) -> Dict:
        return self.population.get_stats()

    def get_history(self) -> pd.DataFrame:
        return pd.DataFrame(self._history).set_index("generation")

    def has_converged(self, threshold: float = 0.01) -> bool:
        stats = self.get_stats()
        if stats["best_fitness"] < threshold:
            return True
        return stats["worst_fitness"] - stats["best_fitness"] < threshold

    def get_kinetic_energy(self) -> float:
        """Best fitness, kept under its older name."""
        return self.get_best().fitness

    def get_generation(self) -> int:
        return self.population.generation

    def get_boundary(self) -> List[gu.Point]:
        return list(self.boundary)

    def has_reached_max_generations(self) -> bool:
        return self.population.generation >= self.config.max_generations
