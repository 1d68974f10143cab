"""
Hybrid floor plan pipeline: discrete grid placement seeds the evolutionary refinement.
"""
from typing import Dict, List, Optional, Sequence
from dataclasses import dataclass, field
import logging
import math
from ..schemas.rooms import Adjacency, RoomRequest
from ..utils import geometry_utils as gu
from ..utils.random import Random, time_seed
from .impl.discrete_solver_impl import DiscreteConfig, DiscreteSolver, PlacedRoom
from .impl.evolutionary_solver_impl import EvolutionarySolver
from .impl.gene import RoomState
from .impl.grid import GridBuffer
from .impl.population import EvolutionaryConfig

logger = logging.getLogger(__name__)

PLACEMENT_ATTEMPTS = 10


@dataclass
class FloorPlanResult:
    grid: GridBuffer
    placed_rooms: Dict[str, PlacedRoom]
    rooms: List[RoomState]
    unplaced: List[str] = field(default_factory=list)
    fitness: float = float('inf')
    generations: int = 0
    converged: bool = False
    stats: Dict = field(default_factory=dict)


def room_state_from_request(request: RoomRequest, cx: float, cy: float, ratio: float) -> RoomState:
    width = math.sqrt(request.target_area * ratio)
    height = request.target_area / width
    return RoomState(
        id=request.id,
        x=cx - width / 2.0,
        y=cy - height / 2.0,
        width=width,
        height=height,
        target_area=request.target_area,
        min_ratio=request.min_ratio,
        max_ratio=request.max_ratio
    )


def random_interior_point(rng: Random, boundary) -> gu.Point:
    min_x, min_y, max_x, max_y = gu.aabb(boundary)
    point = gu.centroid(boundary)
    for _ in range(PLACEMENT_ATTEMPTS):
        candidate = (rng.uniform(min_x, max_x), rng.uniform(min_y, max_y))
        if gu.point_in_polygon(candidate, boundary):
            return candidate
        point = candidate
    return gu.closest_point_on_boundary(point, boundary)


def room_states_from_requests(requests: Sequence[RoomRequest], rng: Random, boundary) -> List[RoomState]:
    """Target-area rectangles with random in-bound ratios centred at random interior points."""
    states = []
    for request in requests:
        ratio = rng.uniform(request.min_ratio, request.max_ratio)
        cx, cy = random_interior_point(rng, boundary)
        states.append(room_state_from_request(request, cx, cy, ratio))
    return states


def continuous_rooms(solver: DiscreteSolver, requests: Sequence[RoomRequest], rng: Random,
                     boundary) -> List[RoomState]:
    """World-space seed rooms, in input order, for the evolutionary phase.

    Placed rooms keep their grid centre and aspect (clamped to their bounds)
    at exactly their target area; unplaced rooms start at random interior points.
    """
    placed = {s.id: s for s in solver.to_room_states()}
    rooms = []
    for request in requests:
        state = placed.get(request.id)
        if state is None:
            ratio = rng.uniform(request.min_ratio, request.max_ratio)
            cx, cy = random_interior_point(rng, boundary)
            logger.info(f"Room {request.id!r} was not placed on the grid; seeding it at ({cx:.1f}, {cy:.1f})")
        else:
            ratio = min(max(state.width / state.height, request.min_ratio), request.max_ratio)
            cx, cy = state.center
        rooms.append(room_state_from_request(request, cx, cy, ratio))
    return rooms


def solve_floor_plan(boundary, rooms: Sequence[RoomRequest], adjacencies: Sequence[Adjacency] = (),
                     discrete_config: Optional[DiscreteConfig] = None,
                     evolutionary_config: Optional[EvolutionaryConfig] = None,
                     seed: Optional[int] = None, generations: Optional[int] = None) -> FloorPlanResult:
    """Run the discrete phase, then refine its layout with the evolutionary solver."""
    if seed is None:
        seed = time_seed()
    evolutionary_config = evolutionary_config or EvolutionaryConfig()

    logger.info(f"Discrete phase: {len(rooms)} rooms, seed {seed}")
    discrete = DiscreteSolver(boundary, rooms, adjacencies, discrete_config, seed=seed)
    grid = discrete.solve()
    unplaced = discrete.get_unplaced_room_ids()

    rng = Random(seed + 1)
    seed_rooms = continuous_rooms(discrete, rooms, rng, discrete.boundary)

    logger.info(f"Continuous phase: {len(seed_rooms)} rooms ({len(unplaced)} not placed on the grid)")
    solver = EvolutionarySolver(seed_rooms, discrete.boundary, discrete.adjacencies,
                                evolutionary_config, seed=seed + 2)
    ran = solver.simulate(generations if generations is not None else evolutionary_config.max_generations)
    best = solver.get_best()

    result = FloorPlanResult(
        grid=grid,
        placed_rooms=discrete.get_placed_rooms(),
        rooms=solver.get_rooms(),
        unplaced=unplaced,
        fitness=best.fitness,
        generations=ran,
        converged=solver.has_converged(),
        stats=solver.get_stats()
    )
    logger.info(f"Floor plan done: fitness {result.fitness:.4f} after {ran} generations")
    return result
