"""
Grid-based discrete placement solver.

Rooms are placed greedily (most connected first) onto a rasterized boundary,
then improved by iterated local search: remove a random subset, re-place the
unplaced rooms and keep the result only if the global score strictly improves.
Corridor cells are painted around rooms that ask for them and dead-end
corridor cells are pruned at the end.
"""
from typing import Dict, List, Optional, Sequence, Tuple
from dataclasses import dataclass, field
import logging
import math
import networkx as nx
import numpy as np
from ...schemas.rooms import Adjacency, CorridorRule, RoomRequest, filter_adjacencies
from ...utils import geometry_utils as gu
from ...utils.random import Random
from .gene import RoomState
from .grid import CORRIDOR, EMPTY, OUT_OF_BOUNDS, GridBuffer

logger = logging.getLogger(__name__)

PLACED_ROOM_BONUS = 100.0


@dataclass
class DiscreteWeights:
    compactness: float = 2.0  # per perimeter cell touching a room or corridor
    adjacency: float = 3.0  # per unit of mean weighted neighbour distance
    corridor: float = 0.5  # per perimeter cell touching a corridor


@dataclass
class DiscreteConfig:
    grid_resolution: float = 1.0  # metres per cell
    max_iterations: int = 100
    mutation_rate: float = 0.3  # fraction of placed rooms removed per iteration
    weights: DiscreteWeights = field(default_factory=DiscreteWeights)
    strict_adjacency: bool = False

    def __post_init__(self):
        if self.grid_resolution <= 0:
            raise ValueError(f"grid_resolution must be positive, got {self.grid_resolution}")
        if self.max_iterations < 0:
            raise ValueError(f"max_iterations cannot be negative, got {self.max_iterations}")
        if not 0 <= self.mutation_rate <= 1:
            raise ValueError(f"mutation_rate must be in [0, 1], got {self.mutation_rate}")


@dataclass(frozen=True)
class PlacedRoom:
    id: str
    x: int  # cells
    y: int
    width: int
    height: int
    room_index: int

    @property
    def center(self) -> Tuple[float, float]:
        return (self.x + self.width / 2.0, self.y + self.height / 2.0)


@dataclass
class PlacementCandidate:
    x: int
    y: int
    width: int
    height: int
    score: float


def _summed_area(mask: np.ndarray) -> np.ndarray:
    """Summed-area table with a leading zero row and column."""
    table = np.zeros((mask.shape[0] + 1, mask.shape[1] + 1), dtype=np.int64)
    table[1:, 1:] = mask.astype(np.int64).cumsum(axis=0).cumsum(axis=1)
    return table


def _window_sum(table: np.ndarray, r0, r1, c0, c1) -> np.ndarray:
    return table[r1, c1] - table[r0, c1] - table[r1, c0] + table[r0, c0]


class DiscreteSolver:
    """Places rooms as integer-cell rectangles on a rasterized boundary."""

    def __init__(self, boundary: Sequence[Sequence[float]], rooms: Sequence[RoomRequest],
                 adjacencies: Sequence[Adjacency] = (), config: Optional[DiscreteConfig] = None,
                 seed: Optional[int] = None):
        self.config = config or DiscreteConfig()
        self.rng = Random(seed)
        self.boundary = gu.validate_boundary(boundary)
        self.rooms: List[RoomRequest] = list(rooms)
        ids = [r.id for r in self.rooms]
        if len(set(ids)) != len(ids):
            raise ValueError(f"room ids must be unique, got {ids}")
        self.adjacencies = filter_adjacencies(adjacencies, ids, self.config.strict_adjacency)
        self.room_by_id: Dict[str, RoomRequest] = {r.id: r for r in self.rooms}
        self.room_index: Dict[str, int] = {r.id: i + 1 for i, r in enumerate(self.rooms)}

        self.graph = nx.MultiGraph()
        self.graph.add_nodes_from(ids)
        for adj in self.adjacencies:
            self.graph.add_edge(adj.a, adj.b, weight=adj.weight)
        self._neighbours: Dict[str, List[Tuple[str, float]]] = {rid: [] for rid in ids}
        for adj in self.adjacencies:
            self._neighbours[adj.a].append((adj.b, adj.weight))
            if adj.a != adj.b:
                self._neighbours[adj.b].append((adj.a, adj.weight))

        min_x, min_y, max_x, max_y = gu.aabb(self.boundary)
        res = self.config.grid_resolution
        width = max(1, math.ceil((max_x - min_x) / res - 1e-9))
        height = max(1, math.ceil((max_y - min_y) / res - 1e-9))
        self.grid = GridBuffer(width, height, origin=(min_x, min_y), resolution=res)
        self.grid.rasterize_polygon(self.boundary)

        self.placed_rooms: Dict[str, PlacedRoom] = {}
        self.best_grid: Optional[GridBuffer] = None
        self.best_score = float('-inf')
        logger.info(
            f"DiscreteSolver: {len(self.rooms)} rooms on a {width}x{height} grid "
            f"(resolution {res}), seed {self.rng.seed}"
        )

    def sort_rooms_by_connectivity(self) -> List[RoomRequest]:
        """Most connected rooms first; ties keep input order."""
        degree = dict(self.graph.degree())
        return sorted(self.rooms, key=lambda r: -degree.get(r.id, 0))

    def room_dimensions(self, room: RoomRequest) -> Tuple[int, int]:
        ratio = self.rng.uniform(room.min_ratio, room.max_ratio)
        res = self.config.grid_resolution
        area_cells = room.target_area / (res * res)
        width = max(1, math.ceil(math.sqrt(room.target_area * ratio) / res))
        height = max(1, math.ceil(area_cells / width))
        return width, height

    def find_best_placement(self, room: RoomRequest) -> Optional[PlacementCandidate]:
        """Scan every origin where the room fits on EMPTY cells and keep the best score.

        Ties go to the first origin in row-major order.
        """
        width, height = self.room_dimensions(room)
        grid_w, grid_h = self.grid.width, self.grid.height
        if width > grid_w or height > grid_h:
            return None

        cells = self.grid.cells
        ys = np.arange(grid_h - height + 1)[:, None]
        xs = np.arange(grid_w - width + 1)[None, :]

        blocked = _summed_area(cells != EMPTY)
        fits = _window_sum(blocked, ys, ys + height, xs, xs + width) == 0
        if not fits.any():
            return None

        # Padded by one cell so perimeter strips never index outside the array;
        # padding counts as out of bounds and is never a neighbour.
        occupied = _summed_area(np.pad((cells > 0) | (cells == CORRIDOR), 1))
        corridor = _summed_area(np.pad(cells == CORRIDOR, 1))
        compactness = self._perimeter_sum(occupied, xs, ys, width, height)
        corridor_touch = self._perimeter_sum(corridor, xs, ys, width, height)

        w = self.config.weights
        score = compactness * w.compactness + corridor_touch * w.corridor
        score = score - self._adjacency_distance(room.id, xs + width / 2.0, ys + height / 2.0) * w.adjacency
        score = np.where(fits, score, -np.inf)

        flat = int(np.argmax(score))
        y, x = divmod(flat, score.shape[1])
        return PlacementCandidate(x=x, y=y, width=width, height=height, score=float(score[y, x]))

    @staticmethod
    def _perimeter_sum(table: np.ndarray, xs, ys, width: int, height: int) -> np.ndarray:
        # grid cell (x, y) sits at padded (y + 1, x + 1)
        top = _window_sum(table, ys, ys + 1, xs + 1, xs + width + 1)
        bottom = _window_sum(table, ys + height + 1, ys + height + 2, xs + 1, xs + width + 1)
        left = _window_sum(table, ys + 1, ys + height + 1, xs, xs + 1)
        right = _window_sum(table, ys + 1, ys + height + 1, xs + width + 1, xs + width + 2)
        return (top + bottom + left + right).astype(float)

    def _adjacency_distance(self, room_id: str, cx, cy):
        """Mean weighted centre distance to already placed neighbours (0 if none)."""
        total = 0.0
        count = 0
        for neighbour_id, weight in self._neighbours.get(room_id, []):
            neighbour = self.placed_rooms.get(neighbour_id)
            if neighbour is None or neighbour_id == room_id:
                continue
            ncx, ncy = neighbour.center
            total = total + np.hypot(cx - ncx, cy - ncy) * weight
            count += 1
        if count == 0:
            return 0.0
        return total / count

    def place_room(self, room: RoomRequest, x: int, y: int, width: int, height: int) -> PlacedRoom:
        index = self.room_index[room.id]
        self.grid.fill_rect(x, y, width, height, index)
        if room.corridor_rule != CorridorRule.NONE:
            self.paint_corridors(x, y, width, height, room.corridor_rule)
        placed = PlacedRoom(id=room.id, x=x, y=y, width=width, height=height, room_index=index)
        self.placed_rooms[room.id] = placed
        return placed

    def paint_corridors(self, x: int, y: int, w: int, h: int, rule: CorridorRule) -> int:
        """Paint corridor cells onto EMPTY cells only; returns cells painted."""
        targets: List[Tuple[int, int]] = []
        if rule >= CorridorRule.ONE_SIDE:
            targets += [(px, y + h) for px in range(x, x + w)]
        if rule >= CorridorRule.TWO_SIDES:
            targets += [(x + w, py) for py in range(y, y + h + 1)]
        if rule >= CorridorRule.ALL_SIDES:
            targets += [(px, y - 1) for px in range(x - 1, x + w + 1)]
            targets += [(px, y + h) for px in range(x - 1, x + w + 1)]
            targets += [(x - 1, py) for py in range(y, y + h)]
            targets += [(x + w, py) for py in range(y, y + h)]

        painted = 0
        for px, py in targets:
            if self.grid.get(px, py) == EMPTY:
                self.grid.set(px, py, CORRIDOR)
                painted += 1
        return painted

    def remove_room(self, room_id: str) -> None:
        """Clear a room's cells; its corridors stay until pruned."""
        placed = self.placed_rooms.pop(room_id, None)
        if placed is None:
            return
        self.grid.fill_rect(placed.x, placed.y, placed.width, placed.height, EMPTY)

    def calculate_global_score(self) -> float:
        score = PLACED_ROOM_BONUS * len(self.placed_rooms)
        for adj in self.adjacencies:
            room_a = self.placed_rooms.get(adj.a)
            room_b = self.placed_rooms.get(adj.b)
            if room_a is None or room_b is None:
                continue
            score -= gu.distance(room_a.center, room_b.center) * adj.weight
        return score

    def _place_if_possible(self, room: RoomRequest) -> bool:
        candidate = self.find_best_placement(room)
        if candidate is None:
            return False
        self.place_room(room, candidate.x, candidate.y, candidate.width, candidate.height)
        return True

    def solve(self) -> GridBuffer:
        """Greedy seeding, iterated local search, then dead-end pruning."""
        for room in self.sort_rooms_by_connectivity():
            if not self._place_if_possible(room):
                logger.debug(f"No initial fit for room {room.id!r}")

        self.best_grid = self.grid.clone()
        self.best_score = self.calculate_global_score()
        logger.info(f"Greedy placement: {len(self.placed_rooms)}/{len(self.rooms)} rooms, score {self.best_score:.2f}")

        for iteration in range(self.config.max_iterations):
            snapshot = self.grid.clone()
            snapshot_rooms = dict(self.placed_rooms)

            placed_ids = list(self.placed_rooms.keys())
            num_to_remove = math.ceil(len(placed_ids) * self.config.mutation_rate)
            for room_id in self.rng.shuffle(placed_ids)[:num_to_remove]:
                self.remove_room(room_id)

            for room in self.rooms:
                if room.id not in self.placed_rooms:
                    self._place_if_possible(room)

            score = self.calculate_global_score()
            if score > self.best_score:
                self.best_score = score
                self.best_grid = self.grid.clone()
                logger.info(f"Iteration {iteration}: new best score {score:.2f}")
            else:
                self.grid = snapshot
                self.placed_rooms = snapshot_rooms
            logger.debug(f"Iteration {iteration}: score {score:.2f} (best {self.best_score:.2f})")

        self.prune_dead_ends()
        if self.best_grid is not self.grid:
            self.prune_dead_ends(self.best_grid)

        unplaced = self.get_unplaced_room_ids()
        if unplaced:
            logger.warning(f"Rooms that never fit on the grid: {unplaced}")
        return self.best_grid

    def count_non_empty_neighbours(self, x: int, y: int, grid: Optional[GridBuffer] = None) -> int:
        grid = grid or self.grid
        count = 0
        for nx_, ny_ in ((x + 1, y), (x - 1, y), (x, y + 1), (x, y - 1)):
            value = grid.get(nx_, ny_)
            if value != EMPTY and value != OUT_OF_BOUNDS:
                count += 1
        return count

    def prune_dead_ends(self, grid: Optional[GridBuffer] = None) -> int:
        """Clear corridor cells with at most one occupied neighbour until stable.

        Returns the number of cells cleared.
        """
        grid = grid or self.grid
        cleared = 0
        changed = True
        while changed:
            changed = False
            for y in range(grid.height):
                for x in range(grid.width):
                    if grid.get(x, y) != CORRIDOR:
                        continue
                    if self.count_non_empty_neighbours(x, y, grid) <= 1:
                        grid.set(x, y, EMPTY)
                        cleared += 1
                        changed = True
        if cleared:
            logger.debug(f"Pruned {cleared} dead-end corridor cells")
        return cleared

    def get_grid(self) -> GridBuffer:
        return self.grid

    def get_best_grid(self) -> Optional[GridBuffer]:
        return self.best_grid

    def get_best_score(self) -> float:
        return self.best_score

    def get_placed_rooms(self) -> Dict[str, PlacedRoom]:
        return dict(self.placed_rooms)

    def get_unplaced_room_ids(self) -> List[str]:
        return [r.id for r in self.rooms if r.id not in self.placed_rooms]

    def to_room_states(self) -> List[RoomState]:
        """Placed rooms as world-space rectangles (grid origin + cells * resolution)."""
        res = self.grid.resolution
        states = []
        for placed in self.placed_rooms.values():
            request = self.room_by_id[placed.id]
            x, y = self.grid.cell_to_world(placed.x, placed.y)
            states.append(RoomState(
                id=placed.id,
                x=x,
                y=y,
                width=placed.width * res,
                height=placed.height * res,
                target_area=request.target_area,
                min_ratio=request.min_ratio,
                max_ratio=request.max_ratio
            ))
        return states
