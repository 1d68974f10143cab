"""
Fitness strategies for continuous layouts (lower is better).

Both strategies share the geometric and area-deviation terms and differ in how
adjacency compliance is scored:

- SharedWallFitness: length of the wall two connected rooms share, with a
  large distance-scaled penalty when they do not touch at all.
- DistanceFitness: inverse weighted centre distance blended with the
  geometric term through ``fitness_balance``.
"""
from typing import Dict, Sequence
from dataclasses import dataclass
import logging
import math
from ...utils import geometry_utils as gu
from .gene import Gene, RoomState

logger = logging.getLogger(__name__)

OUT_OF_BOUNDS_MULTIPLIER = 100.0
MIN_DISTANCE = 1e-3
NOT_TOUCHING_BASE = 10.0


@dataclass
class FitnessWeights:
    geometric: float = 10.0  # overlap + out-of-bounds
    shared_wall: float = 1000.0  # adjacency compliance
    area: float = 20.0  # |actual - target| area
    # Shared wall model
    shared_wall_target: float = 1.5  # metres of wall a connection should share
    wall_tolerance: float = 0.1  # max edge gap still counted as a shared wall
    wall_penalty_exponent: float = 2.0
    # Overlap shaping
    nonlinear_overlap: bool = True
    overlap_exponent: float = 1.5
    area_deviation_squared: bool = False
    normalize_components: bool = False
    # Distance model
    fitness_balance: float = 0.5  # 0 = geometry only, 1 = topology only
    quadratic_distance: bool = False


def measure_shared_wall(room_a: RoomState, room_b: RoomState, tolerance: float = 0.1) -> float:
    """Length of collinear edge two axis-aligned rooms share, 0.0 if none."""
    a_left, a_bottom, a_right, a_top = room_a.bounds
    b_left, b_bottom, b_right, b_top = room_b.bounds

    if abs(a_right - b_left) < tolerance or abs(a_left - b_right) < tolerance:
        low = max(a_bottom, b_bottom)
        high = min(a_top, b_top)
        if high > low:
            return high - low

    if abs(a_top - b_bottom) < tolerance or abs(a_bottom - b_top) < tolerance:
        low = max(a_left, b_left)
        high = min(a_right, b_right)
        if high > low:
            return high - low

    return 0.0


def gap_distance(room_a: RoomState, room_b: RoomState) -> float:
    """Edge-to-edge distance, 0.0 when touching or overlapping."""
    (ax, ay), (bx, by) = room_a.center, room_b.center
    gap_x = max(0.0, abs(ax - bx) - (room_a.width + room_b.width) / 2.0)
    gap_y = max(0.0, abs(ay - by) - (room_a.height + room_b.height) / 2.0)
    return math.hypot(gap_x, gap_y)


def center_distance(room_a: RoomState, room_b: RoomState) -> float:
    return gu.distance(room_a.center, room_b.center)


def overlap_and_outside(rooms: Sequence[RoomState], boundary: Sequence[Sequence[float]],
                        weights: FitnessWeights) -> Dict[str, float]:
    total_overlap = 0.0
    n = len(rooms)
    for i in range(n):
        for j in range(i + 1, n):
            area = gu.rect_intersection_area(rooms[i].bounds, rooms[j].bounds)
            if area <= 0:
                continue
            if weights.nonlinear_overlap:
                total_overlap += area ** weights.overlap_exponent
            else:
                total_overlap += area

    total_outside = 0.0
    for room in rooms:
        inside = gu.intersection_area(boundary, room.polygon())
        total_outside += max(0.0, room.area - inside)

    return {
        "overlap": total_overlap,
        "out_of_bounds": total_outside,
        "geometric": total_overlap + OUT_OF_BOUNDS_MULTIPLIER * total_outside,
    }


def area_deviation(rooms: Sequence[RoomState], squared: bool = False) -> float:
    total = 0.0
    for room in rooms:
        diff = abs(room.area - room.target_area)
        total += diff * diff if squared else diff
    return total


class SharedWallFitness:
    """Canonical fitness: geometry + shared-wall compliance + area deviation."""

    name = "shared_wall"

    def __init__(self, weights: FitnessWeights = None):
        self.weights = weights or FitnessWeights()

    def shared_wall_penalty(self, rooms: Dict[str, RoomState], adjacencies) -> float:
        w = self.weights
        base = max(NOT_TOUCHING_BASE, w.shared_wall_target)
        total = 0.0
        for adj in adjacencies:
            room_a = rooms.get(adj.a)
            room_b = rooms.get(adj.b)
            if room_a is None or room_b is None:
                continue
            wall = measure_shared_wall(room_a, room_b, w.wall_tolerance)
            if wall >= w.shared_wall_target:
                continue
            if wall > 0:
                deficit = w.shared_wall_target - wall
                total += (deficit * 0.1 * adj.weight) ** w.wall_penalty_exponent
            else:
                gap = gap_distance(room_a, room_b)
                total += ((base + gap) * adj.weight) ** w.wall_penalty_exponent
        return total

    def evaluate(self, gene: Gene, boundary, adjacencies) -> float:
        w = self.weights
        components = overlap_and_outside(gene.rooms, boundary, w)
        components["shared_wall"] = self.shared_wall_penalty(gene.room_map(), adjacencies)
        components["area_deviation"] = area_deviation(gene.rooms, w.area_deviation_squared)

        geometric = components["geometric"]
        wall = components["shared_wall"]
        area = components["area_deviation"]
        if w.normalize_components:
            geometric /= max(1, len(gene.rooms))
            area /= max(1, len(gene.rooms))
            wall /= max(1, len(adjacencies))

        gene.components = components
        gene.fitness = w.geometric * geometric + w.shared_wall * wall + w.area * area
        return gene.fitness


class DistanceFitness:
    """Legacy fitness blending geometric validity with inverse connection distance."""

    name = "distance"

    def __init__(self, weights: FitnessWeights = None):
        self.weights = weights or FitnessWeights()

    def connection_distance(self, rooms: Dict[str, RoomState], adjacencies):
        """Weighted centre distance summed over connections, and how many resolved."""
        total = 0.0
        count = 0
        for adj in adjacencies:
            room_a = rooms.get(adj.a)
            room_b = rooms.get(adj.b)
            if room_a is None or room_b is None:
                continue
            dist = center_distance(room_a, room_b)
            if self.weights.quadratic_distance:
                dist = dist * dist
            total += dist * adj.weight
            count += 1
        return total, count

    def evaluate(self, gene: Gene, boundary, adjacencies) -> float:
        w = self.weights
        components = overlap_and_outside(gene.rooms, boundary, w)
        distance, resolved = self.connection_distance(gene.room_map(), adjacencies)
        topological = 1.0 / max(distance, MIN_DISTANCE) if resolved else 0.0
        components["distance"] = distance
        components["topological"] = topological
        components["area_deviation"] = area_deviation(gene.rooms, w.area_deviation_squared)

        balance = min(1.0, max(0.0, w.fitness_balance))
        blended = components["geometric"] * (1.0 - balance) + topological * balance
        gene.components = components
        gene.fitness = blended + w.area * components["area_deviation"]
        return gene.fitness


FITNESS_MODELS = {
    SharedWallFitness.name: SharedWallFitness,
    DistanceFitness.name: DistanceFitness,
}


def make_fitness(model: str, weights: FitnessWeights = None):
    try:
        return FITNESS_MODELS[model](weights)
    except KeyError:
        raise ValueError(f"unknown fitness model {model!r}, expected one of {sorted(FITNESS_MODELS)}")
