"""
Helper functions for computing layout quality metrics.
"""
from typing import Dict, Sequence
import numpy as np
from ..utils import geometry_utils as gu
from .impl.fitness import measure_shared_wall
from .impl.gene import RoomState


def compute_total_overlap(rooms: Sequence[RoomState]) -> float:
    """Total intersection area over all room pairs."""
    total = 0.0
    for i, r1 in enumerate(rooms):
        for r2 in rooms[i + 1:]:
            total += gu.rect_intersection_area(r1.bounds, r2.bounds)
    return total


def compute_boundary_violation(rooms: Sequence[RoomState], boundary) -> float:
    """Room area lying outside the boundary polygon."""
    total = 0.0
    for room in rooms:
        total += max(0.0, room.area - gu.intersection_area(boundary, room.polygon()))
    return total


def compute_adjacency_score(rooms: Sequence[RoomState], adjacencies, tolerance: float = 0.1) -> float:
    """Fraction (0-1) of resolvable adjacencies whose rooms share a wall."""
    by_id = {r.id: r for r in rooms}
    satisfied = 0
    counted = 0
    for adj in adjacencies:
        room_a = by_id.get(adj.a)
        room_b = by_id.get(adj.b)
        if room_a is None or room_b is None:
            continue
        counted += 1
        if measure_shared_wall(room_a, room_b, tolerance) > 0:
            satisfied += 1
    if counted == 0:
        return 1.0
    return satisfied / counted


def compute_area_error(rooms: Sequence[RoomState]) -> float:
    """Mean relative deviation from target area."""
    if not rooms:
        return 0.0
    errors = [abs(r.area - r.target_area) / r.target_area for r in rooms]
    return float(np.mean(errors))


def summarize_layout(rooms: Sequence[RoomState], boundary, adjacencies) -> Dict[str, float]:
    return {
        "rooms": len(rooms),
        "total_overlap": compute_total_overlap(rooms),
        "boundary_violation": compute_boundary_violation(rooms, boundary),
        "adjacency_score": compute_adjacency_score(rooms, adjacencies),
        "area_error": compute_area_error(rooms),
    }
