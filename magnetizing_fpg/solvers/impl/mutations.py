"""
Mutation and crossover operators for continuous layouts.

Every operator edits a Gene in place and draws all randomness from the
caller's ``Random`` so runs stay reproducible.
"""
from typing import Dict, List, Optional, Sequence
from dataclasses import dataclass, fields
import logging
import math
from ...utils import geometry_utils as gu
from ...utils.random import Random
from .gene import Gene, ratio_bounds

logger = logging.getLogger(__name__)

TELEPORT_ATTEMPTS = 10
ROTATE_MIN_DEGREES = 25.0
ROTATE_MAX_DEGREES = 335.0
PARTNER_PULL = 0.25  # fraction of the way toward an adjacency partner


@dataclass
class MutationWeights:
    teleport: float = 0.3
    swap: float = 0.4
    rotate: float = 0.3
    reshape: float = 0.1
    nudge: float = 0.2

    def total(self) -> float:
        return sum(max(0.0, getattr(self, f.name)) for f in fields(self))

    def choose(self, rng: Random) -> Optional[str]:
        """Weighted pick of an operator name, None when every weight is zero."""
        total = self.total()
        if total <= 0:
            return None
        threshold = rng.random() * total
        running = 0.0
        name = None
        for f in fields(self):
            weight = max(0.0, getattr(self, f.name))
            if weight <= 0:
                continue
            name = f.name
            running += weight
            if threshold < running:
                return name
        return name


def teleport(gene: Gene, rng: Random, boundary: Sequence[Sequence[float]],
             aspect_ratio_mutation_rate: float = 0.0,
             global_target_ratio: Optional[float] = None) -> None:
    """Move one random room so its centre lands somewhere inside the boundary."""
    if not gene.rooms:
        return
    room = gene.rooms[rng.randint(0, len(gene.rooms) - 1)]
    min_x, min_y, max_x, max_y = gu.aabb(boundary)
    for _ in range(TELEPORT_ATTEMPTS):
        room.x = rng.uniform(min_x, max(min_x, max_x - room.width))
        room.y = rng.uniform(min_y, max(min_y, max_y - room.height))
        if gu.point_in_polygon(room.center, boundary):
            break
    if rng.chance(aspect_ratio_mutation_rate):
        low, high = ratio_bounds(room, global_target_ratio)
        room.resize_to_ratio(rng.uniform(low, high))


def swap(gene: Gene, rng: Random) -> None:
    """Cyclically exchange the centres of 2-4 distinct rooms."""
    n = len(gene.rooms)
    if n < 2:
        return
    count = min(rng.randint(2, 4), n)
    indices = rng.shuffle(list(range(n)))[:count]
    centers = [gene.rooms[i].center for i in indices]
    for k, idx in enumerate(indices):
        gene.rooms[idx].set_center(*centers[(k + 1) % count])


def rotate(gene: Gene, rng: Random) -> float:
    """Rotate every room centre about the centroid of all centres.

    Near-quarter turns also swap width and height. Returns the angle in degrees.
    """
    angle = rng.uniform(ROTATE_MIN_DEGREES, ROTATE_MAX_DEGREES)
    if not gene.rooms:
        return angle
    cx, cy = gu.centroid([r.center for r in gene.rooms])
    cos_a = math.cos(math.radians(angle))
    sin_a = math.sin(math.radians(angle))
    quarter_turn = 45.0 < angle % 180.0 < 135.0
    for room in gene.rooms:
        rx, ry = room.center
        dx, dy = rx - cx, ry - cy
        if quarter_turn:
            room.width, room.height = room.height, room.width
        room.set_center(cx + dx * cos_a - dy * sin_a, cy + dx * sin_a + dy * cos_a)
    return angle


def reshape(gene: Gene, rng: Random, global_target_ratio: Optional[float] = None) -> None:
    """Re-roll one room's aspect ratio at its target area, keeping its centre."""
    if not gene.rooms:
        return
    room = gene.rooms[rng.randint(0, len(gene.rooms) - 1)]
    low, high = ratio_bounds(room, global_target_ratio)
    room.resize_to_ratio(rng.uniform(low, high))


def partner_map(adjacencies) -> Dict[str, List[str]]:
    partners: Dict[str, List[str]] = {}
    for adj in adjacencies:
        if adj.a == adj.b:
            continue
        partners.setdefault(adj.a, []).append(adj.b)
        partners.setdefault(adj.b, []).append(adj.a)
    return partners


def nudge(gene: Gene, rng: Random, adjacencies=(), mutation_rate: float = 0.3,
          strength: float = 1.0, aspect_ratio_mutation_rate: float = 0.0,
          partner_bias: float = 0.0, center_gravity: float = 0.0,
          global_target_ratio: Optional[float] = None) -> None:
    """Small per-room jitter, optionally biased toward partners and the layout centre."""
    partners = partner_map(adjacencies) if partner_bias > 0 else {}
    rooms = gene.room_map()
    if center_gravity > 0 and gene.rooms:
        gx, gy = gu.centroid([r.center for r in gene.rooms])
    for room in gene.rooms:
        if rng.chance(mutation_rate):
            room.x += (rng.random() - 0.5) * strength
            room.y += (rng.random() - 0.5) * strength

        if partners.get(room.id) and rng.chance(partner_bias):
            partner = rooms[rng.pick(partners[room.id])]
            (rx, ry), (px, py) = room.center, partner.center
            room.x += (px - rx) * PARTNER_PULL
            room.y += (py - ry) * PARTNER_PULL

        if center_gravity > 0:
            rx, ry = room.center
            room.x += (gx - rx) * center_gravity
            room.y += (gy - ry) * center_gravity

        if rng.chance(aspect_ratio_mutation_rate):
            low, high = ratio_bounds(room, global_target_ratio)
            room.resize_to_ratio(rng.uniform(low, high))


def mutate_gene(gene: Gene, rng: Random, weights: MutationWeights, boundary,
                adjacencies=(), strength: float = 1.0, mutation_rate: float = 0.3,
                aspect_ratio_mutation_rate: float = 0.0, partner_bias: float = 0.0,
                center_gravity: float = 0.0, global_target_ratio: Optional[float] = None,
                max_mutations: int = 3) -> List[str]:
    """Apply 1..max_mutations weighted operators; returns the names applied."""
    if weights.total() <= 0:
        return []
    applied = []
    for _ in range(rng.randint(1, max_mutations)):
        name = weights.choose(rng)
        if name == "teleport":
            teleport(gene, rng, boundary, aspect_ratio_mutation_rate, global_target_ratio)
        elif name == "swap":
            swap(gene, rng)
        elif name == "rotate":
            rotate(gene, rng)
        elif name == "reshape":
            reshape(gene, rng, global_target_ratio)
        elif name == "nudge":
            nudge(gene, rng, adjacencies, mutation_rate, strength, aspect_ratio_mutation_rate,
                  partner_bias, center_gravity, global_target_ratio)
        applied.append(name)
    gene.invalidate()
    return applied


def crossover(parent_a: Gene, parent_b: Gene, rng: Random) -> Gene:
    """Child takes x, y, width and height of each room from either parent."""
    child_rooms = []
    others = parent_b.room_map()
    for room_a in parent_a.rooms:
        room_b = others.get(room_a.id, room_a)
        child = room_a.copy()
        child.x = room_a.x if rng.chance() else room_b.x
        child.y = room_a.y if rng.chance() else room_b.y
        child.width = room_a.width if rng.chance() else room_b.width
        child.height = room_a.height if rng.chance() else room_b.height
        child_rooms.append(child)
    return Gene(child_rooms)
