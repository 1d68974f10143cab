"""
Continuous layout candidates and the squish collision resolver.
"""
from typing import Dict, List, Optional, Sequence, Tuple
from dataclasses import dataclass, field
import logging
import math
from ...utils import geometry_utils as gu

logger = logging.getLogger(__name__)

MIN_DIMENSION = 0.5  # smallest width/height a reshape may produce
RATIO_TOLERANCE = 1e-9
CORRIDOR_PREFIX = "corridor-"


@dataclass
class RoomState:
    id: str
    x: float  # min corner
    y: float
    width: float
    height: float
    target_area: float
    min_ratio: float = 0.5  # width / height
    max_ratio: float = 2.0
    is_corridor: bool = False

    def __post_init__(self):
        if self.id.startswith(CORRIDOR_PREFIX):
            self.is_corridor = True

    @property
    def center(self) -> Tuple[float, float]:
        return (self.x + self.width / 2.0, self.y + self.height / 2.0)

    @property
    def area(self) -> float:
        return self.width * self.height

    @property
    def bounds(self) -> gu.AABB:
        return (self.x, self.y, self.x + self.width, self.y + self.height)

    @property
    def target_ratio(self) -> float:
        return self.max_ratio

    def polygon(self) -> List[gu.Point]:
        return gu.rectangle(self.x, self.y, self.width, self.height)

    def set_center(self, cx: float, cy: float) -> None:
        self.x = cx - self.width / 2.0
        self.y = cy - self.height / 2.0

    def resize_to_ratio(self, ratio: float) -> None:
        """Give the room aspect ``ratio`` at its target area, keeping its centre."""
        cx, cy = self.center
        self.width = math.sqrt(self.target_area * ratio)
        self.height = self.target_area / self.width
        self.set_center(cx, cy)

    def copy(self) -> 'RoomState':
        return RoomState(
            id=self.id,
            x=self.x,
            y=self.y,
            width=self.width,
            height=self.height,
            target_area=self.target_area,
            min_ratio=self.min_ratio,
            max_ratio=self.max_ratio,
            is_corridor=self.is_corridor
        )

    def to_dict(self) -> Dict:
        return {
            "id": self.id,
            "x": self.x,
            "y": self.y,
            "width": self.width,
            "height": self.height,
            "target_area": self.target_area,
            "target_ratio": self.target_ratio,
        }


def ratio_bounds(room: RoomState, global_target_ratio: Optional[float] = None) -> Tuple[float, float]:
    """Allowed width/height range; a global ratio overrides every non-corridor room."""
    if global_target_ratio and not room.is_corridor:
        return (1.0 / global_target_ratio, global_target_ratio)
    return (room.min_ratio, room.max_ratio)


def _within(ratio: float, bounds: Tuple[float, float]) -> bool:
    return bounds[0] - RATIO_TOLERANCE <= ratio <= bounds[1] + RATIO_TOLERANCE


@dataclass
class SquishReport:
    reshaped: List[Tuple[str, str]] = field(default_factory=list)
    translated: List[Tuple[str, str]] = field(default_factory=list)

    @property
    def resolved(self) -> int:
        return len(self.reshaped) + len(self.translated)


class Gene:
    """One candidate layout: an owned list of rooms plus its fitness.

    Constructing or cloning a Gene deep-copies the rooms so population
    members never share RoomState objects.
    """

    def __init__(self, rooms: Sequence[RoomState]):
        self.rooms: List[RoomState] = [r.copy() for r in rooms]
        self.fitness: float = float('inf')
        self.components: Dict[str, float] = {}

    def clone(self) -> 'Gene':
        other = Gene(self.rooms)
        other.fitness = self.fitness
        other.components = dict(self.components)
        return other

    def room_map(self) -> Dict[str, RoomState]:
        return {r.id: r for r in self.rooms}

    def room_ids(self) -> List[str]:
        return [r.id for r in self.rooms]

    def invalidate(self) -> None:
        self.fitness = float('inf')
        self.components = {}

    def is_finite(self) -> bool:
        return all(
            math.isfinite(v)
            for r in self.rooms
            for v in (r.x, r.y, r.width, r.height)
        )

    def apply_squish_collisions(self, boundary: Sequence[Sequence[float]], margin: float = 0.1,
                                overlap_epsilon: float = 0.01,
                                global_target_ratio: Optional[float] = None) -> SquishReport:
        """Resolve pairwise overlaps by reshaping, falling back to translation.

        Pairs are visited in index order, so resolving one pair can create a
        new overlap with a pair already handled; callers run it repeatedly.
        Every room is clamped to the boundary AABB at the end.
        """
        report = SquishReport()
        box = gu.aabb(boundary)
        n = len(self.rooms)
        for i in range(n):
            for j in range(i + 1, n):
                room_a = self.rooms[i]
                room_b = self.rooms[j]
                box_a = room_a.bounds
                box_b = room_b.bounds
                if not gu.aabb_intersects(box_a, box_b):
                    continue
                overlap_area = gu.intersection_area(room_a.polygon(), room_b.polygon())
                if overlap_area < overlap_epsilon:
                    continue
                overlap_x, overlap_y = gu.aabb_overlap_extents(box_a, box_b)
                if overlap_x < overlap_y:
                    axis, overlap = 0, overlap_x
                else:
                    axis, overlap = 1, overlap_y
                if self._try_reshape(room_a, room_b, axis, overlap, margin, global_target_ratio):
                    report.reshaped.append((room_a.id, room_b.id))
                else:
                    self._translate_apart(room_a, room_b, axis, overlap, margin)
                    report.translated.append((room_a.id, room_b.id))
        self.constrain_to_boundary(box)
        self.invalidate()
        return report

    @staticmethod
    def _ordered(room_a: RoomState, room_b: RoomState, axis: int) -> Tuple[RoomState, RoomState]:
        """(lower, upper) along axis by centre; ties keep the first room lower."""
        if room_b.center[axis] < room_a.center[axis]:
            return room_b, room_a
        return room_a, room_b

    def _try_reshape(self, room_a: RoomState, room_b: RoomState, axis: int, overlap: float,
                     margin: float, global_target_ratio: Optional[float]) -> bool:
        shrink = overlap * 0.5 + margin
        new_dims = []
        for room in (room_a, room_b):
            extent = (room.width, room.height)[axis] - shrink
            if extent <= MIN_DIMENSION:
                return False
            other = room.target_area / extent
            if other <= MIN_DIMENSION:
                return False
            width, height = (extent, other) if axis == 0 else (other, extent)
            if not _within(width / height, ratio_bounds(room, global_target_ratio)):
                return False
            new_dims.append((width, height))

        lower, upper = self._ordered(room_a, room_b, axis)
        dims = {id(room_a): new_dims[0], id(room_b): new_dims[1]}
        for room in (lower, upper):
            width, height = dims[id(room)]
            cx, cy = room.center
            if axis == 0:
                if room is upper:
                    room.x = room.x + room.width - width
                room.y = cy - height / 2.0
            else:
                if room is upper:
                    room.y = room.y + room.height - height
                room.x = cx - width / 2.0
            room.width = width
            room.height = height
        return True

    def _translate_apart(self, room_a: RoomState, room_b: RoomState, axis: int,
                         overlap: float, margin: float) -> None:
        move = overlap * 0.5 + margin
        lower, upper = self._ordered(room_a, room_b, axis)
        if axis == 0:
            lower.x -= move
            upper.x += move
        else:
            lower.y -= move
            upper.y += move

    def constrain_to_boundary(self, box: gu.AABB) -> None:
        """Axis clamp of every room into box; oversized rooms pin to the min edge."""
        min_x, min_y, max_x, max_y = box
        for room in self.rooms:
            if room.width >= max_x - min_x:
                room.x = min_x
            else:
                room.x = min(max(room.x, min_x), max_x - room.width)
            if room.height >= max_y - min_y:
                room.y = min_y
            else:
                room.y = min(max(room.y, min_y), max_y - room.height)

    def apply_inflation(self, rate: float = 1.05, threshold: float = 1.0) -> int:
        """Grow rooms smaller than ``target_area * threshold`` about their centre."""
        grown = 0
        for room in self.rooms:
            if room.area < room.target_area * threshold:
                cx, cy = room.center
                room.width *= rate
                room.height *= rate
                room.set_center(cx, cy)
                grown += 1
        if grown:
            self.invalidate()
        return grown

    def apply_adjacency_pull(self, adjacencies, strength: float = 0.1) -> None:
        """Move connected rooms toward each other until they would touch."""
        rooms = self.room_map()
        for adj in adjacencies:
            room_a = rooms.get(adj.a)
            room_b = rooms.get(adj.b)
            if room_a is None or room_b is None or room_a is room_b:
                continue
            (ax, ay), (bx, by) = room_a.center, room_b.center
            dx, dy = bx - ax, by - ay
            dist = math.hypot(dx, dy)
            if dist < 0.1:
                continue
            desired = (room_a.width + room_b.width) / 4.0 + (room_a.height + room_b.height) / 4.0
            if dist <= desired:
                continue
            force = (dist - desired) * strength
            fx, fy = dx / dist * force, dy / dist * force
            room_a.x += fx * 0.5
            room_a.y += fy * 0.5
            room_b.x -= fx * 0.5
            room_b.y -= fy * 0.5
        self.invalidate()

    def __deepcopy__(self, memo):
        return self.clone()

    def __repr__(self) -> str:
        return f"Gene(rooms={len(self.rooms)}, fitness={self.fitness:.4f})"

