"""
Geometry helpers for polygon operations used by the solvers.

Polygons are ordered vertex sequences ``[(x, y), ...]`` (closing vertex not
repeated). Rooms are axis-aligned rectangles given by their min corner and size.

Provides:
- aabb(points), aabb_intersects(a, b)
- centroid(points), polygon_area(points)
- point_in_polygon(point, polygon), closest_point_on_boundary(point, polygon)
- rectangle(x, y, w, h)
- intersection_area(poly_a, poly_b), contains(outer, inner)
- scale_polygon(points, factor, origin)

Boolean operations are delegated to shapely; the rest are plain numpy/math.
"""
from typing import List, Optional, Sequence, Tuple
import math
import numpy as np
from shapely.geometry import Polygon as ShapelyPolygon

Point = Tuple[float, float]
AABB = Tuple[float, float, float, float]  # min_x, min_y, max_x, max_y

CONTAINMENT_RATIO = 0.99


def aabb(points: Sequence[Sequence[float]]) -> AABB:
    """Axis-aligned bounding box of a point set, all zeros when empty."""
    if len(points) == 0:
        return (0.0, 0.0, 0.0, 0.0)
    pts = np.asarray(points, dtype=float)
    return (float(pts[:, 0].min()), float(pts[:, 1].min()),
            float(pts[:, 0].max()), float(pts[:, 1].max()))


def aabb_intersects(a: AABB, b: AABB) -> bool:
    """True when two boxes overlap or touch along an edge."""
    return not (a[2] < b[0] or a[0] > b[2] or a[3] < b[1] or a[1] > b[3])


def aabb_overlap_extents(a: AABB, b: AABB) -> Tuple[float, float]:
    """Overlap length of two boxes along x and y (negative when separated)."""
    overlap_x = min(a[2], b[2]) - max(a[0], b[0])
    overlap_y = min(a[3], b[3]) - max(a[1], b[1])
    return overlap_x, overlap_y


def centroid(points: Sequence[Sequence[float]]) -> Point:
    """Vertex mean of a polygon."""
    if len(points) == 0:
        return (0.0, 0.0)
    pts = np.asarray(points, dtype=float)
    return (float(np.mean(pts[:, 0])), float(np.mean(pts[:, 1])))


def polygon_area(points: Sequence[Sequence[float]]) -> float:
    pts = np.asarray(points, dtype=float)
    n = len(pts)
    if n < 3:
        return 0.0
    area = 0.0
    for i in range(n):
        j = (i + 1) % n
        area += pts[i, 0] * pts[j, 1] - pts[j, 0] * pts[i, 1]
    return abs(float(area)) / 2.0


def point_in_polygon(point: Sequence[float], polygon: Sequence[Sequence[float]]) -> bool:
    """Return True if point is inside polygon using ray-casting algorithm."""
    if len(polygon) == 0:
        return False
    x, y = point
    inside = False
    n = len(polygon)
    p1x, p1y = polygon[0]
    for i in range(1, n + 1):
        p2x, p2y = polygon[i % n]
        if y > min(p1y, p2y):
            if y <= max(p1y, p2y):
                if x <= max(p1x, p2x):
                    xinters = p1x
                    if p1y != p2y:
                        xinters = (y - p1y) * (p2x - p1x) / (p2y - p1y) + p1x
                    if p1x == p2x or x <= xinters:
                        inside = not inside
        p1x, p1y = p2x, p2y
    return inside


def _project_point_to_segment(pt: np.ndarray, a: np.ndarray, b: np.ndarray) -> Tuple[np.ndarray, float]:
    v = b - a
    l2 = np.dot(v, v)
    if l2 == 0:
        return a, float(np.linalg.norm(pt - a))
    t = max(0.0, min(1.0, np.dot(pt - a, v) / l2))
    proj = a + t * v
    return proj, float(np.linalg.norm(pt - proj))


def closest_point_on_boundary(point: Sequence[float], polygon: Sequence[Sequence[float]]) -> Point:
    """Nearest point on the polygon outline, whether point is inside or not."""
    if len(polygon) == 0:
        return (float(point[0]), float(point[1]))
    pt = np.asarray(point, dtype=float)
    min_dist = float('inf')
    best = pt
    n = len(polygon)
    for i in range(n):
        a = np.asarray(polygon[i], dtype=float)
        b = np.asarray(polygon[(i + 1) % n], dtype=float)
        proj, d = _project_point_to_segment(pt, a, b)
        if d < min_dist:
            min_dist = d
            best = proj
    return (float(best[0]), float(best[1]))


def rectangle(x: float, y: float, w: float, h: float) -> List[Point]:
    """Counter-clockwise rectangle with min corner (x, y). Always a new list."""
    return [(x, y), (x + w, y), (x + w, y + h), (x, y + h)]


def to_shapely(points: Sequence[Sequence[float]]) -> ShapelyPolygon:
    return ShapelyPolygon([(float(p[0]), float(p[1])) for p in points])


def intersection_area(poly_a: Sequence[Sequence[float]], poly_b: Sequence[Sequence[float]]) -> float:
    """Area shared by two polygons, 0.0 for disjoint or degenerate input."""
    if len(poly_a) < 3 or len(poly_b) < 3:
        return 0.0
    if not aabb_intersects(aabb(poly_a), aabb(poly_b)):
        return 0.0
    shape_a = to_shapely(poly_a)
    shape_b = to_shapely(poly_b)
    if not shape_a.is_valid or not shape_b.is_valid:
        shape_a = shape_a.buffer(0)
        shape_b = shape_b.buffer(0)
    return max(0.0, float(shape_a.intersection(shape_b).area))


def rect_intersection_area(a: AABB, b: AABB) -> float:
    """Exact overlap area of two axis-aligned boxes."""
    overlap_x, overlap_y = aabb_overlap_extents(a, b)
    if overlap_x <= 0 or overlap_y <= 0:
        return 0.0
    return overlap_x * overlap_y


def contains(outer: Sequence[Sequence[float]], inner: Sequence[Sequence[float]]) -> bool:
    """True when at least 99% of inner lies inside outer."""
    inner_area = polygon_area(inner)
    if inner_area <= 0:
        return False
    return intersection_area(outer, inner) / inner_area > CONTAINMENT_RATIO


def scale_polygon(points: Sequence[Sequence[float]], factor: float,
                  origin: Optional[Point] = None) -> List[Point]:
    """Scale a polygon uniformly about origin (its centroid by default)."""
    if origin is None:
        origin = centroid(points)
    ox, oy = origin
    return [(ox + (p[0] - ox) * factor, oy + (p[1] - oy) * factor) for p in points]


def distance(a: Sequence[float], b: Sequence[float]) -> float:
    return math.hypot(b[0] - a[0], b[1] - a[1])


def validate_boundary(points: Sequence[Sequence[float]]) -> List[Point]:
    """Normalize a boundary to a list of float tuples, raising on degenerate input."""
    if points is None or len(points) < 3:
        raise ValueError("boundary needs at least three vertices")
    normalized = [(float(p[0]), float(p[1])) for p in points]
    if polygon_area(normalized) <= 0:
        raise ValueError("boundary has zero area")
    return normalized
