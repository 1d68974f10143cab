"""
Integer occupancy grid used by the discrete solver.
"""
from typing import Sequence, Tuple
import logging
import numpy as np
import shapely
from shapely.geometry import Polygon as ShapelyPolygon

logger = logging.getLogger(__name__)

EMPTY = 0
CORRIDOR = -1
OUT_OF_BOUNDS = -2


class GridBuffer:
    """2D cell buffer indexed ``cells[y, x]``.

    Values are EMPTY, CORRIDOR, OUT_OF_BOUNDS or a 1-based room index.
    Reads outside the array report OUT_OF_BOUNDS and writes there are ignored,
    so neighbourhood scans never need their own bounds checks.
    """

    def __init__(self, width: int, height: int, origin: Tuple[float, float] = (0.0, 0.0),
                 resolution: float = 1.0):
        if width < 1 or height < 1:
            raise ValueError(f"grid must be at least 1x1, got {width}x{height}")
        if resolution <= 0:
            raise ValueError(f"grid resolution must be positive, got {resolution}")
        self.width = int(width)
        self.height = int(height)
        self.origin = (float(origin[0]), float(origin[1]))
        self.resolution = float(resolution)
        self.cells = np.zeros((self.height, self.width), dtype=np.int32)

    def in_bounds(self, x: int, y: int) -> bool:
        return 0 <= x < self.width and 0 <= y < self.height

    def get(self, x: int, y: int) -> int:
        if not self.in_bounds(x, y):
            return OUT_OF_BOUNDS
        return int(self.cells[y, x])

    def set(self, x: int, y: int, value: int) -> None:
        if self.in_bounds(x, y):
            self.cells[y, x] = value

    def fill_rect(self, x: int, y: int, width: int, height: int, value: int) -> None:
        x0, y0 = max(0, x), max(0, y)
        x1, y1 = min(self.width, x + width), min(self.height, y + height)
        if x0 < x1 and y0 < y1:
            self.cells[y0:y1, x0:x1] = value

    def count(self, value: int) -> int:
        return int(np.count_nonzero(self.cells == value))

    def cell_to_world(self, x: float, y: float) -> Tuple[float, float]:
        return (self.origin[0] + x * self.resolution, self.origin[1] + y * self.resolution)

    def rasterize_polygon(self, points: Sequence[Sequence[float]]) -> int:
        """Mark every cell whose centre falls outside the polygon OUT_OF_BOUNDS.

        Returns the number of cells marked.
        """
        poly = ShapelyPolygon([(float(p[0]), float(p[1])) for p in points])
        xs = self.origin[0] + (np.arange(self.width) + 0.5) * self.resolution
        ys = self.origin[1] + (np.arange(self.height) + 0.5) * self.resolution
        X, Y = np.meshgrid(xs, ys)
        inside = shapely.intersects_xy(poly, X, Y)
        self.cells[~inside] = OUT_OF_BOUNDS
        outside = int((~inside).sum())
        logger.debug(f"Rasterized boundary: {outside} of {self.width * self.height} cells out of bounds")
        return outside

    def clone(self) -> 'GridBuffer':
        other = GridBuffer.__new__(GridBuffer)
        other.width = self.width
        other.height = self.height
        other.origin = self.origin
        other.resolution = self.resolution
        other.cells = self.cells.copy()
        return other

    def __eq__(self, other) -> bool:
        if not isinstance(other, GridBuffer):
            return NotImplemented
        return self.cells.shape == other.cells.shape and bool(np.array_equal(self.cells, other.cells))

    __hash__ = None

    def __repr__(self) -> str:
        return f"GridBuffer({self.width}x{self.height}, origin={self.origin}, resolution={self.resolution})"
