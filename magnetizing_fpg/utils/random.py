"""
Seeded random source shared by every solver instance.

Each solver owns exactly one ``Random``; all stochastic decisions are drawn
from it in a fixed order so equal seeds give equal runs.
"""
from typing import Any, Dict, MutableSequence, Optional, Sequence, TypeVar
import copy
import logging
import math
import time
import numpy as np

logger = logging.getLogger(__name__)

T = TypeVar("T")


def time_seed() -> int:
    return int(time.time() * 1000)


class Random:
    """Thin wrapper over ``numpy.random.Generator`` (PCG64)."""

    def __init__(self, seed: Optional[int] = None):
        if seed is None:
            seed = time_seed()
            logger.info(f"No seed given, using time-based seed {seed}")
        self.set_seed(seed)

    def set_seed(self, seed: int) -> None:
        self.seed = int(seed)
        self._rng = np.random.default_rng(self.seed)

    def random(self) -> float:
        """Uniform float in [0, 1)."""
        return float(self._rng.random())

    def randint(self, lo: int, hi: int) -> int:
        """Uniform integer in [lo, hi], both ends inclusive."""
        return int(math.floor(self.random() * (hi - lo + 1))) + lo

    def uniform(self, lo: float, hi: float) -> float:
        return lo + self.random() * (hi - lo)

    def chance(self, p: float = 0.5) -> bool:
        return self.random() < p

    def shuffle(self, seq: MutableSequence[T]) -> MutableSequence[T]:
        """Fisher-Yates shuffle in place; returns seq for chaining."""
        for i in range(len(seq) - 1, 0, -1):
            j = self.randint(0, i)
            seq[i], seq[j] = seq[j], seq[i]
        return seq

    def pick(self, seq: Sequence[T]) -> Optional[T]:
        if len(seq) == 0:
            return None
        return seq[self.randint(0, len(seq) - 1)]

    def get_state(self) -> Dict[str, Any]:
        return {
            "seed": self.seed,
            "bit_generator": copy.deepcopy(self._rng.bit_generator.state),
        }

    def set_state(self, state: Dict[str, Any]) -> None:
        self.seed = state["seed"]
        self._rng = np.random.default_rng(self.seed)
        self._rng.bit_generator.state = copy.deepcopy(state["bit_generator"])
