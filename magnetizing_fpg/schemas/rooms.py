from enum import IntEnum
from typing import List, Optional
import logging
from pydantic import BaseModel, ConfigDict, Field, model_validator

logger = logging.getLogger(__name__)


class CorridorRule(IntEnum):
    """Which sides of a room receive generated corridor cells"""
    NONE = 0
    ONE_SIDE = 1  # strip below the room
    TWO_SIDES = 2  # bottom + right, L-shaped
    ALL_SIDES = 3  # one-cell halo


class RoomRequest(BaseModel):
    """Single room to be laid out.

    The aspect bound is width/height. Give either ``min_ratio``/``max_ratio``
    or a single ``target_ratio`` (>= 1) meaning ``[1/target_ratio, target_ratio]``.
    After validation ``min_ratio`` and ``max_ratio`` are always set.
    """
    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1)
    target_area: float = Field(..., gt=0)
    min_ratio: Optional[float] = Field(None, gt=0)
    max_ratio: Optional[float] = Field(None, gt=0)
    target_ratio: Optional[float] = Field(None, ge=1.0)
    corridor_rule: CorridorRule = CorridorRule.NONE
    is_hall: bool = False

    @model_validator(mode="before")
    @classmethod
    def expand_target_ratio(cls, values):
        if not isinstance(values, dict):
            return values
        values = dict(values)
        ratio = values.get("target_ratio")
        if ratio is not None and ratio > 0:
            if values.get("min_ratio") is None:
                values["min_ratio"] = 1.0 / ratio
            if values.get("max_ratio") is None:
                values["max_ratio"] = float(ratio)
        return values

    @model_validator(mode="after")
    def check_ratio_bounds(self):
        if self.min_ratio is None or self.max_ratio is None:
            raise ValueError(f"room {self.id!r} needs min_ratio/max_ratio or target_ratio")
        if self.min_ratio > self.max_ratio:
            raise ValueError(
                f"room {self.id!r} has min_ratio {self.min_ratio} > max_ratio {self.max_ratio}"
            )
        return self


class Adjacency(BaseModel):
    """Unordered pair of room ids that should end up close together"""
    model_config = ConfigDict(frozen=True)

    a: str
    b: str
    weight: float = Field(1.0, gt=0)


def filter_adjacencies(adjacencies, room_ids, strict: bool = False) -> List[Adjacency]:
    """Drop adjacencies naming unknown rooms, or raise ValueError when strict."""
    known = set(room_ids)
    kept = []
    for adj in adjacencies:
        missing = [rid for rid in (adj.a, adj.b) if rid not in known]
        if missing:
            if strict:
                raise ValueError(f"adjacency {adj.a!r}-{adj.b!r} references unknown room(s) {missing}")
            logger.warning(f"Ignoring adjacency {adj.a!r}-{adj.b!r}: unknown room(s) {missing}")
            continue
        kept.append(adj)
    return kept
