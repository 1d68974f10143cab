"""
Hybrid floor plan generation: discrete grid placement refined by an evolutionary solver.
"""
from .schemas import Adjacency, CorridorRule, RoomRequest
from .solvers import (DiscreteConfig, DiscreteSolver, EvolutionaryConfig, EvolutionarySolver,
                      FloorPlanResult, RoomState, solve_floor_plan)

__version__ = "0.1.0"

__all__ = [
    'Adjacency',
    'CorridorRule',
    'RoomRequest',
    'DiscreteConfig',
    'DiscreteSolver',
    'EvolutionaryConfig',
    'EvolutionarySolver',
    'FloorPlanResult',
    'RoomState',
    'solve_floor_plan'
]
