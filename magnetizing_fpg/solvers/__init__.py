"""
Solvers package.
"""
from .impl import (DiscreteConfig, DiscreteSolver, DiscreteWeights, EvolutionaryConfig,
                   EvolutionarySolver, FitnessWeights, Gene, GridBuffer, MutationWeights, RoomState)
from .pipeline import FloorPlanResult, solve_floor_plan

__all__ = [
    'DiscreteConfig',
    'DiscreteSolver',
    'DiscreteWeights',
    'EvolutionaryConfig',
    'EvolutionarySolver',
    'FitnessWeights',
    'Gene',
    'GridBuffer',
    'MutationWeights',
    'RoomState',
    'FloorPlanResult',
    'solve_floor_plan'
]
