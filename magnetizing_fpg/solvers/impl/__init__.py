"""
Solver implementation package.
"""
from .grid import CORRIDOR, EMPTY, OUT_OF_BOUNDS, GridBuffer
from .discrete_solver_impl import DiscreteConfig, DiscreteSolver, DiscreteWeights, PlacedRoom
from .gene import Gene, RoomState, SquishReport
from .fitness import DistanceFitness, FitnessWeights, SharedWallFitness, make_fitness
from .mutations import MutationWeights
from .population import EvolutionaryConfig, PopulationManager
from .evolutionary_solver_impl import EvolutionarySolver

__all__ = [
    'CORRIDOR',
    'EMPTY',
    'OUT_OF_BOUNDS',
    'GridBuffer',
    'DiscreteConfig',
    'DiscreteSolver',
    'DiscreteWeights',
    'PlacedRoom',
    'Gene',
    'RoomState',
    'SquishReport',
    'DistanceFitness',
    'FitnessWeights',
    'SharedWallFitness',
    'make_fitness',
    'MutationWeights',
    'EvolutionaryConfig',
    'PopulationManager',
    'EvolutionarySolver'
]
