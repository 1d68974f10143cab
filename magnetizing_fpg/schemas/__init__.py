"""
Input models for floor plan problems.
"""
from .rooms import Adjacency, CorridorRule, RoomRequest, filter_adjacencies

__all__ = [
    'Adjacency',
    'CorridorRule',
    'RoomRequest',
    'filter_adjacencies'
]
