"""
Service interfaces for dependency inversion.
Allows swapping assignment policies without changing the workflow.
"""

from .assignment import AssignmentStrategy, RoomCandidate
from .occupancy_assignment import LowestOccupancyStrategy, LowestPriceStrategy

__all__ = ['AssignmentStrategy', 'RoomCandidate', 'LowestOccupancyStrategy', 'LowestPriceStrategy']
