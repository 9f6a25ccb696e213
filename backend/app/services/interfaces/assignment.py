"""
Assignment strategy interface.
Decides the order in which candidate rooms of a cluster are tried.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from decimal import Decimal


@dataclass(frozen=True)
class RoomCandidate:
    """An approved hotel's room category that still has a room free."""

    hotel_id: int
    room_category_id: int
    available_rooms: int
    total_rooms: int
    price_per_night: Decimal

    @property
    def occupancy_ratio(self) -> float:
        return 1 - (self.available_rooms / self.total_rooms)


class AssignmentStrategy(ABC):
    """
    Interface for automatic assignment policies.

    Implementations:
    - LowestOccupancyStrategy: spread load across hotels (default)
    - LowestPriceStrategy: cheapest room first
    """

    name: str = ""

    @abstractmethod
    def rank(self, candidates: list[RoomCandidate]) -> list[RoomCandidate]:
        """
        Order candidates from most to least preferred.

        The order must be total and deterministic: ties always end on the
        room category id so the same inventory yields the same pick.
        """
        pass
