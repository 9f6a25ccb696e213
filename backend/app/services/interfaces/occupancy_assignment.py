"""
Deterministic assignment policies.
"""

from app.services.interfaces.assignment import AssignmentStrategy, RoomCandidate


class LowestOccupancyStrategy(AssignmentStrategy):
    """
    Least occupied room category first, then cheapest, then lowest id.

    Keeps hotels in a cluster filling at a similar rate, which makes the
    outcome of a run of automatic assignments easy to predict.
    """

    name = "lowest_occupancy"

    def rank(self, candidates: list[RoomCandidate]) -> list[RoomCandidate]:
        return sorted(
            candidates,
            key=lambda c: (c.occupancy_ratio, c.price_per_night, c.room_category_id),
        )


class LowestPriceStrategy(AssignmentStrategy):
    """Cheapest room first, then least occupied, then lowest id."""

    name = "lowest_price"

    def rank(self, candidates: list[RoomCandidate]) -> list[RoomCandidate]:
        return sorted(
            candidates,
            key=lambda c: (c.price_per_night, c.occupancy_ratio, c.room_category_id),
        )
