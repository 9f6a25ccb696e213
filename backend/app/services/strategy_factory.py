"""
Assignment strategy factory.
Configures which policy automatic assignment uses.
"""

from typing import Optional

from app.services.interfaces.assignment import AssignmentStrategy
from app.services.interfaces.occupancy_assignment import (
    LowestOccupancyStrategy,
    LowestPriceStrategy,
)
from app.core.config import get_settings

STRATEGIES = {
    LowestOccupancyStrategy.name: LowestOccupancyStrategy,
    LowestPriceStrategy.name: LowestPriceStrategy,
}


def get_assignment_strategy(name: Optional[str] = None) -> AssignmentStrategy:
    """
    Build the configured assignment strategy.

    Selected by the ASSIGNMENT_STRATEGY setting; unknown names fall back
    to lowest occupancy.
    """
    name = name or get_settings().ASSIGNMENT_STRATEGY
    strategy_cls = STRATEGIES.get(name, LowestOccupancyStrategy)
    return strategy_cls()


# Singleton instance
_strategy: Optional[AssignmentStrategy] = None

def get_strategy() -> AssignmentStrategy:
    """Get assignment strategy singleton."""
    global _strategy
    if _strategy is None:
        _strategy = get_assignment_strategy()
    return _strategy
