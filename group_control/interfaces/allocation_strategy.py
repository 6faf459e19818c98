"""
Allocation Strategy Interface

Defines how a cabin is selected for a waiting trip.
"""

from abc import ABC, abstractmethod
from typing import Optional, Sequence, TYPE_CHECKING

if TYPE_CHECKING:
    from simulator.core.cabin import Cabin


class IAllocationStrategy(ABC):
    """
    Interface for cabin allocation strategies

    A strategy looks at the fleet and returns the cabin that should take a
    trip to ``target_floor``, or None when no cabin can take it right now.
    Strategies only read cabin state; committing the assignment is the
    Dispatcher's job.
    """

    @abstractmethod
    def select_cabin(self, target_floor: int, cabins: Sequence["Cabin"]) -> Optional["Cabin"]:
        """
        Select a cabin for a trip

        Args:
            target_floor: Floor the rider wants to reach
            cabins: Fleet in registry order

        Returns:
            The selected cabin, or None if no cabin qualifies
        """
        pass

    @abstractmethod
    def get_strategy_name(self) -> str:
        """
        Get the name of this strategy (for logging)
        """
        pass
