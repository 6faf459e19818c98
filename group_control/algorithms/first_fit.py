"""
First Fit Strategy

Deterministic lobby allocation: the first cabin in registry order that can
take the trip gets it. No load balancing and no distance minimisation.
"""

from typing import Optional, Sequence, TYPE_CHECKING

from ..interfaces.allocation_strategy import IAllocationStrategy

if TYPE_CHECKING:
    from simulator.core.cabin import Cabin


class FirstFitStrategy(IAllocationStrategy):
    """
    First fit allocation strategy

    A cabin qualifies when it:
    - is at the lobby (floor 1)
    - has room for one more passenger
    - serves the target floor
    """

    def select_cabin(self, target_floor: int, cabins: Sequence["Cabin"]) -> Optional["Cabin"]:
        for cabin in cabins:
            if self.qualifies(cabin, target_floor):
                return cabin
        return None

    @staticmethod
    def qualifies(cabin: "Cabin", target_floor: int) -> bool:
        return cabin.is_at_base() and not cabin.is_full() and cabin.serves(target_floor)

    def get_strategy_name(self) -> str:
        return "First Fit (Lobby, registry order)"
