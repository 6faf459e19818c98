"""
Cabin Group Control

Allocation strategies used by the Dispatcher to match waiting trips
with cabins.
"""

__version__ = "0.1.0"

from typing import Dict, Type

from .interfaces.allocation_strategy import IAllocationStrategy
from .algorithms.first_fit import FirstFitStrategy

ALLOCATION_STRATEGIES: Dict[str, Type[IAllocationStrategy]] = {
    "FirstFit": FirstFitStrategy,
}


def get_allocation_strategy(name: str, **parameters) -> IAllocationStrategy:
    """
    Create an allocation strategy by name

    Raises:
        ValueError: If the name is not registered
    """
    cls = ALLOCATION_STRATEGIES.get(name)
    if cls is None:
        raise ValueError(f"Unknown allocation strategy: {name}. Available: {', '.join(ALLOCATION_STRATEGIES)}")
    return cls(**parameters)


__all__ = [
    'IAllocationStrategy',
    'FirstFitStrategy',
    'ALLOCATION_STRATEGIES',
    'get_allocation_strategy',
]
