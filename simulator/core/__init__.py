"""Core simulation entities"""

from .entity import Entity
from .clock import SimulationClock, format_timestamp, parse_timestamp
from .trip import Trip
from .cabin import BASE_FLOOR, Cabin
from .dispatcher import Dispatcher

__all__ = [
    'Entity',
    'SimulationClock',
    'format_timestamp',
    'parse_timestamp',
    'Trip',
    'BASE_FLOOR',
    'Cabin',
    'Dispatcher',
]
