"""
Lobby dispatch simulator - Core simulation engine

This package provides the simulated clock, the cabins, the Dispatcher that
assigns lobby trips to them, and the infrastructure they run on.
"""

__version__ = "0.1.0"

from .exceptions import InvalidFloorError

from .core.clock import SimulationClock
from .core.trip import Trip
from .core.cabin import Cabin
from .core.dispatcher import Dispatcher
from .core.entity import Entity

from .infrastructure.message_broker import MessageBroker
from .infrastructure.realtime_env import RealtimeEnvironment
from .infrastructure.trip_loader import load_trips_from_csv

from .simulation import Simulation, build_simulation

__all__ = [
    'InvalidFloorError',
    'SimulationClock',
    'Trip',
    'Cabin',
    'Dispatcher',
    'Entity',
    'MessageBroker',
    'RealtimeEnvironment',
    'load_trips_from_csv',
    'Simulation',
    'build_simulation',
]
