"""Infrastructure components for simulation"""

from .message_broker import MessageBroker
from .realtime_env import RealtimeEnvironment
from .trip_loader import load_trips_from_csv, parse_trip_rows

__all__ = [
    'MessageBroker',
    'RealtimeEnvironment',
    'load_trips_from_csv',
    'parse_trip_rows',
]
