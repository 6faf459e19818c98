from .statistics import Statistics
from .trip_report import CabinRecord, TripRecord, TripReport

__all__ = [
    'Statistics',
    'TripReport',
    'TripRecord',
    'CabinRecord',
]
