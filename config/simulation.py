"""
Simulation Configuration

Fleet layout, clock settings and run control for the dispatch simulator.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from simulator.core.clock import parse_timestamp


@dataclass
class ClockConfig:
    """Simulated clock settings"""
    start_time: str = "2016-08-31 10:00:00"  # YYYY-MM-DD HH:MM:SS
    tick_seconds: float = 1.0  # one dispatch cycle

    def __post_init__(self):
        if self.tick_seconds <= 0:
            raise ValueError("tick_seconds must be positive")
        try:
            parse_timestamp(self.start_time)
        except ValueError:
            raise ValueError(f"start_time must use YYYY-MM-DD HH:MM:SS, got {self.start_time!r}")

    def start_datetime(self) -> datetime:
        return parse_timestamp(self.start_time)


@dataclass
class CabinConfig:
    """Specification of one cabin"""
    name: str
    floor_start: int = 1
    floor_end: int = 25
    capacity: int = 8  # persons
    doors_interval: float = 20.0  # seconds the doors stay open at a stop

    def __post_init__(self):
        if not self.name:
            raise ValueError("cabin name cannot be empty")
        if self.floor_start < 1:
            raise ValueError(f"{self.name}: floor_start must be at least 1")
        if self.floor_end < self.floor_start:
            raise ValueError(f"{self.name}: floor_end must not be below floor_start")
        if self.capacity < 1:
            raise ValueError(f"{self.name}: capacity must be at least 1")
        if self.doors_interval < 0:
            raise ValueError(f"{self.name}: doors_interval cannot be negative")

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'CabinConfig':
        return cls(
            name=data.get('name', ''),
            floor_start=data.get('floor_start', 1),
            floor_end=data.get('floor_end', 25),
            capacity=data.get('capacity', 8),
            doors_interval=data.get('doors_interval', 20.0)
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'name': self.name,
            'floor_start': self.floor_start,
            'floor_end': self.floor_end,
            'capacity': self.capacity,
            'doors_interval': self.doors_interval
        }


@dataclass
class FleetConfig:
    """Building-wide cabin settings"""
    cabins: List[CabinConfig] = field(default_factory=list)
    time_between_floors: float = 0.5  # seconds
    allocation_strategy: str = "FirstFit"

    def __post_init__(self):
        if self.time_between_floors <= 0:
            raise ValueError("time_between_floors must be positive")
        if not self.allocation_strategy:
            raise ValueError("allocation_strategy cannot be empty")

    @property
    def max_floor(self) -> int:
        return max((cabin.floor_end for cabin in self.cabins), default=1)


@dataclass
class SimulationConfig:
    """
    Complete simulation configuration

    Combines clock and fleet settings with run control.
    """
    clock: ClockConfig
    fleet: FleetConfig

    # Run control
    trips_file: Optional[str] = None  # CSV with name, arrival time, floor
    realtime_factor: float = 0.0  # 1.0 = realtime, 0.0 = as fast as possible
    timeout: Optional[float] = 7200.0  # environment seconds, None = no limit
    verbose: bool = True  # print broker traffic

    # Outputs
    event_log: Optional[str] = None  # JSON Lines path
    trajectory_plot: Optional[str] = None  # PNG path

    def __post_init__(self):
        if self.realtime_factor < 0:
            raise ValueError("realtime_factor cannot be negative")
        if self.timeout is not None and self.timeout <= 0:
            raise ValueError("timeout must be positive")

    @classmethod
    def from_dict(cls, data: dict) -> 'SimulationConfig':
        """Create SimulationConfig from dictionary"""
        sim_data = data.get('simulation', data)

        clock_data = sim_data.get('clock', {})
        clock = ClockConfig(
            start_time=clock_data.get('start_time', "2016-08-31 10:00:00"),
            tick_seconds=clock_data.get('tick_seconds', 1.0)
        )

        fleet_data = sim_data.get('fleet', {})
        fleet = FleetConfig(
            cabins=[CabinConfig.from_dict(c) for c in fleet_data.get('cabins', [])],
            time_between_floors=fleet_data.get('time_between_floors', 0.5),
            allocation_strategy=fleet_data.get('allocation_strategy', 'FirstFit')
        )

        return cls(
            clock=clock,
            fleet=fleet,
            trips_file=sim_data.get('trips_file'),
            realtime_factor=sim_data.get('realtime_factor', 0.0),
            timeout=sim_data.get('timeout', 7200.0),
            verbose=sim_data.get('verbose', True),
            event_log=sim_data.get('event_log'),
            trajectory_plot=sim_data.get('trajectory_plot')
        )

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization"""
        return {
            'simulation': {
                'clock': {
                    'start_time': self.clock.start_time,
                    'tick_seconds': self.clock.tick_seconds
                },
                'fleet': {
                    'time_between_floors': self.fleet.time_between_floors,
                    'allocation_strategy': self.fleet.allocation_strategy,
                    'cabins': [cabin.to_dict() for cabin in self.fleet.cabins]
                },
                'trips_file': self.trips_file,
                'realtime_factor': self.realtime_factor,
                'timeout': self.timeout,
                'verbose': self.verbose,
                'event_log': self.event_log,
                'trajectory_plot': self.trajectory_plot
            }
        }

    def validate(self):
        """Validate configuration consistency"""
        if not self.fleet.cabins:
            raise ValueError("fleet.cabins must define at least one cabin")

        names = [cabin.name for cabin in self.fleet.cabins]
        duplicates = sorted({name for name in names if names.count(name) > 1})
        if duplicates:
            raise ValueError(f"Duplicate cabin names: {', '.join(duplicates)}")
