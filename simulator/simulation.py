"""
Simulation facade

Builds the environment, broker, clock, Dispatcher and cabins from a
SimulationConfig and runs them until every trip is delivered or the
operator timeout expires.
"""

from datetime import timedelta
from typing import List, Optional, Sequence, Tuple, TYPE_CHECKING

import simpy

from .core.cabin import Cabin
from .core.clock import SimulationClock
from .core.dispatcher import Dispatcher
from .core.trip import Trip
from .infrastructure.message_broker import MessageBroker
from .infrastructure.realtime_env import RealtimeEnvironment
from analyzer.statistics import Statistics
from group_control import get_allocation_strategy

if TYPE_CHECKING:
    from config.simulation import SimulationConfig


class Simulation:
    """
    One configured dispatch run.

    Attributes:
        env: SimPy environment (realtime-paced or not)
        broker: Message broker shared by all entities
        clock: Dispatcher-owned simulation clock
        dispatcher: The Dispatcher
        statistics: Broadcast recorder, or None
        skipped_trips: Trips left out because no cabin serves their floor
    """

    def __init__(self, env: simpy.Environment, broker: MessageBroker, clock: SimulationClock,
                 dispatcher: Dispatcher, statistics: Optional[Statistics] = None,
                 skipped_trips: Sequence[Trip] = ()):
        self.env = env
        self.broker = broker
        self.clock = clock
        self.dispatcher = dispatcher
        self.statistics = statistics
        self.skipped_trips = list(skipped_trips)

    @property
    def cabins(self) -> List[Cabin]:
        return self.dispatcher.cabins

    @property
    def total_trips(self) -> int:
        """Trips injected into the run, skipped ones included."""
        return self.dispatcher.total_trips + len(self.skipped_trips)

    @property
    def completed(self) -> bool:
        """
        True when the dispatch loop ended on its own with nobody left waiting
        and no trip was skipped.
        """
        return (not self.dispatcher.is_alive
                and self.dispatcher.interrupted_by is None
                and not self.dispatcher.waiting
                and not self.skipped_trips)

    def run(self, timeout: Optional[float] = None) -> bool:
        """
        Run until the Dispatcher finishes.

        Args:
            timeout: Environment seconds after which the Dispatcher is
                interrupted. None runs without a limit.

        Returns:
            True if every waiting trip was delivered
        """
        print("\n--- Simulation Start ---")
        if timeout is None:
            self.env.run(until=self.dispatcher.process)
        else:
            deadline = self.env.timeout(timeout)
            self.env.run(until=self.env.any_of([self.dispatcher.process, deadline]))
            if self.dispatcher.is_alive:
                print(f"{self.env.now:.2f} [Simulation] Aborted after timeout ({timeout}s).")
                self.dispatcher.abort("timeout")
                self.env.run(until=self.dispatcher.process)

        # Let the cabins observe the shutdown and leave their loops
        self.env.run()
        print("--- Simulation End ---")
        return self.completed


def partition_servable(trips: Sequence[Trip], floor_ranges: Sequence[Tuple[int, int]]) -> Tuple[List[Trip], List[Trip]]:
    """
    Split trips into those some cabin can serve and those none can.

    Trips for floor 1 need no cabin and count as servable.
    """
    servable, skipped = [], []
    for trip in trips:
        if trip.target_floor == 1 or any(start <= trip.target_floor <= end for start, end in floor_ranges):
            servable.append(trip)
        else:
            skipped.append(trip)
    return servable, skipped


def build_simulation(config: "SimulationConfig", trips: Sequence[Trip],
                     record_statistics: bool = True) -> Simulation:
    """
    Set up a Simulation from configuration

    Args:
        config: Validated SimulationConfig
        trips: Trips in arrival order
        record_statistics: Attach a Statistics recorder to the broadcast pipe

    Returns:
        Simulation ready to run
    """
    if config.realtime_factor > 0:
        env = RealtimeEnvironment(speed_factor=config.realtime_factor)
        print(f"Realtime mode enabled (speed factor {config.realtime_factor})")
    else:
        env = simpy.Environment()

    broker = MessageBroker(env, verbose=config.verbose)

    statistics = None
    if record_statistics:
        statistics = Statistics(env, broker.get_broadcast_pipe())
        env.process(statistics.start_listening())

    clock = SimulationClock(config.clock.start_datetime(), timedelta(seconds=config.clock.tick_seconds))

    floor_ranges = [(c.floor_start, c.floor_end) for c in config.fleet.cabins]
    servable, skipped = partition_servable(trips, floor_ranges)
    for trip in skipped:
        print(f"Skipped trip {trip.name}: no cabin serves floor {trip.target_floor}")

    strategy = get_allocation_strategy(config.fleet.allocation_strategy)
    dispatcher = Dispatcher(env, broker, clock, servable, strategy=strategy,
                            tick_interval=config.clock.tick_seconds)

    for cabin_config in config.fleet.cabins:
        cabin = Cabin(
            env, cabin_config.name, broker, clock,
            floor_start=cabin_config.floor_start,
            floor_end=cabin_config.floor_end,
            capacity=cabin_config.capacity,
            doors_interval=cabin_config.doors_interval,
            time_between_floors=config.fleet.time_between_floors
        )
        dispatcher.add_cabin(cabin)

    if statistics is not None:
        statistics.set_simulation_metadata({
            'start_time': config.clock.start_time,
            'tick_seconds': config.clock.tick_seconds,
            'time_between_floors': config.fleet.time_between_floors,
            'allocation_strategy': config.fleet.allocation_strategy,
            'cabins': [c.to_dict() for c in config.fleet.cabins],
            'trips': len(servable),
            'skipped_trips': len(skipped),
        })

    return Simulation(env, broker, clock, dispatcher, statistics, skipped)
