import simpy
from simpy.events import Interrupt
from typing import Iterable, List, Optional

from .entity import Entity
from .cabin import ARRIVED_TOPIC, BASE_FLOOR, Cabin
from .clock import SimulationClock, format_timestamp
from .trip import Trip
from ..infrastructure.message_broker import MessageBroker
from group_control.interfaces.allocation_strategy import IAllocationStrategy
from group_control.algorithms.first_fit import FirstFitStrategy


class Dispatcher(Entity):
    """
    Lobby dispatcher that matches waiting trips with cabins.

    The Dispatcher owns the waiting queue, the arrived list, the fleet
    registry and the simulation clock. Each cycle it scans the waiting
    trips that have already shown up in the lobby, boards each one onto
    the first cabin that can take it, and recalls idle cabins when a trip
    cannot be served. Then it waits one tick and advances the clock.

    The loop ends when nobody is waiting and no cabin is moving.
    """

    def __init__(self, env: simpy.Environment, broker: MessageBroker, clock: SimulationClock,
                 trips: Iterable[Trip] = (), strategy: IAllocationStrategy = None,
                 tick_interval: Optional[float] = None, name: str = "Dispatcher"):
        """
        Args:
            env: SimPy environment
            broker: Message broker shared with the cabins
            clock: Simulation clock (the Dispatcher is its only writer)
            trips: Trips in arrival order
            strategy: Allocation strategy (FirstFitStrategy by default)
            tick_interval: Environment seconds per tick (defaults to the clock tick)
            name: Entity name
        """
        super().__init__(env, name)
        self.broker = broker
        self.clock = clock
        self.strategy = strategy if strategy is not None else FirstFitStrategy()
        self.tick_interval = tick_interval if tick_interval is not None else clock.tick_seconds

        self.waiting: List[Trip] = list(trips)
        self.arrived: List[Trip] = []
        self.cabins: List[Cabin] = []
        self.total_trips = len(self.waiting)

        self.is_running = False
        self.started_at = None
        self.finished_at = None

        self.set_state("READY")
        print(f"{self.env.now:.2f} [{self.name}] Using strategy: {self.strategy.get_strategy_name()}")

        self.env.process(self._arrival_listener())

    # ========================================
    # Setup
    # ========================================

    def add_cabin(self, cabin: Cabin):
        """
        Register a cabin. Registry order is the tie-break order.

        Raises:
            RuntimeError: If the dispatch loop has already started
        """
        if self.state != "READY":
            raise RuntimeError("The fleet is fixed once the dispatch loop has started")
        if any(existing.name == cabin.name for existing in self.cabins):
            raise ValueError(f"Duplicate cabin name: {cabin.name}")
        self.cabins.append(cabin)
        print(f"{self.env.now:.2f} [{self.name}] Cabin '{cabin.name}' registered ({cabin.floor_start}-{cabin.floor_end}, capacity {cabin.capacity}).")

    def add_trip(self, trip: Trip):
        """Enqueue one more trip at the end of the waiting queue."""
        self.waiting.append(trip)
        self.total_trips += 1

    # ========================================
    # Counters
    # ========================================

    @property
    def waiting_count(self) -> int:
        return len(self.waiting)

    @property
    def arrived_count(self) -> int:
        return len(self.arrived)

    @property
    def riding_count(self) -> int:
        return sum(len(cabin.passengers) for cabin in self.cabins)

    def is_somebody_traveling(self) -> bool:
        return any(cabin.moving for cabin in self.cabins)

    # ========================================
    # Control loop
    # ========================================

    def run(self):
        self.is_running = True
        self.started_at = self.clock.now
        self.set_state("DISPATCHING")
        print(f"{self.env.now:.2f} [{self.name}] Start dispatching {len(self.waiting)} trip(s) with {len(self.cabins)} cabin(s).")

        try:
            while self.waiting or self.is_somebody_traveling():
                print(f"{self.env.now:.2f} [{self.name}] Queue size: {len(self.waiting)}, current time: {format_timestamp(self.clock.now)}")
                self.tick()
                yield self.env.timeout(self.tick_interval)
                self.clock.advance()
        except Interrupt as interrupt:
            self._record_interrupt(interrupt)
        finally:
            # Also reached when an InvalidFloorError leaves tick()
            self.is_running = False
            self.finished_at = self.clock.now
            for cabin in self.cabins:
                cabin.shutdown()
            self.set_state("FINISHED")

        print(f"{self.env.now:.2f} [{self.name}] End dispatching: {len(self.arrived)} arrived, {len(self.waiting)} waiting.")

    def tick(self):
        """
        Run one dispatch cycle at the current clock value.

        Raises:
            InvalidFloorError: If a cabin refuses the target floor of a trip.
                The trip stays in the waiting queue.
        """
        now = self.clock.now
        for trip in list(self.waiting):
            if trip.arrival_time > now:
                continue

            if trip.target_floor == BASE_FLOOR:
                self._complete_in_lobby(trip)
                continue

            cabin = self.find_cabin(trip.target_floor)
            if cabin is not None and self.assign(trip, cabin):
                continue
            self.recall_idle_cabins()

    def find_cabin(self, target_floor: int) -> Optional[Cabin]:
        """Ask the allocation strategy for a cabin that can take target_floor."""
        return self.strategy.select_cabin(target_floor, self.cabins)

    def assign(self, trip: Trip, cabin: Cabin) -> bool:
        """
        Board a waiting trip onto a cabin and raise the cabin's destination.

        The floor is validated before anything changes, so a failure leaves
        the trip waiting and the cabin untouched.

        Returns:
            True if the trip boarded

        Raises:
            InvalidFloorError: If the cabin cannot go to the trip's target floor
        """
        cabin.check_floor(trip.target_floor)
        if not cabin.board(trip):
            return False
        cabin.set_destination(trip.target_floor)
        self.waiting.remove(trip)

        self.broker.put('dispatcher/assignment', {
            'timestamp': self.env.now,
            'clock': format_timestamp(self.clock.now),
            'trip': trip.name,
            'target_floor': trip.target_floor,
            'cabin': cabin.name,
        })
        return True

    def recall_idle_cabins(self) -> List[str]:
        """
        Send every cabin that is parked above the lobby back to floor 1.

        Returns:
            Names of the cabins that received a recall command
        """
        recalled = []
        for cabin in self.cabins:
            if cabin.current_floor > BASE_FLOOR and not cabin.moving:
                if cabin.return_to_base():
                    recalled.append(cabin.name)

        if recalled:
            print(f"{self.env.now:.2f} [{self.name}] Recalled to lobby: {', '.join(recalled)}")
            self.broker.put('dispatcher/recall', {
                'timestamp': self.env.now,
                'clock': format_timestamp(self.clock.now),
                'cabins': recalled,
            })
        return recalled

    def _complete_in_lobby(self, trip: Trip):
        # Nothing to ride: the rider is already on the target floor
        now = self.clock.now
        trip.record_boarding(now)
        trip.record_drop(now)
        self.waiting.remove(trip)
        self.arrived.append(trip)
        print(f"{self.env.now:.2f} [{self.name}] {trip.name} wants floor {BASE_FLOOR}; done in the lobby.")

    def _arrival_listener(self):
        """Collect trips dropped off by the cabins."""
        while True:
            message = yield self.broker.get(ARRIVED_TOPIC)
            self.arrived.append(message['trip'])
