import simpy
from simpy.events import Interrupt
from typing import List

from .entity import Entity
from .clock import SimulationClock, format_timestamp
from .trip import Trip
from ..exceptions import InvalidFloorError
from ..infrastructure.message_broker import MessageBroker

BASE_FLOOR = 1

# Topic on which cabins hand dropped-off trips back to the Dispatcher
ARRIVED_TOPIC = "dispatcher/arrived"

# Commands accepted on cabin/<name>/command
RAISE_DESTINATION = "RAISE_DESTINATION"
RETURN_TO_BASE = "RETURN_TO_BASE"
SHUTDOWN = "SHUTDOWN"


class Cabin(Entity):
    """
    Elevator cabin serving a fixed floor range out of the lobby.

    The cabin only loads at floor 1, rides up to the highest requested
    floor dropping passengers on the way, and comes back down when the
    Dispatcher recalls it.

    Ownership:
    - current_floor, moving, passengers (after boarding) are written by the
      cabin's own control loop
    - destination_floor is only changed by commands received on
      ``cabin/<name>/command``, applied by the cabin's command listener
    """

    def __init__(self, env: simpy.Environment, name: str, broker: MessageBroker, clock: SimulationClock,
                 floor_start: int, floor_end: int, capacity: int, doors_interval: float,
                 time_between_floors: float = 0.5):
        """
        Args:
            env: SimPy environment
            name: Cabin name (unique within the fleet)
            broker: Message broker
            clock: Dispatcher-owned clock used to timestamp drop-offs
            floor_start: Lowest floor served (besides the lobby)
            floor_end: Highest floor served
            capacity: Maximum number of passengers
            doors_interval: Seconds the doors stay open at a stop
            time_between_floors: Seconds to travel one floor
        """
        if floor_start < 1 or floor_end < floor_start:
            raise ValueError(f"Invalid floor range [{floor_start}, {floor_end}] for cabin {name}")
        if capacity < 1:
            raise ValueError(f"capacity must be at least 1 for cabin {name}")

        super().__init__(env, name)
        self.broker = broker
        self.clock = clock
        self.floor_start = floor_start
        self.floor_end = floor_end
        self.capacity = capacity
        self.doors_interval = doors_interval
        self.time_between_floors = time_between_floors

        self.current_floor = BASE_FLOOR
        self.destination_floor = self.current_floor
        self.passengers: List[Trip] = []
        self.moving = False
        self.returning_to_base = False
        self.door_state = "CLOSED"

        # Lifetime counters
        self.trip_count = 0
        self.boarded_count = 0
        self.rejected_count = 0

        self.shutdown_requested = False
        self._recall_pending = False

        self.command_topic = f"cabin/{self.name}/command"
        self.status_topic = f"cabin/{self.name}/status"
        self.door_topic = f"cabin/{self.name}/door_events"

        self.new_command_event = self.env.event()
        self.set_state("IDLE")

        self._listener = self.env.process(self._command_listener())

    @property
    def floor_range(self):
        return (self.floor_start, self.floor_end)

    def serves(self, floor: int) -> bool:
        """Check whether floor lies inside this cabin's service range."""
        return self.floor_start <= floor <= self.floor_end

    def is_full(self) -> bool:
        return len(self.passengers) >= self.capacity

    def is_at_base(self) -> bool:
        return self.current_floor == BASE_FLOOR

    # ========================================
    # Operations called by the Dispatcher
    # ========================================

    def check_floor(self, floor: int):
        """
        Validate a destination floor.

        Raises:
            InvalidFloorError: If floor < 1 or floor > floor_end
        """
        if floor < 1 or floor > self.floor_end:
            raise InvalidFloorError(floor, self.floor_end, self.name)

    def set_destination(self, floor: int):
        """
        Raise the destination to at least ``floor``.

        The destination is a ratchet: a lower floor than the current
        destination leaves it unchanged. The change is applied by the
        cabin's command listener.

        Raises:
            InvalidFloorError: If floor < 1 or floor > floor_end
        """
        self.check_floor(floor)
        print(f"{self.env.now:.2f} [{self.name}] Destination request for floor {floor}.")
        self.broker.put(self.command_topic, {'command': RAISE_DESTINATION, 'floor': floor})

    def return_to_base(self) -> bool:
        """
        Send the cabin back to floor 1.

        Does nothing when the cabin is already at floor 1 or a recall is
        already pending or under way.

        Returns:
            True if a recall command was sent
        """
        if self.current_floor <= BASE_FLOOR:
            return False
        if self._recall_pending or (self.returning_to_base and self.destination_floor == BASE_FLOOR):
            return False
        self._recall_pending = True
        self.broker.put(self.command_topic, {'command': RETURN_TO_BASE})
        return True

    def shutdown(self):
        """Ask the control loop to exit once the current step is over."""
        self.broker.put(self.command_topic, {'command': SHUTDOWN})

    def board(self, trip: Trip) -> bool:
        """
        Take a trip on board.

        Boarding only happens in the lobby, for trips whose target floor
        this cabin serves, while there is room left.

        Args:
            trip: Trip to board

        Returns:
            True if the trip boarded, False if it was refused
        """
        if self.is_full():
            self.rejected_count += 1
            print(f"{self.env.now:.2f} [{self.name}] Boarding refused for {trip.name}: cabin full ({len(self.passengers)}/{self.capacity}).")
            return False
        if not self.is_at_base():
            self.rejected_count += 1
            print(f"{self.env.now:.2f} [{self.name}] Boarding refused for {trip.name}: cabin is at floor {self.current_floor}.")
            return False
        if not self.serves(trip.target_floor):
            self.rejected_count += 1
            print(f"{self.env.now:.2f} [{self.name}] Boarding refused for {trip.name}: floor {trip.target_floor} outside {self.floor_range}.")
            return False

        trip.record_boarding(self.clock.now)
        self.passengers.append(trip)
        self.boarded_count += 1
        print(f"{self.env.now:.2f} [{self.name}] {trip.name} entered on floor {self.current_floor} at "
              f"{format_timestamp(self.clock.now)}, total cabin: {len(self.passengers)}")
        self.env.process(self._report_status())
        return True

    # ========================================
    # Control loop
    # ========================================

    def run(self):
        print(f"{self.env.now:.2f} [{self.name}] Operational at floor {self.current_floor}, serving {self.floor_start}-{self.floor_end}.")
        self.env.process(self._report_status())
        try:
            while not self.shutdown_requested:
                if self.current_floor == self.destination_floor:
                    self.moving = False
                    self.set_state("IDLE")
                    print(f"{self.env.now:.2f} [{self.name}] Stopped on floor {self.current_floor} with {len(self.passengers)} passenger(s).")
                    yield self.new_command_event
                    continue

                self.moving = True
                if self.current_floor < self.destination_floor:
                    self.set_state("UP")
                    yield from self._move(+1)
                else:
                    self.set_state("DOWN")
                    yield from self._move(-1)
        except Interrupt as interrupt:
            self._record_interrupt(interrupt)

        self.moving = False
        self.set_state("IDLE")
        print(f"{self.env.now:.2f} [{self.name}] Control loop finished on floor {self.current_floor}.")

    def _move(self, step: int):
        """Travel one floor, drop off passengers and hold the doors if needed."""
        yield self.env.timeout(self.time_between_floors)
        self.current_floor += step
        print(f"{self.env.now:.2f} [{self.name}] Reached floor {self.current_floor}, going to {self.destination_floor}.")
        self.env.process(self._report_status())

        alighted = self._drop_passengers()

        if alighted or self.current_floor == BASE_FLOOR:
            yield from self._hold_doors()

        # Reaching floor 2 outside of a recall means a loaded run has left the lobby
        if not self.returning_to_base and self.current_floor == 2:
            self.trip_count += 1

        if self.current_floor == BASE_FLOOR:
            self.returning_to_base = False

    def _drop_passengers(self) -> List[Trip]:
        alighted = [trip for trip in self.passengers if trip.target_floor == self.current_floor]
        for trip in alighted:
            self.passengers.remove(trip)
            trip.record_drop(self.clock.now)
            print(f"{self.env.now:.2f} [{self.name}] {trip.name} left on floor {self.current_floor} at "
                  f"{format_timestamp(trip.drop_time)} after {trip.travel_time:.0f}s, total cabin: {len(self.passengers)}")
            self.broker.put(ARRIVED_TOPIC, {'trip': trip, 'cabin': self.name, 'floor': self.current_floor})
        return alighted

    def _hold_doors(self):
        self.door_state = "OPEN"
        self.env.process(self._broadcast_door_event("DOOR_OPENED"))
        self.env.process(self._report_status())
        yield self.env.timeout(self.doors_interval)
        self.door_state = "CLOSED"
        self.env.process(self._broadcast_door_event("DOOR_CLOSED"))

    def _command_listener(self):
        """Apply destination commands sent by the Dispatcher."""
        while True:
            message = yield self.broker.get(self.command_topic)
            command = message['command']

            if command == RAISE_DESTINATION:
                floor = message['floor']
                if floor > self.destination_floor:
                    self.destination_floor = floor
                print(f"{self.env.now:.2f} [{self.name}] Going to floor {self.destination_floor}.")
            elif command == RETURN_TO_BASE:
                self._recall_pending = False
                if self.current_floor > BASE_FLOOR:
                    self.destination_floor = BASE_FLOOR
                    self.returning_to_base = True
                    print(f"{self.env.now:.2f} [{self.name}] Recalled to floor {BASE_FLOOR} from floor {self.current_floor}.")
            elif command == SHUTDOWN:
                self.shutdown_requested = True
            else:
                raise ValueError(f"Unknown cabin command: {command}")

            self._wake()
            if self.shutdown_requested:
                return

    def _wake(self):
        if not self.new_command_event.triggered:
            self.new_command_event.succeed()
            self.new_command_event = self.env.event()

    # ========================================
    # Status broadcasting
    # ========================================

    def _report_status(self):
        status_message = {
            "timestamp": self.env.now,
            "clock": format_timestamp(self.clock.now),
            "current_floor": self.current_floor,
            "destination_floor": self.destination_floor,
            "state": self.state,
            "moving": self.moving,
            "door_state": self.door_state,
            "passengers": len(self.passengers),
            "capacity": self.capacity,
            "floor_range": [self.floor_start, self.floor_end],
        }
        yield self.broker.put(self.status_topic, status_message)

    def _broadcast_door_event(self, event_type: str):
        door_event_message = {
            "timestamp": self.env.now,
            "cabin_name": self.name,
            "event_type": event_type,
            "floor": self.current_floor,
        }
        yield self.broker.put(self.door_topic, door_event_message)

    def __repr__(self) -> str:
        return (f"Cabin({self.name!r}, floor={self.current_floor}, destination={self.destination_floor}, "
                f"passengers={len(self.passengers)}/{self.capacity})")
