"""
Cabin Test Script

Tests a single cabin driven directly through its command topic:
- destination range checks
- destination ratchet
- boarding refusals (full, away from the lobby, outside the range)
- recall idempotence
- interrupting the control loop
"""

import sys
from datetime import datetime
from pathlib import Path

# Add project root to path for imports
project_root = Path(__file__).parent.parent.parent
sys.path.insert(0, str(project_root))

import pytest
import simpy

from simulator.core.cabin import Cabin
from simulator.core.clock import SimulationClock
from simulator.core.trip import Trip
from simulator.exceptions import InvalidFloorError
from simulator.infrastructure.message_broker import MessageBroker

START = datetime(2016, 8, 31, 10, 0, 0)


def make_cabin(floor_start=1, floor_end=25, capacity=8, doors_interval=0.5):
    env = simpy.Environment()
    broker = MessageBroker(env, verbose=False)
    clock = SimulationClock(START)
    cabin = Cabin(env, "Cabin1", broker, clock,
                  floor_start=floor_start, floor_end=floor_end,
                  capacity=capacity, doors_interval=doors_interval)
    return env, broker, cabin


def test_cabin_starts_idle_in_lobby():
    env, _, cabin = make_cabin()
    env.run(until=0.1)
    assert cabin.current_floor == 1
    assert cabin.destination_floor == 1
    assert cabin.passengers == []
    assert not cabin.moving
    assert cabin.get_state() == "IDLE"


def test_invalid_cabin_definitions():
    env = simpy.Environment()
    broker = MessageBroker(env, verbose=False)
    clock = SimulationClock(START)
    with pytest.raises(ValueError):
        Cabin(env, "Bad", broker, clock, floor_start=7, floor_end=6, capacity=8, doors_interval=1.0)
    with pytest.raises(ValueError):
        Cabin(env, "Bad", broker, clock, floor_start=1, floor_end=6, capacity=0, doors_interval=1.0)


def test_destination_range_boundaries():
    env, broker, cabin = make_cabin(floor_end=25)

    cabin.set_destination(25)
    with pytest.raises(InvalidFloorError) as excinfo:
        cabin.set_destination(26)
    assert excinfo.value.floor == 26
    assert "between 1 and 25" in str(excinfo.value)

    with pytest.raises(InvalidFloorError):
        cabin.set_destination(0)

    # Only the valid request reached the command topic
    assert len(broker.get_pipe(cabin.command_topic).items) == 1


def test_invalid_floor_is_a_value_error():
    _, _, cabin = make_cabin(floor_end=6)
    with pytest.raises(ValueError):
        cabin.check_floor(7)


def test_destination_only_ratchets_up():
    env, _, cabin = make_cabin()
    env.run(until=0.1)

    cabin.set_destination(20)
    cabin.set_destination(11)
    env.run(until=0.2)

    assert cabin.destination_floor == 20
    assert cabin.moving
    assert cabin.get_state() == "UP"


def test_full_cabin_refuses_boarding():
    env, _, cabin = make_cabin(capacity=2)
    first = Trip("First", 5, START)
    second = Trip("Second", 6, START)
    third = Trip("Third", 7, START)

    assert cabin.board(first)
    assert cabin.board(second)
    assert cabin.is_full()

    assert not cabin.board(third)
    assert cabin.passengers == [first, second]
    assert cabin.boarded_count == 2
    assert cabin.rejected_count == 1
    assert third.board_time is None


def test_boarding_refused_away_from_lobby():
    env, _, cabin = make_cabin()
    env.run(until=0.1)
    cabin.set_destination(3)
    env.run(until=2.0)
    assert cabin.current_floor == 3

    trip = Trip("Late", 5, START)
    assert not cabin.board(trip)
    assert cabin.rejected_count == 1
    assert cabin.passengers == []


def test_boarding_refused_outside_range():
    _, _, cabin = make_cabin(floor_start=7, floor_end=12)
    assert not cabin.board(Trip("Low", 3, START))
    assert not cabin.board(Trip("High", 13, START))
    assert cabin.rejected_count == 2
    assert cabin.board(Trip("Mid", 9, START))


def test_passengers_leave_at_their_floor():
    env, broker, cabin = make_cabin()
    env.run(until=0.1)
    trip = Trip("Rider", 4, START)
    assert cabin.board(trip)
    cabin.set_destination(4)

    env.run(until=5.0)

    assert cabin.current_floor == 4
    assert cabin.passengers == []
    assert trip.has_arrived
    assert trip.drop_time >= trip.board_time
    assert cabin.trip_count == 1
    arrived = broker.get_pipe("dispatcher/arrived").items
    assert [message['trip'] for message in arrived] == [trip]

    statuses = broker.get_pipe(cabin.status_topic).items
    assert any(s["door_state"] == "OPEN" and s["current_floor"] == 4 for s in statuses)
    assert cabin.door_state == "CLOSED"


def test_return_to_base_is_idempotent():
    env, broker, cabin = make_cabin(doors_interval=0.5)
    env.run(until=0.1)
    cabin.set_destination(3)
    env.run(until=2.0)
    assert cabin.current_floor == 3
    assert not cabin.moving

    assert cabin.return_to_base()
    assert not cabin.return_to_base()
    env.run(until=2.1)
    assert cabin.destination_floor == 1
    assert cabin.returning_to_base
    assert not cabin.return_to_base()

    env.run(until=10.0)
    assert cabin.current_floor == 1
    assert cabin.destination_floor == 1
    assert not cabin.returning_to_base
    # Coming back down is not a new trip
    assert cabin.trip_count == 1
    assert not cabin.return_to_base()


def test_recall_in_lobby_does_nothing():
    env, broker, cabin = make_cabin()
    env.run(until=0.1)
    assert not cabin.return_to_base()
    assert broker.get_pipe(cabin.command_topic).items == []


def test_shutdown_ends_control_loop():
    env, _, cabin = make_cabin()
    env.run(until=0.1)
    cabin.shutdown()
    env.run()
    assert not cabin.is_alive
    assert cabin.shutdown_requested


def test_abort_interrupts_control_loop():
    env, _, cabin = make_cabin()
    env.run(until=0.1)
    cabin.set_destination(10)
    env.run(until=1.2)

    assert cabin.abort("maintenance")
    env.run(until=1.3)

    assert not cabin.is_alive
    assert cabin.interrupted_by == "maintenance"
    assert not cabin.moving
    assert cabin.get_state() == "IDLE"
    assert not cabin.abort("again")
