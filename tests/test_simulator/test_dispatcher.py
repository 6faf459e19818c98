"""
Dispatcher Test Script

Runs the Dispatcher against small fleets:
- staggered lobby arrivals on one cabin
- zoned cabins with disjoint ranges
- conservation of trips at every step
- capacity, timestamps, floor-1 trips and interrupts
"""

import sys
from datetime import datetime, timedelta
from pathlib import Path

# Add project root to path for imports
project_root = Path(__file__).parent.parent.parent
sys.path.insert(0, str(project_root))

import pytest
import simpy

from simulator.core.cabin import Cabin
from simulator.core.clock import SimulationClock
from simulator.core.dispatcher import Dispatcher
from simulator.core.trip import Trip
from simulator.exceptions import InvalidFloorError
from simulator.infrastructure.message_broker import MessageBroker
from group_control import get_allocation_strategy
from group_control.interfaces.allocation_strategy import IAllocationStrategy

START = datetime(2016, 8, 31, 10, 0, 0)


def at(seconds):
    return START + timedelta(seconds=seconds)


def make_dispatcher(trips, cabin_specs, doors_interval=0.5, strategy=None):
    """cabin_specs: list of (name, floor_start, floor_end, capacity)"""
    env = simpy.Environment()
    broker = MessageBroker(env, verbose=False)
    clock = SimulationClock(START)
    dispatcher = Dispatcher(env, broker, clock, trips, strategy=strategy)
    for name, floor_start, floor_end, capacity in cabin_specs:
        dispatcher.add_cabin(Cabin(env, name, broker, clock, floor_start, floor_end,
                                   capacity, doors_interval))
    return env, broker, dispatcher


def run_to_end(env, dispatcher):
    env.run(until=dispatcher.process)
    env.run()


def assert_conserved(dispatcher):
    total = dispatcher.waiting_count + dispatcher.riding_count + dispatcher.arrived_count
    assert total == dispatcher.total_trips


def test_staggered_arrivals_single_cabin():
    first = Trip("Wilhelmine Stracke PhD", 20, at(0))
    second = Trip("Leola Osinski IV", 11, at(4))
    third = Trip("Pietro Spencer", 21, at(10))
    env, _, dispatcher = make_dispatcher([first, second, third], [("Cabin1", 1, 25, 8)])
    cabin = dispatcher.cabins[0]

    run_to_end(env, dispatcher)

    assert dispatcher.arrived_count == 3
    assert dispatcher.waiting == []
    assert dispatcher.arrived == [first, second, third]
    assert cabin.boarded_count == 3
    assert cabin.rejected_count == 0
    assert cabin.trip_count == 2
    assert cabin.current_floor == 21
    assert not cabin.is_alive

    # The first rider leaves right away and is dropped on the way up
    assert first.board_time == at(0)
    assert first.queue_time == 0.0
    assert first.travel_time == 9.0

    # The other two wait for the recall and share the second run
    assert second.board_time == third.board_time
    assert second.board_time > first.drop_time
    assert second.drop_time < third.drop_time

    assert dispatcher.get_state() == "FINISHED"
    assert not dispatcher.is_running
    assert dispatcher.started_at == START
    assert dispatcher.finished_at > third.drop_time


def test_zoned_cabins_take_only_their_range():
    trip = Trip("Mid", 9, at(0))
    env, broker, dispatcher = make_dispatcher([trip], [("Low", 1, 6, 8), ("High", 7, 12, 8)])
    low, high = dispatcher.cabins

    run_to_end(env, dispatcher)

    assert dispatcher.arrived == [trip]
    assert high.boarded_count == 1
    assert low.boarded_count == 0
    assert low.rejected_count == 0
    assert low.trip_count == 0
    assert low.current_floor == 1
    assert high.current_floor == 9


def test_registry_order_breaks_ties():
    trip = Trip("Anyone", 5, at(0))
    env, _, dispatcher = make_dispatcher([trip], [("A", 1, 10, 8), ("B", 1, 10, 8)])
    run_to_end(env, dispatcher)
    first, second = dispatcher.cabins
    assert first.boarded_count == 1
    assert second.boarded_count == 0


def test_trips_are_conserved_at_every_step():
    floors = [3, 17, 8, 22, 5, 14, 25, 2, 11, 19]
    trips = [Trip(f"Rider{i}", floor, at(i * 2)) for i, floor in enumerate(floors)]
    env, _, dispatcher = make_dispatcher(trips, [("Low", 1, 12, 3), ("High", 13, 25, 3)],
                                         doors_interval=1.0)

    for step in range(1, 2000):
        env.run(until=step * 0.5)
        assert_conserved(dispatcher)
        for cabin in dispatcher.cabins:
            assert len(cabin.passengers) <= cabin.capacity
        if not dispatcher.is_alive:
            break

    assert not dispatcher.is_alive
    assert dispatcher.arrived_count == len(floors)
    assert dispatcher.riding_count == 0
    assert_conserved(dispatcher)


def test_capacity_splits_a_crowd_into_runs():
    trips = [Trip(f"Rider{i}", 5, at(0)) for i in range(5)]
    env, _, dispatcher = make_dispatcher(trips, [("Cabin1", 1, 10, 2)])
    cabin = dispatcher.cabins[0]

    run_to_end(env, dispatcher)

    assert dispatcher.arrived_count == 5
    assert cabin.boarded_count == 5
    assert cabin.trip_count == 3
    # Full cabins are skipped before boarding is attempted
    assert cabin.rejected_count == 0


def test_trip_timestamps_are_ordered():
    trips = [Trip(f"Rider{i}", floor, at(i)) for i, floor in enumerate([4, 9, 2, 7])]
    env, _, dispatcher = make_dispatcher(trips, [("Cabin1", 1, 10, 8)])
    run_to_end(env, dispatcher)

    for trip in dispatcher.arrived:
        assert trip.arrival_time <= trip.board_time <= trip.drop_time
        assert trip.queue_time >= 0
        assert trip.travel_time >= 0


def test_trip_for_lobby_completes_without_a_cabin():
    trip = Trip("Stays", 1, at(0))
    env, _, dispatcher = make_dispatcher([trip], [("Cabin1", 1, 10, 8)])
    run_to_end(env, dispatcher)

    assert dispatcher.arrived == [trip]
    assert trip.queue_time == 0.0
    assert trip.travel_time == 0.0
    assert dispatcher.cabins[0].boarded_count == 0


def test_recall_idle_cabins_twice_sends_one_command():
    env, broker, dispatcher = make_dispatcher([], [("Cabin1", 1, 25, 8), ("Cabin2", 1, 25, 8)])
    parked, lobby = dispatcher.cabins
    parked.current_floor = 20
    parked.destination_floor = 20

    assert dispatcher.recall_idle_cabins() == ["Cabin1"]
    assert dispatcher.recall_idle_cabins() == []

    assert len(broker.get_pipe(parked.command_topic).items) == 1
    assert broker.get_pipe(lobby.command_topic).items == []
    assert len(broker.get_pipe("dispatcher/recall").items) == 1


def test_waiting_trip_triggers_recall_of_parked_cabin():
    early = Trip("Early", 6, at(0))
    late = Trip("Late", 3, at(2))
    env, _, dispatcher = make_dispatcher([early, late], [("Cabin1", 1, 10, 8)])
    cabin = dispatcher.cabins[0]

    run_to_end(env, dispatcher)

    assert dispatcher.arrived == [early, late]
    assert cabin.trip_count == 2
    assert late.board_time > early.drop_time
    assert cabin.current_floor == 3


def test_invalid_floor_propagates_and_keeps_trip_waiting():
    class AnyCabin(IAllocationStrategy):
        def select_cabin(self, target_floor, cabins):
            return cabins[0] if cabins else None

        def get_strategy_name(self):
            return "Any cabin"

    rider = Trip("Rider", 5, at(0))
    roof = Trip("Roof", 30, at(0))
    env, _, dispatcher = make_dispatcher([rider, roof], [("Cabin1", 1, 25, 8)], strategy=AnyCabin())
    cabin = dispatcher.cabins[0]

    with pytest.raises(InvalidFloorError):
        env.run(until=dispatcher.process)

    assert dispatcher.waiting == [roof]
    assert cabin.passengers == [rider]
    assert roof.board_time is None

    # The cabins are stopped on the way out as well
    assert dispatcher.get_state() == "FINISHED"
    assert not dispatcher.is_running
    env.run(until=100)
    assert cabin.shutdown_requested
    assert not cabin.is_alive


def test_interrupt_stops_dispatching_and_cabins():
    trip = Trip("Rider", 20, at(0))
    env, _, dispatcher = make_dispatcher([trip], [("Cabin1", 1, 25, 8)])
    cabin = dispatcher.cabins[0]

    env.run(until=2.5)
    assert dispatcher.abort("operator")
    env.run()

    assert dispatcher.interrupted_by == "operator"
    assert dispatcher.get_state() == "FINISHED"
    assert not dispatcher.is_alive
    assert not cabin.is_alive
    assert dispatcher.finished_at == at(2)
    assert dispatcher.arrived_count == 0
    assert_conserved(dispatcher)


def test_fleet_is_fixed_once_dispatching_started():
    env, broker, dispatcher = make_dispatcher([], [("Cabin1", 1, 10, 8)])
    clock = dispatcher.clock

    with pytest.raises(ValueError):
        dispatcher.add_cabin(Cabin(env, "Cabin1", broker, clock, 1, 10, 8, 0.5))

    env.run()
    assert dispatcher.get_state() == "FINISHED"
    with pytest.raises(RuntimeError):
        dispatcher.add_cabin(Cabin(env, "Cabin2", broker, clock, 1, 10, 8, 0.5))


def test_add_trip_extends_the_queue():
    env, _, dispatcher = make_dispatcher([], [("Cabin1", 1, 10, 8)])
    trip = Trip("Added", 4, at(0))
    dispatcher.add_trip(trip)
    assert dispatcher.total_trips == 1

    run_to_end(env, dispatcher)
    assert dispatcher.arrived == [trip]


def test_unknown_allocation_strategy():
    with pytest.raises(ValueError):
        get_allocation_strategy("Nearest")
    assert get_allocation_strategy("FirstFit").get_strategy_name().startswith("First Fit")


def test_destination_never_drops_on_the_way_up():
    # Higher floors are requested before lower ones within each batch
    floors = [20, 11, 21, 7, 18, 9, 25, 3, 14, 12]
    trips = [Trip(f"Rider{i}", floor, at((i // 3) * 3)) for i, floor in enumerate(floors)]
    env, _, dispatcher = make_dispatcher(trips, [("Cabin1", 1, 25, 4)], doors_interval=1.0)
    cabin = dispatcher.cabins[0]

    last_destination = None
    recalls_seen = 0
    for step in range(1, 4000):
        env.run(until=step * 0.25)
        if cabin.returning_to_base:
            # A recall clamps the destination to the lobby and ends the run up
            if last_destination is not None:
                recalls_seen += 1
            last_destination = None
        else:
            if last_destination is not None:
                assert cabin.destination_floor >= last_destination
            last_destination = cabin.destination_floor
        if not dispatcher.is_alive:
            break

    assert dispatcher.arrived_count == len(floors)
    assert recalls_seen >= 2
