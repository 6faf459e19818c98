"""
Trip report

End-of-run figures for a finished Dispatcher: per-trip queue, travel and
total times, their averages, and the lifetime counters of every cabin.
"""

from dataclasses import asdict, dataclass
from typing import Any, Dict, List

import numpy as np

from simulator.core.clock import format_timestamp


@dataclass(frozen=True)
class TripRecord:
    """One delivered trip, times in seconds"""
    name: str
    target_floor: int
    arrival_time: str
    board_time: str
    drop_time: str
    queue_time: float
    travel_time: float
    total_time: float


@dataclass(frozen=True)
class CabinRecord:
    """Lifetime counters of one cabin"""
    name: str
    trip_count: int
    boarded_count: int
    rejected_count: int


class TripReport:
    """
    Builds the detailed report from a Dispatcher.

    Only arrived trips appear in the per-trip rows. Trips still waiting
    (an aborted run) and trips no cabin could serve are counted separately.
    """

    NAME_WIDTH = 10

    def __init__(self, dispatcher, skipped_trips=()):
        self.dispatcher = dispatcher
        self.skipped_trips = list(skipped_trips)

    def trip_records(self) -> List[TripRecord]:
        return [
            TripRecord(
                name=trip.name,
                target_floor=trip.target_floor,
                arrival_time=format_timestamp(trip.arrival_time),
                board_time=format_timestamp(trip.board_time),
                drop_time=format_timestamp(trip.drop_time),
                queue_time=trip.queue_time,
                travel_time=trip.travel_time,
                total_time=trip.total_time,
            )
            for trip in self.dispatcher.arrived
        ]

    def cabin_records(self) -> List[CabinRecord]:
        return [
            CabinRecord(cabin.name, cabin.trip_count, cabin.boarded_count, cabin.rejected_count)
            for cabin in self.dispatcher.cabins
        ]

    def summary(self) -> Dict[str, Any]:
        """
        Aggregate figures of the run.

        Averages are 0.0 when nobody arrived.
        """
        records = self.trip_records()
        queue = np.array([r.queue_time for r in records], dtype=float)
        travel = np.array([r.travel_time for r in records], dtype=float)
        total = np.array([r.total_time for r in records], dtype=float)

        started_at = self.dispatcher.started_at
        finished_at = self.dispatcher.finished_at or self.dispatcher.clock.now

        return {
            'total_travelers': len(records),
            'still_waiting': self.dispatcher.waiting_count,
            'skipped': len(self.skipped_trips),
            'simulation_start': format_timestamp(started_at) if started_at else None,
            'simulation_end': format_timestamp(finished_at),
            'simulation_duration': (finished_at - started_at).total_seconds() if started_at else 0.0,
            'queue_time_average': _mean(queue),
            'travel_time_average': _mean(travel),
            'total_time_average': _mean(total),
            'total_time_p95': float(np.percentile(total, 95)) if total.size else 0.0,
        }

    def to_dict(self) -> Dict[str, Any]:
        return {
            'summary': self.summary(),
            'trips': [asdict(r) for r in self.trip_records()],
            'cabins': [asdict(c) for c in self.cabin_records()],
        }

    def print_report(self):
        """Print the detailed per-trip table, the summary and the cabin counters."""
        print("\n" + "=" * 80)
        print("   TRIP REPORT")
        print("=" * 80)
        print("name\tarrival\tstartTravel\tendTravel\tqueueTime\ttravelTime\ttotalTime")
        for r in self.trip_records():
            print(f"{r.name[:self.NAME_WIDTH]}\t{r.arrival_time}\t{r.board_time}\t{r.drop_time}\t"
                  f"{r.queue_time:.1f}\t{r.travel_time:.1f}\t{r.total_time:.1f}")

        summary = self.summary()
        print("-" * 80)
        print(f"Total travelers\t{summary['total_travelers']}")
        if summary['still_waiting']:
            print(f"Still waiting\t{summary['still_waiting']}")
        if summary['skipped']:
            print(f"Skipped (no cabin serves the floor)\t{summary['skipped']}")
        print(f"Simulation start\t{summary['simulation_start']}")
        print(f"Simulation end\t{summary['simulation_end']}")
        print(f"Simulation duration (seconds)\t{summary['simulation_duration']:.0f}")
        print(f"Queue time average (seconds)\t{summary['queue_time_average']:.2f}")
        print(f"Travel time average (seconds)\t{summary['travel_time_average']:.2f}")
        print(f"Total time average (seconds)\t{summary['total_time_average']:.2f}")
        print(f"Total time p95 (seconds)\t{summary['total_time_p95']:.2f}")

        for c in self.cabin_records():
            print(f"{c.name} total travels\t{c.trip_count}")
            print(f"{c.name} total travelers\t{c.boarded_count}")
            if c.rejected_count:
                print(f"{c.name} refused boardings\t{c.rejected_count}")
        print("=" * 80)


def _mean(values: np.ndarray) -> float:
    return float(values.mean()) if values.size else 0.0
