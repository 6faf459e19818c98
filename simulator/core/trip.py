from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from .clock import format_timestamp


@dataclass(eq=False)
class Trip:
    """
    One rider going from the lobby (floor 1) to a target floor.

    Identity and target are fixed at creation. board_time and drop_time stay
    None until the Dispatcher assigns the trip to a cabin and the cabin drops
    it off at target_floor.

    Trips compare by identity so that two riders with the same name and
    target are still distinct entries in the queues.
    """
    name: str
    target_floor: int
    arrival_time: datetime
    board_time: Optional[datetime] = None
    drop_time: Optional[datetime] = None

    def __post_init__(self):
        if self.target_floor < 1:
            raise ValueError(f"target_floor must be >= 1, got {self.target_floor}")

    def record_boarding(self, timestamp: datetime):
        self.board_time = timestamp

    def record_drop(self, timestamp: datetime):
        self.drop_time = timestamp

    @property
    def has_arrived(self) -> bool:
        return self.drop_time is not None

    # ========================================
    # Trip metrics (seconds)
    # ========================================

    @property
    def queue_time(self) -> Optional[float]:
        """Seconds between arriving in the lobby and boarding a cabin."""
        if self.board_time is None:
            return None
        return (self.board_time - self.arrival_time).total_seconds()

    @property
    def travel_time(self) -> Optional[float]:
        """Seconds spent inside the cabin."""
        if self.board_time is None or self.drop_time is None:
            return None
        return (self.drop_time - self.board_time).total_seconds()

    @property
    def total_time(self) -> Optional[float]:
        """Seconds from lobby arrival to drop-off."""
        if self.drop_time is None:
            return None
        return (self.drop_time - self.arrival_time).total_seconds()

    def to_dict(self) -> dict:
        return {
            'name': self.name,
            'target_floor': self.target_floor,
            'arrival_time': format_timestamp(self.arrival_time),
            'board_time': format_timestamp(self.board_time) if self.board_time else None,
            'drop_time': format_timestamp(self.drop_time) if self.drop_time else None,
            'queue_time': self.queue_time,
            'travel_time': self.travel_time,
            'total_time': self.total_time,
        }

    def __repr__(self) -> str:
        return f"Trip({self.name!r} -> {self.target_floor}F)"
