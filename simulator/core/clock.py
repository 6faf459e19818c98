"""
SimulationClock - Shared simulated timestamp

The clock is owned by the Dispatcher, which is its only writer: it advances
the clock by one tick per dispatch cycle. Cabins and trips only read it to
timestamp boarding and drop-off events.
"""

from datetime import datetime, timedelta

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


def parse_timestamp(text: str) -> datetime:
    """
    Parse a ``YYYY-MM-DD HH:MM:SS`` timestamp.

    Raises:
        ValueError: If the text does not match the format
    """
    return datetime.strptime(text.strip(), TIMESTAMP_FORMAT)


def format_timestamp(value: datetime) -> str:
    """Format a timestamp as ``YYYY-MM-DD HH:MM:SS``."""
    return value.strftime(TIMESTAMP_FORMAT)


class SimulationClock:
    """
    Simulated wall-clock time advanced in fixed ticks.

    Attributes:
        start_time: Timestamp of tick 0
        tick: Simulated duration of one tick
        ticks: Number of ticks elapsed since start_time
    """

    def __init__(self, start_time: datetime, tick: timedelta = timedelta(seconds=1)):
        if tick <= timedelta(0):
            raise ValueError("tick must be positive")
        self.start_time = start_time
        self.tick = tick
        self.ticks = 0

    @property
    def now(self) -> datetime:
        """Current simulated timestamp."""
        return self.start_time + self.tick * self.ticks

    @property
    def tick_seconds(self) -> float:
        return self.tick.total_seconds()

    @property
    def elapsed_seconds(self) -> float:
        """Simulated seconds since start_time."""
        return (self.now - self.start_time).total_seconds()

    def advance(self, ticks: int = 1) -> datetime:
        """
        Move the clock forward.

        Args:
            ticks: Number of ticks to advance (must be positive)

        Returns:
            The new current timestamp
        """
        if ticks < 1:
            raise ValueError("the clock only moves forward")
        self.ticks += ticks
        return self.now

    def __repr__(self) -> str:
        return f"SimulationClock(now={format_timestamp(self.now)}, ticks={self.ticks})"
