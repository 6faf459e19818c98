"""
Exceptions raised by the dispatch simulator
"""


class InvalidFloorError(ValueError):
    """
    Requested floor lies outside a cabin's physical range.

    Raised when a destination below floor 1 or above the cabin's
    ``floor_end`` is requested. It signals a configuration or programming
    error and is never retried.

    Attributes:
        floor: The floor that was requested
        floor_end: Highest floor the cabin can reach
        cabin_name: Name of the cabin that refused the floor
    """

    def __init__(self, floor: int, floor_end: int, cabin_name: str = None):
        self.floor = floor
        self.floor_end = floor_end
        self.cabin_name = cabin_name
        prefix = f"{cabin_name}: " if cabin_name else ""
        super().__init__(
            f"{prefix}destination floor {floor} is invalid. "
            f"Floor must be between 1 and {floor_end}."
        )
