"""
Trip loader

Reads the lobby arrival list from delimited text. Each row holds a rider
name, the lobby arrival timestamp and the target floor:

    "Wilhelmine Stracke PhD","2016-08-31 10:00:00","20"

Quotes are optional, there is no header row and blank lines are skipped.
"""

import csv
from pathlib import Path
from typing import List, Union

from ..core.clock import parse_timestamp
from ..core.trip import Trip


def load_trips_from_csv(file_path: Union[str, Path], delimiter: str = ",") -> List[Trip]:
    """
    Load trips from a CSV file, keeping file order

    Args:
        file_path: Path to the CSV file
        delimiter: Field delimiter

    Returns:
        List of Trip objects

    Raises:
        FileNotFoundError: If the file doesn't exist
        ValueError: If a row is malformed (the message names the line)
    """
    file_path = Path(file_path)

    if not file_path.exists():
        raise FileNotFoundError(f"Trip file not found: {file_path}")

    with open(file_path, 'r', encoding='utf-8', newline='') as f:
        return parse_trip_rows(csv.reader(f, delimiter=delimiter))


def parse_trip_rows(rows) -> List[Trip]:
    """
    Build trips from already split rows of (name, arrival, floor)
    """
    trips: List[Trip] = []
    for line_number, row in enumerate(rows, start=1):
        fields = [field.strip() for field in row]
        if not any(fields):
            continue
        if len(fields) < 3:
            raise ValueError(f"Line {line_number}: expected name, arrival time and floor, got {row}")

        name, arrival_text, floor_text = fields[:3]
        try:
            arrival_time = parse_timestamp(arrival_text)
            target_floor = int(floor_text)
            trips.append(Trip(name=name, target_floor=target_floor, arrival_time=arrival_time))
        except ValueError as e:
            raise ValueError(f"Line {line_number}: {e}") from e
    return trips
