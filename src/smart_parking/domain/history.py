# File: src/smart_parking/domain/history.py
"""
Append-only log of parking sessions, most recent first
"""

from datetime import datetime
from typing import Iterator, List
import logging

from .models import HistoryRecord


class HistoryLog:
    """
    Owns every HistoryRecord. Records are appended on allocation and replaced
    by their closed copy on departure; they are only discarded by a full
    reinitialization.
    """

    def __init__(self):
        # Oldest first; iteration walks it backwards
        self._records: List[HistoryRecord] = []
        self._logger = logging.getLogger(self.__class__.__name__)

    def append(self, vehicle_id: int, slot: int, entry_time: datetime) -> HistoryRecord:
        """Open a new session record"""
        record = HistoryRecord(vehicle_id=vehicle_id, slot=slot, entry_time=entry_time)
        self._records.append(record)
        return record

    def close_open(self, vehicle_id: int, slot: int, exit_time: datetime) -> bool:
        """
        Close the most recently appended open record for (vehicle, slot)
        Returns: False if no open record matches
        """
        for index in range(len(self._records) - 1, -1, -1):
            record = self._records[index]
            if record.is_open and record.vehicle_id == vehicle_id and record.slot == slot:
                self._records[index] = record.closed(exit_time)
                return True

        self._logger.warning(f"No open history record for vehicle {vehicle_id} in slot {slot}")
        return False

    def iter_most_recent_first(self) -> Iterator[HistoryRecord]:
        """Lazily walk the log from the newest record; call again to restart"""
        for index in range(len(self._records) - 1, -1, -1):
            yield self._records[index]

    def open_records(self) -> List[HistoryRecord]:
        return [record for record in self.iter_most_recent_first() if record.is_open]

    def clear(self) -> None:
        """Forget everything (full reinitialization only)"""
        self._records.clear()

    def __iter__(self) -> Iterator[HistoryRecord]:
        return self.iter_most_recent_first()

    def __len__(self) -> int:
        return len(self._records)
