# File: src/smart_parking/domain/waiting_queue.py
"""
Bounded FIFO of vehicles waiting for a slot

Backed by a fixed-size ring buffer. Earlier arrivals are always served
first: cancelling a vehicle in the middle of the queue rebuilds the buffer
in order instead of swapping the last entry into the gap.
"""

from typing import List, Optional
import logging


class WaitingQueue:
    """Ring buffer of vehicle ids, head first"""

    def __init__(self, capacity: int):
        if capacity <= 0:
            raise ValueError("Waiting queue capacity must be positive")

        self._capacity = capacity
        self._buffer: List[Optional[int]] = [None] * capacity
        self._front = 0
        self._count = 0
        self._logger = logging.getLogger(self.__class__.__name__)

    def enqueue(self, vehicle_id: int) -> bool:
        """
        Add a vehicle at the back
        Returns: False, leaving the queue untouched, when it is full
        """
        if self.is_full:
            return False

        rear = (self._front + self._count) % self._capacity
        self._buffer[rear] = vehicle_id
        self._count += 1
        return True

    def push_front(self, vehicle_id: int) -> bool:
        """Put a vehicle back at the head (used when a promotion fails)"""
        if self.is_full:
            return False

        self._front = (self._front - 1) % self._capacity
        self._buffer[self._front] = vehicle_id
        self._count += 1
        return True

    def dequeue(self) -> Optional[int]:
        """Remove and return the head, or None when empty"""
        if self._count == 0:
            return None

        vehicle_id = self._buffer[self._front]
        self._buffer[self._front] = None
        self._front = (self._front + 1) % self._capacity
        self._count -= 1

        if self._count == 0:
            self._front = 0

        return vehicle_id

    def remove(self, vehicle_id: int) -> bool:
        """
        Cancel a waiting vehicle anywhere in the queue
        Remaining vehicles keep their relative order.
        Returns: True if the vehicle was found
        """
        remaining = self.peek_all()
        if vehicle_id not in remaining:
            return False

        remaining.remove(vehicle_id)
        self.clear()
        for waiting_id in remaining:
            self.enqueue(waiting_id)

        self._logger.debug(f"Removed vehicle {vehicle_id}, {len(remaining)} still waiting")
        return True

    def peek_all(self) -> List[int]:
        """Waiting vehicles, head first"""
        return [
            self._buffer[(self._front + i) % self._capacity]
            for i in range(self._count)
        ]

    def position_of(self, vehicle_id: int) -> Optional[int]:
        """1-based position of a vehicle, or None if it is not waiting"""
        try:
            return self.peek_all().index(vehicle_id) + 1
        except ValueError:
            return None

    def clear(self) -> None:
        self._buffer = [None] * self._capacity
        self._front = 0
        self._count = 0

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def is_full(self) -> bool:
        return self._count == self._capacity

    @property
    def is_empty(self) -> bool:
        return self._count == 0

    def __len__(self) -> int:
        return self._count

    def __contains__(self, vehicle_id: int) -> bool:
        return vehicle_id in self.peek_all()

    def __str__(self) -> str:
        return f"WaitingQueue({self._count}/{self._capacity})"
