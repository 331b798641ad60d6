# File: src/smart_parking/domain/allocator.py
"""
Slot allocation for a fixed-capacity facility

Free slots live in a min-heap so that every acquisition returns the
lowest-numbered free slot, however vehicles come and go.
"""

from typing import List, Optional, Set
import heapq
import logging

from .models import SlotContractError


class SlotAllocator:
    """
    Hands out the numerically smallest free slot in [1, capacity]
    and takes released slots back.
    """

    def __init__(self, capacity: int):
        if capacity <= 0:
            raise ValueError("Slot capacity must be positive")

        self._capacity = capacity
        self._heap: List[int] = []
        self._free: Set[int] = set()
        self._logger = logging.getLogger(self.__class__.__name__)

        self.reset()

    def reset(self) -> None:
        """Mark every slot free again"""
        self._heap = list(range(1, self._capacity + 1))
        heapq.heapify(self._heap)
        self._free = set(self._heap)
        self._logger.debug(f"All {self._capacity} slots free")

    def acquire(self) -> Optional[int]:
        """
        Take the lowest free slot
        Returns: slot number, or None when every slot is taken
        """
        if not self._heap:
            return None

        slot = heapq.heappop(self._heap)
        self._free.discard(slot)
        return slot

    def release(self, slot: int) -> None:
        """
        Give a slot back
        Raises: SlotContractError if the slot is unknown or already free
        """
        if not 1 <= slot <= self._capacity:
            raise SlotContractError(f"Slot {slot} outside 1..{self._capacity}")

        if slot in self._free:
            raise SlotContractError(f"Slot {slot} released twice")

        heapq.heappush(self._heap, slot)
        self._free.add(slot)

    def is_free(self, slot: int) -> bool:
        return slot in self._free

    def free_slots(self) -> List[int]:
        """Free slots in ascending order"""
        return sorted(self._free)

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def available(self) -> int:
        return len(self._heap)

    @property
    def occupied(self) -> int:
        return self._capacity - len(self._heap)

    def __str__(self) -> str:
        return f"SlotAllocator({self.available}/{self._capacity} free)"
