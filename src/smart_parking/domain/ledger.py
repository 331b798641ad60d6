# File: src/smart_parking/domain/ledger.py
"""
Per-vehicle state for the facility

The ledger keeps the vehicle -> state map, its slot -> vehicle inverse and
the set of pass holders. It enforces no policy; ParkingEngine decides which
transitions happen.
"""

from datetime import datetime
from typing import Dict, List, Optional, Set, Tuple
import logging

from .models import VehicleState, SlotContractError


class ParkingLedger:
    """State of every vehicle id in [0, max_vehicle_id)"""

    def __init__(self, max_vehicle_id: int):
        if max_vehicle_id <= 0:
            raise ValueError("Vehicle id range must be non-empty")

        self._max_vehicle_id = max_vehicle_id
        # Absent vehicles have no entry
        self._states: Dict[int, VehicleState] = {}
        self._slot_to_vehicle: Dict[int, int] = {}
        self._pass_holders: Set[int] = set()
        self._logger = logging.getLogger(self.__class__.__name__)

    def is_valid(self, vehicle_id: int) -> bool:
        if isinstance(vehicle_id, bool) or not isinstance(vehicle_id, int):
            return False
        return 0 <= vehicle_id < self._max_vehicle_id

    def state_of(self, vehicle_id: int) -> VehicleState:
        return self._states.get(vehicle_id, VehicleState.absent())

    def mark_parked(self, vehicle_id: int, slot: int, entry_time: datetime) -> None:
        """Record a vehicle as parked in a slot"""
        holder = self._slot_to_vehicle.get(slot)
        if holder is not None:
            raise SlotContractError(f"Slot {slot} already holds vehicle {holder}")

        if self.state_of(vehicle_id).is_parked:
            raise SlotContractError(f"Vehicle {vehicle_id} already occupies a slot")

        self._states[vehicle_id] = VehicleState.parked(slot, entry_time)
        self._slot_to_vehicle[slot] = vehicle_id

    def mark_waiting(self, vehicle_id: int) -> None:
        if self.state_of(vehicle_id).is_parked:
            raise SlotContractError(f"Parked vehicle {vehicle_id} cannot start waiting")
        self._states[vehicle_id] = VehicleState.waiting()

    def mark_absent(self, vehicle_id: int) -> None:
        """Forget where a vehicle is; frees its slot mapping if parked"""
        state = self._states.pop(vehicle_id, None)
        if state is not None and state.is_parked:
            del self._slot_to_vehicle[state.slot]

    def vehicle_in_slot(self, slot: int) -> Optional[int]:
        return self._slot_to_vehicle.get(slot)

    def occupied(self) -> List[Tuple[int, int, datetime]]:
        """(slot, vehicle, entry time) for every parked vehicle, by slot"""
        return [
            (slot, vehicle_id, self._states[vehicle_id].entry_time)
            for slot, vehicle_id in sorted(self._slot_to_vehicle.items())
        ]

    def present_vehicles(self) -> List[int]:
        """Ids of parked and waiting vehicles"""
        return sorted(self._states)

    def set_pass_holder(self, vehicle_id: int, is_pass_holder: bool = True) -> None:
        if is_pass_holder:
            self._pass_holders.add(vehicle_id)
        else:
            self._pass_holders.discard(vehicle_id)

    def is_pass_holder(self, vehicle_id: int) -> bool:
        return vehicle_id in self._pass_holders

    @property
    def pass_holders(self) -> List[int]:
        return sorted(self._pass_holders)

    def clear_occupancy(self) -> int:
        """
        Mark every vehicle absent; pass holders are kept
        Returns: number of vehicles that were parked or waiting
        """
        cleared = len(self._states)
        self._states.clear()
        self._slot_to_vehicle.clear()
        return cleared

    def reset(self) -> None:
        self.clear_occupancy()
        self._pass_holders.clear()

    @property
    def max_vehicle_id(self) -> int:
        return self._max_vehicle_id

    @property
    def parked_count(self) -> int:
        return len(self._slot_to_vehicle)

    @property
    def waiting_count(self) -> int:
        return sum(1 for state in self._states.values() if state.is_waiting)
