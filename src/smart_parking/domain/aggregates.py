# File: src/smart_parking/domain/aggregates.py
"""
Aggregate Root for the Smart Parking System
Following Domain-Driven Design (DDD) Aggregate Pattern

ParkingEngine is the only object that mutates the allocator, the waiting
queue, the ledger, the history log and the revenue total. Every operation
reads the clock once and runs to completion.

Key Concepts:
- The aggregate root enforces the occupancy invariants
- Components are reached only through root methods
- Domain events are recorded for important state changes
- Caller mistakes come back as outcomes, contract violations raise
"""

from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Tuple
import logging
import uuid

from .allocator import SlotAllocator
from .history import HistoryLog
from .ledger import ParkingLedger
from .models import (
    FacilityConfig, Money, HistoryRecord, VehicleState,
    OutcomeStatus, EntryOutcome, ExitOutcome, Promotion, SlotContractError,
    DomainEvent, VehicleParkedEvent, VehicleQueuedEvent, VehicleLeftEvent,
    VehiclePromotedEvent, WaitingCancelledEvent, EmergencyResetEvent,
)
from .strategies import PricingStrategy, CeilingHourPricingStrategy
from .waiting_queue import WaitingQueue


Clock = Callable[[], datetime]


# ============================================================================
# BASE AGGREGATE ROOT
# ============================================================================

class AggregateRoot:
    """
    Base class for all aggregate roots
    Provides domain event collection and versioning
    """

    def __init__(self, id: Optional[str] = None):
        self._id = id or str(uuid.uuid4())
        self._version: int = 1
        self._changes: List[DomainEvent] = []
        self._logger = logging.getLogger(self.__class__.__name__)

    @property
    def id(self) -> str:
        return self._id

    @property
    def version(self) -> int:
        """Get current aggregate version"""
        return self._version

    def _increment_version(self) -> None:
        """Increment version after state change"""
        self._version += 1

    def _add_domain_event(self, event: DomainEvent) -> None:
        """Add a domain event to the list of changes"""
        self._changes.append(event)
        self._logger.debug(f"Added domain event: {event.__class__.__name__}")

    def clear_events(self) -> List[DomainEvent]:
        """Clear and return all domain events"""
        events = self._changes.copy()
        self._changes.clear()
        return events

    @property
    def has_changes(self) -> bool:
        """Check if aggregate has pending domain events"""
        return len(self._changes) > 0

    def _validate_invariants(self) -> None:
        """Validate aggregate invariants - to be overridden by subclasses"""


# ============================================================================
# PARKING ENGINE AGGREGATE
# ============================================================================

class ParkingEngine(AggregateRoot):
    """
    Aggregate Root: one parking facility
    Allocates slots, queues overflow, bills departures and keeps history.
    """

    def __init__(
        self,
        config: Optional[FacilityConfig] = None,
        pricing: Optional[PricingStrategy] = None,
        clock: Optional[Clock] = None,
        id: Optional[str] = None
    ):
        super().__init__(id)
        self.config = config or FacilityConfig()
        self.pricing = pricing or CeilingHourPricingStrategy(self.config.rate)
        self._clock = clock or datetime.now

        self._allocator = SlotAllocator(self.config.slot_capacity)
        self._queue = WaitingQueue(self.config.waiting_capacity)
        self._ledger = ParkingLedger(self.config.max_vehicle_id)
        self._history = HistoryLog()
        self._revenue = Money.zero(self.config.currency)

        self._logger.info(f"Created ParkingEngine ({self.config})")

    # ========================================================================
    # PUBLIC BUSINESS METHODS
    # ========================================================================

    def entry(self, vehicle_id: int) -> EntryOutcome:
        """
        Admit a vehicle: park it in the lowest free slot, or queue it
        when every slot is taken.
        """
        if not self._ledger.is_valid(vehicle_id):
            self._logger.warning(f"Entry rejected: invalid vehicle id {vehicle_id!r}")
            return EntryOutcome(OutcomeStatus.INVALID_IDENTIFIER, vehicle_id)

        state = self._ledger.state_of(vehicle_id)
        if not state.is_absent:
            self._logger.warning(f"Entry rejected: vehicle {vehicle_id} already {state.status}")
            return EntryOutcome(OutcomeStatus.DUPLICATE_ENTRY, vehicle_id)

        now = self._clock()
        slot = self._allocator.acquire()

        if slot is not None:
            self._park(vehicle_id, slot, now)
            self._add_domain_event(VehicleParkedEvent(vehicle_id, slot, now))
            self._logger.info(f"Vehicle {vehicle_id} parked in slot {slot}")
            outcome = EntryOutcome(
                OutcomeStatus.PARKED, vehicle_id, slot=slot, entry_time=now
            )
        elif not self._queue.enqueue(vehicle_id):
            self._logger.warning(f"Entry rejected: parking and waiting queue full ({vehicle_id})")
            return EntryOutcome(OutcomeStatus.CAPACITY_EXCEEDED, vehicle_id)
        else:
            self._ledger.mark_waiting(vehicle_id)
            position = len(self._queue)
            self._add_domain_event(VehicleQueuedEvent(vehicle_id, position, now))
            self._logger.info(f"Parking full: vehicle {vehicle_id} waiting at position {position}")
            outcome = EntryOutcome(
                OutcomeStatus.QUEUED, vehicle_id, queue_position=position
            )

        self._increment_version()
        self._validate_invariants()
        return outcome

    def exit(self, vehicle_id: int) -> ExitOutcome:
        """
        Let a vehicle go. Parked vehicles are billed and their slot goes
        straight to the head of the waiting queue; waiting vehicles simply
        leave the queue.
        """
        if not self._ledger.is_valid(vehicle_id):
            self._logger.warning(f"Exit rejected: invalid vehicle id {vehicle_id!r}")
            return ExitOutcome(OutcomeStatus.INVALID_IDENTIFIER, vehicle_id)

        state = self._ledger.state_of(vehicle_id)
        now = self._clock()

        if state.is_absent:
            self._logger.warning(f"Exit rejected: vehicle {vehicle_id} not parked")
            return ExitOutcome(OutcomeStatus.NOT_PARKED, vehicle_id)

        if state.is_waiting:
            outcome = self._cancel_waiting(vehicle_id, now)
        else:
            outcome = self._depart(vehicle_id, state, now)

        self._increment_version()
        self._validate_invariants()
        return outcome

    def set_pass_holder(self, vehicle_id: int, is_pass_holder: bool = True) -> bool:
        """
        Register (or drop) a monthly pass; only future exits are affected
        Returns: False for an invalid vehicle id
        """
        if not self._ledger.is_valid(vehicle_id):
            self._logger.warning(f"Pass registration rejected: invalid vehicle id {vehicle_id!r}")
            return False

        self._ledger.set_pass_holder(vehicle_id, is_pass_holder)
        self._increment_version()
        self._logger.info(
            f"Vehicle {vehicle_id} {'registered as' if is_pass_holder else 'removed from'} pass holder"
        )
        return True

    def emergency_reset(self) -> int:
        """
        Clear live occupancy and the waiting queue.
        Revenue, history and pass holders are kept.
        Returns: number of vehicles sent away
        """
        now = self._clock()
        cleared = self._ledger.clear_occupancy()
        self._allocator.reset()
        self._queue.clear()

        self._add_domain_event(EmergencyResetEvent(cleared, now))
        self._increment_version()
        self._validate_invariants()
        self._logger.warning(f"EMERGENCY RESET: {cleared} vehicles cleared, history retained")
        return cleared

    def reinitialize(self) -> None:
        """Return to the freshly constructed state, history and revenue included"""
        self._ledger.reset()
        self._allocator.reset()
        self._queue.clear()
        self._history.clear()
        self._revenue = Money.zero(self.config.currency)
        self._changes.clear()
        self._increment_version()
        self._logger.info("ParkingEngine reinitialized")

    # ========================================================================
    # INTERNAL HELPER METHODS
    # ========================================================================

    def _park(self, vehicle_id: int, slot: int, now: datetime) -> None:
        """Record a vehicle in a slot it has just acquired"""
        self._ledger.mark_parked(vehicle_id, slot, now)
        self._history.append(vehicle_id, slot, now)

    def _cancel_waiting(self, vehicle_id: int, now: datetime) -> ExitOutcome:
        removed = self._queue.remove(vehicle_id)
        self._ledger.mark_absent(vehicle_id)

        if not removed:
            self._logger.error(f"Vehicle {vehicle_id} marked waiting but not in queue")
            return ExitOutcome(OutcomeStatus.NOT_IN_QUEUE, vehicle_id)

        self._add_domain_event(WaitingCancelledEvent(vehicle_id, now))
        self._logger.info(f"Vehicle {vehicle_id} removed from waiting queue")
        return ExitOutcome(OutcomeStatus.WAITING_CANCELLED, vehicle_id)

    def _depart(self, vehicle_id: int, state: VehicleState, now: datetime) -> ExitOutcome:
        slot = state.slot
        entry_time = state.entry_time
        duration_seconds = max(0, int((now - entry_time).total_seconds()))
        fee = self.pricing.calculate_fee(
            duration_seconds, self._ledger.is_pass_holder(vehicle_id)
        )

        if not self._history.close_open(vehicle_id, slot, now):
            raise SlotContractError(
                f"Parked vehicle {vehicle_id} in slot {slot} has no open history record"
            )

        self._revenue = self._revenue + fee
        self._ledger.mark_absent(vehicle_id)
        self._allocator.release(slot)

        self._add_domain_event(VehicleLeftEvent(
            vehicle_id=vehicle_id,
            slot=slot,
            entry_time=entry_time,
            exit_time=now,
            duration_seconds=duration_seconds,
            fee=fee
        ))
        self._logger.info(
            f"Vehicle {vehicle_id} left slot {slot} after {duration_seconds}s. Fee: {fee.format()}"
        )

        return ExitOutcome(
            OutcomeStatus.EXITED,
            vehicle_id,
            slot=slot,
            entry_time=entry_time,
            exit_time=now,
            duration_seconds=duration_seconds,
            fee=fee,
            promotion=self._promote_next(now)
        )

    def _promote_next(self, now: datetime) -> Optional[Promotion]:
        """Move the head of the waiting queue into a free slot"""
        next_vehicle = self._queue.dequeue()
        if next_vehicle is None:
            return None

        slot = self._allocator.acquire()
        if slot is None:
            # Keep its place at the head
            self._queue.push_front(next_vehicle)
            self._logger.error(f"No slot for waiting vehicle {next_vehicle}, kept at queue head")
            return None

        self._ledger.mark_absent(next_vehicle)
        self._park(next_vehicle, slot, now)
        self._add_domain_event(VehiclePromotedEvent(next_vehicle, slot, now))
        self._logger.info(f"Allocated slot {slot} to waiting vehicle {next_vehicle}")
        return Promotion(next_vehicle, slot, now)

    def _validate_invariants(self) -> None:
        """Validate aggregate invariants"""
        occupied = self._ledger.occupied()

        # Invariant 1: occupied slots and allocator agree exactly
        if len(occupied) != self._allocator.occupied:
            raise SlotContractError(
                f"{len(occupied)} vehicles parked but allocator reports "
                f"{self._allocator.occupied} slots taken"
            )

        for slot, vehicle_id, _ in occupied:
            if self._allocator.is_free(slot):
                raise SlotContractError(f"Slot {slot} holds vehicle {vehicle_id} but is free")

        # Invariant 2: waiting vehicles and queue agree
        if self._ledger.waiting_count != len(self._queue):
            raise SlotContractError(
                f"{self._ledger.waiting_count} vehicles waiting but queue holds {len(self._queue)}"
            )

    # ========================================================================
    # QUERY METHODS (Read-only)
    # ========================================================================

    def query_vehicle(self, vehicle_id: int) -> Optional[VehicleState]:
        """Current state of a vehicle, or None for an invalid id"""
        if not self._ledger.is_valid(vehicle_id):
            return None
        return self._ledger.state_of(vehicle_id)

    def queue_position(self, vehicle_id: int) -> Optional[int]:
        return self._queue.position_of(vehicle_id)

    def is_pass_holder(self, vehicle_id: int) -> bool:
        return self._ledger.is_pass_holder(vehicle_id)

    def list_occupied(self) -> List[Tuple[int, int, datetime]]:
        """(slot, vehicle, entry time), by slot number"""
        return self._ledger.occupied()

    def list_free_slots(self) -> List[int]:
        return self._allocator.free_slots()

    def list_waiting(self) -> List[int]:
        """Waiting vehicles in the order they will be served"""
        return self._queue.peek_all()

    def list_history(self) -> List[HistoryRecord]:
        """Every session, most recent first"""
        return list(self._history.iter_most_recent_first())

    def total_revenue(self) -> Money:
        return self._revenue

    def slot_map(self) -> List[Tuple[int, Optional[int]]]:
        """(slot, vehicle or None) for every slot"""
        return [
            (slot, self._ledger.vehicle_in_slot(slot))
            for slot in range(1, self.config.slot_capacity + 1)
        ]

    @property
    def total_slots(self) -> int:
        return self._allocator.capacity

    @property
    def occupied_slots(self) -> int:
        return self._allocator.occupied

    @property
    def available_slots(self) -> int:
        return self._allocator.available

    def get_occupancy_rate(self) -> float:
        """Calculate occupancy rate (0-100)"""
        return (self.occupied_slots / self.total_slots) * 100.0

    def get_status_report(self) -> Dict[str, Any]:
        """Get comprehensive status report"""
        return {
            "engine_id": self.id,
            "occupancy": {
                "total_slots": self.total_slots,
                "occupied_slots": self.occupied_slots,
                "available_slots": self.available_slots,
                "occupancy_rate": self.get_occupancy_rate(),
            },
            "waiting": {
                "count": len(self._queue),
                "capacity": self._queue.capacity,
            },
            "statistics": {
                "total_sessions": len(self._history),
                "open_sessions": len(self._history.open_records()),
                "total_revenue": self._revenue.to_dict(),
                "pass_holders": len(self._ledger.pass_holders),
            },
            "version": self.version,
            "timestamp": self._clock().isoformat(),
        }

    def __str__(self) -> str:
        return (
            f"ParkingEngine: {self.occupied_slots}/{self.total_slots} occupied, "
            f"{len(self._queue)} waiting"
        )
