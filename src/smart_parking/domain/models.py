# File: src/smart_parking/domain/models.py
"""
Domain Models for the Smart Parking System

This module contains:
1. Value Objects: Money, FacilityConfig, VehicleState
2. Entities: HistoryRecord (one parking session)
3. Outcomes: Structured results returned by the engine
4. Domain Events: Events representing business occurrences
5. Errors: Internal contract violations

Caller mistakes (unknown vehicle, duplicate entry, full facility) are never
raised; they are reported through OutcomeStatus.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field, replace
from typing import Optional, Dict, Any
from datetime import datetime
from decimal import Decimal
from enum import Enum
import uuid


# ============================================================================
# ERRORS
# ============================================================================

class ParkingError(Exception):
    """Base class for parking core errors"""


class SlotContractError(ParkingError):
    """
    Raised when allocator, ledger or history state contradict each other.
    Indicates a bug in the core, not a bad request.
    """


# ============================================================================
# VALUE OBJECTS
# ============================================================================

@dataclass(frozen=True)
class Money:
    """
    Value Object: Monetary amount with currency
    Provides arithmetic operations with validation
    """
    amount: Decimal
    currency: str = "INR"

    def __post_init__(self):
        """Validate money amount"""
        if not isinstance(self.amount, Decimal):
            object.__setattr__(self, 'amount', Decimal(str(self.amount)))

        if self.amount < Decimal('0'):
            raise ValueError("Money amount cannot be negative")

        if len(self.currency) != 3:
            raise ValueError(f"Currency must be 3-letter code: {self.currency}")

    @classmethod
    def zero(cls, currency: str = "INR") -> 'Money':
        return cls(Decimal('0'), currency)

    def __add__(self, other: 'Money') -> 'Money':
        """Add two money amounts (same currency only)"""
        if self.currency != other.currency:
            raise ValueError(f"Cannot add {self.currency} to {other.currency}")
        return Money(self.amount + other.amount, self.currency)

    def __mul__(self, multiplier: int) -> 'Money':
        """Multiply money by a non-negative factor"""
        if multiplier < 0:
            raise ValueError("Multiplier cannot be negative")
        return Money(self.amount * Decimal(multiplier), self.currency)

    @property
    def is_zero(self) -> bool:
        return self.amount == Decimal('0')

    def format(self) -> str:
        """Format money for display"""
        return f"{self.currency} {self.amount:.2f}"

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization"""
        return {
            "amount": str(self.amount),
            "currency": self.currency
        }


@dataclass(frozen=True)
class FacilityConfig:
    """
    Value Object: Fixed configuration of one parking facility
    Set once when the engine is created and never changed afterwards.
    """
    slot_capacity: int = 10
    waiting_capacity: int = 10
    hourly_rate: Decimal = Decimal('50')
    max_vehicle_id: int = 100
    currency: str = "INR"

    def __post_init__(self):
        """Validate configuration values"""
        if self.slot_capacity <= 0:
            raise ValueError("Slot capacity must be positive")

        if self.waiting_capacity <= 0:
            raise ValueError("Waiting queue capacity must be positive")

        if self.max_vehicle_id <= 0:
            raise ValueError("Vehicle id range must be non-empty")

        if not isinstance(self.hourly_rate, Decimal):
            object.__setattr__(self, 'hourly_rate', Decimal(str(self.hourly_rate)))

        if self.hourly_rate < Decimal('0'):
            raise ValueError("Hourly rate cannot be negative")

        if len(self.currency) != 3:
            raise ValueError(f"Currency must be 3-letter code: {self.currency}")

    @property
    def rate(self) -> Money:
        """Hourly rate as money"""
        return Money(self.hourly_rate, self.currency)

    def __str__(self) -> str:
        return (
            f"{self.slot_capacity} slots, {self.waiting_capacity} waiting, "
            f"{self.rate.format()}/hr, vehicles 0..{self.max_vehicle_id - 1}"
        )


# ============================================================================
# ENUMS
# ============================================================================

class VehicleStatus(Enum):
    """Where a vehicle currently is"""
    ABSENT = "absent"
    PARKED = "parked"
    WAITING = "waiting"

    def __str__(self) -> str:
        return self.value


class OutcomeStatus(Enum):
    """Discriminator for every engine outcome"""
    # Success
    PARKED = "parked"
    QUEUED = "queued"
    EXITED = "exited"
    WAITING_CANCELLED = "waiting_cancelled"

    # Rejections
    INVALID_IDENTIFIER = "invalid_identifier"
    DUPLICATE_ENTRY = "duplicate_entry"
    CAPACITY_EXCEEDED = "capacity_exceeded"
    NOT_PARKED = "not_parked"
    NOT_IN_QUEUE = "not_in_queue"

    @property
    def is_success(self) -> bool:
        return self in (
            OutcomeStatus.PARKED, OutcomeStatus.QUEUED,
            OutcomeStatus.EXITED, OutcomeStatus.WAITING_CANCELLED,
        )


@dataclass(frozen=True)
class VehicleState:
    """
    Value Object: Tagged state of one vehicle
    slot and entry_time are set only while PARKED.
    """
    status: VehicleStatus = VehicleStatus.ABSENT
    slot: Optional[int] = None
    entry_time: Optional[datetime] = None

    def __post_init__(self):
        if self.status is VehicleStatus.PARKED:
            if self.slot is None or self.entry_time is None:
                raise ValueError("Parked state requires slot and entry time")
        elif self.slot is not None or self.entry_time is not None:
            raise ValueError(f"{self.status} state cannot carry a slot")

    @classmethod
    def absent(cls) -> 'VehicleState':
        return cls()

    @classmethod
    def waiting(cls) -> 'VehicleState':
        return cls(VehicleStatus.WAITING)

    @classmethod
    def parked(cls, slot: int, entry_time: datetime) -> 'VehicleState':
        return cls(VehicleStatus.PARKED, slot, entry_time)

    @property
    def is_parked(self) -> bool:
        return self.status is VehicleStatus.PARKED

    @property
    def is_waiting(self) -> bool:
        return self.status is VehicleStatus.WAITING

    @property
    def is_absent(self) -> bool:
        return self.status is VehicleStatus.ABSENT


# ============================================================================
# DOMAIN ENTITIES
# ============================================================================

@dataclass(frozen=True)
class HistoryRecord:
    """
    Entity: Audit entry covering one parking session
    Open while exit_time is None. Records are frozen; closing one yields a
    new record that HistoryLog stores in place of the open one.
    """
    vehicle_id: int
    slot: int
    entry_time: datetime
    exit_time: Optional[datetime] = None
    record_id: str = field(default_factory=lambda: str(uuid.uuid4()))

    @property
    def is_open(self) -> bool:
        return self.exit_time is None

    @property
    def duration_seconds(self) -> Optional[int]:
        """Closed session length in whole seconds"""
        if self.exit_time is None:
            return None
        return max(0, int((self.exit_time - self.entry_time).total_seconds()))

    def closed(self, exit_time: datetime) -> 'HistoryRecord':
        """
        Closed copy of this session, same record_id
        Raises: SlotContractError if the record was already closed
        """
        if self.exit_time is not None:
            raise SlotContractError(
                f"History record for vehicle {self.vehicle_id} in slot {self.slot} "
                f"is already closed"
            )
        # Clock skew never yields a record that ends before it starts
        return replace(self, exit_time=max(exit_time, self.entry_time))

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization"""
        return {
            "record_id": self.record_id,
            "vehicle_id": self.vehicle_id,
            "slot": self.slot,
            "entry_time": self.entry_time.isoformat(),
            "exit_time": self.exit_time.isoformat() if self.exit_time else None,
        }

    def __str__(self) -> str:
        end = self.exit_time.isoformat() if self.exit_time else "STILL PARKED"
        return f"Vehicle {self.vehicle_id} -> Slot {self.slot} | {self.entry_time.isoformat()} -> {end}"


# ============================================================================
# OUTCOMES
# ============================================================================

@dataclass(frozen=True)
class Promotion:
    """A waiting vehicle moved into the slot freed by an exit"""
    vehicle_id: int
    slot: int
    entry_time: datetime


@dataclass(frozen=True)
class EntryOutcome:
    """Result of a vehicle entry request"""
    status: OutcomeStatus
    vehicle_id: int
    slot: Optional[int] = None
    entry_time: Optional[datetime] = None
    queue_position: Optional[int] = None

    @property
    def success(self) -> bool:
        return self.status.is_success


@dataclass(frozen=True)
class ExitOutcome:
    """Result of a vehicle exit request"""
    status: OutcomeStatus
    vehicle_id: int
    slot: Optional[int] = None
    entry_time: Optional[datetime] = None
    exit_time: Optional[datetime] = None
    duration_seconds: Optional[int] = None
    fee: Optional[Money] = None
    promotion: Optional[Promotion] = None

    @property
    def success(self) -> bool:
        return self.status.is_success


# ============================================================================
# DOMAIN EVENTS
# ============================================================================

class DomainEvent(ABC):
    """
    Base class for all domain events
    Events represent something that happened in the facility
    """

    event_type: str = "event"

    def __init__(self, timestamp: Optional[datetime] = None):
        self.event_id = str(uuid.uuid4())
        self.timestamp = timestamp or datetime.now()
        self.version = "1.0"

    @abstractmethod
    def data(self) -> Dict[str, Any]:
        """Event payload"""

    def to_dict(self) -> Dict[str, Any]:
        """Convert event to dictionary for serialization"""
        return {
            "event_type": self.event_type,
            "event_id": self.event_id,
            "timestamp": self.timestamp.isoformat(),
            "version": self.version,
            "data": self.data(),
        }

    def __str__(self) -> str:
        return f"{self.__class__.__name__} at {self.timestamp}"


class VehicleParkedEvent(DomainEvent):
    """Event raised when a vehicle takes a slot on arrival"""

    event_type = "vehicle.parked"

    def __init__(self, vehicle_id: int, slot: int, timestamp: datetime):
        super().__init__(timestamp)
        self.vehicle_id = vehicle_id
        self.slot = slot

    def data(self) -> Dict[str, Any]:
        return {"vehicle_id": self.vehicle_id, "slot": self.slot}


class VehicleQueuedEvent(DomainEvent):
    """Event raised when a vehicle joins the waiting queue"""

    event_type = "vehicle.queued"

    def __init__(self, vehicle_id: int, position: int, timestamp: datetime):
        super().__init__(timestamp)
        self.vehicle_id = vehicle_id
        self.position = position

    def data(self) -> Dict[str, Any]:
        return {"vehicle_id": self.vehicle_id, "position": self.position}


class VehicleLeftEvent(DomainEvent):
    """Event raised when a parked vehicle leaves"""

    event_type = "vehicle.left"

    def __init__(
        self,
        vehicle_id: int,
        slot: int,
        entry_time: datetime,
        exit_time: datetime,
        duration_seconds: int,
        fee: Money
    ):
        super().__init__(exit_time)
        self.vehicle_id = vehicle_id
        self.slot = slot
        self.entry_time = entry_time
        self.exit_time = exit_time
        self.duration_seconds = duration_seconds
        self.fee = fee

    def data(self) -> Dict[str, Any]:
        return {
            "vehicle_id": self.vehicle_id,
            "slot": self.slot,
            "entry_time": self.entry_time.isoformat(),
            "exit_time": self.exit_time.isoformat(),
            "duration_seconds": self.duration_seconds,
            "fee": self.fee.to_dict(),
        }


class VehiclePromotedEvent(DomainEvent):
    """Event raised when a waiting vehicle is moved into a freed slot"""

    event_type = "vehicle.promoted"

    def __init__(self, vehicle_id: int, slot: int, timestamp: datetime):
        super().__init__(timestamp)
        self.vehicle_id = vehicle_id
        self.slot = slot

    def data(self) -> Dict[str, Any]:
        return {"vehicle_id": self.vehicle_id, "slot": self.slot}


class WaitingCancelledEvent(DomainEvent):
    """Event raised when a waiting vehicle gives up its place"""

    event_type = "waiting.cancelled"

    def __init__(self, vehicle_id: int, timestamp: datetime):
        super().__init__(timestamp)
        self.vehicle_id = vehicle_id

    def data(self) -> Dict[str, Any]:
        return {"vehicle_id": self.vehicle_id}


class EmergencyResetEvent(DomainEvent):
    """Event raised when live occupancy is cleared"""

    event_type = "facility.emergency_reset"

    def __init__(self, vehicles_cleared: int, timestamp: datetime):
        super().__init__(timestamp)
        self.vehicles_cleared = vehicles_cleared

    def data(self) -> Dict[str, Any]:
        return {"vehicles_cleared": self.vehicles_cleared}
