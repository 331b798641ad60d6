# File: src/smart_parking/application/dtos.py
"""
Data Transfer Objects (DTOs) for the Smart Parking System

DTOs carry engine results to the presentation layer (menu, GUI, API):
1. Result DTOs - outcome of entry and exit requests
2. Query DTOs - vehicles, slots, history and facility status

DTO Principles:
- Validation at creation (pydantic)
- No business logic, only data
- Serialization support through to_dict / to_json
"""

from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple
import json

from pydantic import BaseModel, ConfigDict, Field

from ..domain.models import (
    Money, HistoryRecord, VehicleState, OutcomeStatus,
    EntryOutcome, ExitOutcome, Promotion,
)


# ============================================================================
# BASE DTO CLASSES
# ============================================================================

class BaseDTO(BaseModel):
    """Base DTO with common functionality"""

    model_config = ConfigDict(
        from_attributes=True,
        populate_by_name=True,
        use_enum_values=True,
    )

    def to_dict(self, exclude_none: bool = False, **kwargs) -> Dict[str, Any]:
        """Convert DTO to dictionary"""
        data = self.model_dump(**kwargs)
        if exclude_none:
            data = {k: v for k, v in data.items() if v is not None}
        return data

    def to_json(self, **kwargs) -> str:
        """Convert DTO to JSON string"""
        return self.model_dump_json(**kwargs)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'BaseDTO':
        """Create DTO from dictionary"""
        return cls(**data)

    @classmethod
    def from_json(cls, json_str: str) -> 'BaseDTO':
        """Create DTO from JSON string"""
        return cls(**json.loads(json_str))


# ============================================================================
# VALUE OBJECT DTOs
# ============================================================================

class MoneyDTO(BaseDTO):
    """DTO for monetary values"""
    amount: Decimal = Field(..., ge=0)
    currency: str = Field(default="INR", min_length=3, max_length=3)

    @classmethod
    def from_money(cls, money: Money) -> 'MoneyDTO':
        return cls(amount=money.amount, currency=money.currency)

    def format(self) -> str:
        return f"{self.currency} {self.amount:.2f}"


class PromotionDTO(BaseDTO):
    """DTO for a waiting vehicle moved into a freed slot"""
    vehicle_id: int
    slot: int
    entry_time: datetime


# ============================================================================
# RESULT DTOs
# ============================================================================

class EntryResultDTO(BaseDTO):
    """DTO for vehicle entry results"""
    status: OutcomeStatus
    success: bool
    vehicle_id: int
    slot: Optional[int] = None
    entry_time: Optional[datetime] = None
    queue_position: Optional[int] = None
    message: str = ""

    @classmethod
    def from_outcome(cls, outcome: EntryOutcome, message: str = "") -> 'EntryResultDTO':
        return cls(
            status=outcome.status,
            success=outcome.success,
            vehicle_id=outcome.vehicle_id,
            slot=outcome.slot,
            entry_time=outcome.entry_time,
            queue_position=outcome.queue_position,
            message=message,
        )


class ExitResultDTO(BaseDTO):
    """DTO for vehicle exit results"""
    status: OutcomeStatus
    success: bool
    vehicle_id: int
    slot: Optional[int] = None
    entry_time: Optional[datetime] = None
    exit_time: Optional[datetime] = None
    duration_seconds: Optional[int] = None
    fee: Optional[MoneyDTO] = None
    promotion: Optional[PromotionDTO] = None
    message: str = ""

    @classmethod
    def from_outcome(cls, outcome: ExitOutcome, message: str = "") -> 'ExitResultDTO':
        promotion: Optional[Promotion] = outcome.promotion
        return cls(
            status=outcome.status,
            success=outcome.success,
            vehicle_id=outcome.vehicle_id,
            slot=outcome.slot,
            entry_time=outcome.entry_time,
            exit_time=outcome.exit_time,
            duration_seconds=outcome.duration_seconds,
            fee=MoneyDTO.from_money(outcome.fee) if outcome.fee else None,
            promotion=PromotionDTO.model_validate(promotion) if promotion else None,
            message=message,
        )

    @property
    def duration_breakdown(self) -> Optional[Tuple[int, int, int]]:
        """(hours, minutes, seconds) of the closed session"""
        if self.duration_seconds is None:
            return None
        hours, rest = divmod(self.duration_seconds, 3600)
        minutes, seconds = divmod(rest, 60)
        return hours, minutes, seconds


# ============================================================================
# QUERY DTOs
# ============================================================================

class VehicleStatusDTO(BaseDTO):
    """DTO for the whereabouts of one vehicle"""
    vehicle_id: int
    valid: bool = True
    status: Optional[str] = None
    slot: Optional[int] = None
    entry_time: Optional[datetime] = None
    queue_position: Optional[int] = None
    is_pass_holder: bool = False

    @classmethod
    def from_state(
        cls,
        vehicle_id: int,
        state: Optional[VehicleState],
        queue_position: Optional[int] = None,
        is_pass_holder: bool = False
    ) -> 'VehicleStatusDTO':
        if state is None:
            return cls(vehicle_id=vehicle_id, valid=False)
        return cls(
            vehicle_id=vehicle_id,
            status=state.status.value,
            slot=state.slot,
            entry_time=state.entry_time,
            queue_position=queue_position,
            is_pass_holder=is_pass_holder,
        )


class OccupiedSlotDTO(BaseDTO):
    """DTO for a parked vehicle"""
    slot: int
    vehicle_id: int
    entry_time: datetime


class SlotMapEntryDTO(BaseDTO):
    """DTO for one row of the slot map"""
    slot: int
    vehicle_id: Optional[int] = None

    @property
    def is_free(self) -> bool:
        return self.vehicle_id is None


class HistoryRecordDTO(BaseDTO):
    """DTO for one parking session"""
    record_id: str
    vehicle_id: int
    slot: int
    entry_time: datetime
    exit_time: Optional[datetime] = None
    is_open: bool
    duration_seconds: Optional[int] = None

    @classmethod
    def from_record(cls, record: HistoryRecord) -> 'HistoryRecordDTO':
        return cls.model_validate(record)


class FacilityStatusDTO(BaseDTO):
    """DTO for facility status"""
    total_slots: int
    occupied_slots: int
    available_slots: int
    occupancy_rate: float
    waiting_count: int
    waiting_capacity: int
    total_sessions: int
    open_sessions: int
    pass_holders: int
    total_revenue: MoneyDTO
    timestamp: datetime

    @classmethod
    def from_report(cls, report: Dict[str, Any]) -> 'FacilityStatusDTO':
        occupancy = report["occupancy"]
        statistics = report["statistics"]
        return cls(
            total_slots=occupancy["total_slots"],
            occupied_slots=occupancy["occupied_slots"],
            available_slots=occupancy["available_slots"],
            occupancy_rate=occupancy["occupancy_rate"],
            waiting_count=report["waiting"]["count"],
            waiting_capacity=report["waiting"]["capacity"],
            total_sessions=statistics["total_sessions"],
            open_sessions=statistics["open_sessions"],
            pass_holders=statistics["pass_holders"],
            total_revenue=MoneyDTO(**statistics["total_revenue"]),
            timestamp=datetime.fromisoformat(report["timestamp"]),
        )


class CommandResultDTO(BaseDTO):
    """DTO returned by the command processor"""
    command_id: str
    command_type: str
    success: bool
    result: Optional[Dict[str, Any]] = None
    errors: List[str] = Field(default_factory=list)
