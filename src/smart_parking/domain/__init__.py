"""Domain layer: occupancy engine and its components"""

from .models import (
    Money, FacilityConfig, VehicleState, VehicleStatus, HistoryRecord,
    OutcomeStatus, EntryOutcome, ExitOutcome, Promotion,
    ParkingError, SlotContractError,
)
from .allocator import SlotAllocator
from .waiting_queue import WaitingQueue
from .history import HistoryLog
from .ledger import ParkingLedger
from .strategies import PricingStrategy, CeilingHourPricingStrategy, billed_hours
from .aggregates import ParkingEngine

__all__ = [
    "Money", "FacilityConfig", "VehicleState", "VehicleStatus", "HistoryRecord",
    "OutcomeStatus", "EntryOutcome", "ExitOutcome", "Promotion",
    "ParkingError", "SlotContractError",
    "SlotAllocator", "WaitingQueue", "HistoryLog", "ParkingLedger",
    "PricingStrategy", "CeilingHourPricingStrategy", "billed_hours",
    "ParkingEngine",
]
