# File: src/smart_parking/application/parking_service.py
"""
Parking Management Application Service

The service is the API a menu, GUI or web layer talks to. It forwards
validated vehicle ids to ParkingEngine, turns engine outcomes into DTOs
and publishes the domain events each call produced.

Responsibilities:
1. Execute use cases (entry, exit, pass registration, emergency reset)
2. Answer queries (vehicle search, occupancy, waiting queue, history, revenue)
3. Publish domain events after every state change

The engine is single-threaded. A deployment serving several callers must
wrap every service call in one lock.
"""

from typing import List, Optional
import logging

from ..domain.aggregates import ParkingEngine, Clock
from ..domain.models import FacilityConfig, OutcomeStatus, EntryOutcome, ExitOutcome
from ..domain.strategies import PricingStrategy
from ..infrastructure.logging_config import setup_logging
from ..infrastructure.messaging import EventBus, LoggingEventHandler, ALL_EVENTS
from ..infrastructure.settings import Settings, get_settings
from .dtos import (
    EntryResultDTO, ExitResultDTO, VehicleStatusDTO, OccupiedSlotDTO,
    SlotMapEntryDTO, HistoryRecordDTO, MoneyDTO, FacilityStatusDTO,
)


ENTRY_MESSAGES = {
    OutcomeStatus.INVALID_IDENTIFIER: "Invalid vehicle id {vehicle_id}.",
    OutcomeStatus.DUPLICATE_ENTRY: "Duplicate: vehicle {vehicle_id} is already parked or waiting.",
    OutcomeStatus.CAPACITY_EXCEEDED: "Parking and waiting queue full.",
}

EXIT_MESSAGES = {
    OutcomeStatus.INVALID_IDENTIFIER: "Invalid vehicle id {vehicle_id}.",
    OutcomeStatus.NOT_PARKED: "Vehicle {vehicle_id} not parked.",
    OutcomeStatus.NOT_IN_QUEUE: "Vehicle {vehicle_id} not found in waiting queue.",
    OutcomeStatus.WAITING_CANCELLED: "Vehicle {vehicle_id} removed from waiting queue.",
}


class ParkingService:
    """
    Main application service for parking management

    Args:
        engine: The facility aggregate.
        event_bus: Receives the domain events of every operation.
    """

    def __init__(self, engine: ParkingEngine, event_bus: Optional[EventBus] = None):
        self.logger = logging.getLogger(self.__class__.__name__)
        self.engine = engine
        self.event_bus = event_bus or EventBus()
        self.logger.info("ParkingService initialized")

    # ========================================================================
    # USE CASES
    # ========================================================================

    def vehicle_entry(self, vehicle_id: int) -> EntryResultDTO:
        """
        Use Case: Vehicle Entry
        1. Reject invalid or duplicate vehicles
        2. Allocate the lowest free slot, or join the waiting queue
        3. Publish resulting events
        """
        outcome = self.engine.entry(vehicle_id)
        self._publish_events()
        return EntryResultDTO.from_outcome(outcome, self._entry_message(outcome))

    def vehicle_exit(self, vehicle_id: int) -> ExitResultDTO:
        """
        Use Case: Vehicle Exit
        1. Bill the parked vehicle, or cancel its waiting place
        2. Hand the freed slot to the next waiting vehicle
        3. Publish resulting events
        """
        outcome = self.engine.exit(vehicle_id)
        self._publish_events()
        return ExitResultDTO.from_outcome(outcome, self._exit_message(outcome))

    def register_pass(self, vehicle_id: int) -> bool:
        """Register a monthly pass holder"""
        return self.engine.set_pass_holder(vehicle_id, True)

    def revoke_pass(self, vehicle_id: int) -> bool:
        return self.engine.set_pass_holder(vehicle_id, False)

    def emergency_reset(self) -> int:
        """Clear the facility; history and revenue are retained"""
        cleared = self.engine.emergency_reset()
        self._publish_events()
        return cleared

    def reinitialize(self) -> None:
        """Start over with an empty facility, history and revenue"""
        self.engine.reinitialize()

    # ========================================================================
    # QUERIES
    # ========================================================================

    def search_vehicle(self, vehicle_id: int) -> VehicleStatusDTO:
        state = self.engine.query_vehicle(vehicle_id)
        if state is None:
            return VehicleStatusDTO.from_state(vehicle_id, None)
        return VehicleStatusDTO.from_state(
            vehicle_id,
            state,
            queue_position=self.engine.queue_position(vehicle_id),
            is_pass_holder=self.engine.is_pass_holder(vehicle_id),
        )

    def parked_vehicles(self) -> List[OccupiedSlotDTO]:
        return [
            OccupiedSlotDTO(slot=slot, vehicle_id=vehicle_id, entry_time=entry_time)
            for slot, vehicle_id, entry_time in self.engine.list_occupied()
        ]

    def free_slots(self) -> List[int]:
        return self.engine.list_free_slots()

    def waiting_vehicles(self) -> List[int]:
        return self.engine.list_waiting()

    def history(self, limit: Optional[int] = None) -> List[HistoryRecordDTO]:
        """Parking sessions, most recent first"""
        records = self.engine.list_history()
        if limit is not None:
            records = records[:limit]
        return [HistoryRecordDTO.from_record(record) for record in records]

    def revenue(self) -> MoneyDTO:
        return MoneyDTO.from_money(self.engine.total_revenue())

    def slot_map(self) -> List[SlotMapEntryDTO]:
        return [
            SlotMapEntryDTO(slot=slot, vehicle_id=vehicle_id)
            for slot, vehicle_id in self.engine.slot_map()
        ]

    def status(self) -> FacilityStatusDTO:
        return FacilityStatusDTO.from_report(self.engine.get_status_report())

    # ========================================================================
    # HELPERS
    # ========================================================================

    def _publish_events(self) -> None:
        events = self.engine.clear_events()
        if events:
            self.event_bus.publish_all(events)

    @staticmethod
    def _entry_message(outcome: EntryOutcome) -> str:
        if outcome.status is OutcomeStatus.PARKED:
            return f"Vehicle {outcome.vehicle_id} parked at slot {outcome.slot}."
        if outcome.status is OutcomeStatus.QUEUED:
            return (
                f"Parking full: vehicle {outcome.vehicle_id} added to waiting "
                f"at position {outcome.queue_position}."
            )
        return ENTRY_MESSAGES[outcome.status].format(vehicle_id=outcome.vehicle_id)

    @staticmethod
    def _exit_message(outcome: ExitOutcome) -> str:
        if outcome.status is not OutcomeStatus.EXITED:
            return EXIT_MESSAGES[outcome.status].format(vehicle_id=outcome.vehicle_id)

        message = (
            f"Vehicle {outcome.vehicle_id} exited from slot {outcome.slot}. "
            f"Fee: {outcome.fee.format()}."
        )
        if outcome.promotion:
            message += (
                f" Allocated slot {outcome.promotion.slot} to waiting "
                f"vehicle {outcome.promotion.vehicle_id}."
            )
        return message


# ============================================================================
# SERVICE FACTORY
# ============================================================================

def create_parking_service(
    settings: Optional[Settings] = None,
    config: Optional[FacilityConfig] = None,
    pricing: Optional[PricingStrategy] = None,
    clock: Optional[Clock] = None,
    event_bus: Optional[EventBus] = None,
    audit_log: bool = True
) -> ParkingService:
    """
    Wire engine, event bus and audit logging together.
    An explicit config wins over settings. When the facility comes from
    settings, logging is configured from them too.
    """
    if config is None:
        settings = settings or get_settings()
        setup_logging(settings.log_level, settings.log_file)
        config = settings.to_facility_config()

    engine = ParkingEngine(config=config, pricing=pricing, clock=clock)
    bus = event_bus or EventBus()
    if audit_log:
        bus.subscribe(ALL_EVENTS, LoggingEventHandler())

    return ParkingService(engine, bus)
