#!/usr/bin/env python3
"""
Unit tests for the application layer

ParkingService use cases and queries, DTO conversion and the command
objects are exercised against a small facility.
"""

import json
import unittest
from decimal import Decimal
from unittest.mock import patch

from smart_parking.application.commands import (
    CommandFactory, CommandProcessor, EmergencyResetCommand,
    RegisterPassCommand, VehicleEntryCommand, VehicleExitCommand,
)
from smart_parking.application.dtos import (
    ExitResultDTO, MoneyDTO, SlotMapEntryDTO, VehicleStatusDTO,
)
from smart_parking.application.parking_service import create_parking_service
from smart_parking.domain.models import FacilityConfig
from smart_parking.infrastructure.messaging import ALL_EVENTS, EventBus, EventRecorder
from smart_parking.infrastructure.settings import Settings
from tests.fakes import FakeClock


def build_service(clock, bus=None, **config):
    config.setdefault("slot_capacity", 2)
    config.setdefault("waiting_capacity", 2)
    config.setdefault("hourly_rate", Decimal('50'))
    return create_parking_service(
        config=FacilityConfig(**config),
        clock=clock,
        event_bus=bus,
        audit_log=False,
    )


# ============================================================================
# PARKING SERVICE
# ============================================================================

class TestParkingService(unittest.TestCase):
    """Use cases and messages returned by ParkingService"""

    def setUp(self):
        self.clock = FakeClock()
        self.bus = EventBus()
        self.recorder = EventRecorder()
        self.bus.subscribe(ALL_EVENTS, self.recorder)
        self.service = build_service(self.clock, self.bus)

    def test_entry_parked(self):
        result = self.service.vehicle_entry(5)

        self.assertTrue(result.success)
        self.assertEqual(result.status, "parked")
        self.assertEqual(result.slot, 1)
        self.assertEqual(result.entry_time, self.clock.now)
        self.assertEqual(result.message, "Vehicle 5 parked at slot 1.")

    def test_entry_queued_message(self):
        self.service.vehicle_entry(5)
        self.service.vehicle_entry(7)
        result = self.service.vehicle_entry(9)

        self.assertEqual(result.status, "queued")
        self.assertEqual(result.queue_position, 1)
        self.assertEqual(
            result.message,
            "Parking full: vehicle 9 added to waiting at position 1."
        )

    def test_entry_rejections(self):
        self.service.vehicle_entry(5)

        duplicate = self.service.vehicle_entry(5)
        invalid = self.service.vehicle_entry(250)

        self.assertFalse(duplicate.success)
        self.assertEqual(duplicate.status, "duplicate_entry")
        self.assertEqual(
            duplicate.message,
            "Duplicate: vehicle 5 is already parked or waiting."
        )
        self.assertEqual(invalid.status, "invalid_identifier")
        self.assertEqual(invalid.message, "Invalid vehicle id 250.")

    def test_capacity_exceeded_message(self):
        for vehicle_id in (1, 2, 3, 4):
            self.service.vehicle_entry(vehicle_id)
        result = self.service.vehicle_entry(5)

        self.assertEqual(result.status, "capacity_exceeded")
        self.assertEqual(result.message, "Parking and waiting queue full.")

    def test_exit_with_promotion_message(self):
        self.service.vehicle_entry(5)
        self.service.vehicle_entry(7)
        self.service.vehicle_entry(9)
        self.clock.advance(minutes=65)

        result = self.service.vehicle_exit(5)

        self.assertEqual(result.status, "exited")
        self.assertEqual(result.fee.amount, Decimal('100'))
        self.assertEqual(result.promotion.vehicle_id, 9)
        self.assertEqual(result.promotion.slot, 1)
        self.assertEqual(result.duration_breakdown, (1, 5, 0))
        self.assertEqual(
            result.message,
            "Vehicle 5 exited from slot 1. Fee: INR 100.00. "
            "Allocated slot 1 to waiting vehicle 9."
        )

    def test_exit_rejections(self):
        self.assertEqual(self.service.vehicle_exit(5).message, "Vehicle 5 not parked.")
        self.assertEqual(self.service.vehicle_exit(-1).status, "invalid_identifier")

    def test_cancel_waiting(self):
        for vehicle_id in (1, 2, 3):
            self.service.vehicle_entry(vehicle_id)

        result = self.service.vehicle_exit(3)

        self.assertTrue(result.success)
        self.assertEqual(result.status, "waiting_cancelled")
        self.assertIsNone(result.fee)
        self.assertEqual(result.message, "Vehicle 3 removed from waiting queue.")
        self.assertEqual(self.service.waiting_vehicles(), [])

    def test_pass_registration(self):
        self.assertTrue(self.service.register_pass(5))
        self.assertFalse(self.service.register_pass(1000))

        self.service.vehicle_entry(5)
        self.clock.advance(hours=3)
        result = self.service.vehicle_exit(5)

        self.assertEqual(result.fee.amount, Decimal('0'))
        self.assertTrue(self.service.revoke_pass(5))
        self.assertFalse(self.service.search_vehicle(5).is_pass_holder)

    def test_events_published_after_each_use_case(self):
        self.service.vehicle_entry(5)
        self.service.vehicle_entry(7)
        self.service.vehicle_entry(9)
        self.service.vehicle_exit(5)

        self.assertEqual(
            [event.event_type for event in self.recorder.events],
            ["vehicle.parked", "vehicle.parked", "vehicle.queued",
             "vehicle.left", "vehicle.promoted"]
        )
        self.assertFalse(self.service.engine.has_changes)

    def test_emergency_reset(self):
        self.service.vehicle_entry(5)
        self.service.vehicle_entry(7)
        self.service.vehicle_entry(9)

        self.assertEqual(self.service.emergency_reset(), 3)
        self.assertEqual(self.service.free_slots(), [1, 2])
        self.assertEqual(len(self.recorder.of_type("facility.emergency_reset")), 1)
        self.assertEqual(len(self.service.history()), 2)

    def test_reinitialize(self):
        self.service.vehicle_entry(5)
        self.clock.advance(minutes=5)
        self.service.vehicle_exit(5)

        self.service.reinitialize()

        self.assertEqual(self.service.history(), [])
        self.assertEqual(self.service.revenue().amount, Decimal('0'))


class TestServiceFactory(unittest.TestCase):
    """create_parking_service wiring"""

    @patch('smart_parking.application.parking_service.setup_logging')
    def test_settings_configure_facility_and_logging(self, mock_setup_logging):
        settings = Settings(
            _env_file=None,
            slot_capacity=3,
            hourly_rate=Decimal('20'),
            log_level="DEBUG",
            log_file="logs/parking.log",
        )

        service = create_parking_service(settings=settings, clock=FakeClock(), audit_log=False)

        mock_setup_logging.assert_called_once_with("DEBUG", "logs/parking.log")
        self.assertEqual(service.free_slots(), [1, 2, 3])
        self.assertEqual(service.engine.config.hourly_rate, Decimal('20'))

    @patch('smart_parking.application.parking_service.setup_logging')
    def test_explicit_config_leaves_logging_alone(self, mock_setup_logging):
        create_parking_service(config=FacilityConfig(slot_capacity=1), audit_log=False)
        mock_setup_logging.assert_not_called()

    def test_audit_log_subscribes_to_every_event(self):
        bus = EventBus()
        create_parking_service(config=FacilityConfig(), event_bus=bus)
        self.assertEqual(bus.subscriber_count(ALL_EVENTS), 1)


class TestServiceQueries(unittest.TestCase):
    """Read-only queries return DTOs"""

    def setUp(self):
        self.clock = FakeClock()
        self.service = build_service(self.clock, waiting_capacity=3)
        for vehicle_id in (5, 7, 9, 11):
            self.service.vehicle_entry(vehicle_id)

    def test_search_parked_vehicle(self):
        status = self.service.search_vehicle(7)

        self.assertIsInstance(status, VehicleStatusDTO)
        self.assertTrue(status.valid)
        self.assertEqual(status.status, "parked")
        self.assertEqual(status.slot, 2)
        self.assertEqual(status.entry_time, self.clock.now)
        self.assertIsNone(status.queue_position)

    def test_search_waiting_vehicle(self):
        status = self.service.search_vehicle(11)
        self.assertEqual(status.status, "waiting")
        self.assertEqual(status.queue_position, 2)
        self.assertIsNone(status.slot)

    def test_search_absent_and_invalid(self):
        self.assertEqual(self.service.search_vehicle(3).status, "absent")

        invalid = self.service.search_vehicle(100)
        self.assertFalse(invalid.valid)
        self.assertIsNone(invalid.status)

    def test_parked_vehicles(self):
        parked = self.service.parked_vehicles()
        self.assertEqual([(p.slot, p.vehicle_id) for p in parked], [(1, 5), (2, 7)])

    def test_waiting_and_free_slots(self):
        self.assertEqual(self.service.waiting_vehicles(), [9, 11])
        self.assertEqual(self.service.free_slots(), [])

    def test_slot_map(self):
        self.service.vehicle_exit(5)
        self.service.vehicle_exit(9)

        rows = self.service.slot_map()

        self.assertEqual([(r.slot, r.vehicle_id) for r in rows], [(1, 11), (2, 7)])
        self.assertFalse(rows[0].is_free)
        self.assertTrue(SlotMapEntryDTO(slot=3).is_free)

    def test_history_limit_and_order(self):
        self.clock.advance(minutes=30)
        self.service.vehicle_exit(5)

        history = self.service.history()
        self.assertEqual([h.vehicle_id for h in history], [9, 7, 5])
        self.assertTrue(history[0].is_open)
        self.assertIsNone(history[0].duration_seconds)
        self.assertEqual(history[2].duration_seconds, 1800)

        self.assertEqual(len(self.service.history(limit=1)), 1)

    def test_revenue(self):
        self.clock.advance(minutes=30)
        self.service.vehicle_exit(5)

        revenue = self.service.revenue()
        self.assertIsInstance(revenue, MoneyDTO)
        self.assertEqual(revenue.format(), "INR 50.00")

    def test_status(self):
        status = self.service.status()

        self.assertEqual(status.total_slots, 2)
        self.assertEqual(status.occupied_slots, 2)
        self.assertEqual(status.available_slots, 0)
        self.assertEqual(status.occupancy_rate, 100.0)
        self.assertEqual(status.waiting_count, 2)
        self.assertEqual(status.waiting_capacity, 3)
        self.assertEqual(status.open_sessions, 2)
        self.assertEqual(status.timestamp, self.clock.now)


class TestDTOSerialization(unittest.TestCase):
    """DTO serialization helpers"""

    def test_exit_result_to_json(self):
        clock = FakeClock()
        service = build_service(clock)
        service.vehicle_entry(5)
        clock.advance(minutes=10)

        payload = json.loads(service.vehicle_exit(5).to_json())

        self.assertEqual(payload["status"], "exited")
        self.assertEqual(payload["fee"]["currency"], "INR")
        self.assertEqual(Decimal(payload["fee"]["amount"]), Decimal('50'))
        self.assertIsNone(payload["promotion"])

    def test_to_dict_excludes_none(self):
        clock = FakeClock()
        service = build_service(clock)

        data = service.vehicle_exit(5).to_dict(exclude_none=True)

        self.assertEqual(data["status"], "not_parked")
        self.assertNotIn("fee", data)

    def test_money_dto_round_trip(self):
        money = MoneyDTO(amount=Decimal('12.5'), currency="USD")
        self.assertEqual(MoneyDTO.from_json(money.to_json()), money)

    def test_money_dto_rejects_negative(self):
        with self.assertRaises(ValueError):
            MoneyDTO(amount=Decimal('-1'))

    def test_exit_result_without_duration(self):
        dto = ExitResultDTO(status="not_parked", success=False, vehicle_id=1)
        self.assertIsNone(dto.duration_breakdown)


# ============================================================================
# COMMANDS
# ============================================================================

class TestCommands(unittest.TestCase):
    """Command objects, factory and processor"""

    def setUp(self):
        self.clock = FakeClock()
        self.service = build_service(self.clock)
        self.processor = CommandProcessor(self.service)

    def test_entry_and_exit_commands(self):
        entry = self.processor.process(VehicleEntryCommand(5, executed_by="operator"))
        self.clock.advance(minutes=65)
        exit_ = self.processor.process(VehicleExitCommand(5))

        self.assertTrue(entry.success)
        self.assertEqual(entry.result["slot"], 1)
        self.assertTrue(exit_.success)
        self.assertEqual(exit_.result["fee"]["amount"], Decimal('100'))
        self.assertEqual(exit_.command_type, "VehicleExitCommand")

    def test_failed_outcome_is_not_success(self):
        result = self.processor.process(VehicleExitCommand(5))
        self.assertFalse(result.success)
        self.assertEqual(result.result["status"], "not_parked")

    def test_validation_rejects_non_integer_ids(self):
        for bad in ("5", 5.0, True, None):
            result = self.processor.process(VehicleEntryCommand(bad))
            self.assertFalse(result.success)
            self.assertEqual(len(result.errors), 1)
        self.assertEqual(self.processor.get_history(), [])
        self.assertEqual(self.service.free_slots(), [1, 2])

    def test_register_pass_command(self):
        result = self.processor.process(RegisterPassCommand(8))
        self.assertTrue(result.success)
        self.assertEqual(result.result, {"vehicle_id": 8, "registered": True})
        self.assertTrue(self.service.search_vehicle(8).is_pass_holder)

    def test_emergency_reset_requires_confirmation(self):
        self.service.vehicle_entry(5)

        rejected = self.processor.process(EmergencyResetCommand())
        accepted = self.processor.process(EmergencyResetCommand(confirmed=True))

        self.assertFalse(rejected.success)
        self.assertEqual(rejected.errors, ["Emergency reset must be confirmed"])
        self.assertTrue(accepted.success)
        self.assertEqual(accepted.result, {"vehicles_cleared": 1})

    def test_factory(self):
        command = CommandFactory.create_command("vehicle_entry", {"vehicle_id": 5})
        self.assertIsInstance(command, VehicleEntryCommand)
        self.assertEqual(command.vehicle_id, 5)

        reset = CommandFactory.create_command("emergency_reset", {"confirmed": True})
        self.assertTrue(reset.confirmed)

    def test_factory_unknown_or_bad_data(self):
        with self.assertLogs("CommandFactory", level="WARNING"):
            self.assertIsNone(CommandFactory.create_command("tow_vehicle", {}))
        with self.assertLogs("CommandFactory", level="ERROR"):
            self.assertIsNone(CommandFactory.create_command("vehicle_exit", {"plate": "X"}))

    def test_history_is_bounded(self):
        processor = CommandProcessor(self.service, max_history_size=2)
        results = processor.process_batch([
            VehicleEntryCommand(1), VehicleEntryCommand(2), VehicleExitCommand(1),
        ])

        self.assertEqual(len(results), 3)
        history = processor.get_history()
        self.assertEqual([h["command_type"] for h in history],
                         ["VehicleEntryCommand", "VehicleExitCommand"])
        self.assertIsNotNone(history[-1]["executed_at"])
        self.assertEqual(history[-1]["vehicle_id"], 1)
        self.assertEqual(len(processor.get_history(limit=1)), 1)

        processor.clear_history()
        self.assertEqual(processor.get_history(), [])

    def test_description(self):
        self.assertEqual(VehicleEntryCommand(5).get_description(), "VehicleEntry vehicle 5")
        self.assertEqual(EmergencyResetCommand().get_description(), "EmergencyReset")


if __name__ == '__main__':
    unittest.main(verbosity=2)
