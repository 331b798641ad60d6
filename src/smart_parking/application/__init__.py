"""Application layer: service facade, DTOs and commands"""

from .parking_service import ParkingService, create_parking_service
from .commands import (
    Command, VehicleEntryCommand, VehicleExitCommand, RegisterPassCommand,
    EmergencyResetCommand, CommandFactory, CommandProcessor,
)

__all__ = [
    "ParkingService", "create_parking_service",
    "Command", "VehicleEntryCommand", "VehicleExitCommand", "RegisterPassCommand",
    "EmergencyResetCommand", "CommandFactory", "CommandProcessor",
]
