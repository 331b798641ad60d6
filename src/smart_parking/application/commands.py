# File: src/smart_parking/application/commands.py
"""
Command Pattern Implementation for the Smart Parking System

Each operator action (entry, exit, pass registration, emergency reset) is
wrapped in a command object that can be validated, executed against the
ParkingService and kept in an audit trail. A front end maps its menu
choices to CommandFactory.create_command.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple, Type
import logging
import uuid

from .dtos import CommandResultDTO
from .parking_service import ParkingService


# ============================================================================
# COMMAND INTERFACES AND BASE CLASSES
# ============================================================================

class Command(ABC):
    """
    Abstract base class for all commands

    A command represents an intent to change the system state.
    Commands are named in the imperative (e.g., VehicleEntryCommand).
    """

    def __init__(self, command_id: Optional[str] = None, executed_by: Optional[str] = None):
        self.command_id = command_id or str(uuid.uuid4())
        self.executed_at: Optional[datetime] = None
        self.executed_by = executed_by
        self.logger = logging.getLogger(self.__class__.__name__)

    @abstractmethod
    def execute(self, service: ParkingService) -> Tuple[bool, Dict[str, Any]]:
        """
        Execute the command using the provided service

        Returns: (success, result payload)
        """

    def validate(self) -> Tuple[bool, List[str]]:
        """
        Validate command parameters before execution

        Returns: (is_valid, error_messages)
        """
        return True, []

    def get_description(self) -> str:
        """Get human-readable command description"""
        return self.__class__.__name__.replace("Command", "")

    def to_dict(self) -> Dict[str, Any]:
        """Convert command to dictionary for serialization"""
        return {
            "command_id": self.command_id,
            "command_type": self.__class__.__name__,
            "description": self.get_description(),
            "executed_at": self.executed_at.isoformat() if self.executed_at else None,
            "executed_by": self.executed_by,
        }


class VehicleCommand(Command):
    """Base class for commands that target one vehicle id"""

    def __init__(self, vehicle_id: int, **kwargs):
        super().__init__(**kwargs)
        self.vehicle_id = vehicle_id

    def validate(self) -> Tuple[bool, List[str]]:
        errors = []
        if isinstance(self.vehicle_id, bool) or not isinstance(self.vehicle_id, int):
            errors.append(f"Vehicle id must be an integer, got {self.vehicle_id!r}")
        return len(errors) == 0, errors

    def get_description(self) -> str:
        return f"{super().get_description()} vehicle {self.vehicle_id}"

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["vehicle_id"] = self.vehicle_id
        return data


# ============================================================================
# PARKING COMMANDS
# ============================================================================

class VehicleEntryCommand(VehicleCommand):
    """Admit a vehicle"""

    def execute(self, service: ParkingService) -> Tuple[bool, Dict[str, Any]]:
        result = service.vehicle_entry(self.vehicle_id)
        return result.success, result.to_dict()


class VehicleExitCommand(VehicleCommand):
    """Release a vehicle, or cancel its place in the waiting queue"""

    def execute(self, service: ParkingService) -> Tuple[bool, Dict[str, Any]]:
        result = service.vehicle_exit(self.vehicle_id)
        return result.success, result.to_dict()


class RegisterPassCommand(VehicleCommand):
    """Register a monthly pass holder"""

    def execute(self, service: ParkingService) -> Tuple[bool, Dict[str, Any]]:
        registered = service.register_pass(self.vehicle_id)
        return registered, {"vehicle_id": self.vehicle_id, "registered": registered}


# ============================================================================
# ADMIN COMMANDS
# ============================================================================

class EmergencyResetCommand(Command):
    """Clear live occupancy; history and revenue are retained"""

    def __init__(self, confirmed: bool = False, **kwargs):
        super().__init__(**kwargs)
        self.confirmed = confirmed

    def validate(self) -> Tuple[bool, List[str]]:
        if not self.confirmed:
            return False, ["Emergency reset must be confirmed"]
        return True, []

    def execute(self, service: ParkingService) -> Tuple[bool, Dict[str, Any]]:
        cleared = service.emergency_reset()
        return True, {"vehicles_cleared": cleared}


# ============================================================================
# COMMAND FACTORY
# ============================================================================

class CommandFactory:
    """Factory for creating commands from dictionary data"""

    command_classes: Dict[str, Type[Command]] = {
        "vehicle_entry": VehicleEntryCommand,
        "vehicle_exit": VehicleExitCommand,
        "register_pass": RegisterPassCommand,
        "emergency_reset": EmergencyResetCommand,
    }

    @classmethod
    def create_command(cls, command_type: str, data: Optional[Dict[str, Any]] = None) -> Optional[Command]:
        """
        Create a command instance from type and data

        Returns: Command instance or None if type not recognized
        """
        command_class = cls.command_classes.get(command_type)
        if command_class is None:
            logging.getLogger("CommandFactory").warning(f"Unknown command type: {command_type}")
            return None

        try:
            return command_class(**(data or {}))
        except TypeError as e:
            logging.getLogger("CommandFactory").error(f"Error creating command {command_type}: {e}")
            return None


# ============================================================================
# COMMAND PROCESSOR
# ============================================================================

class CommandProcessor:
    """
    Processes commands with:
    - Validation before execution
    - Command logging
    - A bounded audit trail of executed commands
    """

    def __init__(self, service: ParkingService, max_history_size: int = 1000):
        self.service = service
        self.logger = logging.getLogger(self.__class__.__name__)
        self.command_history: List[Command] = []
        self.max_history_size = max_history_size

    def process(self, command: Command) -> CommandResultDTO:
        """Validate and execute a command"""
        self.logger.info(f"Processing command: {command.get_description()}")

        is_valid, errors = command.validate()
        if not is_valid:
            self.logger.warning(f"Command {command.get_description()} rejected: {errors}")
            return CommandResultDTO(
                command_id=command.command_id,
                command_type=command.__class__.__name__,
                success=False,
                errors=errors,
            )

        success, result = command.execute(self.service)
        command.executed_at = datetime.now()
        self._add_to_history(command)

        return CommandResultDTO(
            command_id=command.command_id,
            command_type=command.__class__.__name__,
            success=success,
            result=result,
        )

    def process_batch(self, commands: List[Command]) -> List[CommandResultDTO]:
        """Process multiple commands in order"""
        return [self.process(command) for command in commands]

    def get_history(self, limit: Optional[int] = None) -> List[Dict[str, Any]]:
        """Get command history"""
        history = self.command_history.copy()
        if limit:
            history = history[-limit:]

        return [cmd.to_dict() for cmd in history]

    def clear_history(self) -> None:
        self.command_history.clear()

    def _add_to_history(self, command: Command) -> None:
        """Add command to history, respecting max size"""
        self.command_history.append(command)

        if len(self.command_history) > self.max_history_size:
            self.command_history = self.command_history[-self.max_history_size:]
