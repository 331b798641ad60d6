# File: src/smart_parking/domain/strategies.py
"""
Pricing strategies for the Smart Parking System

A strategy turns the length of a parking session into a fee. The engine
holds one strategy for its whole lifetime.
"""

from abc import ABC, abstractmethod
import logging

from .models import Money


SECONDS_PER_HOUR = 3600


def billed_hours(elapsed_seconds: int) -> int:
    """Whole hours charged for a session, every started hour counts"""
    elapsed_seconds = max(0, int(elapsed_seconds))
    return (elapsed_seconds + SECONDS_PER_HOUR - 1) // SECONDS_PER_HOUR


# ============================================================================
# STRATEGY INTERFACES
# ============================================================================

class PricingStrategy(ABC):
    """
    Abstract base class for pricing strategies
    Defines the interface for fee calculation algorithms
    """

    def __init__(self):
        self.logger = logging.getLogger(self.__class__.__name__)

    @abstractmethod
    def calculate_fee(self, elapsed_seconds: int, is_pass_holder: bool = False) -> Money:
        """
        Calculate the fee for a session of the given length
        Returns: Calculated fee
        """

    def get_strategy_name(self) -> str:
        """Get human-readable strategy name"""
        return self.__class__.__name__.replace("PricingStrategy", "")

    def __str__(self) -> str:
        return f"{self.get_strategy_name()} Pricing"


# ============================================================================
# CONCRETE STRATEGIES
# ============================================================================

class CeilingHourPricingStrategy(PricingStrategy):
    """
    Flat hourly rate with every started hour billed in full.
    Pass holders park for free.
    """

    def __init__(self, hourly_rate: Money):
        super().__init__()
        self.hourly_rate = hourly_rate

    def calculate_fee(self, elapsed_seconds: int, is_pass_holder: bool = False) -> Money:
        if is_pass_holder:
            return Money.zero(self.hourly_rate.currency)

        hours = billed_hours(elapsed_seconds)
        fee = self.hourly_rate * hours
        self.logger.debug(f"{elapsed_seconds}s -> {hours}h -> {fee.format()}")
        return fee

