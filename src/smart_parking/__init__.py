"""
Smart Parking System

Slot allocation, waiting queue, billing and session history for a single
fixed-capacity parking facility.
"""

__version__ = "1.0.0"
