"""Core components for the Pitchfall application."""

# Import interfaces for easier access
from .interfaces import (
    ICalibratable,
    IInstrument,
    IPitchInput,
)

__all__ = ["ICalibratable", "IInstrument", "IPitchInput"]
