"""Instrument calibration: anchor collection and frequency mapping."""

from .frequency_mapper import (
    CalibratedFrequencyTable,
    InvalidCalibrationError,
    map_frequencies,
)
from .state_machine import CalibrationStateMachine, NoCalibration

__all__ = [
    "CalibratedFrequencyTable",
    "CalibrationStateMachine",
    "InvalidCalibrationError",
    "NoCalibration",
    "map_frequencies",
]
