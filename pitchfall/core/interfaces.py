"""Defines the core interfaces for the Pitchfall application."""

from __future__ import annotations
from abc import ABC, abstractmethod
from typing import Any, Callable, Mapping, Optional

from ..note_types import CalibrationProgress, FrequencySample


class ICalibratable(ABC):
    """Interface for an instrument's calibration procedure."""

    @abstractmethod
    def start_calibration(self, callback: Optional[Callable[[], None]] = None) -> None:
        """Begin calibrating; ``callback`` runs once when calibration completes."""
        pass

    @abstractmethod
    def handle_frequency(self, sample: FrequencySample) -> None:
        """Feed one voiced frequency reading into the calibration."""
        pass

    @abstractmethod
    def is_complete(self) -> bool:
        """Check if calibration has completed successfully."""
        pass

    @abstractmethod
    def get_calibration_data(self) -> Mapping[int, float]:
        """Return the calibrated position -> frequency table (empty if none)."""
        pass

    @abstractmethod
    def reset(self) -> None:
        """Discard all calibration data and start over."""
        pass

    @abstractmethod
    def poll(self, now: float) -> None:
        """Give pending hold timers a chance to fire on a frame tick."""
        pass

    @abstractmethod
    def note_quiet_input(self) -> None:
        """Tell the calibration that the current reading was not voiced."""
        pass

    @property
    @abstractmethod
    def progress(self) -> CalibrationProgress:
        """Current state, completion fraction and hint text."""
        pass


class IInstrument(ABC):
    """Capabilities the gameplay engine needs from an instrument."""

    @abstractmethod
    def expected_frequency(self, position_id: int) -> Optional[float]:
        """Frequency the player should produce for a position, or None if unknown."""
        pass

    @abstractmethod
    def tolerance_for(self, position_id: int) -> float:
        """Maximum (exclusive) distance in Hz for a detected pitch to count as a hit."""
        pass

    @abstractmethod
    def deck_reference_position(self) -> float:
        """Offset of the decision zone along the fall axis."""
        pass

    @abstractmethod
    def position_of(self, position_id: int) -> Any:
        """Layout coordinate of a position, used only by rendering."""
        pass


class IPitchInput(ABC):
    """Interface for sources of (frequency, amplitude) readings."""

    @abstractmethod
    def start(self, callback: Callable[[float, float, float], None]) -> bool:
        """Start delivering ``callback(frequency, amplitude, timestamp)``."""
        pass

    @abstractmethod
    def stop(self) -> None:
        """Stop delivering readings."""
        pass

    @abstractmethod
    def is_running(self) -> bool:
        """Check if the source is delivering readings."""
        pass
