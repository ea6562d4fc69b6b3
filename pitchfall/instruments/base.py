"""Common behaviour shared by all playable instruments."""

from abc import abstractmethod
from typing import List, Optional

from ..calibration.state_machine import NoCalibration
from ..core.interfaces import ICalibratable, IInstrument
from ..logger import get_logger

logger = get_logger(__name__)


class Instrument(IInstrument):
    """Base instrument: layout width, deck line and a calibration procedure.

    Subclasses supply the position -> frequency mapping, tolerance rule and
    layout coordinates. Instruments with fixed frequencies use ``NoCalibration``.
    """

    name = "instrument"

    def __init__(
        self,
        deck_position: float = 480.0,
        width: float = 1024.0,
        calibration: Optional[ICalibratable] = None,
    ):
        self.width = width
        self._deck_position = deck_position
        self.calibration = calibration if calibration is not None else NoCalibration()

    def deck_reference_position(self) -> float:
        return self._deck_position

    def is_ready(self) -> bool:
        """Check if the instrument can be played (calibration complete)."""
        return self.calibration.is_complete()

    @property
    def requires_calibration(self) -> bool:
        return not isinstance(self.calibration, NoCalibration)

    @abstractmethod
    def positions(self) -> List[int]:
        """All position identifiers this instrument can play, low to high."""
        pass

    def __repr__(self) -> str:
        return f"{type(self).__name__}(deck={self._deck_position}, width={self.width})"
