"""Ukulele: a calibrated, fretted instrument played on one string."""

from typing import List, Optional

from ..calibration.state_machine import CalibrationStateMachine
from ..logger import get_logger
from .base import Instrument

logger = get_logger(__name__)

SCALE_LENGTH = 380.0  # mm, concert ukulele
MISSING_NEIGHBOUR_TOLERANCE = 20.0  # Hz


class Ukulele(Instrument):
    """Frets are mapped to frequencies from a two-anchor calibration.

    The tolerance for a fret is 40% of the gap to the next fret up, never
    less than ``tolerance_floor``, so adjacent frets cannot both match one pitch.
    """

    name = "ukulele"

    def __init__(
        self,
        deck_position: float = 480.0,
        width: float = 1024.0,
        tolerance_floor: float = 15.0,
        calibration: Optional[CalibrationStateMachine] = None,
    ):
        super().__init__(
            deck_position=deck_position,
            width=width,
            calibration=calibration if calibration is not None else CalibrationStateMachine(),
        )
        self.tolerance_floor = tolerance_floor

    @property
    def low_index(self) -> int:
        return getattr(self.calibration, "low_index", 1)

    @property
    def high_index(self) -> int:
        return getattr(self.calibration, "high_index", 12)

    def positions(self) -> List[int]:
        return list(range(self.low_index - 1, self.high_index + 2))

    def expected_frequency(self, position_id: int) -> Optional[float]:
        return self.calibration.get_calibration_data().get(position_id)

    def tolerance_for(self, position_id: int) -> float:
        table = self.calibration.get_calibration_data()
        current = table.get(position_id)
        above = table.get(position_id + 1)

        dynamic = MISSING_NEIGHBOUR_TOLERANCE
        if current is not None and above is not None:
            dynamic = abs(above - current) * 0.4

        return max(dynamic, self.tolerance_floor)

    def position_of(self, position_id: int) -> float:
        """Horizontal centre of a fret, following the real fret spacing."""
        # Open string sits at the nut end
        if position_id <= 0:
            return self.width * 0.05

        last = self.high_index + 1
        span = SCALE_LENGTH - SCALE_LENGTH / 2 ** (last / 12)
        distance = SCALE_LENGTH - SCALE_LENGTH / 2 ** (position_id / 12)
        return self.width * 0.1 + self.width * 0.8 * (distance / span)
