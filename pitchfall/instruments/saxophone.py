from typing import Dict, List, Optional

from ..note_utils import note_to_frequency
from .base import Instrument

# Alto sax fingerings for written C4..C5, sounding a major sixth lower
SOUNDING_NOTES = ["Eb3", "F3", "G3", "Ab3", "Bb3", "C4", "D4", "Eb4"]


class Saxophone(Instrument):
    """Alto saxophone over one written octave; needs no calibration."""

    name = "saxophone"
    TOLERANCE = 30.0  # Hz

    def __init__(self, deck_position: float = 480.0, width: float = 1024.0):
        super().__init__(deck_position=deck_position, width=width)
        self._frequencies: Dict[int, float] = {
            index: note_to_frequency(note)
            for index, note in enumerate(SOUNDING_NOTES, start=1)
        }

    def positions(self) -> List[int]:
        return list(self._frequencies)

    def expected_frequency(self, position_id: int) -> Optional[float]:
        return self._frequencies.get(position_id)

    def tolerance_for(self, position_id: int) -> float:
        return self.TOLERANCE

    def position_of(self, position_id: int) -> float:
        if position_id not in self._frequencies:
            return 0.0
        spacing = self.width / (len(self._frequencies) + 1)
        return spacing * position_id
