from typing import Dict, List, Optional

from ..note_utils import midi_to_frequency
from .base import Instrument

KEY_COUNT = 44
# Key 25 is middle C (MIDI 60)
MIDI_OFFSET = 35


class Piano(Instrument):
    """44-key keyboard with equal-tempered frequencies; needs no calibration."""

    name = "piano"
    TOLERANCE = 20.0  # Hz

    def __init__(self, deck_position: float = 480.0, width: float = 1024.0):
        super().__init__(deck_position=deck_position, width=width)
        self._frequencies: Dict[int, float] = {
            key: midi_to_frequency(key + MIDI_OFFSET) for key in self.positions()
        }

    def positions(self) -> List[int]:
        return list(range(1, KEY_COUNT + 1))

    def expected_frequency(self, position_id: int) -> Optional[float]:
        return self._frequencies.get(position_id)

    def tolerance_for(self, position_id: int) -> float:
        return self.TOLERANCE

    def position_of(self, position_id: int) -> float:
        if position_id not in self._frequencies:
            return 0.0
        key_width = self.width / KEY_COUNT
        return (position_id - 0.5) * key_width
