"""Two-anchor frequency interpolation for calibrated instruments."""

from collections.abc import Mapping
from typing import Dict, Iterator, Optional

import numpy as np

from ..logger import get_logger

logger = get_logger(__name__)


class InvalidCalibrationError(ValueError):
    """Raised when anchor frequencies cannot produce a frequency table."""


class CalibratedFrequencyTable(Mapping):
    """Read-only mapping of position index -> expected frequency in Hz.

    A new calibration produces a new table; an existing one is never patched
    while gameplay reads it.
    """

    def __init__(self, frequencies: Optional[Dict[int, float]] = None):
        self._frequencies: Dict[int, float] = {
            int(position): float(freq)
            for position, freq in sorted((frequencies or {}).items())
        }

    @classmethod
    def empty(cls) -> "CalibratedFrequencyTable":
        return cls()

    def __getitem__(self, position: int) -> float:
        return self._frequencies[position]

    def __iter__(self) -> Iterator[int]:
        return iter(self._frequencies)

    def __len__(self) -> int:
        return len(self._frequencies)

    def __repr__(self) -> str:
        entries = ", ".join(f"{k}: {v:.2f}" for k, v in self._frequencies.items())
        return f"CalibratedFrequencyTable({{{entries}}})"

    def to_dict(self) -> Dict[int, float]:
        return dict(self._frequencies)


def map_frequencies(
    low_frequency: float,
    high_frequency: float,
    low_index: int = 1,
    high_index: int = 12,
) -> CalibratedFrequencyTable:
    """Build an equal-tempered frequency table between two measured anchors.

    Positions ``low_index..high_index`` are spaced geometrically between the
    anchors. One extra entry is extrapolated below the low anchor using the
    per-step ratio, and one above the high anchor using the ratio of the two
    highest computed entries.

    Args:
        low_frequency: Measured frequency at ``low_index`` in Hz
        high_frequency: Measured frequency at ``high_index`` in Hz
        low_index: Position of the low anchor (e.g., fret 1)
        high_index: Position of the high anchor (e.g., fret 12)

    Returns:
        CalibratedFrequencyTable covering ``low_index - 1 .. high_index + 1``

    Raises:
        InvalidCalibrationError: If the anchors are not finite, positive and
            increasing, or the index range is empty
    """
    try:
        low = float(low_frequency)
        high = float(high_frequency)
    except (TypeError, ValueError) as e:
        raise InvalidCalibrationError(f"Anchor frequencies must be numbers: {e}") from e

    if not (np.isfinite(low) and np.isfinite(high)):
        raise InvalidCalibrationError(
            f"Anchor frequencies must be finite (low={low}, high={high})"
        )
    if low <= 0 or high <= 0:
        raise InvalidCalibrationError(
            f"Anchor frequencies must be positive (low={low}, high={high})"
        )
    if high <= low:
        raise InvalidCalibrationError(
            f"High anchor must be above low anchor (low={low:.2f}, high={high:.2f})"
        )
    if high_index <= low_index:
        raise InvalidCalibrationError(
            f"Index range is empty (low_index={low_index}, high_index={high_index})"
        )

    steps = high_index - low_index
    ratio = (high / low) ** (1.0 / steps)

    exponents = np.arange(steps + 1, dtype=np.float64)
    interpolated = low * np.power(ratio, exponents)

    table: Dict[int, float] = {low_index - 1: low / ratio}
    for offset, freq in enumerate(interpolated):
        table[low_index + offset] = float(freq)

    top = table[high_index]
    below_top = table.get(high_index - 1)
    step_ratio = top / below_top if below_top else ratio
    table[high_index + 1] = top * step_ratio

    logger.debug(
        f"Mapped {low:.2f}Hz..{high:.2f}Hz over positions "
        f"{low_index}..{high_index} (ratio {ratio:.5f})"
    )
    return CalibratedFrequencyTable(table)
