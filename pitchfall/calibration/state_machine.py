"""Two-anchor calibration protocol.

The player holds the low anchor note until three consistent stable readings
have been collected, then does the same for the high anchor. The two means
are turned into a per-position frequency table by ``map_frequencies``.
"""

from typing import Callable, List, Optional

from ..core.events import CalibrationEvents
from ..core.interfaces import ICalibratable
from ..detection.stability_detector import StabilityDetector
from ..logger import get_logger
from ..note_types import (
    CalibrationIssue,
    CalibrationProgress,
    CalibrationResult,
    CalibrationState,
    FrequencySample,
)
from .frequency_mapper import (
    CalibratedFrequencyTable,
    InvalidCalibrationError,
    map_frequencies,
)

logger = get_logger(__name__)

QUIET_INPUT_HINT = "Play a clear note louder than background noise."


class CalibrationStateMachine(ICalibratable):
    """Runs the low/high anchor calibration and owns the resulting table."""

    SAMPLES_PER_ANCHOR = 3

    def __init__(
        self,
        low_index: int = 1,
        high_index: int = 12,
        consistency_tolerance: float = 3.0,
        min_frequency_difference: float = 100.0,
        stability_threshold: float = StabilityDetector.DEFAULT_STABILITY_THRESHOLD,
        required_stable_duration: float = StabilityDetector.DEFAULT_REQUIRED_STABLE_DURATION,
        detector: Optional[StabilityDetector] = None,
        result: Optional[CalibrationResult] = None,
        on_complete: Optional[Callable[[], None]] = None,
    ):
        """Initialize the calibration.

        Args:
            low_index: Position of the low anchor note (e.g., fret 1)
            high_index: Position of the high anchor note (e.g., fret 12)
            consistency_tolerance: Max Hz between adjacent samples of one anchor
            min_frequency_difference: Min Hz between the two anchor means
            stability_threshold: Max spread in Hz for a reading to count as steady
            required_stable_duration: Seconds a reading must be held
            detector: Optional pre-built StabilityDetector (overrides the two above)
            result: Previously saved anchor means to restore instead of collecting
            on_complete: Optional callback run once per successful calibration
        """
        self.low_index = low_index
        self.high_index = high_index
        self.consistency_tolerance = consistency_tolerance
        self.min_frequency_difference = min_frequency_difference

        self._detector = detector or StabilityDetector(
            stability_threshold=stability_threshold,
            required_stable_duration=required_stable_duration,
        )
        self.events = CalibrationEvents()
        if on_complete is not None:
            self.events.on_completed(on_complete)

        self._state = CalibrationState.COLLECTING_LOW
        self._low_samples: List[float] = []
        self._high_samples: List[float] = []
        self._avg_low: Optional[float] = None
        self._table = CalibratedFrequencyTable.empty()
        self._result: Optional[CalibrationResult] = None
        self._error = False
        self._issue: Optional[CalibrationIssue] = None
        self._hint = self._start_hint()

        if result is not None:
            self.restore(result)

    # ICalibratable

    def start_calibration(self, callback: Optional[Callable[[], None]] = None) -> None:
        logger.info("Calibration started")
        if callback is not None:
            self.events.on_completed(callback)
        self.reset()

    def handle_frequency(self, sample: FrequencySample) -> None:
        """Feed a voiced reading to the stability detector."""
        if not self._is_collecting():
            return

        event = self._detector.observe(sample)
        if event is not None:
            self.handle_stable_frequency(event.frequency)
        elif not self._detector.is_steady and self._issue is None:
            self._set_hint(
                f"Calibrating fret {self._current_anchor()}. Keep it steady.",
                CalibrationIssue.UNSTABLE_INPUT,
            )

    def is_complete(self) -> bool:
        return self._state is CalibrationState.COMPLETED

    def get_calibration_data(self) -> CalibratedFrequencyTable:
        return self._table

    def reset(self) -> None:
        """Return to collecting the low anchor with all data discarded."""
        self._reset(self._start_hint(), None)

    # Frame-clock hooks

    def poll(self, now: float) -> None:
        """Deliver a hold that completed between samples."""
        if not self._is_collecting():
            return
        event = self._detector.poll(now)
        if event is not None:
            self.handle_stable_frequency(event.frequency)

    def note_quiet_input(self) -> None:
        """Called for readings below the voicing threshold."""
        self._detector.release()
        if (
            self._is_collecting()
            and self._issue in (None, CalibrationIssue.UNSTABLE_INPUT)
            and self._hint != QUIET_INPUT_HINT
        ):
            self._set_hint(QUIET_INPUT_HINT, self._issue)

    # State

    @property
    def state(self) -> CalibrationState:
        return self._state

    @property
    def error(self) -> bool:
        return self._error

    @property
    def table(self) -> CalibratedFrequencyTable:
        return self._table

    @property
    def result(self) -> Optional[CalibrationResult]:
        return self._result

    @property
    def low_samples(self) -> List[float]:
        return list(self._low_samples)

    @property
    def high_samples(self) -> List[float]:
        return list(self._high_samples)

    @property
    def detector(self) -> StabilityDetector:
        return self._detector

    @property
    def progress(self) -> CalibrationProgress:
        if self._state is CalibrationState.COLLECTING_LOW:
            fraction = len(self._low_samples) / self.SAMPLES_PER_ANCHOR * 0.5
        elif self._state is CalibrationState.COLLECTING_HIGH:
            fraction = 0.5 + len(self._high_samples) / self.SAMPLES_PER_ANCHOR * 0.5
        elif self._state is CalibrationState.COMPLETED:
            fraction = 1.0
        else:
            fraction = 0.0
        return CalibrationProgress(
            state=self._state, fraction=fraction, hint=self._hint, issue=self._issue
        )

    # Transitions

    def handle_stable_frequency(self, frequency: float) -> None:
        """Consume one stable reading for the anchor currently being collected."""
        logger.info(
            f"Stable frequency detected: {frequency:.2f}Hz in state {self._state.value}"
        )
        if self._state is CalibrationState.COLLECTING_LOW:
            self._collect_low(frequency)
        elif self._state is CalibrationState.COLLECTING_HIGH:
            self._collect_high(frequency)
        else:
            logger.debug(f"Ignoring stable frequency in state {self._state.value}")

    def restore(self, result: CalibrationResult) -> bool:
        """Complete calibration directly from saved anchor means.

        Returns:
            True if the saved means produced a usable table
        """
        logger.info(
            f"Restoring calibration from saved anchors "
            f"{result.low_frequency:.2f}Hz / {result.high_frequency:.2f}Hz"
        )
        self._detector.reset()
        self._low_samples.clear()
        self._high_samples.clear()
        return self._complete(result)

    def _collect_low(self, frequency: float) -> None:
        self._low_samples.append(frequency)
        if len(self._low_samples) < self.SAMPLES_PER_ANCHOR:
            self._set_hint(
                f"Calibrating low note: {len(self._low_samples)}/"
                f"{self.SAMPLES_PER_ANCHOR} samples collected.",
                None,
            )
            return

        samples, self._low_samples = self._low_samples, []
        if not self._is_consistent(samples):
            logger.warning(
                f"Low note samples inconsistent: {[round(s, 2) for s in samples]}"
            )
            self._set_hint(
                "Low note samples inconsistent. Please play a steady note.",
                CalibrationIssue.INCONSISTENT_SAMPLES,
            )
            return

        self._avg_low = sum(samples) / len(samples)
        self._state = CalibrationState.COLLECTING_HIGH
        logger.info(
            f"Low anchor accepted at {self._avg_low:.2f}Hz; "
            f"state changed to {self._state.value}"
        )
        self._set_hint(
            f"Calibrating: Now play the note at fret {self.high_index} "
            f"repeatedly and steadily.",
            None,
        )

    def _collect_high(self, frequency: float) -> None:
        self._high_samples.append(frequency)
        if len(self._high_samples) < self.SAMPLES_PER_ANCHOR:
            self._set_hint(
                f"Calibrating high note (fret {self.high_index}): "
                f"{len(self._high_samples)}/{self.SAMPLES_PER_ANCHOR} samples collected.",
                None,
            )
            return

        samples, self._high_samples = self._high_samples, []
        if not self._is_consistent(samples):
            logger.warning(
                f"High note samples inconsistent: {[round(s, 2) for s in samples]}"
            )
            self._set_hint(
                f"High note samples inconsistent. Please play a steady note "
                f"at fret {self.high_index}.",
                CalibrationIssue.INCONSISTENT_SAMPLES,
            )
            return

        avg_high = sum(samples) / len(samples)
        if avg_high - self._avg_low < self.min_frequency_difference:
            self._state = CalibrationState.ERROR
            self._error = True
            logger.warning(
                f"Calibration failed: frequency difference too small "
                f"({self._avg_low:.2f}Hz -> {avg_high:.2f}Hz). Resetting."
            )
            self._reset(
                "Frequency difference too small. Ensure clear low and high notes.",
                CalibrationIssue.INSUFFICIENT_FREQUENCY_SPAN,
            )
            return

        self._complete(CalibrationResult(self._avg_low, avg_high))

    def _complete(self, result: CalibrationResult) -> bool:
        try:
            table = map_frequencies(
                result.low_frequency,
                result.high_frequency,
                self.low_index,
                self.high_index,
            )
        except InvalidCalibrationError as e:
            logger.error(f"Invalid calibration frequencies: {e}")
            self._table = CalibratedFrequencyTable.empty()
            self._result = None
            self._state = CalibrationState.ERROR
            self._error = True
            self._set_hint(
                "Calibration failed. Please ensure proper microphone input.",
                CalibrationIssue.INVALID_CALIBRATION_INPUT,
            )
            return False

        self._detector.reset()
        self._table = table
        self._result = result
        self._state = CalibrationState.COMPLETED
        logger.info(f"Calibration completed successfully: {table!r}")
        self._set_hint("Calibration Complete!", None)
        self.events.emit_completed()
        return True

    def _reset(self, hint: str, issue: Optional[CalibrationIssue]) -> None:
        # Cancel the hold timer before touching state so a stale hold can't land.
        self._detector.reset()
        self._state = CalibrationState.COLLECTING_LOW
        self._low_samples.clear()
        self._high_samples.clear()
        self._avg_low = None
        self._error = False
        self._table = CalibratedFrequencyTable.empty()
        self._result = None
        logger.info("Calibration reset")
        self._set_hint(hint, issue)

    # Helpers

    def _is_consistent(self, samples: List[float]) -> bool:
        diffs = [abs(a - b) for a, b in zip(samples, samples[1:])]
        logger.debug(f"Consistency check: {[round(d, 2) for d in diffs]}")
        return all(d <= self.consistency_tolerance for d in diffs)

    def _is_collecting(self) -> bool:
        return self._state in (
            CalibrationState.COLLECTING_LOW,
            CalibrationState.COLLECTING_HIGH,
        )

    def _current_anchor(self) -> int:
        if self._state is CalibrationState.COLLECTING_HIGH:
            return self.high_index
        return self.low_index

    def _start_hint(self) -> str:
        return (
            f"Calibrating: Play the note at fret {self.low_index} "
            f"repeatedly and steadily."
        )

    def _set_hint(self, hint: str, issue: Optional[CalibrationIssue]) -> None:
        self._hint = hint
        self._issue = issue
        self.events.emit_progress(self.progress)


class NoCalibration(ICalibratable):
    """Calibration for instruments with fixed, known frequencies."""

    def start_calibration(self, callback: Optional[Callable[[], None]] = None) -> None:
        logger.info("No calibration needed for this instrument.")
        if callback is not None:
            callback()

    def handle_frequency(self, sample: FrequencySample) -> None:
        pass

    def is_complete(self) -> bool:
        return True

    def get_calibration_data(self) -> CalibratedFrequencyTable:
        return CalibratedFrequencyTable.empty()

    def reset(self) -> None:
        pass

    def poll(self, now: float) -> None:
        pass

    def note_quiet_input(self) -> None:
        pass

    @property
    def progress(self) -> CalibrationProgress:
        return CalibrationProgress(
            state=CalibrationState.COMPLETED,
            fraction=1.0,
            hint="No calibration needed.",
        )
