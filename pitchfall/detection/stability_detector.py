import math
from collections import deque
from typing import Deque, List, Optional

from ..core.timers import TimerHandle, TimerQueue
from ..logger import get_logger
from ..note_types import FrequencySample, StableFrequencyEvent

logger = get_logger(__name__)


class StabilityDetector:
    """
    Watches a stream of frequency samples and reports when one pitch has been
    held steady for the whole hold duration.

    A hold timer is armed as soon as the window spread drops to the threshold;
    any unstable sample before it fires cancels it. Once it has fired the
    detector stays latched until the steady segment ends, so a long held note
    produces a single event.
    """

    DEFAULT_STABILITY_THRESHOLD = 5.0  # Hz
    DEFAULT_REQUIRED_STABLE_DURATION = 0.5  # seconds

    def __init__(
        self,
        stability_threshold: float = DEFAULT_STABILITY_THRESHOLD,
        required_stable_duration: float = DEFAULT_REQUIRED_STABLE_DURATION,
        timers: Optional[TimerQueue] = None,
    ):
        self._stability_threshold = stability_threshold
        self._required_stable_duration = required_stable_duration
        self._timers = timers if timers is not None else TimerQueue()

        self._window: Deque[FrequencySample] = deque()
        self._pending: Optional[TimerHandle] = None
        self._latched = False
        self._fired: Optional[StableFrequencyEvent] = None
        self._steady = False

    @property
    def stability_threshold(self) -> float:
        return self._stability_threshold

    @property
    def required_stable_duration(self) -> float:
        return self._required_stable_duration

    @property
    def window(self) -> List[FrequencySample]:
        return list(self._window)

    @property
    def is_armed(self) -> bool:
        return self._pending is not None

    @property
    def is_steady(self) -> bool:
        """Whether the most recent sample left the window within the threshold."""
        return self._steady

    def observe(self, sample: FrequencySample) -> Optional[StableFrequencyEvent]:
        """Add a sample to the window and re-evaluate stability.

        Timers due at or before the sample's timestamp fire first, so a hold
        that completed before this sample arrived is reported even if this
        sample itself is unstable.

        Returns:
            The StableFrequencyEvent that fired while processing, if any
        """
        event = self.poll(sample.timestamp)

        if not math.isfinite(sample.value):
            logger.debug("Ignoring non-finite frequency sample, hold timer cancelled")
            self._cancel_pending()
            self._steady = False
            self._latched = False
            return event

        window_start = sample.timestamp - self._required_stable_duration
        while self._window and self._window[0].timestamp < window_start:
            self._window.popleft()
        if not self._window:
            # Gap longer than the hold: whatever follows is a new segment
            self._latched = False
        self._window.append(sample)

        frequencies = [s.value for s in self._window]
        spread = max(frequencies) - min(frequencies)
        self._steady = spread <= self._stability_threshold

        if self._steady:
            if self._pending is None and not self._latched:
                self._pending = self._timers.call_later(
                    self._required_stable_duration,
                    lambda: self._on_hold_complete(sample.value),
                    now=sample.timestamp,
                )
                logger.debug(
                    f"Frequency steady at {sample.value:.2f}Hz, "
                    f"hold timer armed for {self._required_stable_duration:.2f}s"
                )
        else:
            if self._pending is not None:
                logger.debug(
                    f"Frequency unstable: {sample.value:.2f}Hz "
                    f"(variation {spread:.2f}Hz), hold timer cancelled"
                )
            self._cancel_pending()
            self._latched = False

        return event

    def poll(self, now: float) -> Optional[StableFrequencyEvent]:
        """Fire a hold timer that has come due without a new sample."""
        self._timers.run_due(now)
        event, self._fired = self._fired, None
        return event

    def release(self) -> None:
        """End the current steady segment without cancelling an armed hold.

        Used when the input goes quiet between plucks of the same note.
        """
        self._latched = False

    def reset(self) -> None:
        """Clear the window and cancel any armed hold."""
        self._cancel_pending()
        self._window.clear()
        self._latched = False
        self._steady = False
        self._fired = None

    def _cancel_pending(self) -> None:
        if self._pending is not None:
            self._pending.cancel()
            self._pending = None

    def _on_hold_complete(self, frequency: float) -> None:
        deadline = self._pending.deadline if self._pending else 0.0
        self._pending = None
        self._latched = True
        event = StableFrequencyEvent(frequency=frequency, timestamp=deadline)
        self._fired = event
        logger.debug(
            f"Frequency stable: {frequency:.2f}Hz "
            f"after {self._required_stable_duration:.2f}s"
        )
