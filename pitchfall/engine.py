"""Frame-driven glue between the pitch input, calibration and gameplay.

Readings arrive through ``push_pitch`` at whatever rate the audio side
produces them. Calibration consumes every voiced reading immediately; gameplay
only judges the most recent one, once per ``tick``.
"""

from typing import List, Optional

import numpy as np

from .core.events import GameEvents
from .game.judge import MatchJudge
from .game.scheduler import NoteScheduler
from .game.song import Song
from .instruments.base import Instrument
from .logger import get_logger
from .note_types import FrequencySample, HitEvent

logger = get_logger(__name__)


class NoiseFloorMeter:
    """Measures ambient amplitude and derives a voicing threshold from it."""

    def __init__(self, measure_seconds: float = 1.5, multiplier: float = 1.5):
        self.measure_seconds = measure_seconds
        self.multiplier = multiplier
        self._amplitudes: List[float] = []
        self._started_at: Optional[float] = None
        self._threshold: Optional[float] = None

    @property
    def threshold(self) -> Optional[float]:
        return self._threshold

    @property
    def is_measured(self) -> bool:
        return self._threshold is not None

    def add(self, amplitude: float, timestamp: float) -> Optional[float]:
        """Add one amplitude reading.

        Returns:
            The voicing threshold once the measurement period is over, else None
        """
        if self._threshold is not None:
            return self._threshold

        if self._started_at is None:
            self._started_at = timestamp
            logger.info(f"Measuring background noise for {self.measure_seconds:.1f}s")
        self._amplitudes.append(amplitude)

        if timestamp - self._started_at >= self.measure_seconds:
            noise_level = float(np.mean(self._amplitudes))
            self._threshold = noise_level * self.multiplier
            logger.info(
                f"Noise level: {noise_level:.5f}, "
                f"voicing threshold set to {self._threshold:.5f}"
            )
        return self._threshold

    def reset(self) -> None:
        self._amplitudes = []
        self._started_at = None
        self._threshold = None


class PitchEngine:
    """Owns an instrument, a scheduler and a judge and steps them per frame."""

    def __init__(
        self,
        instrument: Instrument,
        scheduler: Optional[NoteScheduler] = None,
        judge: Optional[MatchJudge] = None,
        voicing_threshold: Optional[float] = None,
        noise_meter: Optional[NoiseFloorMeter] = None,
        events: Optional[GameEvents] = None,
    ):
        """Initialize the engine.

        Args:
            instrument: The instrument being played
            scheduler: Optional pre-built scheduler for the instrument
            judge: Optional pre-built judge for the scheduler
            voicing_threshold: Fixed amplitude threshold; when None the
                threshold is measured with ``noise_meter`` first
            noise_meter: Meter used when no fixed threshold is given
            events: Optional shared GameEvents emitter
        """
        self.instrument = instrument
        self.scheduler = scheduler or NoteScheduler(instrument, events=events)
        self.events = self.scheduler.events
        self.judge = judge or MatchJudge(self.scheduler, instrument)

        self._voicing_threshold = voicing_threshold
        self.noise_meter = noise_meter
        if voicing_threshold is None and noise_meter is None:
            self.noise_meter = NoiseFloorMeter()

        self._latest: Optional[FrequencySample] = None
        self._pending_song: Optional[Song] = None

    @property
    def calibration(self):
        return self.instrument.calibration

    @property
    def voicing_threshold(self) -> Optional[float]:
        if self._voicing_threshold is not None:
            return self._voicing_threshold
        return self.noise_meter.threshold

    @property
    def latest_reading(self) -> Optional[FrequencySample]:
        return self._latest

    def push_pitch(self, frequency: float, amplitude: float, timestamp: float) -> None:
        """Accept one reading from the pitch input."""
        threshold = self._voicing_threshold
        if threshold is None:
            threshold = self.noise_meter.add(amplitude, timestamp)
            if threshold is None:
                return

        voiced = np.isfinite(frequency) and frequency > 0 and amplitude > threshold
        if not voiced:
            self._latest = None
            if not self.instrument.is_ready():
                self.calibration.note_quiet_input()
            return

        sample = FrequencySample(value=frequency, timestamp=timestamp)
        if not self.instrument.is_ready():
            self.calibration.handle_frequency(sample)
            return
        self._latest = sample

    def tick(self, now: float) -> Optional[HitEvent]:
        """Advance one frame.

        Returns:
            The HitEvent produced by judging the latest reading, if any
        """
        self.calibration.poll(now)

        if self._pending_song is not None and self.instrument.is_ready():
            song, self._pending_song = self._pending_song, None
            self._start(song)

        result = None
        reading, self._latest = self._latest, None
        if reading is not None and self.scheduler.is_playing:
            result = self.judge.judge(reading.value)

        self.scheduler.tick()
        return result

    def start_song(self, song: Song) -> bool:
        """Play a song, waiting for calibration to finish if necessary.

        Returns:
            True if the song started now
        """
        if not self.instrument.is_ready():
            logger.info(f"Song '{song.title}' will start once calibration completes")
            self._pending_song = song
            return False
        return self._start(song)

    def stop(self) -> None:
        self._pending_song = None
        self._latest = None
        self.scheduler.stop()

    def recalibrate(self) -> None:
        """Abandon the current playthrough and calibrate again."""
        self.stop()
        self.calibration.reset()

    def _start(self, song: Song) -> bool:
        if not self.scheduler.load(song):
            return False
        return self.scheduler.start()
