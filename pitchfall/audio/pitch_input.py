"""Pitch inputs: turn captured audio into (frequency, amplitude, timestamp) readings."""

from __future__ import annotations
import threading
import time
from typing import Callable, ClassVar, Optional

import aubio
import numpy as np
import sounddevice as sd
import soundfile as sf

from ..core.interfaces import IPitchInput
from ..logger import get_logger

logger = get_logger(__name__)

PitchCallback = Callable[[float, float, float], None]


class PitchTracker:
    """aubio YIN pitch tracking over fixed-size hops of mono audio."""

    MIN_CONFIDENCE: ClassVar[float] = 0.5
    MIN_FREQUENCY: ClassVar[float] = 30.0  # Hz - below this is probably noise
    MAX_FREQUENCY: ClassVar[float] = 2000.0  # Hz

    def __init__(self, sample_rate: int = 44100, hop_size: int = 1024):
        self.sample_rate = sample_rate
        self.hop_size = hop_size
        self._pitch_detector = aubio.pitch("yin", hop_size * 2, hop_size, sample_rate)
        self._pitch_detector.set_unit("Hz")
        self._pitch_detector.set_silence(-60)

    def process(self, audio_data: np.ndarray) -> tuple:
        """Return ``(frequency, amplitude)`` for one hop; frequency is 0 if unvoiced."""
        if audio_data.dtype != np.float32:
            audio_data = audio_data.astype(np.float32)

        # aubio requires exactly hop_size samples
        if len(audio_data) > self.hop_size:
            audio_data = audio_data[: self.hop_size]
        elif len(audio_data) < self.hop_size:
            padding = np.zeros(self.hop_size - len(audio_data), dtype=np.float32)
            audio_data = np.concatenate((audio_data, padding))

        amplitude = float(np.sqrt(np.mean(audio_data**2)))
        pitch = float(self._pitch_detector(audio_data)[0])
        confidence = float(self._pitch_detector.get_confidence())

        if (
            not np.isfinite(pitch)
            or confidence < self.MIN_CONFIDENCE
            or pitch < self.MIN_FREQUENCY
            or pitch > self.MAX_FREQUENCY
        ):
            return 0.0, amplitude
        return pitch, amplitude


class LivePitchInput(IPitchInput):
    """Pitch readings from a live input device using sounddevice."""

    def __init__(
        self,
        device_id: Optional[int] = None,
        sample_rate: int = 44100,
        frames_per_buffer: int = 1024,
        channels: int = 1,
    ):
        self._device_id = device_id
        self._sample_rate = sample_rate
        self._frames_per_buffer = frames_per_buffer
        self._channels = channels
        self._tracker = PitchTracker(sample_rate, frames_per_buffer)
        self._stream: Optional[sd.InputStream] = None
        self._callback: Optional[PitchCallback] = None
        self._running = False

    def is_running(self) -> bool:
        return self._running

    def start(self, callback: PitchCallback) -> bool:
        """Open the input stream and deliver readings to ``callback``.

        Returns:
            True if the stream started, False otherwise
        """
        if self._running:
            logger.warning("Pitch input already running")
            return True

        self._callback = callback
        try:
            self._stream = sd.InputStream(
                device=self._device_id,
                channels=self._channels,
                samplerate=self._sample_rate,
                blocksize=self._frames_per_buffer,
                callback=self._audio_callback,
                dtype="float32",
            )
            self._stream.start()
        except (sd.PortAudioError, ValueError) as e:
            logger.error(f"Could not start audio input: {e}")
            self._stream = None
            return False

        self._running = True
        logger.info(
            f"Audio input started: device={self._device_id}, "
            f"rate={self._sample_rate}Hz, buffer={self._frames_per_buffer}"
        )
        return True

    def stop(self) -> None:
        if not self._running:
            return
        if self._stream:
            self._stream.stop()
            self._stream.close()
            self._stream = None
        self._running = False
        logger.info("Audio input stopped")

    def _audio_callback(
        self, indata: np.ndarray, _frames: int, _time_info, status
    ) -> None:
        """Runs on the audio thread; keep it short."""
        if status:
            logger.warning(f"Audio callback status: {status}")
        if self._callback:
            # Extract mono audio data (take first channel if multi-channel)
            audio_data = indata[:, 0] if indata.ndim > 1 else indata
            frequency, amplitude = self._tracker.process(audio_data)
            self._callback(frequency, amplitude, time.monotonic())


class WavFilePitchInput(IPitchInput):
    """Pitch readings from a WAV file, replayed at real-time speed."""

    def __init__(self, file_path: str, frames_per_buffer: int = 1024, loop: bool = False):
        self._file_path = file_path
        self._frames_per_buffer = frames_per_buffer
        self._loop = loop
        self._callback: Optional[PitchCallback] = None
        self._running = False
        self._thread: Optional[threading.Thread] = None

        with sf.SoundFile(self._file_path) as f:
            self._sample_rate = f.samplerate
        self._tracker = PitchTracker(self._sample_rate, frames_per_buffer)

    @property
    def sample_rate(self) -> int:
        return self._sample_rate

    def is_running(self) -> bool:
        return self._running

    def start(self, callback: PitchCallback) -> bool:
        if self._running:
            return True

        self._callback = callback
        self._running = True
        self._thread = threading.Thread(target=self._stream_data, daemon=True)
        self._thread.start()
        logger.info(f"Replaying {self._file_path} at {self._sample_rate}Hz")
        return True

    def stop(self) -> None:
        self._running = False
        if self._thread and self._thread is not threading.current_thread():
            self._thread.join()
        self._thread = None

    def _stream_data(self) -> None:
        try:
            while self._running:
                with sf.SoundFile(self._file_path) as f:
                    while self._running:
                        data = f.read(
                            self._frames_per_buffer, dtype="float32", always_2d=True
                        )
                        if len(data) == 0:
                            break

                        frequency, amplitude = self._tracker.process(data[:, 0])
                        if self._callback:
                            self._callback(frequency, amplitude, time.monotonic())

                        # Simulate real-time playback speed
                        time.sleep(self._frames_per_buffer / self._sample_rate)

                if not self._loop:
                    break
        except (OSError, RuntimeError) as e:
            logger.error(f"Error streaming WAV file: {e}")
        finally:
            self._running = False
            logger.info(f"Finished replaying {self._file_path}")
