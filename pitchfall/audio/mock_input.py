from typing import Callable, Optional

from ..core.interfaces import IPitchInput


class MockPitchInput(IPitchInput):
    """A pitch input for tests and demos. Readings are pushed in by hand."""

    def __init__(self):
        self.callback: Optional[Callable[[float, float, float], None]] = None
        self._running = False

    def start(self, callback):
        self.callback = callback
        self._running = True
        return True

    def stop(self):
        self._running = False

    def is_running(self):
        return self._running

    def emit(self, frequency: float, amplitude: float, timestamp: float) -> None:
        if self._running and self.callback:
            self.callback(frequency, amplitude, timestamp)
