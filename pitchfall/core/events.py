"""Event system for Pitchfall components."""

from typing import Dict, List, Callable, Any
from enum import Enum, auto

from ..logger import get_logger

logger = get_logger(__name__)


class CalibrationEventType(Enum):
    """Event types for calibration."""

    PROGRESS = auto()
    COMPLETED = auto()


class GameEventType(Enum):
    """Event types for gameplay."""

    SPAWN = auto()
    AT_DECK = auto()
    HIT = auto()
    MISS = auto()
    FINISHED = auto()
    PAUSE_CHANGED = auto()


class EventEmitter:
    """Event emitter for Pitchfall components."""

    def __init__(self):
        """Initialize the event emitter."""
        self._listeners: Dict[Any, List[Callable]] = {}

    def on(self, event_type: Any, callback: Callable) -> None:
        """Register a callback for an event type.

        Args:
            event_type: Event type to listen for
            callback: Function to call when the event occurs
        """
        if event_type not in self._listeners:
            self._listeners[event_type] = []

        if callback not in self._listeners[event_type]:
            self._listeners[event_type].append(callback)
            logger.debug(f"Added listener for event {event_type}")

    def emit(self, event_type: Any, *args, **kwargs) -> None:
        """Emit an event.

        Listener errors are logged and do not reach the emitter's caller.

        Args:
            event_type: Event type to emit
            *args: Positional arguments to pass to listeners
            **kwargs: Keyword arguments to pass to listeners
        """
        if event_type not in self._listeners:
            return

        for callback in list(self._listeners[event_type]):
            try:
                callback(*args, **kwargs)
            except Exception as e:
                logger.error(f"Error in event listener for {event_type}: {e}")

    def clear(self) -> None:
        """Remove all event listeners."""
        self._listeners = {}
        logger.debug("Cleared all event listeners")


class CalibrationEvents:
    """Event emitter specifically for calibration events."""

    def __init__(self):
        self._emitter = EventEmitter()

    def on_progress(self, callback: Callable) -> None:
        """Register ``callback(progress: CalibrationProgress)``."""
        self._emitter.on(CalibrationEventType.PROGRESS, callback)

    def on_completed(self, callback: Callable) -> None:
        """Register ``callback()`` for successful calibration runs."""
        self._emitter.on(CalibrationEventType.COMPLETED, callback)

    def emit_progress(self, progress) -> None:
        self._emitter.emit(CalibrationEventType.PROGRESS, progress)

    def emit_completed(self) -> None:
        self._emitter.emit(CalibrationEventType.COMPLETED)

    def clear(self) -> None:
        self._emitter.clear()


class GameEvents:
    """Event emitter specifically for gameplay events."""

    def __init__(self):
        self._emitter = EventEmitter()

    def on_spawn(self, callback: Callable) -> None:
        """Register ``callback(note: ActiveNote)``."""
        self._emitter.on(GameEventType.SPAWN, callback)

    def on_at_deck(self, callback: Callable) -> None:
        """Register ``callback(note: ActiveNote)``."""
        self._emitter.on(GameEventType.AT_DECK, callback)

    def on_hit(self, callback: Callable) -> None:
        """Register ``callback(note: ActiveNote, hit: NoteHit)``."""
        self._emitter.on(GameEventType.HIT, callback)

    def on_miss(self, callback: Callable) -> None:
        """Register ``callback(miss: MissEvent)``."""
        self._emitter.on(GameEventType.MISS, callback)

    def on_finished(self, callback: Callable) -> None:
        """Register ``callback()``."""
        self._emitter.on(GameEventType.FINISHED, callback)

    def on_pause_changed(self, callback: Callable) -> None:
        """Register ``callback(is_paused: bool)``."""
        self._emitter.on(GameEventType.PAUSE_CHANGED, callback)

    def emit(self, event_type: GameEventType, *args) -> None:
        self._emitter.emit(event_type, *args)

    def clear(self) -> None:
        self._emitter.clear()
