"""Type definitions for the Pitchfall project."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, List, Optional


@dataclass(frozen=True)
class FrequencySample:
    """A single pitch reading from the audio collaborator."""

    value: float  # Frequency in Hz
    timestamp: float  # Monotonic time in seconds


@dataclass(frozen=True)
class StableFrequencyEvent:
    """Emitted when a pitch has been held steady for the full hold duration."""

    frequency: float  # Value of the sample that armed the hold timer
    timestamp: float  # When the hold timer fired


class CalibrationState(Enum):
    """States of the two-anchor calibration protocol."""

    COLLECTING_LOW = "collecting_low"
    COLLECTING_HIGH = "collecting_high"
    COMPLETED = "completed"
    ERROR = "error"


class CalibrationIssue(Enum):
    """Recoverable problems surfaced to the player through hint text."""

    UNSTABLE_INPUT = "unstable_input"
    INCONSISTENT_SAMPLES = "inconsistent_samples"
    INSUFFICIENT_FREQUENCY_SPAN = "insufficient_frequency_span"
    INVALID_CALIBRATION_INPUT = "invalid_calibration_input"


@dataclass(frozen=True)
class CalibrationProgress:
    """Snapshot of calibration progress for the rendering layer."""

    state: CalibrationState
    fraction: float  # 0..1
    hint: str
    issue: Optional[CalibrationIssue] = None


@dataclass(frozen=True)
class CalibrationResult:
    """The two measured anchor means; enough to rebuild a frequency table."""

    low_frequency: float
    high_frequency: float

    def to_dict(self) -> dict:
        return {
            "low_frequency": self.low_frequency,
            "high_frequency": self.high_frequency,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "CalibrationResult":
        return cls(
            low_frequency=float(data["low_frequency"]),
            high_frequency=float(data["high_frequency"]),
        )


class NoteState(Enum):
    """Lifecycle of a note on the play area."""

    FALLING = "falling"
    AT_DECK = "at_deck"
    RESOLVED = "resolved"


@dataclass
class ActiveNote:
    """A note currently on the play area."""

    position_id: int  # Fret, key or note identifier
    spawn_time: int  # Scheduler tick on which the note was spawned
    group_index: int  # Index of the note group in the song
    current_offset: float = 0.0  # Distance fallen by the leading edge
    state: NoteState = NoteState.FALLING
    position: Any = None  # Layout coordinate from the instrument, passed through

    @property
    def is_resolved(self) -> bool:
        return self.state is NoteState.RESOLVED

    def __str__(self):
        return f"Note({self.position_id}@{self.current_offset:.1f})"


@dataclass
class GameplaySession:
    """Flags shared by the scheduler and the judge."""

    is_playing: bool = False
    is_paused: bool = False
    is_shifting: bool = False
    cursor_index: int = 0
    deck_reference_position: float = 0.0


@dataclass(frozen=True)
class NoteHit:
    """One note matched by a detected frequency."""

    position_id: int
    expected_frequency: float
    tolerance: float
    distance_to_deck: float  # Positive when the note was still short of the deck


@dataclass(frozen=True)
class HitEvent:
    """Result of judging one detected frequency reading."""

    detected_frequency: float
    hits: List[NoteHit] = field(default_factory=list)


@dataclass(frozen=True)
class MissEvent:
    """A note that fell off the play area unresolved."""

    position_id: int
    group_index: int
