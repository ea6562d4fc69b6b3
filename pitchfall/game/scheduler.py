"""Frame-driven note scheduling: spawn, fall, freeze at the deck, miss off-screen."""

from enum import Enum
from typing import List, Optional

from ..core.events import GameEvents, GameEventType
from ..core.interfaces import IInstrument
from ..logger import get_logger
from ..note_types import ActiveNote, GameplaySession, MissEvent, NoteHit, NoteState
from .song import Song

logger = get_logger(__name__)


class SchedulerState(Enum):
    IDLE = "idle"
    PLAYING = "playing"
    FINISHED = "finished"


class NoteScheduler:
    """Owns the active notes of one playthrough and advances them per tick.

    Spawning is distance-based: the next group appears once the least-advanced
    note on screen has fallen past ``spawn_distance_threshold``. When a note's
    leading edge passes the deck the whole field freezes until the judge
    reports a hit.
    """

    def __init__(
        self,
        instrument: IInstrument,
        fall_speed: float = 2.0,
        play_area_extent: float = 600.0,
        spawn_distance_fraction: float = 0.25,
        events: Optional[GameEvents] = None,
    ):
        """Initialize the scheduler.

        Args:
            instrument: Supplies the deck position and note layout coordinates
            fall_speed: Units each note falls per tick
            play_area_extent: Offset past which an unresolved note is missed
            spawn_distance_fraction: Fraction of the play area the newest note
                must fall before the next group spawns
            events: Optional shared GameEvents emitter
        """
        self.instrument = instrument
        self.fall_speed = fall_speed
        self.play_area_extent = play_area_extent
        self.spawn_distance_fraction = spawn_distance_fraction
        self.events = events or GameEvents()

        self.session = GameplaySession()
        self.feedback = ""
        self._state = SchedulerState.IDLE
        self._song: Optional[Song] = None
        self._active: List[ActiveNote] = []
        self._tick_count = 0
        self._shift_remaining = 0.0

    @property
    def state(self) -> SchedulerState:
        return self._state

    @property
    def song(self) -> Optional[Song]:
        return self._song

    @property
    def active_notes(self) -> List[ActiveNote]:
        return list(self._active)

    @property
    def tick_count(self) -> int:
        return self._tick_count

    @property
    def spawn_distance_threshold(self) -> float:
        return self.play_area_extent * self.spawn_distance_fraction

    @property
    def is_playing(self) -> bool:
        return self._state is SchedulerState.PLAYING

    @property
    def is_paused(self) -> bool:
        return self.session.is_paused

    @property
    def is_shifting(self) -> bool:
        return self.session.is_shifting

    def load(self, song: Song) -> bool:
        """Store a song for the next playthrough.

        Returns:
            False (and changes nothing) if a song is currently playing
        """
        if self._state is SchedulerState.PLAYING:
            logger.warning("Cannot load a song while one is playing")
            return False
        self._song = song
        self.session.cursor_index = 0
        self.feedback = f"Song loaded: {song.title}"
        logger.info(f"Song loaded: {song.title} ({len(song)} note groups)")
        return True

    def start(self) -> bool:
        """Begin playing the loaded song.

        Returns:
            False if there is nothing to play or a song is already playing
        """
        if self._song is None or self._song.is_empty:
            logger.debug("Start ignored: no song loaded or song is empty")
            return False
        if self._state is SchedulerState.PLAYING:
            logger.debug("Start ignored: already playing")
            return False

        self.cancel_shift()
        self._active = []
        self._tick_count = 0
        self.session = GameplaySession(
            is_playing=True,
            deck_reference_position=self.instrument.deck_reference_position(),
        )
        self._state = SchedulerState.PLAYING
        self.feedback = f"Playing: {self._song.title}"
        logger.info(
            f"Playing: {self._song.title} "
            f"(deck at {self.session.deck_reference_position:.1f})"
        )
        return True

    def stop(self) -> None:
        """Abandon the current playthrough."""
        if self._state is not SchedulerState.PLAYING:
            return
        self.cancel_shift()
        self._active = []
        self.session.is_playing = False
        self.session.is_paused = False
        self._state = SchedulerState.IDLE
        logger.info("Playthrough stopped")

    def tick(self) -> None:
        """Advance the playthrough by one frame."""
        if self._state is not SchedulerState.PLAYING:
            return
        self._tick_count += 1

        if self.session.is_paused:
            return

        if self.session.is_shifting:
            self._advance_shift()
        else:
            self._maybe_spawn()
            for note in self._active:
                note.current_offset += self.fall_speed

        self._check_positions()
        self._active = [n for n in self._active if not n.is_resolved]
        if self.session.is_paused and not any(
            n.state is NoteState.AT_DECK for n in self._active
        ):
            # The note holding the freeze fell off in the same tick
            self.resume()
        self._check_finished()

    # Judge-facing operations

    def resolve_hit(self, note: ActiveNote, hit: NoteHit) -> None:
        """Remove a note the judge matched."""
        if note.is_resolved:
            return
        note.state = NoteState.RESOLVED
        self._active = [n for n in self._active if n is not note]
        self.feedback = "Correct!"
        logger.info(f"Hit position {note.position_id} at offset {note.current_offset:.1f}")
        self.events.emit(GameEventType.HIT, note, hit)
        self._check_finished()

    def resume(self) -> None:
        """Unfreeze the field after a hit."""
        if self.session.is_paused:
            self.session.is_paused = False
            logger.debug("Resumed")
            self.events.emit(GameEventType.PAUSE_CHANGED, False)

    def start_shift(self, distance: float) -> bool:
        """Begin a catch-up shift of ``distance`` units at double fall speed.

        Returns:
            False if a shift is already running or there is nothing to shift
        """
        if self.session.is_shifting or distance <= 0:
            return False
        if self._state is not SchedulerState.PLAYING:
            return False
        self.session.is_shifting = True
        self._shift_remaining = distance
        logger.debug(f"Catch-up shift of {distance:.1f} started")
        return True

    def cancel_shift(self) -> None:
        self.session.is_shifting = False
        self._shift_remaining = 0.0

    # Internals

    def _maybe_spawn(self) -> None:
        if self.session.cursor_index >= len(self._song):
            return
        if not self._active:
            self._spawn_next_group()
            return
        topmost = min(self._active, key=lambda n: n.current_offset)
        if topmost.current_offset > self.spawn_distance_threshold:
            self._spawn_next_group()

    def _spawn_next_group(self) -> None:
        group_index = self.session.cursor_index
        for position_id in self._song.groups[group_index]:
            note = ActiveNote(
                position_id=position_id,
                spawn_time=self._tick_count,
                group_index=group_index,
                position=self.instrument.position_of(position_id),
            )
            self._active.append(note)
            self.events.emit(GameEventType.SPAWN, note)
        self.session.cursor_index += 1
        logger.debug(
            f"Spawned group {group_index} {self._song.groups[group_index]} "
            f"on tick {self._tick_count}"
        )

    def _advance_shift(self) -> None:
        step = min(self.fall_speed * 2, self._shift_remaining)
        for note in self._active:
            note.current_offset += step
        self._shift_remaining -= step
        if self._shift_remaining <= 0:
            self.cancel_shift()
            logger.debug("Catch-up shift finished")

    def _check_positions(self) -> None:
        deck = self.session.deck_reference_position
        for note in self._active:
            if note.is_resolved:
                continue
            if note.state is NoteState.FALLING and note.current_offset > deck:
                note.state = NoteState.AT_DECK
                self.events.emit(GameEventType.AT_DECK, note)
                if not self.session.is_paused:
                    self.session.is_paused = True
                    logger.debug(f"Leading note {note} reached deck. Freezing.")
                    self.events.emit(GameEventType.PAUSE_CHANGED, True)
            if note.current_offset > self.play_area_extent:
                self._resolve_miss(note)

    def _resolve_miss(self, note: ActiveNote) -> None:
        note.state = NoteState.RESOLVED
        self.feedback = f"Missed note: {note.position_id}"
        logger.info(f"Missed position {note.position_id}")
        self.events.emit(
            GameEventType.MISS, MissEvent(note.position_id, note.group_index)
        )

    def _check_finished(self) -> None:
        if self._state is not SchedulerState.PLAYING:
            return
        if self._active or self.session.cursor_index < len(self._song):
            return
        self.cancel_shift()
        self.session.is_playing = False
        self.session.is_paused = False
        self._state = SchedulerState.FINISHED
        self.feedback = "Finished!"
        logger.info(f"Finished: {self._song.title}")
        self.events.emit(GameEventType.FINISHED)
