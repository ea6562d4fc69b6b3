"""Pitch judging for notes near the deck."""

from typing import List, Optional

from ..core.interfaces import IInstrument
from ..logger import get_logger
from ..note_types import HitEvent, NoteHit
from .scheduler import NoteScheduler

logger = get_logger(__name__)


class MatchJudge:
    """Compares a detected frequency with every note close enough to the deck.

    A note is judgable while ``-hit_threshold < offset - deck <= active_range_limit``,
    which lets a player sound a note slightly before it arrives. Each note is
    judged independently against the same reading, so chords can be hit in
    one tick.
    """

    def __init__(
        self,
        scheduler: NoteScheduler,
        instrument: IInstrument,
        hit_threshold: float = 50.0,
        active_range_limit: float = 100.0,
    ):
        self.scheduler = scheduler
        self.instrument = instrument
        self.hit_threshold = hit_threshold
        self.active_range_limit = active_range_limit

    def judge(self, detected_frequency: float) -> Optional[HitEvent]:
        """Judge one detected frequency against the active notes.

        Returns:
            HitEvent listing every note hit by this reading, or None if nothing
            was hit (including when no note is in range)
        """
        if not self.scheduler.is_playing:
            return None

        deck = self.scheduler.session.deck_reference_position
        hits: List[NoteHit] = []

        for note in self.scheduler.active_notes:
            if note.is_resolved:
                continue
            delta = note.current_offset - deck
            # Lower edge is open: a note exactly hit_threshold short of the
            # deck is not judged yet.
            if not -self.hit_threshold < delta <= self.active_range_limit:
                continue

            expected = self.instrument.expected_frequency(note.position_id)
            tolerance = self.instrument.tolerance_for(note.position_id)

            logger.debug(
                f"Match attempt - position {note.position_id}: "
                f"detected {detected_frequency:.2f}Hz, "
                f"expected {f'{expected:.2f}Hz' if expected is not None else 'N/A'}, "
                f"tolerance {tolerance:.2f}Hz"
            )

            if expected is None or not abs(detected_frequency - expected) < tolerance:
                continue

            hit = NoteHit(
                position_id=note.position_id,
                expected_frequency=expected,
                tolerance=tolerance,
                distance_to_deck=-delta,
            )
            hits.append(hit)
            self.scheduler.resolve_hit(note, hit)
            self.scheduler.resume()
            if delta < 0:
                # Early hit: close the gap it leaves instead of snapping
                self.scheduler.start_shift(-delta)

        if not hits:
            return None
        return HitEvent(detected_frequency=detected_frequency, hits=hits)
