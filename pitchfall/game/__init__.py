"""Gameplay: songs, note scheduling and pitch judging."""

from .judge import MatchJudge
from .scheduler import NoteScheduler, SchedulerState
from .song import Song, SongFormatError, list_songs, load_song

__all__ = [
    "MatchJudge",
    "NoteScheduler",
    "SchedulerState",
    "Song",
    "SongFormatError",
    "list_songs",
    "load_song",
]
