"""Song definitions: ordered groups of positions to play together."""

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Tuple, Union

from ..logger import get_logger

logger = get_logger(__name__)

SONGLIST_FILE = "songlist.json"
BUNDLED_SONGS_DIR = Path(__file__).resolve().parent.parent / "songs"


class SongFormatError(ValueError):
    """Raised when a song definition cannot be parsed."""


@dataclass(frozen=True)
class Song:
    """An immutable song: each group is one or more positions sounded together."""

    title: str
    groups: Tuple[Tuple[int, ...], ...]

    def __len__(self) -> int:
        return len(self.groups)

    @property
    def is_empty(self) -> bool:
        return not self.groups

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Song":
        """Build a song from ``{"title": ..., "data": [id | [id, ...], ...]}``.

        Raises:
            SongFormatError: If ``data`` is missing or a group is empty or non-integer
        """
        if not isinstance(data, dict) or not isinstance(data.get("data"), list):
            raise SongFormatError("Song must be an object with a 'data' list")

        groups = []
        for index, entry in enumerate(data["data"]):
            groups.append(_parse_group(entry, index))

        title = str(data.get("title") or "Unknown")
        return cls(title=title, groups=tuple(groups))


def _parse_group(entry: Union[int, List[int]], index: int) -> Tuple[int, ...]:
    members = entry if isinstance(entry, list) else [entry]
    if not members:
        raise SongFormatError(f"Note group {index} is empty")

    group = []
    for member in members:
        # bool is an int subclass; a stray true/false is a typo, not a fret
        if isinstance(member, bool) or not isinstance(member, (int, str)):
            raise SongFormatError(f"Note group {index} has invalid id {member!r}")
        try:
            group.append(int(member))
        except ValueError as e:
            raise SongFormatError(
                f"Note group {index} has invalid id {member!r}"
            ) from e
    return tuple(group)


def load_song(path: Union[str, Path]) -> Song:
    """Load a song JSON file.

    Raises:
        SongFormatError: If the file is not valid JSON or not a valid song
    """
    path = Path(path)
    try:
        with open(path, "r") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise SongFormatError(f"{path.name} is not valid JSON: {e}") from e

    song = Song.from_dict(data)
    logger.info(f"Song loaded: {song.title} ({len(song)} note groups) from {path}")
    return song


def list_songs(directory: Union[str, Path] = BUNDLED_SONGS_DIR) -> List[Path]:
    """List song files in a directory.

    Uses ``songlist.json`` (a JSON list of file names) when present, otherwise
    every ``*.json`` file in the directory. An unreadable songlist is logged
    and ignored.
    """
    directory = Path(directory)
    songlist = directory / SONGLIST_FILE
    if songlist.exists():
        try:
            with open(songlist, "r") as f:
                names = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            names = None
            logger.warning(f"Could not read {songlist}: {e}")
        if not isinstance(names, list):
            logger.warning(f"Ignoring {SONGLIST_FILE}, expected a list of file names")
            return _glob_songs(directory)

        songs = []
        for name in names:
            if not isinstance(name, str):
                logger.warning(f"Skipping non-string entry in {SONGLIST_FILE}: {name!r}")
                continue
            song_path = directory / name
            if song_path.exists():
                songs.append(song_path)
            else:
                logger.warning(f"Song listed in {SONGLIST_FILE} not found: {name}")
        return songs

    return _glob_songs(directory)


def _glob_songs(directory: Path) -> List[Path]:
    return sorted(p for p in directory.glob("*.json") if p.name != SONGLIST_FILE)


def song_display_name(path: Union[str, Path]) -> str:
    """'twinkle_twinkle.json' -> 'twinkle twinkle'."""
    return Path(path).stem.replace("_", " ")
