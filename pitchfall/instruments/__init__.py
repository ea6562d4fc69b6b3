"""Playable instruments."""

from .base import Instrument
from .piano import Piano
from .saxophone import Saxophone
from .ukulele import Ukulele

__all__ = ["Instrument", "Piano", "Saxophone", "Ukulele"]
