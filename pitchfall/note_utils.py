"""Utility functions for working with musical notes and frequencies."""

import re

import numpy as np

from .logger import get_logger

# Get logger for this module
logger = get_logger(__name__)

A4_FREQUENCY = 440.0
A4_MIDI = 69

NOTE_NAMES_SHARPS = ["C", "C#", "D", "D#", "E", "F", "F#", "G", "G#", "A", "A#", "B"]
NOTE_NAMES_FLATS = ["C", "Db", "D", "Eb", "E", "F", "Gb", "G", "Ab", "A", "Bb", "B"]

# Compile regex to extract note name and octave
# This pattern matches:
# - Note name (A-G, case insensitive)
# - Optional accidental (# or b)
# - Octave number, possibly negative
NOTE_PATTERN = re.compile(r"^([A-Ga-g])([#b]?)(-?[0-9]+)$")


def get_note_name(freq: float, use_flats: bool = False) -> str:
    """Convert frequency to note name using Scientific Pitch Notation (SPN).

    Args:
        freq: Frequency in Hz
        use_flats: If True, use flat notes (e.g., 'Bb') instead of sharps (e.g., 'A#')

    Returns:
        Note name with octave in SPN (e.g., 'A4', 'C#4', 'Bb3'), or '---' for
        non-positive frequencies

    Note:
        - Middle C is C4 (261.63 Hz)
        - A4 is 440 Hz
        - Octave numbers change between B and C (e.g., B3 -> C4)
    """
    if freq is None or not np.isfinite(freq) or freq <= 0:
        return "---"

    # Calculate half steps from A4 (A4 is 69 in MIDI)
    half_steps = int(round(12 * np.log2(freq / A4_FREQUENCY)))
    midi_number = A4_MIDI + half_steps

    # SPN octave calculation (C4 is middle C)
    octave = (midi_number // 12) - 1
    note_idx = midi_number % 12

    names = NOTE_NAMES_FLATS if use_flats else NOTE_NAMES_SHARPS
    return f"{names[note_idx]}{octave}"


def midi_to_frequency(midi_number: int) -> float:
    """Equal-tempered frequency of a MIDI note number (A4 = 69 = 440 Hz)."""
    return float(A4_FREQUENCY * 2.0 ** ((midi_number - A4_MIDI) / 12.0))


def note_to_midi(note_name: str) -> int:
    """Convert an SPN note name (e.g., 'C4', 'Eb3', 'F#2') to a MIDI number.

    Raises:
        ValueError: If the note name cannot be parsed
    """
    match = NOTE_PATTERN.match(note_name.strip()) if note_name else None
    if not match:
        raise ValueError(f"Invalid note name: {note_name!r}")

    letter, accidental, octave = match.groups()
    index = NOTE_NAMES_SHARPS.index(letter.upper())
    if accidental == "#":
        index += 1
    elif accidental == "b":
        index -= 1
    return (int(octave) + 1) * 12 + index


def note_to_frequency(note_name: str) -> float:
    """Convert an SPN note name to its equal-tempered frequency in Hz."""
    return midi_to_frequency(note_to_midi(note_name))
