"""Pitchfall: calibrate an instrument by ear, then play falling notes by pitch."""

__version__ = "0.1.0"
