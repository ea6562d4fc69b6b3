#!/usr/bin/env python3

import argparse
import sys

from pitchfall.core.config import ConfigManager
from pitchfall.core.factory import ComponentFactory
from pitchfall.game.song import (
    BUNDLED_SONGS_DIR,
    SongFormatError,
    list_songs,
    load_song,
    song_display_name,
)
from pitchfall.logger import get_logger
from pitchfall.logging_config import setup_logging


def parse_arguments(argv=None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Pitchfall - play along with falling notes on a real instrument"
    )

    # Game settings
    parser.add_argument(
        "--instrument",
        type=str,
        default="ukulele",
        choices=["ukulele", "piano", "saxophone"],
        help="Instrument to play (default: ukulele).",
    )
    parser.add_argument(
        "--song",
        type=str,
        help="Song file, or the name of a song in the songs directory.",
    )
    parser.add_argument(
        "--songs-dir",
        type=str,
        default=str(BUNDLED_SONGS_DIR),
        help="Directory to look for songs in (default: bundled songs).",
    )
    parser.add_argument(
        "--list-songs", action="store_true", help="List available songs and exit."
    )

    # Audio settings
    parser.add_argument("--device", type=int, help="Audio input device ID.")
    parser.add_argument(
        "--wav", type=str, help="Replay a WAV file instead of listening live."
    )

    # Calibration
    parser.add_argument(
        "--recalibrate",
        action="store_true",
        help="Ignore the saved calibration and calibrate again.",
    )

    # Debugging
    parser.add_argument(
        "--debug", action="store_true", help="Enable debug logging."
    )

    return parser.parse_args(argv)


def resolve_song_path(song, songs_dir):
    """Find a song by path, file name or display name."""
    for candidate in list_songs(songs_dir):
        if song in (str(candidate), candidate.name, candidate.stem, song_display_name(candidate)):
            return candidate
    return song


def main(argv=None):
    """Main entry point for Pitchfall."""
    args = parse_arguments(argv)

    # Configure logging
    setup_logging(level="DEBUG" if args.debug else "INFO")
    logger = get_logger(__name__)

    if args.list_songs:
        for path in list_songs(args.songs_dir):
            print(f"{song_display_name(path)}  ({path.name})")
        return 0

    song = None
    if args.song:
        try:
            song = load_song(resolve_song_path(args.song, args.songs_dir))
        except (OSError, SongFormatError) as e:
            logger.error(f"Could not load song {args.song}: {e}")
            return 1

    config_manager = ConfigManager()
    factory = ComponentFactory(config_manager)

    if args.recalibrate:
        config_manager.clear_calibration_result()
    saved = config_manager.load_calibration_result()

    instrument = factory.create_instrument(args.instrument, calibration_result=saved)
    calibration = instrument.calibration

    def on_calibrated():
        config_manager.save_calibration_result(calibration.result)

    if instrument.requires_calibration:
        if saved is None or not calibration.is_complete():
            calibration.start_calibration(on_calibrated)
        else:
            calibration.events.on_completed(on_calibrated)

    engine = factory.create_engine(instrument)

    # Imported here so --list-songs works without audio or display libraries
    from pitchfall.audio.pitch_input import LivePitchInput, WavFilePitchInput
    from pitchfall.ui import PygameUI

    audio_config = config_manager.get_config("audio_input")
    if args.wav:
        pitch_input = WavFilePitchInput(
            args.wav, frames_per_buffer=audio_config["frames_per_buffer"]
        )
    else:
        pitch_input = LivePitchInput(
            device_id=args.device,
            sample_rate=audio_config["sample_rate"],
            frames_per_buffer=audio_config["frames_per_buffer"],
            channels=audio_config["channels"],
        )

    gameplay = config_manager.get_config("gameplay")
    instrument_config = config_manager.get_config("instrument")

    try:
        ui = PygameUI(
            width=int(instrument_config["width"]), frame_rate=gameplay["frame_rate"]
        )
        ui.run(engine, pitch_input, song)
    except Exception:
        logger.exception("An unhandled error occurred in the main application.")
        raise
    finally:
        logger.info("Pitchfall is shutting down.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
