"""Centralized logging configuration for Pitchfall.

Every module logs through ``pitchfall.logger.get_logger(__name__)``; this module
decides where those records go and how loud each part of the package is.
"""

import logging
import sys
from typing import Optional

# Log levels for different modules
MODULE_LOG_LEVELS = {
    # Core modules
    "pitchfall": logging.INFO,
    "pitchfall.main": logging.INFO,
    "pitchfall.engine": logging.INFO,
    # Calibration runs are short; keep transitions visible
    "pitchfall.calibration": logging.INFO,
    "pitchfall.detection": logging.INFO,  # Set to DEBUG for per-sample spreads
    # Gameplay
    "pitchfall.game": logging.INFO,  # Set to DEBUG for per-note match attempts
    "pitchfall.instruments": logging.INFO,
    "pitchfall.core": logging.INFO,
    "pitchfall.audio": logging.INFO,
    "pitchfall.ui": logging.WARNING,  # UI modules often noisy, keep at WARNING
    "pitchfall.logger": logging.WARNING,
    # Libraries/third-party
    "aubio": logging.ERROR,
    "PIL": logging.ERROR,
    # Root logger
    "": logging.ERROR,
}

# Shared console handler
_console_handler: Optional[logging.Handler] = None


def setup_logging(level: Optional[str] = None) -> None:
    """Set up logging configuration for the application.

    Args:
        level: If provided, override all 'pitchfall' log levels with this level (e.g., "DEBUG").
    """
    global _console_handler

    # Create a single, shared console handler if it doesn't exist
    if _console_handler is None:
        _console_handler = logging.StreamHandler(sys.stdout)
        formatter = logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        )
        _console_handler.setFormatter(formatter)

    # Determine log levels
    log_levels = MODULE_LOG_LEVELS.copy()
    if level:
        numeric_level = logging.getLevelName(level.upper())
        if isinstance(numeric_level, int):
            for module_name in log_levels:
                if module_name.startswith("pitchfall"):
                    log_levels[module_name] = numeric_level
        else:
            logging.getLogger(__name__).error(f"Invalid log level: {level}")

    # Apply module-specific levels. Sub-module loggers propagate up to the
    # nearest configured package logger, which owns the shared handler.
    for module_name, module_level in log_levels.items():
        logger = logging.getLogger(module_name)
        logger.setLevel(module_level)

        for handler in logger.handlers[:]:
            logger.removeHandler(handler)
        logger.addHandler(_console_handler)
        logger.propagate = False

    logging.getLogger("pitchfall").info("Logging configuration complete")
