"""Configuration management for Pitchfall components."""

from typing import Dict, Any, Optional
import json
import os
from pathlib import Path

from ..logger import get_logger
from ..note_types import CalibrationResult

logger = get_logger(__name__)

CALIBRATION_RESULT_FILE = "calibration_result.json"


class ConfigManager:
    """Configuration manager for Pitchfall components."""

    def __init__(self, config_dir: Optional[str] = None):
        """Initialize the configuration manager.

        Args:
            config_dir: Directory to store configuration files, or None to use default
        """
        if config_dir is None:
            # Use ~/.config/pitchfall by default
            home = os.path.expanduser("~")
            config_dir = os.path.join(home, ".config", "pitchfall")

        self.config_dir = Path(config_dir)
        self.config_dir.mkdir(parents=True, exist_ok=True)

        # Default configurations
        self.default_configs = {
            "calibration": {
                "stability_threshold": 5.0,
                "required_stable_duration": 0.5,
                "consistency_tolerance": 3.0,
                "min_frequency_difference": 100.0,
                "low_index": 1,
                "high_index": 12,
            },
            "gameplay": {
                "fall_speed": 2.0,
                "play_area_extent": 600.0,
                "spawn_distance_fraction": 0.25,
                "hit_threshold": 50.0,
                "active_range_limit": 100.0,
                "frame_rate": 60,
            },
            "instrument": {
                "deck_position": 480.0,
                "width": 1024.0,
                "tolerance_floor": 15.0,
            },
            "audio_input": {
                "sample_rate": 44100,
                "frames_per_buffer": 1024,
                "channels": 1,
                "noise_multiplier": 1.5,
                "noise_measure_seconds": 1.5,
            },
        }

        # Load existing configurations or create default ones
        self.configs = {}
        for config_name, default_config in self.default_configs.items():
            self.configs[config_name] = self.load_config(config_name, default_config)

    def load_config(self, name: str, default_config: Dict[str, Any]) -> Dict[str, Any]:
        """Load configuration from file or create default.

        Args:
            name: Configuration name
            default_config: Default configuration to use if file doesn't exist

        Returns:
            Configuration dictionary
        """
        config_file = self.config_dir / f"{name}.json"

        if config_file.exists():
            try:
                with open(config_file, "r") as f:
                    config = json.load(f)
                logger.info(f"Loaded configuration from {config_file}")

                # Ensure all default keys are present
                for key, value in default_config.items():
                    if key not in config:
                        config[key] = value

                return config
            except (OSError, ValueError) as e:
                logger.error(f"Error loading configuration from {config_file}: {e}")
                return default_config.copy()
        else:
            # Create default configuration
            config = default_config.copy()
            self.save_config(name, config)
            return config

    def save_config(self, name: str, config: Dict[str, Any]) -> bool:
        """Save configuration to file.

        Returns:
            True if saved successfully, False otherwise
        """
        config_file = self.config_dir / f"{name}.json"

        try:
            with open(config_file, "w") as f:
                json.dump(config, f, indent=2)
            logger.info(f"Saved configuration to {config_file}")
            return True
        except OSError as e:
            logger.error(f"Error saving configuration to {config_file}: {e}")
            return False

    def get_config(self, name: str) -> Dict[str, Any]:
        """Get a copy of a configuration by name (empty if unknown)."""
        return self.configs.get(name, {}).copy()

    def update_config(self, name: str, updates: Dict[str, Any]) -> bool:
        """Update configuration and save to file.

        Args:
            name: Configuration name
            updates: Dictionary of updates to apply

        Returns:
            True if updated and saved successfully, False otherwise
        """
        if name not in self.configs:
            logger.error(f"Unknown configuration: {name}")
            return False

        self.configs[name].update(updates)
        return self.save_config(name, self.configs[name])

    def reset_config(self, name: str) -> bool:
        """Reset configuration to default.

        Returns:
            True if reset successfully, False otherwise
        """
        if name not in self.default_configs:
            logger.error(f"Unknown configuration: {name}")
            return False

        self.configs[name] = self.default_configs[name].copy()
        return self.save_config(name, self.configs[name])

    # Calibration persistence

    @property
    def calibration_result_path(self) -> Path:
        return self.config_dir / CALIBRATION_RESULT_FILE

    def save_calibration_result(self, result: CalibrationResult) -> bool:
        """Store the two calibrated anchor means for the next session."""
        path = self.calibration_result_path
        try:
            with open(path, "w") as f:
                json.dump(result.to_dict(), f, indent=2)
            logger.info(
                f"Saved calibration ({result.low_frequency:.2f}Hz / "
                f"{result.high_frequency:.2f}Hz) to {path}"
            )
            return True
        except OSError as e:
            logger.error(f"Error saving calibration to {path}: {e}")
            return False

    def load_calibration_result(self) -> Optional[CalibrationResult]:
        """Load saved anchor means, or None if there are none usable."""
        path = self.calibration_result_path
        if not path.exists():
            return None

        try:
            with open(path, "r") as f:
                result = CalibrationResult.from_dict(json.load(f))
        except (OSError, ValueError, KeyError, TypeError) as e:
            logger.warning(f"Ignoring unreadable calibration file {path}: {e}")
            return None

        logger.info(f"Loaded calibration from {path}")
        return result

    def clear_calibration_result(self) -> bool:
        """Forget the saved calibration.

        Returns:
            True if a saved calibration was removed
        """
        path = self.calibration_result_path
        if not path.exists():
            return False
        path.unlink()
        logger.info(f"Cleared saved calibration {path}")
        return True
