"""Factory for creating Pitchfall components."""

from typing import Dict, Optional, Type

from ..calibration.state_machine import CalibrationStateMachine
from ..engine import NoiseFloorMeter, PitchEngine
from ..game.judge import MatchJudge
from ..game.scheduler import NoteScheduler
from ..instruments import Instrument, Piano, Saxophone, Ukulele
from ..logger import get_logger
from ..note_types import CalibrationResult
from .config import ConfigManager

logger = get_logger(__name__)


class ComponentFactory:
    """Factory for creating Pitchfall components from configuration."""

    def __init__(self, config_manager: Optional[ConfigManager] = None):
        """Initialize the component factory.

        Args:
            config_manager: Configuration manager, or None to create a default one
        """
        self.config_manager = config_manager or ConfigManager()

        # Register instrument implementations by name
        self.instrument_classes: Dict[str, Type[Instrument]] = {
            "ukulele": Ukulele,
            "piano": Piano,
            "saxophone": Saxophone,
        }

    @property
    def instrument_names(self):
        return sorted(self.instrument_classes)

    def create_calibration(
        self, result: Optional[CalibrationResult] = None, **kwargs
    ) -> CalibrationStateMachine:
        """Create a calibration state machine.

        Args:
            result: Saved anchor means to restore, if any
            **kwargs: Overrides for the ``calibration`` configuration
        """
        config = self.config_manager.get_config("calibration")
        config.update(kwargs)
        calibration = CalibrationStateMachine(result=result, **config)
        logger.info(f"Created calibration: {calibration.state.value}")
        return calibration

    def create_instrument(
        self,
        name: str,
        calibration_result: Optional[CalibrationResult] = None,
        **kwargs,
    ) -> Instrument:
        """Create an instrument by name.

        Args:
            name: Registered instrument name (e.g., 'ukulele')
            calibration_result: Saved calibration for instruments that need one
            **kwargs: Additional parameters to pass to the constructor

        Returns:
            Instrument instance

        Raises:
            ValueError: If the instrument is not registered
        """
        key = name.lower()
        if key not in self.instrument_classes:
            raise ValueError(f"Unknown instrument: {name}")

        config = self.config_manager.get_config("instrument")
        cls = self.instrument_classes[key]

        params = {
            "deck_position": config["deck_position"],
            "width": config["width"],
        }
        if cls is Ukulele:
            params["tolerance_floor"] = config["tolerance_floor"]
            params["calibration"] = self.create_calibration(result=calibration_result)
        params.update(kwargs)

        instance = cls(**params)
        logger.info(f"Created instrument: {key}")
        return instance

    def create_scheduler(self, instrument: Instrument, **kwargs) -> NoteScheduler:
        config = self.config_manager.get_config("gameplay")
        params = {
            "fall_speed": config["fall_speed"],
            "play_area_extent": config["play_area_extent"],
            "spawn_distance_fraction": config["spawn_distance_fraction"],
        }
        params.update(kwargs)
        return NoteScheduler(instrument, **params)

    def create_judge(
        self, scheduler: NoteScheduler, instrument: Instrument, **kwargs
    ) -> MatchJudge:
        config = self.config_manager.get_config("gameplay")
        params = {
            "hit_threshold": config["hit_threshold"],
            "active_range_limit": config["active_range_limit"],
        }
        params.update(kwargs)
        return MatchJudge(scheduler, instrument, **params)

    def create_engine(
        self, instrument: Instrument, voicing_threshold: Optional[float] = None
    ) -> PitchEngine:
        """Create an engine wired to the configured scheduler and judge.

        Without a fixed ``voicing_threshold`` the engine measures background
        noise first, using the ``audio_input`` configuration.
        """
        scheduler = self.create_scheduler(instrument)
        judge = self.create_judge(scheduler, instrument)

        noise_meter = None
        if voicing_threshold is None:
            audio = self.config_manager.get_config("audio_input")
            noise_meter = NoiseFloorMeter(
                measure_seconds=audio["noise_measure_seconds"],
                multiplier=audio["noise_multiplier"],
            )

        engine = PitchEngine(
            instrument,
            scheduler=scheduler,
            judge=judge,
            voicing_threshold=voicing_threshold,
            noise_meter=noise_meter,
        )
        logger.info(f"Created engine for {instrument.name}")
        return engine
