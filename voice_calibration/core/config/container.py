# voice_calibration/core/config/container.py

"""
Dependency Injection Container - wires the calibration engine to host collaborators
"""

import structlog
import os
from typing import Optional
from dotenv import load_dotenv

from voice_calibration.core.config.settings import Config, load_config
from voice_calibration.core.exceptions import ContainerInitializationError
from voice_calibration.core.logging.logger import setup_logging
from voice_calibration.core.ports import (
    IRecognizerControl,
    ISettingsSink,
    ISpeechPlayback,
    ISpeechProbabilitySource
)
from voice_calibration.calibration import CalibrationEngine
from voice_calibration.calibration.calibration_engine import StateChangeCallback
from voice_calibration.calibration.functionality import Sampler

logger = structlog.get_logger()


class Container:
    """
    Dependency Injection Container
    Host supplies the four collaborators, container supplies config, logging and the engine.
    """

    def __init__(
            self,
            source: ISpeechProbabilitySource,
            recognizer: IRecognizerControl,
            playback: ISpeechPlayback,
            settings: ISettingsSink,
            config_path: Optional[str] = None,
            configure_logging: bool = False,
            on_state_change: Optional[StateChangeCallback] = None
    ):
        """Initialize container with all dependencies"""
        logger.info("container_initialization_started")

        self.source = source
        self.recognizer = recognizer
        self.playback = playback
        self.settings = settings

        try:
            # Step 1: Environment and configuration
            self.dev_mode = False
            self.config_path = config_path
            self._load_environment()
            self.config = self._load_config()

            # Step 2: Logging
            if configure_logging:
                self._setup_logging()

            # Step 3: Calibration engine
            self.sampler = self._create_sampler()
            self.engine = self._create_engine(on_state_change)

            logger.info("container_initialization_completed")

        except Exception as e:
            logger.error("container_initialization_failed", error=str(e), exc_info=True)
            raise ContainerInitializationError(f"Failed to initialize container: {e}") from e

    # ========================================
    # ENVIRONMENT & CONFIG
    # ========================================

    def _load_environment(self) -> None:
        """Load environment variables from .env file"""
        load_dotenv()
        self.dev_mode = os.getenv("DEV_MODE", "false").lower() == "true"
        self.config_path = self.config_path or os.getenv("VOICE_CALIBRATION_CONFIG")

        logger.info(
            "environment_loaded",
            dev_mode=self.dev_mode,
            config_path=self.config_path
        )

    def _load_config(self) -> Config:
        """Load and validate configuration"""
        config = load_config(self.config_path)
        if self.dev_mode:
            config.logging.mode = "development"
        return config

    def _setup_logging(self) -> None:
        """Configure structlog + stdlib handlers from config"""
        setup_logging(
            mode=self.config.logging.mode,
            file_level=self.config.logging.level,
            log_file=self.config.logging.file
        )
        logger.debug("logging_configured", mode=self.config.logging.mode)

    # ========================================
    # CALIBRATION
    # ========================================

    def _create_sampler(self) -> Sampler:
        """Create probability sampler"""
        sampler = Sampler(tick_interval_ms=self.config.calibration.tick_interval_ms)
        logger.debug("sampler_created", tick_interval_ms=sampler.tick_interval_ms)
        return sampler

    def _create_engine(self, on_state_change: Optional[StateChangeCallback]) -> CalibrationEngine:
        """Create calibration state machine"""
        engine = CalibrationEngine(
            source=self.source,
            recognizer=self.recognizer,
            playback=self.playback,
            settings=self.settings,
            config=self.config.calibration,
            sampler=self.sampler,
            on_state_change=on_state_change
        )
        logger.debug("calibration_engine_created")
        return engine


def setup_container(
        source: ISpeechProbabilitySource,
        recognizer: IRecognizerControl,
        playback: ISpeechPlayback,
        settings: ISettingsSink,
        config_path: Optional[str] = None,
        configure_logging: bool = False,
        on_state_change: Optional[StateChangeCallback] = None
) -> Container:
    """
    Setup and initialize dependency injection container

    Returns:
        Fully initialized Container instance

    Raises:
        ContainerInitializationError: If initialization fails
    """
    return Container(
        source=source,
        recognizer=recognizer,
        playback=playback,
        settings=settings,
        config_path=config_path,
        configure_logging=configure_logging,
        on_state_change=on_state_change
    )
