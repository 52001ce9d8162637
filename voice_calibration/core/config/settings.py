"""Configuration management"""

import yaml
import structlog
from pathlib import Path
from dataclasses import dataclass, field
from typing import Optional

from voice_calibration.calibration.models import CalibrationConfig
from voice_calibration.core.exceptions import ConfigurationError

logger = structlog.get_logger()

DEFAULT_CONFIG_PATH = "config/calibration.yaml"


@dataclass
class LoggingConfig:
    """Logging configuration"""
    mode: str = "production"
    level: str = "DEBUG"
    file: str = "logs/voice_calibration.log"

    def validate(self) -> None:
        if self.mode not in ("production", "development"):
            raise ConfigurationError(
                f"logging.mode must be 'production' or 'development', got '{self.mode}'"
            )


@dataclass
class Config:
    """Main configuration"""
    calibration: CalibrationConfig = field(default_factory=CalibrationConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def load_config(config_path: Optional[str] = None) -> Config:
    """
    Load configuration from YAML file.

    Missing file -> defaults (with warning). Malformed content or unknown keys
    raise ConfigurationError.
    """
    path = Path(config_path or DEFAULT_CONFIG_PATH)

    if not path.exists():
        logger.warning("config_not_found_using_defaults", path=str(path))
        return Config()

    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        raise ConfigurationError(f"Failed to load config {path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigurationError(f"Config root must be a mapping, got {type(data).__name__}")

    calibration_data = data.get('calibration') or {}
    logging_data = data.get('logging') or {}

    try:
        calibration = CalibrationConfig.from_dict(calibration_data)
        logging_config = LoggingConfig(**logging_data)
    except TypeError as e:
        raise ConfigurationError(f"Invalid config section: {e}") from e
    logging_config.validate()

    logger.info("config_loaded", path=str(path))
    return Config(calibration=calibration, logging=logging_config)
