"""
Custom exceptions for the VAD calibration engine
"""


class CalibrationError(Exception):
    """Base exception for calibration errors"""
    pass


class ConfigurationError(CalibrationError):
    """Raised when configuration is invalid or missing"""
    pass


class ContainerInitializationError(CalibrationError):
    """Raised when dependency injection container fails to initialize"""
    pass


class SamplerError(CalibrationError):
    """Raised when the probability sampler is misused (e.g. started twice)"""
    pass


class PlaybackError(CalibrationError):
    """Raised when calibration utterance playback fails"""
    pass


class PlaybackTimeoutError(PlaybackError):
    """Raised when calibration utterance playback does not finish in time"""
    pass
