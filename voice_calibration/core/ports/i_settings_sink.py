"""Detection settings sink port"""

from abc import ABC, abstractmethod
from typing import Any

# Parameter keys understood by the VAD settings sink
POSITIVE_THRESHOLD = "positiveThreshold"
NEGATIVE_THRESHOLD = "negativeThreshold"
MIN_SPEECH_START_MS = "minSpeechStartMs"
INTERRUPTION_ENABLED = "interruptionEnabled"


class ISettingsSink(ABC):
    """Abstract writable store of VAD detection parameters"""

    @abstractmethod
    def update_parameter(self, key: str, value: Any):
        """
        Update single detection parameter

        Args:
            key: Parameter key (see module constants)
            value: New value
        """
        pass

    @abstractmethod
    def get_parameter(self, key: str, default: Any = None) -> Any:
        """Current value of a parameter, or default when unset"""
        pass
