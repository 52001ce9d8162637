"""Speech recognizer control port"""

from abc import ABC, abstractmethod


class IRecognizerControl(ABC):
    """Abstract control over the recognizer gated by calibration"""

    @abstractmethod
    def is_listening(self) -> bool:
        """Is the recognizer currently listening to the microphone?"""
        pass

    @abstractmethod
    async def start_listening(self):
        """Open the microphone and start listening"""
        pass

    @abstractmethod
    def stop_listening(self):
        """Stop listening and release the microphone"""
        pass
