"""Speech playback (TTS) port"""

from abc import ABC, abstractmethod


class ISpeechPlayback(ABC):
    """Abstract speech playback engine"""

    @abstractmethod
    async def speak(self, text: str, rate: float = 1.0):
        """
        Speak text and return once playback finishes or is cancelled

        Args:
            text: Utterance to speak
            rate: Speech rate multiplier (1.0 = normal)
        """
        pass

    @abstractmethod
    def cancel(self):
        """Preempt current playback immediately"""
        pass
