"""Speech probability source port (interface)"""

from abc import ABC, abstractmethod


class ISpeechProbabilitySource(ABC):
    """Abstract live VAD probability signal"""

    @abstractmethod
    def current(self) -> float:
        """Latest speech probability in [0, 1]"""
        pass

    @abstractmethod
    def is_processing(self) -> bool:
        """Is probability computation currently running?"""
        pass

    @abstractmethod
    def resume_processing(self):
        """Force probability computation on (modes that gate it off by default)"""
        pass

    @abstractmethod
    def pause_processing(self):
        """Gate probability computation off again"""
        pass
