"""Voice activity detection calibration engine."""

__version__ = '1.0.0'
