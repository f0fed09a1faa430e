"""Rewind: keep the last N seconds of interaction events, export them as a replayable bundle."""

__version__ = "0.1.0"
