"""Personal semi-autonomous assistant core."""

__version__ = "0.1.0"
