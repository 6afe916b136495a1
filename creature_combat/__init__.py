"""Combat resolution engine for turn-based creature battles."""

__version__ = "0.1.0"
