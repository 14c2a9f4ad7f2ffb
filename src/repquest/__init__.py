"""repquest: challenge lifecycle and completion tracking for fitness challenges."""

__version__ = "0.1.0"
