"""Green Space Tracker: green-space records, impact metrics and accounts."""

__version__ = "0.1.0"
