"""rememo: local task/reminder core (task store + reminder scheduler)."""

__version__ = "0.1.0"
