"""momentum - task lifecycle, recurrence and behavioural insights core."""

__version__ = "0.1.0"
