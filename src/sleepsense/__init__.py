"""sleepsense: sleep scoring, daily aggregation and tips from sleep samples."""

__version__ = "0.1.0"
