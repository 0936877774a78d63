"""Feed composition and trend aggregation for the Rankshare social app."""

__version__ = "0.1.0"
