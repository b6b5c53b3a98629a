"""Version information for masterlock."""

__version__ = "0.1.0"
