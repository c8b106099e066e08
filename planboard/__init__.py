"""Production plan board: calendar slots, block placement and assistant actions."""

__version__ = "0.1.0"
