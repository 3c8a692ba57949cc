"""Wettorion comms module: packets, backend connection, packet handling, settings store and logging."""

__version__ = "1.0.0"