"""Broker CSV ingestion and Restart Throttle risk sizing for a trading journal."""

__version__ = "1.0.0"
