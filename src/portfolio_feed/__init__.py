"""Portfolio feed: live quote resolution and sector rollups."""

__version__ = "0.1.0"
