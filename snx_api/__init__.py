"""Synthetix metrics API: read-through cached financial metrics over ledger and warehouse sources."""

__version__ = "1.0.0"
