"""Multi-chain wallet account reports and balance aggregation."""

__version__ = "0.1.0"
