"""Betwixt - Polymarket market aggregation, price history and order book views."""

__version__ = "0.1.0"
