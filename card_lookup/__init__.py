"""Identify a trading-card name on screen and resolve it to card data."""

__version__ = "0.1.0"
