"""Shipping guide extraction, order matching and customer notification."""

__version__ = "0.1.0"
