"""Async client for the Robinhood crypto trading API."""

__version__ = "0.1.0"
