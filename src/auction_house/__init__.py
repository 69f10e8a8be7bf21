"""Timed auction house — bidding engine, admin surface and HTTP app."""

__version__ = "0.1.0"
