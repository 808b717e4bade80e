"""Charity gateway: rate-limited access to the CharityAPI IRS database."""

__version__ = "1.0.0"
