"""Perpetual futures position accounting, leverage tiers, risk checks and analytics."""

__version__ = "0.1.0"