"""Picksheet line checker: reconcile pool picksheets against sportsbook spreads."""

__version__ = "1.0.0"
