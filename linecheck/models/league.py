"""Leagues covered by the line checker."""
from enum import Enum


class League(str, Enum):
    """Supported football leagues."""
    NFL = "NFL"
    NCAAF = "NCAAF"
