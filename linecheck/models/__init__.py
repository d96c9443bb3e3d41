"""Input game records."""
from .league import League
from .games import RawGame, MarketGame, coerce_games

__all__ = ["League", "RawGame", "MarketGame", "coerce_games"]
