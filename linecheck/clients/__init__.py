"""Adapters for external odds data."""
from .odds_feed import SpreadQuote, get_best_spread, event_to_market_game, events_to_market_games

__all__ = ["SpreadQuote", "get_best_spread", "event_to_market_game", "events_to_market_games"]
