"""
Odds Feed Adapter

Turns event payloads from The Odds API (v4 /sports/{sport}/odds, already
fetched by the caller) into MarketGame records.

Documentation: https://the-odds-api.com/liveapi/guides/v4/
"""
import logging
from typing import List, Dict, Any, Optional, Iterable
from dataclasses import dataclass

from linecheck.models import League, MarketGame

logger = logging.getLogger(__name__)

SPREADS_MARKET = "spreads"

SPORT_KEYS = {
    "americanfootball_nfl": League.NFL,
    "americanfootball_ncaaf": League.NCAAF,
}


@dataclass
class SpreadQuote:
    """Point spread taken from a single bookmaker."""
    home_team: str
    away_team: str
    home_spread: Optional[float]
    away_spread: Optional[float]
    bookmaker: Optional[str]
    last_update: Optional[str]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "home_team": self.home_team,
            "away_team": self.away_team,
            "home_spread": self.home_spread,
            "away_spread": self.away_spread,
            "bookmaker": self.bookmaker,
            "last_update": self.last_update,
        }


def get_best_spread(event: Dict[str, Any]) -> SpreadQuote:
    """
    Pick the spread of the first bookmaker that quotes both sides.

    Bookmakers are taken in feed order; one qualifies when its spreads
    market has a point for both the home and the away team.
    """
    home_team = event.get("home_team", "")
    away_team = event.get("away_team", "")

    for bookmaker in event.get("bookmakers", []):
        market = next(
            (m for m in bookmaker.get("markets", []) if m.get("key") == SPREADS_MARKET),
            None,
        )
        if not market:
            continue

        outcomes = market.get("outcomes", [])
        home = next((o for o in outcomes if o.get("name") == home_team), None)
        away = next((o for o in outcomes if o.get("name") == away_team), None)

        if home and away and home.get("point") is not None and away.get("point") is not None:
            return SpreadQuote(
                home_team=home_team,
                away_team=away_team,
                home_spread=float(home["point"]),
                away_spread=float(away["point"]),
                bookmaker=bookmaker.get("title"),
                last_update=bookmaker.get("last_update"),
            )

    return SpreadQuote(
        home_team=home_team,
        away_team=away_team,
        home_spread=None,
        away_spread=None,
        bookmaker=None,
        last_update=None,
    )


def league_for_sport(sport_key: Optional[str]) -> Optional[League]:
    return SPORT_KEYS.get(sport_key or "")


def event_to_market_game(event: Dict[str, Any], league: Optional[League] = None) -> MarketGame:
    """
    Convert one odds event to a MarketGame.

    A game with no usable spread is kept at 0 (pick'em). The league falls
    back to the event's sport_key when not given.
    """
    quote = get_best_spread(event)
    if quote.home_spread is None:
        logger.debug(f"No spread quoted for {quote.away_team} @ {quote.home_team}, using 0")

    return MarketGame(
        game_id=event.get("id", ""),
        home_team=quote.home_team,
        away_team=quote.away_team,
        home_spread=quote.home_spread if quote.home_spread is not None else 0.0,
        game_time=event.get("commence_time", ""),
        league=league or league_for_sport(event.get("sport_key")),
    )


def events_to_market_games(
    events: Iterable[Dict[str, Any]],
    league: Optional[League] = None,
) -> List[MarketGame]:
    """Convert a feed response (list of events) into MarketGame records."""
    games = [event_to_market_game(event, league) for event in events]
    logger.info(f"Converted {len(games)} odds events to market games")
    return games
