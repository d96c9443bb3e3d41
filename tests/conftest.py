import pytest

from linecheck.config import get_settings
from linecheck.models import MarketGame, RawGame
from linecheck.services.comparison_engine import ComparisonEngine
from linecheck.services.entity_resolver import EntityResolver
from linecheck.services.game_matcher import GameMatcher


@pytest.fixture(autouse=True)
def _fresh_settings(monkeypatch):
    for name in (
        "LINECHECK_MATCH_THRESHOLD",
        "LINECHECK_ONE_TO_ONE_MATCHING",
        "LINECHECK_FUZZY_MIN_SCORE",
        "LINECHECK_LOW_MATCH_RATE_WARNING",
        "LINECHECK_LOG_LEVEL",
    ):
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def resolver():
    return EntityResolver()


@pytest.fixture
def matcher(resolver):
    return GameMatcher(resolver=resolver)


@pytest.fixture
def engine():
    return ComparisonEngine()


@pytest.fixture
def picksheet_games():
    return [
        RawGame(home_team="Philadelphia", away_team="Dallas", spread=-3),
        RawGame(home_team="Kansas City", away_team="Buffalo", spread=-2.5),
        RawGame(home_team="Green Bay Packers", away_team="Chicago Bears", spread=-7),
    ]


@pytest.fixture
def market_games():
    return [
        MarketGame(
            game_id="g1",
            home_team="PHILADELPHIA EAGLES",
            away_team="DALLAS COWBOYS",
            home_spread=-3.5,
            game_time="2025-01-05T20:20:00Z",
        ),
        MarketGame(
            game_id="g2",
            home_team="Kansas City Chiefs",
            away_team="Buffalo Bills",
            home_spread=1.5,
            game_time="2025-01-05T23:30:00Z",
            league="NFL",
        ),
        MarketGame(
            game_id="g3",
            home_team="Green Bay Packers",
            away_team="Chicago Bears",
            home_spread=-10.5,
            game_time="2025-01-05T18:00:00Z",
        ),
    ]
