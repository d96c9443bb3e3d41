import pytest

from linecheck.models import League, MarketGame, RawGame
from linecheck.services.comparison_engine import (
    ComparisonEngine,
    RiskLevel,
    UnmatchedSource,
)
from linecheck.services.game_matcher import GameMatchCandidate


def _pair(picksheet_spread, market_spread, home="Philadelphia Eagles", away="Dallas Cowboys", league=None):
    return (
        RawGame(home_team=home, away_team=away, spread=picksheet_spread),
        MarketGame(
            game_id="g1",
            home_team=home,
            away_team=away,
            home_spread=market_spread,
            game_time="2025-01-05T20:20:00Z",
            league=league,
        ),
    )


def test_key_number_crossing(engine):
    comparison = engine.compare_game(*_pair(7.5, 2.5))
    assert comparison.spread_delta == 5.0
    assert comparison.crosses_key_number is True
    assert 3 in comparison.key_numbers_crossed
    assert comparison.key_numbers_crossed == (3, 7)


def test_negative_key_number_crossing(engine):
    comparison = engine.compare_game(*_pair(2.5, -3.5))
    assert comparison.key_numbers_crossed == (-3,)
    assert comparison.favorite_flipped is True


def test_landing_on_key_number_is_not_a_crossing(engine):
    comparison = engine.compare_game(*_pair(-7, -10.5))
    assert comparison.key_numbers_crossed == (-10,)
    assert engine.compare_game(*_pair(-3, 3)).crosses_key_number is False


@pytest.mark.parametrize(
    "picksheet_spread,market_spread,flipped",
    [(-3, 3, True), (-3, -1, False), (0, -3, False), (1.5, -0.5, True)],
)
def test_favorite_flip(engine, picksheet_spread, market_spread, flipped):
    assert engine.compare_game(*_pair(picksheet_spread, market_spread)).favorite_flipped is flipped


def test_league_inference(engine):
    assert engine.compare_game(*_pair(-3, -3)).league == League.NFL
    assert engine.compare_game(
        *_pair(-3, -3, home="Ohio State Buckeyes", away="Michigan Wolverines")
    ).league == League.NCAAF
    assert engine.compare_game(*_pair(-3, -3, home="Zzyzx Quokkas", away="Nowhere Nomads")).league == League.NCAAF
    assert engine.compare_game(*_pair(-3, -3, league="NCAAF")).league == League.NCAAF


def test_single_matched_game(engine):
    picksheet = [RawGame(home_team="Philadelphia", away_team="Dallas", spread=-3)]
    market = [MarketGame(
        game_id="g1",
        home_team="PHILADELPHIA EAGLES",
        away_team="DALLAS COWBOYS",
        home_spread=-3.5,
        game_time="2025-01-05T20:20:00Z",
    )]

    result = engine.compare_games(picksheet, market, [GameMatchCandidate(0, 0, 0.95)])

    assert len(result.comparisons) == 1
    comparison = result.comparisons[0]
    assert comparison.spread_delta == 0.5
    assert comparison.crosses_key_number is False
    assert comparison.favorite_flipped is False
    assert comparison.confidence == 0.95
    assert comparison.home_team == "PHILADELPHIA EAGLES"
    assert result.unmatched == []
    assert result.kpis.match_rate == 1.0


def test_kpis(engine, picksheet_games, market_games):
    matches = [GameMatchCandidate(i, i, 1.0) for i in range(3)]
    kpis = engine.compare_games(picksheet_games, market_games, matches).kpis

    assert kpis.total_games == 3
    assert kpis.matched_games == 3
    assert kpis.unmatched_games == 0
    assert kpis.match_rate == 1.0
    assert kpis.avg_spread_delta == 2.67
    assert kpis.median_spread_delta == 3.5
    assert kpis.p95_spread_delta == 4.0
    assert kpis.std_dev_spread_delta == 1.55
    assert kpis.key_number_crossings == 1
    assert kpis.key_number_crossing_rate == 0.333
    assert kpis.favorite_flips == 1
    assert kpis.favorite_flip_rate == 0.333
    assert kpis.largest_delta.to_dict() == {
        "game_id": "g2",
        "teams": "Buffalo Bills @ Kansas City Chiefs",
        "delta": -4.0,
    }


def _straight_run(picksheet_spreads, market_spreads):
    picksheet = [RawGame(home_team=f"Home {i}", away_team=f"Away {i}", spread=s) for i, s in enumerate(picksheet_spreads)]
    market = [
        MarketGame(game_id=f"m{i}", home_team=f"Home {i}", away_team=f"Away {i}", home_spread=s, game_time="t")
        for i, s in enumerate(market_spreads)
    ]
    matches = [GameMatchCandidate(i, i, 1.0) for i in range(len(picksheet))]
    return picksheet, market, matches


def test_kpis_round_half_up(engine):
    kpis = engine.compare_games(*_straight_run([0, 0, 0, 0.5], [0, 0, 0, 0])).kpis
    assert kpis.avg_spread_delta == 0.13

    kpis = engine.compare_games(*_straight_run([-1] + [0] * 15, [1] + [0] * 15)).kpis
    assert kpis.favorite_flips == 1
    assert kpis.favorite_flip_rate == 0.063


@pytest.mark.parametrize(
    "deltas,median",
    [([1, 3], 3), ([8, 1, 4, 2], 4), ([2, 1, 3], 2)],
)
def test_median_takes_upper_middle_element(engine, deltas, median):
    kpis = engine.compare_games(*_straight_run(deltas, [0] * len(deltas))).kpis
    assert kpis.median_spread_delta == sorted(deltas)[len(deltas) // 2] == median


def test_largest_delta_keeps_first_of_equal_values(engine):
    picksheet = [RawGame(home_team="A", away_team="B", spread=-3), RawGame(home_team="C", away_team="D", spread=3)]
    market = [
        MarketGame(game_id="x", home_team="A", away_team="B", home_spread=-1, game_time="t"),
        MarketGame(game_id="y", home_team="C", away_team="D", home_spread=1, game_time="t"),
    ]
    matches = [GameMatchCandidate(0, 0, 1.0), GameMatchCandidate(1, 1, 1.0)]
    assert engine.compare_games(picksheet, market, matches).kpis.largest_delta.game_id == "x"


def test_no_games_yields_zeroed_kpis(engine):
    kpis = engine.compare_games([], [], []).kpis
    assert kpis.match_rate == 0
    assert kpis.matched_games == 0
    assert kpis.avg_spread_delta == 0
    assert kpis.largest_delta is None


def test_no_matches_lists_everything_unmatched(engine, picksheet_games, market_games):
    result = engine.compare_games(picksheet_games, market_games, [])
    assert result.kpis.match_rate == 0
    assert result.kpis.largest_delta is None
    assert result.kpis.unmatched_games == 3
    assert [u.source for u in result.unmatched] == [UnmatchedSource.PICKSHEET] * 3 + [UnmatchedSource.MARKET] * 3
    assert result.unmatched[0].game_info == "Dallas @ Philadelphia (-3)"
    assert result.unmatched[0].reason == "No matching market game found"
    assert result.unmatched[3].game_info == "DALLAS COWBOYS @ PHILADELPHIA EAGLES (-3.5)"
    assert result.unmatched[3].reason == "No matching picksheet game found"
    assert result.unmatched[3].game_time == "2025-01-05T20:20:00Z"


def test_unmatched_picksheet_count(engine):
    picksheet = [
        RawGame(home_team=f"Home {i}", away_team=f"Away {i}", spread=-i - 0.5)
        for i in range(5)
    ]
    market = [
        MarketGame(game_id=f"m{i}", home_team=f"Home {i}", away_team=f"Away {i}", home_spread=-i, game_time="t")
        for i in (0, 2, 4)
    ]
    matches = [GameMatchCandidate(0, 0, 1.0), GameMatchCandidate(2, 1, 1.0), GameMatchCandidate(4, 2, 1.0)]

    result = engine.compare_games(picksheet, market, matches)

    picksheet_unmatched = [u for u in result.unmatched if u.source == UnmatchedSource.PICKSHEET]
    assert len(picksheet_unmatched) == 2
    assert [u.game_info for u in picksheet_unmatched] == ["Away 1 @ Home 1 (-1.5)", "Away 3 @ Home 3 (-3.5)"]
    assert len(result.unmatched) == 2
    assert result.kpis.match_rate == 0.6


def test_matches_accept_dicts_and_skip_bad_indices(engine, picksheet_games, market_games):
    result = engine.compare_games(
        picksheet_games,
        market_games,
        [
            {"picksheet_index": 0, "market_index": 0, "confidence": 0.95},
            {"picksheet_index": 1, "market_index": 7, "confidence": 0.95},
        ],
    )
    assert len(result.comparisons) == 1
    assert result.kpis.matched_games == 1


@pytest.mark.parametrize(
    "team,spread,expected",
    [("PHI", -3.5, "PHI -3.5"), ("DAL", 7, "DAL +7"), ("DAL", 0, "DAL PK"), ("NYG", 2.5, "NYG +2.5")],
)
def test_format_spread(team, spread, expected):
    assert ComparisonEngine.format_spread(team, spread) == expected


@pytest.mark.parametrize(
    "delta,level",
    [
        (0, RiskLevel.LOW),
        (-2, RiskLevel.LOW),
        (2.5, RiskLevel.MEDIUM),
        (4, RiskLevel.MEDIUM),
        (-7, RiskLevel.HIGH),
        (7.5, RiskLevel.CRITICAL),
    ],
)
def test_risk_level(delta, level):
    assert ComparisonEngine.get_risk_level(delta) == level


def test_result_to_dict(engine, picksheet_games, market_games):
    data = engine.compare_games(picksheet_games, market_games, [GameMatchCandidate(1, 1, 0.95)]).to_dict()
    comparison = data["comparisons"][0]
    assert comparison["league"] == "NFL"
    assert comparison["risk_level"] == "medium"
    assert comparison["key_numbers_crossed"] == []
    assert isinstance(data["kpis"]["timestamp"], str)
    assert [u["source"] for u in data["unmatched"]] == ["picksheet", "picksheet", "market", "market"]


def test_repeated_picksheet_index_counted_once(engine, picksheet_games, market_games):
    result = engine.compare_games(
        picksheet_games,
        market_games,
        [
            {"picksheet_index": 0, "market_index": 0, "confidence": 0.95},
            {"picksheet_index": 0, "market_index": 1, "confidence": 0.9},
        ],
    )
    assert [c.game_id for c in result.comparisons] == ["g1"]
    assert result.kpis.matched_games == 1
    assert result.kpis.match_rate == 0.333
    assert [u.game_info for u in result.unmatched if u.source == UnmatchedSource.MARKET] == [
        "Buffalo Bills @ Kansas City Chiefs (1.5)",
        "Chicago Bears @ Green Bay Packers (-10.5)",
    ]
