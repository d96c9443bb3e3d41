import pytest

from linecheck.models import League
from linecheck.services.entity_resolver import (
    CachedResolver,
    EntityResolver,
    MatchMethod,
    weighted_ratio,
)


class CountingResolver(EntityResolver):
    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.resolved = []

    def match_team(self, team_name, league=None):
        self.resolved.append((team_name, league))
        return super().match_team(team_name, league)


def test_exact_canonical_name(resolver):
    match = resolver.match_team("Philadelphia Eagles")
    assert match.matched_name == "Philadelphia Eagles"
    assert match.confidence == 1.0
    assert match.method == MatchMethod.EXACT
    assert match.league == League.NFL
    assert match.candidates is None


def test_exact_match_ignores_case_and_punctuation(resolver):
    assert resolver.match_team("PHILADELPHIA EAGLES").confidence == 1.0
    assert resolver.match_team("L.A. Rams").matched_name == "Los Angeles Rams"


@pytest.mark.parametrize("name", ["Philly", "PHI", "Eagles", "philadelphia"])
def test_alias_resolution(resolver, name):
    match = resolver.match_team(name)
    assert match.matched_name == "Philadelphia Eagles"
    assert match.confidence == 0.95
    assert match.method == MatchMethod.ALIAS


def test_fuzzy_resolution_for_misspelling(resolver):
    match = resolver.match_team("Philadelphia Eagels")
    assert match.method == MatchMethod.FUZZY
    assert match.matched_name == "Philadelphia Eagles"
    assert 0.8 < match.confidence < 0.9
    assert match.candidates[0].name == "Philadelphia Eagles"
    assert 1 <= len(match.candidates) <= 3
    scores = [c.score for c in match.candidates]
    assert scores == sorted(scores, reverse=True)


def test_confidence_ordering(resolver):
    exact = resolver.match_team("Philadelphia Eagles")
    alias = resolver.match_team("Philly")
    fuzzy = resolver.match_team("Philadelphia Eagels")
    assert exact.confidence > alias.confidence > fuzzy.confidence
    assert fuzzy.confidence <= 0.9


def test_resolution_is_idempotent(resolver):
    for name in ("Philly", "Philadelphia Eagels", "#5 Georgia", "Zzyzx Quokkas"):
        assert resolver.match_team(name) == resolver.match_team(name)


def test_ranked_college_team(resolver):
    match = resolver.match_team("#5 Georgia")
    assert match.matched_name == "Georgia Bulldogs"
    assert match.league == League.NCAAF
    assert match.confidence == 0.95
    assert match.original_name == "#5 Georgia"


def test_college_abbreviation(resolver):
    match = resolver.match_team("LSU")
    assert match.matched_name == "LSU Tigers"
    assert match.league == League.NCAAF


def test_league_hint_skips_nfl(resolver):
    assert resolver.match_team("Miami").matched_name == "Miami Dolphins"

    college = resolver.match_team("Miami", "ncaaf")
    assert college.matched_name == "Miami Hurricanes"
    assert college.league == League.NCAAF

    assert resolver.match_team("Louisville Cardinals", League.NCAAF).confidence == 1.0


def test_likely_college_passthrough(resolver):
    match = resolver.match_team("#5 Zzyzx")
    assert match.matched_name == "Zzyzx"
    assert match.confidence == 0.7
    assert match.league == League.NCAAF
    assert match.method == MatchMethod.FUZZY


def test_unresolved_name_degrades(resolver):
    match = resolver.match_team("Zzyzx Quokkas")
    assert match.matched_name == "Zzyzx Quokkas"
    assert match.confidence == 0.3
    assert match.league == League.NFL
    assert match.method == MatchMethod.FUZZY

    assert resolver.match_team("Zzyzx Quokkas", League.NCAAF).league == League.NCAAF


@pytest.mark.parametrize("name", ["", "   ", None])
def test_blank_name_rejected(resolver, name):
    with pytest.raises(ValueError):
        resolver.match_team(name)


@pytest.mark.parametrize(
    "name,expected",
    [
        ("Boise State", True),
        ("Texas A&M", True),
        ("Georgia Tech", True),
        ("#3 Oregon", True),
        ("UGA", True),
        ("Dallas", False),
        ("Eagles", False),
    ],
)
def test_is_likely_ncaa(resolver, name, expected):
    assert resolver.is_likely_ncaa(name) is expected


def test_match_game_flags_weak_side(resolver):
    strong = resolver.match_game("Philadelphia", "Dallas")
    assert strong.overall_confidence == pytest.approx(0.95)
    assert strong.needs_verification is False

    weak = resolver.match_game("Philadelphia", "Zzyzx Quokkas")
    assert weak.overall_confidence == pytest.approx(0.625)
    assert weak.needs_verification is True
    assert weak.to_dict()["away_team"]["confidence"] == 0.3


def test_summarize_matches(resolver):
    matches = resolver.match_teams(["Philly", "#5 Zzyzx", "Zzyzx Quokkas", "Dallas Cowboys"])
    assert EntityResolver.summarize_matches(matches) == {
        "total": 4,
        "high_confidence": 2,
        "medium_confidence": 1,
        "low_confidence": 1,
    }


def test_cached_resolver_counts_calls():
    inner = CountingResolver()
    cache = CachedResolver(inner)

    first = cache.match_team("Philly")
    second = cache.match_team("Philly")
    cache.match_team("Philly", "NFL")

    assert first is second
    assert cache.calls == 3
    assert cache.hits == 1
    assert cache.misses == 2
    assert len(cache) == 2
    assert inner.resolved == [("Philly", None), ("Philly", League.NFL)]

    cache.clear()
    assert len(cache) == 0
    assert cache.calls == 0


def test_weighted_ratio_bounds():
    assert weighted_ratio("philadelphia eagles", "philadelphia eagles") == 100
    assert weighted_ratio("philadelphia eagles", "zzyzx") < 30


def test_team_match_to_dict(resolver):
    data = resolver.match_team("Philly").to_dict()
    assert data == {
        "original_name": "Philly",
        "matched_name": "Philadelphia Eagles",
        "confidence": 0.95,
        "league": "NFL",
        "method": "alias",
        "candidates": None,
    }


def test_candidate_limit_zero_is_respected():
    match = EntityResolver(candidate_limit=0).match_team("Philadelphia Eagels")
    assert match.matched_name == "Philadelphia Eagles"
    assert match.candidates == ()
    assert EntityResolver().candidate_limit == 3
