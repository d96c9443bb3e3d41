import logging

from linecheck.config import LOG_FORMAT, Settings, configure_logging, get_settings
from linecheck.services.entity_resolver import EntityResolver
from linecheck.services.game_matcher import GameMatcher


def test_defaults():
    settings = Settings()
    assert settings.match_threshold == 0.6
    assert settings.one_to_one_matching is True
    assert settings.fuzzy_min_score == 0.6
    assert settings.fuzzy_confidence_scale == 0.9
    assert settings.fuzzy_candidate_limit == 3
    assert settings.low_match_rate_warning == 0.5


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("LINECHECK_MATCH_THRESHOLD", "0.8")
    monkeypatch.setenv("LINECHECK_ONE_TO_ONE_MATCHING", "false")
    get_settings.cache_clear()

    matcher = GameMatcher()
    assert matcher.match_threshold == 0.8
    assert matcher.one_to_one is False


def test_explicit_arguments_win_over_settings(monkeypatch):
    monkeypatch.setenv("LINECHECK_FUZZY_MIN_SCORE", "0.95")
    get_settings.cache_clear()

    assert EntityResolver().fuzzy_min_score == 0.95
    assert EntityResolver(fuzzy_min_score=0.5).fuzzy_min_score == 0.5
    assert GameMatcher(match_threshold=0.0, one_to_one=True).match_threshold == 0.0


def test_matcher_logs_run_summary(caplog, matcher, picksheet_games, market_games):
    with caplog.at_level(logging.INFO, logger="linecheck.services.game_matcher"):
        matcher.match_games(picksheet_games, market_games)
    assert "Matched 3 of 3 picksheet games" in caplog.text


def test_configure_logging_uses_settings_level(monkeypatch):
    calls = []
    monkeypatch.setattr(logging, "basicConfig", lambda **kwargs: calls.append(kwargs))
    monkeypatch.setenv("LINECHECK_LOG_LEVEL", "debug")
    get_settings.cache_clear()

    configure_logging()
    configure_logging("warning")

    assert [c["level"] for c in calls] == ["DEBUG", "WARNING"]
    assert calls[0]["format"] == LOG_FORMAT
