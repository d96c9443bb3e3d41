"""Business logic services."""
from .team_directory import TeamDirectory, get_team_directory, normalize_team_name
from .entity_resolver import EntityResolver, CachedResolver, TeamMatch, GameMatch, MatchMethod
from .game_matcher import GameMatcher, GameMatchCandidate, get_game_matcher
from .comparison_engine import (
    ComparisonEngine,
    ComparisonResult,
    ComparisonKPIs,
    GameComparison,
    UnmatchedGame,
    get_comparison_engine,
)
from .pipeline import (
    PipelineOrchestrator,
    PipelineConfig,
    PipelineInput,
    PipelineResult,
    get_pipeline_orchestrator,
)

__all__ = [
    "TeamDirectory",
    "get_team_directory",
    "normalize_team_name",
    "EntityResolver",
    "CachedResolver",
    "TeamMatch",
    "GameMatch",
    "MatchMethod",
    "GameMatcher",
    "GameMatchCandidate",
    "get_game_matcher",
    "ComparisonEngine",
    "ComparisonResult",
    "ComparisonKPIs",
    "GameComparison",
    "UnmatchedGame",
    "get_comparison_engine",
    "PipelineOrchestrator",
    "PipelineConfig",
    "PipelineInput",
    "PipelineResult",
    "get_pipeline_orchestrator",
]
