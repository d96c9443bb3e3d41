"""
Pipeline Orchestrator

Runs a picksheet through parse -> odds retrieval -> matching -> comparison,
recording the outcome of every stage and keeping finished runs in memory.

Parsing free text and fetching odds are delegated to injected collaborators
(PicksheetParser, OddsProvider); the orchestrator itself never does I/O.
"""
import time
import uuid
import logging
from typing import List, Dict, Any, Optional, Protocol, Sequence, Union
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum

from linecheck.config import get_settings
from linecheck.errors import PipelineError
from linecheck.models import League, RawGame, MarketGame, coerce_games
from linecheck.services.entity_resolver import EntityResolver
from linecheck.services.game_matcher import GameMatcher, GameMatchCandidate
from linecheck.services.comparison_engine import (
    ComparisonEngine,
    ComparisonResult,
    get_comparison_engine,
)

logger = logging.getLogger(__name__)


class PicksheetParser(Protocol):
    """Extracts games from raw picksheet text."""

    def parse(self, text: str) -> Sequence[Union[RawGame, Dict[str, Any]]]:
        ...


class OddsProvider(Protocol):
    """Supplies current market games (NFL and NCAAF)."""

    def get_market_games(self) -> Sequence[Union[MarketGame, Dict[str, Any]]]:
        ...


class PipelineStatus(str, Enum):
    SUCCESS = "success"
    PARTIAL = "partial"
    FAILED = "failed"


class PipelineStage(str, Enum):
    IDLE = "idle"
    INITIALIZING = "initializing"
    PARSING = "parsing"
    ODDS_RETRIEVAL = "odds_retrieval"
    MATCHING = "matching"
    COMPARISON = "comparison"
    COMPLETED = "completed"


@dataclass
class PipelineConfig:
    use_odds_api: bool = False
    include_logs: bool = False
    match_threshold: Optional[float] = None  # None = configured default

    def to_dict(self) -> Dict[str, Any]:
        return {
            "use_odds_api": self.use_odds_api,
            "include_logs": self.include_logs,
            "match_threshold": self.match_threshold,
        }


@dataclass
class PipelineInput:
    """Either picksheet text or already-extracted games, plus optional market games."""
    picksheet_text: Optional[str] = None
    picksheet_games: Optional[List[Union[RawGame, Dict[str, Any]]]] = None
    market_games: Optional[List[Union[MarketGame, Dict[str, Any]]]] = None


@dataclass
class ParsingStage:
    success: bool
    games_found: int
    games: List[RawGame] = field(default_factory=list)
    error: Optional[str] = None
    duration_ms: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "games_found": self.games_found,
            "games": [g.to_dict() for g in self.games],
            "error": self.error,
            "duration_ms": self.duration_ms,
        }


@dataclass
class OddsRetrievalStage:
    success: bool
    nfl_games: int
    ncaaf_games: int
    games: List[MarketGame] = field(default_factory=list)
    error: Optional[str] = None
    duration_ms: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "nfl_games": self.nfl_games,
            "ncaaf_games": self.ncaaf_games,
            "games": [g.to_dict() for g in self.games],
            "error": self.error,
            "duration_ms": self.duration_ms,
        }


@dataclass
class MatchingStage:
    success: bool
    match_rate: float
    total_games: int
    candidates: List[GameMatchCandidate] = field(default_factory=list)
    error: Optional[str] = None
    duration_ms: float = 0.0

    @property
    def matches(self) -> int:
        return len(self.candidates)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "match_rate": self.match_rate,
            "matches": self.matches,
            "total_games": self.total_games,
            "error": self.error,
            "duration_ms": self.duration_ms,
        }


@dataclass
class ComparisonStage:
    success: bool
    result: Optional[ComparisonResult] = None
    error: Optional[str] = None
    duration_ms: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "success": self.success,
            "error": self.error,
            "duration_ms": self.duration_ms,
        }
        if self.result is not None:
            data.update(self.result.to_dict())
        return data


@dataclass
class PipelineResult:
    id: str
    timestamp: str
    status: PipelineStatus
    stage: PipelineStage
    config: PipelineConfig
    parsing: Optional[ParsingStage] = None
    odds_retrieval: Optional[OddsRetrievalStage] = None
    matching: Optional[MatchingStage] = None
    comparison: Optional[ComparisonStage] = None
    logs: Optional[List[str]] = None
    total_duration_ms: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "timestamp": self.timestamp,
            "status": self.status.value,
            "stage": self.stage.value,
            "config": self.config.to_dict(),
            "parsing": self.parsing.to_dict() if self.parsing else None,
            "odds_retrieval": self.odds_retrieval.to_dict() if self.odds_retrieval else None,
            "matching": self.matching.to_dict() if self.matching else None,
            "comparison": self.comparison.to_dict() if self.comparison else None,
            "logs": self.logs,
            "total_duration_ms": self.total_duration_ms,
        }


def _elapsed_ms(start: float) -> float:
    return round((time.perf_counter() - start) * 1000, 3)


class PipelineOrchestrator:
    """
    Coordinates a full line-check run.

    Status rules:
    - parse failure, no picksheet games, no market games or a zero match
      rate fail the run and raise PipelineError
    - odds retrieval failure, a low match rate or a comparison error
      downgrade the run to partial
    Every run, failed or not, is kept in the in-memory history.
    """

    def __init__(
        self,
        parser: Optional[PicksheetParser] = None,
        odds_provider: Optional[OddsProvider] = None,
        resolver: Optional[EntityResolver] = None,
        engine: Optional[ComparisonEngine] = None,
    ):
        self.parser = parser
        self.odds_provider = odds_provider
        self.resolver = resolver or EntityResolver()
        self.engine = engine or get_comparison_engine()
        self.settings = get_settings()

        self._results: Dict[str, PipelineResult] = {}
        self._logs: List[str] = []
        self._current_stage = PipelineStage.IDLE

    @property
    def current_stage(self) -> PipelineStage:
        return self._current_stage

    def run(
        self,
        pipeline_input: PipelineInput,
        config: Optional[PipelineConfig] = None,
    ) -> PipelineResult:
        """
        Execute the pipeline.

        Args:
            pipeline_input: Picksheet text or games, optional market games
            config: Run options

        Returns:
            The recorded PipelineResult

        Raises:
            PipelineError: when the run cannot produce a comparison (the
                failed result is attached and also kept in history)
        """
        config = config or PipelineConfig()
        pipeline_id = self._generate_pipeline_id()
        start = time.perf_counter()

        result = PipelineResult(
            id=pipeline_id,
            timestamp=datetime.now(timezone.utc).isoformat(),
            status=PipelineStatus.SUCCESS,
            stage=PipelineStage.INITIALIZING,
            config=config,
        )

        self._log(f"Starting pipeline {pipeline_id}")

        try:
            # Stage 1: parse picksheet text
            picksheet_games = pipeline_input.picksheet_games
            if pipeline_input.picksheet_text and not picksheet_games:
                result.parsing = self._parse_picksheet(pipeline_input.picksheet_text)
                if not result.parsing.success:
                    result.stage = PipelineStage.PARSING
                    raise PipelineError(result.parsing.error or "Parsing failed", result)
                picksheet_games = result.parsing.games

            if not picksheet_games:
                raise PipelineError("No picksheet games to process", result)
            picksheet_games = coerce_games(picksheet_games, RawGame)

            # Stage 2: retrieve market odds
            market_games = pipeline_input.market_games
            if config.use_odds_api and not market_games:
                result.odds_retrieval = self._retrieve_odds()
                if not result.odds_retrieval.success:
                    result.status = PipelineStatus.PARTIAL
                    result.stage = PipelineStage.ODDS_RETRIEVAL
                    self._log(
                        f"Odds retrieval failed: {result.odds_retrieval.error}",
                        logging.WARNING,
                    )
                else:
                    market_games = result.odds_retrieval.games

            if not market_games:
                raise PipelineError("No market games available for comparison", result)
            market_games = coerce_games(market_games, MarketGame)

            # Stage 3: match games
            result.matching = self._match_games(picksheet_games, market_games, config.match_threshold)
            if result.matching.match_rate == 0:
                result.stage = PipelineStage.MATCHING
                raise PipelineError(result.matching.error or "No games could be matched", result)
            if result.matching.match_rate < self.settings.low_match_rate_warning:
                result.status = PipelineStatus.PARTIAL
                self._log(
                    f"Low match rate: {result.matching.match_rate * 100:.1f}%",
                    logging.WARNING,
                )

            # Stage 4: compare spreads and calculate KPIs
            result.comparison = self._compare_games(
                picksheet_games, market_games, result.matching.candidates
            )
            if result.comparison.success:
                result.stage = PipelineStage.COMPLETED
            else:
                result.status = PipelineStatus.PARTIAL
                result.stage = PipelineStage.COMPARISON

            result.total_duration_ms = _elapsed_ms(start)
            self._log(f"Pipeline {pipeline_id} completed in {result.total_duration_ms:.1f}ms")
            if config.include_logs:
                result.logs = list(self._logs)
            self._results[pipeline_id] = result
            return result

        except Exception as e:
            result.status = PipelineStatus.FAILED
            result.total_duration_ms = _elapsed_ms(start)
            self._log(f"Pipeline {pipeline_id} failed: {e}", logging.ERROR)
            if config.include_logs:
                result.logs = list(self._logs)
            self._results[pipeline_id] = result
            raise
        finally:
            self._logs = []

    def _parse_picksheet(self, text: str) -> ParsingStage:
        start = time.perf_counter()
        self._current_stage = PipelineStage.PARSING
        self._log("Starting picksheet parsing")

        if self.parser is None:
            return ParsingStage(
                success=False,
                games_found=0,
                error="No picksheet parser configured",
                duration_ms=_elapsed_ms(start),
            )

        try:
            games = coerce_games(self.parser.parse(text) or [], RawGame)
        except Exception as e:
            logger.error(f"Picksheet parsing failed: {e}")
            return ParsingStage(
                success=False,
                games_found=0,
                error=str(e) or "Failed to parse picksheet",
                duration_ms=_elapsed_ms(start),
            )

        self._log(f"Parsed {len(games)} games from picksheet")
        return ParsingStage(
            success=True,
            games_found=len(games),
            games=games,
            duration_ms=_elapsed_ms(start),
        )

    def _retrieve_odds(self) -> OddsRetrievalStage:
        start = time.perf_counter()
        self._current_stage = PipelineStage.ODDS_RETRIEVAL
        self._log("Retrieving market odds")

        if self.odds_provider is None:
            return OddsRetrievalStage(
                success=False,
                nfl_games=0,
                ncaaf_games=0,
                error="No odds provider configured",
                duration_ms=_elapsed_ms(start),
            )

        try:
            games = coerce_games(self.odds_provider.get_market_games() or [], MarketGame)
        except Exception as e:
            logger.error(f"Odds retrieval failed: {e}")
            return OddsRetrievalStage(
                success=False,
                nfl_games=0,
                ncaaf_games=0,
                error=str(e) or "Unknown odds provider error",
                duration_ms=_elapsed_ms(start),
            )

        nfl = sum(1 for g in games if g.league == League.NFL)
        ncaaf = sum(1 for g in games if g.league == League.NCAAF)
        self._log(f"Retrieved {nfl} NFL and {ncaaf} NCAAF games")

        return OddsRetrievalStage(
            success=True,
            nfl_games=nfl,
            ncaaf_games=ncaaf,
            games=games,
            duration_ms=_elapsed_ms(start),
        )

    def _match_games(
        self,
        picksheet_games: List[RawGame],
        market_games: List[MarketGame],
        threshold: Optional[float],
    ) -> MatchingStage:
        start = time.perf_counter()
        self._current_stage = PipelineStage.MATCHING
        self._log("Matching games between picksheet and market")

        try:
            matcher = GameMatcher(resolver=self.resolver, match_threshold=threshold)
            candidates = matcher.match_games(picksheet_games, market_games)
        except Exception as e:
            logger.error(f"Game matching failed: {e}", exc_info=True)
            return MatchingStage(
                success=False,
                match_rate=0.0,
                total_games=len(picksheet_games),
                error=str(e) or "Unknown matching error",
                duration_ms=_elapsed_ms(start),
            )

        match_rate = len(candidates) / len(picksheet_games)
        self._log(
            f"Matched {len(candidates)} of {len(picksheet_games)} games ({match_rate * 100:.1f}%)"
        )

        return MatchingStage(
            success=True,
            match_rate=match_rate,
            total_games=len(picksheet_games),
            candidates=candidates,
            duration_ms=_elapsed_ms(start),
        )

    def _compare_games(
        self,
        picksheet_games: List[RawGame],
        market_games: List[MarketGame],
        candidates: List[GameMatchCandidate],
    ) -> ComparisonStage:
        start = time.perf_counter()
        self._current_stage = PipelineStage.COMPARISON
        self._log("Comparing games and calculating KPIs")

        try:
            comparison = self.engine.compare_games(picksheet_games, market_games, candidates)
        except Exception as e:
            logger.error(f"Comparison failed: {e}", exc_info=True)
            return ComparisonStage(
                success=False,
                error=str(e) or "Unknown comparison error",
                duration_ms=_elapsed_ms(start),
            )

        self._log(
            f"Calculated KPIs: avg delta {comparison.kpis.avg_spread_delta}, "
            f"key crossings {comparison.kpis.key_number_crossings}"
        )
        return ComparisonStage(success=True, result=comparison, duration_ms=_elapsed_ms(start))

    def get_result(self, pipeline_id: str) -> Optional[PipelineResult]:
        return self._results.get(pipeline_id)

    def get_all_results(self) -> List[PipelineResult]:
        """All recorded runs, newest first."""
        return list(reversed(list(self._results.values())))

    def clear_results(self) -> None:
        self._results.clear()
        logger.info("Cleared all pipeline results")

    def _log(self, message: str, level: int = logging.INFO) -> None:
        timestamp = datetime.now(timezone.utc).isoformat()
        self._logs.append(f"[{timestamp}] [{self._current_stage.value}] {message}")
        logger.log(level, message)

    @staticmethod
    def _generate_pipeline_id() -> str:
        return f"pipeline_{int(time.time() * 1000)}_{uuid.uuid4().hex[:9]}"


# Global orchestrator instance
_orchestrator = None


def get_pipeline_orchestrator() -> PipelineOrchestrator:
    """Get or create the shared orchestrator (no parser or odds provider attached)."""
    global _orchestrator
    if _orchestrator is None:
        _orchestrator = PipelineOrchestrator()
    return _orchestrator
