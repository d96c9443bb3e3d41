"""
Spread Comparison Service

Compares matched picksheet/market games and rolls the results up into
run-level KPIs that flag risky lines for pool organizers.
"""
import math
import logging
from decimal import Decimal, ROUND_HALF_UP
from typing import List, Dict, Any, Optional, Sequence, Tuple, Union
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum

from linecheck.models import League, RawGame, MarketGame, coerce_games
from linecheck.services.game_matcher import GameMatchCandidate
from linecheck.services.team_directory import TeamDirectory, get_team_directory

logger = logging.getLogger(__name__)

# Most common margins of victory in football
KEY_NUMBERS = (3, 7, 10, 14)


class UnmatchedSource(str, Enum):
    """Which side a game that found no partner came from."""
    PICKSHEET = "picksheet"
    MARKET = "market"


class RiskLevel(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


@dataclass(frozen=True)
class GameComparison:
    """Picksheet line vs market line for one matched game."""
    game_id: str
    home_team: str
    away_team: str
    game_time: str
    league: Optional[League]
    picksheet_spread: float
    market_spread: float
    spread_delta: float  # picksheet - market
    crosses_key_number: bool
    key_numbers_crossed: Tuple[int, ...]
    favorite_flipped: bool
    confidence: float
    matched: bool = True

    @property
    def teams(self) -> str:
        return f"{self.away_team} @ {self.home_team}"

    @property
    def risk_level(self) -> "RiskLevel":
        return ComparisonEngine.get_risk_level(self.spread_delta)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "game_id": self.game_id,
            "home_team": self.home_team,
            "away_team": self.away_team,
            "game_time": self.game_time,
            "league": self.league.value if self.league else None,
            "picksheet_spread": self.picksheet_spread,
            "market_spread": self.market_spread,
            "spread_delta": self.spread_delta,
            "crosses_key_number": self.crosses_key_number,
            "key_numbers_crossed": list(self.key_numbers_crossed),
            "favorite_flipped": self.favorite_flipped,
            "confidence": self.confidence,
            "matched": self.matched,
            "risk_level": self.risk_level.value,
        }


@dataclass(frozen=True)
class LargestDelta:
    game_id: str
    teams: str
    delta: float

    def to_dict(self) -> Dict[str, Any]:
        return {"game_id": self.game_id, "teams": self.teams, "delta": self.delta}


@dataclass(frozen=True)
class ComparisonKPIs:
    """Aggregate statistics for one comparison run."""
    total_games: int
    matched_games: int
    unmatched_games: int
    match_rate: float
    avg_spread_delta: float
    median_spread_delta: float
    p95_spread_delta: float  # 95th percentile
    std_dev_spread_delta: float
    key_number_crossings: int
    key_number_crossing_rate: float
    favorite_flips: int
    favorite_flip_rate: float
    largest_delta: Optional[LargestDelta]
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total_games": self.total_games,
            "matched_games": self.matched_games,
            "unmatched_games": self.unmatched_games,
            "match_rate": self.match_rate,
            "avg_spread_delta": self.avg_spread_delta,
            "median_spread_delta": self.median_spread_delta,
            "p95_spread_delta": self.p95_spread_delta,
            "std_dev_spread_delta": self.std_dev_spread_delta,
            "key_number_crossings": self.key_number_crossings,
            "key_number_crossing_rate": self.key_number_crossing_rate,
            "favorite_flips": self.favorite_flips,
            "favorite_flip_rate": self.favorite_flip_rate,
            "largest_delta": self.largest_delta.to_dict() if self.largest_delta else None,
            "timestamp": self.timestamp.isoformat(),
        }


@dataclass(frozen=True)
class UnmatchedGame:
    source: UnmatchedSource
    game_info: str
    reason: str
    game_time: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "source": self.source.value,
            "game_info": self.game_info,
            "reason": self.reason,
            "game_time": self.game_time,
        }


@dataclass(frozen=True)
class ComparisonResult:
    comparisons: List[GameComparison]
    kpis: ComparisonKPIs
    unmatched: List[UnmatchedGame]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "comparisons": [c.to_dict() for c in self.comparisons],
            "kpis": self.kpis.to_dict(),
            "unmatched": [u.to_dict() for u in self.unmatched],
        }


class ComparisonEngine:
    """
    Computes per-game line differences and run-level KPIs.

    Key concepts:
    - spread_delta is picksheet minus market, both from the home team's side
    - A key number is crossed when the two lines sit on opposite sides of it
    - The favorite flips when one line favors the home team and the other doesn't
    """

    def __init__(self, directory: Optional[TeamDirectory] = None):
        self.directory = directory or get_team_directory()

    @staticmethod
    def calculate_spread_delta(picksheet_spread: float, market_spread: float) -> float:
        return picksheet_spread - market_spread

    @staticmethod
    def check_key_number_crossing(
        picksheet_spread: float,
        market_spread: float,
    ) -> Tuple[bool, Tuple[int, ...]]:
        """Return (crosses, key numbers crossed); each k is checked at +k then -k."""
        crossed: List[int] = []

        for key_number in KEY_NUMBERS:
            for k in (key_number, -key_number):
                if (picksheet_spread > k and market_spread < k) or (
                    picksheet_spread < k and market_spread > k
                ):
                    crossed.append(k)

        return bool(crossed), tuple(crossed)

    @staticmethod
    def check_favorite_flip(picksheet_spread: float, market_spread: float) -> bool:
        return (picksheet_spread > 0 and market_spread < 0) or (
            picksheet_spread < 0 and market_spread > 0
        )

    def detect_league(self, home_team: str, away_team: str) -> League:
        """
        Infer the league from team names via the team directory.

        Any NFL hit wins; anything else is treated as NCAAF.
        """
        leagues = {self.directory.league_of(home_team), self.directory.league_of(away_team)}
        if League.NFL in leagues:
            return League.NFL
        return League.NCAAF

    def compare_game(
        self,
        picksheet_game: RawGame,
        market_game: MarketGame,
        match_confidence: float = 1.0,
    ) -> GameComparison:
        """Compare a single matched game."""
        picksheet_spread = picksheet_game.spread
        market_spread = market_game.home_spread

        crosses, crossed = self.check_key_number_crossing(picksheet_spread, market_spread)

        league = market_game.league or self.detect_league(
            market_game.home_team, market_game.away_team
        )

        return GameComparison(
            game_id=market_game.game_id,
            home_team=market_game.home_team,
            away_team=market_game.away_team,
            game_time=market_game.game_time,
            league=league,
            picksheet_spread=picksheet_spread,
            market_spread=market_spread,
            spread_delta=self.calculate_spread_delta(picksheet_spread, market_spread),
            crosses_key_number=crosses,
            key_numbers_crossed=crossed,
            favorite_flipped=self.check_favorite_flip(picksheet_spread, market_spread),
            confidence=match_confidence,
        )

    def compare_games(
        self,
        picksheet_games: Sequence[Union[RawGame, Dict[str, Any]]],
        market_games: Sequence[Union[MarketGame, Dict[str, Any]]],
        matches: Sequence[Union[GameMatchCandidate, Dict[str, Any]]],
    ) -> ComparisonResult:
        """
        Compare every matched pair and account for the games left over.

        Args:
            picksheet_games: Source games
            market_games: Market games
            matches: Pairings from the game matcher

        Returns:
            Comparisons, KPIs and the unmatched games from both sides
        """
        picksheet_games = coerce_games(picksheet_games, RawGame)
        market_games = coerce_games(market_games, MarketGame)

        comparisons: List[GameComparison] = []
        unmatched_picksheet = set(range(len(picksheet_games)))
        unmatched_market = set(range(len(market_games)))
        seen_picksheet = set()

        for match in matches:
            if isinstance(match, dict):
                match = GameMatchCandidate(**match)

            if not (0 <= match.picksheet_index < len(picksheet_games)) or not (
                0 <= match.market_index < len(market_games)
            ):
                logger.warning(f"Skipping match with out-of-range indices: {match}")
                continue

            if match.picksheet_index in seen_picksheet:
                logger.warning(f"Skipping repeated match for picksheet game {match.picksheet_index}: {match}")
                continue
            seen_picksheet.add(match.picksheet_index)

            comparisons.append(self.compare_game(
                picksheet_games[match.picksheet_index],
                market_games[match.market_index],
                match.confidence,
            ))
            unmatched_picksheet.discard(match.picksheet_index)
            unmatched_market.discard(match.market_index)

        unmatched: List[UnmatchedGame] = []

        for idx in sorted(unmatched_picksheet):
            game = picksheet_games[idx]
            unmatched.append(UnmatchedGame(
                source=UnmatchedSource.PICKSHEET,
                game_info=f"{game.away_team} @ {game.home_team} ({_format_number(game.spread)})",
                reason="No matching market game found",
                game_time=game.game_time,
            ))

        for idx in sorted(unmatched_market):
            game = market_games[idx]
            unmatched.append(UnmatchedGame(
                source=UnmatchedSource.MARKET,
                game_info=f"{game.away_team} @ {game.home_team} ({_format_number(game.home_spread)})",
                reason="No matching picksheet game found",
                game_time=game.game_time,
            ))

        kpis = self.calculate_kpis(
            comparisons,
            total_picksheet_games=len(picksheet_games),
            unmatched_picksheet_games=len(unmatched_picksheet),
        )

        logger.info(
            f"Compared {kpis.matched_games} games: avg delta {kpis.avg_spread_delta}, "
            f"{kpis.key_number_crossings} key number crossings, {kpis.favorite_flips} favorite flips, "
            f"{len(unmatched)} unmatched"
        )

        return ComparisonResult(comparisons=comparisons, kpis=kpis, unmatched=unmatched)

    def calculate_kpis(
        self,
        comparisons: Sequence[GameComparison],
        total_picksheet_games: int,
        unmatched_picksheet_games: int,
    ) -> ComparisonKPIs:
        """
        Aggregate statistics over absolute spread deltas.

        Median takes the element at n // 2 of the sorted deltas (no
        interpolation); p95 takes floor(n * 0.95) clamped to the last index;
        standard deviation is the population form.
        """
        matched_games = len(comparisons)

        if matched_games == 0:
            return ComparisonKPIs(
                total_games=total_picksheet_games,
                matched_games=0,
                unmatched_games=unmatched_picksheet_games,
                match_rate=0.0,
                avg_spread_delta=0.0,
                median_spread_delta=0.0,
                p95_spread_delta=0.0,
                std_dev_spread_delta=0.0,
                key_number_crossings=0,
                key_number_crossing_rate=0.0,
                favorite_flips=0,
                favorite_flip_rate=0.0,
                largest_delta=None,
            )

        deltas = [abs(c.spread_delta) for c in comparisons]
        sorted_deltas = sorted(deltas)

        avg_delta = sum(deltas) / matched_games
        median_delta = sorted_deltas[matched_games // 2]
        p95_delta = sorted_deltas[min(math.floor(matched_games * 0.95), matched_games - 1)]
        variance = sum((d - avg_delta) ** 2 for d in deltas) / matched_games
        std_dev = math.sqrt(variance)

        crossings = sum(1 for c in comparisons if c.crosses_key_number)
        flips = sum(1 for c in comparisons if c.favorite_flipped)

        largest = comparisons[0]
        for comparison in comparisons[1:]:
            if abs(comparison.spread_delta) > abs(largest.spread_delta):
                largest = comparison

        match_rate = matched_games / total_picksheet_games if total_picksheet_games else 0.0

        return ComparisonKPIs(
            total_games=total_picksheet_games,
            matched_games=matched_games,
            unmatched_games=unmatched_picksheet_games,
            match_rate=_round_half_up(match_rate, 3),
            avg_spread_delta=_round_half_up(avg_delta, 2),
            median_spread_delta=_round_half_up(median_delta, 2),
            p95_spread_delta=_round_half_up(p95_delta, 2),
            std_dev_spread_delta=_round_half_up(std_dev, 2),
            key_number_crossings=crossings,
            key_number_crossing_rate=_round_half_up(crossings / matched_games, 3),
            favorite_flips=flips,
            favorite_flip_rate=_round_half_up(flips / matched_games, 3),
            largest_delta=LargestDelta(
                game_id=largest.game_id,
                teams=largest.teams,
                delta=largest.spread_delta,
            ),
        )

    @staticmethod
    def format_spread(team: str, spread: float) -> str:
        """Display form, e.g. 'DAL -3.5', 'PHI +7', 'NYG PK'."""
        if spread == 0:
            return f"{team} PK"
        sign = "+" if spread > 0 else ""
        return f"{team} {sign}{_format_number(spread)}"

    @staticmethod
    def get_risk_level(delta: float) -> RiskLevel:
        abs_delta = abs(delta)
        if abs_delta <= 2:
            return RiskLevel.LOW
        if abs_delta <= 4:
            return RiskLevel.MEDIUM
        if abs_delta <= 7:
            return RiskLevel.HIGH
        return RiskLevel.CRITICAL


def _round_half_up(value: float, places: int) -> float:
    """Round halves away from zero using the exact binary value of the float."""
    quantum = Decimal(1).scaleb(-places)
    return float(Decimal(value).quantize(quantum, rounding=ROUND_HALF_UP))


def _format_number(value: float) -> str:
    """Render whole-number spreads without a trailing '.0'."""
    return str(int(value)) if float(value).is_integer() else str(value)


# Shared engine instance
_engine = None


def get_comparison_engine() -> ComparisonEngine:
    """Get or create the shared comparison engine."""
    global _engine
    if _engine is None:
        _engine = ComparisonEngine()
    return _engine
