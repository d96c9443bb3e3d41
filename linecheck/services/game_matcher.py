"""
Game Matching Service

Pairs picksheet games with sportsbook market games by resolving all four
team names and accepting either home/away orientation.
"""
import logging
from typing import List, Dict, Any, Optional, Sequence, Union
from dataclasses import dataclass

from linecheck.config import get_settings
from linecheck.models import RawGame, MarketGame, coerce_games
from linecheck.services.entity_resolver import EntityResolver, CachedResolver

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GameMatchCandidate:
    """One selected pairing between a picksheet game and a market game."""
    picksheet_index: int
    market_index: int
    confidence: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "picksheet_index": self.picksheet_index,
            "market_index": self.market_index,
            "confidence": self.confidence,
        }


@dataclass(frozen=True)
class _Pairing:
    picksheet_index: int
    market_index: int
    confidence: float
    spread_distance: float
    swapped: bool

    @property
    def rank_key(self):
        # Higher confidence, then closer spread, then scan order
        return (-self.confidence, self.spread_distance, self.picksheet_index, self.market_index)


class GameMatcher:
    """
    Matches picksheet games to market games.

    A pairing qualifies when the resolved teams agree in the normal or the
    swapped orientation. Its confidence is the weakest of the four team
    resolutions, and it must reach the threshold.

    With one_to_one enabled (the default) a market game is claimed by at most
    one picksheet game: pairings are assigned greedily in rank order.
    Otherwise each picksheet game simply takes its best market game.

    The greedy pass is not a maximum matching: if p0 ranks m0 and m1
    equally and p1 can only take m0, p0 claims m0 and p1 stays unmatched.
    """

    def __init__(
        self,
        resolver: Optional[EntityResolver] = None,
        match_threshold: Optional[float] = None,
        one_to_one: Optional[bool] = None,
    ):
        settings = get_settings()
        self.resolver = resolver or EntityResolver()
        self.match_threshold = (
            match_threshold if match_threshold is not None else settings.match_threshold
        )
        self.one_to_one = one_to_one if one_to_one is not None else settings.one_to_one_matching
        self.last_cache: Optional[CachedResolver] = None

    def score_pair(
        self,
        picksheet_game: RawGame,
        market_game: MarketGame,
        resolver: Union[EntityResolver, CachedResolver, None] = None,
    ) -> Optional[float]:
        """
        Confidence that two records describe the same game, or None if the
        resolved teams disagree.
        """
        resolver = resolver or self.resolver
        pairing = self._pair(0, picksheet_game, 0, market_game, resolver)
        return pairing.confidence if pairing else None

    def _pair(
        self,
        p_idx: int,
        picksheet_game: RawGame,
        m_idx: int,
        market_game: MarketGame,
        resolver: Union[EntityResolver, CachedResolver],
    ) -> Optional[_Pairing]:
        home = resolver.match_team(picksheet_game.home_team, picksheet_game.league)
        away = resolver.match_team(picksheet_game.away_team, picksheet_game.league)
        market_home = resolver.match_team(market_game.home_team, market_game.league)
        market_away = resolver.match_team(market_game.away_team, market_game.league)

        normal = home.identity == market_home.identity and away.identity == market_away.identity
        swapped = home.identity == market_away.identity and away.identity == market_home.identity

        if not (normal or swapped):
            return None

        confidence = min(
            home.confidence,
            away.confidence,
            market_home.confidence,
            market_away.confidence,
        )

        return _Pairing(
            picksheet_index=p_idx,
            market_index=m_idx,
            confidence=confidence,
            spread_distance=abs(picksheet_game.spread - market_game.home_spread),
            swapped=swapped and not normal,
        )

    def match_games(
        self,
        picksheet_games: Sequence[Union[RawGame, Dict[str, Any]]],
        market_games: Sequence[Union[MarketGame, Dict[str, Any]]],
        threshold: Optional[float] = None,
    ) -> List[GameMatchCandidate]:
        """
        Match picksheet games against market games.

        Args:
            picksheet_games: Source games (records or dicts)
            market_games: Target games (records or dicts)
            threshold: Minimum confidence, defaults to the configured threshold

        Returns:
            At most one candidate per picksheet game, in picksheet order
        """
        picksheet_games = coerce_games(picksheet_games, RawGame)
        market_games = coerce_games(market_games, MarketGame)
        threshold = self.match_threshold if threshold is None else threshold

        cache = CachedResolver(self.resolver)
        self.last_cache = cache

        pairings: List[_Pairing] = []
        for p_idx, picksheet_game in enumerate(picksheet_games):
            for m_idx, market_game in enumerate(market_games):
                pairing = self._pair(p_idx, picksheet_game, m_idx, market_game, cache)
                if pairing is None:
                    continue
                if pairing.confidence < threshold:
                    logger.debug(
                        f"Rejected {picksheet_game.matchup} ~ {market_game.matchup}: "
                        f"confidence {pairing.confidence:.2f} < {threshold}"
                    )
                    continue
                pairings.append(pairing)

        pairings.sort(key=lambda p: p.rank_key)

        selected: Dict[int, _Pairing] = {}
        claimed_markets = set()
        for pairing in pairings:
            if pairing.picksheet_index in selected:
                continue
            if self.one_to_one and pairing.market_index in claimed_markets:
                continue
            selected[pairing.picksheet_index] = pairing
            claimed_markets.add(pairing.market_index)

        matches = [
            GameMatchCandidate(
                picksheet_index=p.picksheet_index,
                market_index=p.market_index,
                confidence=p.confidence,
            )
            for p in sorted(selected.values(), key=lambda p: p.picksheet_index)
        ]

        swapped = sum(1 for p in selected.values() if p.swapped)
        logger.info(
            f"Matched {len(matches)} of {len(picksheet_games)} picksheet games "
            f"against {len(market_games)} market games ({swapped} with home/away swapped, "
            f"{cache.misses} team resolutions, {cache.hits} cached)"
        )

        return matches


def get_game_matcher(match_threshold: Optional[float] = None) -> GameMatcher:
    """Factory function for the game matcher."""
    return GameMatcher(match_threshold=match_threshold)
