"""
Team Entity Resolution Service

Resolves free-text team names from picksheets and sportsbook feeds to
canonical NFL/NCAAF identities using exact, alias and fuzzy matching.
"""
import re
import logging
from typing import List, Dict, Any, Optional, Tuple, Union, Iterable
from dataclasses import dataclass
from enum import Enum

from rapidfuzz import fuzz, process, utils

from linecheck.config import get_settings
from linecheck.models.league import League
from linecheck.services.team_directory import (
    STATE_SCHOOL_TOKENS,
    TeamDirectory,
    get_team_directory,
    normalize_team_name,
)

logger = logging.getLogger(__name__)

LeagueLike = Union[League, str, None]


class MatchMethod(str, Enum):
    """How a team name was resolved."""
    EXACT = "exact"
    ALIAS = "alias"
    FUZZY = "fuzzy"
    LLM = "llm"  # Reserved for externally verified matches


@dataclass(frozen=True)
class TeamCandidate:
    """A ranked fuzzy candidate."""
    name: str
    score: float

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "score": self.score}


@dataclass(frozen=True)
class TeamMatch:
    """Result of resolving one team name."""
    original_name: str
    matched_name: str
    confidence: float  # 0-1
    league: League
    method: MatchMethod
    candidates: Optional[Tuple[TeamCandidate, ...]] = None

    @property
    def identity(self) -> str:
        """Key used to compare resolved teams."""
        return self.matched_name.casefold()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "original_name": self.original_name,
            "matched_name": self.matched_name,
            "confidence": self.confidence,
            "league": self.league.value,
            "method": self.method.value,
            "candidates": [c.to_dict() for c in self.candidates] if self.candidates else None,
        }


@dataclass(frozen=True)
class GameMatch:
    """Both teams of a single game resolved together."""
    home_team: TeamMatch
    away_team: TeamMatch
    overall_confidence: float
    needs_verification: bool

    def to_dict(self) -> Dict[str, Any]:
        return {
            "home_team": self.home_team.to_dict(),
            "away_team": self.away_team.to_dict(),
            "overall_confidence": self.overall_confidence,
            "needs_verification": self.needs_verification,
        }


def _to_league(league: LeagueLike) -> Optional[League]:
    if league is None or league == "":
        return None
    if isinstance(league, League):
        return league
    return League(str(league).strip().upper())


def weighted_ratio(s1: str, s2: str, **kwargs) -> float:
    """
    Team-name similarity on a 0-100 scale.

    Half plain ratio, the rest split between token sort and token set.
    """
    standard = fuzz.ratio(s1, s2)
    token_sort = fuzz.token_sort_ratio(s1, s2)
    token_set = fuzz.token_set_ratio(s1, s2)
    return standard * 0.5 + token_sort * 0.3 + token_set * 0.2


class EntityResolver:
    """
    Resolves team names to canonical identities.

    Resolution order for match_team():
    1. NFL exact/alias (unless the league is explicitly NCAAF)
    2. NCAAF exact/alias then fuzzy (if NCAAF or the name looks collegiate)
    3. NFL fuzzy (unless explicitly NCAAF)
    4. Collegiate-looking names pass through at 0.7
    5. NCAAF exact/alias then fuzzy, for college names the heuristic missed
    6. Unresolved: original name at 0.3

    Never raises for an unknown name; confidence degrades instead.
    """

    EXACT_CONFIDENCE = 1.0
    ALIAS_CONFIDENCE = 0.95
    LIKELY_COLLEGE_CONFIDENCE = 0.7
    UNRESOLVED_CONFIDENCE = 0.3

    # Per-team floor used when flagging games for manual review
    MIN_TEAM_CONFIDENCE = 0.6

    RANK_PATTERN = re.compile(r"^#\d+\s*")
    TOKEN_PATTERN = re.compile(r"[\w&]+")

    def __init__(
        self,
        directory: Optional[TeamDirectory] = None,
        fuzzy_min_score: Optional[float] = None,
        fuzzy_confidence_scale: Optional[float] = None,
        candidate_limit: Optional[int] = None,
        verification_threshold: Optional[float] = None,
    ):
        settings = get_settings()
        self.directory = directory or get_team_directory()
        self.fuzzy_min_score = (
            fuzzy_min_score if fuzzy_min_score is not None else settings.fuzzy_min_score
        )
        self.fuzzy_confidence_scale = (
            fuzzy_confidence_scale if fuzzy_confidence_scale is not None
            else settings.fuzzy_confidence_scale
        )
        self.candidate_limit = (
            candidate_limit if candidate_limit is not None else settings.fuzzy_candidate_limit
        )
        self.verification_threshold = (
            verification_threshold if verification_threshold is not None
            else settings.verification_threshold
        )

        # Flattened search keys per league, in catalog order
        self._search_keys: Dict[League, Tuple[Tuple[str, str], ...]] = {
            league: tuple(self.directory.search_keys(league))
            for league in self.directory.leagues
        }

    def normalize_team_name(self, name: str) -> str:
        return normalize_team_name(name)

    def strip_rank(self, name: str) -> str:
        """Drop a leading ranking marker such as '#11 '."""
        return self.RANK_PATTERN.sub("", name.strip())

    def find_exact(self, team_name: str, league: League) -> Optional[TeamMatch]:
        """
        Exact canonical-name or alias match within one league.

        College lookups also try the name with its ranking removed.
        """
        forms = [team_name]
        if league == League.NCAAF:
            clean = self.strip_rank(team_name)
            if clean != team_name:
                forms.append(clean)

        for form in forms:
            found = self.directory.lookup(form, league)
            if found:
                canonical, is_alias = found
                return TeamMatch(
                    original_name=team_name,
                    matched_name=canonical,
                    confidence=self.ALIAS_CONFIDENCE if is_alias else self.EXACT_CONFIDENCE,
                    league=league,
                    method=MatchMethod.ALIAS if is_alias else MatchMethod.EXACT,
                )

        return None

    def find_fuzzy(self, team_name: str, league: League) -> Optional[TeamMatch]:
        """
        Fuzzy match against every canonical name and alias of a league.

        Accepts only when the best team scores above fuzzy_min_score; the
        reported confidence is scaled down so fuzzy never outranks alias.
        """
        query = self.strip_rank(team_name) if league == League.NCAAF else team_name.strip()
        if not utils.default_process(query):
            return None

        keys = self._search_keys.get(league, ())
        results = process.extract(
            query,
            [text for text, _ in keys],
            scorer=weighted_ratio,
            processor=utils.default_process,
            limit=None,
        )

        # Best score per team; equal scores keep catalog order
        best_by_team: Dict[str, Tuple[float, int]] = {}
        for _, score, index in sorted(results, key=lambda r: (-r[1], r[2])):
            canonical = keys[index][1]
            if canonical not in best_by_team:
                best_by_team[canonical] = (score / 100, index)

        if not best_by_team:
            return None

        ranked = sorted(best_by_team.items(), key=lambda item: (-item[1][0], item[1][1]))
        top_name, (top_score, _) = ranked[0]

        if top_score <= self.fuzzy_min_score:
            logger.debug(f"No fuzzy {league.value} match for '{team_name}' (best {top_name} @ {top_score:.2f})")
            return None

        return TeamMatch(
            original_name=team_name,
            matched_name=top_name,
            confidence=top_score * self.fuzzy_confidence_scale,
            league=league,
            method=MatchMethod.FUZZY,
            candidates=tuple(
                TeamCandidate(name=name, score=score)
                for name, (score, _) in ranked[:self.candidate_limit]
            ),
        )

    def is_likely_ncaa(self, team_name: str) -> bool:
        """Heuristic: does the name look like a college program?"""
        name = team_name.strip()
        lowered = name.lower()

        # State school patterns
        if any(token.lower() in lowered for token in STATE_SCHOOL_TOKENS):
            return True

        # Known short abbreviations (UGA, LSU, TCU...)
        abbreviations = self.directory.abbreviations(League.NCAAF)
        if any(token in abbreviations for token in self.TOKEN_PATTERN.findall(lowered)):
            return True

        # Rankings only appear on college teams
        if self.RANK_PATTERN.match(name):
            return True

        return False

    def match_team(self, team_name: str, league: LeagueLike = None) -> TeamMatch:
        """
        Match a single team name.

        Args:
            team_name: Raw team reference (nickname, city, abbreviation, ranked name)
            league: Optional league hint; NCAAF skips the NFL catalog entirely

        Returns:
            Best-effort TeamMatch (confidence 0.3 when unresolved)
        """
        if not isinstance(team_name, str) or not team_name.strip():
            raise ValueError("team_name must be a non-empty string")

        league = _to_league(league)
        explicit_ncaaf = league == League.NCAAF
        likely_ncaa = self.is_likely_ncaa(team_name)

        if not explicit_ncaaf:
            match = self.find_exact(team_name, League.NFL)
            if match:
                return match

        if explicit_ncaaf or likely_ncaa:
            match = self.find_exact(team_name, League.NCAAF) or self.find_fuzzy(team_name, League.NCAAF)
            if match:
                return match

        if not explicit_ncaaf:
            match = self.find_fuzzy(team_name, League.NFL)
            if match:
                return match

        if likely_ncaa:
            return TeamMatch(
                original_name=team_name,
                matched_name=self.strip_rank(team_name),
                confidence=self.LIKELY_COLLEGE_CONFIDENCE,
                league=League.NCAAF,
                method=MatchMethod.FUZZY,
            )

        if not explicit_ncaaf:
            match = self.find_exact(team_name, League.NCAAF) or self.find_fuzzy(team_name, League.NCAAF)
            if match:
                return match

        logger.debug(f"Could not resolve team '{team_name}'")
        return TeamMatch(
            original_name=team_name,
            matched_name=team_name,
            confidence=self.UNRESOLVED_CONFIDENCE,
            league=league or League.NFL,
            method=MatchMethod.FUZZY,
        )

    def match_game(self, home_team: str, away_team: str, league: LeagueLike = None) -> GameMatch:
        """Resolve both teams of a game and flag it for review when either side is weak."""
        home = self.match_team(home_team, league)
        away = self.match_team(away_team, league)

        overall = (home.confidence + away.confidence) / 2
        needs_verification = (
            overall < self.verification_threshold
            or home.confidence < self.MIN_TEAM_CONFIDENCE
            or away.confidence < self.MIN_TEAM_CONFIDENCE
        )

        return GameMatch(
            home_team=home,
            away_team=away,
            overall_confidence=overall,
            needs_verification=needs_verification,
        )

    def match_teams(self, team_names: Iterable[str], league: LeagueLike = None) -> List[TeamMatch]:
        return [self.match_team(name, league) for name in team_names]

    @staticmethod
    def summarize_matches(matches: List[TeamMatch]) -> Dict[str, int]:
        """Bucket resolved teams by confidence."""
        return {
            "total": len(matches),
            "high_confidence": sum(1 for m in matches if m.confidence >= 0.8),
            "medium_confidence": sum(1 for m in matches if 0.6 <= m.confidence < 0.8),
            "low_confidence": sum(1 for m in matches if m.confidence < 0.6),
        }


class CachedResolver:
    """
    Memoizing front for EntityResolver, scoped to one matching run.

    Keyed by the raw name and league hint. calls/hits/misses are public
    so callers can check how much work a run actually did.
    """

    def __init__(self, resolver: EntityResolver):
        self.resolver = resolver
        self._cache: Dict[Tuple[str, Optional[League]], TeamMatch] = {}
        self.calls = 0
        self.hits = 0

    @property
    def misses(self) -> int:
        return self.calls - self.hits

    def match_team(self, team_name: str, league: LeagueLike = None) -> TeamMatch:
        self.calls += 1
        key = (team_name, _to_league(league))
        cached = self._cache.get(key)
        if cached is not None:
            self.hits += 1
            return cached

        match = self.resolver.match_team(team_name, key[1])
        self._cache[key] = match
        return match

    def clear(self) -> None:
        self._cache.clear()
        self.calls = 0
        self.hits = 0

    def __len__(self) -> int:
        return len(self._cache)
