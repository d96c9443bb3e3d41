"""
Game records handed to the matching core.

Picksheet games come from the text-extraction collaborator, market games from
the odds provider. Both are validated on construction so malformed records
fail at the boundary instead of deep inside matching.
"""
from typing import Any, Dict, Iterable, List, Optional, Type, TypeVar, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from linecheck.models.league import League


class _GameRecord(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True, allow_inf_nan=False)

    home_team: str = Field(validation_alias=AliasChoices("home_team", "homeTeam"))
    away_team: str = Field(validation_alias=AliasChoices("away_team", "awayTeam"))
    league: Optional[League] = None

    @field_validator("home_team", "away_team")
    @classmethod
    def _team_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("team name must not be blank")
        return value

    @field_validator("league", mode="before")
    @classmethod
    def _league_upper(cls, value: Any) -> Any:
        if isinstance(value, str):
            value = value.strip().upper()
            return value or None
        return value

    @property
    def matchup(self) -> str:
        return f"{self.away_team} @ {self.home_team}"


class RawGame(_GameRecord):
    """A game as listed on a picksheet. ``spread`` is the home team's signed spread."""
    spread: float = Field(validation_alias=AliasChoices("spread", "homeSpread", "home_spread"))
    away_spread: Optional[float] = Field(
        default=None, validation_alias=AliasChoices("away_spread", "awaySpread")
    )
    over_under: Optional[float] = Field(
        default=None, validation_alias=AliasChoices("over_under", "overUnder")
    )
    game_time: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("game_time", "gameTime", "gameDate", "game_date")
    )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "home_team": self.home_team,
            "away_team": self.away_team,
            "spread": self.spread,
            "away_spread": self.away_spread,
            "over_under": self.over_under,
            "game_time": self.game_time,
            "league": self.league.value if self.league else None,
        }


class MarketGame(_GameRecord):
    """A game from the sportsbook feed with the home team's signed spread."""
    game_id: str = Field(validation_alias=AliasChoices("game_id", "gameId", "id"))
    home_spread: float = Field(validation_alias=AliasChoices("home_spread", "homeSpread"))
    game_time: str = Field(validation_alias=AliasChoices("game_time", "gameTime", "commence_time"))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "game_id": self.game_id,
            "home_team": self.home_team,
            "away_team": self.away_team,
            "home_spread": self.home_spread,
            "game_time": self.game_time,
            "league": self.league.value if self.league else None,
        }


GameT = TypeVar("GameT", RawGame, MarketGame)


def coerce_games(
    games: Iterable[Union[GameT, Dict[str, Any]]],
    model: Type[GameT],
) -> List[GameT]:
    """Validate a list of dicts (or already-built records) into ``model`` instances."""
    return [g if isinstance(g, model) else model.model_validate(g) for g in games]
