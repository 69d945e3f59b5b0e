"""
Pydantic schemas for data validation.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from models.player import Position, Priority, Gender
from models.match import GameMode, TeamSide
from models.settings import TeamFormationCriterion
from config import ROTATION_SETTINGS


DEFAULT_PRIORITY_ORDER = [
    TeamFormationCriterion(c) for c in ROTATION_SETTINGS.default_priority_order
]


def _dedupe_positions(v: list[Position]) -> list[Position]:
    seen: list[Position] = []
    for position in v:
        if position not in seen:
            seen.append(position)
    return seen


# ============ Player Schemas ============

class PlayerCreate(BaseModel):
    """Schema for registering a new player."""
    name: str = Field(..., min_length=1, max_length=200)
    positions: list[Position] = Field(..., min_length=1)
    priority: Priority = Priority.MEMBER
    gender: Gender

    @field_validator("name")
    @classmethod
    def name_not_empty(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Name cannot be empty")
        return v.strip()

    @field_validator("positions")
    @classmethod
    def unique_positions(cls, v: list[Position]) -> list[Position]:
        return _dedupe_positions(v)


class PlayerUpdate(BaseModel):
    """Schema for editing a player. Omitted fields are left unchanged."""
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    positions: Optional[list[Position]] = Field(None, min_length=1)
    priority: Optional[Priority] = None
    gender: Optional[Gender] = None
    is_active: Optional[bool] = None

    @field_validator("name")
    @classmethod
    def name_not_empty(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        if not v.strip():
            raise ValueError("Name cannot be empty")
        return v.strip()

    @field_validator("positions")
    @classmethod
    def unique_positions(cls, v: Optional[list[Position]]) -> Optional[list[Position]]:
        if v is None:
            return v
        return _dedupe_positions(v)


# ============ Settings Schemas ============

class GameSettings(BaseModel):
    """
    User-configurable game settings.

    team_formation_priority may hold fewer than three criteria; missing
    criteria are simply never applied when ranking players.
    """
    default_game_mode: GameMode = GameMode(ROTATION_SETTINGS.default_game_mode)
    team_formation_priority: list[TeamFormationCriterion] = Field(
        default_factory=lambda: list(DEFAULT_PRIORITY_ORDER)
    )

    @field_validator("team_formation_priority")
    @classmethod
    def no_repeated_criteria(cls, v: list[TeamFormationCriterion]) -> list[TeamFormationCriterion]:
        if len(set(v)) != len(v):
            raise ValueError("Each team formation criterion can appear only once")
        return v


# ============ Match Schemas ============

class MatchSummary(BaseModel):
    """Read model of an archived match."""
    match_id: int
    game_mode: GameMode
    started_at: datetime
    ended_at: Optional[datetime]
    winner: Optional[TeamSide]
    team_a_name: str
    team_b_name: str
    team_a_players: list[dict]
    team_b_players: list[dict]

    class Config:
        from_attributes = True
