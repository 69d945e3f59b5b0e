"""
Game modes and the archived match history table.
"""

import enum
from datetime import datetime
from typing import Optional

from sqlalchemy import String, BigInteger, DateTime, JSON, Enum as SAEnum
from sqlalchemy.orm import Mapped, mapped_column

from models.base import Base


class GameMode(enum.Enum):
    """Court formats. The value is the label shown to players."""
    FOUR_VS_FOUR = "4v4"
    SIX_VS_SIX = "6v6"

    @property
    def team_size(self) -> int:
        """Players on one side of the net."""
        return 6 if self is GameMode.SIX_VS_SIX else 4

    @property
    def players_needed(self) -> int:
        """Players needed to start a match from scratch."""
        return self.team_size * 2


class TeamSide(enum.Enum):
    """Which team of a match. Team A keeps the court after a rollover."""
    A = "A"
    B = "B"

    @property
    def other(self) -> "TeamSide":
        return TeamSide.B if self is TeamSide.A else TeamSide.A


class MatchRecord(Base):
    """
    A finished match, archived by end_match.

    Players are stored as snapshot dicts taken when they were drafted, so
    later roster edits never change the history.
    """
    __tablename__ = "matches"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)

    # Engine-assigned match id (millisecond timestamp)
    match_id: Mapped[int] = mapped_column(BigInteger, nullable=False, unique=True)
    game_mode: Mapped[GameMode] = mapped_column(SAEnum(GameMode), nullable=False, index=True)

    started_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    ended_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    winner: Mapped[Optional[TeamSide]] = mapped_column(SAEnum(TeamSide), nullable=True)

    team_a_name: Mapped[str] = mapped_column(String(100), nullable=False)
    team_b_name: Mapped[str] = mapped_column(String(100), nullable=False)
    team_a_players: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    team_b_players: Mapped[list] = mapped_column(JSON, nullable=False, default=list)

    def __repr__(self) -> str:
        winner = self.winner.value if self.winner else None
        return f"<MatchRecord(match_id={self.match_id}, mode={self.game_mode.value}, winner={winner})>"
