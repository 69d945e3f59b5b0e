"""
Game settings and key/value session snapshots.
"""

import enum
from datetime import datetime, timezone

from sqlalchemy import String, DateTime, JSON, Enum as SAEnum
from sqlalchemy.orm import Mapped, mapped_column

from models.base import Base
from models.match import GameMode


class TeamFormationCriterion(enum.Enum):
    """Balancing criteria used to rank players when forming teams."""
    PRIORITY = "priority"
    SETTER = "setter"
    GENDER = "gender"


class GameSettingsRecord(Base):
    """Single-row table with the user's game settings."""
    __tablename__ = "game_settings"

    id: Mapped[int] = mapped_column(primary_key=True, default=1)
    default_game_mode: Mapped[GameMode] = mapped_column(
        SAEnum(GameMode),
        default=GameMode.SIX_VS_SIX
    )

    # Criterion values, first = highest precedence
    team_formation_priority: Mapped[list] = mapped_column(JSON, nullable=False, default=list)

    def __repr__(self) -> str:
        return (f"<GameSettingsRecord(mode={self.default_game_mode.value}, "
                f"priority={self.team_formation_priority})>")


class StoredValue(Base):
    """
    Opaque snapshot of one piece of session state (queue, current match,
    present players), stored as JSON under a fixed key.
    """
    __tablename__ = "stored_values"

    key: Mapped[str] = mapped_column(String(64), primary_key=True)
    value: Mapped[object] = mapped_column(JSON, nullable=True)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    def __repr__(self) -> str:
        return f"<StoredValue(key='{self.key}')>"
