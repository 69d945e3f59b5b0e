"""
Player model for the session roster.
"""

import enum
from typing import Iterable

from sqlalchemy import String, JSON, Enum as SAEnum
from sqlalchemy.orm import Mapped, mapped_column

from models.base import Base


class Position(enum.Enum):
    """Court roles a player can cover. A player may hold several."""
    SETTER = "Levantador"
    ATTACKER = "Ataque"
    DEFENDER = "Defesa"


class Priority(enum.Enum):
    """Membership class. Members have precedence over visitors."""
    MEMBER = "Mensalista"
    VISITOR = "Visitante"


class Gender(enum.Enum):
    MALE = "Masculino"
    FEMALE = "Feminino"


class Player(Base):
    """
    A registered player.

    Players are referenced by id in the waiting queue and copied by value
    into match records once they are drafted onto a team.
    """
    __tablename__ = "players"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False, index=True)

    # Position values, e.g. ["Levantador", "Ataque"]
    positions: Mapped[list] = mapped_column(JSON, nullable=False, default=list)

    priority: Mapped[Priority] = mapped_column(SAEnum(Priority), nullable=False)
    gender: Mapped[Gender] = mapped_column(SAEnum(Gender), nullable=False)

    # Inactive players stay in the roster but cannot be queued
    is_active: Mapped[bool] = mapped_column(default=True)

    def __repr__(self) -> str:
        return f"<Player(id={self.id}, name='{self.name}', active={self.is_active})>"

    @property
    def position_set(self) -> frozenset[Position]:
        return frozenset(Position(value) for value in self.positions)

    @classmethod
    def create(cls, name: str, positions: Iterable[Position], priority: Priority,
               gender: Gender) -> "Player":
        """Factory method to create an active player."""
        return cls(
            name=name,
            positions=[p.value for p in positions],
            priority=priority,
            gender=gender,
            is_active=True,
        )
