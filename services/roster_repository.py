"""
Roster Repository

SQLAlchemy-backed roster. Serves the engine as a RosterProvider and gives
the application player registration, editing and removal.
"""

import logging
from typing import Optional

from sqlalchemy import select
from sqlalchemy.orm import sessionmaker

from models.base import session_scope
from models.player import Player, Position
from models.schemas import PlayerCreate, PlayerUpdate
from engine.roster import PlayerSnapshot

logger = logging.getLogger(__name__)


def to_snapshot(player: Player) -> PlayerSnapshot:
    """Copy an ORM row into an immutable snapshot."""
    return PlayerSnapshot(
        id=player.id,
        name=player.name,
        positions=player.position_set,
        priority=player.priority,
        gender=player.gender,
        active=player.is_active,
    )


class RosterRepository:
    """
    Player storage.

    Every call opens its own short session and returns snapshots, never
    ORM rows, so callers cannot change the roster by accident.
    """

    def __init__(self, session_factory: sessionmaker):
        self._session_factory = session_factory

    # ============ RosterProvider ============

    def find_player(self, player_id: int) -> Optional[PlayerSnapshot]:
        with session_scope(self._session_factory) as session:
            player = session.get(Player, player_id)
            return to_snapshot(player) if player is not None else None

    def all_players(self) -> list[PlayerSnapshot]:
        with session_scope(self._session_factory) as session:
            rows = session.scalars(select(Player).order_by(Player.id)).all()
            return [to_snapshot(p) for p in rows]

    # ============ Roster Management ============

    def active_players(self) -> list[PlayerSnapshot]:
        return [p for p in self.all_players() if p.active]

    def add_player(self, data: PlayerCreate) -> PlayerSnapshot:
        """Register a new, active player."""
        with session_scope(self._session_factory) as session:
            player = Player.create(
                name=data.name,
                positions=data.positions,
                priority=data.priority,
                gender=data.gender,
            )
            session.add(player)
            session.flush()
            logger.info("Added player %s (%s)", player.id, player.name)
            return to_snapshot(player)

    def update_player(self, player_id: int, data: PlayerUpdate) -> Optional[PlayerSnapshot]:
        """
        Edit a player.

        Returns:
            The updated snapshot, or None if the player does not exist
        """
        with session_scope(self._session_factory) as session:
            player = session.get(Player, player_id)
            if player is None:
                return None
            changes = data.model_dump(exclude_unset=True)
            if "positions" in changes:
                changes["positions"] = [Position(p).value for p in changes["positions"]]
            for attr, value in changes.items():
                setattr(player, attr, value)
            session.flush()
            return to_snapshot(player)

    def set_active(self, player_ids: list[int], active: bool) -> int:
        """Activate or deactivate players. Returns how many rows changed."""
        with session_scope(self._session_factory) as session:
            players = session.scalars(select(Player).where(Player.id.in_(player_ids))).all()
            for player in players:
                player.is_active = active
            return len(players)

    def delete_players(self, player_ids: list[int]) -> int:
        """Remove players from the roster. Match history keeps its snapshots."""
        with session_scope(self._session_factory) as session:
            players = session.scalars(select(Player).where(Player.id.in_(player_ids))).all()
            for player in players:
                session.delete(player)
            logger.info("Deleted %d players", len(players))
            return len(players)
