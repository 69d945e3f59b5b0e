"""
Roster access for the rotation engine.

The engine never holds live roster rows. It reads players by id through a
RosterProvider and works with PlayerSnapshot value copies, so a match keeps
the players exactly as they were when drafted.
"""

import logging
from dataclasses import dataclass, replace
from typing import Iterable, Optional, Protocol

from models.player import Position, Priority, Gender

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PlayerSnapshot:
    """Immutable copy of a player taken at assignment time."""
    id: int
    name: str
    positions: frozenset[Position]
    priority: Priority
    gender: Gender
    active: bool = True

    @property
    def is_setter(self) -> bool:
        return Position.SETTER in self.positions

    def has_position(self, position: Position) -> bool:
        return position in self.positions

    def shares_position_with(self, other: "PlayerSnapshot") -> bool:
        return bool(self.positions & other.positions)

    def to_dict(self) -> dict:
        # Keep a stable position order for stored records
        positions = [p.value for p in Position if p in self.positions]
        return {
            "id": self.id,
            "name": self.name,
            "positions": positions,
            "priority": self.priority.value,
            "gender": self.gender.value,
            "active": self.active,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "PlayerSnapshot":
        return cls(
            id=data["id"],
            name=data["name"],
            positions=frozenset(Position(p) for p in data["positions"]),
            priority=Priority(data["priority"]),
            gender=Gender(data["gender"]),
            active=data.get("active", True),
        )


class RosterProvider(Protocol):
    """Read-only view of the roster used by the engine."""

    def find_player(self, player_id: int) -> Optional[PlayerSnapshot]:
        ...

    def all_players(self) -> list[PlayerSnapshot]:
        ...


class RosterStore(RosterProvider, Protocol):
    """Roster the application can also edit."""

    def set_active(self, player_ids: list[int], active: bool) -> int:
        ...

    def delete_players(self, player_ids: list[int]) -> int:
        ...


class InMemoryRoster:
    """
    Dict-backed roster keeping insertion order.

    Used in tests and by the application when it runs without a database.
    """

    def __init__(self, players: Iterable[PlayerSnapshot] = ()):
        self._players: dict[int, PlayerSnapshot] = {}
        for player in players:
            self.put(player)

    def put(self, player: PlayerSnapshot) -> None:
        """Add a player or replace the one with the same id."""
        self._players[player.id] = player

    def delete(self, player_id: int) -> bool:
        return self._players.pop(player_id, None) is not None

    def set_active(self, player_ids: list[int], active: bool) -> int:
        changed = 0
        for player_id in player_ids:
            player = self._players.get(player_id)
            if player is not None:
                self._players[player_id] = replace(player, active=active)
                changed += 1
        return changed

    def delete_players(self, player_ids: list[int]) -> int:
        return sum(self.delete(player_id) for player_id in player_ids)

    def find_player(self, player_id: int) -> Optional[PlayerSnapshot]:
        return self._players.get(player_id)

    def all_players(self) -> list[PlayerSnapshot]:
        return list(self._players.values())

    def __len__(self) -> int:
        return len(self._players)


def resolve_players(player_ids: Iterable[int], roster: RosterProvider) -> list[PlayerSnapshot]:
    """
    Project ids to snapshots, keeping order.

    Ids that no longer resolve (player deleted) are dropped and the rest of
    the batch is kept.
    """
    resolved = []
    for player_id in player_ids:
        player = roster.find_player(player_id)
        if player is None:
            logger.debug("Dropping unknown player id %s", player_id)
            continue
        resolved.append(player)
    return resolved
