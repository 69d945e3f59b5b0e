"""
Waiting Queue for the Court

Players wait in arrival order for a spot on the court:
- Front of the queue = longest-waiting player, drafted first
- Substituted-out players rejoin at the back
- Losers of a match join behind everyone already waiting
- Winners of a session-ending match are put back at the front
"""

from dataclasses import dataclass
from typing import Iterable, Iterator

from engine.roster import RosterProvider


@dataclass(frozen=True)
class PlayerQueue:
    """
    Ordered sequence of player ids without duplicates.

    The queue is a value: every operation returns a new PlayerQueue and
    leaves the original untouched.

    Attributes:
        ids: Player ids, front of the queue first
    """
    ids: tuple[int, ...] = ()

    def __post_init__(self):
        if len(set(self.ids)) != len(self.ids):
            raise ValueError(f"Queue cannot contain duplicate ids: {self.ids}")

    @classmethod
    def of(cls, player_ids: Iterable[int]) -> "PlayerQueue":
        """Build a queue, silently keeping the first occurrence of repeated ids."""
        seen: dict[int, None] = {}
        for player_id in player_ids:
            seen.setdefault(player_id, None)
        return cls(tuple(seen))

    def __len__(self) -> int:
        return len(self.ids)

    def __iter__(self) -> Iterator[int]:
        return iter(self.ids)

    def __contains__(self, player_id: object) -> bool:
        return player_id in self.ids

    @property
    def is_empty(self) -> bool:
        return not self.ids

    def enqueue(self, player_id: int) -> "PlayerQueue":
        """Add a player at the back. Already-queued players keep their place."""
        if player_id in self.ids:
            return self
        return PlayerQueue(self.ids + (player_id,))

    def remove(self, player_id: int) -> "PlayerQueue":
        """Take a player out of the queue wherever they are."""
        if player_id not in self.ids:
            return self
        return PlayerQueue(tuple(i for i in self.ids if i != player_id))

    def requeue_at_end(self, player_id: int) -> "PlayerQueue":
        """Move (or add) a player to the back of the queue."""
        return PlayerQueue(self.remove(player_id).ids + (player_id,))

    def extend(self, player_ids: Iterable[int]) -> "PlayerQueue":
        """Append players at the back, in order, skipping those already queued."""
        queue = self
        for player_id in player_ids:
            queue = queue.enqueue(player_id)
        return queue

    def prepend(self, player_ids: Iterable[int]) -> "PlayerQueue":
        """Put players at the front, ahead of everyone already waiting."""
        front = PlayerQueue.of(player_ids)
        rest = tuple(i for i in self.ids if i not in front)
        return PlayerQueue(front.ids + rest)

    def take_front(self, count: int) -> tuple[tuple[int, ...], "PlayerQueue"]:
        """
        Split off the first players of the queue.

        Args:
            count: How many players to take

        Returns:
            (taken ids in queue order, queue of the remaining players)
        """
        if count < 0:
            raise ValueError("Cannot take a negative number of players")
        return self.ids[:count], PlayerQueue(self.ids[count:])

    def prune(self, roster: RosterProvider) -> "PlayerQueue":
        """Drop ids that are not active players of the roster."""
        kept = []
        for player_id in self.ids:
            player = roster.find_player(player_id)
            if player is not None and player.active:
                kept.append(player_id)
        return PlayerQueue(tuple(kept))

    def position_of(self, player_id: int) -> int:
        """1-based place in the queue, or 0 if the player is not queued."""
        try:
            return self.ids.index(player_id) + 1
        except ValueError:
            return 0

    def get_queue_state(self, roster: RosterProvider) -> list[dict]:
        """
        Get the queue for display.

        Returns:
            List of dicts with player info, front of the queue first.
            Ids that do not resolve are left out.
        """
        state = []
        for player_id in self.ids:
            player = roster.find_player(player_id)
            if player is None:
                continue
            state.append({
                "position": len(state) + 1,
                "player_id": player.id,
                "player_name": player.name,
            })
        return state
