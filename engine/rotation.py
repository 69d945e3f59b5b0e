"""
Rotation Engine - Winner-stays court rotation.

The RotationEngine owns the "current match" transitions of a session:

    Empty  --start_match-->          Active
    Active --perform_substitution--> Active (same match, new players)
    Active --end_match-->            Active (winners vs challengers)
                                     or Empty (not enough players left)

Every operation takes the current SessionState and returns the next one.
Nothing is mutated in place and nothing is raised for rule violations:
start_match reports them as a message string.
"""

import logging
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, Optional, Sequence, Union

from models.match import GameMode, TeamSide
from models.settings import TeamFormationCriterion
from engine.player_queue import PlayerQueue
from engine.roster import PlayerSnapshot, RosterProvider, resolve_players
from engine.team_formation import form_teams
from config import ROTATION_SETTINGS

logger = logging.getLogger(__name__)


class RotationError(Enum):
    """Rule violations reported by start_match."""
    INSUFFICIENT_PLAYERS = "Jogadores insuficientes na fila. São necessários {players_needed}."
    MATCH_ALREADY_IN_PROGRESS = "Já existe uma partida em andamento."

    def format(self, **kwargs) -> str:
        return self.value.format(**kwargs)


@dataclass(frozen=True)
class Team:
    """A named side of a match with the players as they were when drafted."""
    name: str
    players: tuple[PlayerSnapshot, ...] = ()

    @property
    def player_ids(self) -> list[int]:
        return [p.id for p in self.players]

    def __len__(self) -> int:
        return len(self.players)

    def replace_player(self, player_out_id: int, player_in: PlayerSnapshot) -> "Team":
        return replace(self, players=tuple(
            player_in if p.id == player_out_id else p for p in self.players
        ))

    def to_dict(self) -> dict:
        return {"name": self.name, "players": [p.to_dict() for p in self.players]}

    @classmethod
    def from_dict(cls, data: dict) -> "Team":
        return cls(
            name=data["name"],
            players=tuple(PlayerSnapshot.from_dict(p) for p in data["players"]),
        )


@dataclass(frozen=True)
class Match:
    """
    A match on the court.

    Teams are fixed once created except through substitution; ended_at and
    winner are written once, by end_match, on the archived copy.
    """
    id: int
    started_at: datetime
    team_a: Team
    team_b: Team
    game_mode: GameMode
    ended_at: Optional[datetime] = None
    winner: Optional[TeamSide] = None

    @property
    def is_finished(self) -> bool:
        return self.winner is not None

    @property
    def player_ids(self) -> list[int]:
        return self.team_a.player_ids + self.team_b.player_ids

    def team(self, side: TeamSide) -> Team:
        return self.team_a if side == TeamSide.A else self.team_b

    def find_player(self, player_id: int) -> Optional[PlayerSnapshot]:
        for player in self.team_a.players + self.team_b.players:
            if player.id == player_id:
                return player
        return None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "started_at": self.started_at.isoformat(),
            "ended_at": self.ended_at.isoformat() if self.ended_at else None,
            "team_a": self.team_a.to_dict(),
            "team_b": self.team_b.to_dict(),
            "winner": self.winner.value if self.winner else None,
            "game_mode": self.game_mode.value,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Match":
        return cls(
            id=data["id"],
            started_at=datetime.fromisoformat(data["started_at"]),
            ended_at=datetime.fromisoformat(data["ended_at"]) if data.get("ended_at") else None,
            team_a=Team.from_dict(data["team_a"]),
            team_b=Team.from_dict(data["team_b"]),
            winner=TeamSide(data["winner"]) if data.get("winner") else None,
            game_mode=GameMode(data["game_mode"]),
        )


@dataclass(frozen=True)
class SessionState:
    """
    Everything the engine reads and writes for one session.

    Attributes:
        queue: Players waiting for the court
        current_match: Match being played, if any
        history: Finished matches, most recent first
    """
    queue: PlayerQueue = field(default_factory=PlayerQueue)
    current_match: Optional[Match] = None
    history: tuple[Match, ...] = ()

    @property
    def has_active_match(self) -> bool:
        return self.current_match is not None


@dataclass(frozen=True)
class ChallengerPreview:
    """Next challenger team as it would be drafted from the queue right now."""
    players: tuple[PlayerSnapshot, ...]
    still_needed: int

    @property
    def is_complete(self) -> bool:
        return self.still_needed == 0


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class RotationEngine:
    """
    Applies the session rotation rules.

    The engine is stateless apart from its match id counter; the roster is
    read-only and the session state is passed in and returned explicitly.
    """

    def __init__(self, roster: RosterProvider,
                 clock: Optional[Callable[[], datetime]] = None):
        """
        Args:
            roster: Player lookup used to resolve queued ids
            clock: Source of timestamps (UTC now by default)
        """
        self.roster = roster
        self._clock = clock or _utc_now
        self._last_match_id = 0

    def now(self) -> datetime:
        """Current time from the engine clock."""
        return self._clock()

    def _next_match_id(self, now: datetime) -> int:
        """Millisecond timestamp id, strictly increasing per engine."""
        candidate = int(now.timestamp() * 1000)
        if candidate <= self._last_match_id:
            candidate = self._last_match_id + 1
        self._last_match_id = candidate
        return candidate

    def _new_match(self, team_a: Team, team_b: Team, game_mode: GameMode) -> Match:
        now = self.now()
        return Match(
            id=self._next_match_id(now),
            started_at=now,
            team_a=team_a,
            team_b=team_b,
            game_mode=game_mode,
        )

    # ============ Match Lifecycle ============

    def start_match(self, state: SessionState, game_mode: Union[GameMode, str],
                    priority_order: Optional[Sequence[TeamFormationCriterion]] = None
                    ) -> tuple[SessionState, Optional[str]]:
        """
        Draft a new match from the front of the queue.

        Args:
            state: Current session state
            game_mode: 4v4 or 6v6
            priority_order: Balancing criteria for team formation
                            (configured default order if omitted)

        Returns:
            (new state, None) on success, or (unchanged state, error message)
        """
        game_mode = GameMode(game_mode)
        players_needed = game_mode.players_needed

        if len(state.queue) < players_needed:
            message = RotationError.INSUFFICIENT_PLAYERS.format(players_needed=players_needed)
            logger.info("Match not started: %d queued, %d needed", len(state.queue), players_needed)
            return state, message
        if state.current_match is not None:
            logger.info("Match not started: match %s in progress", state.current_match.id)
            return state, RotationError.MATCH_ALREADY_IN_PROGRESS.value

        if priority_order is None:
            priority_order = [TeamFormationCriterion(c)
                              for c in ROTATION_SETTINGS.default_priority_order]

        drafted_ids, remaining = state.queue.take_front(players_needed)
        candidates = resolve_players(drafted_ids, self.roster)
        team_a, team_b = form_teams(candidates, priority_order)

        match = self._new_match(
            Team(ROTATION_SETTINGS.team_a_name, tuple(team_a)),
            Team(ROTATION_SETTINGS.team_b_name, tuple(team_b)),
            game_mode,
        )
        logger.info("Started %s match %s with %d players", game_mode.value, match.id,
                    len(candidates))

        return replace(state, queue=remaining, current_match=match), None

    def end_match(self, state: SessionState, winner: Union[TeamSide, str]) -> SessionState:
        """
        Record the winner and rotate the court.

        The winners stay on as Team A. The losers join the back of the queue
        and the next challenger team is drafted from the front. When there
        are not enough players to form a challenger team the session ends
        and the winners go to the front of the queue.

        Args:
            state: Current session state
            winner: Winning side ("A" or "B")

        Returns:
            New session state (unchanged if no match is in progress)
        """
        match = state.current_match
        if match is None:
            return state

        winner = TeamSide(winner)
        finished = replace(match, ended_at=self.now(), winner=winner)
        history = (finished,) + state.history

        winning_team = match.team(winner)
        losing_team = match.team(winner.other)
        team_size = match.game_mode.team_size

        pool = state.queue.extend(losing_team.player_ids)

        if len(pool) < team_size:
            logger.info("Match %s won by %s; %d waiting, session over",
                        match.id, winner.value, len(pool))
            return replace(
                state,
                queue=pool.prepend(winning_team.player_ids),
                current_match=None,
                history=history,
            )

        challenger_ids, remaining = pool.take_front(team_size)
        challengers = resolve_players(challenger_ids, self.roster)

        next_match = self._new_match(
            Team(ROTATION_SETTINGS.winner_team_name, winning_team.players),
            Team(ROTATION_SETTINGS.challenger_team_name, tuple(challengers)),
            match.game_mode,
        )
        logger.info("Match %s won by %s; next match %s with %d challengers",
                    match.id, winner.value, next_match.id, len(challengers))

        return replace(state, queue=remaining, current_match=next_match, history=history)

    # ============ Substitutions ============

    def perform_substitution(self, state: SessionState, player_out_id: int,
                             player_in_id: int) -> SessionState:
        """
        Swap a player on the court for one from the queue.

        The incoming player leaves the queue and the outgoing player rejoins
        at the back. Nothing happens when no match is in progress or the
        incoming player is not in the roster.

        Returns:
            New session state
        """
        match = state.current_match
        if match is None:
            return state

        player_in = self.roster.find_player(player_in_id)
        if player_in is None:
            logger.warning("Substitution ignored: player %s not found", player_in_id)
            return state

        queue = state.queue.remove(player_in_id).requeue_at_end(player_out_id)
        substituted = replace(
            match,
            team_a=match.team_a.replace_player(player_out_id, player_in),
            team_b=match.team_b.replace_player(player_out_id, player_in),
        )
        logger.info("Match %s: %s replaced by %s", match.id, player_out_id, player_in_id)

        return replace(state, queue=queue, current_match=substituted)

    def suggest_substitute(self, state: SessionState,
                           player_out_id: int) -> Optional[PlayerSnapshot]:
        """
        Recommend a queued player to replace someone on the court.

        Preference: another setter for a setter, then anyone sharing a
        position, then whoever is at the front of the queue. The suggestion
        does not change any state.
        """
        if state.current_match is None:
            return None

        player_out = state.current_match.find_player(player_out_id)
        if player_out is None:
            player_out = self.roster.find_player(player_out_id)
        waiting = resolve_players(state.queue, self.roster)
        if player_out is None or not waiting:
            return None

        if player_out.is_setter:
            for candidate in waiting:
                if candidate.is_setter:
                    return candidate

        for candidate in waiting:
            if candidate.shares_position_with(player_out):
                return candidate

        return waiting[0]

    @staticmethod
    def is_compatible_substitute(player_out: PlayerSnapshot,
                                 player_in: PlayerSnapshot) -> bool:
        """Check whether the incoming player covers a role of the outgoing one."""
        return player_out.shares_position_with(player_in)

    # ============ Queries ============

    def challenger_preview(self, state: SessionState,
                           game_mode: Union[GameMode, str, None] = None) -> ChallengerPreview:
        """
        Preview the team that would challenge the current winners.

        Args:
            state: Current session state
            game_mode: Mode to size the team for (defaults to the current match's)
        """
        if game_mode is None:
            if state.current_match is None:
                raise ValueError("No match in progress and no game mode given")
            game_mode = state.current_match.game_mode
        team_size = GameMode(game_mode).team_size

        front_ids, _ = state.queue.take_front(team_size)
        players = resolve_players(front_ids, self.roster)
        return ChallengerPreview(players=tuple(players), still_needed=team_size - len(players))
