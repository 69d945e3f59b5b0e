"""
Session Store

Snapshots the session (queue, current match, present players), the match
history, the daily attendance and the game settings to the database so a session survives a
restart. Writes replace whole values; there is no partial update.
"""

import logging
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import select
from sqlalchemy.orm import sessionmaker

from models.base import session_scope
from models.match import MatchRecord
from models.settings import GameSettingsRecord, StoredValue
from models.schemas import GameSettings
from engine.player_queue import PlayerQueue
from engine.rotation import Match, SessionState, Team

logger = logging.getLogger(__name__)

QUEUE_KEY = "queue"
CURRENT_MATCH_KEY = "current_match"
PRESENT_PLAYERS_KEY = "present_player_ids"
ATTENDANCE_KEY = "attendance_history"


def _to_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Stored as naive UTC; SQLite keeps no offset."""
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def _from_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)


def _to_record(match: Match) -> MatchRecord:
    return MatchRecord(
        match_id=match.id,
        game_mode=match.game_mode,
        started_at=_to_utc(match.started_at),
        ended_at=_to_utc(match.ended_at),
        winner=match.winner,
        team_a_name=match.team_a.name,
        team_b_name=match.team_b.name,
        team_a_players=[p.to_dict() for p in match.team_a.players],
        team_b_players=[p.to_dict() for p in match.team_b.players],
    )


def _from_record(record: MatchRecord) -> Match:
    return Match(
        id=record.match_id,
        started_at=_from_utc(record.started_at),
        ended_at=_from_utc(record.ended_at),
        winner=record.winner,
        game_mode=record.game_mode,
        team_a=Team.from_dict({"name": record.team_a_name, "players": record.team_a_players}),
        team_b=Team.from_dict({"name": record.team_b_name, "players": record.team_b_players}),
    )


class SessionStore:
    """Database persistence for session state, history and settings."""

    def __init__(self, session_factory: sessionmaker):
        self._session_factory = session_factory

    # ============ Key/Value Snapshots ============

    def _get_value(self, key: str, default=None):
        with session_scope(self._session_factory) as session:
            stored = session.get(StoredValue, key)
            return stored.value if stored is not None else default

    def _set_value(self, key: str, value) -> None:
        with session_scope(self._session_factory) as session:
            stored = session.get(StoredValue, key)
            if stored is None:
                session.add(StoredValue(key=key, value=value))
            else:
                stored.value = value

    # ============ Session State ============

    def save_state(self, state: SessionState) -> None:
        """Persist the queue and current match; archive new history entries."""
        self._set_value(QUEUE_KEY, list(state.queue.ids))
        self._set_value(
            CURRENT_MATCH_KEY,
            state.current_match.to_dict() if state.current_match else None,
        )
        self._archive(state.history)

    def _archive(self, history: tuple[Match, ...]) -> None:
        if not history:
            return
        with session_scope(self._session_factory) as session:
            known = set(session.scalars(
                select(MatchRecord.match_id).where(
                    MatchRecord.match_id.in_([m.id for m in history])
                )
            ).all())
            # Oldest first so autoincrement ids follow play order
            for match in reversed(history):
                if match.id not in known:
                    session.add(_to_record(match))

    def load_state(self) -> SessionState:
        """Rebuild the session from the last snapshot (empty if none)."""
        queue_ids = self._get_value(QUEUE_KEY, [])
        match_data = self._get_value(CURRENT_MATCH_KEY)
        return SessionState(
            queue=PlayerQueue.of(queue_ids),
            current_match=Match.from_dict(match_data) if match_data else None,
            history=tuple(self.load_history()),
        )

    def load_history(self) -> list[Match]:
        """Finished matches, most recent first."""
        with session_scope(self._session_factory) as session:
            records = session.scalars(
                select(MatchRecord).order_by(MatchRecord.id.desc())
            ).all()
            return [_from_record(r) for r in records]

    def clear_history(self) -> None:
        with session_scope(self._session_factory) as session:
            for record in session.scalars(select(MatchRecord)).all():
                session.delete(record)

    # ============ Presence ============

    def save_present_players(self, player_ids: list[int]) -> None:
        self._set_value(PRESENT_PLAYERS_KEY, list(player_ids))

    def load_present_players(self) -> list[int]:
        return list(self._get_value(PRESENT_PLAYERS_KEY, []))

    def save_attendance(self, records: list[dict]) -> None:
        """Store the attendance history: one {date, player_ids} dict per day."""
        self._set_value(ATTENDANCE_KEY, [dict(r) for r in records])

    def load_attendance(self) -> list[dict]:
        return list(self._get_value(ATTENDANCE_KEY, []))

    # ============ Settings ============

    def save_settings(self, settings: GameSettings) -> None:
        with session_scope(self._session_factory) as session:
            record = session.get(GameSettingsRecord, 1)
            if record is None:
                record = GameSettingsRecord(id=1)
                session.add(record)
            record.default_game_mode = settings.default_game_mode
            record.team_formation_priority = [c.value for c in settings.team_formation_priority]

    def load_settings(self) -> Optional[GameSettings]:
        """Stored settings, or None if the user never saved any."""
        with session_scope(self._session_factory) as session:
            record = session.get(GameSettingsRecord, 1)
            if record is None:
                return None
            return GameSettings(
                default_game_mode=record.default_game_mode,
                team_formation_priority=record.team_formation_priority,
            )
