"""
VolleyQueue Application Controller

Top-level controller that owns the session state and wires together the
engine, the roster, persistence and the event bus.
"""

import logging
from dataclasses import replace
from typing import Optional, Union

from PySide6.QtCore import QObject
from sqlalchemy.exc import SQLAlchemyError

from services.event_bus import EventBus
from services.session_store import SessionStore
from engine.roster import PlayerSnapshot, RosterStore
from engine.rotation import RotationEngine, SessionState, ChallengerPreview
from engine.team_formation import reorder_criteria
from models.match import GameMode, TeamSide
from models.settings import TeamFormationCriterion
from models.schemas import GameSettings

logger = logging.getLogger(__name__)


class VolleyQueueApp(QObject):
    """
    Top-level application controller.

    Holds the one SessionState of the running session and exposes the
    commands a UI triggers. Commands that can be rejected return an error
    message (None on success); the others always succeed or do nothing.
    After every change the state is saved (best effort) and an event is
    emitted on the bus.
    """

    def __init__(self, roster: RosterStore, store: Optional[SessionStore] = None,
                 event_bus: Optional[EventBus] = None,
                 engine: Optional[RotationEngine] = None):
        super().__init__()

        self.roster = roster
        self.store = store
        self.event_bus = event_bus or EventBus()
        self.engine = engine or RotationEngine(roster)

        self.state = SessionState()
        self.settings = GameSettings()
        self.present_player_ids: list[int] = []
        self.attendance_history: list[dict] = []

        if self.store is not None:
            self._restore()

    def _restore(self) -> None:
        """Load the last saved session. A broken database starts a fresh one."""
        try:
            self.state = self.store.load_state()
            self.settings = self.store.load_settings() or GameSettings()
            self.present_player_ids = self.store.load_present_players()
            self.attendance_history = self.store.load_attendance()
        except SQLAlchemyError as e:
            logger.error("Could not restore session: %s", e)
            self.event_bus.database_error.emit(str(e))

    def _persist(self) -> None:
        """Save the session. The in-memory state stays authoritative on failure."""
        if self.store is None:
            return
        try:
            self.store.save_state(self.state)
            self.store.save_present_players(self.present_player_ids)
            self.store.save_attendance(self.attendance_history)
        except SQLAlchemyError as e:
            logger.error("Could not save session: %s", e)
            self.event_bus.database_error.emit(str(e))

    def _is_active(self, player_id: int) -> bool:
        player = self.roster.find_player(player_id)
        return player is not None and player.active

    def _track_attendance(self) -> None:
        """Write today's present players into the attendance history."""
        today = self.engine.now().date().isoformat()
        record = {"date": today, "player_ids": list(self.present_player_ids)}
        history = [record if r["date"] == today else r for r in self.attendance_history]
        if record not in history:
            history.append(record)
        self.attendance_history = history

    def _commit(self, new_state: SessionState) -> None:
        queue_changed = new_state.queue != self.state.queue
        self.state = new_state
        self._persist()
        if queue_changed:
            self.event_bus.player_queue_updated.emit(list(self.state.queue.ids))

    # ============ Match Commands ============

    def start_match(self, game_mode: Union[GameMode, str, None] = None) -> Optional[str]:
        """
        Start a match from the front of the queue.

        Args:
            game_mode: 4v4 or 6v6 (settings default if omitted)

        Returns:
            None on success, or the message explaining why it was rejected
        """
        mode = GameMode(game_mode) if game_mode is not None else self.settings.default_game_mode
        new_state, error = self.engine.start_match(
            self.state, mode, self.settings.team_formation_priority
        )
        if error:
            self.event_bus.emit_message("error", error)
            return error

        self._commit(new_state)
        self.event_bus.match_started.emit(self.state.current_match.to_dict())
        return None

    def end_match(self, winner: Union[TeamSide, str]) -> None:
        """Record the winner and rotate the court."""
        if not self.state.has_active_match:
            return

        self._commit(self.engine.end_match(self.state, winner))
        self.event_bus.match_completed.emit(self.state.history[0].to_dict())
        if not self.state.has_active_match:
            self.event_bus.session_ended.emit()
        else:
            self.event_bus.match_started.emit(self.state.current_match.to_dict())

    def perform_substitution(self, player_out_id: int, player_in_id: int) -> None:
        """Swap a player on the court for one from the queue."""
        before = self.state
        self._commit(self.engine.perform_substitution(self.state, player_out_id, player_in_id))
        if self.state is not before:
            self.event_bus.emit_substitution(
                self.state.current_match.id, player_out_id, player_in_id
            )

    def suggest_substitute(self, player_out_id: int) -> Optional[PlayerSnapshot]:
        return self.engine.suggest_substitute(self.state, player_out_id)

    def challenger_preview(self) -> Optional[ChallengerPreview]:
        """Next challenger team, or None when no match is being played."""
        if not self.state.has_active_match:
            return None
        return self.engine.challenger_preview(self.state)

    # ============ Queue and Presence ============

    def add_to_queue(self, player_id: int) -> Optional[str]:
        """Put an active player who is not on court at the back of the queue."""
        player = self.roster.find_player(player_id)
        if player is None:
            return f"Jogador {player_id} não encontrado."
        if not player.active:
            return f"{player.name} está inativo."
        match = self.state.current_match
        if match is not None and match.find_player(player_id) is not None:
            return f"{player.name} já está em quadra."
        self._commit(replace(self.state, queue=self.state.queue.enqueue(player_id)))
        return None

    def remove_from_queue(self, player_id: int) -> None:
        self._commit(replace(self.state, queue=self.state.queue.remove(player_id)))

    def toggle_presence(self, player_id: int) -> bool:
        """
        Mark a player present (joins the queue) or absent (leaves it).

        Returns:
            True if the player is now present
        """
        if player_id in self.present_player_ids:
            self.present_player_ids = [i for i in self.present_player_ids if i != player_id]
            self._track_attendance()
            self.remove_from_queue(player_id)
            is_present = False
        else:
            error = self.add_to_queue(player_id)
            if error:
                self.event_bus.emit_message("warning", error)
                return False
            self.present_player_ids = self.present_player_ids + [player_id]
            self._track_attendance()
            self._persist()
            is_present = True

        self.event_bus.presence_changed.emit(player_id, is_present)
        return is_present

    def reset_daily_data(self) -> None:
        """
        Clear presence, queue and court for a new day.

        Match history and attendance records of earlier days are kept.
        """
        self.present_player_ids = []
        self._commit(SessionState(history=self.state.history))
        logger.info("Daily data reset")

    # ============ Roster ============

    def refresh_roster(self) -> None:
        """Drop queued and present players that were deleted or deactivated."""
        pruned = self.state.queue.prune(self.roster)
        self.present_player_ids = [i for i in self.present_player_ids if self._is_active(i)]
        self._commit(replace(self.state, queue=pruned))
        self.event_bus.roster_changed.emit()

    def set_players_active(self, player_ids: list[int], active: bool) -> int:
        """Activate or deactivate players; deactivated ones leave the queue."""
        changed = self.roster.set_active(player_ids, active)
        self.refresh_roster()
        return changed

    def delete_players(self, player_ids: list[int]) -> int:
        """Remove players from the roster, the queue and the present list."""
        deleted = self.roster.delete_players(player_ids)
        self.refresh_roster()
        return deleted

    def clear_all_data(self) -> None:
        """
        Wipe everything: players, presence, queue, court, match history,
        attendance and settings.
        """
        self.roster.delete_players([p.id for p in self.roster.all_players()])
        self.present_player_ids = []
        self.attendance_history = []
        if self.store is not None:
            try:
                self.store.clear_history()
            except SQLAlchemyError as e:
                logger.error("Could not clear match history: %s", e)
                self.event_bus.database_error.emit(str(e))
        self._commit(SessionState())
        self.update_settings(GameSettings())
        self.event_bus.roster_changed.emit()
        logger.warning("All data cleared")

    # ============ Settings ============

    def update_settings(self, settings: GameSettings) -> None:
        self.settings = settings
        if self.store is not None:
            try:
                self.store.save_settings(settings)
            except SQLAlchemyError as e:
                logger.error("Could not save settings: %s", e)
                self.event_bus.database_error.emit(str(e))
        self.event_bus.settings_changed.emit(settings.model_dump(mode="json"))

    def reorder_criterion(self, criterion: Union[TeamFormationCriterion, str],
                          target_index: int) -> None:
        """Move a team formation criterion to a new precedence position."""
        order = reorder_criteria(
            self.settings.team_formation_priority,
            TeamFormationCriterion(criterion),
            target_index,
        )
        self.update_settings(self.settings.model_copy(update={"team_formation_priority": order}))


def create_app(database_url: Optional[str] = None, event_bus: Optional[EventBus] = None,
               configure_logging: bool = True) -> VolleyQueueApp:
    """
    Build the application on top of a database.

    Args:
        database_url: SQLAlchemy URL (SQLite file in the data directory if omitted)
        event_bus: Bus to emit on (a new one if omitted)
        configure_logging: Install the file and console log handlers
    """
    from config import init_config
    from logging_config import setup_logging
    from models.base import create_db_engine, make_session_factory, init_db
    from services.roster_repository import RosterRepository

    init_config()
    if configure_logging:
        setup_logging()
    db_engine = create_db_engine(database_url)
    init_db(db_engine)
    session_factory = make_session_factory(db_engine)

    return VolleyQueueApp(
        roster=RosterRepository(session_factory),
        store=SessionStore(session_factory),
        event_bus=event_bus,
    )
