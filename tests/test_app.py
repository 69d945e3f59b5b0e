"""
Tests for the VolleyQueueApp controller.

Covers command results, emitted events and best-effort persistence.
"""

import logging
from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

import pytest
from sqlalchemy.exc import OperationalError

from app import VolleyQueueApp, create_app
from logging_config import setup_logging
from engine.roster import InMemoryRoster, PlayerSnapshot
from engine.rotation import RotationEngine, RotationError, SessionState
from models.match import GameMode, TeamSide
from models.player import Position, Priority, Gender
from models.schemas import GameSettings, PlayerCreate
from models.settings import TeamFormationCriterion

ROLE_PATTERN = [{Position.SETTER}, {Position.ATTACKER, Position.DEFENDER},
                {Position.ATTACKER}, {Position.DEFENDER}]


def make_player(player_id: int, active: bool = True) -> PlayerSnapshot:
    return PlayerSnapshot(
        id=player_id,
        name=f"Player {player_id:02d}",
        positions=frozenset(ROLE_PATTERN[(player_id - 1) % 4]),
        priority=Priority.MEMBER,
        gender=Gender.MALE,
        active=active,
    )


def build_roster(count: int = 16) -> InMemoryRoster:
    return InMemoryRoster(make_player(i) for i in range(1, count + 1))


def broken_store() -> MagicMock:
    """Store that loads an empty session but fails every write."""
    store = MagicMock()
    store.load_state.return_value = SessionState()
    store.load_settings.return_value = None
    store.load_present_players.return_value = []
    store.load_attendance.return_value = []
    store.save_state.side_effect = OperationalError("UPDATE", {}, Exception("disk full"))
    store.save_settings.side_effect = OperationalError("UPDATE", {}, Exception("disk full"))
    return store


class TestAppCommands:
    """Tests for queue, presence and match commands."""

    def setup_method(self):
        self.roster = build_roster()
        self.app = VolleyQueueApp(self.roster)
        self.app.update_settings(GameSettings(default_game_mode=GameMode.FOUR_VS_FOUR))

        bus = self.app.event_bus
        self.queue_updated = MagicMock()
        self.match_started = MagicMock()
        self.match_completed = MagicMock()
        self.session_ended = MagicMock()
        self.substitution_made = MagicMock()
        self.presence_changed = MagicMock()
        self.system_message = MagicMock()
        bus.player_queue_updated.connect(self.queue_updated)
        bus.match_started.connect(self.match_started)
        bus.match_completed.connect(self.match_completed)
        bus.session_ended.connect(self.session_ended)
        bus.substitution_made.connect(self.substitution_made)
        bus.presence_changed.connect(self.presence_changed)
        bus.system_message.connect(self.system_message)

    def mark_present(self, *ids):
        for player_id in ids:
            self.app.toggle_presence(player_id)

    def test_add_to_queue(self):
        assert self.app.add_to_queue(3) is None

        assert self.app.state.queue.ids == (3,)
        self.queue_updated.assert_called_with([3])

    def test_add_unknown_player(self):
        assert self.app.add_to_queue(99) == "Jogador 99 não encontrado."
        assert self.app.state.queue.is_empty

    def test_add_inactive_player(self):
        self.roster.put(make_player(5, active=False))

        assert self.app.add_to_queue(5) == "Player 05 está inativo."
        assert self.app.state.queue.is_empty

    def test_toggle_presence_joins_and_leaves_queue(self):
        assert self.app.toggle_presence(4) is True
        assert self.app.present_player_ids == [4]
        assert 4 in self.app.state.queue

        assert self.app.toggle_presence(4) is False
        assert self.app.present_player_ids == []
        assert 4 not in self.app.state.queue
        self.presence_changed.assert_called_with(4, False)

    def test_toggle_presence_of_inactive_player_warns(self):
        self.roster.put(make_player(5, active=False))

        assert self.app.toggle_presence(5) is False

        assert self.app.present_player_ids == []
        self.system_message.assert_called_once_with("warning", "Player 05 está inativo.")
        self.presence_changed.assert_not_called()

    def test_start_match_rejected_with_short_queue(self):
        self.mark_present(*range(1, 6))

        error = self.app.start_match()

        assert error == RotationError.INSUFFICIENT_PLAYERS.format(players_needed=8)
        self.system_message.assert_called_with("error", error)
        self.match_started.assert_not_called()

    def test_start_match_uses_settings_mode(self):
        self.mark_present(*range(1, 11))

        assert self.app.start_match() is None

        match = self.app.state.current_match
        assert match.game_mode == GameMode.FOUR_VS_FOUR
        assert self.app.state.queue.ids == (9, 10)
        self.match_started.assert_called_once()
        assert self.match_started.call_args[0][0]["id"] == match.id

    def test_start_match_explicit_mode(self):
        self.mark_present(*range(1, 11))

        error = self.app.start_match("6v6")

        assert error == RotationError.INSUFFICIENT_PLAYERS.format(players_needed=12)

    def test_end_match_rotates(self):
        self.mark_present(*range(1, 14))
        self.app.start_match()
        finished_id = self.app.state.current_match.id

        self.app.end_match(TeamSide.A)

        assert self.match_completed.call_args[0][0]["id"] == finished_id
        assert self.match_completed.call_args[0][0]["winner"] == "A"
        assert self.match_started.call_count == 2
        self.session_ended.assert_not_called()

    def test_end_match_without_match_does_nothing(self):
        self.app.end_match("A")

        self.match_completed.assert_not_called()
        assert self.app.state.history == ()

    def test_perform_substitution_emits_event(self):
        self.mark_present(*range(1, 11))
        self.app.start_match()
        player_out = self.app.state.current_match.team_a.player_ids[0]

        self.app.perform_substitution(player_out, 9)

        self.substitution_made.assert_called_once_with({
            "match_id": self.app.state.current_match.id,
            "player_out_id": player_out,
            "player_in_id": 9,
        })
        assert self.app.state.queue.ids == (10, player_out)

    def test_substitution_without_match_is_silent(self):
        self.app.perform_substitution(1, 2)

        self.substitution_made.assert_not_called()

    def test_challenger_preview(self):
        assert self.app.challenger_preview() is None

        self.mark_present(*range(1, 11))
        self.app.start_match()
        preview = self.app.challenger_preview()

        assert [p.id for p in preview.players] == [9, 10]
        assert preview.still_needed == 2

    def test_suggest_substitute(self):
        self.mark_present(*range(1, 14))
        self.app.start_match()

        # Player 1 is a setter; 9 is the first setter waiting
        assert self.app.suggest_substitute(1).id == 9

    def test_reset_daily_data_keeps_history(self):
        self.mark_present(*range(1, 14))
        self.app.start_match()
        self.app.end_match("B")

        self.app.reset_daily_data()

        assert self.app.present_player_ids == []
        assert self.app.state.queue.is_empty
        assert self.app.state.current_match is None
        assert len(self.app.state.history) == 1

    def test_refresh_roster_drops_deleted_and_inactive(self):
        self.mark_present(1, 2, 3)
        self.roster.delete(1)
        self.roster.put(make_player(2, active=False))
        roster_changed = MagicMock()
        self.app.event_bus.roster_changed.connect(roster_changed)

        self.app.refresh_roster()

        assert self.app.state.queue.ids == (3,)
        assert self.app.present_player_ids == [3]
        roster_changed.assert_called_once()

    def test_player_on_court_cannot_be_queued(self):
        self.mark_present(*range(1, 9))
        self.app.start_match()

        assert self.app.add_to_queue(1) == "Player 01 já está em quadra."
        assert 1 not in self.app.state.queue

    def test_on_court_player_never_drafted_against_own_team(self):
        self.mark_present(*range(1, 9))
        self.app.start_match()
        self.app.add_to_queue(1)
        for player_id in (9, 10, 11):
            self.app.add_to_queue(player_id)

        self.app.end_match("A")

        match = self.app.state.current_match
        assert not set(match.team_a.player_ids) & set(match.team_b.player_ids)
        assert match.team_b.player_ids[:3] == [9, 10, 11]

    def test_delete_players_leaves_queue_and_presence(self):
        self.mark_present(1, 2, 3)
        roster_changed = MagicMock()
        self.app.event_bus.roster_changed.connect(roster_changed)

        assert self.app.delete_players([2, 99]) == 1

        assert self.roster.find_player(2) is None
        assert self.app.state.queue.ids == (1, 3)
        assert self.app.present_player_ids == [1, 3]
        roster_changed.assert_called_once()

    def test_deactivated_players_leave_queue(self):
        self.mark_present(1, 2, 3)

        assert self.app.set_players_active([1, 3], False) == 2

        assert self.app.state.queue.ids == (2,)
        assert self.app.present_player_ids == [2]
        assert not self.roster.find_player(1).active

    def test_reactivated_player_is_not_requeued(self):
        self.mark_present(1)
        self.app.set_players_active([1], False)

        self.app.set_players_active([1], True)

        assert self.app.state.queue.is_empty
        assert self.app.add_to_queue(1) is None


class SteppingClock:
    """Clock that stays put until moved forward."""

    def __init__(self):
        self.now = datetime(2026, 10, 18, 19, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def next_day(self):
        self.now += timedelta(days=1)


class TestAttendance:
    """Tests for the per-day attendance history."""

    def setup_method(self):
        self.clock = SteppingClock()
        roster = build_roster()
        self.app = VolleyQueueApp(roster, engine=RotationEngine(roster, clock=self.clock))

    def test_presence_recorded_for_today(self):
        self.app.toggle_presence(1)
        self.app.toggle_presence(2)

        assert self.app.attendance_history == [
            {"date": "2026-10-18", "player_ids": [1, 2]},
        ]

    def test_leaving_updates_todays_record(self):
        self.app.toggle_presence(1)
        self.app.toggle_presence(2)

        self.app.toggle_presence(1)

        assert self.app.attendance_history == [
            {"date": "2026-10-18", "player_ids": [2]},
        ]

    def test_rejected_presence_not_recorded(self):
        self.app.roster.put(make_player(5, active=False))

        self.app.toggle_presence(5)

        assert self.app.attendance_history == []

    def test_reset_keeps_attendance(self):
        self.app.toggle_presence(1)
        self.app.toggle_presence(2)

        self.app.reset_daily_data()

        assert self.app.present_player_ids == []
        assert self.app.attendance_history == [
            {"date": "2026-10-18", "player_ids": [1, 2]},
        ]

    def test_one_record_per_day(self):
        self.app.toggle_presence(1)
        self.app.reset_daily_data()
        self.clock.next_day()

        self.app.toggle_presence(3)

        assert self.app.attendance_history == [
            {"date": "2026-10-18", "player_ids": [1]},
            {"date": "2026-10-19", "player_ids": [3]},
        ]


class TestClearAllData:
    """Tests for wiping the whole application."""

    def setup_method(self):
        self.roster = build_roster()
        self.app = VolleyQueueApp(self.roster)
        self.app.update_settings(GameSettings(default_game_mode=GameMode.FOUR_VS_FOUR))
        for player_id in range(1, 11):
            self.app.toggle_presence(player_id)
        self.app.start_match()
        self.app.end_match("A")

    def test_everything_cleared(self):
        self.app.clear_all_data()

        assert self.roster.all_players() == []
        assert self.app.present_player_ids == []
        assert self.app.attendance_history == []
        assert self.app.state == SessionState()
        assert self.app.settings == GameSettings()

    def test_events_emitted(self):
        roster_changed = MagicMock()
        settings_changed = MagicMock()
        queue_updated = MagicMock()
        self.app.event_bus.roster_changed.connect(roster_changed)
        self.app.event_bus.settings_changed.connect(settings_changed)
        self.app.event_bus.player_queue_updated.connect(queue_updated)

        self.app.clear_all_data()

        roster_changed.assert_called_once()
        settings_changed.assert_called_once()
        queue_updated.assert_called_once_with([])


class TestAppSettings:
    """Tests for settings commands."""

    def setup_method(self):
        self.app = VolleyQueueApp(build_roster())
        self.settings_changed = MagicMock()
        self.app.event_bus.settings_changed.connect(self.settings_changed)

    def test_update_settings_emits_json(self):
        self.app.update_settings(GameSettings(default_game_mode=GameMode.FOUR_VS_FOUR))

        payload = self.settings_changed.call_args[0][0]
        assert payload["default_game_mode"] == "4v4"
        assert payload["team_formation_priority"] == ["priority", "setter", "gender"]

    def test_reorder_criterion(self):
        self.app.reorder_criterion("gender", 0)

        assert self.app.settings.team_formation_priority == [
            TeamFormationCriterion.GENDER,
            TeamFormationCriterion.PRIORITY,
            TeamFormationCriterion.SETTER,
        ]
        self.settings_changed.assert_called_once()

    def test_reorder_unknown_criterion(self):
        with pytest.raises(ValueError):
            self.app.reorder_criterion("height", 0)


class TestAppPersistence:
    """Tests for saving and restoring through the store."""

    def test_database_errors_do_not_block_commands(self):
        app = VolleyQueueApp(build_roster(), store=broken_store())
        database_error = MagicMock()
        app.event_bus.database_error.connect(database_error)

        assert app.add_to_queue(1) is None

        assert app.state.queue.ids == (1,)
        database_error.assert_called_once()

    def test_settings_kept_when_save_fails(self):
        app = VolleyQueueApp(build_roster(), store=broken_store())

        app.update_settings(GameSettings(default_game_mode=GameMode.FOUR_VS_FOUR))

        assert app.settings.default_game_mode == GameMode.FOUR_VS_FOUR

    def test_session_restored_from_database(self, tmp_path):
        url = f"sqlite:///{tmp_path / 'session.db'}"
        app = create_app(url, configure_logging=False)
        for i in range(10):
            app.roster.add_player(PlayerCreate(
                name=f"Player {i:02d}",
                positions=list(ROLE_PATTERN[i % 4]),
                gender=Gender.FEMALE,
            ))
        app.update_settings(GameSettings(default_game_mode=GameMode.FOUR_VS_FOUR))
        for player in app.roster.all_players():
            app.toggle_presence(player.id)
        app.start_match()

        restored = create_app(url, configure_logging=False)

        assert restored.settings.default_game_mode == GameMode.FOUR_VS_FOUR
        assert restored.present_player_ids == app.present_player_ids
        assert restored.state.queue == app.state.queue
        assert restored.state.current_match == app.state.current_match
        assert restored.attendance_history == app.attendance_history
        assert len(restored.attendance_history) == 1

    def test_clear_all_data_persisted(self, tmp_path):
        url = f"sqlite:///{tmp_path / 'session.db'}"
        app = create_app(url, configure_logging=False)
        for i in range(8):
            app.roster.add_player(PlayerCreate(
                name=f"Player {i:02d}",
                positions=list(ROLE_PATTERN[i % 4]),
                gender=Gender.MALE,
            ))
        app.update_settings(GameSettings(default_game_mode=GameMode.FOUR_VS_FOUR))
        for player in app.roster.all_players():
            app.toggle_presence(player.id)
        app.start_match()
        app.end_match("B")

        app.clear_all_data()
        restored = create_app(url, configure_logging=False)

        assert restored.roster.all_players() == []
        assert restored.state == SessionState()
        assert restored.present_player_ids == []
        assert restored.attendance_history == []
        assert restored.settings == GameSettings()


class TestLoggingSetup:
    """Tests for the root logger configuration."""

    def setup_method(self):
        self.root = logging.getLogger()
        self.saved_handlers = list(self.root.handlers)
        self.saved_level = self.root.level

    def teardown_method(self):
        for handler in self.root.handlers:
            handler.close()
        self.root.handlers = self.saved_handlers
        self.root.setLevel(self.saved_level)

    def test_file_handler_writes_to_log_dir(self, tmp_path):
        logger = setup_logging(log_dir=tmp_path, level=logging.DEBUG, log_to_console=False)

        logging.getLogger("engine.rotation").info("Started 4v4 match")
        for handler in logger.handlers:
            handler.flush()

        log_files = list(tmp_path.glob("volleyqueue_*.log"))
        assert len(log_files) == 1
        assert "Started 4v4 match" in log_files[0].read_text()

    def test_handlers_replaced_on_each_call(self, tmp_path):
        setup_logging(log_dir=tmp_path, log_to_file=False)
        logger = setup_logging(log_dir=tmp_path, log_to_file=False)

        assert len(logger.handlers) == 1
        assert logger.level == logging.INFO
