"""
Event Bus - Central signal hub for inter-module communication.

All modules connect to this single object rather than directly to each other,
so the command layer and any display never reference one another.
"""

from PySide6.QtCore import QObject, Signal


class EventBus(QObject):
    """
    Central signal hub for VolleyQueue.

    The application controller emits an event after every state change;
    displays listen and redraw.

    Usage:
        # In the controller
        self.event_bus.match_started.emit(match.to_dict())

        # In a court display
        self.event_bus.match_started.connect(self._on_match_started)
    """

    # ============ Match Lifecycle ============
    match_started = Signal(dict)        # Match dict
    match_completed = Signal(dict)      # Archived match dict (with winner)
    session_ended = Signal()            # Court cleared, winners back in the queue

    # ============ Court Events ============
    substitution_made = Signal(dict)    # {match_id, player_out_id, player_in_id}

    # ============ Queue and Presence ============
    player_queue_updated = Signal(list) # Queue ids, front first
    presence_changed = Signal(int, bool)  # player_id, is_present

    # ============ Roster and Settings ============
    roster_changed = Signal()
    settings_changed = Signal(dict)     # GameSettings as dict

    # ============ System Events ============
    database_error = Signal(str)        # Database error message
    system_message = Signal(str, str)   # (level, message) - e.g., ("error", "Jogadores insuficientes...")

    def __init__(self):
        super().__init__()

    def emit_substitution(self, match_id: int, player_out_id: int, player_in_id: int) -> None:
        """Convenience method to emit a substitution."""
        self.substitution_made.emit({
            "match_id": match_id,
            "player_out_id": player_out_id,
            "player_in_id": player_in_id,
        })

    def emit_message(self, level: str, message: str) -> None:
        """Emit a system message (info, warning, error)."""
        self.system_message.emit(level, message)
