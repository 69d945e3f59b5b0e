"""
VolleyQueue Services

Application services for events, roster storage and session persistence.
"""

from services.event_bus import EventBus
from services.roster_repository import RosterRepository
from services.session_store import SessionStore

__all__ = ["EventBus", "RosterRepository", "SessionStore"]
