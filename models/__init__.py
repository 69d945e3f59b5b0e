"""
VolleyQueue Database Models

SQLAlchemy ORM models and enums for the volleyball session manager.
"""

from models.base import (
    Base, create_db_engine, make_session_factory, session_scope, init_db, reset_db,
)
from models.player import Player, Position, Priority, Gender
from models.match import MatchRecord, GameMode, TeamSide
from models.settings import GameSettingsRecord, StoredValue, TeamFormationCriterion

__all__ = [
    "Base",
    "create_db_engine",
    "make_session_factory",
    "session_scope",
    "init_db",
    "reset_db",
    "Player",
    "Position",
    "Priority",
    "Gender",
    "MatchRecord",
    "GameMode",
    "TeamSide",
    "GameSettingsRecord",
    "StoredValue",
    "TeamFormationCriterion",
]
