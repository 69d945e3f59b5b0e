"""
VolleyQueue Rotation Engine

Core queue and rotation logic for volleyball sessions.
This module contains no GUI or database dependencies.
"""

from engine.roster import (
    PlayerSnapshot, RosterProvider, RosterStore, InMemoryRoster, resolve_players,
)
from engine.player_queue import PlayerQueue
from engine.team_formation import form_teams, rank, reorder_criteria
from engine.rotation import (
    RotationEngine, RotationError, SessionState, Match, Team, ChallengerPreview,
)

__all__ = [
    "PlayerSnapshot",
    "RosterProvider",
    "RosterStore",
    "InMemoryRoster",
    "resolve_players",
    "PlayerQueue",
    "form_teams",
    "rank",
    "reorder_criteria",
    "RotationEngine",
    "RotationError",
    "SessionState",
    "Match",
    "Team",
    "ChallengerPreview",
]
