"""
Team Formation - Splits a batch of queued players into two teams.

The policy is deterministic: players are grouped by role, each group is
ranked by the configured balancing criteria, setters are dealt A/B/A/B and
everyone else goes to the smaller team.
"""

import logging
from functools import cmp_to_key
from typing import Sequence

from models.player import Position, Priority, Gender
from models.settings import TeamFormationCriterion
from engine.roster import PlayerSnapshot

logger = logging.getLogger(__name__)


def _criterion_compare(criterion: TeamFormationCriterion,
                       a: PlayerSnapshot, b: PlayerSnapshot) -> int:
    """Signed comparison of two players on a single criterion."""
    if criterion == TeamFormationCriterion.PRIORITY:
        if a.priority != b.priority:
            return -1 if a.priority == Priority.MEMBER else 1
    elif criterion == TeamFormationCriterion.SETTER:
        if a.is_setter != b.is_setter:
            return -1 if a.is_setter else 1
    elif criterion == TeamFormationCriterion.GENDER:
        if a.gender != b.gender:
            return -1 if a.gender == Gender.FEMALE else 1
    return 0


def rank(a: PlayerSnapshot, b: PlayerSnapshot,
         priority_order: Sequence[TeamFormationCriterion]) -> int:
    """
    Compare two players for drafting order.

    Criteria are applied in priority_order; the first one that separates the
    players decides. Full ties fall back to the player name (case-sensitive).

    Returns:
        Negative if a drafts before b, positive if after, 0 if identical
    """
    for criterion in priority_order:
        comparison = _criterion_compare(criterion, a, b)
        if comparison != 0:
            return comparison
    if a.name < b.name:
        return -1
    if a.name > b.name:
        return 1
    return 0


def sort_players(players: Sequence[PlayerSnapshot],
                 priority_order: Sequence[TeamFormationCriterion]) -> list[PlayerSnapshot]:
    """Return the players sorted by rank (stable)."""
    return sorted(players, key=cmp_to_key(lambda a, b: rank(a, b, priority_order)))


def split_by_role(players: Sequence[PlayerSnapshot]) -> dict[str, list[PlayerSnapshot]]:
    """
    Partition players into the four disjoint role groups.

    A setter counts only as a setter, whatever else they play. Players with
    no position at all end up in no group.
    """
    groups: dict[str, list[PlayerSnapshot]] = {
        "setters": [],
        "versatile": [],
        "attackers_only": [],
        "defenders_only": [],
    }
    for player in players:
        attacks = player.has_position(Position.ATTACKER)
        defends = player.has_position(Position.DEFENDER)
        if player.is_setter:
            groups["setters"].append(player)
        elif attacks and defends:
            groups["versatile"].append(player)
        elif attacks:
            groups["attackers_only"].append(player)
        elif defends:
            groups["defenders_only"].append(player)
        else:
            logger.warning("Player %s (%s) has no position and is left out of both teams",
                           player.id, player.name)
    return groups


def form_teams(candidates: Sequence[PlayerSnapshot],
               priority_order: Sequence[TeamFormationCriterion]
               ) -> tuple[list[PlayerSnapshot], list[PlayerSnapshot]]:
    """
    Split candidates into two teams of (roughly) equal size.

    Args:
        candidates: Players drafted from the front of the queue
        priority_order: Balancing criteria, highest precedence first

    Returns:
        (team_a, team_b) player lists
    """
    groups = split_by_role(candidates)
    team_a: list[PlayerSnapshot] = []
    team_b: list[PlayerSnapshot] = []

    # Setters alternate A, B, A, B
    for index, setter in enumerate(sort_players(groups["setters"], priority_order)):
        if index % 2 == 0:
            team_a.append(setter)
        else:
            team_b.append(setter)

    for group_name in ("versatile", "attackers_only", "defenders_only"):
        for player in sort_players(groups[group_name], priority_order):
            if len(team_a) <= len(team_b):
                team_a.append(player)
            else:
                team_b.append(player)

    return team_a, team_b


def reorder_criteria(order: Sequence[TeamFormationCriterion],
                     criterion: TeamFormationCriterion,
                     target_index: int) -> list[TeamFormationCriterion]:
    """
    Move one criterion to a new place in the precedence list.

    Args:
        order: Current precedence list
        criterion: Criterion to move; must be in the list
        target_index: Index it should occupy afterwards (clamped to the list)

    Returns:
        New precedence list
    """
    reordered = list(order)
    if criterion not in reordered:
        raise ValueError(f"{criterion.value} is not part of the priority order")
    reordered.remove(criterion)
    target_index = max(0, min(target_index, len(reordered)))
    reordered.insert(target_index, criterion)
    return reordered
