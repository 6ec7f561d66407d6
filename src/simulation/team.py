"""Team drift -- small random changes to analyst status and workload."""

from __future__ import annotations

import dataclasses
import logging
import random

from src.contracts import TeamMember, TeamMemberStatus

log = logging.getLogger(__name__)

MEMBER_UPDATE_CHANCE = 0.2
STATUS_CHANGE_CHANCE = 0.1

_STATUSES: tuple[TeamMemberStatus, ...] = tuple(TeamMemberStatus)


def drift_member(member: TeamMember, rng: random.Random) -> TeamMember:
    status = member.status
    if rng.random() < STATUS_CHANGE_CHANCE:
        status = rng.choice(_STATUSES)
    active = max(0, member.active_alerts + rng.randint(-1, 1))
    return dataclasses.replace(member, status=status, active_alerts=active)


def drift_team(members: list[TeamMember] | tuple[TeamMember, ...],
               rng: random.Random) -> list[TeamMember]:
    """Return updated copies for the ~20% of members picked this tick."""
    updated = [drift_member(m, rng) for m in members if rng.random() < MEMBER_UPDATE_CHANCE]
    log.debug("Team drift: %d/%d members updated", len(updated), len(members))
    return updated
