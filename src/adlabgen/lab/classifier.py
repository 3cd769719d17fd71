"""
ADLabGen Group Classifier

Splits the configured groups into the access and role tiers for the
selected operating mode.
"""

from __future__ import annotations

from typing import Sequence, Tuple

import attrs
import structlog

from adlabgen.core.exceptions import NoAccessGroupsConfigured, NoRoleGroupsConfigured
from adlabgen.core.types import GroupSpec, GroupTier, OperatingMode

logger = structlog.get_logger()


@attrs.define(frozen=True, slots=True)
class ClassifiedGroups:
    """
    Group names per tier, in configuration order.

    INVARIANT: access_groups is non-empty
    INVARIANT: role_groups is non-empty unless the mode is NO_ROLES
    """

    access_groups: Tuple[str, ...]
    role_groups: Tuple[str, ...]

    @property
    def all_groups(self) -> Tuple[str, ...]:
        """Access groups followed by role groups."""
        return self.access_groups + self.role_groups


def classify(groups: Sequence[GroupSpec], mode: OperatingMode) -> ClassifiedGroups:
    """
    Partition group specs into access and role tiers.

    Role groups are dropped entirely under NO_ROLES.

    Raises:
        NoAccessGroupsConfigured: if no Access-tier group is defined
        NoRoleGroupsConfigured: if the mode uses roles and none are defined
    """
    access_groups = tuple(g.name for g in groups if g.tier is GroupTier.ACCESS)
    role_groups: Tuple[str, ...] = ()
    if mode.uses_roles:
        role_groups = tuple(g.name for g in groups if g.tier is GroupTier.ROLE)

    if not access_groups:
        raise NoAccessGroupsConfigured()
    if mode.uses_roles and not role_groups:
        raise NoRoleGroupsConfigured()

    logger.debug(
        "groups_classified",
        mode=mode.name,
        access_groups=len(access_groups),
        role_groups=len(role_groups),
    )
    return ClassifiedGroups(access_groups=access_groups, role_groups=role_groups)
