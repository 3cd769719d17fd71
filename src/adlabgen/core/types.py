"""
ADLabGen Core Types

Fundamental type definitions for lab population.

Design Principles:
- Immutable: records use frozen attrs
- Validated: constraints enforced at construction
- Typed: directory enums replace raw attribute values
"""

from __future__ import annotations

from enum import Enum, auto
from typing import Optional

import attrs
from attrs import field, validators

from adlabgen.core.exceptions import InvalidModeCombination


# =============================================================================
# ENUMS
# =============================================================================


class GroupTier(Enum):
    """Tier a configured group belongs to."""

    ACCESS = auto()  # Models a grantable permission set
    ROLE = auto()  # Models a job function; nested into access groups

    @classmethod
    def parse(cls, value: str) -> GroupTier:
        """Parse a tier name case-insensitively ("Access", "role", ...)."""
        try:
            return cls[value.strip().upper()]
        except KeyError:
            raise ValueError(f"Unknown group tier: {value!r}") from None


class OperatingMode(Enum):
    """
    Membership wiring policy for a run.

    DEFAULT: role groups go into access groups, users go into a role group
        AND access groups.
    CLEAN_ROLES: role groups go into access groups, users only into a role
        group.
    NO_ROLES: no role groups; users only into access groups.
    """

    DEFAULT = auto()
    CLEAN_ROLES = auto()
    NO_ROLES = auto()

    @classmethod
    def from_flags(cls, clean_roles: bool = False, no_roles: bool = False) -> OperatingMode:
        """
        Build the mode from the two CLI switches.

        Raises:
            InvalidModeCombination: if both switches are set
        """
        if clean_roles and no_roles:
            raise InvalidModeCombination()
        if clean_roles:
            return cls.CLEAN_ROLES
        if no_roles:
            return cls.NO_ROLES
        return cls.DEFAULT

    @property
    def uses_roles(self) -> bool:
        """Return True if role groups are created and wired."""
        return self is not OperatingMode.NO_ROLES

    @property
    def wires_users_to_access(self) -> bool:
        """Return True if users are added directly to access groups."""
        return self is not OperatingMode.CLEAN_ROLES


class GroupScope(Enum):
    """
    Active Directory group scope.

    Values are the scope bits of the groupType attribute.
    """

    GLOBAL = 0x00000002
    DOMAIN_LOCAL = 0x00000004
    UNIVERSAL = 0x00000008


class GroupType(Enum):
    """Active Directory group type."""

    SECURITY = auto()
    DISTRIBUTION = auto()


class ObjectType(Enum):
    """Directory object class used for lookups."""

    USER = "user"
    GROUP = "group"


class MembershipOp(Enum):
    """Group membership modification."""

    ADD = auto()
    REMOVE = auto()


class DirectoryErrorKind(Enum):
    """Classification of a recoverable directory failure."""

    INVALID_OPERATION = auto()  # Add of existing member, remove of non-member
    ALREADY_EXISTS = auto()
    NO_SUCH_OBJECT = auto()
    CONSTRAINT_VIOLATION = auto()  # e.g. password rejected by domain policy
    UNAVAILABLE = auto()
    OTHER = auto()


# =============================================================================
# CONFIGURATION RECORDS
# =============================================================================


@attrs.define(frozen=True, slots=True)
class NameSeed:
    """
    A first/last name pair from the seed pool.

    INVARIANT: both names are non-empty
    """

    first_name: str = field(
        converter=str.strip,
        validator=[validators.instance_of(str), validators.min_len(1)],
    )
    last_name: str = field(
        converter=str.strip,
        validator=[validators.instance_of(str), validators.min_len(1)],
    )


@attrs.define(frozen=True, slots=True)
class GroupSpec:
    """A configured group and its tier."""

    name: str = field(
        converter=str.strip,
        validator=[validators.instance_of(str), validators.min_len(1)],
    )
    tier: GroupTier = field(validator=validators.instance_of(GroupTier))


# =============================================================================
# GENERATED RECORDS
# =============================================================================


@attrs.define(frozen=True, slots=True)
class GeneratedIdentity:
    """
    A synthesized user identity.

    INVARIANT: account_id is unique within the batch it was generated in
    """

    first_name: str
    last_name: str
    account_id: str = field(validator=[validators.instance_of(str), validators.min_len(1)])

    @property
    def display_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    def user_principal_name(self, domain: str) -> str:
        """Return the UPN, e.g. jdoe@corp.example.com."""
        return f"{self.account_id}@{domain.lower()}"


@attrs.define(frozen=True, slots=True)
class Credential:
    """
    Initial password of a created user.

    Lives in memory for the duration of a run only.
    """

    account_id: str
    password: str = field(repr=False)

    def to_line(self) -> str:
        """Format for the credential export artifact."""
        return f"{self.account_id}:{self.password}"


# =============================================================================
# DIRECTORY RECORDS
# =============================================================================


@attrs.define(frozen=True, slots=True)
class DirectoryObject:
    """An object found by an attribute lookup."""

    distinguished_name: str
    object_type: ObjectType
    account_name: Optional[str] = None

    def is_at(self, expected_dn: str) -> bool:
        """Compare distinguished names (case-insensitive, like the directory)."""
        return _normalize_dn(self.distinguished_name) == _normalize_dn(expected_dn)


@attrs.define(frozen=True, slots=True)
class DirectoryError:
    """
    Recoverable failure reported by a directory adapter.

    Carried inside a returns Failure; never raised.
    """

    kind: DirectoryErrorKind
    message: str

    def __str__(self) -> str:
        return f"{self.kind.name}: {self.message}"


def _normalize_dn(dn: str) -> str:
    return ",".join(part.strip() for part in dn.split(",")).lower()
