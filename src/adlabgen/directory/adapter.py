"""
ADLabGen Directory Service Adapter

Typed interface to the directory service. One method per operation;
unstructured attribute access stays behind this boundary.

Outcome model:
- Lookups return the object or None
- Mutations return Success(None) or Failure(DirectoryError)
- Transport failures raise DirectoryUnavailable
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional

from returns.result import Result

from adlabgen.core.types import (
    DirectoryError,
    DirectoryObject,
    GroupScope,
    GroupType,
    MembershipOp,
    ObjectType,
)

# Characters that must be escaped in an RDN value (RFC 4514)
_RDN_SPECIALS = set(',+"\\<>;=')


def domain_to_dn(domain: str) -> str:
    """
    Convert a DNS domain name to its naming context.

    Example:
        "corp.example.com" -> "DC=corp,DC=example,DC=com"
    """
    labels = [label for label in domain.strip().strip(".").split(".") if label]
    if not labels:
        raise ValueError(f"Invalid domain name: {domain!r}")
    return ",".join(f"DC={label}" for label in labels)


def escape_rdn_value(value: str) -> str:
    """Escape an RDN attribute value."""
    last = len(value) - 1
    parts = []
    for i, ch in enumerate(value):
        if (
            ch in _RDN_SPECIALS
            or (i == 0 and ch in " #")
            or (i == last and ch == " ")
        ):
            parts.append("\\" + ch)
        else:
            parts.append(ch)
    return "".join(parts)


def child_dn(name: str, parent_dn: str) -> str:
    """
    Distinguished name of an object directly under ``parent_dn``.

    All lab objects live in a single flat container, so an object's DN is
    always inferred as CN=<name>,<parent_dn>.
    """
    return f"CN={escape_rdn_value(name)},{parent_dn}"


class DirectoryAdapter(ABC):
    """
    Directory service capability set consumed by the orchestrator.

    Implementations:
    - InMemoryDirectory: simulated directory for dry runs and tests
    - LdapDirectory: Active Directory over LDAP (ldap3)
    """

    @abstractmethod
    def query_object(
        self,
        property_name: str,
        value: str,
        object_type: ObjectType,
        domain: str,
    ) -> Optional[DirectoryObject]:
        """
        Look up an object by attribute value.

        Returns:
            The first matching object, or None if nothing matches

        Raises:
            DirectoryUnavailable: if the directory cannot be queried
        """
        ...

    @abstractmethod
    def create_group(
        self,
        name: str,
        description: str,
        parent_dn: str,
        scope: GroupScope,
        group_type: GroupType,
    ) -> Result[None, DirectoryError]:
        """Create a group directly under ``parent_dn``."""
        ...

    @abstractmethod
    def create_user(
        self,
        name: str,
        sam_account_name: str,
        first_name: str,
        last_name: str,
        display_name: str,
        description: str,
        parent_dn: str,
        password: str,
        enabled: bool,
        password_never_expires: bool,
        user_principal_name: Optional[str] = None,
    ) -> Result[None, DirectoryError]:
        """Create a user directly under ``parent_dn`` with its password set."""
        ...

    @abstractmethod
    def modify_group_membership(
        self,
        group_dn: str,
        member_dn: str,
        op: MembershipOp,
    ) -> Result[None, DirectoryError]:
        """
        Add or remove a member.

        ADD of an existing member and REMOVE of a non-member are reported
        as Failure(DirectoryError(INVALID_OPERATION)).
        """
        ...

    def default_container(self, domain: str) -> str:
        """Return the default user container of the domain."""
        return f"CN=Users,{domain_to_dn(domain)}"

    def close(self) -> None:
        """Release any held resources."""
        return None
