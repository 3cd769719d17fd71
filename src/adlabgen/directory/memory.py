"""
ADLabGen In-Memory Directory

Simulated directory service used for dry runs (--simulate) and tests.

Mirrors the Active Directory behaviors the orchestrator depends on:
- sAMAccountName is unique across the domain
- Objects can only be created in an existing container
- Adding an existing member / removing a non-member is an invalid operation

Thread-safe: all access is serialized behind a single lock.
"""

from __future__ import annotations

import threading
from typing import Any, Dict, List, Optional, Set

import attrs
import structlog
from returns.result import Failure, Result, Success

from adlabgen.core.types import (
    DirectoryError,
    DirectoryErrorKind,
    DirectoryObject,
    GroupScope,
    GroupType,
    MembershipOp,
    ObjectType,
)
from adlabgen.directory.adapter import DirectoryAdapter, child_dn

logger = structlog.get_logger()


def _key(dn: str) -> str:
    return ",".join(part.strip() for part in dn.split(",")).lower()


@attrs.define(frozen=True, slots=True)
class DirectoryCall:
    """A recorded adapter call."""

    method: str
    target: str


@attrs.define
class _Entry:
    dn: str
    object_type: ObjectType
    attributes: Dict[str, Any]
    members: Set[str] = attrs.Factory(set)


@attrs.define
class InMemoryDirectory(DirectoryAdapter):
    """
    Simulated Active Directory domain.

    Example:
        directory = InMemoryDirectory(domain="lab.example.com")
        directory.create_group("Sales", "", directory.default_container("lab.example.com"),
                               GroupScope.GLOBAL, GroupType.SECURITY)
    """

    domain: str = "lab.local"
    # Simulated domain password policy; 0 disables the check
    min_password_length: int = 0

    calls: List[DirectoryCall] = attrs.Factory(list)
    _entries: Dict[str, _Entry] = attrs.Factory(dict)
    _containers: Set[str] = attrs.Factory(set)
    _lock: threading.RLock = attrs.Factory(threading.RLock)
    _logger: Any = attrs.Factory(lambda: structlog.get_logger())

    def __attrs_post_init__(self) -> None:
        self.add_container(self.default_container(self.domain))

    # =========================================================================
    # SETUP HELPERS
    # =========================================================================

    def add_container(self, dn: str) -> None:
        """Register a container (OU or CN) objects may be created in."""
        with self._lock:
            self._containers.add(_key(dn))

    def add_existing_group(self, name: str, parent_dn: Optional[str] = None) -> str:
        """Seed a pre-existing group, bypassing call recording."""
        parent_dn = parent_dn or self.default_container(self.domain)
        dn = child_dn(name, parent_dn)
        with self._lock:
            self._containers.add(_key(parent_dn))
            self._entries[_key(dn)] = _Entry(
                dn=dn,
                object_type=ObjectType.GROUP,
                attributes={"samaccountname": name, "name": name},
            )
        return dn

    # =========================================================================
    # ADAPTER OPERATIONS
    # =========================================================================

    def query_object(
        self,
        property_name: str,
        value: str,
        object_type: ObjectType,
        domain: str,
    ) -> Optional[DirectoryObject]:
        self._record("query_object", f"{property_name}={value}")
        attribute = property_name.lower()
        wanted = value.lower()
        with self._lock:
            for entry in self._entries.values():
                if entry.object_type is not object_type:
                    continue
                if attribute == "distinguishedname":
                    actual = _key(entry.dn)
                    wanted_value = _key(value)
                else:
                    actual = str(entry.attributes.get(attribute, "")).lower()
                    wanted_value = wanted
                if actual == wanted_value:
                    return DirectoryObject(
                        distinguished_name=entry.dn,
                        object_type=entry.object_type,
                        account_name=entry.attributes.get("samaccountname"),
                    )
        return None

    def create_group(
        self,
        name: str,
        description: str,
        parent_dn: str,
        scope: GroupScope,
        group_type: GroupType,
    ) -> Result[None, DirectoryError]:
        self._record("create_group", name)
        return self._add_entry(
            name=name,
            parent_dn=parent_dn,
            object_type=ObjectType.GROUP,
            attributes={
                "samaccountname": name,
                "name": name,
                "description": description,
                "scope": scope,
                "group_type": group_type,
            },
        )

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
        self._record("create_user", sam_account_name)
        if len(password) < self.min_password_length:
            return Failure(
                DirectoryError(
                    DirectoryErrorKind.CONSTRAINT_VIOLATION,
                    "Password does not meet the domain password policy",
                )
            )
        return self._add_entry(
            name=name,
            parent_dn=parent_dn,
            object_type=ObjectType.USER,
            attributes={
                "samaccountname": sam_account_name,
                "name": name,
                "givenname": first_name,
                "sn": last_name,
                "displayname": display_name,
                "description": description,
                "userprincipalname": user_principal_name,
                "enabled": enabled,
                "password_never_expires": password_never_expires,
            },
        )

    def modify_group_membership(
        self,
        group_dn: str,
        member_dn: str,
        op: MembershipOp,
    ) -> Result[None, DirectoryError]:
        self._record(f"membership_{op.name.lower()}", f"{member_dn} -> {group_dn}")
        group_key = _key(group_dn)
        member_key = _key(member_dn)
        with self._lock:
            group = self._entries.get(group_key)
            if group is None or group.object_type is not ObjectType.GROUP:
                return Failure(
                    DirectoryError(DirectoryErrorKind.NO_SUCH_OBJECT, f"No such group: {group_dn}")
                )
            if member_key not in self._entries:
                return Failure(
                    DirectoryError(DirectoryErrorKind.NO_SUCH_OBJECT, f"No such object: {member_dn}")
                )

            if op is MembershipOp.ADD:
                if member_key in group.members:
                    return Failure(
                        DirectoryError(
                            DirectoryErrorKind.INVALID_OPERATION,
                            f"{member_dn} is already a member of {group_dn}",
                        )
                    )
                group.members.add(member_key)
            else:
                if member_key not in group.members:
                    return Failure(
                        DirectoryError(
                            DirectoryErrorKind.INVALID_OPERATION,
                            f"{member_dn} is not a member of {group_dn}",
                        )
                    )
                group.members.discard(member_key)

        return Success(None)

    # =========================================================================
    # INSPECTION
    # =========================================================================

    def object_names(self, object_type: ObjectType) -> List[str]:
        """Return the account names of all objects of a type."""
        with self._lock:
            return [
                e.attributes["samaccountname"]
                for e in self._entries.values()
                if e.object_type is object_type
            ]

    def get_attributes(self, dn: str) -> Dict[str, Any]:
        with self._lock:
            return dict(self._entries[_key(dn)].attributes)

    def members_of(self, group_name: str) -> Set[str]:
        """Return account names of the direct members of a group."""
        with self._lock:
            group = self._find_by_account(group_name, ObjectType.GROUP)
            if group is None:
                raise KeyError(group_name)
            return {
                self._entries[m].attributes["samaccountname"]
                for m in group.members
                if m in self._entries
            }

    def groups_of(self, account_name: str) -> Set[str]:
        """Return names of the groups an object is a direct member of."""
        with self._lock:
            member = self._find_by_account(account_name)
            if member is None:
                raise KeyError(account_name)
            member_key = _key(member.dn)
            return {
                e.attributes["samaccountname"]
                for e in self._entries.values()
                if e.object_type is ObjectType.GROUP and member_key in e.members
            }

    def count_calls(self, method: str) -> int:
        return sum(1 for call in self.calls if call.method == method)

    # =========================================================================
    # INTERNALS
    # =========================================================================

    def _record(self, method: str, target: str) -> None:
        with self._lock:
            self.calls.append(DirectoryCall(method=method, target=target))

    def _find_by_account(
        self, account_name: str, object_type: Optional[ObjectType] = None
    ) -> Optional[_Entry]:
        wanted = account_name.lower()
        for entry in self._entries.values():
            if object_type is not None and entry.object_type is not object_type:
                continue
            if str(entry.attributes.get("samaccountname", "")).lower() == wanted:
                return entry
        return None

    def _add_entry(
        self,
        name: str,
        parent_dn: str,
        object_type: ObjectType,
        attributes: Dict[str, Any],
    ) -> Result[None, DirectoryError]:
        dn = child_dn(name, parent_dn)
        with self._lock:
            if _key(parent_dn) not in self._containers:
                return Failure(
                    DirectoryError(
                        DirectoryErrorKind.NO_SUCH_OBJECT,
                        f"Container does not exist: {parent_dn}",
                    )
                )
            if _key(dn) in self._entries:
                return Failure(
                    DirectoryError(DirectoryErrorKind.ALREADY_EXISTS, f"Object exists: {dn}")
                )
            if self._find_by_account(attributes["samaccountname"]) is not None:
                return Failure(
                    DirectoryError(
                        DirectoryErrorKind.ALREADY_EXISTS,
                        f"sAMAccountName already in use: {attributes['samaccountname']}",
                    )
                )
            self._entries[_key(dn)] = _Entry(
                dn=dn,
                object_type=object_type,
                attributes=attributes,
            )

        self._logger.debug("simulated_object_created", dn=dn, object_type=object_type.value)
        return Success(None)


def create_simulated_directory(domain: str, target_dn: Optional[str] = None) -> InMemoryDirectory:
    """
    Create an in-memory directory for a domain.

    Args:
        domain: DNS domain name
        target_dn: Extra container to register (e.g. a lab OU)
    """
    directory = InMemoryDirectory(domain=domain)
    if target_dn:
        directory.add_container(target_dn)
    return directory
