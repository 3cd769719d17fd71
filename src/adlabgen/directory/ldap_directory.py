"""
ADLabGen LDAP Directory Adapter

Active Directory over LDAP, built on ldap3.

Object creation:
- Groups: objectClass group, groupType = scope bit | security bit (signed)
- Users: created disabled, password set through the Microsoft unicodePwd
  extension, then enabled. AD only accepts password writes over an
  encrypted connection (LDAPS or StartTLS).

Result mapping:
- entryAlreadyExists / attributeOrValueExists on member add   -> INVALID_OPERATION
- noSuchAttribute / unwillingToPerform on member remove       -> INVALID_OPERATION
- Connection and bind errors raise DirectoryUnavailable
"""

from __future__ import annotations

import threading
from typing import Any, Dict, Optional

import attrs
import structlog
from ldap3 import (
    MODIFY_ADD,
    MODIFY_DELETE,
    MODIFY_REPLACE,
    NTLM,
    SIMPLE,
    SUBTREE,
    Connection,
    Server,
)
from ldap3.core import results
from ldap3.core.exceptions import LDAPException
from ldap3.utils.conv import escape_filter_chars
from returns.result import Failure, Result, Success

from adlabgen.core.exceptions import DirectoryUnavailable
from adlabgen.core.types import (
    DirectoryError,
    DirectoryErrorKind,
    DirectoryObject,
    GroupScope,
    GroupType,
    MembershipOp,
    ObjectType,
)
from adlabgen.directory.adapter import DirectoryAdapter, child_dn, domain_to_dn

logger = structlog.get_logger()


# =============================================================================
# ACTIVE DIRECTORY CONSTANTS
# =============================================================================

GROUP_TYPE_SECURITY_ENABLED = 0x80000000

# userAccountControl flags
UAC_ACCOUNTDISABLE = 0x0002
UAC_NORMAL_ACCOUNT = 0x0200
UAC_DONT_EXPIRE_PASSWORD = 0x10000

USER_OBJECT_CLASSES = ["top", "person", "organizationalPerson", "user"]
GROUP_OBJECT_CLASSES = ["top", "group"]

_MEMBERSHIP_NOOP_CODES = {
    MembershipOp.ADD: {
        results.RESULT_ENTRY_ALREADY_EXISTS,
        results.RESULT_ATTRIBUTE_OR_VALUE_EXISTS,
    },
    MembershipOp.REMOVE: {
        results.RESULT_NO_SUCH_ATTRIBUTE,
        results.RESULT_UNWILLING_TO_PERFORM,
    },
}

_RESULT_KINDS = {
    results.RESULT_ENTRY_ALREADY_EXISTS: DirectoryErrorKind.ALREADY_EXISTS,
    results.RESULT_NO_SUCH_OBJECT: DirectoryErrorKind.NO_SUCH_OBJECT,
    results.RESULT_CONSTRAINT_VIOLATION: DirectoryErrorKind.CONSTRAINT_VIOLATION,
    results.RESULT_BUSY: DirectoryErrorKind.UNAVAILABLE,
    results.RESULT_UNAVAILABLE: DirectoryErrorKind.UNAVAILABLE,
}


def group_type_value(scope: GroupScope, group_type: GroupType) -> int:
    """
    Compute the groupType attribute.

    AD stores it as a signed 32-bit integer, so security groups are negative
    (a global security group is -2147483646).
    """
    value = scope.value
    if group_type is GroupType.SECURITY:
        value |= GROUP_TYPE_SECURITY_ENABLED
    if value >= 2**31:
        value -= 2**32
    return value


def user_account_control(enabled: bool, password_never_expires: bool) -> int:
    """Compute the userAccountControl flags for a normal user account."""
    flags = UAC_NORMAL_ACCOUNT
    if not enabled:
        flags |= UAC_ACCOUNTDISABLE
    if password_never_expires:
        flags |= UAC_DONT_EXPIRE_PASSWORD
    return flags


def classify_result(
    result: Dict[str, Any],
    op: Optional[MembershipOp] = None,
) -> DirectoryError:
    """Map an ldap3 result dictionary to a DirectoryError."""
    code = result.get("result")
    description = result.get("description") or "unknown"
    message = result.get("message") or ""
    text = f"{description} ({code}) {message}".strip()

    if op is not None and code in _MEMBERSHIP_NOOP_CODES[op]:
        return DirectoryError(DirectoryErrorKind.INVALID_OPERATION, text)
    return DirectoryError(_RESULT_KINDS.get(code, DirectoryErrorKind.OTHER), text)


# =============================================================================
# LDAP DIRECTORY
# =============================================================================


@attrs.define
class LdapDirectory(DirectoryAdapter):
    """
    Directory adapter over a bound ldap3 connection.

    The connection is shared; calls are serialized behind a lock so the
    orchestrator may provision users from a worker pool.

    Example:
        directory = connect_ldap_directory(
            server="dc01.lab.example.com",
            domain="lab.example.com",
            user="LAB\\\\Administrator",
            password="...",
            use_ssl=True,
        )
    """

    connection: Connection
    _lock: threading.RLock = attrs.Factory(threading.RLock)
    _logger: Any = attrs.Factory(lambda: structlog.get_logger())

    def query_object(
        self,
        property_name: str,
        value: str,
        object_type: ObjectType,
        domain: str,
    ) -> Optional[DirectoryObject]:
        search_filter = (
            f"(&(objectClass={object_type.value})"
            f"({property_name}={escape_filter_chars(value)}))"
        )
        search_base = domain_to_dn(domain)

        with self._lock:
            try:
                self.connection.search(
                    search_base=search_base,
                    search_filter=search_filter,
                    search_scope=SUBTREE,
                    attributes=["sAMAccountName"],
                    size_limit=1,
                )
            except LDAPException as e:
                self._logger.error("ldap_search_failed", filter=search_filter, error=str(e))
                raise DirectoryUnavailable(f"LDAP search failed: {e}") from e

            code = self.connection.result.get("result")
            if code not in (results.RESULT_SUCCESS, results.RESULT_SIZE_LIMIT_EXCEEDED):
                error = classify_result(self.connection.result)
                self._logger.error("ldap_search_failed", filter=search_filter, error=str(error))
                raise DirectoryUnavailable(f"LDAP search under {search_base} failed: {error}")

            if not self.connection.entries:
                return None
            entry = self.connection.entries[0]

        account_name = None
        if "sAMAccountName" in entry:
            account_name = str(entry["sAMAccountName"])
        return DirectoryObject(
            distinguished_name=entry.entry_dn,
            object_type=object_type,
            account_name=account_name,
        )

    def create_group(
        self,
        name: str,
        description: str,
        parent_dn: str,
        scope: GroupScope,
        group_type: GroupType,
    ) -> Result[None, DirectoryError]:
        dn = child_dn(name, parent_dn)
        attributes: Dict[str, Any] = {
            "sAMAccountName": name,
            "groupType": group_type_value(scope, group_type),
        }
        if description:
            attributes["description"] = description

        return self._add(dn, GROUP_OBJECT_CLASSES, attributes)

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
        dn = child_dn(name, parent_dn)
        attributes: Dict[str, Any] = {
            "sAMAccountName": sam_account_name,
            "givenName": first_name,
            "sn": last_name,
            "displayName": display_name,
            # AD refuses to enable an account before a password is set
            "userAccountControl": user_account_control(False, password_never_expires),
        }
        if description:
            attributes["description"] = description
        if user_principal_name:
            attributes["userPrincipalName"] = user_principal_name

        added = self._add(dn, USER_OBJECT_CLASSES, attributes)
        if isinstance(added, Failure):
            return added

        password_set = self._set_password(dn, password)
        if isinstance(password_set, Failure):
            self._rollback(dn)
            return password_set

        if enabled:
            return self._modify(
                dn,
                {
                    "userAccountControl": [
                        (MODIFY_REPLACE, [user_account_control(True, password_never_expires)])
                    ]
                },
            )
        return Success(None)

    def modify_group_membership(
        self,
        group_dn: str,
        member_dn: str,
        op: MembershipOp,
    ) -> Result[None, DirectoryError]:
        ldap_op = MODIFY_ADD if op is MembershipOp.ADD else MODIFY_DELETE
        return self._modify(group_dn, {"member": [(ldap_op, [member_dn])]}, op=op)

    def close(self) -> None:
        with self._lock:
            if self.connection.bound:
                self.connection.unbind()
                self._logger.debug("ldap_connection_closed")

    # =========================================================================
    # INTERNALS
    # =========================================================================

    def _add(
        self, dn: str, object_class: list, attributes: Dict[str, Any]
    ) -> Result[None, DirectoryError]:
        with self._lock:
            try:
                ok = self.connection.add(dn, object_class, attributes)
            except LDAPException as e:
                raise DirectoryUnavailable(f"LDAP add of {dn} failed: {e}") from e
            if ok:
                self._logger.debug("ldap_object_added", dn=dn)
                return Success(None)
            error = classify_result(self.connection.result)
        self._logger.debug("ldap_add_failed", dn=dn, error=str(error))
        return Failure(error)

    def _modify(
        self,
        dn: str,
        changes: Dict[str, Any],
        op: Optional[MembershipOp] = None,
    ) -> Result[None, DirectoryError]:
        with self._lock:
            try:
                ok = self.connection.modify(dn, changes)
            except LDAPException as e:
                raise DirectoryUnavailable(f"LDAP modify of {dn} failed: {e}") from e
            if ok:
                return Success(None)
            error = classify_result(self.connection.result, op=op)
        self._logger.debug("ldap_modify_failed", dn=dn, error=str(error))
        return Failure(error)

    def _set_password(self, dn: str, password: str) -> Result[None, DirectoryError]:
        with self._lock:
            try:
                ok = self.connection.extend.microsoft.modify_password(dn, password)
            except LDAPException as e:
                return Failure(
                    DirectoryError(DirectoryErrorKind.CONSTRAINT_VIOLATION, f"Password rejected: {e}")
                )
            if ok:
                return Success(None)
            error = classify_result(self.connection.result)
        return Failure(
            DirectoryError(DirectoryErrorKind.CONSTRAINT_VIOLATION, f"Password rejected: {error.message}")
        )

    def _rollback(self, dn: str) -> None:
        with self._lock:
            try:
                deleted = self.connection.delete(dn)
            except LDAPException as e:
                self._logger.warning("ldap_rollback_failed", dn=dn, error=str(e))
                return
        if not deleted:
            self._logger.warning("ldap_rollback_failed", dn=dn)


# =============================================================================
# FACTORY FUNCTIONS
# =============================================================================


def connect_ldap_directory(
    server: str,
    domain: str,
    user: str,
    password: str,
    use_ssl: bool = False,
    port: Optional[int] = None,
    connect_timeout: int = 10,
) -> LdapDirectory:
    """
    Bind to a domain controller and return an adapter.

    Users given as DOMAIN\\name bind with NTLM; anything else (UPN or DN)
    binds with SIMPLE authentication.

    Raises:
        DirectoryUnavailable: if the connection or bind fails
    """
    authentication = NTLM if "\\" in user else SIMPLE
    ldap_server = Server(
        server,
        port=port or (636 if use_ssl else 389),
        use_ssl=use_ssl,
        connect_timeout=connect_timeout,
    )

    logger.info(
        "ldap_connect",
        server=server,
        domain=domain,
        user=user,
        use_ssl=use_ssl,
        authentication=authentication,
    )
    if not use_ssl:
        logger.warning(
            "ldap_plaintext_connection",
            message="Active Directory rejects password writes without LDAPS; user creation will fail",
        )

    try:
        connection = Connection(
            ldap_server,
            user=user,
            password=password,
            authentication=authentication,
            auto_bind=True,
        )
    except LDAPException as e:
        logger.error("ldap_bind_failed", server=server, error=str(e))
        raise DirectoryUnavailable(f"Cannot bind to {server}: {e}") from e

    return LdapDirectory(connection=connection)
