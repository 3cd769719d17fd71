"""
ADLabGen Exception Types

Fatal error taxonomy for lab population runs.

Per-item directory failures (a user that could not be created, a membership
that already exists) are NOT exceptions: adapters report them as
``returns`` Failure values carrying a DirectoryError, and the orchestrator
logs and counts them.
"""

from typing import Optional


class LabGenError(Exception):
    """Base exception for all ADLabGen errors."""

    def __init__(self, message: str, code: Optional[int] = None) -> None:
        super().__init__(message)
        self.message = message
        self.code = code


# =============================================================================
# CONFIGURATION ERRORS
# =============================================================================


class ConfigurationError(LabGenError):
    """
    Configuration is invalid.

    Raised before any directory mutation begins.
    """

    pass


class ConfigFileError(ConfigurationError):
    """A groups or name-seeds file is missing or unreadable."""

    def __init__(self, path: str, reason: str) -> None:
        super().__init__(f"Cannot read config file {path}: {reason}", code=10)
        self.path = path


class NoAccessGroupsConfigured(ConfigurationError):
    """The group configuration defines no Access-tier groups."""

    def __init__(self, message: str = "No access groups configured") -> None:
        super().__init__(message, code=11)


class NoRoleGroupsConfigured(ConfigurationError):
    """
    The group configuration defines no Role-tier groups.

    Only raised when the operating mode uses role groups.
    """

    def __init__(
        self,
        message: str = "No role groups configured (use --no-roles to run without them)",
    ) -> None:
        super().__init__(message, code=12)


class InvalidModeCombination(ConfigurationError):
    """CleanRoles and NoRoles were both requested."""

    def __init__(
        self,
        message: str = "CleanRoles and NoRoles are mutually exclusive",
    ) -> None:
        super().__init__(message, code=13)


class EmptySeedPool(ConfigurationError):
    """The name-seed pool has no usable entries."""

    def __init__(self, message: str = "Name seed pool is empty") -> None:
        super().__init__(message, code=14)


class UnusableNameSeed(ConfigurationError):
    """A name seed has no character sAMAccountName accepts in one of its names."""

    def __init__(self, first_name: str, last_name: str) -> None:
        super().__init__(
            f"Name seed '{first_name},{last_name}' has no usable account-name characters",
            code=15,
        )
        self.first_name = first_name
        self.last_name = last_name


# =============================================================================
# GENERATION ERRORS
# =============================================================================


class ExhaustedNameSpace(LabGenError):
    """
    No unique account identifier could be derived.

    Every numeric suffix for a base identifier was already taken in this
    run. The seed pool is too small for the requested user count; retrying
    will not help.
    """

    def __init__(self, base_id: str, max_suffix: int) -> None:
        super().__init__(
            f"Name space exhausted for '{base_id}' after suffixes 1-{max_suffix}; "
            "add more name seeds or request fewer users",
            code=20,
        )
        self.base_id = base_id


# =============================================================================
# DIRECTORY STRUCTURE ERRORS
# =============================================================================


class GroupLocationConflict(LabGenError):
    """
    A pre-existing group sits outside the target location.

    Building memberships against it would use the wrong distinguished name,
    so the run aborts.
    """

    def __init__(self, group_name: str, expected_dn: str, actual_dn: str) -> None:
        super().__init__(
            f"Group '{group_name}' already exists at {actual_dn}, expected {expected_dn}",
            code=30,
        )
        self.group_name = group_name
        self.expected_dn = expected_dn
        self.actual_dn = actual_dn


class GroupProvisioningError(LabGenError):
    """A required group could not be created."""

    def __init__(self, group_name: str, reason: str) -> None:
        super().__init__(f"Failed to create group '{group_name}': {reason}", code=31)
        self.group_name = group_name


class DirectoryUnavailable(LabGenError):
    """
    The directory service could not be reached or queried.

    Raised by adapters for transport-level failures (connection refused,
    bind rejected, search failed).
    """

    def __init__(self, message: str) -> None:
        super().__init__(message, code=40)


# =============================================================================
# RUN ERRORS
# =============================================================================


class StateError(LabGenError):
    """
    Invalid stage transition.

    Indicates a stage was attempted out of order.
    """

    pass


class CredentialExportError(LabGenError):
    """The credential export artifact could not be written."""

    def __init__(self, path: str, reason: str) -> None:
        super().__init__(f"Cannot write credential export {path}: {reason}", code=50)
        self.path = path
