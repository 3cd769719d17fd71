"""
ADLabGen Core Module

Provides foundational types and abstractions used across the package.

Components:
- types: Data model (NameSeed, GroupSpec, GeneratedIdentity, Credential, ...)
- state_machine: Run stage tracking with transition history
- exceptions: Fatal error taxonomy
"""

from adlabgen.core.types import (
    Credential,
    DirectoryError,
    DirectoryErrorKind,
    DirectoryObject,
    GeneratedIdentity,
    GroupScope,
    GroupSpec,
    GroupTier,
    GroupType,
    MembershipOp,
    NameSeed,
    ObjectType,
    OperatingMode,
)
from adlabgen.core.state_machine import RunStage, RunStateMachine, Transition
from adlabgen.core.exceptions import (
    LabGenError,
    ConfigurationError,
    ConfigFileError,
    NoAccessGroupsConfigured,
    NoRoleGroupsConfigured,
    InvalidModeCombination,
    EmptySeedPool,
    UnusableNameSeed,
    ExhaustedNameSpace,
    GroupLocationConflict,
    GroupProvisioningError,
    DirectoryUnavailable,
    StateError,
    CredentialExportError,
)

__all__ = [
    # Types
    "Credential",
    "DirectoryError",
    "DirectoryErrorKind",
    "DirectoryObject",
    "GeneratedIdentity",
    "GroupScope",
    "GroupSpec",
    "GroupTier",
    "GroupType",
    "MembershipOp",
    "NameSeed",
    "ObjectType",
    "OperatingMode",
    # State Machine
    "RunStage",
    "RunStateMachine",
    "Transition",
    # Exceptions
    "LabGenError",
    "ConfigurationError",
    "ConfigFileError",
    "NoAccessGroupsConfigured",
    "NoRoleGroupsConfigured",
    "InvalidModeCombination",
    "EmptySeedPool",
    "UnusableNameSeed",
    "ExhaustedNameSpace",
    "GroupLocationConflict",
    "GroupProvisioningError",
    "DirectoryUnavailable",
    "StateError",
    "CredentialExportError",
]
