"""
ADLabGen - Randomized Active Directory Lab Population

This package fills a directory service with a randomized but internally
consistent set of users and groups, for testing other directory tools.

Group Tiers:
- Access groups: model grantable permission sets
- Role groups: model job functions, nested into access groups

Operating Modes:
- DEFAULT: users join a role group and access groups
- CLEAN_ROLES: users join a role group only
- NO_ROLES: no role groups; users join access groups only

Example Usage:
    from adlabgen import LabConfig, LabOrchestrator, InMemoryDirectory
    from adlabgen import load_group_specs, load_name_seeds

    config = LabConfig(domain="lab.example.com", user_count=40)
    directory = InMemoryDirectory(domain="lab.example.com")
    orchestrator = LabOrchestrator(config=config, directory=directory)

    result = orchestrator.run(
        load_group_specs("groups.txt"),
        load_name_seeds("names.txt"),
    )
    report = result.unwrap()
    print(f"Created {report.users_created} users")
"""

from adlabgen.core.types import GroupSpec, GroupTier, NameSeed, OperatingMode
from adlabgen.core.exceptions import LabGenError
from adlabgen.directory.memory import InMemoryDirectory
from adlabgen.directory.ldap_directory import LdapDirectory, connect_ldap_directory
from adlabgen.lab.config import LabConfig, load_group_specs, load_name_seeds
from adlabgen.lab.orchestrator import LabOrchestrator, RunReport, populate_lab

__version__ = "0.1.0"

__all__ = [
    # Main API
    "LabOrchestrator",
    "LabConfig",
    "RunReport",
    "populate_lab",
    "load_group_specs",
    "load_name_seeds",
    # Directories
    "InMemoryDirectory",
    "LdapDirectory",
    "connect_ldap_directory",
    # Types
    "GroupSpec",
    "GroupTier",
    "NameSeed",
    "OperatingMode",
    "LabGenError",
    # Metadata
    "__version__",
]
