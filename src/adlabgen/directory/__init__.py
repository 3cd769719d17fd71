"""
ADLabGen Directory Module

Directory service access.

Components:
- adapter: DirectoryAdapter interface and DN helpers
- memory: InMemoryDirectory for simulated runs
- ldap_directory: LdapDirectory for Active Directory (ldap3)
- discovery: DNS SRV domain controller lookup
"""

from adlabgen.directory.adapter import DirectoryAdapter, child_dn, domain_to_dn
from adlabgen.directory.memory import InMemoryDirectory, create_simulated_directory
from adlabgen.directory.ldap_directory import LdapDirectory, connect_ldap_directory
from adlabgen.directory.discovery import discover_domain_controllers

__all__ = [
    "DirectoryAdapter",
    "child_dn",
    "domain_to_dn",
    "InMemoryDirectory",
    "create_simulated_directory",
    "LdapDirectory",
    "connect_ldap_directory",
    "discover_domain_controllers",
]
