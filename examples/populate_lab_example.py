#!/usr/bin/env python3
"""
Simulated Lab Population Example

Demonstrates how to use ADLabGen's LabOrchestrator against the in-memory
directory, without a domain controller.

Features:
1. Group tiers and operating modes
2. Idempotent re-runs against an existing lab
3. Conflict detection for groups outside the target container
4. Run report and stage trace export
"""

import json

from returns.result import Failure

from adlabgen import (
    GroupSpec,
    GroupTier,
    InMemoryDirectory,
    LabConfig,
    LabOrchestrator,
    NameSeed,
    OperatingMode,
)
from adlabgen.core.types import ObjectType


GROUPS = [
    GroupSpec(name="FileShare-RW", tier=GroupTier.ACCESS),
    GroupSpec(name="VPN-Users", tier=GroupTier.ACCESS),
    GroupSpec(name="CRM-ReadOnly", tier=GroupTier.ACCESS),
    GroupSpec(name="Sales", tier=GroupTier.ROLE),
    GroupSpec(name="Engineering", tier=GroupTier.ROLE),
]

SEEDS = [
    NameSeed("John", "Smith"),
    NameSeed("Mary", "Jones"),
    NameSeed("Alice", "Brown"),
    NameSeed("Omar", "Haddad"),
    NameSeed("Wei", "Chen"),
    NameSeed("Priya", "Patel"),
]

DOMAIN = "lab.example.com"


def main():
    """Demonstrate a simulated lab population."""

    print("=" * 70)
    print("ADLabGen - Simulated Lab Population")
    print("=" * 70)
    print()

    # ==========================================================================
    # EXAMPLE 1: Populate a fresh directory
    # ==========================================================================
    print("1. Populate a Fresh Directory (DEFAULT mode)")
    print("-" * 40)

    directory = InMemoryDirectory(domain=DOMAIN)
    config = LabConfig(domain=DOMAIN, user_count=8, seed=2024)
    result = LabOrchestrator(config=config, directory=directory).run(GROUPS, SEEDS)

    report = result.unwrap()
    print(f"   Groups created: {report.groups_created}")
    print(f"   Users created:  {report.users_created}")
    for role in report.role_groups:
        print(f"   {role} is nested in: {sorted(directory.groups_of(role))}")
    for user in directory.object_names(ObjectType.USER)[:3]:
        print(f"   {user}: {sorted(directory.groups_of(user))}")
    print()

    # ==========================================================================
    # EXAMPLE 2: Re-run against the same directory
    # ==========================================================================
    print("2. Re-run Against the Same Directory")
    print("-" * 40)

    config = LabConfig(domain=DOMAIN, user_count=4, seed=7, mode=OperatingMode.CLEAN_ROLES)
    report = LabOrchestrator(config=config, directory=directory).run(GROUPS, SEEDS).unwrap()
    print(f"   Groups skipped: {report.groups_skipped}")
    print(f"   create_group calls so far: {directory.count_calls('create_group')}")
    print(f"   Users created: {report.users_created}, skipped: {report.users_failed}")
    print()

    # ==========================================================================
    # EXAMPLE 3: Conflicting pre-existing group
    # ==========================================================================
    print("3. Pre-existing Group in Another Container")
    print("-" * 40)

    conflicted = InMemoryDirectory(domain=DOMAIN)
    conflicted.add_existing_group("VPN-Users", "OU=Legacy,DC=lab,DC=example,DC=com")
    result = LabOrchestrator(
        config=LabConfig(domain=DOMAIN, user_count=3),
        directory=conflicted,
    ).run(GROUPS, SEEDS)

    if isinstance(result, Failure):
        error = result.failure()
        print(f"   Aborted: {type(error).__name__}")
        print(f"   {error.message}")
        print(f"   Users created: {len(conflicted.object_names(ObjectType.USER))}")
    print()

    # ==========================================================================
    # EXAMPLE 4: Report and stage trace
    # ==========================================================================
    print("4. Run Report")
    print("-" * 40)

    summary = report.to_dict()
    stages = summary.pop("stages")
    print(json.dumps(summary, indent=2))
    print(f"   Stages: {' -> '.join(s['to_stage'] for s in stages)}")
    print()

    print("=" * 70)
    print("Done")
    print("=" * 70)


if __name__ == "__main__":
    main()
