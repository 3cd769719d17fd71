"""
Pytest configuration and shared fixtures for ADLabGen tests.
"""

import random
from pathlib import Path
from typing import List

import pytest
import structlog

from adlabgen.core.types import GroupSpec, GroupTier, NameSeed, OperatingMode
from adlabgen.directory.memory import InMemoryDirectory
from adlabgen.lab.config import LabConfig


# =============================================================================
# LOGGING
# =============================================================================


@pytest.fixture(autouse=True)
def reset_structlog():
    """Undo structlog configuration done by CLI invocations."""
    yield
    structlog.reset_defaults()


# =============================================================================
# DOMAIN FIXTURES
# =============================================================================


@pytest.fixture
def test_domain() -> str:
    """Test AD domain."""
    return "lab.example.com"


@pytest.fixture
def users_container() -> str:
    """Default user container of the test domain."""
    return "CN=Users,DC=lab,DC=example,DC=com"


@pytest.fixture
def directory(test_domain: str) -> InMemoryDirectory:
    """Empty simulated directory."""
    return InMemoryDirectory(domain=test_domain)


# =============================================================================
# CONFIGURATION FIXTURES
# =============================================================================


@pytest.fixture
def group_specs() -> List[GroupSpec]:
    """Two access groups and one role group."""
    return [
        GroupSpec(name="Sales", tier=GroupTier.ACCESS),
        GroupSpec(name="Engineering", tier=GroupTier.ACCESS),
        GroupSpec(name="AllStaff", tier=GroupTier.ROLE),
    ]


@pytest.fixture
def name_seeds() -> List[NameSeed]:
    """Small seed pool."""
    return [
        NameSeed("John", "Smith"),
        NameSeed("Mary", "Jones"),
        NameSeed("Alice", "Brown"),
        NameSeed("Omar", "Haddad"),
        NameSeed("Wei", "Chen"),
    ]


@pytest.fixture
def lab_config(test_domain: str) -> LabConfig:
    """Three-user config with a fixed seed."""
    return LabConfig(domain=test_domain, user_count=3, seed=1234)


@pytest.fixture
def rng() -> random.Random:
    """Deterministic random source."""
    return random.Random(42)


# =============================================================================
# CONFIG FILE FIXTURES
# =============================================================================


@pytest.fixture
def groups_file(tmp_path: Path) -> Path:
    """Groups file matching the group_specs fixture."""
    path = tmp_path / "groups.txt"
    path.write_text(
        "# name,tier\n"
        "Sales,Access\n"
        "Engineering,Access\n"
        "AllStaff,Role\n",
        encoding="utf-8",
    )
    return path


@pytest.fixture
def seeds_file(tmp_path: Path) -> Path:
    """Name-seeds file matching the name_seeds fixture."""
    path = tmp_path / "names.txt"
    path.write_text(
        "John,Smith\n"
        "Mary,Jones\n"
        "Alice,Brown\n"
        "Omar,Haddad\n"
        "Wei,Chen\n",
        encoding="utf-8",
    )
    return path


# =============================================================================
# HELPER FUNCTIONS
# =============================================================================


def make_config(domain: str = "lab.example.com", **kwargs) -> LabConfig:
    """Helper to create a config with a fixed seed."""
    kwargs.setdefault("seed", 1234)
    return LabConfig(domain=domain, **kwargs)


def make_groups(access: List[str], roles: List[str]) -> List[GroupSpec]:
    """Helper to build group specs from name lists."""
    return [GroupSpec(name=n, tier=GroupTier.ACCESS) for n in access] + [
        GroupSpec(name=n, tier=GroupTier.ROLE) for n in roles
    ]


# =============================================================================
# PYTEST MARKERS
# =============================================================================


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
    config.addinivalue_line(
        "markers", "integration: marks tests requiring a real AD environment"
    )
