"""
ADLabGen Lab Configuration

Run configuration and the two line-oriented config files.

File formats (comma separated, one entry per line):
    groups file:     <group name>,<Access|Role>
    name-seeds file: <first name>,<last name>

Lines starting with '#' and blank lines are ignored. Malformed lines are
skipped with a warning; an unreadable file is a fatal ConfigFileError.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Iterator, List, Optional, Set, Tuple, Union

import attrs
import structlog
from attrs import field, validators

from adlabgen.core.exceptions import ConfigFileError
from adlabgen.core.types import GroupSpec, GroupTier, NameSeed, OperatingMode
from adlabgen.directory.adapter import domain_to_dn
from adlabgen.generation.names import is_usable_seed
from adlabgen.generation.passwords import (
    DEFAULT_PASSWORD_LENGTH,
    MAX_PASSWORD_LENGTH,
    MIN_PASSWORD_LENGTH,
)

logger = structlog.get_logger()

PathLike = Union[str, Path]

MIN_USER_COUNT = 1
MAX_USER_COUNT = 10000
DEFAULT_USER_COUNT = 40
MAX_WORKERS = 32


# =============================================================================
# CONFIGURATION
# =============================================================================


@attrs.define(frozen=True)
class LabConfig:
    """
    Lab population run configuration.

    Attributes:
        domain: AD domain name (e.g., "lab.example.com")
        target_dn: Container for all created objects; None selects the
            domain's default user container
        user_count: Number of users to generate (1-10000)
        mode: Membership wiring policy
        export_passwords: Write generated credentials to export_path
        export_path: Credential export file (default ./<domain>-credentials.txt)
        password_length: Length of generated passwords (1-100)
        workers: Parallel user provisioning workers (1 = sequential)
        seed: Random seed for reproducible runs
    """

    domain: str = field(validator=[validators.instance_of(str), validators.min_len(1)])

    @domain.validator
    def _check_domain(self, attribute: attrs.Attribute, value: str) -> None:
        domain_to_dn(value)

    target_dn: Optional[str] = None
    user_count: int = field(
        default=DEFAULT_USER_COUNT,
        validator=[
            validators.instance_of(int),
            validators.ge(MIN_USER_COUNT),
            validators.le(MAX_USER_COUNT),
        ],
    )
    mode: OperatingMode = field(
        default=OperatingMode.DEFAULT,
        validator=validators.instance_of(OperatingMode),
    )
    export_passwords: bool = False
    export_path: Optional[Path] = field(
        default=None,
        converter=attrs.converters.optional(Path),
    )
    password_length: int = field(
        default=DEFAULT_PASSWORD_LENGTH,
        validator=[
            validators.instance_of(int),
            validators.ge(MIN_PASSWORD_LENGTH),
            validators.le(MAX_PASSWORD_LENGTH),
        ],
    )
    workers: int = field(
        default=1,
        validator=[validators.instance_of(int), validators.ge(1), validators.le(MAX_WORKERS)],
    )
    seed: Optional[int] = None
    group_description: str = "Lab group created by adlabgen"
    user_description: str = "Lab user created by adlabgen"

    @classmethod
    def from_flags(
        cls,
        domain: str,
        clean_roles: bool = False,
        no_roles: bool = False,
        **kwargs: Any,
    ) -> "LabConfig":
        """
        Create config from CLI-style mode switches.

        Raises:
            InvalidModeCombination: if clean_roles and no_roles are both set
        """
        return cls(
            domain=domain,
            mode=OperatingMode.from_flags(clean_roles=clean_roles, no_roles=no_roles),
            **kwargs,
        )

    def resolve_export_path(self) -> Path:
        """Return the credential export path, defaulting into the working directory."""
        if self.export_path is not None:
            return self.export_path
        return Path.cwd() / f"{self.domain.lower()}-credentials.txt"


# =============================================================================
# FILE LOADERS
# =============================================================================


def _iter_config_lines(path: PathLike) -> Iterator[Tuple[int, str]]:
    """Yield (line number, stripped line) for meaningful lines of a config file."""
    try:
        with open(path, encoding="utf-8-sig") as handle:
            lines = handle.readlines()
    except OSError as e:
        raise ConfigFileError(str(path), e.strerror or str(e)) from e
    except UnicodeDecodeError as e:
        raise ConfigFileError(str(path), f"not valid UTF-8 ({e.reason})") from e

    for lineno, raw in enumerate(lines, start=1):
        line = raw.strip()
        if not line or line.startswith("#"):
            continue
        yield lineno, line


def _split_pair(line: str) -> Optional[Tuple[str, str]]:
    fields = [part.strip() for part in line.split(",")]
    if len(fields) != 2 or not all(fields):
        return None
    return fields[0], fields[1]


def load_group_specs(path: PathLike) -> List[GroupSpec]:
    """
    Load group definitions.

    Group names are unique case-insensitively; later duplicates are
    dropped with a warning.

    Raises:
        ConfigFileError: if the file cannot be read
    """
    specs: List[GroupSpec] = []
    seen: Set[str] = set()

    for lineno, line in _iter_config_lines(path):
        pair = _split_pair(line)
        if pair is None:
            logger.warning("malformed_group_line", path=str(path), line=lineno, content=line)
            continue

        name, tier_name = pair
        try:
            tier = GroupTier.parse(tier_name)
        except ValueError:
            logger.warning(
                "unknown_group_tier",
                path=str(path),
                line=lineno,
                tier=tier_name,
            )
            continue

        if name.lower() in seen:
            logger.warning("duplicate_group_dropped", path=str(path), line=lineno, group=name)
            continue

        seen.add(name.lower())
        specs.append(GroupSpec(name=name, tier=tier))

    logger.info("group_specs_loaded", path=str(path), count=len(specs))
    return specs


def load_name_seeds(path: PathLike) -> List[NameSeed]:
    """
    Load the name-seed pool in file order.

    Duplicate pairs are kept.

    Raises:
        ConfigFileError: if the file cannot be read
    """
    seeds: List[NameSeed] = []

    for lineno, line in _iter_config_lines(path):
        pair = _split_pair(line)
        if pair is None:
            logger.warning("malformed_seed_line", path=str(path), line=lineno, content=line)
            continue

        first_name, last_name = pair
        if not is_usable_seed(first_name, last_name):
            logger.warning("unusable_seed_skipped", path=str(path), line=lineno, content=line)
            continue

        seeds.append(NameSeed(first_name=first_name, last_name=last_name))

    logger.info("name_seeds_loaded", path=str(path), count=len(seeds))
    return seeds
