"""
ADLabGen Name Synthesizer

Produces collision-free account identifiers from a pool of name seeds.

Identifier format:
    first initial + last name, lower-cased, stripped of characters that
    sAMAccountName does not accept, truncated to 20 characters. Collisions
    within the batch get a single-digit suffix (1-9).
"""

from __future__ import annotations

import random
import re
from typing import Any, List, Optional, Sequence, Set

import attrs
import structlog

from adlabgen.core.exceptions import ExhaustedNameSpace
from adlabgen.core.types import GeneratedIdentity, NameSeed

logger = structlog.get_logger()

# sAMAccountName is limited to 20 characters; the suffix digit goes on top
MAX_BASE_LENGTH = 20
MAX_SUFFIX = 9

_ILLEGAL_ACCOUNT_CHARS = re.compile(r"[\s\"/\\\[\]:;|=,+*?<>@']")


def normalize_account_base(first_name: str, last_name: str) -> str:
    """
    Build the base identifier for a first/last name pair.

    Examples:
        ("John", "Smith") -> "jsmith"
        ("Mary", "O'Neil") -> "moneil"
    """
    first = _ILLEGAL_ACCOUNT_CHARS.sub("", first_name).lower()
    last = _ILLEGAL_ACCOUNT_CHARS.sub("", last_name).lower()
    return (first[:1] + last)[:MAX_BASE_LENGTH]


def is_usable_seed(first_name: str, last_name: str) -> bool:
    """
    Check that both names keep at least one character after sanitizing.

    First and last names are mixed across seeds, so each must stand alone.
    """
    return bool(normalize_account_base(first_name, "")) and bool(
        normalize_account_base("", last_name)
    )


@attrs.define
class NameSynthesizer:
    """
    Random identity generator.

    The uniqueness set is scoped to a single generate() call, so one
    synthesizer can serve several independent batches.

    Example:
        synth = NameSynthesizer(rng=random.Random(42))
        identities = synth.generate(seeds, count=40)
    """

    rng: random.Random = attrs.Factory(random.Random)
    _logger: Any = attrs.Factory(lambda: structlog.get_logger())

    def generate(
        self,
        seed_pool: Sequence[NameSeed],
        count: int,
    ) -> List[GeneratedIdentity]:
        """
        Generate exactly ``count`` identities.

        First and last names are drawn independently, so a generated user
        need not match any single seed record.

        Raises:
            ValueError: if the pool is empty or count < 1
            ExhaustedNameSpace: if a base identifier runs out of suffixes
        """
        if not seed_pool:
            raise ValueError("seed_pool must not be empty")
        if count < 1:
            raise ValueError(f"count must be positive, got {count}")

        taken: Set[str] = set()
        identities: List[GeneratedIdentity] = []

        for _ in range(count):
            first_name = self.rng.choice(seed_pool).first_name
            last_name = self.rng.choice(seed_pool).last_name
            base = normalize_account_base(first_name, last_name)
            account_id = self._claim(base, taken)
            identities.append(
                GeneratedIdentity(
                    first_name=first_name,
                    last_name=last_name,
                    account_id=account_id,
                )
            )

        self._logger.info(
            "identities_generated",
            count=len(identities),
            seed_pool_size=len(seed_pool),
        )
        return identities

    def _claim(self, base: str, taken: Set[str]) -> str:
        candidate = self._first_free(base, taken)
        if candidate is None:
            self._logger.error("name_space_exhausted", base_id=base)
            raise ExhaustedNameSpace(base, MAX_SUFFIX)
        if candidate != base:
            self._logger.debug("account_id_collision", base_id=base, account_id=candidate)
        taken.add(candidate)
        return candidate

    @staticmethod
    def _first_free(base: str, taken: Set[str]) -> Optional[str]:
        if base not in taken:
            return base
        for suffix in range(1, MAX_SUFFIX + 1):
            candidate = f"{base}{suffix}"
            if candidate not in taken:
                return candidate
        return None


def generate_identities(
    seed_pool: Sequence[NameSeed],
    count: int,
    rng: Optional[random.Random] = None,
) -> List[GeneratedIdentity]:
    """Convenience wrapper around NameSynthesizer.generate."""
    synth = NameSynthesizer(rng=rng or random.Random())
    return synth.generate(seed_pool, count)
