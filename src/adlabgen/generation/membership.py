"""
ADLabGen Membership Randomizer

Random group selection for role and user wiring.

Subset rule: at least one group, and never every group when there is more
than one to choose from. With exactly two candidates this always selects
exactly one.
"""

from __future__ import annotations

import random
from typing import FrozenSet, List, Optional, Sequence, Set

_default_rng = random.Random()


def subset_size_bounds(candidate_count: int) -> range:
    """Return the allowed subset sizes for ``candidate_count`` candidates."""
    return range(1, max(1, candidate_count - 1) + 1)


def pick_subset(
    candidates: Sequence[str],
    rng: Optional[random.Random] = None,
) -> FrozenSet[str]:
    """
    Pick a random non-empty, non-total subset of candidates.

    The target size k is drawn uniformly from 1..max(1, m - 1), then
    members are drawn uniformly, rejecting repeats, until k are selected.

    Args:
        candidates: Group names to choose from (duplicates are ignored)
        rng: Random source (module-level generator if omitted)

    Returns:
        Frozen set of selected names

    Raises:
        ValueError: if candidates is empty
    """
    rng = rng or _default_rng
    unique: List[str] = list(dict.fromkeys(candidates))
    if not unique:
        raise ValueError("candidates must not be empty")

    sizes = subset_size_bounds(len(unique))
    target = rng.randint(sizes.start, sizes.stop - 1)

    selected: Set[str] = set()
    while len(selected) < target:
        # Rejection sampling; candidate lists are tens of entries at most
        selected.add(rng.choice(unique))

    return frozenset(selected)


def pick_one(candidates: Sequence[str], rng: Optional[random.Random] = None) -> str:
    """Pick a single candidate uniformly at random."""
    if not candidates:
        raise ValueError("candidates must not be empty")
    return (rng or _default_rng).choice(list(candidates))
