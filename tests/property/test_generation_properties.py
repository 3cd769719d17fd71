"""
Property-based tests for generation invariants.

Tests that name synthesis, subset selection and password generation
hold their guarantees across many random inputs.
"""

import random

import pytest
from hypothesis import given, settings, strategies as st

from adlabgen.core.exceptions import ExhaustedNameSpace
from adlabgen.core.types import NameSeed
from adlabgen.generation.membership import pick_subset
from adlabgen.generation.names import (
    MAX_BASE_LENGTH,
    MAX_SUFFIX,
    NameSynthesizer,
    normalize_account_base,
)
from adlabgen.generation.passwords import PASSWORD_ALPHABET, generate_password


# =============================================================================
# STRATEGIES
# =============================================================================

# Names with at least one character sAMAccountName accepts
name_strategy = st.from_regex(r"[A-Za-z][A-Za-z' \-]{0,30}", fullmatch=True)

seed_strategy = st.builds(NameSeed, first_name=name_strategy, last_name=name_strategy)

seed_pool_strategy = st.lists(seed_strategy, min_size=1, max_size=20)

group_names_strategy = st.lists(
    st.from_regex(r"[A-Za-z][A-Za-z0-9]{0,15}", fullmatch=True),
    min_size=1,
    max_size=12,
    unique=True,
)


# =============================================================================
# NAME SYNTHESIS PROPERTIES
# =============================================================================


class TestNameProperties:
    """Property-based tests for NameSynthesizer."""

    @given(name_strategy, name_strategy)
    def test_base_is_legal(self, first: str, last: str):
        """Property: Base ids are lower-case, short and free of illegal characters."""
        base = normalize_account_base(first, last)
        assert 1 <= len(base) <= MAX_BASE_LENGTH
        assert base == base.lower()
        assert not set(base) & set(" '\"/\\[]:;|=,+*?<>@")

    @given(seed_pool_strategy, st.integers(min_value=1, max_value=60), st.integers())
    @settings(max_examples=50)
    def test_ids_unique_or_exhausted(self, pool, count: int, seed: int):
        """Property: A batch is either fully unique or fails with ExhaustedNameSpace."""
        synth = NameSynthesizer(rng=random.Random(seed))
        try:
            identities = synth.generate(pool, count)
        except ExhaustedNameSpace:
            return

        assert len(identities) == count
        ids = [i.account_id for i in identities]
        assert len(set(ids)) == count
        assert all(len(i) <= MAX_BASE_LENGTH + 1 for i in ids)

    @given(seed_strategy, st.integers())
    @settings(max_examples=50)
    def test_single_base_capacity(self, seed_record: NameSeed, seed: int):
        """Property: One base yields exactly ten ids, then is exhausted."""
        synth = NameSynthesizer(rng=random.Random(seed))
        identities = synth.generate([seed_record], MAX_SUFFIX + 1)
        assert len({i.account_id for i in identities}) == MAX_SUFFIX + 1

        with pytest.raises(ExhaustedNameSpace):
            synth.generate([seed_record], MAX_SUFFIX + 2)


# =============================================================================
# SUBSET PROPERTIES
# =============================================================================


class TestSubsetProperties:
    """Property-based tests for pick_subset."""

    @given(group_names_strategy, st.integers())
    def test_subset_bounds(self, candidates, seed: int):
        """Property: Non-empty subset, never all candidates when m > 1."""
        chosen = pick_subset(candidates, random.Random(seed))
        assert chosen
        assert chosen <= set(candidates)
        if len(candidates) > 1:
            assert len(chosen) < len(candidates)
        else:
            assert chosen == set(candidates)


# =============================================================================
# PASSWORD PROPERTIES
# =============================================================================


class TestPasswordProperties:
    """Property-based tests for generate_password."""

    @given(st.integers(min_value=1, max_value=100))
    def test_length_and_alphabet(self, length: int):
        """Property: Exact length, drawn from the allowed alphabet."""
        password = generate_password(length)
        assert len(password) == length
        assert set(password) <= set(PASSWORD_ALPHABET)
