"""
Unit tests for adlabgen.generation.names module.
"""

import random

import pytest

from adlabgen.core.exceptions import ExhaustedNameSpace
from adlabgen.core.types import NameSeed
from adlabgen.generation.names import (
    MAX_BASE_LENGTH,
    NameSynthesizer,
    generate_identities,
    is_usable_seed,
    normalize_account_base,
)


class TestNormalizeAccountBase:
    """Tests for base identifier derivation."""

    def test_initial_plus_last_name(self):
        """Test first initial + last name, lower-cased."""
        assert normalize_account_base("John", "Smith") == "jsmith"

    def test_illegal_characters_stripped(self):
        """Test characters sAMAccountName rejects are removed."""
        assert normalize_account_base("Mary", "O'Neil") == "moneil"
        assert normalize_account_base("Jean Paul", "Van der Berg") == "jvanderberg"

    def test_truncated(self):
        """Test base is capped at the sAMAccountName limit."""
        base = normalize_account_base("Alexander", "Wolfeschlegelsteinhausenbergerdorff")
        assert len(base) == MAX_BASE_LENGTH
        assert base.startswith("awolfe")

    def test_leading_illegal_first_character(self):
        """Test the initial is taken after sanitizing."""
        assert normalize_account_base("'Ana", "Lima") == "alima"


class TestIsUsableSeed:
    """Tests for seed usability."""

    def test_ordinary_names(self):
        """Test names with legal characters are usable."""
        assert is_usable_seed("John", "Smith")
        assert is_usable_seed("'Ana", "O'Neil")

    @pytest.mark.parametrize("first, last", [("@", "Smith"), ("John", "\"\""), ("@", "@")])
    def test_names_that_sanitize_to_nothing(self, first, last):
        """Test either name losing every character makes the seed unusable."""
        assert not is_usable_seed(first, last)


class TestNameSynthesizer:
    """Tests for NameSynthesizer."""

    def test_generates_requested_count(self, name_seeds, rng):
        """Test exactly count identities are produced."""
        identities = NameSynthesizer(rng=rng).generate(name_seeds, 25)
        assert len(identities) == 25

    def test_account_ids_unique(self, name_seeds, rng):
        """Test no two identities share an account id."""
        identities = NameSynthesizer(rng=rng).generate(name_seeds, 40)
        ids = [i.account_id for i in identities]
        assert len(set(ids)) == len(ids)

    def test_account_id_length(self, name_seeds, rng):
        """Test ids are at most the base limit plus one suffix digit."""
        identities = NameSynthesizer(rng=rng).generate(name_seeds, 40)
        assert all(len(i.account_id) <= MAX_BASE_LENGTH + 1 for i in identities)

    def test_names_come_from_pool(self, name_seeds, rng):
        """Test first and last names are drawn from the seed pool."""
        firsts = {s.first_name for s in name_seeds}
        lasts = {s.last_name for s in name_seeds}
        for identity in NameSynthesizer(rng=rng).generate(name_seeds, 30):
            assert identity.first_name in firsts
            assert identity.last_name in lasts

    def test_collision_suffixes(self):
        """Test collisions get suffixes 1..9 in order."""
        pool = [NameSeed("John", "Smith")]
        identities = NameSynthesizer(rng=random.Random(0)).generate(pool, 10)
        assert [i.account_id for i in identities] == ["jsmith"] + [
            f"jsmith{n}" for n in range(1, 10)
        ]

    def test_exhausted_name_space(self):
        """Test the 11th identity from a single seed fails."""
        pool = [NameSeed("John", "Smith")]
        with pytest.raises(ExhaustedNameSpace) as exc_info:
            NameSynthesizer(rng=random.Random(0)).generate(pool, 11)
        assert exc_info.value.base_id == "jsmith"
        assert exc_info.value.code == 20

    def test_uniqueness_scoped_to_call(self):
        """Test separate batches do not share the taken set."""
        pool = [NameSeed("John", "Smith")]
        synth = NameSynthesizer(rng=random.Random(0))
        first = synth.generate(pool, 10)
        second = synth.generate(pool, 10)
        assert [i.account_id for i in first] == [i.account_id for i in second]

    def test_deterministic_with_seed(self, name_seeds):
        """Test same seed gives the same batch."""
        a = generate_identities(name_seeds, 15, rng=random.Random(7))
        b = generate_identities(name_seeds, 15, rng=random.Random(7))
        assert a == b

    def test_empty_pool_rejected(self, rng):
        """Test empty seed pool is rejected."""
        with pytest.raises(ValueError):
            NameSynthesizer(rng=rng).generate([], 5)

    def test_non_positive_count_rejected(self, name_seeds, rng):
        """Test count must be positive."""
        with pytest.raises(ValueError):
            NameSynthesizer(rng=rng).generate(name_seeds, 0)
