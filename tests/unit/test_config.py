"""
Unit tests for adlabgen.lab.config module.

Tests LabConfig validation and the groups / name-seeds file loaders.
"""

from pathlib import Path

import pytest

from adlabgen.core.exceptions import ConfigFileError, InvalidModeCombination
from adlabgen.core.types import GroupSpec, GroupTier, NameSeed, OperatingMode
from adlabgen.lab.config import LabConfig, load_group_specs, load_name_seeds


class TestLabConfig:
    """Tests for LabConfig."""

    def test_defaults(self, test_domain):
        """Test default configuration values."""
        config = LabConfig(domain=test_domain)
        assert config.user_count == 40
        assert config.mode is OperatingMode.DEFAULT
        assert config.password_length == 16
        assert config.workers == 1
        assert config.export_passwords is False
        assert config.target_dn is None

    @pytest.mark.parametrize("count", [0, 10001])
    def test_user_count_range(self, test_domain, count):
        """Test user count must be within 1..10000."""
        with pytest.raises(ValueError):
            LabConfig(domain=test_domain, user_count=count)

    @pytest.mark.parametrize("length", [0, 101])
    def test_password_length_range(self, test_domain, length):
        """Test password length must be within 1..100."""
        with pytest.raises(ValueError):
            LabConfig(domain=test_domain, password_length=length)

    def test_invalid_domain(self):
        """Test a domain without labels is rejected."""
        with pytest.raises(ValueError):
            LabConfig(domain="...")

    def test_from_flags(self, test_domain):
        """Test mode switches map to the operating mode."""
        config = LabConfig.from_flags(test_domain, clean_roles=True, user_count=5)
        assert config.mode is OperatingMode.CLEAN_ROLES
        assert config.user_count == 5

    def test_from_flags_conflict(self, test_domain):
        """Test conflicting switches fail before anything else."""
        with pytest.raises(InvalidModeCombination):
            LabConfig.from_flags(test_domain, clean_roles=True, no_roles=True)

    def test_export_path_converted(self, test_domain):
        """Test export path strings become Paths."""
        config = LabConfig(domain=test_domain, export_path="creds.txt")
        assert config.export_path == Path("creds.txt")
        assert config.resolve_export_path() == Path("creds.txt")

    def test_default_export_path(self, tmp_path, monkeypatch):
        """Test default export path lands in the working directory."""
        monkeypatch.chdir(tmp_path)
        config = LabConfig(domain="LAB.Example.com")
        assert config.resolve_export_path() == tmp_path / "lab.example.com-credentials.txt"


class TestLoadGroupSpecs:
    """Tests for the groups file loader."""

    def test_load(self, groups_file, group_specs):
        """Test a well-formed file loads in order."""
        assert load_group_specs(groups_file) == group_specs

    def test_comments_blank_lines_and_bom(self, tmp_path):
        """Test comments, blank lines and a UTF-8 BOM are tolerated."""
        path = tmp_path / "groups.txt"
        path.write_bytes("\ufeff# header\n\nSales, Access\r\n  \nStaff,role\n".encode("utf-8"))
        assert load_group_specs(path) == [
            GroupSpec(name="Sales", tier=GroupTier.ACCESS),
            GroupSpec(name="Staff", tier=GroupTier.ROLE),
        ]

    def test_malformed_lines_skipped(self, tmp_path):
        """Test lines without exactly two fields are skipped."""
        path = tmp_path / "groups.txt"
        path.write_text(
            "Sales,Access\n"
            "NoTier\n"
            "Too,Many,Fields\n"
            ",Access\n"
            "Finance,Manager\n"
            "Staff,Role\n",
            encoding="utf-8",
        )
        specs = load_group_specs(path)
        assert [s.name for s in specs] == ["Sales", "Staff"]

    def test_duplicates_dropped(self, tmp_path):
        """Test later case-insensitive duplicates are dropped."""
        path = tmp_path / "groups.txt"
        path.write_text("Sales,Access\nSALES,Role\nStaff,Role\n", encoding="utf-8")
        specs = load_group_specs(path)
        assert specs == [
            GroupSpec(name="Sales", tier=GroupTier.ACCESS),
            GroupSpec(name="Staff", tier=GroupTier.ROLE),
        ]

    def test_missing_file(self, tmp_path):
        """Test an unreadable file is fatal."""
        with pytest.raises(ConfigFileError) as exc_info:
            load_group_specs(tmp_path / "missing.txt")
        assert exc_info.value.code == 10

    def test_invalid_encoding(self, tmp_path):
        """Test non-UTF-8 content is fatal."""
        path = tmp_path / "groups.txt"
        path.write_bytes(b"Sales,Access\n\xff\xfe\xfa,Role\n")
        with pytest.raises(ConfigFileError):
            load_group_specs(path)


class TestLoadNameSeeds:
    """Tests for the name-seeds file loader."""

    def test_load(self, seeds_file, name_seeds):
        """Test a well-formed file loads in order."""
        assert load_name_seeds(seeds_file) == name_seeds

    def test_duplicates_kept(self, tmp_path):
        """Test duplicate pairs stay in the pool."""
        path = tmp_path / "names.txt"
        path.write_text("John,Smith\nJohn,Smith\n", encoding="utf-8")
        assert load_name_seeds(path) == [NameSeed("John", "Smith")] * 2

    def test_malformed_and_unusable_skipped(self, tmp_path):
        """Test malformed lines and names with no usable characters are skipped."""
        path = tmp_path / "names.txt"
        path.write_text(
            "John,Smith\n"
            "Cher\n"
            "John,Smith,Jr\n"
            "''',Jones\n"
            "Mary,@@@\n"
            "Mary,Jones\n",
            encoding="utf-8",
        )
        assert load_name_seeds(path) == [NameSeed("John", "Smith"), NameSeed("Mary", "Jones")]

    def test_empty_file(self, tmp_path):
        """Test an empty file yields an empty pool."""
        path = tmp_path / "names.txt"
        path.write_text("# nothing here\n", encoding="utf-8")
        assert load_name_seeds(path) == []

    def test_missing_file(self, tmp_path):
        """Test an unreadable file is fatal."""
        with pytest.raises(ConfigFileError):
            load_name_seeds(tmp_path / "missing.txt")
