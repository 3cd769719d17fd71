"""
Unit tests for adlabgen.lab.export module.
"""

import os
import stat
import sys

import pytest

from adlabgen.core.exceptions import CredentialExportError
from adlabgen.core.types import Credential
from adlabgen.lab.export import write_credentials


class TestWriteCredentials:
    """Tests for the credential export artifact."""

    def test_line_format(self, tmp_path):
        """Test one account_id:password line per credential."""
        path = tmp_path / "creds.txt"
        credentials = [
            Credential(account_id="jsmith", password="a:b!c"),
            Credential(account_id="mjones", password="X$y%z"),
        ]

        assert write_credentials(credentials, path) == path
        assert path.read_text(encoding="utf-8") == "jsmith:a:b!c\nmjones:X$y%z\n"

    def test_overwrites_existing(self, tmp_path):
        """Test an existing file is replaced."""
        path = tmp_path / "creds.txt"
        path.write_text("stale\n", encoding="utf-8")
        write_credentials([Credential(account_id="jsmith", password="pw")], path)
        assert path.read_text(encoding="utf-8") == "jsmith:pw\n"

    @pytest.mark.skipif(sys.platform == "win32", reason="POSIX permissions")
    def test_owner_only_permissions(self, tmp_path):
        """Test a new file is readable by its owner only."""
        path = tmp_path / "creds.txt"
        write_credentials([], path)
        mode = stat.S_IMODE(os.stat(path).st_mode)
        assert mode & 0o077 == 0

    def test_unwritable_path(self, tmp_path):
        """Test write failures raise CredentialExportError."""
        path = tmp_path / "missing-dir" / "creds.txt"
        with pytest.raises(CredentialExportError) as exc_info:
            write_credentials([Credential(account_id="jsmith", password="pw")], path)
        assert exc_info.value.code == 50
