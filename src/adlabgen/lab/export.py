"""
ADLabGen Credential Export

Writes generated credentials as ``account_id:password`` lines. The file is
created owner-readable only.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Sequence

import structlog

from adlabgen.core.exceptions import CredentialExportError
from adlabgen.core.types import Credential

logger = structlog.get_logger()


def _private_opener(path: str, flags: int) -> int:
    return os.open(path, flags, 0o600)


def write_credentials(credentials: Sequence[Credential], path: Path) -> Path:
    """
    Write the credential export artifact.

    Existing files are overwritten.

    Returns:
        The path written

    Raises:
        CredentialExportError: if the file cannot be written
    """
    try:
        with open(path, "w", encoding="utf-8", newline="\n", opener=_private_opener) as handle:
            for credential in credentials:
                handle.write(credential.to_line() + "\n")
    except OSError as e:
        raise CredentialExportError(str(path), e.strerror or str(e)) from e

    logger.info("credentials_exported", path=str(path), count=len(credentials))
    return path

