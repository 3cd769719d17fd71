"""
ADLabGen Password Generation

Initial passwords for generated users, drawn from a cryptographically
strong source.
"""

import secrets
import string

MIN_PASSWORD_LENGTH = 1
MAX_PASSWORD_LENGTH = 100
DEFAULT_PASSWORD_LENGTH = 16

# Printable ASCII without whitespace, quotes or hash
EXCLUDED_CHARACTERS = frozenset("\"'`#")
PASSWORD_ALPHABET = "".join(
    ch for ch in string.printable
    if 0x21 <= ord(ch) <= 0x7E and ch not in EXCLUDED_CHARACTERS
)

_system_random = secrets.SystemRandom()


def generate_password(length: int = DEFAULT_PASSWORD_LENGTH) -> str:
    """
    Generate a random password of the given length.

    Raises:
        ValueError: if length is outside 1..100
    """
    if not MIN_PASSWORD_LENGTH <= length <= MAX_PASSWORD_LENGTH:
        raise ValueError(
            f"Password length must be between {MIN_PASSWORD_LENGTH} and "
            f"{MAX_PASSWORD_LENGTH}, got {length}"
        )
    return "".join(_system_random.choice(PASSWORD_ALPHABET) for _ in range(length))
