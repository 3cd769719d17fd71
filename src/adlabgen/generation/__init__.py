"""
ADLabGen Generation Module

Randomized content for a lab run.

Components:
- names: NameSynthesizer for unique account identifiers
- membership: Random group subset selection
- passwords: Initial password generation
"""

from adlabgen.generation.names import NameSynthesizer, generate_identities
from adlabgen.generation.membership import pick_one, pick_subset
from adlabgen.generation.passwords import generate_password

__all__ = [
    "NameSynthesizer",
    "generate_identities",
    "pick_one",
    "pick_subset",
    "generate_password",
]
