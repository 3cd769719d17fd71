"""
ADLabGen Lab Module

High-level lab population.

Components:
- config: LabConfig and the groups / name-seeds file loaders
- classifier: Access/role tier classification
- orchestrator: LabOrchestrator and RunReport
- export: Credential export artifact
"""

from adlabgen.lab.classifier import ClassifiedGroups, classify
from adlabgen.lab.config import LabConfig, load_group_specs, load_name_seeds
from adlabgen.lab.export import write_credentials
from adlabgen.lab.orchestrator import LabOrchestrator, RunReport, populate_lab

__all__ = [
    "ClassifiedGroups",
    "classify",
    "LabConfig",
    "load_group_specs",
    "load_name_seeds",
    "write_credentials",
    "LabOrchestrator",
    "RunReport",
    "populate_lab",
]
