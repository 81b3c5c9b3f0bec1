"""
Domain models — Pydantic types for the bootstrap engine.

All models are re-exported here for convenient access:

    from envboot.core.models import Platform, Requirement, ToolStatus, Receipt
"""

from envboot.core.models.action import (
    Action,
    InstallAction,
    Receipt,
    SkipAction,
    SkipReason,
    UpgradeAction,
    action_to_dict,
)
from envboot.core.models.manifest import Manifest, Settings
from envboot.core.models.platform import Arch, LinuxDistro, OSFamily, Platform, ShellKind
from envboot.core.models.requirement import Requirement
from envboot.core.models.status import ToolStatus

__all__ = [
    # action.py
    "Action",
    "Arch",
    "InstallAction",
    "LinuxDistro",
    # manifest.py
    "Manifest",
    "OSFamily",
    # platform.py
    "Platform",
    "Receipt",
    # requirement.py
    "Requirement",
    "Settings",
    "ShellKind",
    "SkipAction",
    "SkipReason",
    # status.py
    "ToolStatus",
    "UpgradeAction",
    "action_to_dict",
]
