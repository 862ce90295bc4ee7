"""Data models for packctl.

This module exports the core data structures used throughout the application.
"""

from packctl.models.pack import (
    InstalledPacks,
    InstallPackParams,
    PackInfo,
    PackRecord,
    UpdateAllPacksParams,
    parse_installed_packs,
)
from packctl.models.task import Task, TaskLog

__all__ = [
    "InstallPackParams",
    "InstalledPacks",
    "PackInfo",
    "PackRecord",
    "Task",
    "TaskLog",
    "UpdateAllPacksParams",
    "parse_installed_packs",
]
