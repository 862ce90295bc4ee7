"""Pack models for installed-state listings and operation parameters.

This module defines the records returned by a pack manager listing and
the immutable parameter objects passed to lifecycle operations.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

logger = logging.getLogger(__name__)

# Mapping from opaque lookup key (e.g. 'packname@1_0_2') to record
InstalledPacks = dict[str, "PackRecord"]


@dataclass(frozen=True, slots=True)
class PackRecord:
    """A single installed pack entry as reported by the pack manager.

    Several records may describe the same logical pack, e.g. a disabled
    older version next to the enabled default one.

    Attributes:
        cnr_id: Registry identifier of the pack, if it came from the registry.
        aux_id: Auxiliary identifier (e.g. 'owner/repo') for unregistered packs.
        ver: Installed version tag.
        enabled: True/False when the manager reports it, None when absent.
    """

    cnr_id: str | None = field(default=None)
    aux_id: str | None = field(default=None)
    ver: str | None = field(default=None)
    enabled: bool | None = field(default=None)

    @property
    def pack_id(self) -> str | None:
        """Canonical pack id: registry id first, auxiliary id second."""
        return self.cnr_id or self.aux_id or None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> PackRecord:
        """Build a record from a listing payload entry.

        Missing keys become None. An ``enabled`` value that is not a real
        boolean carries no signal and is treated as absent.

        Args:
            data: Mapping with optional 'cnr_id', 'aux_id', 'ver', 'enabled'.

        Returns:
            PackRecord instance.
        """
        enabled = data.get("enabled")
        ver = data.get("ver")
        return cls(
            cnr_id=data.get("cnr_id") or None,
            aux_id=data.get("aux_id") or None,
            ver=str(ver) if ver is not None else None,
            enabled=enabled if isinstance(enabled, bool) else None,
        )

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a dictionary, omitting absent fields."""
        result: dict[str, Any] = {}
        if self.cnr_id is not None:
            result["cnr_id"] = self.cnr_id
        if self.aux_id is not None:
            result["aux_id"] = self.aux_id
        if self.ver is not None:
            result["ver"] = self.ver
        if self.enabled is not None:
            result["enabled"] = self.enabled
        return result


def parse_installed_packs(payload: Mapping[str, Any] | None) -> InstalledPacks:
    """Convert a raw listing payload into an installed packs view.

    Args:
        payload: Mapping of lookup key to record dictionaries, or None
            when the manager returned no data.

    Returns:
        Installed packs view. Empty when payload is None or empty.
    """
    if not payload:
        return {}

    packs: InstalledPacks = {}
    for key, value in payload.items():
        if isinstance(value, PackRecord):
            packs[str(key)] = value
        elif isinstance(value, Mapping):
            packs[str(key)] = PackRecord.from_dict(value)
        else:
            logger.warning("Skipping malformed pack entry %r: %r", key, value)
    return packs


@dataclass(frozen=True, slots=True)
class PackInfo:
    """Parameters identifying a single pack.

    Attributes:
        id: Canonical pack id.
    """

    id: str


@dataclass(frozen=True, slots=True)
class InstallPackParams:
    """Parameters for installing, enabling or re-versioning a pack.

    Attributes:
        id: Canonical pack id. An empty id makes the install a no-op.
        selected_version: Requested version, or None for the default.
    """

    id: str
    selected_version: str | None = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> InstallPackParams:
        """Build install parameters, accepting 'version' as an alias."""
        version = data.get("selected_version", data.get("version"))
        return cls(
            id=str(data.get("id") or ""),
            selected_version=str(version) if version is not None else None,
        )


@dataclass(frozen=True, slots=True)
class UpdateAllPacksParams:
    """Parameters for a bulk update of every installed pack."""
