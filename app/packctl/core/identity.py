"""Pack identity resolution and installed-state reconciliation.

Pure functions deriving canonical pack ids from listing records and
computing which logical packs are installed, enabled or disabled.
"""

from collections.abc import Iterable
from dataclasses import dataclass, field

from packctl.models.pack import PackRecord


@dataclass(frozen=True, slots=True)
class ReconciledState:
    """Id sets derived from a batch of pack records.

    Attributes:
        installed: Ids of every identifiable record.
        enabled: Ids with at least one enabled record.
        disabled: Ids with a disabled record and no enabled record.
    """

    installed: frozenset[str] = field(default_factory=frozenset)
    enabled: frozenset[str] = field(default_factory=frozenset)
    disabled: frozenset[str] = field(default_factory=frozenset)


def get_pack_id(record: PackRecord) -> str | None:
    """Return the canonical id of a record, or None if unidentifiable."""
    return record.pack_id


def packs_to_id_set(records: Iterable[PackRecord]) -> set[str]:
    """Collect the canonical ids of all identifiable records."""
    ids: set[str] = set()
    for record in records:
        pack_id = get_pack_id(record)
        if pack_id:
            ids.add(pack_id)
    return ids


def reconcile(records: Iterable[PackRecord]) -> ReconciledState:
    """Compute installed, enabled and disabled id sets.

    A pack is disabled if there is a disabled entry and no corresponding
    enabled entry. If ``packname@1_0_2`` is disabled but ``packname`` is
    enabled, then ``packname`` is considered enabled:

        >>> state = reconcile([
        ...     PackRecord(cnr_id="packname", enabled=False),
        ...     PackRecord(cnr_id="packname", enabled=True),
        ... ])
        >>> "packname" in state.enabled, "packname" in state.disabled
        (True, False)

    Records without a resolvable id are ignored. Records whose enabled
    flag is absent only count towards ``installed``.

    Args:
        records: Pack records from an installed packs view.

    Returns:
        ReconciledState with the three id sets.
    """
    records = list(records)
    enabled_ids: set[str] = set()
    disabled_ids: set[str] = set()

    for record in records:
        pack_id = get_pack_id(record)
        if not pack_id:
            continue

        if record.enabled is True:
            enabled_ids.add(pack_id)
        elif record.enabled is False:
            disabled_ids.add(pack_id)

        # Enabled variant wins over a disabled one
        if pack_id in enabled_ids and pack_id in disabled_ids:
            disabled_ids.discard(pack_id)

    return ReconciledState(
        installed=frozenset(packs_to_id_set(records)),
        enabled=frozenset(enabled_ids),
        disabled=frozenset(disabled_ids),
    )
