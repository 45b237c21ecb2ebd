"""
View derivation for the portals

Turns the raw live pickup set into the slice a screen shows. Every function
here is pure: same records and filters in, same records out, same order.
"""

import math
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional, Sequence

from .catalog import WasteCatalog, default_catalog
from .models import PickupRecord, PickupStatus

_OLDEST = datetime.min.replace(tzinfo=timezone.utc)


@dataclass(frozen=True)
class ViewFilters:
    """Filter selections for one view; unset fields do not filter"""
    fleet: Optional[str] = None
    status: Optional[PickupStatus] = None
    sub_type: Optional[str] = None
    portfolio: Sequence[str] = field(default_factory=tuple)
    owner_id: Optional[str] = None
    # Partner views never show records whose primary type is not catalogued
    exclude_unknown: bool = True


def _created_key(record: PickupRecord):
    created = record.created_at
    if created is None:
        # Not yet stamped by the store: newest
        return (1, _OLDEST)
    if created.tzinfo is None:
        created = created.replace(tzinfo=timezone.utc)
    return (0, created)


def order_newest_first(records: Iterable[PickupRecord]) -> List[PickupRecord]:
    return sorted(records, key=_created_key, reverse=True)


def matches_fleet(record: PickupRecord, fleet: Optional[str]) -> bool:
    return not fleet or record.primary_type == fleet


def matches_portfolio(record: PickupRecord, portfolio: Sequence[str]) -> bool:
    """An undeclared (empty) portfolio sees everything"""
    return not portfolio or record.primary_type in portfolio


def matches_status(record: PickupRecord, status: Optional[PickupStatus]) -> bool:
    return status is None or record.status == status


def matches_sub_type(
    record: PickupRecord,
    fleet: Optional[str],
    sub_type: Optional[str],
    catalog: WasteCatalog = default_catalog,
) -> bool:
    """Sub-category filtering only applies once a fleet that defines sub-categories is selected"""
    if not sub_type or not catalog.is_valid_sub_type(fleet, sub_type):
        return True
    return record.sub_type == sub_type


def derive_view(
    records: Sequence[PickupRecord],
    filters: ViewFilters,
    catalog: WasteCatalog = default_catalog,
) -> List[PickupRecord]:
    """Apply every filter (logical AND), keeping the incoming order"""
    visible = []
    for record in records:
        if filters.owner_id is not None and record.owner_id != filters.owner_id:
            continue
        if filters.exclude_unknown and not catalog.is_known(record.primary_type):
            continue
        if not matches_fleet(record, filters.fleet):
            continue
        if not matches_portfolio(record, filters.portfolio):
            continue
        if not matches_status(record, filters.status):
            continue
        if not matches_sub_type(record, filters.fleet, filters.sub_type, catalog):
            continue
        visible.append(record)
    return visible


def customer_view(records: Sequence[PickupRecord], owner_id: str) -> List[PickupRecord]:
    """A customer's own schedule; unknown types are still shown to their owner"""
    return derive_view(records, ViewFilters(owner_id=owner_id, exclude_unknown=False))


def partner_view(
    records: Sequence[PickupRecord],
    portfolio: Sequence[str] = (),
    fleet: Optional[str] = None,
    status: Optional[PickupStatus] = None,
    sub_type: Optional[str] = None,
    catalog: WasteCatalog = default_catalog,
) -> List[PickupRecord]:
    filters = ViewFilters(
        fleet=fleet,
        status=status,
        sub_type=sub_type,
        portfolio=tuple(portfolio),
    )
    return derive_view(records, filters, catalog)


def count_by_status(records: Iterable[PickupRecord]) -> Dict[PickupStatus, int]:
    counts = {status: 0 for status in PickupStatus}
    for record in records:
        counts[record.status] += 1
    return counts


def completion_rate(records: Sequence[PickupRecord]) -> Optional[int]:
    """Rounded percentage of completed records, None when there are none"""
    if not records:
        return None
    completed = sum(1 for r in records if r.status == PickupStatus.COMPLETED)
    # Half rounds up
    return math.floor(completed / len(records) * 100 + 0.5)


def active_by_fleet(records: Iterable[PickupRecord], catalog: WasteCatalog = default_catalog) -> Dict[str, int]:
    """Non-completed records per catalogued primary type"""
    counts = {waste_type: 0 for waste_type in catalog.ids()}
    for record in records:
        if record.status != PickupStatus.COMPLETED and record.primary_type in counts:
            counts[record.primary_type] += 1
    return counts
