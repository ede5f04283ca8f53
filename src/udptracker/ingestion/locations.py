"""Location normalizer.

Every ingestion path (HTTP fetch, live snapshot, live update) funnels raw
service records through :func:`normalize_location`.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from udptracker.models.location import LocationRecord


def normalize_location(raw: Any) -> LocationRecord:
    """Map a raw service record into a :class:`LocationRecord`. Never raises."""
    return LocationRecord.model_validate(raw if isinstance(raw, dict) else {})


def normalize_locations(items: Iterable[Any]) -> list[LocationRecord]:
    """Normalize a server-ordered list, dropping repeats of an earlier ``id``.

    Order is preserved; records without an ``id`` are always kept.
    """
    seen: set[Any] = set()
    records: list[LocationRecord] = []
    for item in items:
        record = normalize_location(item)
        if record.id is not None:
            key = _hashable_id(record.id)
            if key in seen:
                continue
            seen.add(key)
        records.append(record)
    return records


def _hashable_id(value: Any) -> Any:
    try:
        hash(value)
    except TypeError:
        return repr(value)
    return value
