from __future__ import annotations

from typing import Iterable

from revius_backend.models.novelas import NovelaRecord


def deduplicate(records: Iterable[NovelaRecord]) -> list[NovelaRecord]:
    """Collapse records sharing a normalized title, keeping the first occurrence."""

    seen: set[str] = set()
    unique: list[NovelaRecord] = []
    for record in records:
        key = record.key
        if not key or key in seen:
            continue
        seen.add(key)
        unique.append(record)
    return unique
