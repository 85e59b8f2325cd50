"""Insight catalog: immutable, ordered index of insight definitions."""

from __future__ import annotations

from typing import Iterable, Iterator

from careinsight.core.catalog.models import InsightConfig


class InsightCatalog:
    """Read-only catalog of insights, in declaration order.

    Built once from loaded entries and passed explicitly to the components
    that need it. Tests substitute their own catalogs.
    """

    def __init__(self, entries: Iterable[InsightConfig]) -> None:
        ordered: list[InsightConfig] = []
        by_key: dict[str, InsightConfig] = {}
        for entry in entries:
            if entry.insight_key in by_key:
                raise ValueError(f"Duplicate insight key in catalog: {entry.insight_key!r}")
            by_key[entry.insight_key] = entry
            ordered.append(entry)
        self._entries = tuple(ordered)
        self._by_key = by_key

    def get(self, insight_key: str) -> InsightConfig | None:
        """Look up an insight by key."""
        return self._by_key.get(insight_key)

    def keys(self) -> list[str]:
        """All insight keys in catalog order."""
        return [entry.insight_key for entry in self._entries]

    def all(self) -> tuple[InsightConfig, ...]:
        return self._entries

    def __iter__(self) -> Iterator[InsightConfig]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, insight_key: object) -> bool:
        return insight_key in self._by_key
