"""Versioned, snapshot-based store for the active guideline set."""

import threading
from typing import Iterable

from ..core.types import Guideline


def merge_by_id(*sources: Iterable[Guideline]) -> tuple[Guideline, ...]:
    """Merge guideline sources; a later entry replaces an earlier one with the same id."""
    merged: dict[str, Guideline] = {}
    for source in sources:
        for guideline in source:
            merged[guideline.id] = guideline
    return tuple(merged.values())


class GuidelineStore:
    """Holds an immutable snapshot of guidelines; every write swaps the snapshot and bumps the version."""

    def __init__(self, guidelines: Iterable[Guideline] = ()):
        self._lock = threading.Lock()
        self._snapshot = merge_by_id(guidelines)
        self._version = 0

    @classmethod
    def merge(cls, *sources: Iterable[Guideline]) -> "GuidelineStore":
        return cls(merge_by_id(*sources))

    @property
    def version(self) -> int:
        return self._version

    def snapshot(self) -> tuple[Guideline, ...]:
        return self._snapshot

    def enabled(self) -> tuple[Guideline, ...]:
        return tuple(guideline for guideline in self._snapshot if guideline.enabled)

    def get(self, guideline_id: str) -> Guideline | None:
        for guideline in self._snapshot:
            if guideline.id == guideline_id:
                return guideline
        return None

    def add(self, guideline: Guideline) -> None:
        with self._lock:
            self._snapshot = merge_by_id(self._snapshot, [guideline])
            self._version += 1

    def remove(self, guideline_id: str) -> bool:
        with self._lock:
            remaining = tuple(g for g in self._snapshot if g.id != guideline_id)
            if len(remaining) == len(self._snapshot):
                return False
            self._snapshot = remaining
            self._version += 1
            return True

    def replace_all(self, guidelines: Iterable[Guideline]) -> None:
        with self._lock:
            self._snapshot = merge_by_id(guidelines)
            self._version += 1
