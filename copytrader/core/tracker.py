# copytrader/core/tracker.py

from __future__ import annotations

from typing import Iterator, Set


class ExecutionTracker:
    """
    Position ids we bought and have not sold yet.

    An id is present iff the last action taken for it was a successful buy
    with no successful sell after it. No locking: only the active
    reconciliation cycle mutates it.
    """

    def __init__(self) -> None:
        self._ids: Set[str] = set()

    def mark_executed(self, position_id: str) -> None:
        self._ids.add(position_id)

    def clear_executed(self, position_id: str) -> None:
        self._ids.discard(position_id)

    def is_executed(self, position_id: str) -> bool:
        return position_id in self._ids

    def snapshot(self) -> frozenset:
        return frozenset(self._ids)

    def __len__(self) -> int:
        return len(self._ids)

    def __iter__(self) -> Iterator[str]:
        return iter(sorted(self._ids))
