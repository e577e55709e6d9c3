from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass
from threading import RLock
from typing import Dict, Iterator, Mapping, Optional


@dataclass(frozen=True)
class WorkloadObservation:
    """Last observed state of one workload instance."""

    status: str
    restart_count: int
    age_label: str
    # True only for the placeholder written on first sighting.
    seeded: bool = False


SEED_OBSERVATION = WorkloadObservation(status="Unknown", restart_count=0, age_label="0m", seeded=True)


class WorkloadStateStore:
    """
    Prior-poll workload state retained between alert evaluations.

    Owned by AppState for the life of the process. Evaluations hold exclusive() for their whole
    read-compare-commit cycle so overlapping requests cannot double-count or miss a restart delta.
    """

    def __init__(self) -> None:
        self._entries: Dict[str, WorkloadObservation] = {}
        self._lock = RLock()

    @contextmanager
    def exclusive(self) -> Iterator["WorkloadStateStore"]:
        """Hold the store lock for a multi-step read/write sequence."""
        with self._lock:
            yield self

    def get(self, key: str) -> Optional[WorkloadObservation]:
        with self._lock:
            return self._entries.get(key)

    def snapshot(self) -> Dict[str, WorkloadObservation]:
        """Return a copy of the retained mapping."""
        with self._lock:
            return dict(self._entries)

    def replace(self, entries: Mapping[str, WorkloadObservation]) -> None:
        """Swap in a new mapping wholesale; keys not present are dropped."""
        with self._lock:
            self._entries = dict(entries)

    def clear(self) -> None:
        with self._lock:
            self._entries = {}

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._entries
