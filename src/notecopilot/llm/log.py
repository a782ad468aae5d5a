"""Append-only record of every generation call."""

import logging
import threading
from typing import Any, Callable, Iterable

from ..models import InteractionLogEntry

logger = logging.getLogger(__name__)

PersistFn = Callable[[list[InteractionLogEntry]], None]


class InteractionLog:
    """Process-wide interaction log.

    Appends are serialized with a lock. After each append the whole log is
    handed to ``persist``; persistence failures are reported on the logger
    and never raised, so losing an entry cannot abort the caller.
    """

    def __init__(self, entries: Iterable[InteractionLogEntry] = (), persist: PersistFn | None = None):
        self._entries = list(entries)
        self._persist = persist
        self._lock = threading.Lock()

    @classmethod
    def from_config(cls, config: dict[str, Any], persist: PersistFn | None = None) -> "InteractionLog":
        raw = config.get("log_history") or []
        return cls((InteractionLogEntry.from_dict(e) for e in raw if isinstance(e, dict)), persist=persist)

    @property
    def entries(self) -> list[InteractionLogEntry]:
        with self._lock:
            return list(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def append(self, entry: InteractionLogEntry) -> None:
        with self._lock:
            self._entries.append(entry)
            snapshot = list(self._entries)

        if entry.error:
            logger.debug(f"Generation call failed ({entry.model}): {entry.error}")
        else:
            logger.debug(f"Generation call logged ({entry.model}, {len(entry.input_prompt)} prompt chars)")

        if self._persist is None:
            return
        try:
            self._persist(snapshot)
        except Exception as e:
            logger.warning(f"Could not persist interaction log: {e}")
