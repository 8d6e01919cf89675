"""In-memory account snapshot cache."""

from __future__ import annotations

import json
import threading
from collections.abc import Iterable
from datetime import datetime, timezone

from salesforce_mcp.types import AccountRecord, AccountSnapshot


class AccountCache:
    """Holds the most recent account snapshot.

    The snapshot is an immutable tuple swapped in one assignment, so ``get()``
    returns either the initial empty snapshot or the result of the last
    completed ``replace()``, never a partial one.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._snapshot: AccountSnapshot = ()
        self._updated_at: datetime | None = None

    def get(self) -> AccountSnapshot:
        with self._lock:
            return self._snapshot

    def replace(self, records: Iterable[AccountRecord]) -> AccountSnapshot:
        snapshot = tuple(records)
        with self._lock:
            self._snapshot = snapshot
            self._updated_at = datetime.now(timezone.utc)
        return snapshot

    @property
    def updated_at(self) -> datetime | None:
        """Time of the last successful replace, None before the first."""
        return self._updated_at

    def __len__(self) -> int:
        return len(self.get())

    def to_json(self) -> str:
        """Serialize the current snapshot as a JSON array."""
        return json.dumps(
            [record.model_dump(mode="json") for record in self.get()],
            ensure_ascii=False,
            indent=2,
        )
