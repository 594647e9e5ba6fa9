"""Process and database status reporting."""

from __future__ import annotations

import platform
import time
from datetime import datetime
from typing import Optional

from . import schemas
from .database import Store
from .services import ExpenseService, TaskService

# Captured once when the package is first imported by the server process.
PROCESS_STARTED_AT = datetime.now().astimezone()
_PROCESS_STARTED_MONOTONIC = time.monotonic()


class StatusReporter:
    """Read-only view of process uptime and record counts."""

    def __init__(
        self,
        store: Store,
        started_at: Optional[datetime] = None,
        started_monotonic: Optional[float] = None,
    ) -> None:
        self.store = store
        self.started_at = started_at or PROCESS_STARTED_AT
        self._started_monotonic = (
            _PROCESS_STARTED_MONOTONIC if started_monotonic is None else started_monotonic
        )

    def uptime_seconds(self) -> float:
        return time.monotonic() - self._started_monotonic

    def report(self) -> schemas.StatusRead:
        with self.store.session() as session:
            task_count = TaskService(session).count()
            expense_count = ExpenseService(session).count()
        return schemas.StatusRead(
            server=schemas.ServerStatus(
                uptime_seconds=self.uptime_seconds(),
                started_at=self.started_at,
                python_version=platform.python_version(),
            ),
            db=schemas.DatabaseStatus(
                connected=self.store.connected,
                in_memory=self.store.in_memory,
                tasks=task_count,
                expenses=expense_count,
                sample_seeded=(task_count + expense_count) > 0,
            ),
        )


__all__ = ["PROCESS_STARTED_AT", "StatusReporter"]
