"""In-memory record store for received notifications."""

import logging
from datetime import datetime, timezone
from typing import Any
from uuid import UUID, uuid4

from pydantic import BaseModel, Field

from notify_handler.core import NotificationCategory

logger = logging.getLogger(__name__)


class NotificationRecord(BaseModel):
    """A received notification as kept by the store."""

    id: UUID = Field(default_factory=uuid4)
    title: str
    body: str
    category: NotificationCategory = NotificationCategory.INFO
    timestamp: datetime
    extra: dict[str, Any] = Field(default_factory=dict)
    is_read: bool = False


class NotificationStore:
    """Holds notification records, queried newest first."""

    def __init__(self) -> None:
        self._records: dict[UUID, NotificationRecord] = {}

    def __len__(self) -> int:
        return len(self._records)

    def insert(self, record: NotificationRecord) -> None:
        self._records[record.id] = record
        logger.debug(f"Stored notification {record.id}: {record.title}")

    def get(self, record_id: UUID) -> NotificationRecord | None:
        return self._records.get(record_id)

    def delete(self, record_id: UUID) -> bool:
        """Delete one record. Returns False if it did not exist."""
        return self._records.pop(record_id, None) is not None

    def clear(self) -> int:
        """Delete every record and return how many there were."""
        count = len(self._records)
        self._records.clear()
        return count

    def mark_read(self, record_id: UUID) -> bool:
        record = self._records.get(record_id)
        if record is None:
            return False
        self._records[record_id] = record.model_copy(update={"is_read": True})
        return True

    def query(self, since: datetime | None = None) -> list[NotificationRecord]:
        """Return records ordered by timestamp, newest first.

        Args:
            since: If given, only records at or after this time are returned.
                Naive datetimes are taken as UTC.
        """
        records = self._records.values()
        if since is not None:
            if since.tzinfo is None:
                since = since.replace(tzinfo=timezone.utc)
            records = [r for r in records if r.timestamp >= since]
        return sorted(records, key=lambda r: r.timestamp, reverse=True)
