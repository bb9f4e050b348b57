"""Consumer side of the Dispatch Callback: file each notification and show it."""

import logging
from datetime import datetime, timezone

from notify_handler.core import NotificationCategory, NotificationPayload
from notify_handler.notifiers.base import DesktopNotifier
from notify_handler.store import NotificationRecord, NotificationStore

logger = logging.getLogger(__name__)


class NotificationConsumer:
    """Stores received notifications and presents them on the desktop."""

    def __init__(self, store: NotificationStore, notifier: DesktopNotifier):
        self.store = store
        self.notifier = notifier

    def to_record(self, payload: NotificationPayload) -> NotificationRecord:
        """Classify a payload and stamp it with its event time.

        Payloads without a usable timestamp are stamped with their arrival time.
        """
        timestamp = datetime.now(timezone.utc)
        if payload.timestamp is not None:
            try:
                timestamp = datetime.fromtimestamp(payload.timestamp, tz=timezone.utc)
            except (OverflowError, OSError, ValueError):
                logger.warning(
                    f"Timestamp out of range, using arrival time: {payload.timestamp}"
                )

        return NotificationRecord(
            title=payload.title,
            body=payload.body,
            category=NotificationCategory.parse(payload.category),
            timestamp=timestamp,
            extra=dict(payload.extra or {}),
        )

    async def consume(self, payload: NotificationPayload) -> NotificationRecord:
        """Store a notification, then show it."""
        record = self.to_record(payload)
        self.store.insert(record)
        logger.info(f"Received notification: [{record.category.value}] {record.title}")

        try:
            await self.notifier.show(record.title, record.body, record.category.value)
        except Exception as e:
            logger.error(f"Failed to show notification {record.id}: {e}")
        return record
