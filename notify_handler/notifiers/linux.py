"""Linux desktop notifier using the freedesktop D-Bus notification service."""

import logging

from dbus_fast import BusType, Message, MessageType, Variant
from dbus_fast.aio import MessageBus

logger = logging.getLogger(__name__)

CATEGORY_ICONS = {
    "info": "dialog-information",
    "warning": "dialog-warning",
    "error": "dialog-error",
    "success": "emblem-ok-symbolic",
}

# freedesktop urgency levels: 0 low, 1 normal, 2 critical
CATEGORY_URGENCY = {"error": 2}


class LinuxNotifier:
    """Shows notifications through org.freedesktop.Notifications."""

    def __init__(self, app_name: str = "NotifyHandler") -> None:
        self._app_name = app_name
        self._bus: MessageBus | None = None

    @property
    def is_connected(self) -> bool:
        return self._bus is not None

    async def start(self) -> None:
        """Connect to the D-Bus session bus."""
        self._bus = await MessageBus(bus_type=BusType.SESSION).connect()
        logger.info("Connected to D-Bus session bus")

    async def stop(self) -> None:
        """Disconnect from D-Bus."""
        if self._bus:
            self._bus.disconnect()
            self._bus = None
            logger.info("Disconnected from D-Bus")

    async def show(self, title: str, body: str, category: str) -> None:
        """Send a Notify call for one notification."""
        if self._bus is None:
            logger.warning(f"Not connected to D-Bus, notification not shown: {title}")
            return

        # Signature: susssasa{sv}i
        # app_name, replaces_id, icon, summary, body, actions, hints, timeout
        reply = await self._bus.call(
            Message(
                destination="org.freedesktop.Notifications",
                path="/org/freedesktop/Notifications",
                interface="org.freedesktop.Notifications",
                member="Notify",
                signature="susssasa{sv}i",
                body=[
                    self._app_name,
                    0,
                    CATEGORY_ICONS.get(category, CATEGORY_ICONS["info"]),
                    title,
                    body,
                    [],
                    {"urgency": Variant("y", CATEGORY_URGENCY.get(category, 1))},
                    -1,
                ],
            )
        )

        if reply.message_type == MessageType.ERROR:
            logger.error(f"Failed to show notification: {reply.body}")
