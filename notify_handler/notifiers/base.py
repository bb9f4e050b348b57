"""Base notifier protocol definition."""

from typing import Protocol


class DesktopNotifier(Protocol):
    """Platform-agnostic desktop notification presenter."""

    async def start(self) -> None:
        """Acquire whatever connection the notifier needs."""
        ...

    async def stop(self) -> None:
        """Release the notifier's resources."""
        ...

    async def show(self, title: str, body: str, category: str) -> None:
        """Present one notification to the user.

        Args:
            title: Notification summary line.
            body: Notification text.
            category: One of the NotificationCategory values.
        """
        ...
