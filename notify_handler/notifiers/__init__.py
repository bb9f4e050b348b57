"""Platform-specific desktop notifiers."""

import sys

from notify_handler.notifiers.base import DesktopNotifier


def get_notifier(
    enabled: bool = True, app_name: str = "NotifyHandler"
) -> DesktopNotifier:
    """Return the appropriate notifier for the current platform."""
    if enabled and sys.platform == "linux":
        from notify_handler.notifiers.linux import LinuxNotifier

        return LinuxNotifier(app_name=app_name)

    from notify_handler.notifiers.log import LogNotifier

    return LogNotifier()


__all__ = ["DesktopNotifier", "get_notifier"]
