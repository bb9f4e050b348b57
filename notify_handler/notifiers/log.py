"""Fallback notifier that only writes to the log."""

import logging

logger = logging.getLogger(__name__)


class LogNotifier:
    """Notifier for headless hosts and platforms without a supported daemon."""

    async def start(self) -> None:
        pass

    async def stop(self) -> None:
        pass

    async def show(self, title: str, body: str, category: str) -> None:
        logger.info(f"[{category}] {title}: {body}")
