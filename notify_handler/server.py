"""FastAPI control server: listener lifecycle and received notifications."""

import logging
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Any
from uuid import UUID

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel, Field

from notify_handler.consumer import NotificationConsumer
from notify_handler.core import Settings
from notify_handler.listener import ListenerState, WebhookListener
from notify_handler.notifiers import get_notifier
from notify_handler.notifiers.base import DesktopNotifier
from notify_handler.notifiers.log import LogNotifier
from notify_handler.store import NotificationRecord, NotificationStore

# Global state
settings = Settings()
listener: WebhookListener | None = None
notifier: DesktopNotifier | None = None
store = NotificationStore()

logging.basicConfig(level=settings.log_level)
logger = logging.getLogger(__name__)


class PortUpdate(BaseModel):
    """Request body for changing the webhook port."""

    port: int = Field(ge=0, le=65535)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application lifecycle."""
    global listener, notifier

    notifier = get_notifier(settings.desktop_notifications, settings.app_name)
    try:
        await notifier.start()
    except Exception as e:
        logger.error(f"Desktop notifications unavailable, logging only: {e}")
        notifier = LogNotifier()

    consumer = NotificationConsumer(store=store, notifier=notifier)
    listener = WebhookListener(port=settings.webhook_port, host=settings.webhook_host)
    listener.subscribe(consumer.consume)

    await listener.start()
    yield
    await listener.close()
    await notifier.stop()


app = FastAPI(
    title="NotifyHandler",
    description="Receives webhook notifications and shows them on the desktop.",
    version="0.1.0",
    lifespan=lifespan,
)


def _listener() -> WebhookListener:
    if listener is None:
        raise HTTPException(status_code=503, detail="Listener not initialized")
    return listener


@app.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint."""
    return {
        "status": "healthy",
        "listener_running": str(listener is not None and listener.is_running),
    }


@app.get("/status")
async def status() -> dict[str, Any]:
    """Get listener status."""
    state = _listener().state
    return {
        "running": state.running,
        "port": state.port,
        "last_error": state.last_error,
        "notifications": len(store),
    }


@app.post("/listener/start")
async def start_listener() -> ListenerState:
    """Start the webhook listener, restarting it if it is already running."""
    return await _listener().start()


@app.post("/listener/stop")
async def stop_listener() -> ListenerState:
    """Stop the webhook listener."""
    current = _listener()
    await current.stop()
    return current.state


@app.put("/listener/port")
async def change_port(update: PortUpdate) -> ListenerState:
    """Rebind the webhook listener on a new port."""
    current = _listener()
    await current.stop()
    current.configure(update.port)
    return await current.start()


@app.get("/notifications")
async def list_notifications(since: datetime | None = None) -> list[NotificationRecord]:
    """List received notifications, newest first."""
    return store.query(since=since)


@app.post("/notifications/{record_id}/read")
async def mark_read(record_id: UUID) -> NotificationRecord:
    """Mark one notification as read."""
    if not store.mark_read(record_id):
        raise HTTPException(status_code=404, detail="Notification not found")
    record = store.get(record_id)
    assert record is not None
    return record


@app.delete("/notifications/{record_id}")
async def delete_notification(record_id: UUID) -> dict[str, int]:
    """Delete one notification."""
    if not store.delete(record_id):
        raise HTTPException(status_code=404, detail="Notification not found")
    return {"deleted": 1}


@app.delete("/notifications")
async def clear_notifications() -> dict[str, int]:
    """Delete all notifications."""
    return {"deleted": store.clear()}
