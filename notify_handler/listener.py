"""Webhook listener: socket lifecycle, accept loop and notification dispatch."""

import asyncio
import logging
from typing import Awaitable, Callable

from pydantic import BaseModel, ConfigDict, Field

from notify_handler.core import DEFAULT_WEBHOOK_PORT, NotificationPayload
from notify_handler.exceptions import SubscriberAlreadyRegisteredError
from notify_handler.handler import ConnectionHandler

logger = logging.getLogger(__name__)


class ListenerState(BaseModel):
    """Snapshot of the listener lifecycle, replaced whole on every change."""

    model_config = ConfigDict(frozen=True)

    running: bool = False
    port: int = Field(default=DEFAULT_WEBHOOK_PORT, ge=1, le=65535)
    last_error: str | None = None


# Type alias for the notification subscriber
NotificationCallback = Callable[[NotificationPayload], Awaitable[None]]
# Type alias for lifecycle state observers
StateObserver = Callable[[ListenerState], Awaitable[None]]


def is_valid_port(port: int) -> bool:
    return 1 <= port <= 65535


class WebhookListener:
    """Accepts webhook connections and hands decoded notifications to one subscriber.

    Every connection is served by its own task. Decoded payloads and state
    snapshots travel through a single queue drained by one dispatcher task,
    so the subscriber and the state observers never run concurrently with
    each other.
    """

    def __init__(self, port: int = DEFAULT_WEBHOOK_PORT, host: str = "0.0.0.0") -> None:
        self._host = host
        self._port = port
        self._state = ListenerState(
            port=port if is_valid_port(port) else DEFAULT_WEBHOOK_PORT
        )
        self._server: asyncio.Server | None = None
        self._lifecycle_lock = asyncio.Lock()
        self._handler = ConnectionHandler(self._post)
        self._subscriber: NotificationCallback | None = None
        self._observers: list[StateObserver] = []
        self._queue: asyncio.Queue | None = None
        self._dispatcher: asyncio.Task | None = None
        self._closed = False

    @property
    def state(self) -> ListenerState:
        """Current lifecycle snapshot."""
        return self._state

    @property
    def is_running(self) -> bool:
        """Whether the listener is currently accepting connections."""
        return self._state.running

    @property
    def port(self) -> int:
        """Port the next start() will bind."""
        return self._port

    def configure(self, port: int) -> None:
        """Set the port used by the next start()."""
        self._port = port

    def subscribe(self, callback: NotificationCallback) -> None:
        """Register the single notification subscriber.

        Args:
            callback: Async function called once per decoded notification.

        Raises:
            SubscriberAlreadyRegisteredError: If a subscriber is already set.
        """
        if self._subscriber is not None:
            raise SubscriberAlreadyRegisteredError(
                "A notification subscriber is already registered"
            )
        self._subscriber = callback

    def unsubscribe(self) -> None:
        """Remove the notification subscriber, if any."""
        self._subscriber = None

    def add_state_observer(self, observer: StateObserver) -> None:
        """Register an async function called with every new state snapshot."""
        self._observers.append(observer)

    async def start(self) -> ListenerState:
        """Bind the configured port and start accepting connections.

        A running listener is fully released first, so calling start() again
        rebinds, picking up a port changed through configure(). Bind failures
        are reported through ``last_error`` rather than raised.
        """
        async with self._lifecycle_lock:
            self._release()
            self._closed = False
            port = self._port
            if not is_valid_port(port):
                # state.port keeps the last valid port
                logger.error(f"Failed to bind webhook listener: invalid port {port}")
                self._update_state(running=False, last_error=f"Invalid port: {port}")
                return self._state
            try:
                self._server = await asyncio.start_server(
                    self._handler.handle, self._host, port, reuse_address=True
                )
            except OSError as e:
                logger.error(f"Failed to bind webhook listener on port {port}: {e}")
                self._update_state(running=False, port=port, last_error=str(e))
            else:
                logger.info(f"Webhook listener running on {self._host}:{port}")
                self._update_state(running=True, port=port, last_error=None)
            return self._state

    async def stop(self) -> None:
        """Stop accepting connections and release the socket.

        Connections already accepted are left to finish on their own.
        """
        async with self._lifecycle_lock:
            self._release()
            self._update_state(running=False)

    async def join(self) -> None:
        """Wait until every queued notification and state change is delivered."""
        if self._queue is not None:
            await self._queue.join()

    async def close(self) -> None:
        """Stop the listener, deliver what is queued and shut the dispatcher down.

        Notifications decoded by connections that finish after close() are
        dropped. A later start() reopens the listener.
        """
        await self.stop()
        self._closed = True
        if self._dispatcher is None:
            return
        await self.join()
        self._dispatcher.cancel()
        try:
            await self._dispatcher
        except asyncio.CancelledError:
            pass
        self._dispatcher = None
        self._queue = None

    def _release(self) -> None:
        if self._server is None:
            return
        self._server.close()
        self._server = None
        logger.info("Webhook listener stopped")

    def _update_state(self, **changes) -> None:
        """Swap in a new state snapshot and queue it for the observers."""
        new_state = self._state.model_copy(update=changes)
        if new_state == self._state:
            return
        self._state = new_state
        self._post(new_state)

    def _post(self, event: NotificationPayload | ListenerState) -> None:
        if self._closed:
            logger.warning(f"Listener closed, dropped {type(event).__name__}")
            return
        if self._dispatcher is None or self._dispatcher.done():
            self._queue = asyncio.Queue()
            self._dispatcher = asyncio.create_task(self._dispatch_loop(self._queue))
        assert self._queue is not None
        self._queue.put_nowait(event)

    async def _dispatch_loop(self, queue: asyncio.Queue) -> None:
        while True:
            event = await queue.get()
            try:
                if isinstance(event, ListenerState):
                    for observer in list(self._observers):
                        await self._invoke(observer, event)
                elif self._subscriber is None:
                    logger.warning(f"No subscriber, dropped notification: {event.title}")
                else:
                    await self._invoke(self._subscriber, event)
            finally:
                queue.task_done()

    @staticmethod
    async def _invoke(func: Callable[..., Awaitable[None]], event: object) -> None:
        try:
            await func(event)
        except Exception as e:
            logger.exception(f"Error delivering {type(event).__name__}: {e}")
