"""Per-connection request handling for the webhook listener."""

import asyncio
import logging
from typing import Callable

from notify_handler.core import NotificationPayload, decode_payload
from notify_handler.exceptions import MalformedRequestError, PayloadDecodeError
from notify_handler.protocol import build_response, parse_request

logger = logging.getLogger(__name__)

# Upper bound of the single receive call made per connection
MAX_REQUEST_SIZE = 64 * 1024

SUCCESS_BODY = '{"success":true}'
HEALTH_BODY = '{"status":"ok"}'
INVALID_REQUEST_BODY = '{"error":"Invalid request"}'
MALFORMED_REQUEST_BODY = '{"error":"Malformed request"}'
NO_BODY_BODY = '{"error":"No body"}'
INVALID_JSON_BODY = '{"error":"Invalid JSON"}'
NOT_FOUND_BODY = '{"error":"Not found"}'

# Type alias for the hand-off of a decoded payload to the dispatch channel
DispatchFunc = Callable[[NotificationPayload], None]


class ConnectionHandler:
    """Serves exactly one request per accepted connection, then closes it."""

    def __init__(self, dispatch: DispatchFunc) -> None:
        self._dispatch = dispatch

    def respond(self, data: bytes) -> bytes:
        """Route one raw request and return the encoded response.

        ``dispatch`` is called at most once, and only for a ``POST /notify``
        whose body decodes.
        """
        if not data:
            return build_response(400, INVALID_REQUEST_BODY)
        try:
            text = data.decode("utf-8")
        except UnicodeDecodeError:
            logger.warning("Rejected request that is not valid UTF-8")
            return build_response(400, INVALID_REQUEST_BODY)

        try:
            request = parse_request(text)
        except MalformedRequestError as e:
            logger.warning(f"Rejected request: {e}")
            return build_response(400, MALFORMED_REQUEST_BODY)

        logger.debug(f"{request.method} {request.path}")

        if request.method == "POST" and request.path == "/notify":
            if request.body is None:
                return build_response(400, NO_BODY_BODY)
            try:
                payload = decode_payload(request.body)
            except PayloadDecodeError as e:
                logger.warning(f"Invalid notification payload: {e}")
                return build_response(400, INVALID_JSON_BODY)
            self._dispatch(payload)
            return build_response(200, SUCCESS_BODY)

        if request.method == "GET" and request.path == "/health":
            return build_response(200, HEALTH_BODY)

        return build_response(404, NOT_FOUND_BODY)

    async def handle(
        self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter
    ) -> None:
        """Read one request, send one response and close the connection."""
        peer = writer.get_extra_info("peername")
        try:
            try:
                data = await reader.read(MAX_REQUEST_SIZE)
            except OSError as e:
                logger.warning(f"Read from {peer} failed: {e}")
                return

            response = self.respond(data)
            try:
                writer.write(response)
                await writer.drain()
            except OSError as e:
                # The client is expected to retry on its side
                logger.info(f"Could not send response to {peer}: {e}")
        finally:
            writer.close()
            try:
                await writer.wait_closed()
            except OSError as e:
                logger.debug(f"Error closing connection to {peer}: {e}")
