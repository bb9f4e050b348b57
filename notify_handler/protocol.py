"""Hand-rolled request parsing and response formatting for the webhook listener.

Only single-shot requests are supported: the parser sees whatever one receive
call returned, so a request split across several TCP segments may be cut
short. Headers are never interpreted and ``Content-Length`` is ignored.
"""

from dataclasses import dataclass

from notify_handler.exceptions import MalformedRequestError

CRLF = "\r\n"
HEADER_TERMINATOR = CRLF + CRLF

STATUS_TEXT = {200: "OK", 400: "Bad Request"}


@dataclass(frozen=True)
class Request:
    """Method, path and raw body of one webhook request."""

    method: str
    path: str
    body: str | None


def parse_request(text: str) -> Request:
    """Split a raw request into method, path and body.

    The body is everything after the first blank line, or None when the
    header section is never terminated.

    Raises:
        MalformedRequestError: If the request line has fewer than two tokens.
    """
    request_line = text.split(CRLF, 1)[0]
    parts = [part for part in request_line.split(" ") if part]
    if len(parts) < 2:
        raise MalformedRequestError(f"Malformed request line: {request_line!r}")

    _, separator, body = text.partition(HEADER_TERMINATOR)
    return Request(method=parts[0], path=parts[1], body=body if separator else None)


def build_response(status: int, body: str) -> bytes:
    """Format a minimal HTTP/1.1 response with a JSON body."""
    payload = body.encode("utf-8")
    status_text = STATUS_TEXT.get(status, "Not Found")
    head = (
        f"HTTP/1.1 {status} {status_text}{CRLF}"
        f"Content-Type: application/json{CRLF}"
        f"Content-Length: {len(payload)}{CRLF}"
        f"Connection: close{CRLF}{CRLF}"
    )
    return head.encode("utf-8") + payload
