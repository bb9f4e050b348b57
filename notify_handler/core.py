"""Core module: Settings, NotificationPayload, and the payload codec."""

import logging
from enum import Enum
from typing import Any, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    StrictBool,
    StrictFloat,
    StrictInt,
    StrictStr,
    field_validator,
)
from pydantic_settings import BaseSettings

from notify_handler.exceptions import PayloadDecodeError

logger = logging.getLogger(__name__)

DEFAULT_WEBHOOK_PORT = 19527

INT64_MIN = -(2**63)
INT64_MAX = 2**63 - 1

# Scalar types allowed as values of the "extra" mapping
ExtraValue = Union[StrictInt, StrictFloat, StrictBool, StrictStr]


class Settings(BaseSettings):
    """Application configuration with environment variable support."""

    webhook_host: str = "0.0.0.0"
    webhook_port: int = Field(default=DEFAULT_WEBHOOK_PORT, ge=0, le=65535)
    api_host: str = "127.0.0.1"
    api_port: int = 9001
    desktop_notifications: bool = True
    app_name: str = "NotifyHandler"
    log_level: str = "INFO"

    model_config = {"env_file": ".env", "extra": "ignore"}


class NotificationCategory(str, Enum):
    """Severity class a notification is filed and shown under."""

    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    SUCCESS = "success"

    @classmethod
    def parse(cls, value: str | None) -> "NotificationCategory":
        """Map a free-form category string onto a known category.

        Unknown or missing values fall back to INFO.
        """
        if value is None:
            return cls.INFO
        try:
            return cls(value)
        except ValueError:
            return cls.INFO


def _is_int(value: Any) -> bool:
    return (
        isinstance(value, int)
        and not isinstance(value, bool)
        and INT64_MIN <= value <= INT64_MAX
    )


def decode_scalar(value: Any) -> int | float | bool | str:
    """Decode one "extra" value by ordered trial: int, float, bool, str.

    Integral floats read as integers. Anything that is none of these
    (objects, arrays, null) degrades to an empty string.
    """
    if _is_int(value):
        return value
    if isinstance(value, float) and value.is_integer() and _is_int(int(value)):
        return int(value)
    if isinstance(value, float):
        return value
    if isinstance(value, int) and not isinstance(value, bool):
        try:
            return float(value)
        except OverflowError:
            return ""
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value
    return ""


class NotificationPayload(BaseModel):
    """Notification decoded from a webhook request body."""

    model_config = ConfigDict(frozen=True)

    title: StrictStr
    body: StrictStr
    category: str | None = None
    timestamp: int | None = None
    extra: dict[str, ExtraValue] | None = None

    @field_validator("category", mode="before")
    @classmethod
    def _lenient_category(cls, value: Any) -> str | None:
        return value if isinstance(value, str) else None

    @field_validator("timestamp", mode="before")
    @classmethod
    def _lenient_timestamp(cls, value: Any) -> int | None:
        if isinstance(value, float) and value.is_integer():
            value = int(value)
        return value if _is_int(value) else None

    @field_validator("extra", mode="before")
    @classmethod
    def _decode_extra(cls, value: Any) -> dict[str, Any] | None:
        if value is None:
            return None
        if not isinstance(value, dict):
            raise ValueError("extra must be a JSON object")
        return {str(key): decode_scalar(item) for key, item in value.items()}


def decode_payload(data: bytes | str) -> NotificationPayload:
    """Decode a JSON request body into a NotificationPayload.

    Args:
        data: Raw JSON text of the request body.

    Raises:
        PayloadDecodeError: If the body is not a JSON object, ``title`` or
            ``body`` is missing or not a string, or ``extra`` is present but
            not an object.
    """
    try:
        return NotificationPayload.model_validate_json(data)
    except ValueError as e:
        raise PayloadDecodeError(str(e)) from e
