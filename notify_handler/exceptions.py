"""Exception types raised by notify_handler."""


class NotifyHandlerError(Exception):
    """Base class for all notify_handler errors."""


class PayloadDecodeError(NotifyHandlerError):
    """A request body could not be decoded into a NotificationPayload."""


class MalformedRequestError(NotifyHandlerError):
    """The request line is missing its method or path."""


class SubscriberAlreadyRegisteredError(NotifyHandlerError):
    """A notification subscriber is already registered on the listener."""
