"""Error taxonomy for chat messages and their collaborators."""


class ChatPuppetError(Exception):
    """Base class for every error raised by chatpuppet."""

    def __init__(self, message: str, message_id: str | None = None):
        self.message_id = message_id
        super().__init__(message)


class NotHydrated(ChatPuppetError):
    """An accessor needing the full payload was called before ``ready()``."""


class HydrationError(ChatPuppetError):
    """The payload could not be fetched, or did not match the requested id."""


class DanglingReferenceError(HydrationError):
    """The sender of a message could not be resolved in the directory."""

    def __init__(self, message: str, message_id: str | None = None, reference_id: str | None = None):
        self.reference_id = reference_id
        super().__init__(message, message_id)


class UnsupportedOperation(ChatPuppetError):
    """The operation is not meaningful for this message, or has been retired."""


class SendFailure(ChatPuppetError):
    """A reply or forward could not be delivered by the transport."""


class TransportError(ChatPuppetError):
    """Raised by transport sessions when the backend is unreachable or refuses a request."""

    def __init__(self, message: str, status_code: int | None = None, message_id: str | None = None):
        self.status_code = status_code
        super().__init__(message, message_id)


class MalformedPayload(ChatPuppetError):
    """A raw payload handed to ``Message`` does not fit the payload schema."""
