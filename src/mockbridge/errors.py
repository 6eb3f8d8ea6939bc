"""
mockbridge Errors

Every adapter operation fails with a MockServerAdapterError carrying a flat,
human readable message. The subclasses only exist so that callers and tests
can tell the failure categories apart; code that just wants the message can
catch the base class.
"""

from typing import Optional


class MockServerAdapterError(Exception):
    """Base exception for all adapter failures."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class TransportError(MockServerAdapterError):
    """The HTTP request could not be completed."""

    pass


class UnexpectedStatusError(MockServerAdapterError):
    """The mock server answered with a status code the operation does not accept."""

    def __init__(self, message: str, status: int, body: Optional[str] = None):
        super().__init__(message)
        self.status = status
        self.body = body


class SerializationError(MockServerAdapterError):
    """An outgoing payload could not be encoded as JSON."""

    pass


class DeserializationError(MockServerAdapterError):
    """An incoming payload did not have the expected shape."""

    pass


class MockValidationError(MockServerAdapterError):
    """A mock definition cannot be handled by the selected adapter."""

    pass


class MockNotFoundError(MockServerAdapterError):
    """No mock exists for the given id."""

    pass
