"""Failure types raised by the lookup service and the validator."""

from __future__ import annotations

import enum


class ErrorKind(enum.Enum):
    TRANSPORT = "transport"
    INVALID_TARGET = "invalidTarget"
    MALFORMED_RESPONSE = "malformedResponse"


class IPLookupError(Exception):
    """Base class for every recoverable lookup failure."""

    kind: ErrorKind
    default_reason = "Lookup failed"

    def __init__(self, reason: str | None = None):
        self.reason = reason or self.default_reason
        super().__init__(self.reason)

    @property
    def user_message(self) -> str:
        """Short text safe to show the end user."""
        return self.reason


class TransportError(IPLookupError):
    """Network or HTTP failure talking to the lookup service."""

    kind = ErrorKind.TRANSPORT
    default_reason = "Failed to fetch"


class InvalidTargetError(IPLookupError):
    """The service rejected the queried address or hostname."""

    kind = ErrorKind.INVALID_TARGET
    default_reason = "Invalid IP"


class MalformedResponseError(IPLookupError):
    """The service answered with a payload we cannot use."""

    kind = ErrorKind.MALFORMED_RESPONSE
    default_reason = "Unexpected response from lookup service"

    @property
    def user_message(self) -> str:
        # Technical detail stays in the logs
        return self.default_reason
