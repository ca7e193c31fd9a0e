"""Localizable message table for classified errors.

The classifier never hard-codes user-facing text: it looks messages up in a
MessageTable keyed by error kind, by HTTP status code, and by transport
failure type. Applications that ship other languages build their own table
(or call ``with_overrides``) and inject it through FormConfig.
"""

from dataclasses import dataclass, field, replace
from typing import Dict, Mapping, Optional

from jetform.errors import DEFAULT_MESSAGES
from jetform.types import FormErrorKind, TransportErrorType

DEFAULT_CLIENT_STATUS_MESSAGES: Dict[int, str] = {
    400: "Bad request. Please check your input and try again.",
    401: "Authentication failed. Please log in again.",
    403: "Access denied. You don't have permission to perform this action.",
    404: "The requested resource was not found.",
    422: "Validation failed. Please check your input.",
    429: "Too many requests. Please wait and try again.",
}

DEFAULT_SERVER_STATUS_MESSAGES: Dict[int, str] = {
    500: "Internal server error. Please try again later.",
    502: "Bad gateway. Please try again later.",
    503: "Service unavailable. Please try again later.",
    504: "Gateway timeout. Please try again later.",
}

DEFAULT_TRANSPORT_MESSAGES: Dict[TransportErrorType, str] = {
    TransportErrorType.CONNECTION_TIMEOUT: (
        "Connection timeout. Please check your internet connection and try again."
    ),
    TransportErrorType.SEND_TIMEOUT: "Send timeout. Please try again.",
    TransportErrorType.RECEIVE_TIMEOUT: "Receive timeout. Please try again.",
    TransportErrorType.BAD_CERTIFICATE: "Security certificate error. Please try again later.",
    TransportErrorType.CANCEL: "Request was cancelled.",
    TransportErrorType.CONNECTION_ERROR: "Connection error. Please check your internet connection.",
}

DEFAULT_CLIENT_FALLBACK = "Client error occurred. Please try again."
DEFAULT_SERVER_FALLBACK = "Server error occurred. Please try again later."


@dataclass(frozen=True)
class MessageTable:
    """User-facing messages for classified errors.

    Attributes:
        kind_messages: Default message per error kind
        client_status_messages: Messages for specific 4xx codes
        server_status_messages: Messages for specific 5xx codes
        transport_messages: Messages for transport failure types
        client_fallback: Message for 4xx codes missing from the table
        server_fallback: Message for 5xx codes missing from the table

    Examples:
        >>> table = MessageTable()
        >>> table.for_status(404)
        'The requested resource was not found.'
        >>> table.for_status(418)
        'Client error occurred. Please try again.'
        >>> table.with_overrides(client_status={404: "Nope"}).for_status(404)
        'Nope'
    """
    kind_messages: Mapping[FormErrorKind, str] = field(
        default_factory=lambda: dict(DEFAULT_MESSAGES)
    )
    client_status_messages: Mapping[int, str] = field(
        default_factory=lambda: dict(DEFAULT_CLIENT_STATUS_MESSAGES)
    )
    server_status_messages: Mapping[int, str] = field(
        default_factory=lambda: dict(DEFAULT_SERVER_STATUS_MESSAGES)
    )
    transport_messages: Mapping[TransportErrorType, str] = field(
        default_factory=lambda: dict(DEFAULT_TRANSPORT_MESSAGES)
    )
    client_fallback: str = DEFAULT_CLIENT_FALLBACK
    server_fallback: str = DEFAULT_SERVER_FALLBACK

    def __post_init__(self):
        tables = (
            self.kind_messages,
            self.client_status_messages,
            self.server_status_messages,
            self.transport_messages,
        )
        for table in tables:
            for key, text in table.items():
                if not text:
                    raise ValueError(f"Empty message for {key!r}")
        if not self.client_fallback or not self.server_fallback:
            raise ValueError("Fallback messages must not be empty")

    def for_kind(self, kind: FormErrorKind) -> str:
        return self.kind_messages.get(kind) or DEFAULT_MESSAGES[kind]

    def for_status(self, status_code: int) -> Optional[str]:
        """Message for an HTTP status code, or None outside 4xx/5xx."""
        if 400 <= status_code < 500:
            return self.client_status_messages.get(status_code, self.client_fallback)
        if 500 <= status_code < 600:
            return self.server_status_messages.get(status_code, self.server_fallback)
        return None

    def for_transport(self, transport_type: TransportErrorType) -> Optional[str]:
        return self.transport_messages.get(transport_type)

    def with_overrides(
        self,
        kinds: Optional[Mapping[FormErrorKind, str]] = None,
        client_status: Optional[Mapping[int, str]] = None,
        server_status: Optional[Mapping[int, str]] = None,
        transport: Optional[Mapping[TransportErrorType, str]] = None,
    ) -> "MessageTable":
        """Return a copy of this table with some messages replaced."""
        return replace(
            self,
            kind_messages={**self.kind_messages, **(kinds or {})},
            client_status_messages={**self.client_status_messages, **(client_status or {})},
            server_status_messages={**self.server_status_messages, **(server_status or {})},
            transport_messages={**self.transport_messages, **(transport or {})},
        )


__all__ = [
    "MessageTable",
    "DEFAULT_CLIENT_STATUS_MESSAGES",
    "DEFAULT_SERVER_STATUS_MESSAGES",
    "DEFAULT_TRANSPORT_MESSAGES",
]
