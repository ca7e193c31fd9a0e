"""Normalized failure descriptors.

Classification never inspects a specific HTTP client's exception classes.
Instead every thrown value is first reduced to a FailureDescriptor, a flat
record of the facts classification needs: transport failure type, status
code, response payload, message, OS error code and explicit field errors.

Concrete transport libraries plug in through adapters (see
``jetform.adapters``); the built-in rules below cover Python's own
exception hierarchy and duck-typed objects exposing a status code.
"""

import asyncio
import concurrent.futures
import errno
import logging
import socket
import ssl
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, Mapping, Optional

from jetform.errors import FieldErrors, HttpStatusError, ValidationFailure
from jetform.types import TransportErrorType

logger = logging.getLogger(__name__)

# Socket errnos that mean the host could not be reached at all. Resolver
# failures arrive as socket.gaierror, whose codes overlap ordinary errnos
# (7 is E2BIG on Linux), so they are matched by exception type instead.
NETWORK_ERROR_CODES = frozenset({
    errno.ECONNREFUSED,
    errno.ENETUNREACH,
    errno.EHOSTUNREACH,
    errno.ENETDOWN,
    errno.EHOSTDOWN,
    errno.ETIMEDOUT,
})


@dataclass(frozen=True)
class FailureDescriptor:
    """Transport-agnostic description of a thrown value.

    Attributes:
        transport_type: Transport failure category
        status_code: HTTP-like status code, when a response was received
        payload: Decoded response body
        message: Message carried by the failure
        os_error_code: errno / resolver code of the underlying OS error
        field_errors: Explicit per-field validation messages
        exception_name: Class name of the thrown value
        metadata: Extra diagnostic details (request path, method, ...)
    """
    transport_type: TransportErrorType = TransportErrorType.UNKNOWN
    status_code: Optional[int] = None
    payload: Any = None
    message: Optional[str] = None
    os_error_code: Optional[int] = None
    field_errors: Optional[FieldErrors] = None
    exception_name: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None


Adapter = Callable[[Any], Optional[FailureDescriptor]]
"""Maps a library-specific error to a descriptor, or returns None."""


def safe_str(value: Any) -> str:
    """``str(value)`` that never raises."""
    try:
        return str(value)
    except Exception:
        return f"<unprintable {type(value).__name__}>"


def _status_of(obj: Any) -> Optional[int]:
    for attr in ("status_code", "status"):
        value = getattr(obj, attr, None)
        if isinstance(value, int) and not isinstance(value, bool):
            return value
    return None


def _payload_of(obj: Any) -> Any:
    for attr in ("payload", "data", "body"):
        value = getattr(obj, attr, None)
        if value is not None and not callable(value):
            return value
    return None


def _describe_builtin(error: Any) -> FailureDescriptor:
    name = type(error).__name__

    if isinstance(error, ValidationFailure):
        return FailureDescriptor(
            field_errors=error.field_errors,
            message=error.message,
            exception_name=name,
        )

    if isinstance(error, HttpStatusError):
        return FailureDescriptor(
            transport_type=TransportErrorType.BAD_RESPONSE,
            status_code=error.status_code,
            payload=error.payload,
            message=error.message,
            exception_name=name,
        )

    if isinstance(error, (asyncio.CancelledError, concurrent.futures.CancelledError)):
        return FailureDescriptor(
            transport_type=TransportErrorType.CANCEL,
            message=safe_str(error) or None,
            exception_name=name,
        )

    if isinstance(error, (TimeoutError, asyncio.TimeoutError)):
        text = safe_str(error).lower()
        if "send" in text or "write" in text:
            transport_type = TransportErrorType.SEND_TIMEOUT
        elif "receive" in text or "read" in text:
            transport_type = TransportErrorType.RECEIVE_TIMEOUT
        else:
            transport_type = TransportErrorType.CONNECTION_TIMEOUT
        return FailureDescriptor(
            transport_type=transport_type,
            message=safe_str(error) or None,
            os_error_code=getattr(error, "errno", None),
            exception_name=name,
        )

    if isinstance(error, ssl.SSLCertVerificationError):
        return FailureDescriptor(
            transport_type=TransportErrorType.BAD_CERTIFICATE,
            message=safe_str(error),
            exception_name=name,
        )

    if isinstance(error, (socket.gaierror, ConnectionError)):
        return FailureDescriptor(
            transport_type=TransportErrorType.CONNECTION_ERROR,
            message=safe_str(error),
            os_error_code=error.errno,
            exception_name=name,
        )

    if isinstance(error, OSError) and error.errno in NETWORK_ERROR_CODES:
        return FailureDescriptor(
            transport_type=TransportErrorType.CONNECTION_ERROR,
            message=safe_str(error),
            os_error_code=error.errno,
            exception_name=name,
        )

    status_code = _status_of(error)
    payload = _payload_of(error)
    response = getattr(error, "response", None)
    if response is not None:
        if status_code is None:
            status_code = _status_of(response)
        if payload is None:
            payload = _payload_of(response)
    if status_code is not None:
        return FailureDescriptor(
            transport_type=TransportErrorType.BAD_RESPONSE,
            status_code=status_code,
            payload=payload,
            message=getattr(error, "message", None) or safe_str(error),
            exception_name=name,
        )

    return FailureDescriptor(message=safe_str(error), exception_name=name)


def describe(error: Any, adapters: Iterable[Adapter] = ()) -> FailureDescriptor:
    """Reduce any thrown value to a FailureDescriptor.

    Adapters are consulted in order and the first non-None result wins;
    otherwise the built-in rules apply. This function never raises.

    Examples:
        >>> describe(HttpStatusError(404)).status_code
        404
        >>> describe(ConnectionRefusedError(111, "refused")).transport_type
        <TransportErrorType.CONNECTION_ERROR: 'connection_error'>
        >>> describe("boom").message
        'boom'
    """
    for adapter in adapters:
        try:
            descriptor = adapter(error)
        except Exception:
            logger.warning("Failure adapter %r raised; skipping it", adapter, exc_info=True)
            continue
        if descriptor is not None:
            return descriptor

    try:
        return _describe_builtin(error)
    except Exception:
        logger.warning("Could not describe %s", type(error).__name__, exc_info=True)
        return FailureDescriptor(message=safe_str(error), exception_name=type(error).__name__)


def payload_errors(payload: Any) -> Optional[Mapping[str, Any]]:
    """Return the ``errors`` object of a validation payload, if present.

    Recognizes ``{"errors": {...}}`` and ``{"message": ..., "errors": {...}}``.
    """
    if isinstance(payload, Mapping):
        errors = payload.get("errors")
        if isinstance(errors, Mapping):
            return errors
    return None


__all__ = [
    "NETWORK_ERROR_CODES",
    "FailureDescriptor",
    "Adapter",
    "describe",
    "payload_errors",
    "safe_str",
]
