"""Transport adapters that map client-library errors onto FailureDescriptor.

Only the adapter knows about the concrete HTTP client. The classifier sees
nothing but the resulting descriptor, so switching clients means writing a
new adapter, not touching classification rules.
"""

import json
import ssl
from typing import Any, Dict, Optional

import httpx

from jetform.descriptor import FailureDescriptor, safe_str
from jetform.types import TransportErrorType


def _root_os_error(error: BaseException) -> Optional[OSError]:
    """Walk the cause/context chain looking for the underlying OSError."""
    seen = set()
    current: Optional[BaseException] = error
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        if isinstance(current, OSError):
            return current
        current = current.__cause__ or current.__context__
    return None


def _response_payload(response: httpx.Response) -> Any:
    try:
        return response.json()
    except (json.JSONDecodeError, UnicodeDecodeError, ValueError):
        pass
    except httpx.StreamError:
        # Streamed body that was never read
        return None
    return response.text or None


def _request_metadata(error: httpx.HTTPError) -> Dict[str, Any]:
    try:
        request = error.request
    except RuntimeError:
        # RequestError raised without an attached request
        return {}
    return {"requestMethod": request.method, "requestPath": request.url.path}


def describe_httpx_error(error: Any) -> Optional[FailureDescriptor]:
    """Describe an ``httpx`` exception, or return None for anything else.

    Examples:
        >>> request = httpx.Request("POST", "https://api.example.com/login")
        >>> response = httpx.Response(404, request=request)
        >>> err = httpx.HTTPStatusError("not found", request=request, response=response)
        >>> describe_httpx_error(err).status_code
        404
        >>> describe_httpx_error(ValueError("x")) is None
        True
    """
    if not isinstance(error, httpx.HTTPError):
        return None

    name = type(error).__name__
    metadata = _request_metadata(error)

    if isinstance(error, httpx.HTTPStatusError):
        response = error.response
        metadata["statusMessage"] = response.reason_phrase
        return FailureDescriptor(
            transport_type=TransportErrorType.BAD_RESPONSE,
            status_code=response.status_code,
            payload=_response_payload(response),
            message=safe_str(error),
            exception_name=name,
            metadata=metadata,
        )

    if isinstance(error, httpx.TimeoutException):
        if isinstance(error, httpx.ConnectTimeout):
            transport_type = TransportErrorType.CONNECTION_TIMEOUT
        elif isinstance(error, httpx.WriteTimeout):
            transport_type = TransportErrorType.SEND_TIMEOUT
        else:
            transport_type = TransportErrorType.RECEIVE_TIMEOUT
        return FailureDescriptor(
            transport_type=transport_type,
            message=safe_str(error),
            exception_name=name,
            metadata=metadata,
        )

    if isinstance(error, httpx.ConnectError):
        os_error = _root_os_error(error)
        if isinstance(os_error, ssl.SSLCertVerificationError):
            transport_type = TransportErrorType.BAD_CERTIFICATE
        else:
            transport_type = TransportErrorType.CONNECTION_ERROR
        return FailureDescriptor(
            transport_type=transport_type,
            message=safe_str(error),
            os_error_code=os_error.errno if os_error is not None else None,
            exception_name=name,
            metadata=metadata,
        )

    return FailureDescriptor(
        transport_type=TransportErrorType.UNKNOWN,
        message=safe_str(error),
        exception_name=name,
        metadata=metadata,
    )


DEFAULT_ADAPTERS = (describe_httpx_error,)


__all__ = [
    "describe_httpx_error",
    "DEFAULT_ADAPTERS",
]
