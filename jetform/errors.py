"""Structured error types for jetform.

This module defines FormError, the classified failure stored in an
``Error`` form state, and the exceptions that cross the public API:

- ValidationFailure: raised by decoders or actions that already know which
  fields are invalid
- HttpStatusError: a transport-neutral HTTP failure callers may raise
- FormSubmissionError: raised by the throwing submit variant
- SubmissionInProgressError: raised when a submission is already in flight

FormError values are immutable. Their ``raw_error`` and ``stack_trace``
are kept for diagnostics and are never serialized or shown to end users.
"""

from dataclasses import dataclass
from types import TracebackType
from typing import Any, Dict, List, Mapping, Optional

from jetform.types import FormErrorKind

FieldErrors = Dict[str, List[str]]

DEFAULT_MESSAGES: Dict[FormErrorKind, str] = {
    FormErrorKind.NO_INTERNET: "Please check your network settings.",
    FormErrorKind.SERVER: "Server error occurred",
    FormErrorKind.CLIENT: "Client error occurred",
    FormErrorKind.VALIDATION: "Validation failed",
    FormErrorKind.TIMEOUT: "Request timed out",
    FormErrorKind.CANCELLED: "Request was cancelled",
    FormErrorKind.UNKNOWN: "An unknown error occurred",
}


def normalize_field_errors(raw: Optional[Mapping[str, Any]]) -> FieldErrors:
    """Normalize a field -> messages mapping.

    Scalar values become single-element lists, list items are stringified,
    and fields without any message are dropped.

    Examples:
        >>> normalize_field_errors({"email": "invalid", "name": ["required", 3]})
        {'email': ['invalid'], 'name': ['required', '3']}
    """
    result: FieldErrors = {}
    if not raw:
        return result
    for name, value in raw.items():
        if value is None:
            continue
        if isinstance(value, (list, tuple)):
            messages = [str(item) for item in value if item is not None]
        else:
            messages = [str(value)]
        if messages:
            result[str(name)] = messages
    return result


@dataclass(frozen=True)
class FormError:
    """A classified form submission failure.

    Attributes:
        kind: Category from the closed FormErrorKind taxonomy
        message: Human-readable, non-empty message
        field_errors: Field name -> ordered messages (validation kind only)
        status_code: HTTP-like status code, when the failure carried one
        raw_error: The original thrown value
        stack_trace: Traceback of the original failure
        metadata: Diagnostic details (transport type, exception name, ...)

    Examples:
        >>> err = FormError.validation(errors={"email": ["invalid"]})
        >>> err.is_validation
        True
        >>> err.first_validation_error
        'invalid'
        >>> str(err)
        'email: invalid'
    """
    kind: FormErrorKind
    message: str
    field_errors: Optional[FieldErrors] = None
    status_code: Optional[int] = None
    raw_error: Optional[Any] = None
    stack_trace: Optional[TracebackType] = None
    metadata: Optional[Dict[str, Any]] = None

    def __post_init__(self):
        if isinstance(self.kind, str) and not isinstance(self.kind, FormErrorKind):
            object.__setattr__(self, "kind", FormErrorKind(self.kind))

        if not self.message:
            object.__setattr__(self, "message", DEFAULT_MESSAGES[self.kind])

        field_errors = normalize_field_errors(self.field_errors)
        if field_errors and self.kind != FormErrorKind.VALIDATION:
            raise ValueError(
                f"field_errors are only allowed on validation errors, "
                f"got kind '{self.kind.value}'"
            )
        object.__setattr__(self, "field_errors", field_errors or None)

    @classmethod
    def no_internet(
        cls,
        message: Optional[str] = None,
        raw_error: Optional[Any] = None,
        stack_trace: Optional[TracebackType] = None,
    ) -> "FormError":
        """Create a network connectivity error."""
        return cls(
            kind=FormErrorKind.NO_INTERNET,
            message=message or DEFAULT_MESSAGES[FormErrorKind.NO_INTERNET],
            raw_error=raw_error,
            stack_trace=stack_trace,
        )

    @classmethod
    def server(
        cls,
        message: Optional[str] = None,
        status_code: Optional[int] = None,
        raw_error: Optional[Any] = None,
        stack_trace: Optional[TracebackType] = None,
    ) -> "FormError":
        """Create a server error (5xx status codes)."""
        return cls(
            kind=FormErrorKind.SERVER,
            message=message or DEFAULT_MESSAGES[FormErrorKind.SERVER],
            status_code=status_code,
            raw_error=raw_error,
            stack_trace=stack_trace,
        )

    @classmethod
    def client(
        cls,
        message: Optional[str] = None,
        status_code: Optional[int] = None,
        raw_error: Optional[Any] = None,
        stack_trace: Optional[TracebackType] = None,
    ) -> "FormError":
        """Create a client error (4xx status codes)."""
        return cls(
            kind=FormErrorKind.CLIENT,
            message=message or DEFAULT_MESSAGES[FormErrorKind.CLIENT],
            status_code=status_code,
            raw_error=raw_error,
            stack_trace=stack_trace,
        )

    @classmethod
    def validation(
        cls,
        message: Optional[str] = None,
        errors: Optional[Mapping[str, Any]] = None,
        status_code: Optional[int] = None,
        raw_error: Optional[Any] = None,
        stack_trace: Optional[TracebackType] = None,
    ) -> "FormError":
        """Create a validation error with optional per-field messages."""
        return cls(
            kind=FormErrorKind.VALIDATION,
            message=message or DEFAULT_MESSAGES[FormErrorKind.VALIDATION],
            field_errors=normalize_field_errors(errors),
            status_code=status_code,
            raw_error=raw_error,
            stack_trace=stack_trace,
        )

    @classmethod
    def timeout(
        cls,
        message: Optional[str] = None,
        raw_error: Optional[Any] = None,
        stack_trace: Optional[TracebackType] = None,
    ) -> "FormError":
        return cls(
            kind=FormErrorKind.TIMEOUT,
            message=message or DEFAULT_MESSAGES[FormErrorKind.TIMEOUT],
            raw_error=raw_error,
            stack_trace=stack_trace,
        )

    @classmethod
    def cancelled(
        cls,
        message: Optional[str] = None,
        raw_error: Optional[Any] = None,
        stack_trace: Optional[TracebackType] = None,
    ) -> "FormError":
        return cls(
            kind=FormErrorKind.CANCELLED,
            message=message or DEFAULT_MESSAGES[FormErrorKind.CANCELLED],
            raw_error=raw_error,
            stack_trace=stack_trace,
        )

    @classmethod
    def unknown(
        cls,
        message: Optional[str] = None,
        raw_error: Optional[Any] = None,
        stack_trace: Optional[TracebackType] = None,
    ) -> "FormError":
        return cls(
            kind=FormErrorKind.UNKNOWN,
            message=message or DEFAULT_MESSAGES[FormErrorKind.UNKNOWN],
            raw_error=raw_error,
            stack_trace=stack_trace,
        )

    @property
    def is_validation(self) -> bool:
        return self.kind == FormErrorKind.VALIDATION

    @property
    def is_no_internet(self) -> bool:
        return self.kind == FormErrorKind.NO_INTERNET

    @property
    def is_server_error(self) -> bool:
        return self.kind == FormErrorKind.SERVER

    @property
    def is_client_error(self) -> bool:
        return self.kind == FormErrorKind.CLIENT

    @property
    def is_timeout(self) -> bool:
        return self.kind == FormErrorKind.TIMEOUT

    @property
    def is_cancelled(self) -> bool:
        return self.kind == FormErrorKind.CANCELLED

    @property
    def first_validation_error(self) -> Optional[str]:
        """First message of the first invalid field, if any."""
        if not self.field_errors:
            return None
        first_messages = next(iter(self.field_errors.values()))
        return first_messages[0] if first_messages else None

    @property
    def all_validation_errors(self) -> str:
        """All validation messages as ``field: message`` lines.

        Falls back to ``message`` when there is no per-field detail.
        """
        if not self.field_errors:
            return self.message
        lines = [
            f"{name}: {text}"
            for name, messages in self.field_errors.items()
            for text in messages
        ]
        return "\n".join(lines)

    def __str__(self) -> str:
        if self.is_validation and self.field_errors:
            return self.all_validation_errors
        return self.message

    def with_stack_trace(self, stack_trace: Optional[TracebackType]) -> "FormError":
        """Return a copy carrying ``stack_trace`` unless one is already set."""
        if self.stack_trace is not None or stack_trace is None:
            return self
        return FormError(
            kind=self.kind,
            message=self.message,
            field_errors=self.field_errors,
            status_code=self.status_code,
            raw_error=self.raw_error,
            stack_trace=stack_trace,
            metadata=self.metadata,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dict for serialization.

        ``raw_error`` and ``stack_trace`` are intentionally omitted.
        """
        result: Dict[str, Any] = {
            "kind": self.kind.value,
            "message": self.message,
        }
        if self.field_errors:
            result["fieldErrors"] = {k: list(v) for k, v in self.field_errors.items()}
        if self.status_code is not None:
            result["statusCode"] = self.status_code
        if self.metadata:
            result["metadata"] = self.metadata
        return result

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FormError":
        """Create FormError from dict."""
        return cls(
            kind=FormErrorKind(data["kind"]),
            message=data.get("message", ""),
            field_errors=data.get("fieldErrors"),
            status_code=data.get("statusCode"),
            metadata=data.get("metadata"),
        )


class ValidationFailure(Exception):
    """Raised when submitted values fail validation.

    Decoders raise this for local validation problems; actions may raise it
    when a downstream system reports per-field errors.

    Attributes:
        field_errors: Field name -> ordered messages
        message: Optional form-level message
    """

    def __init__(self, field_errors: Mapping[str, Any], message: Optional[str] = None):
        self.field_errors = normalize_field_errors(field_errors)
        self.message = message
        super().__init__(message or DEFAULT_MESSAGES[FormErrorKind.VALIDATION])


class HttpStatusError(Exception):
    """Transport-neutral HTTP failure.

    Attributes:
        status_code: HTTP status code of the response
        payload: Decoded response body (usually a dict)
        message: Optional server-provided message
    """

    def __init__(self, status_code: int, payload: Any = None, message: Optional[str] = None):
        self.status_code = status_code
        self.payload = payload
        self.message = message
        super().__init__(message or f"HTTP error {status_code}")


class FormSubmissionError(Exception):
    """Raised by the throwing submit variant when a submission fails.

    Attributes:
        error: The classified FormError
    """

    def __init__(self, error: FormError):
        self.error = error
        super().__init__(str(error))


class SubmissionInProgressError(Exception):
    """Raised when submitting while another submission is in flight."""

    def __init__(self, form_id: str):
        self.form_id = form_id
        super().__init__(f"Form '{form_id}' already has a submission in flight")


__all__ = [
    "FieldErrors",
    "DEFAULT_MESSAGES",
    "normalize_field_errors",
    "FormError",
    "ValidationFailure",
    "HttpStatusError",
    "FormSubmissionError",
    "SubmissionInProgressError",
]
