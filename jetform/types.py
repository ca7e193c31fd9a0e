"""Core type definitions for jetform.

This module defines the fundamental enumerations used throughout jetform:
- FormErrorKind: Closed taxonomy of classified submission failures
- FormStatus: Discriminant of the AsyncFormState tagged union
- TransportErrorType: Transport-agnostic failure category of a thrown error
- FormEventType: Event types emitted by a FormStateMachine
- FieldErrorCode: Validation error codes produced by schema decoders

These types form the contract between the state machine, the error
classifier, and whatever UI layer renders the form.
"""

from enum import Enum


class FormErrorKind(str, Enum):
    """Kinds of classified form submission errors.

    The set is closed: consumers are expected to handle every member.
    """
    NO_INTERNET = "no_internet"
    SERVER = "server"
    CLIENT = "client"
    VALIDATION = "validation"
    TIMEOUT = "timeout"
    CANCELLED = "cancelled"
    UNKNOWN = "unknown"


class FormStatus(str, Enum):
    """Lifecycle status of a form.

    Transitions: idle -> loading -> (data | error), data/error -> loading,
    any -> idle on reset. There is no terminal status.
    """
    IDLE = "idle"
    LOADING = "loading"
    DATA = "data"
    ERROR = "error"


class TransportErrorType(str, Enum):
    """Transport-level failure category.

    Concrete HTTP client exceptions are mapped onto these values at the
    boundary so classification never inspects a specific client library.
    """
    CONNECTION_TIMEOUT = "connection_timeout"
    SEND_TIMEOUT = "send_timeout"
    RECEIVE_TIMEOUT = "receive_timeout"
    BAD_CERTIFICATE = "bad_certificate"
    BAD_RESPONSE = "bad_response"
    CANCEL = "cancel"
    CONNECTION_ERROR = "connection_error"
    UNKNOWN = "unknown"


class FormEventType(str, Enum):
    """Event types emitted by a FormStateMachine."""
    STATE_CHANGED = "state.changed"
    SUBMISSION_STARTED = "submission.started"
    SUBMISSION_SUCCEEDED = "submission.succeeded"
    SUBMISSION_FAILED = "submission.failed"
    SUBMISSION_REJECTED = "submission.rejected"
    VALIDATION_FAILED = "validation.failed"
    FORM_RESET = "form.reset"
    FIELDS_INVALIDATED = "fields.invalidated"
    RESULT_DISCARDED = "result.discarded"


class FieldErrorCode(str, Enum):
    """Validation error codes for individual field failures."""
    REQUIRED = "required"
    INVALID_TYPE = "invalid_type"
    INVALID_FORMAT = "invalid_format"
    INVALID_VALUE = "invalid_value"
    TOO_LONG = "too_long"
    TOO_SHORT = "too_short"
    CUSTOM = "custom"


TIMEOUT_TRANSPORT_TYPES = frozenset({
    TransportErrorType.CONNECTION_TIMEOUT,
    TransportErrorType.SEND_TIMEOUT,
    TransportErrorType.RECEIVE_TIMEOUT,
})


__all__ = [
    "FormErrorKind",
    "FormStatus",
    "TransportErrorType",
    "FormEventType",
    "FieldErrorCode",
    "TIMEOUT_TRANSPORT_TYPES",
]
