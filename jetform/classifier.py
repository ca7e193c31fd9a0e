"""Error classifier for form submissions.

ErrorClassifier turns any thrown value into a FormError from the closed
taxonomy. Classification is an ordered predicate chain over a
FailureDescriptor, first match wins:

1. validation   explicit field errors, or 400/422 with an ``errors`` object
2. no_internet  DNS / connection failures and network-unavailable messages
3. server       status code >= 500
4. client       status code 400-499
5. timeout      connect / send / receive timeouts
6. cancelled    explicit cancellation
7. unknown      everything else

Each predicate is a method so subclasses can refine detection without
rewriting the chain. ``classify`` never raises.

Usage:
    >>> from jetform.errors import HttpStatusError
    >>> classifier = ErrorClassifier()
    >>> classifier.classify(HttpStatusError(404)).message
    'The requested resource was not found.'
    >>> err = classifier.classify(HttpStatusError(422, {"errors": {"email": "taken"}}))
    >>> err.kind, err.field_errors
    (<FormErrorKind.VALIDATION: 'validation'>, {'email': ['taken']})
"""

import logging
from types import TracebackType
from typing import Any, Dict, Iterable, Optional

from jetform.adapters import DEFAULT_ADAPTERS
from jetform.descriptor import (
    NETWORK_ERROR_CODES,
    Adapter,
    FailureDescriptor,
    describe,
    payload_errors,
)
from jetform.errors import FieldErrors, FormError, FormSubmissionError, normalize_field_errors
from jetform.messages import MessageTable
from jetform.types import TIMEOUT_TRANSPORT_TYPES, FormErrorKind, TransportErrorType

logger = logging.getLogger(__name__)

VALIDATION_STATUS_CODES = frozenset({400, 422})

NO_INTERNET_KEYWORDS = (
    "no internet",
    "network unavailable",
    "network is unreachable",
    "connection failed",
    "host unreachable",
    "name or service not known",
    "temporary failure in name resolution",
    "nodename nor servname provided",
)


class ErrorClassifier:
    """Maps arbitrary failures to FormError values.

    Attributes:
        messages: Table the user-facing messages are taken from
        adapters: Transport adapters consulted before the built-in rules
    """

    def __init__(
        self,
        messages: Optional[MessageTable] = None,
        adapters: Optional[Iterable[Adapter]] = None,
    ):
        self.messages = messages or MessageTable()
        self.adapters = tuple(adapters) if adapters is not None else DEFAULT_ADAPTERS

    def classify(self, error: Any, stack_trace: Optional[TracebackType] = None) -> FormError:
        """Classify ``error`` into a FormError.

        Args:
            error: Any thrown value (exception, string, arbitrary object)
            stack_trace: Traceback of the failure; defaults to the
                exception's own ``__traceback__``

        Returns:
            A FormError whose kind is in the closed taxonomy
        """
        if stack_trace is None and isinstance(error, BaseException):
            stack_trace = error.__traceback__

        try:
            if isinstance(error, FormError):
                return error.with_stack_trace(stack_trace)
            if isinstance(error, FormSubmissionError):
                # Raised by a nested form; keep its classification
                return error.error.with_stack_trace(stack_trace)
            descriptor = describe(error, self.adapters)
            return self._classify_descriptor(error, descriptor, stack_trace)
        except Exception:
            logger.warning(
                "Classification of %s failed; falling back to unknown",
                type(error).__name__,
                exc_info=True,
            )
            return FormError(
                kind=FormErrorKind.UNKNOWN,
                message=self.messages.for_kind(FormErrorKind.UNKNOWN),
                raw_error=error,
                stack_trace=stack_trace,
            )

    def _classify_descriptor(
        self,
        error: Any,
        descriptor: FailureDescriptor,
        stack_trace: Optional[TracebackType],
    ) -> FormError:
        metadata = self.create_metadata(descriptor)
        status_code = descriptor.status_code

        if self.is_validation_error(descriptor):
            return FormError(
                kind=FormErrorKind.VALIDATION,
                message=self.message_for(FormErrorKind.VALIDATION, descriptor),
                field_errors=self.extract_validation_errors(descriptor),
                status_code=status_code,
                raw_error=error,
                stack_trace=stack_trace,
                metadata=metadata,
            )

        if self.is_no_internet_error(descriptor):
            kind = FormErrorKind.NO_INTERNET
            status_code = None
        elif status_code is not None and status_code >= 500:
            kind = FormErrorKind.SERVER
        elif status_code is not None and 400 <= status_code < 500:
            kind = FormErrorKind.CLIENT
        elif self.is_timeout(descriptor):
            kind = FormErrorKind.TIMEOUT
        elif self.is_cancelled(descriptor):
            kind = FormErrorKind.CANCELLED
        else:
            kind = FormErrorKind.UNKNOWN

        if kind in (FormErrorKind.TIMEOUT, FormErrorKind.CANCELLED, FormErrorKind.UNKNOWN):
            status_code = None

        return FormError(
            kind=kind,
            message=self.message_for(kind, descriptor),
            status_code=status_code,
            raw_error=error,
            stack_trace=stack_trace,
            metadata=metadata,
        )

    def is_validation_error(self, descriptor: FailureDescriptor) -> bool:
        """Whether the failure carries structured validation detail."""
        if descriptor.field_errors is not None:
            return True
        if descriptor.status_code in VALIDATION_STATUS_CODES:
            return bool(normalize_field_errors(payload_errors(descriptor.payload)))
        return False

    def extract_validation_errors(self, descriptor: FailureDescriptor) -> FieldErrors:
        """Per-field messages from explicit detail or the response payload."""
        if descriptor.field_errors:
            return normalize_field_errors(descriptor.field_errors)
        return normalize_field_errors(payload_errors(descriptor.payload))

    def is_no_internet_error(self, descriptor: FailureDescriptor) -> bool:
        if descriptor.transport_type == TransportErrorType.CONNECTION_ERROR:
            return True
        if descriptor.os_error_code in NETWORK_ERROR_CODES:
            return True
        if descriptor.status_code is not None:
            return False
        text = (descriptor.message or "").lower()
        return any(keyword in text for keyword in NO_INTERNET_KEYWORDS)

    def is_timeout(self, descriptor: FailureDescriptor) -> bool:
        return descriptor.transport_type in TIMEOUT_TRANSPORT_TYPES

    def is_cancelled(self, descriptor: FailureDescriptor) -> bool:
        return descriptor.transport_type == TransportErrorType.CANCEL

    def message_for(self, kind: FormErrorKind, descriptor: FailureDescriptor) -> str:
        """Pick the user-facing message for a classified failure.

        Status-specific messages win for client and server errors, transport
        messages for timeouts and cancellation. Unknown errors fall back to
        the failure's own text.
        """
        if kind == FormErrorKind.VALIDATION:
            if descriptor.field_errors is not None and descriptor.message:
                return descriptor.message
            if descriptor.status_code is not None:
                return self.messages.for_status(descriptor.status_code) or self.messages.for_kind(kind)
            return self.messages.for_kind(kind)

        if kind in (FormErrorKind.SERVER, FormErrorKind.CLIENT):
            return self.messages.for_status(descriptor.status_code) or self.messages.for_kind(kind)

        if kind in (FormErrorKind.TIMEOUT, FormErrorKind.CANCELLED):
            return self.messages.for_transport(descriptor.transport_type) or self.messages.for_kind(kind)

        if kind == FormErrorKind.UNKNOWN:
            transport_message = self.messages.for_transport(descriptor.transport_type)
            return transport_message or descriptor.message or self.messages.for_kind(kind)

        return self.messages.for_kind(kind)

    def create_metadata(self, descriptor: FailureDescriptor) -> Optional[Dict[str, Any]]:
        metadata: Dict[str, Any] = dict(descriptor.metadata or {})
        metadata["transportType"] = descriptor.transport_type.value
        if descriptor.exception_name:
            metadata["exceptionName"] = descriptor.exception_name
        if descriptor.status_code is not None:
            metadata["statusCode"] = descriptor.status_code
        if descriptor.os_error_code is not None:
            metadata["osErrorCode"] = descriptor.os_error_code
        return metadata


__all__ = [
    "ErrorClassifier",
    "NO_INTERNET_KEYWORDS",
    "VALIDATION_STATUS_CODES",
]
