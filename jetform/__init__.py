"""jetform: async form submission state machine and error classifier.

jetform provides:
- A form state machine with a well-defined lifecycle (idle, loading, data, error)
- At-most-one in-flight submission, with stale results discarded after reset
- Classification of any failure into a closed error taxonomy
- Per-field routing of validation errors to whatever UI hosts the form
- Typed lifecycle callbacks and an event stream for observers

Basic usage:
    >>> import asyncio
    >>> from jetform import FormStateMachine, InMemoryFieldRegistry
    >>> async def register(request):
    ...     return {"id": "1"}
    >>> form = FormStateMachine(
    ...     decode=lambda fields: {"email": fields["email"]},
    ...     action=register,
    ...     field_registry=InMemoryFieldRegistry(),
    ... )
    >>> asyncio.run(form.submit({"email": "a@b.com"}))
    {'id': '1'}
    >>> form.state.has_value
    True
"""

import logging

__version__ = "0.1.0"
__author__ = "Jet Team"

# Version info
VERSION = (0, 1, 0)

# Core exports
from jetform.classifier import ErrorClassifier
from jetform.config import FormConfig, configure_logging
from jetform.errors import (
    FormError,
    FormSubmissionError,
    HttpStatusError,
    SubmissionInProgressError,
    ValidationFailure,
)
from jetform.lifecycle import FormLifecycleCallbacks
from jetform.machine import FormStateMachine
from jetform.messages import MessageTable
from jetform.registry import FieldRegistry, InMemoryFieldRegistry
from jetform.state import AsyncFormState, Data, Error, Idle, Loading
from jetform.types import FormErrorKind, FormStatus
from jetform.validation import SchemaDecoder

logging.getLogger(__name__).addHandler(logging.NullHandler())

# Package metadata
__all__ = [
    "__version__",
    "VERSION",
    "AsyncFormState",
    "Data",
    "Error",
    "ErrorClassifier",
    "FieldRegistry",
    "FormConfig",
    "FormError",
    "FormErrorKind",
    "FormLifecycleCallbacks",
    "FormStateMachine",
    "FormStatus",
    "FormSubmissionError",
    "HttpStatusError",
    "Idle",
    "InMemoryFieldRegistry",
    "Loading",
    "MessageTable",
    "SchemaDecoder",
    "SubmissionInProgressError",
    "ValidationFailure",
    "configure_logging",
]
