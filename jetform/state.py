"""Async form state values.

AsyncFormState is a tagged union with exactly one active variant:

- Idle: no submission attempted yet (or the form was reset)
- Loading: a submission is in flight
- Data: the last submission succeeded; keeps both request and response
- Error: the last submission failed; keeps the classified FormError

Every variant is an immutable value; a state machine replaces its state
with a fresh value on each transition.

Usage:
    >>> state = Data(response={"id": "1"}, request={"email": "a@b.com"})
    >>> state.status
    <FormStatus.DATA: 'data'>
    >>> state.map(idle=lambda s: "idle", loading=lambda s: "busy",
    ...           data=lambda s: s.response["id"], error=lambda s: "failed")
    '1'
"""

from dataclasses import dataclass, field
from types import TracebackType
from typing import Any, Callable, Dict, Generic, Optional, TypeVar

from jetform.errors import FormError
from jetform.types import FormStatus

RequestT = TypeVar("RequestT")
ResponseT = TypeVar("ResponseT")
R = TypeVar("R")


class AsyncFormState(Generic[RequestT, ResponseT]):
    """Base class of the four form state variants."""

    status: FormStatus
    request: Optional[Any] = None
    response: Optional[Any] = None
    error: Optional[FormError] = None

    @property
    def is_idle(self) -> bool:
        return self.status == FormStatus.IDLE

    @property
    def is_loading(self) -> bool:
        return self.status == FormStatus.LOADING

    @property
    def has_value(self) -> bool:
        return self.status == FormStatus.DATA

    @property
    def has_error(self) -> bool:
        return self.status == FormStatus.ERROR

    def map(
        self,
        idle: Callable[["Idle"], R],
        loading: Callable[["Loading"], R],
        data: Callable[["Data"], R],
        error: Callable[["Error"], R],
    ) -> R:
        """Dispatch on the active variant; every branch is required."""
        handlers = {
            FormStatus.IDLE: idle,
            FormStatus.LOADING: loading,
            FormStatus.DATA: data,
            FormStatus.ERROR: error,
        }
        return handlers[self.status](self)

    def maybe_map(
        self,
        or_else: Callable[["AsyncFormState"], R],
        idle: Optional[Callable[["Idle"], R]] = None,
        loading: Optional[Callable[["Loading"], R]] = None,
        data: Optional[Callable[["Data"], R]] = None,
        error: Optional[Callable[["Error"], R]] = None,
    ) -> R:
        """Like ``map`` but with optional branches and an ``or_else`` fallback."""
        handlers = {
            FormStatus.IDLE: idle,
            FormStatus.LOADING: loading,
            FormStatus.DATA: data,
            FormStatus.ERROR: error,
        }
        handler = handlers[self.status]
        if handler is None:
            return or_else(self)
        return handler(self)

    def to_dict(self) -> Dict[str, Any]:
        return {"status": self.status.value}


@dataclass(frozen=True)
class Idle(AsyncFormState[RequestT, ResponseT]):
    status = FormStatus.IDLE

    def __repr__(self) -> str:
        return "Idle()"


@dataclass(frozen=True)
class Loading(AsyncFormState[RequestT, ResponseT]):
    status = FormStatus.LOADING

    def __repr__(self) -> str:
        return "Loading()"


@dataclass(frozen=True)
class Data(AsyncFormState[RequestT, ResponseT]):
    """Successful submission.

    Attributes:
        response: Value produced by the action
        request: Decoded request the action was called with
    """
    response: Any
    request: Any

    status = FormStatus.DATA

    def to_dict(self) -> Dict[str, Any]:
        return {"status": self.status.value, "request": self.request, "response": self.response}


@dataclass(frozen=True)
class Error(AsyncFormState[RequestT, ResponseT]):
    """Failed submission.

    Attributes:
        error: The classified failure
        stack_trace: Traceback of the original failure
    """
    error: FormError
    stack_trace: Optional[TracebackType] = field(default=None, compare=False, repr=False)

    status = FormStatus.ERROR

    def to_dict(self) -> Dict[str, Any]:
        return {"status": self.status.value, "error": self.error.to_dict()}


__all__ = [
    "AsyncFormState",
    "Idle",
    "Loading",
    "Data",
    "Error",
]
