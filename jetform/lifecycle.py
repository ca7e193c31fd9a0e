"""Lifecycle callbacks for form submissions.

Callbacks are plain functions passed to the state machine at construction
time. They are notifications only: return values are ignored, and a
callback that raises is logged without affecting the form state.
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Generic, Optional, TypeVar

from jetform.errors import FormError

logger = logging.getLogger(__name__)

RequestT = TypeVar("RequestT")
ResponseT = TypeVar("ResponseT")


@dataclass(frozen=True)
class FormLifecycleCallbacks(Generic[RequestT, ResponseT]):
    """Optional hooks fired around a submission.

    Attributes:
        on_submission_start: Called once the form enters loading
        on_success: Called with (response, request) after a successful action
        on_submission_error: Called with the FormError of a non-validation failure
        on_validation_error: Called with the FormError of a validation failure
    """
    on_submission_start: Optional[Callable[[], Any]] = None
    on_success: Optional[Callable[[ResponseT, RequestT], Any]] = None
    on_submission_error: Optional[Callable[[FormError], Any]] = None
    on_validation_error: Optional[Callable[[FormError], Any]] = None

    def trigger_submission_start(self) -> None:
        self._call("on_submission_start", self.on_submission_start)

    def trigger_success(self, response: ResponseT, request: RequestT) -> None:
        self._call("on_success", self.on_success, response, request)

    def trigger_submission_error(self, error: FormError) -> None:
        self._call("on_submission_error", self.on_submission_error, error)

    def trigger_validation_error(self, error: FormError) -> None:
        self._call("on_validation_error", self.on_validation_error, error)

    @staticmethod
    def _call(name: str, callback: Optional[Callable[..., Any]], *args: Any) -> None:
        if callback is None:
            return
        try:
            callback(*args)
        except Exception:
            logger.exception("Lifecycle callback %s raised", name)


__all__ = [
    "FormLifecycleCallbacks",
]
