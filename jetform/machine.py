"""Form submission state machine.

This module implements FormStateMachine, which owns one form's
AsyncFormState and the asynchronous submission protocol around it.

The state machine:
- Enforces valid transitions (idle/data/error -> loading -> data/error,
  any -> idle on reset)
- Allows at most one in-flight submission per instance
- Routes decode and action failures through the same ErrorClassifier
- Pushes validation messages into a FieldRegistry
- Discards results of submissions superseded by a reset
- Notifies subscribers and emits typed events for every change

Usage:
    >>> import asyncio
    >>> async def login(request):
    ...     return {"id": "1"}
    >>> form = FormStateMachine(decode=lambda f: {"email": f["email"]}, action=login)
    >>> asyncio.run(form.submit({"email": "a@b.com"}))
    {'id': '1'}
    >>> form.state
    Data(response={'id': '1'}, request={'email': 'a@b.com'})
"""

import asyncio
import inspect
import logging
import uuid
from datetime import datetime, timezone
from types import TracebackType
from typing import (
    Any,
    Awaitable,
    Callable,
    Dict,
    Generic,
    List,
    Mapping,
    Optional,
    Sequence,
    Set,
    TypeVar,
    Union,
)

from jetform.classifier import ErrorClassifier
from jetform.config import FormConfig
from jetform.errors import (
    FormError,
    FormSubmissionError,
    SubmissionInProgressError,
)
from jetform.events import EventEmitter, FormEvent
from jetform.lifecycle import FormLifecycleCallbacks
from jetform.registry import FieldRegistry
from jetform.state import AsyncFormState, Data, Error, Idle, Loading
from jetform.types import FormEventType, FormStatus

logger = logging.getLogger(__name__)

RequestT = TypeVar("RequestT")
ResponseT = TypeVar("ResponseT")

Decoder = Callable[[Mapping[str, Any]], RequestT]
Action = Callable[[RequestT], Union[Awaitable[ResponseT], ResponseT]]
StateListener = Callable[[AsyncFormState], None]


class InvalidStateTransitionError(Exception):
    """Raised when the machine attempts a transition its table forbids.

    Attributes:
        current_state: Status before the attempted transition
        target_state: Status that was attempted
    """

    def __init__(self, current_state: FormStatus, target_state: FormStatus, message: str):
        self.current_state = current_state
        self.target_state = target_state
        super().__init__(message)


# Reset may move any status to idle; everything else follows the submit protocol.
VALID_TRANSITIONS: Dict[FormStatus, Set[FormStatus]] = {
    FormStatus.IDLE: {FormStatus.LOADING, FormStatus.IDLE},
    FormStatus.LOADING: {FormStatus.DATA, FormStatus.ERROR, FormStatus.IDLE},
    FormStatus.DATA: {FormStatus.LOADING, FormStatus.IDLE},
    FormStatus.ERROR: {FormStatus.LOADING, FormStatus.IDLE},
}


class FormStateMachine(Generic[RequestT, ResponseT]):
    """Async submission state machine for one form.

    Attributes:
        form_id: Identifier used in events and log records
        decode: Turns raw field values into a typed request
        action: Performs the submission; may return an awaitable
        callbacks: Lifecycle hooks
        classifier: Maps failures to FormError values
        field_registry: Receives per-field validation messages
        config: Shared settings

    Examples:
        >>> form = FormStateMachine(decode=dict, action=lambda request: request)
        >>> form.state
        Idle()
        >>> form.can_transition_to(FormStatus.DATA)
        False
    """

    def __init__(
        self,
        decode: Decoder,
        action: Action,
        callbacks: Optional[FormLifecycleCallbacks] = None,
        classifier: Optional[ErrorClassifier] = None,
        field_registry: Optional[FieldRegistry] = None,
        form_id: Optional[str] = None,
        emitter: Optional[EventEmitter] = None,
        config: Optional[FormConfig] = None,
    ):
        self.config = config or FormConfig()
        self.decode = decode
        self.action = action
        self.callbacks: FormLifecycleCallbacks = callbacks or FormLifecycleCallbacks()
        self.classifier = classifier or self.config.build_classifier()
        self.field_registry = field_registry
        self.form_id = form_id or f"form_{uuid.uuid4().hex[:12]}"
        self.events = emitter or EventEmitter()

        self._state: AsyncFormState = Idle()
        self._generation = 0
        self._invalidated_fields: Set[str] = set()
        self._state_listeners: List[StateListener] = []

    @property
    def state(self) -> AsyncFormState:
        """Current state value."""
        return self._state

    @property
    def generation(self) -> int:
        """Counter bumped on every submit and reset.

        A submission only lands if the counter still holds the value it
        had when that submission started.
        """
        return self._generation

    @property
    def is_submitting(self) -> bool:
        return self._state.is_loading

    def can_transition_to(self, target: FormStatus) -> bool:
        return target in VALID_TRANSITIONS[self._state.status]

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """Call ``listener`` with every new state.

        Returns:
            A function that removes the listener again
        """
        self._state_listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._state_listeners:
                self._state_listeners.remove(listener)

        return unsubscribe

    async def submit(self, raw_fields: Mapping[str, Any]) -> Optional[ResponseT]:
        """Decode ``raw_fields``, run the action and record the outcome.

        Failures are reported through ``state`` and the lifecycle hooks, not
        raised, unless the config sets ``raise_on_error``.

        Returns:
            The action's response, or None if the submission failed, was
            rejected because another one is in flight, or was superseded
            by a reset before it completed
        """
        return await self._submit(raw_fields, raise_on_error=self.config.raise_on_error)

    async def submit_or_raise(self, raw_fields: Mapping[str, Any]) -> Optional[ResponseT]:
        """Like ``submit`` but raises on failure.

        Raises:
            SubmissionInProgressError: If a submission is already in flight
            FormSubmissionError: If decoding or the action failed

        Returns:
            The action's response, or None if a reset superseded this
            submission before it completed
        """
        return await self._submit(raw_fields, raise_on_error=True)

    async def _submit(self, raw_fields: Mapping[str, Any], raise_on_error: bool) -> Optional[ResponseT]:
        if self._state.is_loading:
            logger.warning("Form %s: submit ignored, a submission is already in flight", self.form_id)
            self._emit(FormEventType.SUBMISSION_REJECTED)
            if raise_on_error:
                raise SubmissionInProgressError(self.form_id)
            return None

        self._generation += 1
        generation = self._generation
        self._clear_invalidated_fields()
        self._transition(Loading())
        self._emit(FormEventType.SUBMISSION_STARTED, {"generation": generation})
        self.callbacks.trigger_submission_start()

        try:
            request = self.decode(raw_fields)
            result = self.action(request)
            if inspect.isawaitable(result):
                response = await result
            else:
                response = result
        except asyncio.CancelledError as exc:
            if self._is_current(generation):
                self._fail(self.classifier.classify(exc), exc.__traceback__, generation)
            raise
        except Exception as exc:
            if not self._is_current(generation):
                self._discard(generation, "error")
                return None
            error = self.classifier.classify(exc, exc.__traceback__)
            if not self._fail(error, exc.__traceback__, generation):
                return None
            if raise_on_error:
                raise FormSubmissionError(error) from exc
            return None

        if not self._is_current(generation):
            self._discard(generation, "response")
            return None

        self._transition(Data(response=response, request=request))
        if not self._is_current(generation):
            self._discard(generation, "response")
            return None
        logger.info("Form %s: submission succeeded", self.form_id)
        self._emit(FormEventType.SUBMISSION_SUCCEEDED)
        if self._is_current(generation):
            self.callbacks.trigger_success(response, request)
        return response

    def reset(self) -> None:
        """Return to idle, whatever the current state.

        An in-flight action is not cancelled; its result is discarded when
        it arrives.
        """
        self._generation += 1
        if self._state.is_loading:
            logger.debug(
                "Form %s: reset while loading, pending result will be discarded",
                self.form_id,
            )
        self._clear_invalidated_fields()
        if not self._state.is_idle:
            self._transition(Idle())
        self._emit(FormEventType.FORM_RESET, {"generation": self._generation})

    def invalidate_fields(self, field_errors: Mapping[str, Optional[Sequence[str]]]) -> None:
        """Show ``field_errors`` on the matching fields.

        A field mapped to an empty list (or None) is cleared instead. The
        form state itself is left untouched, so this also serves late,
        server-driven invalidation after a successful submission.
        """
        written: Dict[str, List[str]] = {}
        for name, messages in field_errors.items():
            messages = [str(m) for m in (messages or [])]
            if messages:
                self._write_field(name, messages)
                self._invalidated_fields.add(name)
                written[name] = messages
            else:
                self._clear_field(name)
                self._invalidated_fields.discard(name)
        self._emit(FormEventType.FIELDS_INVALIDATED, {"fieldErrors": written})

    def _fail(self, error: FormError, stack_trace: Optional[TracebackType], generation: int) -> bool:
        """Record a failure and run its side effects.

        State listeners run inside the transition and may reset the form;
        side effects stop as soon as ``generation`` is no longer current.

        Returns:
            False if a state listener superseded the submission
        """
        self._transition(Error(error=error, stack_trace=stack_trace))
        if not self._is_current(generation):
            self._discard(generation, "error")
            return False
        logger.info(
            "Form %s: submission failed (%s): %s",
            self.form_id,
            error.kind.value,
            error.message,
        )
        if error.is_validation:
            self.invalidate_fields(error.field_errors or {})
            self._emit(FormEventType.VALIDATION_FAILED, error.to_dict())
            if self._is_current(generation):
                self.callbacks.trigger_validation_error(error)
        else:
            self._emit(FormEventType.SUBMISSION_FAILED, error.to_dict())
            if self._is_current(generation):
                self.callbacks.trigger_submission_error(error)
        return True

    def _is_current(self, generation: int) -> bool:
        return generation == self._generation

    def _discard(self, generation: int, outcome: str) -> None:
        logger.debug(
            "Form %s: discarding stale %s from generation %d (current %d)",
            self.form_id,
            outcome,
            generation,
            self._generation,
        )
        self._emit(
            FormEventType.RESULT_DISCARDED,
            {"generation": generation, "outcome": outcome},
        )

    def _transition(self, new_state: AsyncFormState) -> None:
        old_status = self._state.status
        if not self.can_transition_to(new_state.status):
            raise InvalidStateTransitionError(
                current_state=old_status,
                target_state=new_state.status,
                message=(
                    f"Invalid state transition: cannot transition from "
                    f"'{old_status.value}' to '{new_state.status.value}'"
                ),
            )

        self._state = new_state
        logger.debug("Form %s: %s -> %s", self.form_id, old_status.value, new_state.status.value)

        for listener in list(self._state_listeners):
            try:
                listener(new_state)
            except Exception:
                logger.exception("Form %s: state listener %r failed", self.form_id, listener)

        self._emit(
            FormEventType.STATE_CHANGED,
            {"from_state": old_status.value, "to_state": new_state.status.value},
        )

    def _emit(self, event_type: FormEventType, payload: Optional[Dict[str, Any]] = None) -> None:
        event = FormEvent(
            event_id=f"evt_{uuid.uuid4().hex[:16]}",
            type=event_type,
            form_id=self.form_id,
            ts=datetime.now(timezone.utc),
            status=self._state.status,
            payload=payload,
        )
        self.events.emit(event)

    def _write_field(self, name: str, messages: List[str]) -> None:
        if self.field_registry is None:
            return
        try:
            self.field_registry.set_field_errors(name, messages)
        except Exception:
            logger.exception("Form %s: could not set errors on field %s", self.form_id, name)

    def _clear_field(self, name: str) -> None:
        if self.field_registry is None:
            return
        try:
            self.field_registry.clear_field_errors(name)
        except Exception:
            logger.exception("Form %s: could not clear errors on field %s", self.form_id, name)

    def _clear_invalidated_fields(self) -> None:
        for name in sorted(self._invalidated_fields):
            self._clear_field(name)
        self._invalidated_fields.clear()


__all__ = [
    "FormStateMachine",
    "InvalidStateTransitionError",
    "VALID_TRANSITIONS",
]
