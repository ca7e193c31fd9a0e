"""Field registry contract.

The state machine owns no field widgets. It writes per-field validation
messages through a FieldRegistry, which whatever UI layer hosts the form
implements on top of its own field objects.
"""

from typing import Dict, List, Optional, Sequence, Tuple

from typing_extensions import Protocol, runtime_checkable


@runtime_checkable
class FieldRegistry(Protocol):
    """Anything that can show and clear error messages per field name."""

    def set_field_errors(self, name: str, messages: Sequence[str]) -> None:
        ...

    def clear_field_errors(self, name: str) -> None:
        ...


class InMemoryFieldRegistry:
    """FieldRegistry backed by a plain dict.

    Useful for headless hosts (CLIs, servers rendering templates) and tests.
    Every write is also appended to ``history`` in call order.

    Examples:
        >>> registry = InMemoryFieldRegistry()
        >>> registry.set_field_errors("email", ["invalid"])
        >>> registry.error_text("email")
        'invalid'
        >>> registry.clear_field_errors("email")
        >>> registry.has_errors
        False
    """

    def __init__(self) -> None:
        self.errors: Dict[str, List[str]] = {}
        self.history: List[Tuple[str, str, Tuple[str, ...]]] = []

    def set_field_errors(self, name: str, messages: Sequence[str]) -> None:
        self.errors[name] = list(messages)
        self.history.append(("set", name, tuple(messages)))

    def clear_field_errors(self, name: str) -> None:
        self.errors.pop(name, None)
        self.history.append(("clear", name, ()))

    def error_text(self, name: str) -> Optional[str]:
        """First message shown for ``name``, as a single-line field would."""
        messages = self.errors.get(name)
        return messages[0] if messages else None

    @property
    def has_errors(self) -> bool:
        return bool(self.errors)

    def clear_all(self) -> None:
        for name in list(self.errors):
            self.clear_field_errors(name)


__all__ = [
    "FieldRegistry",
    "InMemoryFieldRegistry",
]
