"""Configuration for jetform.

Everything a form needs (message table, transport adapters, error
behaviour) is carried by an explicit FormConfig value handed to each
FormStateMachine. There is no global handler instance or ambient locale.
"""

import logging
import os
from dataclasses import dataclass, field
from typing import Mapping, Optional, Tuple

from jetform.adapters import DEFAULT_ADAPTERS
from jetform.classifier import ErrorClassifier
from jetform.descriptor import Adapter
from jetform.messages import MessageTable

LOGGER_NAME = "jetform"
DEFAULT_LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

TRUE_VALUES = ("1", "true", "yes", "on")


@dataclass(frozen=True)
class FormConfig:
    """Settings shared by the forms of an application.

    Attributes:
        messages: User-facing messages for classified errors
        adapters: Transport adapters used by the default classifier
        raise_on_error: Make ``submit`` raise FormSubmissionError on failure
        log_level: Level applied by ``apply_logging``
    """
    messages: MessageTable = field(default_factory=MessageTable)
    adapters: Tuple[Adapter, ...] = DEFAULT_ADAPTERS
    raise_on_error: bool = False
    log_level: str = "WARNING"

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "FormConfig":
        """Build a config from ``JETFORM_*`` environment variables.

        Recognized variables:
            JETFORM_LOG_LEVEL: logging level name (default WARNING)
            JETFORM_RAISE_ON_ERROR: "1"/"true"/"yes"/"on" to raise on failure
        """
        env = os.environ if environ is None else environ
        return cls(
            raise_on_error=env.get("JETFORM_RAISE_ON_ERROR", "false").strip().lower() in TRUE_VALUES,
            log_level=env.get("JETFORM_LOG_LEVEL", "WARNING").strip().upper(),
        )

    def build_classifier(self) -> ErrorClassifier:
        return ErrorClassifier(messages=self.messages, adapters=self.adapters)

    def apply_logging(self) -> logging.Logger:
        """Configure the ``jetform`` logger at ``log_level``."""
        return configure_logging(self.log_level)


def configure_logging(level: str = "WARNING", fmt: str = DEFAULT_LOG_FORMAT) -> logging.Logger:
    """Attach a stream handler to the ``jetform`` logger.

    Safe to call more than once; only one console handler is installed.
    File handlers and other StreamHandler subclasses do not count.
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)
    if not any(type(h) is logging.StreamHandler for h in logger.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(fmt))
        logger.addHandler(handler)
    return logger


__all__ = [
    "FormConfig",
    "configure_logging",
    "LOGGER_NAME",
]
