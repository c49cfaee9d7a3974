"""Component-prefixed loggers with bound context fields.

Every agent module logs through ``get_module_logger("<Component>")``. A
message rendered by such a logger looks like::

    [Bridge] unable to subscribe to set topic | outputName='eDP-1'

``bind(**fields)`` returns a child carrying extra ``key=value`` context, so
per-output loggers do not need to repeat the output name in every message.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Mapping, Optional, Union

AGENT_LOGGER_NAMESPACE = "display_agent"
DEFAULT_COMPONENT = "Agent"


def _qualified_name(name: Optional[str]) -> str:
    if not name or name == AGENT_LOGGER_NAMESPACE:
        return AGENT_LOGGER_NAMESPACE
    if name.startswith(AGENT_LOGGER_NAMESPACE + "."):
        return name
    return f"{AGENT_LOGGER_NAMESPACE}.{name}"


def _component_of(logger_name: str) -> str:
    """Last dotted segment below the agent namespace, e.g. ``Bridge``."""
    if logger_name == AGENT_LOGGER_NAMESPACE:
        return DEFAULT_COMPONENT
    return logger_name.rsplit(".", 1)[-1] or DEFAULT_COMPONENT


class StructuredLogger:
    """Thin wrapper around ``logging.Logger``.

    Only the emit methods are wrapped; handlers, levels and propagation stay
    on the underlying logger.
    """

    __slots__ = ("_logger", "_component", "_fields")

    def __init__(
        self,
        logger: logging.Logger,
        component: Optional[str] = None,
        fields: Optional[Mapping[str, Any]] = None,
    ) -> None:
        self._logger = logger
        self._component = component or _component_of(logger.name)
        self._fields: Dict[str, Any] = dict(fields or {})

    @property
    def name(self) -> str:
        return self._logger.name

    @property
    def component(self) -> str:
        return self._component

    @property
    def fields(self) -> Dict[str, Any]:
        return dict(self._fields)

    @property
    def logger(self) -> logging.Logger:
        return self._logger

    def bind(self, **fields: Any) -> "StructuredLogger":
        return StructuredLogger(self._logger, self._component, {**self._fields, **fields})

    def isEnabledFor(self, level: int) -> bool:
        return self._logger.isEnabledFor(level)

    def _render(self, message: object, args: tuple) -> str:
        text = str(message)
        if args:
            try:
                text = text % args
            except (TypeError, ValueError):
                # keep the record instead of raising from a log call
                text = f"{text} | args={' '.join(map(str, args))}"
        text = f"[{self._component}] {text}"
        if self._fields:
            context = " ".join(f"{key}={value!r}" for key, value in self._fields.items())
            text = f"{text} | {context}"
        return text

    def _emit(self, level: int, message: object, args: tuple, kwargs: Dict[str, Any]) -> None:
        if not self._logger.isEnabledFor(level):
            return
        # point %(funcName)s and friends at our caller, not this wrapper
        kwargs.setdefault("stacklevel", 3)
        self._logger.log(level, self._render(message, args), **kwargs)

    def log(self, level: int, message: object, *args, **kwargs) -> None:
        self._emit(level, message, args, kwargs)

    def debug(self, message: object, *args, **kwargs) -> None:
        self._emit(logging.DEBUG, message, args, kwargs)

    def info(self, message: object, *args, **kwargs) -> None:
        self._emit(logging.INFO, message, args, kwargs)

    def warning(self, message: object, *args, **kwargs) -> None:
        self._emit(logging.WARNING, message, args, kwargs)

    def error(self, message: object, *args, **kwargs) -> None:
        self._emit(logging.ERROR, message, args, kwargs)

    def exception(self, message: object, *args, **kwargs) -> None:
        kwargs.setdefault("exc_info", True)
        self._emit(logging.ERROR, message, args, kwargs)

    def critical(self, message: object, *args, **kwargs) -> None:
        self._emit(logging.CRITICAL, message, args, kwargs)

    def __repr__(self) -> str:
        return f"StructuredLogger({self._logger.name!r}, fields={self._fields!r})"


LoggerLike = Union[StructuredLogger, logging.Logger, None]


def ensure_structured_logger(logger: LoggerLike, *, fallback_name: Optional[str] = None) -> StructuredLogger:
    """Accept whatever logger a caller passed and return a StructuredLogger."""
    if isinstance(logger, StructuredLogger):
        return logger
    if isinstance(logger, logging.Logger):
        return StructuredLogger(logger)
    return get_module_logger(fallback_name)


def get_module_logger(name: Optional[str] = None) -> StructuredLogger:
    """Return the structured logger for ``display_agent.<name>``."""
    return StructuredLogger(logging.getLogger(_qualified_name(name)))


__all__ = [
    "AGENT_LOGGER_NAMESPACE",
    "LoggerLike",
    "StructuredLogger",
    "ensure_structured_logger",
    "get_module_logger",
]
