"""Telemetry for the engine, built on telelog.

Callers only use:

``configure(preset=...)`` -- pick a preset or adopt an explicit ``tl.Config``
``get_logger(name)`` -- cached logger per dotted module name
``record_event(name, data=...)`` -- one structured ``event::<name>`` line
``record_failure(name, exc)`` -- a handled error, logged as a warning
``span(name, component=..., metadata=...)`` -- profiled, tracked block

Environment (prefix ``MODAL_LIBRARY_``): ``LOGGER``, ``LOG_LEVEL``,
``LOG_FILE``, ``LOG_JSON``, ``DISABLE_CONSOLE``, ``NO_COLOR``,
``LOG_BUFFERED``, ``LOG_BUFFER_SIZE``.
"""

from __future__ import annotations

from contextlib import ExitStack, contextmanager
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, MutableMapping, Optional, Tuple, cast

import telelog  # type: ignore[import]

from .config import env_flag, env_int, env_value

tl = cast(Any, telelog)

PACKAGE_LOGGER = "modal_library"

# Option name -> value, applied as ``config.with_<name>(value)``.
_PRESETS: Dict[str, Dict[str, Any]] = {
    "development": {
        "min_level": "DEBUG",
        "console_output": True,
        "colored_output": True,
        "json_format": False,
    },
    "production": {
        "min_level": "INFO",
        "console_output": False,
        "buffering": True,
    },
    # full-screen hosts own the terminal
    "quiet": {
        "min_level": "WARNING",
        "console_output": False,
    },
}

_loggers: MutableMapping[str, Any] = {}
_active_config: Optional[Any] = None


def _as_text(value: Any) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, (dict, list, tuple, set, frozenset)):
        return repr(value)
    return str(value)


def _pairs(data: Dict[str, Any]) -> List[Tuple[str, str]]:
    return [(str(key), _as_text(value)) for key, value in data.items()]


def _environment_options() -> Dict[str, Any]:
    options: Dict[str, Any] = {
        "min_level": (env_value("LOG_LEVEL") or "INFO").upper(),
        "console_output": not env_flag("DISABLE_CONSOLE", False),
    }
    if options["console_output"]:
        options["colored_output"] = not env_flag("NO_COLOR", False)
    if env_flag("LOG_JSON", False):
        options["json_format"] = True
    log_file = env_value("LOG_FILE")
    if log_file:
        options["file_output"] = log_file
    if env_flag("LOG_BUFFERED", False):
        options["buffering"] = True
        options["buffer_size"] = env_int("LOG_BUFFER_SIZE", 2048)
    return options


def _preset_options(preset: str) -> Dict[str, Any]:
    options = _PRESETS.get(preset.lower())
    if options is None:
        raise ValueError(f"Unknown preset '{preset}'. Choose from: {', '.join(_PRESETS)}")
    options = dict(options)
    if preset.lower() == "production":
        options["file_output"] = env_value("LOG_FILE") or "modal_library.log"
    return options


def _build_config(options: Dict[str, Any]) -> Any:
    config = tl.Config()
    for name, value in options.items():
        getattr(config, f"with_{name}")(value)
    # spans rely on profiling
    config.with_profiling(True)
    return config


def configure(*, config: Optional[Any] = None, preset: Optional[str] = None) -> None:
    """Swap the active telelog configuration and drop cached loggers.

    ``preset`` is one of ``development``, ``production`` or ``quiet``; with
    neither argument the configuration is rebuilt from the environment.
    """

    global _active_config
    if config is not None and preset is not None:
        raise ValueError("Provide either `config` or `preset`, not both.")
    if preset is not None:
        config = _build_config(_preset_options(preset))
    elif config is None:
        config = _build_config(_environment_options())
    else:
        config.with_profiling(True)
    _active_config = config
    _loggers.clear()


def get_logger(name: Optional[str] = None) -> Any:
    logger_name = name or env_value("LOGGER") or PACKAGE_LOGGER
    logger = _loggers.get(logger_name)
    if logger is None:
        if _active_config is None:
            configure()
        logger = tl.Logger.with_config(logger_name, _active_config)
        _loggers[logger_name] = logger
    return logger


def _write(logger: Any, level: str, message: str, payload: Dict[str, Any]) -> None:
    name = level.lower()
    structured = getattr(logger, f"{name}_with", None)
    if structured is not None:
        structured(message, _pairs(payload))
        return
    plain = getattr(logger, name, None)
    if plain is None:
        raise ValueError(f"Unsupported log level '{level}'.")
    plain(f"{message} {payload}")


def record_event(
    name: str,
    *,
    level: str = "info",
    data: Optional[Dict[str, Any]] = None,
    logger_name: Optional[str] = None,
) -> None:
    _write(get_logger(logger_name), level, f"event::{name}", {"event": name, **(data or {})})


def record_failure(
    name: str,
    exc: BaseException,
    *,
    data: Optional[Dict[str, Any]] = None,
    logger_name: Optional[str] = None,
) -> None:
    """Log an exception the caller handled (a failed item in a batch, a
    clipboard that could not be reached) without re-raising it."""

    payload = {"event": name, "error": type(exc).__name__, "reason": str(exc), **(data or {})}
    _write(get_logger(logger_name), "warning", f"failure::{name}", payload)


@dataclass
class SpanHandle:
    """Collects metadata while a span is open; written out when it closes."""

    logger: Any
    span_name: str
    component_name: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    def add_metadata(self, key: str, value: Any) -> None:
        self.metadata[key] = _as_text(value)

    def _payload(self, extra: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"span": self.span_name, **self.metadata}
        if self.component_name:
            payload["component"] = self.component_name
        payload.update({key: _as_text(value) for key, value in (extra or {}).items()})
        return payload

    def done(self) -> None:
        _write(self.logger, "debug", "span::done", self._payload())

    def fail(self, reason: str) -> None:
        _write(self.logger, "error", "span::fail", self._payload({"reason": reason}))


@contextmanager
def span(
    name: str,
    *,
    logger_name: Optional[str] = None,
    component: Optional[str | bool] = None,
    metadata: Optional[Dict[str, Any]] = None,
) -> Iterator[SpanHandle]:
    """Profile a block and, with ``component``, track it as a telelog component.

    ``component=True`` uses ``name`` as the component; a string names it.
    ``metadata`` is attached as logger context while the block runs.
    """

    log = get_logger(logger_name)
    component_name = name if component is True else component or None
    context = {key: _as_text(value) for key, value in (metadata or {}).items()}
    handle = SpanHandle(
        logger=log,
        span_name=name,
        component_name=component_name if isinstance(component_name, str) else None,
        metadata=dict(context),
    )

    with ExitStack() as stack:
        for key, value in context.items():
            log.add_context(key, value)
            stack.callback(log.remove_context, key)
        if handle.component_name:
            stack.enter_context(log.track_component(handle.component_name))
        stack.enter_context(log.profile(name))
        try:
            yield handle
        except Exception as exc:
            handle.fail(str(exc))
            raise
        handle.done()


__all__ = [
    "PACKAGE_LOGGER",
    "SpanHandle",
    "configure",
    "get_logger",
    "record_event",
    "record_failure",
    "span",
]
