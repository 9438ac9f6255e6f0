"""Structured logging for the MockServer launcher."""

import logging
import logging.handlers
from contextlib import AbstractContextManager
from pathlib import Path
from typing import Any

import structlog


def setup_structured_logging(
    log_file_path: Path | None = None,
    log_level: str = "WARNING",
    max_bytes: int = 5 * 1024 * 1024,  # 5MB
    backup_count: int = 3,
    console_output: bool = True,
) -> None:
    """
    Route launcher logs to the console and, optionally, a rotating JSON file.

    Filtering is done by the stdlib root logger, so `set_log_level` can
    lower the threshold later (the CLI does this for --verbose and --trace).
    """
    handlers: list[logging.Handler] = []

    if console_output:
        handlers.append(logging.StreamHandler())

    if log_file_path:
        log_file_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(
            logging.handlers.RotatingFileHandler(
                filename=log_file_path,
                maxBytes=max_bytes,
                backupCount=backup_count,
                encoding="utf-8",
            ),
        )

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            # mockserver_port / mockserver_version bound by mockserver_context
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.dev.set_exc_info,
            _get_renderer(log_file_path is not None),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    for handler in handlers:
        handler.setFormatter(logging.Formatter("%(message)s"))
        root_logger.addHandler(handler)

    set_log_level(log_level)


def set_log_level(log_level: str) -> None:
    logging.getLogger().setLevel(getattr(logging, log_level.upper()))


def log_level_for(verbose: bool, trace: bool, default: str = "WARNING") -> str:
    """
    Launcher log level matching MockServer's own: trace -> DEBUG,
    verbose -> INFO. Never raises the threshold above `default`.
    """
    default = default.upper()
    if trace:
        return "DEBUG"
    if verbose and getattr(logging, default) > logging.INFO:
        return "INFO"
    return default


def mockserver_context(port: int | None, version: str | None = None) -> AbstractContextManager[Any]:
    """Tag every log line emitted inside the block with the managed server."""
    context: dict[str, Any] = {"mockserver_port": port}
    if version is not None:
        context["mockserver_version"] = version
    return structlog.contextvars.bound_contextvars(**context)


def _get_renderer(use_json: bool) -> Any:
    if use_json:
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(colors=True)


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)
