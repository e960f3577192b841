"""Logging bootstrap with optional structured output."""

from __future__ import annotations

import logging

import structlog

from signalbus.config import BusSettings

PACKAGE_LOGGER = "signalbus"


def _package_only(record: logging.LogRecord) -> bool:
    return record.name.startswith(PACKAGE_LOGGER)


def build_formatter(structured: bool) -> logging.Formatter:
    if not structured:
        return logging.Formatter("%(asctime)s %(levelname)s %(name)s %(message)s")

    return structlog.stdlib.ProcessorFormatter(
        processor=structlog.processors.JSONRenderer(
            ensure_ascii=False, separators=(",", ":")
        ),
        foreign_pre_chain=[
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
        ],
    )


def configure_logging(settings: BusSettings | None = None) -> logging.Handler:
    """Attach a stderr handler for signalbus loggers and return it.

    Calling again replaces the handler installed by the previous call.
    """
    settings = settings or BusSettings.from_env()
    level = getattr(logging, settings.log_level, logging.INFO)

    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.setLevel(level)
    for existing in list(logger.handlers):
        if getattr(existing, "_signalbus_handler", False):
            logger.removeHandler(existing)

    handler = logging.StreamHandler()
    handler.setLevel(level)
    handler.setFormatter(build_formatter(settings.structured_logs))
    handler.addFilter(_package_only)
    handler._signalbus_handler = True  # type: ignore[attr-defined]
    logger.addHandler(handler)
    return handler
