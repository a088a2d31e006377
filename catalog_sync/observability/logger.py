"""
Structured JSON logging for catalog-sync

Every component logs through a named child of the "catalog-sync" logger so a
single setup call controls level and format for the whole pipeline. Extra
keyword fields passed to the helpers land as top-level JSON keys.
"""
import logging
import os
import sys
import time

from pythonjsonlogger import jsonlogger

ROOT_LOGGER_NAME = "catalog-sync"

LOG_LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}


class CatalogJsonFormatter(jsonlogger.JsonFormatter):
    """
    JSON formatter that stamps every line with timestamp, level, logger and call site
    """

    def add_fields(self, log_record: dict, record: logging.LogRecord, message_dict: dict) -> None:
        super().add_fields(log_record, record, message_dict)

        if not log_record.get("timestamp"):
            log_record["timestamp"] = self.formatTime(record, self.datefmt)

        level = log_record.get("level") or record.levelname
        log_record["level"] = level.upper()
        log_record["logger"] = record.name
        log_record["module"] = record.module
        log_record["function"] = record.funcName


def setup_logger(
    name: str = ROOT_LOGGER_NAME,
    level: str | None = None,
    format_type: str | None = None,
) -> logging.Logger:
    """
    Configure a logger with a single stdout handler

    Args:
        name: Logger name
        level: Log level (falls back to LOG_LEVEL, then INFO)
        format_type: "json" or "text" (falls back to LOG_FORMAT, then json)

    Returns:
        Configured logger instance
    """
    log_level_str = level or os.getenv("LOG_LEVEL", "INFO")
    log_level = LOG_LEVELS.get(log_level_str.upper(), logging.INFO)
    format_type = (format_type or os.getenv("LOG_FORMAT", "json")).lower()

    logger = logging.getLogger(name)
    logger.setLevel(log_level)
    logger.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(log_level)

    if format_type == "json":
        formatter = CatalogJsonFormatter(
            fmt="%(timestamp)s %(level)s %(logger)s %(module)s %(function)s %(message)s",
            datefmt="%Y-%m-%dT%H:%M:%S",
        )
    else:
        formatter = logging.Formatter(
            fmt="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

    handler.setFormatter(formatter)
    logger.addHandler(handler)
    logger.propagate = False

    return logger


def get_logger(name: str | None = None) -> logging.Logger:
    """
    Get a component logger

    Component loggers are children of the root catalog-sync logger, so they
    share its handler; the root is set up on first use.

    Args:
        name: Component name (e.g. "probe", "cache.publisher"), or None for the root

    Returns:
        Logger instance
    """
    root = logging.getLogger(ROOT_LOGGER_NAME)
    if not root.handlers:
        setup_logger(ROOT_LOGGER_NAME)

    if not name or name == ROOT_LOGGER_NAME:
        return root
    return root.getChild(name)


def info(message: str, **kwargs) -> None:
    """Log info message with extra fields"""
    get_logger().info(message, extra=kwargs)


def warning(message: str, **kwargs) -> None:
    """Log warning message with extra fields"""
    get_logger().warning(message, extra=kwargs)


def error(message: str, **kwargs) -> None:
    """Log error message with extra fields"""
    get_logger().error(message, extra=kwargs)


class log_operation:
    """
    Context manager that logs start, completion and failure of an operation

    Usage:
        with log_operation("catalog refresh", logger=logger, records=120) as op:
            ...
            op.add_fields(published_bytes=2048)

    Fields added with add_fields() appear on the completion line only.
    Exceptions are logged and re-raised.
    """

    def __init__(self, operation_name: str, logger: logging.Logger | None = None, **extra_fields):
        self.operation_name = operation_name
        self.logger = logger or get_logger()
        self.extra_fields = extra_fields
        self.result_fields: dict = {}
        self.start_time: float | None = None

    def add_fields(self, **fields) -> None:
        self.result_fields.update(fields)

    @property
    def elapsed_seconds(self) -> float:
        if self.start_time is None:
            return 0.0
        return time.perf_counter() - self.start_time

    def __enter__(self):
        self.start_time = time.perf_counter()
        self.logger.info(
            f"Starting: {self.operation_name}",
            extra={"operation": self.operation_name, **self.extra_fields},
        )
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        duration = round(self.elapsed_seconds, 3)

        if exc_type is None:
            self.logger.info(
                f"Completed: {self.operation_name}",
                extra={
                    "operation": self.operation_name,
                    "duration_seconds": duration,
                    "status": "success",
                    **self.extra_fields,
                    **self.result_fields,
                },
            )
        else:
            self.logger.error(
                f"Failed: {self.operation_name}",
                extra={
                    "operation": self.operation_name,
                    "duration_seconds": duration,
                    "status": "error",
                    "error_type": getattr(exc_val, "error_type", exc_type.__name__),
                    "error_message": str(exc_val),
                    **self.extra_fields,
                },
                exc_info=True,
            )
        return False
