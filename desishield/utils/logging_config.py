"""
Structured logging configuration for DesiShield.

Development runs get a readable single-line format; production runs emit
JSON lines that can be shipped to any log aggregation service.
"""

import json
import logging
import sys
import time
import traceback
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from desishield.config import settings


class JSONFormatter(logging.Formatter):
    """JSON log formatter for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        if hasattr(record, "extra_data"):
            log_data["data"] = record.extra_data

        if record.exc_info:
            log_data["exception"] = {
                "type": record.exc_info[0].__name__ if record.exc_info[0] else None,
                "message": str(record.exc_info[1]) if record.exc_info[1] else None,
                "traceback": traceback.format_exception(*record.exc_info),
            }

        log_data["environment"] = settings.environment

        return json.dumps(log_data, ensure_ascii=False)


class StructuredLogger:
    """
    Wrapper for structured logging with additional context.

    Usage:
        logger = StructuredLogger("desishield.analysis")
        logger.info("Analysis completed", label="Phishing", score=92)
        logger.error("Analysis failed", error=str(e), exc_info=True)
    """

    def __init__(self, name: str):
        self._logger = logging.getLogger(name)

    def _log(self, level: int, message: str, **kwargs):
        if not self._logger.isEnabledFor(level):
            return
        record = self._logger.makeRecord(
            name=self._logger.name,
            level=level,
            fn="",
            lno=0,
            msg=message,
            args=(),
            exc_info=None,
        )
        if kwargs:
            record.extra_data = kwargs
        self._logger.handle(record)

    def debug(self, message: str, **kwargs):
        self._log(logging.DEBUG, message, **kwargs)

    def info(self, message: str, **kwargs):
        self._log(logging.INFO, message, **kwargs)

    def warning(self, message: str, **kwargs):
        self._log(logging.WARNING, message, **kwargs)

    def error(self, message: str, exc_info: bool = False, **kwargs):
        if exc_info:
            self._logger.error(message, exc_info=True, extra={"extra_data": kwargs})
        else:
            self._log(logging.ERROR, message, **kwargs)


def setup_logging(
    level: str = "INFO",
    json_format: bool = True,
    log_file: Optional[str] = None,
):
    """
    Configure logging for the application.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_format: Use JSON formatting (True for prod, False for dev)
        log_file: Optional file path for file logging
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper()))

    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(getattr(logging, level.upper()))

    if json_format:
        console_handler.setFormatter(JSONFormatter())
    else:
        formatter = logging.Formatter(
            "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
        )
        console_handler.setFormatter(formatter)

    root_logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(getattr(logging, level.upper()))
        file_handler.setFormatter(JSONFormatter())  # Always JSON for files
        root_logger.addHandler(file_handler)

    # Suppress noisy loggers
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("openai").setLevel(logging.WARNING)


# ============== METRICS ==============


class MetricsCollector:
    """
    Collects in-process counters and timings for the current session.

    Usage:
        metrics = MetricsCollector()
        metrics.increment("analysis.total")
        metrics.timing("analysis.latency", 0.125)
    """

    def __init__(self):
        self._counters: Dict[str, int] = {}
        self._timings: Dict[str, list] = {}
        self._start_time = time.time()

    def increment(self, name: str, value: int = 1):
        """Increment a counter."""
        self._counters[name] = self._counters.get(name, 0) + value

    def timing(self, name: str, value: float):
        """Record a timing value."""
        if name not in self._timings:
            self._timings[name] = []
        self._timings[name].append(value)
        # Keep only last 1000 values
        if len(self._timings[name]) > 1000:
            self._timings[name] = self._timings[name][-1000:]

    def counter(self, name: str) -> int:
        return self._counters.get(name, 0)

    def get_stats(self) -> Dict[str, Any]:
        """Get current metrics."""
        timing_stats = {}
        for name, values in self._timings.items():
            if values:
                sorted_vals = sorted(values)
                timing_stats[name] = {
                    "count": len(values),
                    "min": min(values),
                    "max": max(values),
                    "avg": sum(values) / len(values),
                    "p50": sorted_vals[len(sorted_vals) // 2],
                }

        return {
            "uptime_seconds": time.time() - self._start_time,
            "counters": self._counters.copy(),
            "timings": timing_stats,
        }

    def reset(self):
        """Reset all metrics."""
        self._counters.clear()
        self._timings.clear()


# Global metrics instance
metrics = MetricsCollector()


def init_logging():
    """Initialize logging based on environment settings."""
    is_prod = settings.is_production
    default_level = "INFO" if is_prod else "DEBUG"
    setup_logging(
        level=settings.log_level or default_level,
        json_format=is_prod,
        log_file=settings.log_file,
    )
