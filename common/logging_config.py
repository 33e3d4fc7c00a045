import logging
import os
import re
import sys
from typing import Optional


class PayloadTruncationFilter(logging.Filter):
    """Filter to shorten base64 payload runs in log records."""

    MAX_RUN = 64
    PATTERN = re.compile(r'[A-Za-z0-9+/]{%d,}={0,2}' % (MAX_RUN + 1))

    def filter(self, record: logging.LogRecord) -> bool:
        """Truncate long base64 runs in the log message."""
        if isinstance(record.msg, str):
            record.msg = self._truncate(record.msg)

        if hasattr(record, 'args') and record.args:
            if isinstance(record.args, dict):
                record.args = {k: self._truncate_value(v) for k, v in record.args.items()}
            elif isinstance(record.args, tuple):
                record.args = tuple(self._truncate_value(arg) for arg in record.args)

        return True

    def _truncate(self, text: str) -> str:
        return self.PATTERN.sub(
            lambda m: f"{m.group(0)[:self.MAX_RUN]}...({len(m.group(0))} chars)", text
        )

    def _truncate_value(self, value):
        """Truncate base64 runs in string arguments."""
        if isinstance(value, str):
            return self._truncate(value)
        return value


def setup_logging(
    component_name: str,
    log_level: Optional[str] = None
) -> logging.Logger:
    """
    Set up logging configuration for a component.

    Args:
        component_name: Name of the component (e.g., 'reassembly')
        log_level: Log level (DEBUG, INFO, WARNING, ERROR). Defaults to LOG_LEVEL env var or INFO

    Returns:
        Configured logger instance
    """
    if log_level is None:
        log_level = os.getenv('LOG_LEVEL', 'INFO').upper()

    level = getattr(logging, log_level, logging.INFO)

    logger = logging.getLogger(component_name)
    logger.setLevel(level)

    if logger.handlers:
        return logger

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    ))
    handler.addFilter(PayloadTruncationFilter())

    logger.addHandler(handler)
    logger.propagate = False

    return logger


class InvocationLoggerAdapter(logging.LoggerAdapter):
    """
    Tags every message with the request id of the invocation that logged it.

    Handler formatters stay untouched, so concurrent invocations sharing one
    logger never see each other's ids.
    """

    def process(self, msg, kwargs):
        request_id = self.extra.get('request_id') if self.extra else None
        if request_id:
            return f"{msg} [request_id={request_id}]", kwargs
        return msg, kwargs


def get_invocation_logger(
    logger: logging.Logger,
    request_id: Optional[str] = None
) -> logging.LoggerAdapter:
    """
    Wrap a logger for one invocation.

    Args:
        logger: Component logger
        request_id: Optional request id for tracing

    Returns:
        Logger adapter appending the request id
    """
    return InvocationLoggerAdapter(logger, {'request_id': request_id})
