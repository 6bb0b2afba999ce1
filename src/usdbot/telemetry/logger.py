"""
Queue-backed logging pipeline.

Records are scrubbed of credentials and pushed onto a queue on the
calling thread; a listener thread does the console and file I/O, so
logging never stalls the event loop.
"""

import logging
import re
import sys
from collections.abc import Iterable
from datetime import datetime
from logging.handlers import QueueHandler, QueueListener
from pathlib import Path
from queue import Queue

from usdbot.config.constants import LOG_DATE_FORMAT, LOG_FORMAT, MAX_LOG_QUEUE_SIZE


REDACTED = "***"

# Signatures are 64 hex chars next to a "signature" key, in JSON or query form
_SIGNATURE_PATTERN = re.compile(r"""(["']?signature["']?\s*[:=]\s*["']?)[0-9a-fA-F]{64}""")

# Third-party loggers kept at WARNING
_QUIET_LOGGERS = ("aiohttp", "asyncio")


class MicrosecondFormatter(logging.Formatter):
    """Formatter whose timestamps end in six fractional digits."""

    def formatTime(self, record: logging.LogRecord, datefmt: str | None = None) -> str:
        created = datetime.fromtimestamp(record.created)
        return f"{created.strftime(datefmt or LOG_DATE_FORMAT)}.{created.microsecond:06d}"


class SecretRedactingFilter(logging.Filter):
    """
    Replaces credentials in log messages.

    The message is rendered once, scrubbed, and stored back on the
    record with its args cleared, so handlers downstream only ever see
    the redacted text.
    """

    def __init__(self, secrets: Iterable[str] = ()) -> None:
        super().__init__()
        self._secrets = tuple(s for s in secrets if s)

    def redact(self, text: str) -> str:
        """Scrub secrets and request signatures from `text`."""
        for secret in self._secrets:
            text = text.replace(secret, REDACTED)
        return _SIGNATURE_PATTERN.sub(rf"\g<1>{REDACTED}", text)

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        redacted = self.redact(message)
        if redacted != message:
            record.msg = redacted
            record.args = None
        return True


class AsyncLogger:
    """
    Owns the queue, the listener thread and the sinks behind one logger.

    Use `start()`/`stop()` or the context manager form.
    """

    def __init__(
        self,
        name: str,
        level: int = logging.INFO,
        log_file: Path | None = None,
        secrets: Iterable[str] = (),
    ) -> None:
        """
        Args:
            name: Logger the pipeline is attached to.
            level: Console level; the file sink always takes DEBUG.
            log_file: Optional file sink.
            secrets: Values that must never reach a sink.
        """
        self._logger = logging.getLogger(name)
        self._level = level
        self._log_file = log_file
        self._redactor = SecretRedactingFilter(secrets)
        self._records: Queue[logging.LogRecord] = Queue(maxsize=MAX_LOG_QUEUE_SIZE)
        self._queue_handler: QueueHandler | None = None
        self._listener: QueueListener | None = None

    def _sinks(self) -> list[logging.Handler]:
        formatter = MicrosecondFormatter(LOG_FORMAT, LOG_DATE_FORMAT)

        console = logging.StreamHandler(sys.stdout)
        console.setLevel(self._level)
        sinks: list[logging.Handler] = [console]

        if self._log_file:
            self._log_file.parent.mkdir(parents=True, exist_ok=True)
            to_file = logging.FileHandler(self._log_file)
            to_file.setLevel(logging.DEBUG)
            sinks.append(to_file)

        for sink in sinks:
            sink.setFormatter(formatter)
        return sinks

    def start(self) -> None:
        """Attach the queue handler and start the listener thread."""
        # Redaction runs before the record is queued
        self._queue_handler = QueueHandler(self._records)
        self._queue_handler.addFilter(self._redactor)
        self._logger.addHandler(self._queue_handler)
        self._logger.setLevel(logging.DEBUG if self._log_file else self._level)

        self._listener = QueueListener(self._records, *self._sinks(), respect_handler_level=True)
        self._listener.start()

    def stop(self) -> None:
        """Flush pending records and detach."""
        if self._listener:
            self._listener.stop()
            self._listener = None
        if self._queue_handler:
            self._logger.removeHandler(self._queue_handler)
            self._queue_handler = None

    @property
    def logger(self) -> logging.Logger:
        return self._logger

    @property
    def redactor(self) -> SecretRedactingFilter:
        return self._redactor

    def __enter__(self) -> "AsyncLogger":
        self.start()
        return self

    def __exit__(self, *args: object) -> None:
        self.stop()


def setup_logging(
    level: str = "INFO",
    log_file: Path | None = None,
    secrets: Iterable[str] = (),
) -> AsyncLogger:
    """
    Route the `usdbot` logger hierarchy through a started AsyncLogger.

    Args:
        level: DEBUG, INFO, WARNING or ERROR.
        log_file: Optional file that receives a DEBUG copy of the log.
        secrets: API key and secret to scrub from every record.

    Returns:
        The running pipeline; call `stop()` on shutdown.
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)

    root = logging.getLogger()
    root.setLevel(numeric_level)
    for handler in list(root.handlers):
        root.removeHandler(handler)

    pipeline = AsyncLogger("usdbot", level=numeric_level, log_file=log_file, secrets=secrets)
    pipeline.start()

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    return pipeline
