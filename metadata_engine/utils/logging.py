"""Non-blocking queue-based logging setup."""

import atexit
import logging
import logging.handlers
import queue
import sys

from metadata_engine.config import DEFAULT_LOG_FILE

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def setup_logging(
    level: str = "INFO", log_file: str | None = DEFAULT_LOG_FILE
) -> logging.handlers.QueueListener:
    """Configure non-blocking logging using a queue.

    Extractors shell out to external tools while holding a request, so log
    I/O is moved to a listener thread instead of the calling thread.

    Args:
        level: Root log level name (DEBUG, INFO, WARNING, ERROR)
        log_file: Log file path, or None to skip file logging

    Returns the QueueListener so it can be stopped on shutdown.
    """
    is_interactive = sys.stderr.isatty()

    log_queue: queue.Queue[logging.LogRecord] = queue.Queue(-1)  # Unlimited size
    queue_handler = logging.handlers.QueueHandler(log_queue)

    log_formatter = logging.Formatter(LOG_FORMAT)
    handlers: list[logging.Handler] = []

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(log_formatter)
        handlers.append(file_handler)

    # Without a file there is nowhere else to write, so always keep stderr
    if is_interactive or not handlers:
        stream_handler = logging.StreamHandler()
        stream_handler.setFormatter(log_formatter)
        handlers.append(stream_handler)

    # QueueListener handles the actual I/O in a separate thread
    queue_listener = logging.handlers.QueueListener(
        log_queue, *handlers, respect_handler_level=True
    )
    queue_listener.start()

    atexit.register(queue_listener.stop)

    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        handlers=[queue_handler],
        force=True,
    )

    return queue_listener
