import contextlib
import logging
import logging.handlers
import multiprocessing as mp
import time
from typing import Iterator, Optional

_LOGGER_NAME = "mandelview"

def get_logger(component: Optional[str] = None) -> logging.Logger:
    if component:
        return logging.getLogger(f"{_LOGGER_NAME}.{component}")
    return logging.getLogger(_LOGGER_NAME)

def _build_formatter() -> logging.Formatter:
    return logging.Formatter(
        fmt="%(asctime)s.%(msecs)03dZ %(processName)s %(levelname)s %(name)s - %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
    )

def configure_logging(
    *,
    level: int = logging.INFO,
    console: bool = True,
    log_file: Optional[str] = None,
    rotate_bytes: int = 2 * 1024 * 1024,
    rotate_count: int = 3,
) -> logging.Logger:
    """Attach console and rotating-file handlers to the package logger.

    Child loggers (``mandelview.field``, ``mandelview.surface`` ...) propagate
    up to it, so configuring once covers the whole package.
    """
    logger = get_logger()
    logger.setLevel(level)
    logger.propagate = False
    for h in list(logger.handlers):
        logger.removeHandler(h)
        h.close()
    fmt = _build_formatter()
    if console:
        ch = logging.StreamHandler()
        ch.setLevel(level)
        ch.setFormatter(fmt)
        logger.addHandler(ch)
    if log_file:
        fh = logging.handlers.RotatingFileHandler(
            log_file, maxBytes=rotate_bytes, backupCount=rotate_count, encoding="utf-8"
        )
        fh.setLevel(level)
        fh.setFormatter(fmt)
        logger.addHandler(fh)
    return logger

@contextlib.contextmanager
def queue_logging(listener_logger: Optional[logging.Logger] = None) -> Iterator[mp.Queue]:
    """Yield a queue that band workers log into; the parent's handlers drain it."""
    listener_logger = listener_logger or get_logger()
    queue: mp.Queue = mp.Queue(-1)
    listener = logging.handlers.QueueListener(queue, *listener_logger.handlers, respect_handler_level=True)
    listener.start()
    try:
        yield queue
    finally:
        listener.stop()
        queue.close()

def worker_initialiser(queue: Optional[mp.Queue], level: int) -> None:
    # runs inside a pool worker; with no queue the worker keeps default logging
    if queue is None:
        return
    logger = get_logger()
    logger.setLevel(level)
    logger.propagate = False
    for h in list(logger.handlers):
        logger.removeHandler(h)
    qh = logging.handlers.QueueHandler(queue)
    qh.setLevel(level)
    logger.addHandler(qh)

@contextlib.contextmanager
def busy(logger: logging.Logger, what: str) -> Iterator[None]:
    logger.info("Calculating %s ...", what)
    start = time.perf_counter()
    yield
    logger.info("Done %s in %.2fs", what, time.perf_counter() - start)
