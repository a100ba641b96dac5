import logging
import sys
from typing import Optional, TextIO

DEFAULT_FORMAT = '%(asctime)s - %(levelname)s - %(name)s - %(message)s'


def _install_root_handler(handler: logging.Handler, level: Optional[int], fmt: Optional[str]) -> None:
    """Make handler the only root handler"""
    root = logging.getLogger()
    for old in list(root.handlers):
        root.removeHandler(old)
        old.close()

    handler.setFormatter(logging.Formatter(fmt or DEFAULT_FORMAT))
    root.addHandler(handler)
    if level is not None:
        root.setLevel(level)


def setup_logging(level: int = logging.INFO, fmt: Optional[str] = None,
                  stream: Optional[TextIO] = None) -> None:
    """Send log records to stderr (or stream) unless logging is already configured"""
    if logging.getLogger().handlers:
        return
    _install_root_handler(logging.StreamHandler(stream or sys.stderr), level, fmt)


def route_logging_to_file(path: str, level: Optional[int] = None, fmt: Optional[str] = None) -> None:
    """Replace the root handlers with a single file handler.

    The interactive screen owns the terminal, so anything written to
    stderr while it is up would corrupt the display.

    Args:
        path: Log file to append to
        level: Root level to set (unchanged if None)
        fmt: Log format (defaults to DEFAULT_FORMAT)
    """
    _install_root_handler(logging.FileHandler(path, encoding="utf-8"), level, fmt)


def get_logger(name: Optional[str] = None) -> logging.Logger:
    return logging.getLogger(name or "ami_cleanup")


def log_exception(logger: logging.Logger, message: str = "An error occurred", exc_info: Exception = None) -> None:
    """Log message at error level with the exception type and traceback attached.

    Args:
        logger: Logger instance to use
        message: Custom error message
        exc_info: Exception instance (if None, uses current exception context)
    """
    if exc_info is not None:
        message = f"{message}: {type(exc_info).__name__}: {exc_info}"
    logger.error(message, exc_info=exc_info if exc_info is not None else True)
