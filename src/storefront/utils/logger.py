import logging
import os

from rich.logging import RichHandler

_ROOT = "storefront"


class CenteredFormatter(logging.Formatter):
    """Centres the short logger name so columns line up across modules."""

    longest_name_length = 10

    def __init__(self, fmt=None, datefmt=None, style="%", initial_width=10):
        super().__init__(fmt, datefmt, style)
        CenteredFormatter.longest_name_length = initial_width

    def format(self, record):
        short = record.name.rsplit(".", 1)[-1]
        CenteredFormatter.longest_name_length = max(
            CenteredFormatter.longest_name_length, len(short)
        )
        record.short_name = short.center(CenteredFormatter.longest_name_length)
        return super().format(record)


def _level() -> int:
    if os.getenv("DEBUG"):
        return logging.DEBUG
    name = os.getenv("STOREFRONT_LOG_LEVEL", "INFO").upper()
    return getattr(logging, name, logging.INFO)


def get_logger(name=None) -> logging.Logger:
    """
    Return a logger under the ``storefront`` namespace, rendered by rich.

    Handlers are attached once per logger name; repeated calls return the
    same configured instance.
    """
    if name is None:
        name = _ROOT
    elif not name.startswith(_ROOT):
        name = f"{_ROOT}.{name}"
    logger = logging.getLogger(name)
    log_level = _level()
    logger.setLevel(log_level)

    if not logger.handlers:
        handler = RichHandler(
            show_time=True,
            show_level=True,
            show_path=False,
            rich_tracebacks=True,
            log_time_format="[%X]",
        )
        handler.setFormatter(CenteredFormatter("[%(short_name)s]  %(message)s"))
        handler.setLevel(log_level)
        logger.addHandler(handler)

        logger.propagate = False
        logger.debug(f"Logger for '{name}' initialized with RichHandler.")

    return logger
