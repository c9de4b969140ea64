"""
Terminal width discovery.

Order of precedence
1. the COLUMNS environment variable, when it holds a positive integer;
2. the platform query performed by rich's Console;
3. 80 columns.
"""
import logging
import os

from rich.console import Console

logger = logging.getLogger(__name__)

DEFAULT_COLUMNS = 80


def columns():
    try:
        if (width := int(os.environ["COLUMNS"])) > 0:
            return width
    except (KeyError, ValueError):
        pass

    try:
        return Console().width or DEFAULT_COLUMNS
    except OSError:
        logger.debug("terminal size unavailable, falling back to %d columns", DEFAULT_COLUMNS)
        return DEFAULT_COLUMNS


__all__ = (
    "columns",
    "DEFAULT_COLUMNS",
)
