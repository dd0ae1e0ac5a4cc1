#!/usr/bin/env python3
"""
Phlesk Logging
Console logging setup with the current extension id attached to every record
"""

import logging
from typing import Optional, Union

from rich.console import Console
from rich.logging import RichHandler

LOGGER_NAME = "phlesk"


class ModuleIdFilter(logging.Filter):
    """Attach the extension id a record was emitted for"""

    def __init__(self, module_id: Optional[str] = None):
        super().__init__()
        self.module_id = module_id

    def filter(self, record: logging.LogRecord) -> bool:
        record.module_id = self.module_id or LOGGER_NAME
        return True


def setup_logging(level: Union[int, str] = "INFO",
                  module_id: Optional[str] = None,
                  console: Optional[Console] = None) -> logging.Logger:
    """
    Configure the phlesk logger hierarchy

    Args:
        level: Log level name or number
        module_id: Extension id prepended to messages (None = "phlesk")
        console: Rich console to write to (default: stderr)

    Returns:
        The configured package logger
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)

    # Replace the handler from an earlier call instead of stacking them
    for handler in list(logger.handlers):
        if isinstance(handler, RichHandler):
            logger.removeHandler(handler)

    handler = RichHandler(
        console=console or Console(stderr=True),
        show_path=False,
        markup=False,
    )
    handler.setFormatter(logging.Formatter("[%(module_id)s] %(message)s", datefmt="[%X]"))
    handler.addFilter(ModuleIdFilter(module_id))
    logger.addHandler(handler)

    return logger
