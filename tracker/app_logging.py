"""Logging setup for the tracker service."""

import logging

from pythonjsonlogger.json import JsonFormatter

HANDLER_NAME = 'tracker'


def setup_logger(level: int = logging.INFO, json: bool = False) -> None:
    """Attach a stream handler to the root logger."""
    handler = logging.StreamHandler()
    if json:
        formatter: logging.Formatter = JsonFormatter(
            '%(asctime)s %(levelname)s %(name)s %(message)s',
            rename_fields={'levelname': 'level', 'asctime': 'timestamp'}
        )
    else:
        formatter = logging.Formatter(
            '%(asctime)s %(levelname)s %(name)s: %(message)s'
        )
    handler.setFormatter(formatter)
    handler.set_name(HANDLER_NAME)
    logger = logging.getLogger()
    # Repeated app creation (e.g. in tests) replaces the handler.
    for existing in list(logger.handlers):
        if existing.get_name() == HANDLER_NAME:
            logger.removeHandler(existing)
    logger.addHandler(handler)
    logger.setLevel(level)
