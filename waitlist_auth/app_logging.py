"""Process-wide JSON log formatting."""

import logging
from typing import Union

from pythonjsonlogger import jsonlogger


def setup_logger(level: Union[int, str] = logging.INFO) -> None:
    """Send records from every logger to stderr as JSON."""
    log_handler = logging.StreamHandler()
    formatter = jsonlogger.JsonFormatter(
        '%(asctime)s %(levelname)s %(name)s %(message)s',
        rename_fields={'levelname': 'level', 'asctime': 'timestamp'}
    )
    log_handler.setFormatter(formatter)
    logger = logging.getLogger()
    if not any(isinstance(h.formatter, jsonlogger.JsonFormatter)
               for h in logger.handlers):
        logger.addHandler(log_handler)
    logger.setLevel(level)
