import logging
import sys
from typing import Optional, Union

from ._config import get_config

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(level: Optional[Union[int, str]] = None) -> None:
    """
    Configure the root logger for scripts using rankbn.

    Sets the level (default: the configured `log_level`), uses the format
    "timestamp - logger name - level - message", and attaches a StreamHandler
    that writes to stdout. Library modules never call this themselves.
    """
    if level is None:
        level = get_config().log_level
    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        handlers=[logging.StreamHandler(sys.stdout)],
    )
