"""
Process-wide logging setup.

Modules log through `logging.getLogger(__name__)` with `key=value` messages;
this only decides the level and format of the root handler.
"""

from __future__ import annotations

import logging

from . import settings

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(level: str | None = None) -> None:
    logging.basicConfig(
        level=(level or settings.log_level()),
        format=LOG_FORMAT,
    )
