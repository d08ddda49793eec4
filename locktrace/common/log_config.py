"""Logging setup shared by the entrypoints."""
from __future__ import annotations

import logging
import sys

LOG_FORMAT = '%(asctime)s %(levelname)s [%(name)s] %(message)s'


def configure_logging(level: str = 'INFO') -> None:
  """Attach a single stderr handler to the `locktrace` logger."""
  logger = logging.getLogger('locktrace')
  logger.setLevel(getattr(logging, level.upper(), logging.INFO))
  if not any(getattr(handler, '_locktrace', False) for handler in logger.handlers):
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handler._locktrace = True  # type: ignore[attr-defined]
    logger.addHandler(handler)
