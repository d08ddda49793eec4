"""JSON file implementation of the credential store port."""
from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, List

from locktrace.ports.output.trace_repository import CredentialStore

logger = logging.getLogger(__name__)


class JsonCredentialStore(CredentialStore):
  """Reads a list of cookie objects (`name`, `value`, `domain`, ...)."""

  def load_credentials(self, path: str) -> List[Dict[str, Any]]:
    store_path = Path(path)
    if not store_path.is_file():
      logger.warning('Credential store not found: %s', path)
      return []
    try:
      data = json.loads(store_path.read_text(encoding='utf-8'))
    except (OSError, ValueError) as exc:
      logger.warning('Credential store is unreadable: %s (%s)', path, exc)
      return []

    if isinstance(data, dict):
      data = data.get('cookies', [])
    if not isinstance(data, list):
      logger.warning('Credential store has no cookie list: %s', path)
      return []
    return [item for item in data if isinstance(item, dict) and item.get('name')]
