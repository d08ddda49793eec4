"""Output ports for reading the captured trace and the credential store."""
from __future__ import annotations

from typing import Any, Dict, List, Protocol


class TraceRepository(Protocol):
  def load_entries(self, path: str) -> List[Dict[str, Any]]:
    """Return the raw capture entries.

    Raises:
      ValidationError: If the file is missing, unreadable or not a trace
    """
    ...


class CredentialStore(Protocol):
  def load_credentials(self, path: str) -> List[Dict[str, Any]]:
    """Return stored cookies; an empty list when nothing usable is found."""
    ...
