"""Output port for persisting synthesized artifacts and reports."""
from __future__ import annotations

from typing import Protocol


class ArtifactStore(Protocol):
  def write_text(self, path: str, content: str) -> str:
    """Write `content` and return the resolved location.

    Raises:
      ArtifactWriteError: If the content cannot be persisted
    """
    ...
