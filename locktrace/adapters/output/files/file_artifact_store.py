"""Filesystem implementation of the artifact store port."""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from locktrace.domain.errors import ArtifactWriteError
from locktrace.ports.output.artifact_store import ArtifactStore

logger = logging.getLogger(__name__)


class FileArtifactStore(ArtifactStore):
  """Writes UTF-8 text files; relative paths resolve against `base_dir`."""

  def __init__(self, base_dir: Optional[str] = None) -> None:
    self._base_dir = Path(base_dir) if base_dir else Path.cwd()

  def write_text(self, path: str, content: str) -> str:
    target = Path(path)
    if not target.is_absolute():
      target = self._base_dir / target
    try:
      target.parent.mkdir(parents=True, exist_ok=True)
      target.write_text(content, encoding='utf-8')
    except OSError as exc:
      raise ArtifactWriteError(f'Could not write {target}: {exc}', path=str(target)) from exc
    logger.info('Wrote %s', target)
    return str(target)
