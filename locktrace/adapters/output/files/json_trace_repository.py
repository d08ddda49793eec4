"""JSON/HAR file implementation of the trace repository port."""
from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List

from locktrace.domain.errors import ValidationError
from locktrace.ports.output.trace_repository import TraceRepository


class JsonTraceRepository(TraceRepository):
  """Reads `log.entries` (HAR) or a top-level `entries` list."""

  def load_entries(self, path: str) -> List[Dict[str, Any]]:
    trace_path = Path(path)
    if not trace_path.is_file():
      raise ValidationError(
        f'Trace file not found: {path}. Capture a trace first.', path=path
      )
    try:
      data = json.loads(trace_path.read_text(encoding='utf-8'))
    except (OSError, UnicodeDecodeError) as exc:
      raise ValidationError(f'Trace file is unreadable: {path} ({exc})', path=path) from exc
    except ValueError as exc:
      raise ValidationError(f'Trace file is not valid JSON: {path} ({exc})', path=path) from exc

    entries = self._extract_entries(data)
    if entries is None:
      raise ValidationError(f'Trace file has no entries list: {path}', path=path)
    return entries

  @staticmethod
  def _extract_entries(data: Any):
    if isinstance(data, list):
      return data
    if not isinstance(data, dict):
      return None
    log = data.get('log')
    if isinstance(log, dict) and isinstance(log.get('entries'), list):
      return log['entries']
    if isinstance(data.get('entries'), list):
      return data['entries']
    return None
