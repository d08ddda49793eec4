"""Command object representing a trace run request."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, Optional

from locktrace.domain.errors import ValidationError
from locktrace.domain.value_objects.workflow import FrontierMode

MAX_STEPS_LIMIT = 500


def parse_variables(pairs: Iterable[str]) -> Dict[str, str]:
  """Turn `key=value` strings into a dict. Later keys win."""
  variables: Dict[str, str] = {}
  for pair in pairs:
    key, sep, value = pair.partition('=')
    if not sep or not key.strip():
      raise ValidationError(f'Variable {pair!r} must look like key=value')
    variables[key.strip()] = value.strip()
  return variables


@dataclass(frozen=True)
class TraceRunCommand:
  """Command for turning a captured trace into an integration plan."""
  target: str
  trace_path: str = 'network_requests.json'
  credentials_path: Optional[str] = None
  max_steps: int = 20
  variables: Dict[str, str] = field(default_factory=dict)
  synthesize_artifact: bool = True
  key_model: Optional[str] = None
  batch_size: Optional[int] = None
  frontier_mode: FrontierMode = FrontierMode.BATCH
  resilient: bool = True
  report_dir: Optional[str] = None

  def __post_init__(self) -> None:
    if not self.target or not self.target.strip():
      raise ValidationError('target is required')
    if not self.trace_path:
      raise ValidationError('trace_path is required')
    if not 0 <= self.max_steps <= MAX_STEPS_LIMIT:
      raise ValidationError(f'max_steps must be between 0 and {MAX_STEPS_LIMIT}')
    if self.batch_size is not None and self.batch_size < 1:
      raise ValidationError('batch_size must be at least 1')
