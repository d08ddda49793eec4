"""Application-level run report representation."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from locktrace.domain.value_objects.workflow import CompletionStatus


def _utcnow() -> datetime:
  return datetime.now(timezone.utc)


@dataclass
class EndpointReport:
  index: int
  name: str
  method: str
  url: str
  difficulty: int
  status: str
  error: Optional[str] = None
  attempts: int = 0
  profile: Optional[str] = None

  def to_dict(self) -> Dict[str, Any]:
    return {
      'index': self.index,
      'name': self.name,
      'method': self.method,
      'url': self.url,
      'difficulty': self.difficulty,
      'status': self.status,
      'error': self.error,
      'attempts': self.attempts,
      'profile': self.profile,
    }


@dataclass
class RunReport:
  status: CompletionStatus
  target: str
  trace_path: Optional[str] = None
  credentials_path: Optional[str] = None
  credential_count: int = 0
  request_count: int = 0
  security_endpoint_count: int = 0
  master_endpoint: Optional[str] = None
  analysis: Optional[str] = None
  completed_count: int = 0
  failed_count: int = 0
  remaining_count: int = 0
  steps_taken: int = 0
  max_steps: int = 0
  artifact_path: Optional[str] = None
  artifact_produced: bool = False
  statistics: Dict[str, Any] = field(default_factory=dict)
  endpoints: List[EndpointReport] = field(default_factory=list)
  warnings: List[str] = field(default_factory=list)
  report_paths: List[str] = field(default_factory=list)
  execution_time: float = 0.0
  timestamp: datetime = field(default_factory=_utcnow)
  error: Optional[str] = None

  @classmethod
  def failure(cls, target: str, error: str, trace_path: Optional[str] = None, execution_time: float = 0.0) -> 'RunReport':
    return cls(
      status=CompletionStatus.ERROR,
      target=target,
      trace_path=trace_path,
      execution_time=execution_time,
      error=error,
    )

  def to_dict(self) -> Dict[str, Any]:
    return {
      'status': self.status.value,
      'metadata': {
        'target': self.target,
        'timestamp': self.timestamp.isoformat(),
        'source_files': {
          'trace': self.trace_path,
          'credentials': self.credentials_path,
        },
        'credential_count': self.credential_count,
        'report_files': list(self.report_paths),
      },
      'analysis': {
        'request_count': self.request_count,
        'security_endpoint_count': self.security_endpoint_count,
        'master_endpoint': self.master_endpoint,
        'summary': self.analysis,
      },
      'results': {
        'completed': self.completed_count,
        'failed': self.failed_count,
        'remaining': self.remaining_count,
        'steps_taken': self.steps_taken,
        'max_steps': self.max_steps,
        'artifact_produced': self.artifact_produced,
        'artifact_path': self.artifact_path,
      },
      'statistics': dict(self.statistics),
      'endpoints': [endpoint.to_dict() for endpoint in self.endpoints],
      'warnings': list(self.warnings),
      'execution_time': round(self.execution_time, 3),
      'error': self.error,
    }
