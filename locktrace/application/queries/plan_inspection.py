"""Read-only view of the plan a trace would produce."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass
class PlanInspection:
  trace_path: str
  target: Optional[str] = None
  entry_count: int = 0
  filtered_count: int = 0
  warnings: List[str] = field(default_factory=list)
  master_endpoint: Optional[str] = None
  nodes: List[Dict[str, Any]] = field(default_factory=list)
  edges: List[Dict[str, Any]] = field(default_factory=list)
  frontier: List[int] = field(default_factory=list)
  statistics: Dict[str, Any] = field(default_factory=dict)
  domains: Dict[str, int] = field(default_factory=dict)
  similar: List[Dict[str, Any]] = field(default_factory=list)
  dynamic_values: Dict[str, List[str]] = field(default_factory=dict)

  def to_dict(self) -> Dict[str, Any]:
    return {
      'trace_path': self.trace_path,
      'target': self.target,
      'entry_count': self.entry_count,
      'filtered_count': self.filtered_count,
      'master_endpoint': self.master_endpoint,
      'statistics': dict(self.statistics),
      'frontier': list(self.frontier),
      'nodes': list(self.nodes),
      'edges': list(self.edges),
      'domains': dict(self.domains),
      'similar': list(self.similar),
      'dynamic_values': dict(self.dynamic_values),
      'warnings': list(self.warnings),
    }
