"""Execution plan: difficulty-ordered endpoints plus inferred prerequisite edges."""
from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Dict, Iterable, Iterator, List, Optional, Tuple

from locktrace.domain.entities.endpoint import Endpoint


class EdgeReason(str, Enum):
  AUTHENTICATION = 'authentication'
  RESOURCE = 'resource'
  TEMPORAL = 'temporal'


@dataclass(frozen=True)
class DependencyEdge:
  """`source` must be completed before `target` becomes pending."""

  source: int
  target: int
  reason: EdgeReason

  def __post_init__(self) -> None:
    if self.source == self.target:
      raise ValueError(f'Endpoint #{self.source} cannot be its own prerequisite')


@dataclass
class PlanNode:
  """An Endpoint plus the fields derived while the plan is processed.

  `completed`, `secrets` and `error` are written once: the first call to
  `mark_completed` wins and later calls are ignored.
  """

  endpoint: Endpoint
  difficulty: int
  completed: bool = False
  secrets: Optional[Any] = None
  error: Optional[str] = None

  @property
  def index(self) -> int:
    return self.endpoint.index

  @property
  def name(self) -> str:
    return self.endpoint.name

  @property
  def failed(self) -> bool:
    return self.completed and self.error is not None

  def mark_completed(self, secrets: Optional[Any] = None, error: Optional[str] = None) -> bool:
    """Flip `completed` to True. Returns False if it was already set."""
    if self.completed:
      return False
    self.completed = True
    self.secrets = secrets
    self.error = error
    return True


class ExecutionPlan:
  """Single source of truth for graph queries during one run."""

  def __init__(self, nodes: Iterable[PlanNode], edges: Iterable[DependencyEdge]):
    self._nodes: Tuple[PlanNode, ...] = tuple(nodes)
    self._edges: Tuple[DependencyEdge, ...] = tuple(edges)
    self._by_index: Dict[int, PlanNode] = {node.index: node for node in self._nodes}
    if len(self._by_index) != len(self._nodes):
      raise ValueError('Endpoint indices in a plan must be unique')

    prerequisites: Dict[int, List[int]] = {index: [] for index in self._by_index}
    incoming: Dict[int, List[DependencyEdge]] = {index: [] for index in self._by_index}
    dependents: Dict[int, List[int]] = {index: [] for index in self._by_index}
    for edge in self._edges:
      if edge.source not in self._by_index or edge.target not in self._by_index:
        raise ValueError(f'Edge {edge.source}->{edge.target} references an unknown endpoint')
      prerequisites[edge.target].append(edge.source)
      incoming[edge.target].append(edge)
      dependents[edge.source].append(edge.target)
    self._prerequisites = {index: tuple(values) for index, values in prerequisites.items()}
    self._dependents = {index: tuple(values) for index, values in dependents.items()}
    self._incoming = {index: tuple(values) for index, values in incoming.items()}

  @classmethod
  def empty(cls) -> 'ExecutionPlan':
    return cls((), ())

  def copy(self) -> 'ExecutionPlan':
    """Same structure with independent completion fields."""
    return ExecutionPlan((replace(node) for node in self._nodes), self._edges)

  @property
  def nodes(self) -> Tuple[PlanNode, ...]:
    return self._nodes

  @property
  def edges(self) -> Tuple[DependencyEdge, ...]:
    return self._edges

  def __len__(self) -> int:
    return len(self._nodes)

  def __iter__(self) -> Iterator[PlanNode]:
    return iter(self._nodes)

  def is_empty(self) -> bool:
    return not self._nodes

  def node(self, index: int) -> PlanNode:
    try:
      return self._by_index[index]
    except KeyError:
      raise KeyError(f'No endpoint #{index} in plan') from None

  def prerequisites_of(self, index: int) -> Tuple[int, ...]:
    return self._prerequisites[index]

  def dependents_of(self, index: int) -> Tuple[int, ...]:
    return self._dependents[index]

  def incoming_edges(self, index: int) -> Tuple[DependencyEdge, ...]:
    return self._incoming[index]

  def has_edge(self, source: int, target: int) -> bool:
    return source in self._prerequisites.get(target, ())

  def edge_between(self, source: int, target: int) -> Optional[DependencyEdge]:
    for edge in self._edges:
      if edge.source == source and edge.target == target:
        return edge
    return None

  def mark_completed(
    self, index: int, secrets: Optional[Any] = None, error: Optional[str] = None
  ) -> bool:
    return self.node(index).mark_completed(secrets=secrets, error=error)

  @property
  def completed_count(self) -> int:
    return sum(1 for node in self._nodes if node.completed)

  @property
  def failed_count(self) -> int:
    return sum(1 for node in self._nodes if node.failed)

  @property
  def remaining_count(self) -> int:
    return len(self._nodes) - self.completed_count

  def statistics(self) -> Dict[str, Any]:
    total = len(self._nodes)
    average = sum(node.difficulty for node in self._nodes) / total if total else 0.0
    reasons = Counter(edge.reason.value for edge in self._edges)
    return {
      'total_endpoints': total,
      'completed_endpoints': self.completed_count,
      'failed_endpoints': self.failed_count,
      'remaining_endpoints': self.remaining_count,
      'average_difficulty': round(average, 2),
      'dependency_edges': len(self._edges),
      'edges_by_reason': {reason.value: reasons.get(reason.value, 0) for reason in EdgeReason},
    }
