"""State definitions for the trace LangGraph agent."""
from __future__ import annotations

from dataclasses import dataclass, field, fields, replace
from typing import Any, List, Mapping, Optional, Tuple, TypedDict

from locktrace.domain.entities.endpoint import Endpoint
from locktrace.domain.entities.execution_plan import ExecutionPlan, PlanNode
from locktrace.domain.value_objects.workflow import CompletionStatus, FrontierMode, Phase


@dataclass(frozen=True)
class EndpointOutcome:
  """What the reasoning service returned (or why it did not) for one endpoint."""

  index: int
  name: str
  content: Optional[str] = None
  error: Optional[str] = None
  attempts: int = 0
  profile: Optional[str] = None

  @property
  def succeeded(self) -> bool:
    return self.error is None


@dataclass(frozen=True)
class WorkflowState:
  """Orchestrator state. Every node returns a new instance via `evolve`."""

  # Input fields
  target: str
  variables: Mapping[str, str] = field(default_factory=dict)
  entries: Tuple[Mapping[str, Any], ...] = ()
  trace_path: Optional[str] = None
  credentials_path: Optional[str] = None
  credential_count: int = 0
  max_steps: int = 20
  frontier_mode: FrontierMode = FrontierMode.BATCH
  batch_size: Optional[int] = None
  resilient: bool = True
  synthesize_artifact: bool = False

  # Analysis results
  endpoints: Tuple[Endpoint, ...] = ()
  analysis: Optional[str] = None

  # Scheduling
  plan: Optional[ExecutionPlan] = None
  master_index: Optional[int] = None
  frontier: Tuple[int, ...] = ()
  results: Mapping[int, EndpointOutcome] = field(default_factory=dict)
  steps_taken: int = 0

  # Synthesis
  synthesis_done: bool = False
  artifact: Optional[str] = None
  artifact_path: Optional[str] = None

  # Status tracking
  phase: Phase = Phase.INITIALIZED
  status: Optional[CompletionStatus] = None
  warnings: Tuple[str, ...] = ()

  def __post_init__(self) -> None:
    if not self.target:
      raise ValueError('target is required')
    if self.max_steps < 0:
      raise ValueError('max_steps cannot be negative')
    if self.batch_size is not None and self.batch_size < 1:
      raise ValueError('batch_size must be positive when provided')

  @classmethod
  def from_inputs(cls, inputs: Mapping[str, Any]) -> 'WorkflowState':
    known = {item.name for item in fields(cls)}
    values = {key: value for key, value in inputs.items() if key in known}
    values['entries'] = tuple(values.get('entries') or ())
    values['variables'] = dict(values.get('variables') or {})
    return cls(**values)

  def evolve(self, **delta: Any) -> 'WorkflowState':
    return replace(self, **delta)

  def warn(self, *messages: str) -> Tuple[str, ...]:
    return self.warnings + tuple(messages)

  @property
  def master(self) -> Optional[PlanNode]:
    if self.plan is None or self.master_index is None:
      return None
    return self.plan.node(self.master_index)

  def completed_nodes(self) -> List[PlanNode]:
    if self.plan is None:
      return []
    return [node for node in self.plan if node.completed and not node.failed]


class TraceGraphState(TypedDict):
  workflow: WorkflowState
