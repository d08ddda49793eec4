"""Pure routing decisions for the trace agent."""
from __future__ import annotations

import math

from locktrace.agents.trace_agent.state import WorkflowState
from locktrace.domain.value_objects.workflow import FrontierMode, Phase, Transition

BATCH_CAP = 25


def decide_next(state: WorkflowState) -> Transition:
  """Where to go after any node, derived only from `state`."""
  if state.phase is Phase.COMPLETE:
    return Transition.COMPLETE
  if state.frontier and state.steps_taken < state.max_steps:
    return Transition.PROCESS_FRONTIER
  if state.synthesize_artifact and not state.synthesis_done:
    return Transition.SYNTHESIZE
  return Transition.COMPLETE


def resolve_batch_size(state: WorkflowState) -> int:
  """Endpoints to take from the frontier in the next pass."""
  if state.frontier_mode is FrontierMode.SINGLE:
    return 1
  if state.batch_size:
    return max(1, min(state.batch_size, BATCH_CAP))
  remaining = state.plan.remaining_count if state.plan is not None else 0
  steps_left = max(1, state.max_steps - state.steps_taken)
  return max(1, min(BATCH_CAP, math.ceil(remaining / steps_left)))
