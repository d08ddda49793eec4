"""Computes the frontier of endpoints that are safe to process next."""
from __future__ import annotations

from typing import Any, List, Optional, Set

from locktrace.domain.entities.execution_plan import ExecutionPlan, PlanNode


def pending(plan: ExecutionPlan) -> List[PlanNode]:
  """Incomplete nodes whose prerequisites are all completed, in plan order.

  One pass over the edge set plus one over the nodes.
  """
  blocked: Set[int] = {
    edge.target for edge in plan.edges if not plan.node(edge.source).completed
  }
  return [node for node in plan if not node.completed and node.index not in blocked]


def pending_indices(plan: ExecutionPlan) -> List[int]:
  return [node.index for node in pending(plan)]


def mark_completed(
  plan: ExecutionPlan, index: int, secrets: Optional[Any] = None, error: Optional[str] = None
) -> bool:
  """Idempotent: only the first call for an index has any effect."""
  return plan.mark_completed(index, secrets=secrets, error=error)
