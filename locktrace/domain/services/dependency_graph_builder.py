"""Domain service scoring endpoints and inferring prerequisite edges."""
from __future__ import annotations

import heapq
import logging
import math
from datetime import datetime
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Set, Tuple

from locktrace.domain.entities.endpoint import Endpoint
from locktrace.domain.entities.execution_plan import (
  DependencyEdge,
  EdgeReason,
  ExecutionPlan,
  PlanNode,
)

logger = logging.getLogger(__name__)

METHOD_WEIGHTS: Mapping[str, int] = {
  'GET': 1,
  'POST': 3,
  'PUT': 4,
  'PATCH': 4,
  'DELETE': 5,
}
BASE_DIFFICULTY = 1
AUTH_HEADER_WEIGHT = 2
LARGE_BODY_WEIGHT = 2
LARGE_BODY_FIELDS = 5
NUMERIC_API_SEGMENT_WEIGHT = 1
MIN_DIFFICULTY = 1
MAX_DIFFICULTY = 10


def _epoch(value: Optional[datetime]) -> float:
  return value.timestamp() if value is not None else math.inf


def _capture_key(endpoint: Endpoint) -> Tuple[float, int]:
  return (_epoch(endpoint.timestamp), endpoint.index)


class DependencyGraphBuilder:
  """Builds an ExecutionPlan from a frozen Endpoint list.

  Each ordered pair (A, B) is tested against three rules, first match wins:
  authentication precedence, read-before-write on the same resource, and
  capture-time precedence. The resulting edges always form a DAG: edges are
  kept only when they point forward in a topological rank derived from the
  authentication and resource constraints.
  """

  def build(self, endpoints: Sequence[Endpoint]) -> ExecutionPlan:
    nodes = [PlanNode(endpoint=endpoint, difficulty=self.score_difficulty(endpoint)) for endpoint in endpoints]
    # sorted() is stable, so equal difficulties keep capture order.
    nodes = sorted(nodes, key=lambda node: node.difficulty)
    edges = self.infer_edges(endpoints)
    plan = ExecutionPlan(nodes, edges)
    logger.info('Built execution plan: %d endpoints, %d dependency edges', len(plan), len(plan.edges))
    return plan

  @staticmethod
  def score_difficulty(endpoint: Endpoint) -> int:
    score = BASE_DIFFICULTY + METHOD_WEIGHTS.get(endpoint.method.upper(), 0)
    if endpoint.has_auth_headers:
      score += AUTH_HEADER_WEIGHT
    if isinstance(endpoint.body, Mapping) and len(endpoint.body) > LARGE_BODY_FIELDS:
      score += LARGE_BODY_WEIGHT
    if DependencyGraphBuilder._has_numeric_api_segment(endpoint.path):
      score += NUMERIC_API_SEGMENT_WEIGHT
    return max(MIN_DIFFICULTY, min(score, MAX_DIFFICULTY))

  @staticmethod
  def _has_numeric_api_segment(path: str) -> bool:
    position = path.find('/api/')
    if position < 0:
      return False
    return any(segment.isdigit() for segment in path[position + len('/api/'):].split('/'))

  @staticmethod
  def resource_precedes(reader: Endpoint, writer: Endpoint) -> bool:
    """A GET on a path under the writer's parent resource comes first."""
    if reader.method != 'GET' or writer.method == 'GET':
      return False
    if reader.host != writer.host:
      return False
    parent = writer.path_segments[:-1]
    if not parent:
      return False
    return reader.path_segments[:len(parent)] == parent

  @classmethod
  def candidate_reason(cls, source: Endpoint, target: Endpoint) -> Optional[EdgeReason]:
    if source.is_auth_endpoint:
      return EdgeReason.AUTHENTICATION
    if cls.resource_precedes(source, target):
      return EdgeReason.RESOURCE
    if source.timestamp is None or target.timestamp is None:
      return None
    if _epoch(source.timestamp) < _epoch(target.timestamp):
      return EdgeReason.TEMPORAL
    return None

  def infer_edges(self, endpoints: Sequence[Endpoint]) -> List[DependencyEdge]:
    by_index = {endpoint.index: endpoint for endpoint in endpoints}
    candidates: Dict[Tuple[int, int], EdgeReason] = {}
    for source in endpoints:
      for target in endpoints:
        if source.index == target.index:
          continue
        reason = self.candidate_reason(source, target)
        if reason is not None:
          candidates[(source.index, target.index)] = reason

    structural: Set[Tuple[int, int]] = set()
    for (source, target), reason in candidates.items():
      if reason is EdgeReason.TEMPORAL:
        continue
      target_endpoint = by_index[target]
      if target_endpoint.is_auth_endpoint:
        # Between two auth endpoints only the capture order holds; a resource
        # edge into an auth endpoint is overridden by the auth edge back.
        if reason is EdgeReason.RESOURCE:
          continue
        if _capture_key(target_endpoint) < _capture_key(by_index[source]):
          continue
      structural.add((source, target))

    rank = self._rank(endpoints, structural)
    edges = [
      DependencyEdge(source=source, target=target, reason=reason)
      for (source, target), reason in sorted(candidates.items())
      if rank[source] < rank[target]
    ]
    dropped = len(candidates) - len(edges)
    if dropped:
      logger.debug('Dropped %d conflicting dependency candidates', dropped)
    return edges

  @staticmethod
  def _rank(endpoints: Iterable[Endpoint], constraints: Set[Tuple[int, int]]) -> Dict[int, int]:
    """Topological order of the constraint graph, ties broken by capture order."""
    keys = {endpoint.index: _capture_key(endpoint) for endpoint in endpoints}
    indegree = {index: 0 for index in keys}
    successors: Dict[int, List[int]] = {index: [] for index in keys}
    for source, target in constraints:
      successors[source].append(target)
      indegree[target] += 1

    ready = [(keys[index], index) for index, degree in indegree.items() if degree == 0]
    heapq.heapify(ready)
    rank: Dict[int, int] = {}
    while ready:
      _, index = heapq.heappop(ready)
      rank[index] = len(rank)
      for target in successors[index]:
        indegree[target] -= 1
        if indegree[target] == 0:
          heapq.heappush(ready, (keys[target], target))

    if len(rank) != len(keys):
      raise ValueError('Authentication and resource constraints contain a cycle')
    return rank

  @staticmethod
  def tokenize_goal(goal: str) -> List[str]:
    return [word for word in (goal or '').lower().split() if len(word) > 3]

  def select_master(self, plan: ExecutionPlan, goal: str) -> Optional[PlanNode]:
    """Endpoint closest to the goal, falling back to the hardest one."""
    if plan.is_empty():
      return None
    tokens = self.tokenize_goal(goal)
    for node in plan:
      url = node.endpoint.url.lower()
      if any(token in url for token in tokens):
        return node
    return max(plan.nodes, key=lambda node: node.difficulty)
