"""Builds the execution plan for a trace without calling the reasoning service."""
from __future__ import annotations

import logging
from typing import Optional

from locktrace.application.queries.plan_inspection import PlanInspection
from locktrace.domain.services import trace_inspector
from locktrace.domain.services.dependency_graph_builder import DependencyGraphBuilder
from locktrace.domain.services.endpoint_normalizer import EndpointNormalizer
from locktrace.domain.services.pending_resolver import pending_indices
from locktrace.ports.output.trace_repository import TraceRepository

logger = logging.getLogger(__name__)


class PlanInspectionHandler:
  def __init__(
    self,
    trace_repository: TraceRepository,
    normalizer: Optional[EndpointNormalizer] = None,
    builder: Optional[DependencyGraphBuilder] = None,
  ) -> None:
    self._trace_repository = trace_repository
    self._normalizer = normalizer or EndpointNormalizer()
    self._builder = builder or DependencyGraphBuilder()

  def handle(
    self,
    trace_path: str,
    target: Optional[str] = None,
    method: Optional[str] = None,
    domain: Optional[str] = None,
  ) -> PlanInspection:
    """Raises `ValidationError` when the trace cannot be loaded.

    `method` and `domain` narrow the plan to matching endpoints; indices
    still refer to the full capture.
    """
    entries = self._trace_repository.load_entries(trace_path)
    normalized = self._normalizer.normalize_with_report(entries)
    endpoints = normalized.endpoints
    if method or domain:
      endpoints = trace_inspector.filter_endpoints(endpoints, method=method, domain=domain)
    plan = self._builder.build(endpoints)
    master = self._builder.select_master(plan, target) if target else None
    logger.info('Inspected %s: %d endpoints, %d edges', trace_path, len(plan), len(plan.edges))

    return PlanInspection(
      trace_path=trace_path,
      target=target,
      entry_count=len(entries),
      filtered_count=normalized.filtered,
      warnings=normalized.warnings(),
      master_endpoint=master.endpoint.identifier() if master else None,
      nodes=[
        {
          'index': node.index,
          'name': node.name,
          'method': node.endpoint.method,
          'url': node.endpoint.url,
          'kind': node.endpoint.kind,
          'difficulty': node.difficulty,
          'prerequisites': list(plan.prerequisites_of(node.index)),
        }
        for node in plan
      ],
      edges=[
        {'source': edge.source, 'target': edge.target, 'reason': edge.reason.value}
        for edge in plan.edges
      ],
      frontier=pending_indices(plan),
      statistics=plan.statistics(),
      domains={
        domain: len(members) for domain, members in trace_inspector.group_by_domain(endpoints).items()
      },
      similar=[
        {
          'pattern': group['pattern'],
          'count': len(group['endpoints']),
          'endpoints': [endpoint.identifier() for endpoint in group['endpoints']],
        }
        for group in trace_inspector.find_similar(endpoints)
      ],
      dynamic_values=trace_inspector.extract_dynamic_values(endpoints),
    )
