"""Node implementations for the trace agent."""
from __future__ import annotations

import asyncio
import logging
import re
from typing import Dict, List, Optional, Sequence

from locktrace.agents.common.reasoning_client import ReasoningClient
from locktrace.agents.trace_agent.state import EndpointOutcome, WorkflowState
from locktrace.agents.trace_agent.transitions import resolve_batch_size
from locktrace.domain.entities.execution_plan import EdgeReason, ExecutionPlan, PlanNode
from locktrace.domain.errors import ArtifactWriteError, ReasoningServiceError
from locktrace.domain.services.dependency_graph_builder import DependencyGraphBuilder
from locktrace.domain.services.endpoint_normalizer import EndpointNormalizer
from locktrace.domain.services.pending_resolver import mark_completed, pending, pending_indices
from locktrace.domain.services.prompt_builder import PromptBuilder
from locktrace.domain.value_objects.workflow import CompletionStatus, Phase
from locktrace.ports.output.artifact_store import ArtifactStore

logger = logging.getLogger(__name__)

_CODE_FENCE = re.compile(r'^```[\w+-]*\s*\n(.*?)\n?```\s*$', re.DOTALL)


def strip_code_fence(content: str) -> str:
  match = _CODE_FENCE.match(content.strip())
  return match.group(1) if match else content


class TraceAgentActions:
  def __init__(
    self,
    reasoning_client: ReasoningClient,
    artifact_store: ArtifactStore,
    artifact_path: str,
    normalizer: Optional[EndpointNormalizer] = None,
    builder: Optional[DependencyGraphBuilder] = None,
    prompt_builder: Optional[PromptBuilder] = None,
  ) -> None:
    self._client = reasoning_client
    self._artifact_store = artifact_store
    self._artifact_path = artifact_path
    self._normalizer = normalizer or EndpointNormalizer()
    self._builder = builder or DependencyGraphBuilder()
    self._prompts = prompt_builder or PromptBuilder()

  async def analyze(self, state: WorkflowState) -> WorkflowState:
    """Normalize the capture and ask for an overview of the workflow."""
    normalized = self._normalizer.normalize_with_report(state.entries)
    warnings = normalized.warnings()

    analysis: Optional[str] = None
    if normalized.endpoints:
      prompt = self._prompts.build_analysis_prompt(state.target, normalized.endpoints)
      try:
        result = await self._client.invoke(prompt)
        analysis = result.content
      except ReasoningServiceError as exc:
        logger.error('Trace analysis failed: %s', exc)
        warnings.append(f'Trace analysis failed: {exc}')
    else:
      logger.info('Trace contains no usable endpoints')

    return state.evolve(
      endpoints=tuple(normalized.endpoints),
      analysis=analysis,
      phase=Phase.ANALYZED,
      warnings=state.warn(*warnings),
    )

  async def build_graph(self, state: WorkflowState) -> WorkflowState:
    """Build the execution plan and pick the endpoint matching the goal."""
    plan = self._builder.build(state.endpoints)
    master = self._builder.select_master(plan, state.target)
    frontier = tuple(pending_indices(plan))
    if master is not None:
      logger.info('Master endpoint: %s', master.endpoint.identifier())
    logger.info('Plan has %d nodes and %d edges; initial frontier %d', len(plan), len(plan.edges), len(frontier))
    return state.evolve(
      plan=plan,
      master_index=master.index if master is not None else None,
      frontier=frontier,
      phase=Phase.GRAPH_BUILT,
    )

  async def process_frontier(self, state: WorkflowState) -> WorkflowState:
    """Process one group of frontier endpoints and mark them completed."""
    plan = (state.plan or ExecutionPlan.empty()).copy()
    size = resolve_batch_size(state)
    batch = pending(plan)[:size]
    step = state.steps_taken + 1
    logger.info('Step %d/%d: processing %d endpoint(s)', step, state.max_steps, len(batch))

    prompts = [
      self._prompts.build_endpoint_prompt(
        state.target, node, state.variables, self._prerequisite_secrets(plan, node)
      )
      for node in batch
    ]
    if state.resilient:
      outcomes = await self._process_each(batch, prompts)
    else:
      outcomes = await self._process_together(batch, prompts)

    results = dict(state.results)
    warnings: List[str] = []
    for outcome in outcomes:
      mark_completed(plan, outcome.index, secrets=outcome.content, error=outcome.error)
      results[outcome.index] = outcome
      if outcome.error is not None:
        warnings.append(f'Endpoint {outcome.name} failed: {outcome.error}')

    return state.evolve(
      plan=plan,
      results=results,
      frontier=tuple(pending_indices(plan)),
      steps_taken=step,
      phase=Phase.PROCESSING_FRONTIER,
      warnings=state.warn(*warnings),
    )

  async def synthesize(self, state: WorkflowState) -> WorkflowState:
    """Generate the integration module from the analysed endpoints."""
    completed = state.completed_nodes()
    if not completed:
      logger.warning('No analysed endpoints available; skipping synthesis')
      return state.evolve(
        synthesis_done=True,
        phase=Phase.ARTIFACT_SYNTHESIZED,
        warnings=state.warn('Synthesis skipped: no endpoints were analysed successfully'),
      )

    prompt = self._prompts.build_synthesis_prompt(state.target, state.master, completed, state.variables)
    try:
      result = await self._client.invoke(prompt)
    except ReasoningServiceError as exc:
      logger.error('Artifact synthesis failed: %s', exc)
      return state.evolve(
        synthesis_done=True,
        phase=Phase.ARTIFACT_SYNTHESIZED,
        warnings=state.warn(f'Artifact synthesis failed: {exc}'),
      )

    artifact = strip_code_fence(result.content)
    warnings: List[str] = []
    location: Optional[str] = None
    try:
      location = self._artifact_store.write_text(self._artifact_path, artifact)
      logger.info('Integration module written to %s', location)
    except ArtifactWriteError as exc:
      logger.error('Could not write artifact: %s', exc)
      warnings.append(str(exc))

    return state.evolve(
      artifact=artifact,
      artifact_path=location,
      synthesis_done=True,
      phase=Phase.ARTIFACT_SYNTHESIZED,
      warnings=state.warn(*warnings),
    )

  async def complete(self, state: WorkflowState) -> WorkflowState:
    remaining = state.plan.remaining_count if state.plan is not None else 0
    status = CompletionStatus.PARTIAL if remaining else CompletionStatus.SUCCESS
    if remaining:
      logger.warning('Step budget of %d exhausted with %d endpoint(s) unprocessed', state.max_steps, remaining)
    logger.info('Run finished with status %s after %d step(s)', status.value, state.steps_taken)
    return state.evolve(status=status, phase=Phase.COMPLETE)

  async def _process_each(self, batch: Sequence[PlanNode], prompts: Sequence[str]) -> List[EndpointOutcome]:
    """Calls run concurrently; one failure does not affect the others."""
    return list(await asyncio.gather(*(self._process_one(node, prompt) for node, prompt in zip(batch, prompts))))

  async def _process_one(self, node: PlanNode, prompt: str) -> EndpointOutcome:
    try:
      result = await self._client.invoke(prompt)
    except ReasoningServiceError as exc:
      logger.error('Endpoint %s failed: %s', node.name, exc)
      return EndpointOutcome(index=node.index, name=node.name, error=str(exc), attempts=exc.attempts)
    return EndpointOutcome(
      index=node.index,
      name=node.name,
      content=result.content,
      attempts=result.attempts,
      profile=result.profile.name,
    )

  async def _process_together(self, batch: Sequence[PlanNode], prompts: Sequence[str]) -> List[EndpointOutcome]:
    """One batched call; if any member fails the whole group is marked failed."""
    try:
      results = await self._client.batch_invoke(prompts)
    except ReasoningServiceError as exc:
      logger.error('Batch of %d endpoints failed: %s', len(batch), exc)
      return [
        EndpointOutcome(index=node.index, name=node.name, error=str(exc), attempts=exc.attempts)
        for node in batch
      ]
    return [
      EndpointOutcome(
        index=node.index,
        name=node.name,
        content=result.content,
        attempts=result.attempts,
        profile=result.profile.name,
      )
      for node, result in zip(batch, results)
    ]

  @staticmethod
  def _prerequisite_secrets(plan: ExecutionPlan, node: PlanNode) -> Dict[str, str]:
    """Results of direct authentication and resource prerequisites.

    Capture-order edges link every earlier request to every later one, so
    their results are left out. Keys carry the index because identical
    requests are distinct endpoints.
    """
    secrets: Dict[str, str] = {}
    for edge in plan.incoming_edges(node.index):
      if edge.reason is EdgeReason.TEMPORAL:
        continue
      prerequisite = plan.node(edge.source)
      if prerequisite.secrets:
        secrets[prerequisite.endpoint.identifier()] = prerequisite.secrets
    return secrets
