"""Trace agent runner based on LangGraph."""
from __future__ import annotations

import logging
from typing import Any, AsyncIterator, Awaitable, Callable, Mapping, Optional, Tuple

from langgraph.graph import END, StateGraph

from locktrace.agents.common.reasoning_client import ReasoningClient
from locktrace.agents.trace_agent.nodes import TraceAgentActions
from locktrace.agents.trace_agent.state import TraceGraphState, WorkflowState
from locktrace.agents.trace_agent.transitions import decide_next
from locktrace.application.handlers.protocols import AgentRunner
from locktrace.domain.services.dependency_graph_builder import DependencyGraphBuilder
from locktrace.domain.services.endpoint_normalizer import EndpointNormalizer
from locktrace.domain.value_objects.workflow import Transition
from locktrace.ports.output.artifact_store import ArtifactStore

logger = logging.getLogger(__name__)

Action = Callable[[WorkflowState], Awaitable[WorkflowState]]

# analyze, build_graph, synthesize and complete plus slack for the router.
_FIXED_GRAPH_STEPS = 10


class TraceAgentRunner(AgentRunner):
  def __init__(
    self,
    reasoning_client: ReasoningClient,
    artifact_store: ArtifactStore,
    artifact_path: str,
    normalizer: Optional[EndpointNormalizer] = None,
    builder: Optional[DependencyGraphBuilder] = None,
  ) -> None:
    self._actions = TraceAgentActions(
      reasoning_client=reasoning_client,
      artifact_store=artifact_store,
      artifact_path=artifact_path,
      normalizer=normalizer,
      builder=builder,
    )
    self._graph = self._build_graph()

  def _build_graph(self):
    workflow = StateGraph(TraceGraphState)
    workflow.add_node('analyze', self._wrap(self._actions.analyze))
    workflow.add_node('build_graph', self._wrap(self._actions.build_graph))
    workflow.add_node(Transition.PROCESS_FRONTIER.value, self._wrap(self._actions.process_frontier))
    workflow.add_node(Transition.SYNTHESIZE.value, self._wrap(self._actions.synthesize))
    workflow.add_node(Transition.COMPLETE.value, self._wrap(self._actions.complete))

    routes = {transition.value: transition.value for transition in Transition}
    workflow.set_entry_point('analyze')
    workflow.add_edge('analyze', 'build_graph')
    workflow.add_conditional_edges('build_graph', self._route, routes)
    workflow.add_conditional_edges(Transition.PROCESS_FRONTIER.value, self._route, routes)
    workflow.add_conditional_edges(Transition.SYNTHESIZE.value, self._route, routes)
    workflow.add_edge(Transition.COMPLETE.value, END)
    return workflow.compile()

  @staticmethod
  def _wrap(action: Action):
    async def node(graph_state: TraceGraphState) -> TraceGraphState:
      return {'workflow': await action(graph_state['workflow'])}
    return node

  @staticmethod
  def _route(graph_state: TraceGraphState) -> str:
    return decide_next(graph_state['workflow']).value

  async def stream(self, state: WorkflowState) -> AsyncIterator[Tuple[str, WorkflowState]]:
    """Yield `(node_name, state)` after every node runs."""
    config = {'recursion_limit': state.max_steps + _FIXED_GRAPH_STEPS}
    async for update in self._graph.astream({'workflow': state}, config=config, stream_mode='updates'):
      for node_name, payload in update.items():
        current: WorkflowState = payload['workflow']
        logger.debug('Node %s finished in phase %s', node_name, current.phase.value)
        yield node_name, current

  async def run(self, inputs: Mapping[str, Any]) -> WorkflowState:
    state = inputs if isinstance(inputs, WorkflowState) else WorkflowState.from_inputs(inputs)
    final = state
    async for _, current in self.stream(state):
      final = current
    return final
