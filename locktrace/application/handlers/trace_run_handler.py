"""Application handler for trace runs."""
from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

from locktrace.application.commands.trace_run_command import TraceRunCommand
from locktrace.application.handlers.protocols import AgentRunner
from locktrace.application.queries.run_report import EndpointReport, RunReport
from locktrace.domain.errors import ArtifactWriteError, ValidationError
from locktrace.domain.value_objects.workflow import CompletionStatus
from locktrace.ports.input.result_presenter import ResultPresenter
from locktrace.ports.output.artifact_store import ArtifactStore
from locktrace.ports.output.trace_repository import CredentialStore, TraceRepository

logger = logging.getLogger(__name__)

REPORT_JSON = 'locktrace_report.json'
REPORT_MARKDOWN = 'locktrace_report.md'


class TraceRunHandler:
  """Coordinates trace runs executed by the LangGraph trace agent.

  Loads the capture and the optional credential store, runs the agent and
  turns its final state into a `RunReport`. Reports are written next to
  each other in the report directory; a write failure is only a warning.
  """

  def __init__(
    self,
    agent_runner: AgentRunner,
    trace_repository: TraceRepository,
    credential_store: CredentialStore,
    report_store: ArtifactStore,
    report_presenters: Optional[Mapping[str, ResultPresenter]] = None,
    report_dir: str = '.',
    runner_for_model: Optional[Callable[[str], AgentRunner]] = None,
  ) -> None:
    self._agent_runner = agent_runner
    self._trace_repository = trace_repository
    self._credential_store = credential_store
    self._report_store = report_store
    self._report_presenters = dict(report_presenters or {})
    self._report_dir = report_dir
    self._runner_for_model = runner_for_model
    self._model_runners: Dict[str, AgentRunner] = {}

  async def handle(self, command: TraceRunCommand) -> RunReport:
    start = time.perf_counter()
    try:
      entries = self._trace_repository.load_entries(command.trace_path)
      credentials, warnings = self._load_credentials(command.credentials_path)

      final_state = await self._runner_for(command).run({
        'target': command.target,
        'variables': command.variables,
        'entries': entries,
        'trace_path': command.trace_path,
        'credentials_path': command.credentials_path,
        'credential_count': len(credentials),
        'max_steps': command.max_steps,
        'frontier_mode': command.frontier_mode,
        'batch_size': command.batch_size,
        'resilient': command.resilient,
        'synthesize_artifact': command.synthesize_artifact,
        'warnings': tuple(warnings),
      })
      report = self._build_report(final_state, time.perf_counter() - start)
    except ValidationError as exc:
      logger.error('Cannot run on %s: %s', command.trace_path, exc)
      report = RunReport.failure(
        command.target, str(exc), trace_path=command.trace_path, execution_time=time.perf_counter() - start
      )
    except Exception as exc:  # noqa: BLE001
      logger.exception('Run failed unexpectedly')
      report = RunReport.failure(
        command.target, str(exc), trace_path=command.trace_path, execution_time=time.perf_counter() - start
      )

    self._persist(report, command.report_dir or self._report_dir)
    return report

  def _runner_for(self, command: TraceRunCommand) -> AgentRunner:
    if not command.key_model or self._runner_for_model is None:
      return self._agent_runner
    if command.key_model not in self._model_runners:
      self._model_runners[command.key_model] = self._runner_for_model(command.key_model)
    return self._model_runners[command.key_model]

  def _load_credentials(self, path: Optional[str]) -> Tuple[List[Dict[str, Any]], List[str]]:
    if not path:
      return [], []
    credentials = self._credential_store.load_credentials(path)
    if not credentials:
      return [], [f'No usable credentials found in {path}']
    logger.info('Loaded %d stored credentials', len(credentials))
    return credentials, []

  @staticmethod
  def _build_report(state: Any, execution_time: float) -> RunReport:
    plan = state.plan
    master = state.master
    endpoints: List[EndpointReport] = []
    if plan is not None:
      for node in plan:
        outcome = state.results.get(node.index)
        if node.failed:
          status = 'failed'
        elif node.completed:
          status = 'completed'
        else:
          status = 'pending'
        endpoints.append(EndpointReport(
          index=node.index,
          name=node.name,
          method=node.endpoint.method,
          url=node.endpoint.url,
          difficulty=node.difficulty,
          status=status,
          error=node.error,
          attempts=outcome.attempts if outcome else 0,
          profile=outcome.profile if outcome else None,
        ))

    status = state.status
    error = None
    if status is None:
      status = CompletionStatus.ERROR
      error = 'Run stopped before reaching completion'

    return RunReport(
      status=status,
      target=state.target,
      trace_path=state.trace_path,
      credentials_path=state.credentials_path,
      credential_count=state.credential_count,
      request_count=len(state.endpoints),
      security_endpoint_count=sum(1 for endpoint in state.endpoints if endpoint.is_security_endpoint),
      master_endpoint=master.endpoint.identifier() if master else None,
      analysis=state.analysis,
      completed_count=plan.completed_count if plan else 0,
      failed_count=plan.failed_count if plan else 0,
      remaining_count=plan.remaining_count if plan else 0,
      steps_taken=state.steps_taken,
      max_steps=state.max_steps,
      artifact_path=state.artifact_path,
      artifact_produced=state.artifact_path is not None,
      statistics=plan.statistics() if plan else {},
      endpoints=endpoints,
      warnings=list(state.warnings),
      execution_time=execution_time,
      error=error,
    )

  def _persist(self, report: RunReport, report_dir: str) -> None:
    base = Path(report_dir)
    targets = [(str(base / name), presenter) for name, presenter in self._report_presenters.items()]
    report.report_paths = [path for path, _ in targets]
    written: List[str] = []
    for path, presenter in targets:
      try:
        written.append(self._report_store.write_text(path, presenter.present(report)))
      except ArtifactWriteError as exc:
        logger.error('Could not write report: %s', exc)
        report.warnings.append(str(exc))
    report.report_paths = written
