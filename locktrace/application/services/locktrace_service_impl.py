"""Implementation of the locktrace service port."""
from __future__ import annotations

from typing import Optional

from locktrace.application.commands.trace_run_command import TraceRunCommand
from locktrace.application.handlers.plan_inspection_handler import PlanInspectionHandler
from locktrace.application.handlers.trace_run_handler import TraceRunHandler
from locktrace.application.queries.plan_inspection import PlanInspection
from locktrace.application.queries.run_report import RunReport
from locktrace.ports.input.locktrace_service import LocktraceService


class LocktraceServiceImpl(LocktraceService):
  """Concrete implementation that delegates to the appropriate handler."""

  def __init__(self, run_handler: TraceRunHandler, inspection_handler: PlanInspectionHandler) -> None:
    self._run_handler = run_handler
    self._inspection_handler = inspection_handler

  async def execute_run(self, command: TraceRunCommand) -> RunReport:
    return await self._run_handler.handle(command)

  def inspect_trace(
    self,
    trace_path: str,
    target: Optional[str] = None,
    method: Optional[str] = None,
    domain: Optional[str] = None,
  ) -> PlanInspection:
    return self._inspection_handler.handle(trace_path, target, method=method, domain=domain)
