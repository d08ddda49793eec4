"""Input port defining the locktrace service contract."""
from __future__ import annotations

from typing import Optional, Protocol

from locktrace.application.commands.trace_run_command import TraceRunCommand
from locktrace.application.queries.plan_inspection import PlanInspection
from locktrace.application.queries.run_report import RunReport


class LocktraceService(Protocol):
  async def execute_run(self, command: TraceRunCommand) -> RunReport:
    ...

  def inspect_trace(
    self,
    trace_path: str,
    target: Optional[str] = None,
    method: Optional[str] = None,
    domain: Optional[str] = None,
  ) -> PlanInspection:
    ...
