"""Input port for formatting run reports and plan inspections."""
from __future__ import annotations

from typing import Any, Protocol

from locktrace.application.queries.plan_inspection import PlanInspection
from locktrace.application.queries.run_report import RunReport


class ResultPresenter(Protocol):
  def present(self, report: RunReport) -> Any:
    ...

  def present_plan(self, inspection: PlanInspection) -> Any:
    ...

  def present_error(self, error: Exception) -> Any:
    ...
