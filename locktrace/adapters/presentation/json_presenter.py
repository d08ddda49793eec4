"""JSON presenter implementation."""
from __future__ import annotations

import json

from locktrace.application.queries.plan_inspection import PlanInspection
from locktrace.application.queries.run_report import RunReport
from locktrace.ports.input.result_presenter import ResultPresenter


class JsonPresenter(ResultPresenter):
  def present(self, report: RunReport) -> str:
    return json.dumps(report.to_dict(), ensure_ascii=False, indent=2, default=str)

  def present_plan(self, inspection: PlanInspection) -> str:
    return json.dumps(inspection.to_dict(), ensure_ascii=False, indent=2, default=str)

  def present_error(self, error: Exception) -> str:
    return json.dumps({'status': 'error', 'error': str(error)}, ensure_ascii=False, indent=2)
