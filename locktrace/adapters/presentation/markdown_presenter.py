"""Markdown presenter for report-style outputs."""
from __future__ import annotations

from typing import List

from locktrace.application.queries.plan_inspection import PlanInspection
from locktrace.application.queries.run_report import RunReport
from locktrace.ports.input.result_presenter import ResultPresenter


def _cell(value: object) -> str:
  return str(value if value is not None else '').replace('|', '\\|').replace('\n', ' ')


class MarkdownPresenter(ResultPresenter):
  def present(self, report: RunReport) -> str:
    lines = [
      '# Locktrace Report',
      '',
      f'**Target:** {report.target}',
      f'**Status:** {report.status.value}',
      f'**Generated:** {report.timestamp.isoformat()}',
      f'**Execution time:** {report.execution_time:.2f}s',
      '',
      '## Analysis',
      f'- Requests analysed: {report.request_count}',
      f'- Security endpoints: {report.security_endpoint_count}',
      f'- Master endpoint: {report.master_endpoint or "(none)"}',
      '',
    ]
    if report.analysis:
      lines.extend([report.analysis, ''])

    lines.extend([
      '## Results',
      f'- Completed: {report.completed_count}',
      f'- Failed: {report.failed_count}',
      f'- Remaining: {report.remaining_count}',
      f'- Steps: {report.steps_taken}/{report.max_steps}',
      f'- Artifact: {report.artifact_path if report.artifact_produced else "not produced"}',
      '',
    ])

    if report.endpoints:
      lines.extend([
        '## Endpoints',
        '| # | Method | URL | Difficulty | Status | Error |',
        '| --- | --- | --- | --- | --- | --- |',
      ])
      for endpoint in report.endpoints:
        lines.append(
          f'| {endpoint.index} | {endpoint.method} | {_cell(endpoint.url)} | {endpoint.difficulty} '
          f'| {endpoint.status} | {_cell(endpoint.error)} |'
        )
      lines.append('')

    if report.warnings:
      lines.append('## Warnings')
      lines.extend(f'- {warning}' for warning in report.warnings)
      lines.append('')

    if report.error:
      lines.extend([f'**Error:** {report.error}', ''])

    return '\n'.join(lines)

  def present_plan(self, inspection: PlanInspection) -> str:
    lines: List[str] = [
      '# Execution Plan',
      '',
      f'**Trace:** {inspection.trace_path}',
      f'**Endpoints:** {len(inspection.nodes)} of {inspection.entry_count} entries '
      f'({inspection.filtered_count} filtered)',
      f'**Master endpoint:** {inspection.master_endpoint or "(none)"}',
      '',
      '| # | Name | Method | URL | Difficulty | Prerequisites |',
      '| --- | --- | --- | --- | --- | --- |',
    ]
    for node in inspection.nodes:
      prerequisites = ', '.join(str(index) for index in node['prerequisites']) or '-'
      lines.append(
        f"| {node['index']} | {node['name']} | {node['method']} | {_cell(node['url'])} "
        f"| {node['difficulty']} | {prerequisites} |"
      )
    if inspection.warnings:
      lines.extend(['', '## Warnings'])
      lines.extend(f'- {warning}' for warning in inspection.warnings)
    return '\n'.join(lines)

  def present_error(self, error: Exception) -> str:
    return f'# Error\n\n{error}'
