"""Plain text presenter for terminal output."""
from __future__ import annotations

from typing import List

from locktrace.application.queries.plan_inspection import PlanInspection
from locktrace.application.queries.run_report import RunReport
from locktrace.ports.input.result_presenter import ResultPresenter

_RULE = '=' * 60


def _section(title: str) -> List[str]:
  return [_RULE, title, _RULE]


class TextPresenter(ResultPresenter):
  def present(self, report: RunReport) -> str:
    lines = _section(f'LOCKTRACE: {report.status.value.upper()}')
    lines.extend([
      f'Target: {report.target}',
      f'Requests analysed: {report.request_count} ({report.security_endpoint_count} security)',
      f'Master endpoint: {report.master_endpoint or "(none)"}',
      f'Completed: {report.completed_count}  Failed: {report.failed_count}  Remaining: {report.remaining_count}',
      f'Steps: {report.steps_taken}/{report.max_steps}',
      '',
    ])

    if report.artifact_produced:
      lines.extend([f'Integration module: {report.artifact_path}', ''])

    failed = [endpoint for endpoint in report.endpoints if endpoint.status == 'failed']
    if failed:
      lines.extend(_section('FAILED ENDPOINTS'))
      for endpoint in failed:
        lines.append(f'- {endpoint.method} {endpoint.url}: {endpoint.error}')
      lines.append('')

    if report.warnings:
      lines.extend(_section('WARNINGS'))
      lines.extend(f'- {warning}' for warning in report.warnings)
      lines.append('')

    if report.report_paths:
      lines.append(f'Reports: {", ".join(report.report_paths)}')
    lines.append(f'Execution time: {report.execution_time:.2f}s')
    if report.error:
      lines.append(f'ERROR: {report.error}')
    return '\n'.join(lines)

  def present_plan(self, inspection: PlanInspection) -> str:
    lines = _section('EXECUTION PLAN')
    lines.append(f'Trace: {inspection.trace_path}')
    lines.append(
      f'{len(inspection.nodes)} endpoints from {inspection.entry_count} entries '
      f'({inspection.filtered_count} filtered)'
    )
    if inspection.master_endpoint:
      lines.append(f'Master endpoint: {inspection.master_endpoint}')
    lines.append('')

    for node in inspection.nodes:
      marker = '*' if node['index'] in inspection.frontier else ' '
      lines.append(f"{marker} [{node['difficulty']:>2}] #{node['index']} {node['method']} {node['url']}")
      for edge in inspection.edges:
        if edge['target'] == node['index']:
          lines.append(f"        after #{edge['source']} ({edge['reason']})")
    lines.append('')
    lines.append('* = ready to process')

    if inspection.domains:
      lines.extend(['', 'Domains:'])
      lines.extend(f'  {domain}: {count}' for domain, count in inspection.domains.items())
    if inspection.similar:
      lines.extend(['', 'Similar endpoints:'])
      lines.extend(f"  {group['pattern']} x{group['count']}" for group in inspection.similar)
    if inspection.warnings:
      lines.extend(['', *_section('WARNINGS')])
      lines.extend(f'- {warning}' for warning in inspection.warnings)
    return '\n'.join(lines)

  def present_error(self, error: Exception) -> str:
    return f'ERROR: {error}'
