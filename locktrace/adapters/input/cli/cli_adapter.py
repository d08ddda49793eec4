"""CLI adapter for interacting with the locktrace service."""
from __future__ import annotations

import asyncio
from typing import Callable, Optional, Sequence, Tuple

import click

from locktrace.application.commands.trace_run_command import TraceRunCommand, parse_variables
from locktrace.application.handlers.plan_inspection_handler import PlanInspectionHandler
from locktrace.domain.errors import ConfigurationError, ValidationError
from locktrace.domain.value_objects.workflow import CompletionStatus, FrontierMode
from locktrace.ports.input.locktrace_service import LocktraceService
from locktrace.ports.input.result_presenter import ResultPresenter


class CLIAdapter:
  """`run` needs the reasoning service; `inspect` only reads the trace.

  Both collaborators are built lazily so `inspect` works without an API key.
  """

  def __init__(
    self,
    service_factory: Callable[[], LocktraceService],
    inspector_factory: Callable[[], PlanInspectionHandler],
    presenter: ResultPresenter,
  ):
    self._service_factory = service_factory
    self._inspector_factory = inspector_factory
    self._presenter = presenter

  def build(self) -> click.Group:
    @click.group()
    def cli() -> None:
      """Reconstruct the API workflow behind a captured browser trace."""

    @cli.command('run')
    @click.option('--target', required=True, help='What the reconstructed integration should accomplish')
    @click.option('--trace-path', default='network_requests.json', show_default=True, help='HAR-style capture file')
    @click.option('--credentials-path', default=None, help='Cookie JSON exported from the browser session')
    @click.option('--max-steps', default=20, show_default=True, type=click.IntRange(0, 500), help='Frontier passes allowed')
    @click.option('--variables', '-v', 'variables', multiple=True, help='key=value pair, repeatable')
    @click.option('--synthesize/--no-synthesize', default=True, show_default=True, help='Write the integration module')
    @click.option('--key-model', default=None, help='Override the primary model')
    @click.option('--batch-size', default=None, type=click.IntRange(min=1), help='Endpoints per pass (capped at 25)')
    @click.option('--single-step', is_flag=True, help='Process one endpoint per pass')
    @click.option('--strict-batches', is_flag=True, help='Fail a whole pass when one of its calls fails')
    @click.option('--report-dir', default=None, help='Where to write locktrace_report.json/.md')
    def run(
      target: str,
      trace_path: str,
      credentials_path: Optional[str],
      max_steps: int,
      variables: Tuple[str, ...],
      synthesize: bool,
      key_model: Optional[str],
      batch_size: Optional[int],
      single_step: bool,
      strict_batches: bool,
      report_dir: Optional[str],
    ) -> None:
      """Analyse a trace and synthesize an integration module.

      Examples:

        locktrace run --target "download monthly invoices" --trace-path capture.har

        locktrace run --target "create order" -v customer_id=42 --single-step
      """
      try:
        command = TraceRunCommand(
          target=target,
          trace_path=trace_path,
          credentials_path=credentials_path,
          max_steps=max_steps,
          variables=parse_variables(variables),
          synthesize_artifact=synthesize,
          key_model=key_model,
          batch_size=batch_size,
          frontier_mode=FrontierMode.SINGLE if single_step else FrontierMode.BATCH,
          resilient=not strict_batches,
          report_dir=report_dir,
        )
        service = self._service_factory()
      except (ValidationError, ConfigurationError) as exc:
        raise click.ClickException(str(exc)) from exc

      report = asyncio.run(service.execute_run(command))
      if report.status is CompletionStatus.ERROR:
        raise click.ClickException(report.error or 'Run failed')
      click.echo(self._presenter.present(report))

    @cli.command('inspect')
    @click.option('--trace-path', default='network_requests.json', show_default=True, help='HAR-style capture file')
    @click.option('--target', default=None, help='Goal used to pick the master endpoint')
    @click.option('--method', default=None, help='Only endpoints with this HTTP method')
    @click.option('--domain', default=None, help='Only endpoints whose host contains this text')
    def inspect(trace_path: str, target: Optional[str], method: Optional[str], domain: Optional[str]) -> None:
      """Print the execution plan without calling the reasoning service."""
      try:
        inspection = self._inspector_factory().handle(trace_path, target, method=method, domain=domain)
      except ValidationError as exc:
        raise click.ClickException(str(exc)) from exc
      click.echo(self._presenter.present_plan(inspection))

    return cli

  def run(self, args: Optional[Sequence[str]] = None) -> None:
    self.build()(args=args)


def main() -> None:
  """Console script: wire the container, set up logging and run the CLI."""
  from locktrace.common.config import get_settings
  from locktrace.common.container import create_cli_adapter
  from locktrace.common.log_config import configure_logging

  try:
    settings = get_settings()
  except ConfigurationError as exc:
    raise SystemExit(f'Error: {exc}') from exc
  configure_logging(settings.log_level)
  create_cli_adapter().run()
