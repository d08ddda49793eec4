from __future__ import annotations

import json

import pytest
from click.testing import CliRunner

from locktrace.adapters.input.cli.cli_adapter import CLIAdapter
from locktrace.adapters.output.files.json_trace_repository import JsonTraceRepository
from locktrace.adapters.presentation.text_presenter import TextPresenter
from locktrace.application.handlers.plan_inspection_handler import PlanInspectionHandler
from locktrace.application.queries.run_report import RunReport
from locktrace.domain.errors import ConfigurationError
from locktrace.domain.value_objects.workflow import CompletionStatus, FrontierMode


class FakeService:
  def __init__(self, status=CompletionStatus.SUCCESS, error=None):
    self.status = status
    self.error = error
    self.commands = []

  async def execute_run(self, command):
    self.commands.append(command)
    return RunReport(status=self.status, target=command.target, error=self.error)

  def inspect_trace(self, trace_path, target=None, method=None, domain=None):
    raise AssertionError('not used by the CLI')


@pytest.fixture
def trace_file(tmp_path, login_entries):
  path = tmp_path / 'capture.har'
  path.write_text(json.dumps({'entries': login_entries}), encoding='utf-8')
  return str(path)


def _cli(service_factory):
  adapter = CLIAdapter(service_factory, lambda: PlanInspectionHandler(JsonTraceRepository()), TextPresenter())
  return adapter.build()


def _unavailable():
  raise ConfigurationError('OPENAI_API_KEY must be set in environment or .env file')


class TestRunCommand:
  def test_builds_command_from_options(self, trace_file):
    service = FakeService()

    result = CliRunner().invoke(_cli(lambda: service), [
      'run',
      '--target', 'open my account',
      '--trace-path', trace_file,
      '--max-steps', '5',
      '-v', 'month=2024-05',
      '--variables', 'user=ana',
      '--no-synthesize',
      '--key-model', 'gpt-x',
      '--batch-size', '4',
      '--single-step',
      '--strict-batches',
    ])

    assert result.exit_code == 0, result.output
    assert 'LOCKTRACE: SUCCESS' in result.output
    command, = service.commands
    assert command.trace_path == trace_file
    assert command.max_steps == 5
    assert command.variables == {'month': '2024-05', 'user': 'ana'}
    assert command.synthesize_artifact is False
    assert command.key_model == 'gpt-x'
    assert command.batch_size == 4
    assert command.frontier_mode is FrontierMode.SINGLE
    assert command.resilient is False

  def test_defaults(self, trace_file):
    service = FakeService()

    result = CliRunner().invoke(_cli(lambda: service), ['run', '--target', 'x', '--trace-path', trace_file])

    assert result.exit_code == 0, result.output
    command, = service.commands
    assert command.max_steps == 20
    assert command.synthesize_artifact is True
    assert command.frontier_mode is FrontierMode.BATCH
    assert command.resilient is True

  def test_partial_run_exits_cleanly(self, trace_file):
    result = CliRunner().invoke(
      _cli(lambda: FakeService(status=CompletionStatus.PARTIAL)), ['run', '--target', 'x', '--trace-path', trace_file]
    )

    assert result.exit_code == 0
    assert 'LOCKTRACE: PARTIAL' in result.output

  def test_error_report_exits_non_zero(self, trace_file):
    service = FakeService(status=CompletionStatus.ERROR, error='Trace file not found: x.har')

    result = CliRunner().invoke(_cli(lambda: service), ['run', '--target', 'x', '--trace-path', 'x.har'])

    assert result.exit_code == 1
    assert 'Trace file not found: x.har' in result.output

  def test_missing_api_key_exits_non_zero(self, trace_file):
    result = CliRunner().invoke(_cli(_unavailable), ['run', '--target', 'x', '--trace-path', trace_file])

    assert result.exit_code == 1
    assert 'OPENAI_API_KEY' in result.output

  def test_bad_variable_exits_non_zero(self, trace_file):
    result = CliRunner().invoke(
      _cli(lambda: FakeService()), ['run', '--target', 'x', '--trace-path', trace_file, '-v', 'novalue']
    )

    assert result.exit_code == 1
    assert 'key=value' in result.output

  def test_target_is_required(self):
    result = CliRunner().invoke(_cli(lambda: FakeService()), ['run'])

    assert result.exit_code == 2


class TestInspectCommand:
  def test_prints_plan_without_api_key(self, trace_file):
    result = CliRunner().invoke(_cli(_unavailable), ['inspect', '--trace-path', trace_file, '--target', 'account'])

    assert result.exit_code == 0, result.output
    assert 'EXECUTION PLAN' in result.output
    assert 'Master endpoint: #2 GET /account' in result.output
    assert '* [ 2] #0 GET https://shop.example.com/login' in result.output

  def test_method_filter_narrows_plan(self, trace_file):
    result = CliRunner().invoke(_cli(_unavailable), ['inspect', '--trace-path', trace_file, '--method', 'post'])

    assert result.exit_code == 0, result.output
    assert '#1 POST https://shop.example.com/login' in result.output
    assert '#2 GET' not in result.output

  def test_missing_trace(self, tmp_path):
    result = CliRunner().invoke(_cli(_unavailable), ['inspect', '--trace-path', str(tmp_path / 'missing.har')])

    assert result.exit_code == 1
    assert 'Trace file not found' in result.output
