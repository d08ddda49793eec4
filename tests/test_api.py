from __future__ import annotations

import json

import pytest
from fastapi.testclient import TestClient

from locktrace.adapters.input.api.fastapi_adapter import FastAPIAdapter
from locktrace.adapters.output.files.json_trace_repository import JsonTraceRepository
from locktrace.adapters.presentation.json_presenter import JsonPresenter
from locktrace.application.handlers.plan_inspection_handler import PlanInspectionHandler
from locktrace.application.queries.run_report import RunReport
from locktrace.domain.value_objects.workflow import CompletionStatus, FrontierMode


class FakeService:
  def __init__(self):
    self.commands = []
    self._inspector = PlanInspectionHandler(JsonTraceRepository())

  async def execute_run(self, command):
    self.commands.append(command)
    return RunReport(status=CompletionStatus.SUCCESS, target=command.target, request_count=3)

  def inspect_trace(self, trace_path, target=None, method=None, domain=None):
    return self._inspector.handle(trace_path, target, method=method, domain=domain)


@pytest.fixture
def service():
  return FakeService()


@pytest.fixture
def client(service):
  return TestClient(FastAPIAdapter(service, JsonPresenter()).app)


class TestRoutes:
  def test_health(self, client):
    response = client.get('/health')

    assert response.status_code == 200
    assert response.json() == {'status': 'healthy'}

  def test_create_run(self, client, service):
    response = client.post('/api/v1/runs', json={
      'target': 'download invoices',
      'trace_path': 'capture.har',
      'variables': {'month': '2024-05'},
      'frontier_mode': 'single',
      'synthesize': False,
    })

    assert response.status_code == 200
    payload = response.json()
    assert payload['status'] == 'success'
    assert payload['analysis']['request_count'] == 3
    command, = service.commands
    assert command.variables == {'month': '2024-05'}
    assert command.frontier_mode is FrontierMode.SINGLE
    assert command.synthesize_artifact is False

  def test_run_payload_is_validated(self, client, service):
    assert client.post('/api/v1/runs', json={'target': 'x', 'max_steps': -1}).status_code == 422
    assert client.post('/api/v1/runs', json={'target': '   '}).status_code == 422
    assert client.post('/api/v1/runs', json={}).status_code == 422
    assert service.commands == []

  def test_plan(self, client, tmp_path, login_entries):
    trace = tmp_path / 'capture.har'
    trace.write_text(json.dumps({'log': {'entries': login_entries}}), encoding='utf-8')

    response = client.post('/api/v1/plans', json={'trace_path': str(trace), 'target': 'account'})

    assert response.status_code == 200
    payload = response.json()
    assert payload['master_endpoint'] == '#2 GET /account'
    assert payload['statistics']['total_endpoints'] == 3
    assert payload['frontier'] == [0]

  def test_plan_for_missing_trace(self, client, tmp_path):
    response = client.post('/api/v1/plans', json={'trace_path': str(tmp_path / 'missing.har')})

    assert response.status_code == 400
    assert 'Trace file not found' in response.json()['detail']

  def test_plan_filtered_by_method(self, client, tmp_path, login_entries):
    trace = tmp_path / 'capture.har'
    trace.write_text(json.dumps({'log': {'entries': login_entries}}), encoding='utf-8')

    response = client.post('/api/v1/plans', json={'trace_path': str(trace), 'method': 'get'})

    assert response.status_code == 200
    assert [node['index'] for node in response.json()['nodes']] == [0, 2]
