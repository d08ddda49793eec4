from __future__ import annotations

import json

import pytest

from locktrace.adapters.presentation.json_presenter import JsonPresenter
from locktrace.adapters.presentation.markdown_presenter import MarkdownPresenter
from locktrace.adapters.presentation.text_presenter import TextPresenter
from locktrace.application.queries.plan_inspection import PlanInspection
from locktrace.application.queries.run_report import EndpointReport, RunReport
from locktrace.domain.value_objects.workflow import CompletionStatus


@pytest.fixture
def report():
  return RunReport(
    status=CompletionStatus.PARTIAL,
    target='download invoices',
    trace_path='capture.har',
    request_count=3,
    security_endpoint_count=2,
    master_endpoint='#2 GET /invoices',
    analysis='login, then list invoices',
    completed_count=2,
    failed_count=1,
    remaining_count=1,
    steps_taken=2,
    max_steps=2,
    artifact_path='/tmp/forged_integration.py',
    artifact_produced=True,
    endpoints=[
      EndpointReport(0, 'post_login', 'POST', 'https://a.example.com/login', 4, 'completed', attempts=1),
      EndpointReport(1, 'get_me', 'GET', 'https://a.example.com/me|x', 2, 'failed', error='upstream unavailable', attempts=3),
      EndpointReport(2, 'get_invoices', 'GET', 'https://a.example.com/invoices', 2, 'pending'),
    ],
    warnings=['Endpoint get_me failed: upstream unavailable'],
  )


@pytest.fixture
def inspection():
  return PlanInspection(
    trace_path='capture.har',
    entry_count=4,
    filtered_count=1,
    master_endpoint='#1 GET /invoices',
    nodes=[
      {'index': 0, 'name': 'post_login', 'method': 'POST', 'url': 'https://a.example.com/login',
       'kind': 'authentication', 'difficulty': 4, 'prerequisites': []},
      {'index': 1, 'name': 'get_invoices', 'method': 'GET', 'url': 'https://a.example.com/invoices',
       'kind': 'read', 'difficulty': 2, 'prerequisites': [0]},
    ],
    edges=[{'source': 0, 'target': 1, 'reason': 'authentication'}],
    frontier=[0],
    domains={'a.example.com': 2},
    similar=[{'pattern': 'GET:/invoices/{id}', 'count': 2, 'endpoints': []}],
  )


class TestJsonPresenter:
  def test_sections(self, report):
    payload = json.loads(JsonPresenter().present(report))

    assert payload['status'] == 'partial'
    assert payload['metadata']['target'] == 'download invoices'
    assert payload['analysis']['master_endpoint'] == '#2 GET /invoices'
    assert payload['results'] == {
      'completed': 2,
      'failed': 1,
      'remaining': 1,
      'steps_taken': 2,
      'max_steps': 2,
      'artifact_produced': True,
      'artifact_path': '/tmp/forged_integration.py',
    }
    assert payload['endpoints'][1]['error'] == 'upstream unavailable'

  def test_plan(self, inspection):
    payload = json.loads(JsonPresenter().present_plan(inspection))

    assert payload['frontier'] == [0]
    assert payload['edges'][0]['reason'] == 'authentication'

  def test_error(self):
    assert json.loads(JsonPresenter().present_error(RuntimeError('bad'))) == {'status': 'error', 'error': 'bad'}


class TestMarkdownPresenter:
  def test_report(self, report):
    rendered = MarkdownPresenter().present(report)

    assert rendered.startswith('# Locktrace Report')
    assert '**Status:** partial' in rendered
    assert '- Master endpoint: #2 GET /invoices' in rendered
    assert '| 1 | GET | https://a.example.com/me\\|x | 2 | failed | upstream unavailable |' in rendered
    assert '## Warnings' in rendered

  def test_plan(self, inspection):
    rendered = MarkdownPresenter().present_plan(inspection)

    assert '| 1 | get_invoices | GET | https://a.example.com/invoices | 2 | 0 |' in rendered
    assert '| 0 | post_login | POST | https://a.example.com/login | 4 | - |' in rendered


class TestTextPresenter:
  def test_report(self, report):
    rendered = TextPresenter().present(report)

    assert 'LOCKTRACE: PARTIAL' in rendered
    assert 'Integration module: /tmp/forged_integration.py' in rendered
    assert '- GET https://a.example.com/me|x: upstream unavailable' in rendered
    assert 'Completed: 2  Failed: 1  Remaining: 1' in rendered

  def test_plan_marks_ready_endpoints(self, inspection):
    rendered = TextPresenter().present_plan(inspection)

    assert '* [ 4] #0 POST https://a.example.com/login' in rendered
    assert '  [ 2] #1 GET https://a.example.com/invoices' in rendered
    assert 'after #0 (authentication)' in rendered
    assert 'GET:/invoices/{id} x2' in rendered
