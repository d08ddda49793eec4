"""Shared fixtures: HAR entry builders and scripted reasoning fakes."""
from __future__ import annotations

import json
from typing import Any, Callable, Dict, List, Optional

import pytest

from locktrace.agents.common.reasoning_client import ReasoningClient
from locktrace.agents.trace_agent.graph import TraceAgentRunner
from locktrace.adapters.output.files.file_artifact_store import FileArtifactStore
from locktrace.domain.value_objects.reasoning_profile import ReasoningProfile


def build_entry(
  method: str,
  url: str,
  headers: Optional[Dict[str, str]] = None,
  query: Optional[Dict[str, str]] = None,
  body: Any = None,
  started: Optional[str] = None,
) -> Dict[str, Any]:
  request: Dict[str, Any] = {
    'method': method,
    'url': url,
    'headers': [{'name': name, 'value': value} for name, value in (headers or {}).items()],
    'queryString': [{'name': name, 'value': value} for name, value in (query or {}).items()],
  }
  if body is not None:
    request['postData'] = {
      'mimeType': 'application/json',
      'text': body if isinstance(body, str) else json.dumps(body),
    }
  entry: Dict[str, Any] = {'request': request}
  if started:
    entry['startedDateTime'] = started
  return entry


class ScriptedReasoningService:
  """Answers with `respond(prompt)`; raises for prompts matching `fail_when`."""

  def __init__(
    self,
    respond: Optional[Callable[[str], str]] = None,
    fail_when: Optional[Callable[[str], bool]] = None,
    script: Optional[List[Any]] = None,
  ) -> None:
    self._respond = respond or (lambda prompt: 'notes')
    self._fail_when = fail_when
    self._script = list(script or [])
    self.calls: List[tuple] = []

  async def complete(self, prompt, profile):
    self.calls.append((prompt, profile))
    if self._script:
      item = self._script.pop(0)
      if isinstance(item, BaseException):
        raise item
      return item
    if self._fail_when is not None and self._fail_when(prompt):
      raise RuntimeError('upstream unavailable')
    return self._respond(prompt)


class RecordingSleep:
  def __init__(self) -> None:
    self.delays: List[float] = []

  async def __call__(self, delay: float) -> None:
    self.delays.append(delay)


@pytest.fixture
def make_entry():
  return build_entry


@pytest.fixture
def profiles():
  return (
    ReasoningProfile(name='primary', model='primary-model'),
    ReasoningProfile(name='fallback', model='fallback-model'),
  )


@pytest.fixture
def recorded_sleep():
  return RecordingSleep()


@pytest.fixture
def login_entries():
  return [
    build_entry('GET', 'https://shop.example.com/login', started='2024-05-01T10:00:00Z'),
    build_entry(
      'POST',
      'https://shop.example.com/login',
      body={'username': 'ana', 'password': 'secret'},
      started='2024-05-01T10:00:05Z',
    ),
    build_entry(
      'GET',
      'https://shop.example.com/account',
      headers={'Cookie': 'session=abc'},
      started='2024-05-01T10:00:09Z',
    ),
  ]


@pytest.fixture
def make_runner(profiles, recorded_sleep, tmp_path):
  def factory(service, **kwargs) -> TraceAgentRunner:
    primary, fallback = profiles
    client = ReasoningClient(service, primary, fallback, sleep=recorded_sleep, **kwargs)
    return TraceAgentRunner(
      reasoning_client=client,
      artifact_store=FileArtifactStore(str(tmp_path)),
      artifact_path='forged_integration.py',
    )
  return factory


@pytest.fixture
def scripted_service():
  return ScriptedReasoningService
