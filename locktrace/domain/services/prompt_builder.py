"""Domain service that writes the prompts sent to the reasoning service."""
from __future__ import annotations

import json
from typing import Any, Iterable, List, Mapping, Optional, Sequence

from locktrace.domain.entities.endpoint import Endpoint
from locktrace.domain.entities.execution_plan import PlanNode

_PREVIEW_CHARS = 1500
PREREQUISITE_SECTION_CHARS = 12000


def _dump(value: Any) -> str:
  if isinstance(value, str):
    text = value
  else:
    text = json.dumps(value, ensure_ascii=False, indent=2, default=str)
  if len(text) > _PREVIEW_CHARS:
    return text[:_PREVIEW_CHARS] + '...'
  return text


class PromptBuilder:
  """Turns plan data into plain-text prompts."""

  @staticmethod
  def build_analysis_prompt(target: str, endpoints: Sequence[Endpoint]) -> str:
    lines = [
      f'Analyze these captured HTTP requests and identify the main workflow for: "{target}"',
      '',
      'Requests:',
    ]
    for position, endpoint in enumerate(endpoints, start=1):
      lines.append(f'{position}. {endpoint.method} {endpoint.url}')
    lines.extend([
      '',
      'Identify:',
      '1. The request that accomplishes the goal',
      '2. Any prerequisite authentication or session requests',
      '3. The logical order in which the requests depend on each other',
      '',
      'Return a JSON object with the analysis.',
    ])
    return '\n'.join(lines)

  @staticmethod
  def build_endpoint_prompt(
    target: str,
    node: PlanNode,
    variables: Mapping[str, str],
    prerequisite_secrets: Optional[Mapping[str, Any]] = None,
  ) -> str:
    endpoint = node.endpoint
    lines = [
      f'Examine this request in the context of the goal: "{target}"',
      '',
      f'Request: {endpoint.method} {endpoint.url}',
      f'Kind: {endpoint.kind} (difficulty {node.difficulty}/10)',
      f'Headers: {_dump(endpoint.headers)}',
    ]
    if endpoint.query_params:
      lines.append(f'Query parameters: {_dump(endpoint.query_params)}')
    if endpoint.body is not None:
      lines.append(f'Body: {_dump(endpoint.body)}')
    lines.extend(['', 'Equivalent curl:', endpoint.to_curl(), ''])

    if prerequisite_secrets:
      lines.append('Values extracted from prerequisite requests:')
      lines.extend(PromptBuilder._prerequisite_lines(prerequisite_secrets))
      lines.append('')

    lines.extend([
      'Identify:',
      '1. What this request does',
      '2. Required credentials and where they come from',
      '3. Dynamic tokens that must be extracted from earlier responses',
      '4. Dependencies on other requests',
      '',
      f'Variables available: {json.dumps(dict(variables), ensure_ascii=False)}',
    ])
    return '\n'.join(lines)

  @staticmethod
  def _prerequisite_lines(prerequisite_secrets: Mapping[str, Any]) -> List[str]:
    """At most PREREQUISITE_SECTION_CHARS of notes, in the given order."""
    lines: List[str] = []
    used = 0
    for position, (name, secrets) in enumerate(prerequisite_secrets.items()):
      line = f'- {name}: {_dump(secrets)}'
      if used + len(line) > PREREQUISITE_SECTION_CHARS:
        lines.append(f'- ({len(prerequisite_secrets) - position} more prerequisite(s) omitted)')
        break
      lines.append(line)
      used += len(line) + 1
    return lines

  @staticmethod
  def build_synthesis_prompt(
    target: str,
    master: Optional[PlanNode],
    completed: Iterable[PlanNode],
    variables: Mapping[str, str],
  ) -> str:
    lines = [
      f'Write a complete Python integration module for: "{target}"',
      '',
      f'Main request: {master.endpoint.identifier() if master else "unknown"}',
      '',
      'Analysed requests:',
    ]
    for node in completed:
      lines.append(f'- {node.endpoint.method} {node.endpoint.url}')
      if node.secrets:
        lines.append(f'  Notes: {_dump(node.secrets)}')
    lines.extend([
      '',
      'Requirements:',
      '1. Use requests or httpx for the HTTP calls',
      '2. Handle authentication headers and cookies',
      '3. Extract dynamic tokens from responses',
      '4. Raise clear errors on failed calls',
      '5. Keep it modular and reusable, with docstrings',
      '',
      f'Variables: {json.dumps(dict(variables), ensure_ascii=False)}',
      '',
      'Return only the Python source code.',
    ])
    return '\n'.join(lines)
