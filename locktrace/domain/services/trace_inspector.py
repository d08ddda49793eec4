"""Helpers for slicing and summarising a normalized trace."""
from __future__ import annotations

import re
from typing import Any, Dict, Iterable, List, Mapping, Optional, Set

from locktrace.domain.entities.endpoint import Endpoint

_NUMERIC = re.compile(r'^\d+$')
_UUID = re.compile(r'^[a-f0-9-]{36}$', re.IGNORECASE)
_OBJECT_ID = re.compile(r'^[a-f0-9]{24}$')
_TOKEN = re.compile(r'^[a-zA-Z0-9]{20,}$')
_ID_KEY = re.compile(r'^(id|_id|objectId)$', re.IGNORECASE)
_TIME_KEY = re.compile(r'timestamp|time|created|updated', re.IGNORECASE)
_USER_KEY = re.compile(r'user|uid', re.IGNORECASE)
_TIME_PARAM = re.compile(r'^(timestamp|time|ts)$', re.IGNORECASE)
_USER_PARAM = re.compile(r'^(user|userId|uid)$', re.IGNORECASE)


def filter_endpoints(
  endpoints: Iterable[Endpoint],
  method: Optional[str] = None,
  domain: Optional[str] = None,
  path: Optional[str] = None,
  has_body: Optional[bool] = None,
) -> List[Endpoint]:
  filtered = list(endpoints)
  if method:
    filtered = [ep for ep in filtered if ep.method == method.upper()]
  if domain:
    filtered = [ep for ep in filtered if domain.lower() in ep.host]
  if path:
    filtered = [ep for ep in filtered if path in ep.path]
  if has_body is not None:
    filtered = [ep for ep in filtered if (ep.body is not None) == has_body]
  return filtered


def group_by_domain(endpoints: Iterable[Endpoint]) -> Dict[str, List[Endpoint]]:
  grouped: Dict[str, List[Endpoint]] = {}
  for endpoint in endpoints:
    if not endpoint.host:
      continue
    grouped.setdefault(endpoint.host, []).append(endpoint)
  return grouped


def path_pattern(path: str) -> str:
  """Replace numeric ids, UUIDs and object ids with placeholders."""
  segments = []
  for segment in path.split('/'):
    if _NUMERIC.match(segment):
      segments.append('{id}')
    elif _UUID.match(segment):
      segments.append('{uuid}')
    elif _OBJECT_ID.match(segment):
      segments.append('{objectId}')
    else:
      segments.append(segment)
  return '/'.join(segments)


def find_similar(endpoints: Iterable[Endpoint]) -> List[Dict[str, Any]]:
  """Groups of endpoints that share a method and a templated path."""
  patterns: Dict[str, List[Endpoint]] = {}
  for endpoint in endpoints:
    key = f'{endpoint.method}:{path_pattern(endpoint.path)}'
    patterns.setdefault(key, []).append(endpoint)
  return [
    {'pattern': pattern, 'endpoints': members}
    for pattern, members in patterns.items()
    if len(members) > 1
  ]


def extract_dynamic_values(endpoints: Iterable[Endpoint]) -> Dict[str, List[str]]:
  values: Dict[str, Set[str]] = {'ids': set(), 'tokens': set(), 'timestamps': set(), 'user_ids': set()}

  for endpoint in endpoints:
    for segment in endpoint.path_segments:
      if _NUMERIC.match(segment) or _UUID.match(segment):
        values['ids'].add(segment)
      elif _TOKEN.match(segment):
        values['tokens'].add(segment)

    for key, value in endpoint.query_params.items():
      if _TIME_PARAM.match(key):
        values['timestamps'].add(value)
      if _USER_PARAM.match(key):
        values['user_ids'].add(value)

    if isinstance(endpoint.body, Mapping):
      _collect_from_body(endpoint.body, values)

  return {key: sorted(found) for key, found in values.items()}


def _collect_from_body(body: Mapping[str, Any], values: Dict[str, Set[str]]) -> None:
  for key, value in body.items():
    if isinstance(value, str) and value:
      if _ID_KEY.match(key):
        values['ids'].add(value)
      if _TIME_KEY.search(key):
        values['timestamps'].add(value)
      if _USER_KEY.search(key):
        values['user_ids'].add(value)
    elif isinstance(value, Mapping):
      _collect_from_body(value, values)
    elif isinstance(value, list):
      for item in value:
        if isinstance(item, Mapping):
          _collect_from_body(item, values)
