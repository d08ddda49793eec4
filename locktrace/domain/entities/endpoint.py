"""Domain entity for a captured HTTP interaction."""
from __future__ import annotations

import json
import shlex
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional
from urllib.parse import urlencode, urlsplit, urlunsplit

AUTH_HEADER_NAMES = frozenset({'authorization', 'cookie', 'x-auth-token', 'x-api-key'})
AUTH_URL_MARKERS = ('login', 'auth')


@dataclass(frozen=True)
class Endpoint:
  """One normalized request, identified by its position in the trace."""

  index: int
  method: str
  url: str
  headers: Dict[str, str] = field(default_factory=dict)
  query_params: Dict[str, str] = field(default_factory=dict)
  body: Optional[Any] = None
  timestamp: Optional[datetime] = None

  @property
  def path(self) -> str:
    return urlsplit(self.url).path or '/'

  @property
  def host(self) -> str:
    return (urlsplit(self.url).hostname or '').lower()

  @property
  def path_segments(self) -> List[str]:
    return [part for part in self.path.split('/') if part]

  @property
  def name(self) -> str:
    segments = self.path_segments
    if not segments:
      return f'{self.method}_root'.lower()
    return f'{self.method}_{segments[-1]}'.lower()

  @property
  def has_auth_headers(self) -> bool:
    return any(name.lower() in AUTH_HEADER_NAMES for name in self.headers)

  @property
  def is_auth_endpoint(self) -> bool:
    url = self.url.lower()
    return any(marker in url for marker in AUTH_URL_MARKERS)

  @property
  def is_security_endpoint(self) -> bool:
    return self.is_auth_endpoint or self.has_auth_headers

  @property
  def kind(self) -> str:
    if self.is_auth_endpoint:
      return 'authentication'
    if '/api/' in self.url:
      return 'api'
    if self.method == 'GET':
      return 'read'
    if self.method in ('POST', 'PUT', 'PATCH'):
      return 'write'
    if self.method == 'DELETE':
      return 'delete'
    return 'other'

  def identifier(self) -> str:
    return f'#{self.index} {self.method} {self.path}'

  def full_url(self) -> str:
    """URL with the captured query parameters applied."""
    parts = urlsplit(self.url)
    if not self.query_params or parts.query:
      return self.url
    return urlunsplit(parts._replace(query=urlencode(self.query_params)))

  def to_curl(self) -> str:
    """Render the request as a curl command line."""
    tokens = ['curl', '-X', self.method, shlex.quote(self.full_url())]
    for name, value in self.headers.items():
      tokens.extend(['-H', shlex.quote(f'{name}: {value}')])
    if self.body is not None:
      payload = self.body if isinstance(self.body, str) else json.dumps(self.body, ensure_ascii=False)
      tokens.extend(['-d', shlex.quote(payload)])
    return ' '.join(tokens)
