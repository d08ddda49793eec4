"""Domain service turning raw capture entries into Endpoints."""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Mapping, Optional
from urllib.parse import parse_qsl, urlsplit

from locktrace.domain.entities.endpoint import Endpoint
from locktrace.domain.errors import EntryParseError

logger = logging.getLogger(__name__)

STATIC_EXTENSIONS = (
  '.css', '.js', '.png', '.jpg', '.jpeg', '.gif', '.svg', '.ico', '.woff', '.woff2',
  '.ttf', '.eot', '.map', '.webp', '.avif', '.mp4', '.webm', '.ogg',
)

SKIPPED_DOMAINS = (
  'google-analytics.com',
  'googletagmanager.com',
  'facebook.com/tr',
  'doubleclick.net',
  'googlesyndication.com',
  'google.com/pagead',
  'amazon-adsystem.com',
  'jsdelivr.net',
  'unpkg.com',
  'cdnjs.cloudflare.com',
)

POLLING_MARKERS = ('/ping', '/health', '/heartbeat')

# Epoch values above this are milliseconds.
_MILLISECOND_THRESHOLD = 10 ** 11


@dataclass(frozen=True)
class NormalizedTrace:
  endpoints: List[Endpoint] = field(default_factory=list)
  skipped: List[EntryParseError] = field(default_factory=list)
  filtered: int = 0

  def warnings(self) -> List[str]:
    return [f'Skipped malformed {error.describe()}' for error in self.skipped]


class EndpointNormalizer:
  """Extracts method/url/headers/query/body from capture entries and drops noise."""

  def normalize(self, entries: Iterable[Mapping[str, Any]]) -> List[Endpoint]:
    return self.normalize_with_report(entries).endpoints

  def normalize_with_report(self, entries: Iterable[Mapping[str, Any]]) -> NormalizedTrace:
    endpoints: List[Endpoint] = []
    skipped: List[EntryParseError] = []
    filtered = 0

    for position, entry in enumerate(entries or []):
      try:
        if not isinstance(entry, Mapping):
          raise EntryParseError('entry is not an object', position=position, entry=entry)
        request = entry.get('request')
        if not request:
          continue
        endpoint = self._parse_entry(entry, request, index=len(endpoints), position=position)
      except EntryParseError as exc:
        logger.warning('Skipping malformed capture %s', exc.describe())
        skipped.append(exc)
        continue
      if self.should_skip(endpoint.method, endpoint.url):
        filtered += 1
        continue
      endpoints.append(endpoint)

    logger.info(
      'Normalized %d endpoints (%d filtered as noise, %d malformed)',
      len(endpoints), filtered, len(skipped),
    )
    return NormalizedTrace(endpoints=endpoints, skipped=skipped, filtered=filtered)

  @staticmethod
  def should_skip(method: str, url: str) -> bool:
    """Static assets, analytics/CDN hosts, preflights and polling calls are noise."""
    lowered = url.lower()
    path = urlsplit(lowered).path

    if path.endswith(STATIC_EXTENSIONS):
      return True
    if any(domain in lowered for domain in SKIPPED_DOMAINS):
      return True
    if method.upper() == 'OPTIONS':
      return True
    return any(marker in path for marker in POLLING_MARKERS)

  def _parse_entry(
    self, entry: Mapping[str, Any], request: Any, index: int, position: int
  ) -> Endpoint:
    if not isinstance(request, Mapping):
      raise EntryParseError('request is not an object', position=position, entry=entry)

    method = request.get('method')
    url = request.get('url')
    if not isinstance(method, str) or not method.strip():
      raise EntryParseError('missing method', position=position, entry=entry)
    if not isinstance(url, str) or not url.strip():
      raise EntryParseError('missing url', position=position, entry=entry)
    try:
      parts = urlsplit(url.strip())
    except ValueError as exc:
      raise EntryParseError(f'unparsable url: {exc}', position=position, entry=entry) from exc

    headers = self._parse_pairs(request.get('headers'), 'headers', position, entry)
    query_params = self._parse_pairs(request.get('queryString'), 'queryString', position, entry)
    if not query_params and parts.query:
      query_params = dict(parse_qsl(parts.query, keep_blank_values=True))

    return Endpoint(
      index=index,
      method=method.strip().upper(),
      url=url.strip(),
      headers=headers,
      query_params=query_params,
      body=self._parse_body(request.get('postData')),
      timestamp=self._parse_timestamp(entry),
    )

  @staticmethod
  def _parse_pairs(raw: Any, label: str, position: int, entry: Any) -> Dict[str, str]:
    if raw is None:
      return {}
    if isinstance(raw, Mapping):
      return {str(key): str(value) for key, value in raw.items()}
    if not isinstance(raw, list):
      raise EntryParseError(f'{label} must be a list of name/value pairs', position=position, entry=entry)

    pairs: Dict[str, str] = {}
    for item in raw:
      if not isinstance(item, Mapping) or not item.get('name'):
        raise EntryParseError(f'unparsable {label} item: {item!r}', position=position, entry=entry)
      value = item.get('value')
      pairs[str(item['name'])] = '' if value is None else str(value)
    return pairs

  @staticmethod
  def _parse_body(post_data: Any) -> Optional[Any]:
    if not isinstance(post_data, Mapping):
      return None

    text = post_data.get('text')
    if text:
      try:
        return json.loads(text)
      except (TypeError, ValueError):
        return text

    params = post_data.get('params')
    if isinstance(params, list) and params:
      return {
        str(param.get('name')): param.get('value')
        for param in params
        if isinstance(param, Mapping) and param.get('name')
      }
    return None

  @staticmethod
  def _parse_timestamp(entry: Mapping[str, Any]) -> Optional[datetime]:
    started = entry.get('startedDateTime')
    if isinstance(started, str) and started:
      try:
        value = datetime.fromisoformat(started.replace('Z', '+00:00'))
      except ValueError:
        logger.debug('Unparsable startedDateTime %r', started)
        return None
      return value if value.tzinfo else value.replace(tzinfo=timezone.utc)

    raw = entry.get('timestamp')
    if isinstance(raw, (int, float)) and not isinstance(raw, bool):
      seconds = raw / 1000 if raw > _MILLISECOND_THRESHOLD else raw
      try:
        return datetime.fromtimestamp(seconds, tz=timezone.utc)
      except (OverflowError, OSError, ValueError):
        return None
    return None
