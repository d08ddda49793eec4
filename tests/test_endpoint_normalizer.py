from __future__ import annotations

from datetime import datetime, timezone

import pytest

from locktrace.domain.entities.endpoint import Endpoint
from locktrace.domain.services.endpoint_normalizer import EndpointNormalizer


@pytest.fixture
def normalizer():
  return EndpointNormalizer()


class TestParsing:
  def test_extracts_request_fields(self, normalizer, make_entry):
    entry = make_entry(
      'post',
      'https://api.example.com/v1/orders?draft=1',
      headers={'Authorization': 'Bearer t0k', 'Accept': 'application/json'},
      query={'draft': '1'},
      body={'sku': 'A-1', 'qty': 2},
      started='2024-05-01T10:00:00.250Z',
    )

    endpoint, = normalizer.normalize([entry])

    assert endpoint.index == 0
    assert endpoint.method == 'POST'
    assert endpoint.url == 'https://api.example.com/v1/orders?draft=1'
    assert endpoint.headers == {'Authorization': 'Bearer t0k', 'Accept': 'application/json'}
    assert endpoint.query_params == {'draft': '1'}
    assert endpoint.body == {'sku': 'A-1', 'qty': 2}
    assert endpoint.timestamp == datetime(2024, 5, 1, 10, 0, 0, 250000, tzinfo=timezone.utc)

  def test_query_falls_back_to_url(self, normalizer):
    entry = {'request': {'method': 'GET', 'url': 'https://a.example.com/search?q=shoes&page=2'}}

    endpoint, = normalizer.normalize([entry])

    assert endpoint.query_params == {'q': 'shoes', 'page': '2'}

  def test_body_keeps_raw_text_when_not_json(self, normalizer, make_entry):
    endpoint, = normalizer.normalize([make_entry('POST', 'https://a.example.com/form', body='a=1&b=2')])

    assert endpoint.body == 'a=1&b=2'

  def test_body_from_form_params(self, normalizer):
    entry = {
      'request': {
        'method': 'POST',
        'url': 'https://a.example.com/session',
        'postData': {'params': [{'name': 'user', 'value': 'ana'}, {'name': 'remember', 'value': 'on'}]},
      }
    }

    endpoint, = normalizer.normalize([entry])

    assert endpoint.body == {'user': 'ana', 'remember': 'on'}

  def test_headers_as_mapping(self, normalizer):
    entry = {'request': {'method': 'GET', 'url': 'https://a.example.com/x', 'headers': {'Cookie': 'sid=1'}}}

    endpoint, = normalizer.normalize([entry])

    assert endpoint.headers == {'Cookie': 'sid=1'}
    assert endpoint.has_auth_headers

  def test_numeric_timestamp_in_milliseconds(self, normalizer):
    entry = {'request': {'method': 'GET', 'url': 'https://a.example.com/x'}, 'timestamp': 1714557600000}

    endpoint, = normalizer.normalize([entry])

    assert endpoint.timestamp == datetime(2024, 5, 1, 10, 0, tzinfo=timezone.utc)

  def test_missing_timestamp_is_none(self, normalizer):
    endpoint, = normalizer.normalize([{'request': {'method': 'GET', 'url': 'https://a.example.com/x'}}])

    assert endpoint.timestamp is None


class TestFiltering:
  @pytest.mark.parametrize('method,url', [
    ('GET', 'https://a.example.com/static/app.js'),
    ('GET', 'https://a.example.com/img/logo.PNG'),
    ('GET', 'https://a.example.com/fonts/x.woff2?v=3'),
    ('POST', 'https://www.google-analytics.com/collect'),
    ('GET', 'https://cdnjs.cloudflare.com/ajax/libs/lib.min.css'),
    ('OPTIONS', 'https://a.example.com/api/orders'),
    ('GET', 'https://a.example.com/api/ping'),
    ('GET', 'https://a.example.com/health'),
  ])
  def test_noise_is_skipped(self, method, url):
    assert EndpointNormalizer.should_skip(method, url)

  @pytest.mark.parametrize('method,url', [
    ('GET', 'https://a.example.com/api/data.json'),
    ('GET', 'https://a.example.com/api/orders'),
    ('POST', 'https://a.example.com/login'),
  ])
  def test_real_requests_are_kept(self, method, url):
    assert not EndpointNormalizer.should_skip(method, url)

  def test_indices_follow_kept_entries(self, normalizer, make_entry):
    entries = [
      make_entry('GET', 'https://a.example.com/app.css'),
      make_entry('GET', 'https://a.example.com/api/one'),
      make_entry('OPTIONS', 'https://a.example.com/api/two'),
      make_entry('GET', 'https://a.example.com/api/two'),
    ]

    report = normalizer.normalize_with_report(entries)

    assert [endpoint.index for endpoint in report.endpoints] == [0, 1]
    assert [endpoint.path for endpoint in report.endpoints] == ['/api/one', '/api/two']
    assert report.filtered == 2


class TestMalformedEntries:
  def test_malformed_entries_become_warnings(self, normalizer, make_entry):
    entries = [
      'not an entry',
      {'request': {'method': 'GET'}},
      {'request': {'method': 'GET', 'url': 'https://a.example.com/x', 'headers': 'oops'}},
      make_entry('GET', 'https://a.example.com/ok'),
    ]

    report = normalizer.normalize_with_report(entries)

    assert [endpoint.path for endpoint in report.endpoints] == ['/ok']
    assert report.endpoints[0].index == 0
    assert [error.position for error in report.skipped] == [0, 1, 2]
    warnings = report.warnings()
    assert len(warnings) == 3
    assert 'entry #1' in warnings[1]
    assert 'missing url' in warnings[1]

  def test_entries_without_request_are_dropped_silently(self, normalizer):
    report = normalizer.normalize_with_report([{'response': {}}, {'request': None}])

    assert report.endpoints == []
    assert report.skipped == []

  def test_empty_input(self, normalizer):
    assert normalizer.normalize([]) == []


class TestEndpoint:
  def test_names(self):
    assert Endpoint(0, 'GET', 'https://a.example.com/api/Account').name == 'get_account'
    assert Endpoint(1, 'POST', 'https://a.example.com/').name == 'post_root'
    assert Endpoint(2, 'GET', 'https://a.example.com').name == 'get_root'

  def test_kinds(self):
    assert Endpoint(0, 'POST', 'https://a.example.com/auth/token').kind == 'authentication'
    assert Endpoint(1, 'GET', 'https://a.example.com/api/items').kind == 'api'
    assert Endpoint(2, 'GET', 'https://a.example.com/items').kind == 'read'
    assert Endpoint(3, 'PATCH', 'https://a.example.com/items/1').kind == 'write'
    assert Endpoint(4, 'DELETE', 'https://a.example.com/items/1').kind == 'delete'
    assert Endpoint(5, 'HEAD', 'https://a.example.com/items').kind == 'other'

  def test_auth_header_names_match_exactly(self):
    assert Endpoint(0, 'GET', 'https://a.example.com/x', headers={'X-API-Key': 'k'}).has_auth_headers
    assert not Endpoint(1, 'GET', 'https://a.example.com/x', headers={'X-Cookie-Consent': 'y'}).has_auth_headers

  def test_security_endpoint(self):
    assert Endpoint(0, 'GET', 'https://a.example.com/login').is_security_endpoint
    assert Endpoint(1, 'GET', 'https://a.example.com/x', headers={'Cookie': 'a=b'}).is_security_endpoint
    assert not Endpoint(2, 'GET', 'https://a.example.com/x').is_security_endpoint

  def test_curl_rendering(self):
    endpoint = Endpoint(
      3,
      'POST',
      'https://a.example.com/api/orders',
      headers={'Content-Type': 'application/json'},
      query_params={'draft': '1'},
      body={'sku': "O'Neil"},
    )

    curl = endpoint.to_curl()

    assert curl.startswith("curl -X POST 'https://a.example.com/api/orders?draft=1'")
    assert "-H 'Content-Type: application/json'" in curl
    assert '-d ' in curl
    assert endpoint.identifier() == '#3 POST /api/orders'
