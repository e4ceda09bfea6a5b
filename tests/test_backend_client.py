import json
import os
import sys

import pytest
import requests

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from app.api import catalog
from app.backend_client import BackendClient
from app.errors import BackendError, UnauthorizedError


class DummyResponse:
    def __init__(self, status_code, data=None, content=None):
        self.status_code = status_code
        self._data = data
        if content is not None:
            self.content = content
        else:
            self.content = json.dumps(data).encode() if data is not None else b''

    def json(self):
        if self._data is None:
            raise ValueError('no json')
        return self._data


def make_client(responses, calls=None):
    client = BackendClient('http://backend.test/api/', token='tok')
    seq = list(responses)

    def fake_request(method, url, timeout=None, **kwargs):
        if calls is not None:
            calls.append((method, url, kwargs))
        resp = seq.pop(0)
        if isinstance(resp, Exception):
            raise resp
        return resp

    client.session.request = fake_request
    return client


def test_bearer_token_header():
    client = BackendClient('http://backend.test/api', token='abc')
    assert client.session.headers['Authorization'] == 'Bearer abc'
    assert client.token == 'abc'
    client.set_token(None)
    assert 'Authorization' not in client.session.headers
    assert client.token is None


def test_get_returns_envelope():
    calls = []
    client = make_client([DummyResponse(200, {'status': 'success', 'data': [1]})], calls)
    body = client.get('/equipment', params={'page': 1})
    assert body['data'] == [1]
    method, url, kwargs = calls[0]
    assert method == 'GET'
    assert url == 'http://backend.test/api/equipment'
    assert kwargs['params'] == {'page': 1}


def test_401_raises_unauthorized():
    client = make_client([DummyResponse(401, {'status': 'error', 'message': 'Token expired'})])
    with pytest.raises(UnauthorizedError) as exc:
        client.get('/quotations')
    assert exc.value.status_code == 401
    assert exc.value.message == 'Token expired'


def test_401_without_body_has_default_message():
    client = make_client([DummyResponse(401)])
    with pytest.raises(UnauthorizedError) as exc:
        client.get('/auth/me')
    assert exc.value.remote_message is None
    assert 'log in' in exc.value.message


def test_validation_error_carries_field_errors():
    body = {
        'status': 'error',
        'message': 'Validation failed',
        'errors': [{'field': 'quotationNumber', 'message': 'already exists'}],
    }
    client = make_client([DummyResponse(422, body)])
    with pytest.raises(BackendError) as exc:
        client.post('/quotations', json={})
    assert not isinstance(exc.value, UnauthorizedError)
    assert exc.value.status_code == 422
    assert exc.value.message == 'Validation failed'
    assert exc.value.errors[0]['field'] == 'quotationNumber'


def test_server_error_without_json():
    client = make_client([DummyResponse(500, content=b'<html>oops</html>')])
    with pytest.raises(BackendError) as exc:
        client.delete('/bundles/1')
    assert exc.value.message == 'Backend request failed'
    assert exc.value.status_code == 500


def test_network_error_is_not_retried():
    calls = []
    client = make_client([requests.ConnectionError('refused'), DummyResponse(200, {})], calls)
    with pytest.raises(BackendError) as exc:
        client.get('/equipment')
    assert exc.value.message.startswith('Network error')
    assert exc.value.status_code is None
    assert len(calls) == 1


def test_download_returns_raw_bytes():
    client = make_client([DummyResponse(200, content=b'%PDF-1.4')])
    assert client.download('/quotations/1/export/pdf') == b'%PDF-1.4'


def test_paginate_stops_at_total_pages():
    calls = []
    client = make_client([
        DummyResponse(200, {'data': [{'id': 1}], 'meta': {'page': 1, 'totalPages': 2}}),
        DummyResponse(200, {'data': [{'id': 2}], 'meta': {'page': 2, 'totalPages': 2}}),
    ], calls)
    pages = list(client.paginate('/equipment', limit=1))
    assert [p for p, _ in pages] == [1, 2]
    assert pages[1][1] == [{'id': 2}]
    assert len(calls) == 2
    assert calls[1][2]['params'] == {'page': 2, 'limit': 1}


def test_paginate_stops_on_empty_page():
    client = make_client([DummyResponse(200, {'data': [], 'meta': {'totalPages': 5}})])
    assert list(client.paginate('/bundles')) == []


def test_equipment_cache_reads_every_page():
    calls = []
    client = make_client([
        DummyResponse(200, {'data': [{'id': 1}, {'id': 2}], 'meta': {'totalPages': 2}}),
        DummyResponse(200, {'data': [{'id': 3}], 'meta': {'totalPages': 2}}),
    ], calls)
    rows = catalog.fetch_equipment_cache(client, limit=2)
    assert [r['id'] for r in rows] == [1, 2, 3]
    assert [c[1] for c in calls] == ['http://backend.test/api/equipment'] * 2
    assert [c[2]['params'] for c in calls] == [{'page': 1, 'limit': 2}, {'page': 2, 'limit': 2}]
