from __future__ import annotations

import pytest
import requests

from _payloads import envelope, triple_array_result
from districts import upstream
from districts.config import SyncConfig
from districts.errors import MissingCredential, UpstreamApiError, UpstreamHttpError


class _FakeResponse:
    def __init__(self, *, json_data=None, status_code=200, bad_json=False):
        self._json_data = json_data
        self.status_code = status_code
        self._bad_json = bad_json

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")

    def json(self):
        if self._bad_json:
            raise ValueError("Expecting value: line 1 column 1 (char 0)")
        return self._json_data


def _config(**overrides) -> SyncConfig:
    values = {"api_key": "secret-key", "caller_identity": "https://districts.example.com"}
    values.update(overrides)
    return SyncConfig(**values)


def test_fetch_sends_key_and_referer(monkeypatch):
    calls = []

    def fake_get(url, params=None, headers=None, timeout=None):
        calls.append({"url": url, "params": params, "headers": headers, "timeout": timeout})
        return _FakeResponse(json_data=envelope(triple_array_result()))

    monkeypatch.setattr(upstream.requests, "get", fake_get)

    result = upstream.fetch_districts(_config())

    assert result.status == 0
    assert result.data_version == "20240101"
    assert len(result.result) == 3
    assert calls[0]["url"] == "https://apis.map.qq.com/ws/district/v1/getlist"
    assert calls[0]["params"] == {"key": "secret-key"}
    assert calls[0]["headers"]["Referer"] == "https://districts.example.com"
    assert calls[0]["timeout"] == 30.0


def test_caller_identity_argument_wins(monkeypatch):
    seen = {}

    def fake_get(url, params=None, headers=None, timeout=None):
        seen.update(headers)
        return _FakeResponse(json_data=envelope([]))

    monkeypatch.setattr(upstream.requests, "get", fake_get)
    upstream.fetch_districts(_config(), caller_identity="https://caller.example.org/")
    assert seen["Referer"] == "https://caller.example.org/"


def test_no_referer_without_identity(monkeypatch):
    seen = {}

    def fake_get(url, params=None, headers=None, timeout=None):
        seen.update(headers)
        return _FakeResponse(json_data=envelope([]))

    monkeypatch.setattr(upstream.requests, "get", fake_get)
    upstream.fetch_districts(_config(caller_identity=None))
    assert "Referer" not in seen


def test_missing_key_never_calls_network(monkeypatch):
    def fake_get(*_args, **_kwargs):
        raise AssertionError("network must not be touched")

    monkeypatch.setattr(upstream.requests, "get", fake_get)
    with pytest.raises(MissingCredential):
        upstream.fetch_districts(_config(api_key=None))


def test_http_status_error(monkeypatch):
    monkeypatch.setattr(upstream.requests, "get", lambda *a, **k: _FakeResponse(status_code=503))
    with pytest.raises(UpstreamHttpError) as err:
        upstream.fetch_districts(_config())
    assert err.value.status == 503


def test_transport_error_has_no_status(monkeypatch):
    def fake_get(*_args, **_kwargs):
        raise requests.ConnectionError("https://apis.map.qq.com/?key=secret-key unreachable")

    monkeypatch.setattr(upstream.requests, "get", fake_get)
    with pytest.raises(UpstreamHttpError) as err:
        upstream.fetch_districts(_config())
    assert err.value.status is None
    assert "secret-key" not in str(err.value)


def test_non_json_body(monkeypatch):
    monkeypatch.setattr(upstream.requests, "get", lambda *a, **k: _FakeResponse(bad_json=True))
    with pytest.raises(UpstreamHttpError) as err:
        upstream.fetch_districts(_config())
    assert err.value.status == 200


def test_api_status_error(monkeypatch):
    body = envelope(None, status=311, message="key格式错误")
    monkeypatch.setattr(upstream.requests, "get", lambda *a, **k: _FakeResponse(json_data=body))
    with pytest.raises(UpstreamApiError) as err:
        upstream.fetch_districts(_config())
    assert err.value.code == 311
    assert err.value.message == "key格式错误"
    assert err.value.to_dict()["error"] == "UpstreamApiError"


def test_parse_envelope_rejects_non_object():
    with pytest.raises(UpstreamApiError):
        upstream.parse_envelope(["not", "an", "envelope"])
