import io
import json
import urllib.error

import pytest

from conftest import load_lambda
from profile_repo import ProfileRepo

_sync = load_lambda("harmonize_music_sync")

TOP_ARTISTS = {
    "items": [
        {"id": "1", "name": "Phoebe Bridgers", "genres": ["indie", "alternative"]},
        {"id": "2", "name": "Clairo", "genres": ["bedroom pop", "indie"]},
        {"id": "3", "name": "Mitski", "genres": ["indie", "alternative"]},
    ]
}


class _Resp:
    def __init__(self, payload):
        self._body = json.dumps(payload).encode("utf-8")

    def read(self):
        return self._body

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False


def _http_error(code):
    return urllib.error.HTTPError("https://example.test", code, "err", {}, io.BytesIO(b'{"error": "x"}'))


@pytest.fixture
def repo(monkeypatch, profiles_table):
    r = ProfileRepo("profiles", table=profiles_table)
    monkeypatch.setattr(_sync, "profile_repo", r)
    return r


def test_top_artists_url():
    url = _sync.top_artists_url(limit=5, time_range="medium_term")
    assert url.endswith("/me/top/artists?time_range=medium_term&limit=5")


def test_taste_from_artists():
    genres, names = _sync.taste_from_artists(TOP_ARTISTS["items"])
    assert names == ["Phoebe Bridgers", "Clairo", "Mitski"]
    assert genres == ["indie", "alternative", "bedroom pop"]


def test_sync_writes_profile(repo, monkeypatch):
    seen = {}

    def fake_urlopen(req, timeout=None):
        seen["auth"] = req.get_header("Authorization")
        return _Resp(TOP_ARTISTS)

    monkeypatch.setattr(_sync.urllib.request, "urlopen", fake_urlopen)
    out = _sync.lambda_handler({"user_id": "u1", "access_token": "tok"}, None)

    assert out["ok"] is True
    assert seen["auth"] == "Bearer tok"
    item = repo.get_profile("u1")
    assert item["top_artists"] == ["Phoebe Bridgers", "Clairo", "Mitski"]
    assert item["top_genres"][0] == "indie"


def test_sync_requires_token(repo):
    out = _sync.lambda_handler({"user_id": "u1"}, None)
    assert out == {"ok": False, "reason": "missing_user_id_or_token"}


def test_retries_on_rate_limit(monkeypatch):
    calls = []

    def fake_urlopen(req, timeout=None):
        calls.append(1)
        if len(calls) < 3:
            raise _http_error(429)
        return _Resp(TOP_ARTISTS)

    monkeypatch.setattr(_sync.urllib.request, "urlopen", fake_urlopen)
    monkeypatch.setattr(_sync.time, "sleep", lambda s: None)
    assert len(_sync.fetch_top_artists("tok")) == 3
    assert len(calls) == 3


def test_api_error_is_reported_not_raised(repo, monkeypatch):
    def fake_urlopen(req, timeout=None):
        raise _http_error(401)

    monkeypatch.setattr(_sync.urllib.request, "urlopen", fake_urlopen)
    out = _sync.lambda_handler({"user_id": "u1", "access_token": "expired"}, None)
    assert out == {"ok": False, "reason": "music_api_error", "status": 401}
    assert repo.get_profile("u1") is None


def test_read_timeout_is_reported_not_raised(repo, monkeypatch):
    def fake_urlopen(req, timeout=None):
        raise TimeoutError("The read operation timed out")

    monkeypatch.setattr(_sync.urllib.request, "urlopen", fake_urlopen)
    out = _sync.lambda_handler({"user_id": "u1", "access_token": "tok"}, None)
    assert out == {"ok": False, "reason": "music_api_error", "status": None}
    assert repo.get_profile("u1") is None


def test_malformed_body_is_reported_not_raised(repo, monkeypatch):
    class _Garbled(_Resp):
        def read(self):
            return b"<html>not json</html>"

    monkeypatch.setattr(_sync.urllib.request, "urlopen", lambda req, timeout=None: _Garbled({}))
    out = _sync.lambda_handler({"user_id": "u1", "access_token": "tok"}, None)
    assert out == {"ok": False, "reason": "music_api_error", "status": None}
    assert repo.get_profile("u1") is None
