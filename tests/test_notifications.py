from __future__ import annotations

import sys
from pathlib import Path

import requests

sys.path.append(str(Path(__file__).resolve().parents[1]))

import config
import notifications


class FakeResponse:
    def __init__(self, status_code=200):
        self.status_code = status_code

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")


def test_disabled_without_url(monkeypatch):
    calls = []
    monkeypatch.setattr(config, "WEBHOOK_URL", "")
    monkeypatch.setattr(notifications.requests, "post", lambda *a, **kw: calls.append(a))
    assert notifications.notify_equipment_added("abc") is False
    assert calls == []


def test_posts_equipment_id(monkeypatch):
    calls = []

    def fake_post(url, json=None, timeout=None):
        calls.append((url, json, timeout))
        return FakeResponse()

    monkeypatch.setattr(notifications.requests, "post", fake_post)
    assert notifications.notify_equipment_added("abc", "https://hooks.example/new") is True

    url, payload, timeout = calls[0]
    assert url == "https://hooks.example/new"
    assert payload["equipmentId"] == "abc"
    assert payload["source"] == config.WEBHOOK_SOURCE
    assert "timestamp" in payload
    assert timeout == config.WEBHOOK_TIMEOUT


def test_failures_are_reported_not_raised(monkeypatch):
    monkeypatch.setattr(notifications.requests, "post", lambda *a, **kw: FakeResponse(500))
    assert notifications.notify_equipment_added("abc", "https://hooks.example/new") is False

    def boom(*a, **kw):
        raise requests.ConnectionError("unreachable")

    monkeypatch.setattr(notifications.requests, "post", boom)
    assert notifications.notify_equipment_added("abc", "https://hooks.example/new") is False
