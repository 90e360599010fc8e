"""Tests de la API HTTP.

TestClient sin context manager: el lifespan no corre y el monitor del proceso
se inyecta con monkeypatch. TestAppLifespan sí entra en el lifespan.
"""

import random

import pytest
from fastapi.testclient import TestClient

from telemetry_api import monitor as monitor_module
from telemetry_api.core.domain.feed_config import FeedConfig
from telemetry_api.main import app
from telemetry_api.monitor import SensorFeedMonitor


@pytest.fixture
def client() -> TestClient:
    return TestClient(app)


@pytest.fixture
def no_monitor(monkeypatch):
    monkeypatch.setattr(monitor_module, "_monitor", None)


@pytest.fixture
def feed(monkeypatch, factory, scheduler, clock):
    """Monitor suscrito con transporte falso, instalado como singleton."""
    m = SensorFeedMonitor(
        FeedConfig(),
        transport_factory=factory,
        scheduler=scheduler,
        rng=random.Random(3),
        clock=clock,
        use_dispatcher=False,
    )
    m.start()
    factory.last.ack_connect()
    factory.last.ack_subscribe()
    monkeypatch.setattr(monitor_module, "_monitor", m)
    yield m
    m.teardown()


class TestHealthEndpoints:

    def test_health(self, client, no_monitor):
        r = client.get("/health")

        assert r.status_code == 200
        assert r.json() == {"status": "ok"}

    def test_ready_without_monitor(self, client, no_monitor):
        assert client.get("/ready").status_code == 503

    def test_ready_when_subscribed(self, client, feed):
        assert client.get("/ready").status_code == 200

    def test_not_ready_while_reconnecting(self, client, feed, factory):
        factory.last.lose()

        assert client.get("/ready").status_code == 503

    def test_metrics(self, client, feed, factory):
        factory.last.deliver('{"temperature": 4.0}')

        r = client.get("/metrics")

        assert r.status_code == 200
        assert "feed_messages_total" in r.text
        assert "feed_connection_status" in r.text


class TestFeedEndpoints:

    def test_status_without_monitor(self, client, no_monitor):
        assert client.get("/feed/status").status_code == 503

    def test_status_waiting_for_data(self, client, feed):
        body = client.get("/feed/status").json()

        assert body["status"] == "subscribed"
        assert body["ready"] is True
        assert body["latest"] is None
        assert body["severity"] is None
        assert body["history"] == []
        assert body["topic"] == "ESILV"
        assert body["client_id"] == feed.client_id
        assert body["bounds"] == {"normal_min": 1.0, "normal_max": 5.0, "warning_max": 8.0}

    def test_status_with_readings(self, client, feed, factory):
        factory.last.deliver('{"temperature": 4.0}')
        factory.last.deliver('{"temperature": 6.5}')

        body = client.get("/feed/status").json()

        assert body["ready"] is False
        assert body["latest"]["value"] == 6.5
        assert body["severity"] == "warning"
        assert [r["value"] for r in body["history"]] == [4.0, 6.5]

    def test_history(self, client, feed, factory):
        factory.last.deliver('{"temperature": 4.0}')

        body = client.get("/feed/history").json()

        assert len(body) == 1
        assert body[0]["value"] == 4.0
        assert body[0]["observed_at"].startswith("2024-06-01T12:00:00")

    def test_reset(self, client, feed, factory):
        factory.last.deliver('{"temperature": 4.0}')

        body = client.post("/feed/reset").json()

        assert body["history"] == []
        assert body["status"] == "subscribed"

    def test_reconnect(self, client, feed, factory):
        body = client.post("/feed/reconnect").json()

        assert body["status"] == "connecting"
        assert len(factory.created) == 2

    def test_activity_resume(self, client, feed, factory):
        r1 = client.post("/feed/activity", json={"state": "background"})
        assert r1.json()["status"] == "subscribed"

        r2 = client.post("/feed/activity", json={"state": "active"})

        assert r2.status_code == 200
        assert r2.json() == {"state": "active", "status": "connecting", "resumes": 1}
        assert len(factory.created) == 2

    def test_activity_invalid_state(self, client, feed):
        r = client.post("/feed/activity", json={"state": "sleeping"})

        assert r.status_code == 422


class TestAppLifespan:

    def test_unreadable_env_value_reports_failed(self, monkeypatch, tmp_path):
        monkeypatch.setattr(monitor_module, "_monitor", None)
        monkeypatch.setenv("FEED_ENV_FILE", str(tmp_path / "missing.env"))
        monkeypatch.setenv("FEED_AUTOSTART", "1")
        monkeypatch.setenv("FEED_RETRY_DELAY", "five")

        with TestClient(app) as client:
            body = client.get("/feed/status").json()
            ready = client.get("/ready")

        assert body["status"] == "failed"
        assert "FEED_RETRY_DELAY" in body["last_error"]
        assert ready.status_code == 503
        assert monitor_module.get_monitor() is None

    def test_autostart_disabled(self, monkeypatch, tmp_path):
        monkeypatch.setattr(monitor_module, "_monitor", None)
        monkeypatch.setenv("FEED_ENV_FILE", str(tmp_path / "missing.env"))
        monkeypatch.setenv("FEED_AUTOSTART", "0")

        with TestClient(app) as client:
            assert client.get("/feed/status").status_code == 503
