"""Tests for the HTTP and WebSocket boundary."""

from __future__ import annotations

from datetime import timedelta

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from originome_risk.adapters.registry import default_registry
from originome_risk.api.alerts import create_alerts_router
from originome_risk.api.samples import create_samples_router
from originome_risk.api.snapshots import create_snapshots_router
from originome_risk.api.ws_samples import create_sample_stream_router
from originome_risk.core.engine import RiskEngine
from originome_risk.domain.enums import DomainId

from tests.test_adapters import _air_payload, _health_payload, _space_payload
from tests.test_sample import _BASE


def _sample_body(value: float, seconds: float = 0, parameter: str = "co2") -> dict:
    return {
        "parameter": parameter,
        "value": value,
        "timestamp": (_BASE + timedelta(seconds=seconds)).isoformat(),
    }


@pytest.fixture
def engine() -> RiskEngine:
    return RiskEngine()


@pytest.fixture
def client(engine: RiskEngine):
    app = FastAPI()
    app.include_router(create_samples_router(engine))
    app.include_router(create_sample_stream_router(engine))
    app.include_router(create_snapshots_router(engine, default_registry()))
    app.include_router(create_alerts_router(engine))
    with TestClient(app) as client:
        yield client


def _converge(client: TestClient) -> None:
    client.post("/api/snapshots", json=_space_payload(kp_index=6))
    client.post("/api/snapshots", json=_air_payload(pm25=25))
    client.post("/api/snapshots", json=_health_payload())


class TestSampleEndpoints:
    def test_post_sample(self, client: TestClient) -> None:
        for i, v in enumerate([420, 440, 480]):
            resp = client.post("/api/samples", json=_sample_body(v, seconds=i * 60))
        assert resp.status_code == 200
        body = resp.json()
        assert body["level"] == "critical"
        assert body["sudden_change"] is True
        assert body["derivatives"]["velocity"] == 40.0
        assert body["value_level"] == "low"

    def test_out_of_order_is_conflict(self, client: TestClient) -> None:
        client.post("/api/samples", json=_sample_body(420, seconds=60))
        resp = client.post("/api/samples", json=_sample_body(430, seconds=0))
        assert resp.status_code == 409

    def test_invalid_sample_is_unprocessable(self, client: TestClient) -> None:
        resp = client.post("/api/samples", json=_sample_body(420, parameter="radon"))
        assert resp.status_code == 422

    def test_get_derivatives(self, client: TestClient) -> None:
        client.post("/api/samples", json=_sample_body(12, parameter="pm25"))
        resp = client.get("/api/derivatives/pm25")
        assert resp.status_code == 200
        assert resp.json()["sample_count"] == 1
        assert resp.json()["level"] == "low"
        assert resp.json()["value_level"] == "low"

    def test_forecast(self, client: TestClient) -> None:
        for i, v in enumerate([420, 430, 440]):
            client.post("/api/samples", json=_sample_body(v, seconds=i * 60))
        resp = client.get("/api/forecast/co2", params={"horizon_minutes": 10})
        assert resp.status_code == 200
        body = resp.json()
        assert body["predicted_value"] == pytest.approx(540.0)
        assert body["trend"] == "increasing"

    def test_forecast_without_history_is_not_found(self, client: TestClient) -> None:
        assert client.get("/api/forecast/pressure").status_code == 404

    def test_absolute_band_reported(self, client: TestClient) -> None:
        resp = client.post("/api/samples", json=_sample_body(40, parameter="pm25"))
        assert resp.json()["value_level"] == "high"

    def test_unknown_parameter_path(self, client: TestClient) -> None:
        assert client.get("/api/derivatives/radon").status_code == 422


class TestSampleStream:
    def test_stream_acknowledges_and_rejects(self, client: TestClient) -> None:
        with client.websocket_connect("/ws/samples") as ws:
            ws.send_json(_sample_body(420, seconds=60))
            assert ws.receive_json()["status"] == "accepted"

            ws.send_json(_sample_body(410, seconds=0))
            assert ws.receive_json()["status"] == "rejected"

            ws.send_json({"parameter": "co2"})
            assert ws.receive_json()["status"] == "error"

            ws.send_json(_sample_body(440, seconds=120))
            ack = ws.receive_json()
            assert ack["status"] == "accepted"
            assert ack["sample_count"] == 2


class TestSnapshotEndpoint:
    def test_raw_payload_routed_through_adapters(self, client: TestClient) -> None:
        resp = client.post("/api/snapshots", json=_space_payload())
        assert resp.status_code == 200
        body = resp.json()
        assert body["count"] == 2
        assert {s["domain"] for s in body["snapshots"]} == {"geomagnetic", "solar"}

    def test_canonical_snapshot_accepted(self, client: TestClient) -> None:
        resp = client.post(
            "/api/snapshots",
            json={"domain": "seismic", "values": {"risk_level": 5}, "observed_at": _BASE.isoformat()},
        )
        assert resp.status_code == 200
        assert resp.json()["snapshots"][0]["status"] == "accepted"

    def test_stale_snapshot_reported(self, client: TestClient) -> None:
        client.post("/api/snapshots", json=_air_payload(timestamp=(_BASE + timedelta(hours=1)).isoformat()))
        resp = client.post("/api/snapshots", json=_air_payload())
        assert resp.json()["snapshots"][0]["status"] == "stale"

    def test_loose_payload_does_not_replace_good_snapshot(self, client: TestClient, engine: RiskEngine) -> None:
        client.post("/api/snapshots", json=_space_payload(kp_index=6))
        resp = client.post("/api/snapshots", json={"domain": "geomagnetic", "kp_index": 6})
        assert resp.status_code == 422
        latest = client.portal.call(engine.latest_snapshots)
        assert latest[DomainId.GEOMAGNETIC].get("kp_index") == 6.0

    def test_tagged_payload_goes_to_adapters(self, client: TestClient) -> None:
        payload = {**_air_payload(), "domain": "seismic"}
        resp = client.post("/api/snapshots", json=payload)
        assert resp.status_code == 200
        assert resp.json()["snapshots"][0]["domain"] == "air_quality"

    def test_unknown_payload_is_unprocessable(self, client: TestClient) -> None:
        assert client.post("/api/snapshots", json={"source_type": "tidal"}).status_code == 422

    def test_bad_payload_is_unprocessable(self, client: TestClient) -> None:
        assert client.post("/api/snapshots", json=_air_payload(pm25=-3)).status_code == 422


class TestAlertEndpoints:
    def test_alert_lifecycle(self, client: TestClient, engine: RiskEngine) -> None:
        _converge(client)
        # run the scan on the app loop that owns the engine
        client.portal.call(engine.pattern_scan)

        alerts = client.get("/api/alerts").json()
        assert alerts["count"] >= 1
        assert alerts["alerts"][0]["risk_score"] == 95
        event_id = alerts["alerts"][0]["event_id"]

        resp = client.post(f"/api/alerts/{event_id}/acknowledge")
        assert resp.json()["status"] == "acknowledged"

        resp = client.post(f"/api/alerts/{event_id}/resolve")
        assert resp.json()["status"] == "resolved"

        active_ids = {a["event_id"] for a in client.get("/api/alerts").json()["alerts"]}
        assert event_id not in active_ids
        all_ids = {
            a["event_id"]
            for a in client.get("/api/alerts", params={"include_resolved": True}).json()["alerts"]
        }
        assert event_id in all_ids

    def test_unknown_alert_is_not_found(self, client: TestClient) -> None:
        assert client.post("/api/alerts/missing/acknowledge").status_code == 404
        assert client.post("/api/alerts/missing/resolve").status_code == 404


class TestHealth:
    def test_health_reports_engine_and_scheduler(self) -> None:
        from originome_risk.main import app

        with TestClient(app) as client:
            body = client.get("/health").json()
        assert body["status"] == "ok"
        assert body["rules"] == 7
        assert {t["name"] for t in body["ticks"]} == {"derivatives", "patterns", "slow_domains"}
        assert len(body["adapters"]) == 5
