"""Tests for /api/simulate and the SimulationService."""

import json

import pytest

from brms.models import AuditLog, DocumentVersion
from brms.main import app
from brms.services.evaluation_engine import engine_message, get_decision_engine
from brms.services.simulation_service import format_micros


class TestInlineGraph:

    def test_inline_graph_is_not_stored(self, client, db, fake_engine, graph):
        resp = client.post("/api/simulate/pricing", json={"payload": {}, "graph": graph()})
        assert resp.status_code == 200
        body = resp.json()
        assert body["ok"] is True
        assert body["source"] == "inline"
        assert body["usedVersion"] is None
        assert body["id"] == "pricing"
        assert body["env"] == "dev"
        assert body["result"]["result"] == {"echo": {}, "nodes": 0}
        assert body["performance"].endswith("µs")
        assert body["elapsedMicros"] >= 0
        assert db.query(DocumentVersion).count() == 0
        assert len(fake_engine.calls) == 1

    def test_inline_graph_beats_stored(self, client, create_version, fake_engine, graph):
        create_version("pricing", graph("stored"))
        client.post("/api/simulate/pricing", json={"graph": graph("inline")})
        evaluated, _ = fake_engine.calls[0]
        assert evaluated == graph("inline")


class TestStoredGraph:

    def test_published_version_is_evaluated(self, client, create_version, fake_engine, graph):
        v1 = create_version("pricing", graph("one"))
        create_version("pricing", graph("two"))
        client.post("/api/documents/pricing/publish", json={"versionId": v1["versionId"]})

        resp = client.post("/api/simulate/pricing", json={"payload": {"amount": 10}})
        body = resp.json()
        assert body["source"] == "published"
        assert body["usedVersion"] == v1["versionId"]
        assert body["versionNumber"] == 1
        assert fake_engine.calls[0] == (graph("one"), {"amount": 10})

    def test_version_query_param(self, client, create_version, fake_engine, graph):
        create_version("pricing", graph("one"))
        create_version("pricing", graph("two"))
        client.post("/api/documents/pricing/publish")

        body = client.post("/api/simulate/pricing", params={"version": "1"}, json={}).json()
        assert body["source"] == "version_number"
        assert fake_engine.calls[0][0] == graph("one")

    def test_deployed_release_for_env(self, client, create_version, fake_engine, graph):
        create_version("pricing", graph("deployed"))
        client.post("/api/documents/pricing/publish")
        release = client.post("/api/releases", json={}).json()
        prod = next(e for e in client.get("/api/environments").json() if e["key"] == "production")
        client.post(f"/api/environments/{prod['id']}/deploy", json={"releaseId": release["releaseId"]})
        create_version("pricing", graph("newer"))
        client.post("/api/documents/pricing/publish")

        body = client.post("/api/simulate/pricing", params={"env": "production"}, json={}).json()
        assert body["source"] == "deployed"
        assert body["env"] == "production"
        assert fake_engine.calls[0][0] == graph("deployed")

        body = client.post("/api/simulate/pricing", json={}).json()
        assert body["source"] == "published"
        assert fake_engine.calls[1][0] == graph("newer")

    def test_same_precedence_as_document_load(self, client, create_version, fake_engine, graph):
        create_version("pricing", graph("a"))
        create_version("pricing", graph("b"))
        loaded = client.get("/api/documents/pricing")
        simulated = client.post("/api/simulate/pricing", json={}).json()
        assert simulated["source"] == loaded.headers["x-document-source"]
        assert fake_engine.calls[0][0] == loaded.json()

    def test_default_key(self, client, create_version, fake_engine, graph):
        create_version("default", graph("d"))
        resp = client.post("/api/simulate", json={"payload": {"x": 1}})
        assert resp.status_code == 200
        assert resp.json()["id"] == "default"
        assert resp.json()["source"] == "latest"

    def test_unknown_document(self, client, fake_engine):
        resp = client.post("/api/simulate/nope", json={})
        assert resp.status_code == 404
        assert resp.json()["code"] == "DOCUMENT_NOT_FOUND"
        assert fake_engine.calls == []


class TestGraphValidation:

    def test_missing_edges_named(self, client, create_version, fake_engine):
        create_version("pricing", {"nodes": []})
        resp = client.post("/api/simulate/pricing", json={})
        assert resp.status_code == 400
        assert resp.json()["details"]["field"] == "edges"
        assert fake_engine.calls == []

    def test_missing_nodes_named(self, client, fake_engine):
        resp = client.post("/api/simulate/pricing", json={"graph": {"edges": []}})
        assert resp.status_code == 400
        assert resp.json()["details"]["field"] == "nodes"

    def test_graph_envelope_is_unwrapped(self, client, create_version, fake_engine, graph):
        create_version("pricing", {"graph": graph("wrapped")})
        resp = client.post("/api/simulate/pricing", json={})
        assert resp.status_code == 200
        assert fake_engine.calls[0][0] == graph("wrapped")

    def test_empty_inline_graph_is_rejected(self, client, create_version, fake_engine, graph):
        create_version("pricing", graph("stored"))
        resp = client.post("/api/simulate/pricing", json={"payload": {}, "graph": {}})
        assert resp.status_code == 400
        assert resp.json()["details"]["field"] == "nodes"
        assert fake_engine.calls == []

    def test_json_text_is_parsed(self, client, fake_engine, graph):
        resp = client.post("/api/simulate/pricing", json={"graph": json.dumps(graph("text"))})
        assert resp.status_code == 200
        assert fake_engine.calls[0][0] == graph("text")


class TestEvaluation:

    def test_engine_failure_is_reported(self, client, fake_engine, graph):
        fake_engine.error = "bad expression in node a"
        resp = client.post("/api/simulate/pricing", json={"graph": graph("a")})
        assert resp.status_code == 502
        body = resp.json()
        assert body["code"] == "EVALUATION_FAILED"
        assert "bad expression" in body["error"]

    def test_success_is_audited(self, client, db, create_version, graph):
        create_version("pricing", graph("a"))
        client.post("/api/simulate/pricing", json={})
        entry = db.query(AuditLog).filter(AuditLog.type == "simulation").one()
        assert entry.action == "evaluate"
        assert entry.data["source"] == "latest"
        assert entry.data["env"] == "dev"
        assert "elapsed_micros" in entry.data

    def test_failure_is_not_audited(self, client, db, fake_engine, graph):
        fake_engine.error = "boom"
        client.post("/api/simulate/pricing", json={"graph": graph("a")})
        assert db.query(AuditLog).filter(AuditLog.type == "simulation").count() == 0

    def test_format_micros(self):
        assert format_micros(1234.56) == "1234.6µs"


class TestEngineMessage:

    def test_backtrace_is_dropped(self):
        error = RuntimeError("bad expression\n\nStack backtrace:\n   0: <unknown>\n   1: /tmp/build/x.c")
        assert engine_message(error) == "bad expression"

    def test_json_error_is_reduced(self):
        error = RuntimeError('{"type":"InvalidGraph","source":"missing input node"}\n\nStack backtrace:\n   0: x')
        assert engine_message(error) == "InvalidGraph: missing input node"

    def test_plain_message_is_kept(self):
        assert engine_message(ValueError("nope")) == "nope"


REAL_GRAPH = {
    "nodes": [
        {"id": "in", "type": "inputNode", "name": "Request", "position": {"x": 0, "y": 0}},
        {"id": "out", "type": "outputNode", "name": "Response", "position": {"x": 300, "y": 0}},
    ],
    "edges": [{"id": "in-out", "type": "edge", "sourceId": "in", "targetId": "out"}],
}


class TestZenEngine:
    """Runs the real engine adapter; skipped when zen-engine is not installed."""

    @pytest.fixture()
    def engine_client(self, client):
        pytest.importorskip("zen")
        app.dependency_overrides.pop(get_decision_engine, None)
        return client

    def test_inline_graph_is_evaluated(self, engine_client):
        resp = engine_client.post("/api/simulate/pricing", json={"payload": {"a": 1}, "graph": REAL_GRAPH})
        assert resp.status_code == 200, resp.text
        body = resp.json()
        assert body["source"] == "inline"
        assert body["result"]["result"] == {"a": 1}

    def test_rejected_graph_reports_engine_message(self, engine_client):
        resp = engine_client.post("/api/simulate/pricing", json={"graph": {"nodes": [], "edges": []}})
        assert resp.status_code == 502
        body = resp.json()
        assert body["code"] == "EVALUATION_FAILED"
        assert body["error"].startswith("Evaluation failed:")
        assert "Stack backtrace" not in body["error"]
