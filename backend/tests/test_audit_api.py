"""Tests for the audit trail and the audit service."""

from unittest.mock import MagicMock

import sqlalchemy.exc

from brms.models import AuditLog
from brms.services import audit_service


class TestAuditTrail:

    def test_operations_are_recorded(self, client, create_version, graph):
        create_version("pricing", graph("a"), comment="initial")
        client.post("/api/documents/pricing/publish")

        entries = client.get("/api/audit").json()
        assert [e["action"] for e in entries] == ["publish", "create_version"]
        created = entries[1]
        assert created["type"] == "document"
        assert created["data"]["key"] == "pricing"
        assert created["data"]["comment"] == "initial"
        assert created["first_name"] == "Default"
        assert created["ip_address"] is not None

    def test_filters(self, client, create_version, graph):
        create_version("pricing", graph("a"))
        client.post("/api/documents/pricing/publish")
        client.post("/api/releases", json={})

        assert len(client.get("/api/audit", params={"type": "release"}).json()) == 1
        assert len(client.get("/api/audit", params={"type": "document", "action": "publish"}).json()) == 1

    def test_pagination(self, client, create_version, graph):
        for node in ("a", "b", "c"):
            create_version("pricing", graph(node))
        first = client.get("/api/audit", params={"limit": 2}).json()
        rest = client.get("/api/audit", params={"limit": 2, "offset": 2}).json()
        assert len(first) == 2
        assert len(rest) == 1
        assert {e["id"] for e in first}.isdisjoint({e["id"] for e in rest})

    def test_filter_values_are_not_sql(self, client, create_version, graph):
        create_version("pricing", graph("a"))
        resp = client.get("/api/audit", params={"type": "document' OR '1'='1"})
        assert resp.status_code == 200
        assert resp.json() == []

    def test_bad_limit_uses_error_envelope(self, client):
        resp = client.get("/api/audit", params={"limit": 0})
        assert resp.status_code == 400
        body = resp.json()
        assert body["code"] == "VALIDATION_ERROR"
        assert body["details"]["field"] == "limit"


class TestAuditService:

    def test_failure_never_raises(self, actor):
        db = MagicMock()
        db.commit.side_effect = sqlalchemy.exc.OperationalError("INSERT", {}, Exception("locked"))
        audit_service.log(db, actor, "document", "publish", ref_id="x")
        db.rollback.assert_called_once()

    def test_purge_skipped_when_disabled(self, db):
        assert audit_service.purge_old_entries(db, days=0) == 0

    def test_purge_keeps_recent_entries(self, db, actor):
        audit_service.log(db, actor, "document", "publish", ref_id="x")
        assert audit_service.purge_old_entries(db, days=30) == 0
        assert db.query(AuditLog).count() == 1
