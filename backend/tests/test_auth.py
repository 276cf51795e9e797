"""Tests for actor resolution: token factory, auth-disabled default identity, bearer tokens."""

import pytest

from brms.core.config import settings
from brms.core.token_factory import create_token, decode_token
from brms.models import Project, User


def _token(subject=None, project_id=None, **kwargs):
    return create_token(
        subject or settings.default_actor_id,
        project_id or settings.default_project_id,
        settings.default_organisation_id,
        settings.jwt_secret_key,
        **kwargs,
    )


class TestTokenFactory:

    def test_create_and_decode(self):
        token = create_token("user-1", "project-1", "org-1", "test-secret")
        payload = decode_token(token, "test-secret")
        assert payload is not None
        assert payload.sub == "user-1"
        assert payload.project_id == "project-1"
        assert payload.organisation_id == "org-1"

    def test_wrong_secret_returns_none(self):
        token = create_token("user-1", "project-1", "org-1", "correct-secret")
        assert decode_token(token, "wrong-secret") is None

    def test_expired_token_returns_none(self):
        token = create_token("user-1", "project-1", "org-1", "secret", expires_hours=-1)
        assert decode_token(token, "secret") is None

    def test_malformed_token_returns_none(self):
        assert decode_token("not.a.token", "secret") is None
        assert decode_token("", "secret") is None

    def test_unsupported_algorithm(self):
        with pytest.raises(ValueError):
            create_token("user-1", "project-1", "org-1", "secret", algorithm="RS256")


class TestAuthDisabledMode:
    """With AUTH_ENABLED=false every request acts as the default identity."""

    def test_write_without_token_succeeds(self, client, graph):
        resp = client.post("/api/documents/pricing/versions", json={"content": graph("a")})
        assert resp.status_code == 201

    def test_versions_attributed_to_default_user(self, client, graph):
        client.post("/api/documents/pricing/versions", json={"content": graph("a")})
        versions = client.get("/api/documents/pricing/versions").json()
        assert versions[0]["created_by"] == settings.default_actor_id


class TestAuthEnabledMode:

    @pytest.fixture(autouse=True)
    def _enable_auth(self, monkeypatch):
        monkeypatch.setattr(settings, "auth_enabled", True)

    def test_missing_token_is_401(self, client):
        resp = client.get("/api/documents")
        assert resp.status_code == 401
        assert resp.json()["code"] == "UNAUTHORIZED"

    def test_invalid_token_is_401(self, client):
        resp = client.get("/api/documents", headers={"Authorization": "Bearer nope"})
        assert resp.status_code == 401

    def test_valid_token(self, client, graph):
        headers = {"Authorization": f"Bearer {_token()}"}
        resp = client.post("/api/documents/pricing/versions", json={"content": graph("a")}, headers=headers)
        assert resp.status_code == 201
        assert client.get("/api/documents", headers=headers).json()[0]["key"] == "pricing"

    def test_unknown_subject_is_401(self, client):
        headers = {"Authorization": f"Bearer {_token(subject='ghost')}"}
        assert client.get("/api/documents", headers=headers).status_code == 401

    def test_inactive_user_is_401(self, client, db):
        user = db.get(User, settings.default_actor_id)
        user.is_active = False
        db.commit()
        headers = {"Authorization": f"Bearer {_token()}"}
        resp = client.get("/api/documents", headers=headers)
        assert resp.status_code == 401
        assert "deactivated" in resp.json()["error"]

    def test_unknown_project_is_401(self, client, graph):
        headers = {"Authorization": f"Bearer {_token(project_id='no-such-project')}"}
        resp = client.post("/api/documents/pricing/versions", json={"content": graph("a")}, headers=headers)
        assert resp.status_code == 401
        assert resp.json()["error"] == "Project not found"

    def test_projects_are_isolated(self, client, db, graph):
        db.add(Project(id="another-project", organisation_id=settings.default_organisation_id, name="Another"))
        db.commit()
        headers = {"Authorization": f"Bearer {_token()}"}
        client.post("/api/documents/pricing/versions", json={"content": graph("a")}, headers=headers)

        other = {"Authorization": f"Bearer {_token(project_id='another-project')}"}
        assert client.get("/api/documents", headers=other).json() == []
        assert client.get("/api/documents/pricing", headers=other).status_code == 404

    def test_health_needs_no_token(self, client):
        assert client.get("/api/health").status_code == 200
