"""Tests for environments, deployment and workflow history."""

import pytest

from brms.exceptions import InvalidTransitionError
from brms.models import DeploymentWorkflowRun, DeploymentWorkflowJob, WorkflowStatus
from brms.services import DeploymentService, ReleaseService
from brms.services.deployment_service import transition


def _env(client, key):
    return next(e for e in client.get("/api/environments").json() if e["key"] == key)


class TestEnvironments:

    def test_seeded_in_workflow_order(self, client):
        envs = client.get("/api/environments").json()
        assert [e["key"] for e in envs] == ["dev", "staging", "production"]
        assert [e["type"] for e in envs] == ["development", "staging", "production"]
        assert all(e["release_id"] is None for e in envs)


class TestDeploy:

    def test_deploy_assigns_release_and_completes(self, client):
        release = client.post("/api/releases", json={"name": "r1"}).json()
        dev = _env(client, "dev")

        resp = client.post(f"/api/environments/{dev['id']}/deploy", json={"releaseId": release["releaseId"]})
        assert resp.status_code == 200
        run_id = resp.json()["workflowRunId"]

        dev = _env(client, "dev")
        assert dev["release_id"] == release["releaseId"]
        assert dev["release_name"] == "r1"
        assert dev["release_version"] == 1

        run = client.get(f"/api/workflows/{run_id}").json()
        assert run["status"] == "completed"
        assert run["job_count"] == 1
        assert run["completed_at"] is not None
        assert run["started_at"] is not None
        assert run["name"] == "Deploy to Dev"

        jobs = client.get(f"/api/workflows/{run_id}/jobs").json()
        assert len(jobs) == 1
        assert jobs[0]["status"] == "completed"
        assert jobs[0]["environment_id"] == dev["id"]

    def test_redeploy_overwrites_release(self, client):
        first = client.post("/api/releases", json={}).json()
        second = client.post("/api/releases", json={}).json()
        dev = _env(client, "dev")
        client.post(f"/api/environments/{dev['id']}/deploy", json={"releaseId": first["releaseId"]})
        client.post(f"/api/environments/{dev['id']}/deploy", json={"releaseId": second["releaseId"]})

        assert _env(client, "dev")["release_id"] == second["releaseId"]
        assert _env(client, "staging")["release_id"] is None
        assert len(client.get("/api/workflows").json()) == 2

    def test_missing_release_id_names_field(self, client):
        dev = _env(client, "dev")
        resp = client.post(f"/api/environments/{dev['id']}/deploy", json={})
        assert resp.status_code == 400
        assert resp.json()["details"]["field"] == "releaseId"

    def test_unknown_release(self, client):
        dev = _env(client, "dev")
        resp = client.post(f"/api/environments/{dev['id']}/deploy", json={"releaseId": "missing"})
        assert resp.status_code == 404
        assert resp.json()["code"] == "RELEASE_NOT_FOUND"

    def test_unknown_environment_creates_no_run(self, client, db):
        release = client.post("/api/releases", json={}).json()
        resp = client.post("/api/environments/missing/deploy", json={"releaseId": release["releaseId"]})
        assert resp.status_code == 404
        assert resp.json()["code"] == "ENVIRONMENT_NOT_FOUND"
        assert db.query(DeploymentWorkflowRun).count() == 0

    def test_deploy_is_audited(self, client):
        release = client.post("/api/releases", json={}).json()
        dev = _env(client, "dev")
        client.post(f"/api/environments/{dev['id']}/deploy", json={"releaseId": release["releaseId"]})
        entries = client.get("/api/audit", params={"type": "environment", "action": "deploy"}).json()
        assert len(entries) == 1
        assert entries[0]["ref_id"] == dev["id"]


class TestWorkflowHistory:

    def test_unknown_run_is_404(self, client):
        resp = client.get("/api/workflows/missing")
        assert resp.status_code == 404
        assert resp.json()["code"] == "WORKFLOW_NOT_FOUND"
        assert client.get("/api/workflows/missing/jobs").status_code == 404

    def test_empty_history(self, client):
        assert client.get("/api/workflows").json() == []


class TestStateMachine:

    def _run(self, status=WorkflowStatus.PENDING):
        return DeploymentWorkflowRun(id="r", project_id="p", name="n", status=status.value)

    def test_happy_path(self):
        run = self._run()
        transition(run, WorkflowStatus.IN_PROGRESS)
        assert run.started_at is not None
        transition(run, WorkflowStatus.COMPLETED)
        assert run.status == "completed"
        assert run.completed_at is not None

    def test_pending_may_fail(self):
        job = DeploymentWorkflowJob(id="j", run_id="r", environment_id="e", status="pending")
        transition(job, WorkflowStatus.FAILED)
        assert job.status == "failed"
        assert job.completed_at is not None

    @pytest.mark.parametrize("start,target", [
        (WorkflowStatus.PENDING, WorkflowStatus.COMPLETED),
        (WorkflowStatus.COMPLETED, WorkflowStatus.IN_PROGRESS),
        (WorkflowStatus.FAILED, WorkflowStatus.COMPLETED),
        (WorkflowStatus.IN_PROGRESS, WorkflowStatus.PENDING),
    ])
    def test_invalid_transitions(self, start, target):
        with pytest.raises(InvalidTransitionError):
            transition(self._run(start), target)

    def test_fail_run_marks_unfinished_jobs(self, db, actor):
        service = DeploymentService(db)
        release = ReleaseService(db).create_release(actor)
        dev = next(e for e in service.list_environments(actor.project_id) if e.key == "dev")
        run = service.workflow_repo.create_run(actor.project_id, release.release_id, "manual", actor.id)
        service.workflow_repo.create_job(run.id, dev.id, position=1)
        db.commit()

        service.fail_run(actor.project_id, run.id, "rollout aborted")
        detail = service.get_run(actor.project_id, run.id)
        assert detail.status == "failed"
        assert detail.error_message == "rollout aborted"
        assert [j.status for j in service.list_jobs(actor.project_id, run.id)] == ["failed"]

    def test_complete_run_from_executor(self, db, actor):
        service = DeploymentService(db)
        release = ReleaseService(db).create_release(actor)
        dev = next(e for e in service.list_environments(actor.project_id) if e.key == "dev")
        run = service.workflow_repo.create_run(actor.project_id, release.release_id, "manual", actor.id)
        service.workflow_repo.create_job(run.id, dev.id, position=1)
        transition(run, WorkflowStatus.IN_PROGRESS)
        db.commit()

        service.complete_run(actor.project_id, run.id)
        assert service.get_run(actor.project_id, run.id).status == "completed"
        assert [j.status for j in service.list_jobs(actor.project_id, run.id)] == ["completed"]

    def test_completed_run_cannot_fail(self, db, actor):
        service = DeploymentService(db)
        release = ReleaseService(db).create_release(actor)
        dev = next(e for e in service.list_environments(actor.project_id) if e.key == "dev")
        run = service.deploy(dev.id, release.release_id, actor)
        with pytest.raises(InvalidTransitionError):
            service.fail_run(actor.project_id, run.id, "too late")
