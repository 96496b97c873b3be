"""HTTP surface: jobs, batches and health."""

import asyncio
import os
import time

import pytest
from fastapi.testclient import TestClient

from api.deps import BatchRegistry, get_registry
from app.main import app
from app.settings import settings
from domain.errors import BatchInProgressError, NotFoundError
from domain.services.analysis_gateway import AnalysisGateway
from domain.services.job_context import JobContextResolver, JobSelection
from domain.services.scoring_pipeline import ScoringScheduler
from infra.db.session import Base, engine
from tests.conftest import FakeAnalyzer, FakeExtractor, analysis_payload

PDF = b"%PDF-1.4 resume body"


@pytest.fixture
def analyzer():
    return FakeAnalyzer()


@pytest.fixture
def registry(analyzer):
    return BatchRegistry(lambda: ScoringScheduler(
        resolver=JobContextResolver(extract=FakeExtractor()),
        gateway=AnalysisGateway(analyze=analyzer),
        delay_seconds=0,
    ))


@pytest.fixture
def client(db, registry):
    app.dependency_overrides[get_registry] = lambda: registry
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


def _wait_until_idle(client, batch_id, attempts=100):
    for _ in range(attempts):
        body = client.get(f"/batches/{batch_id}").json()
        if not body["running"]:
            return body
        time.sleep(0.02)
    raise AssertionError(f"batch {batch_id} still running")


def _batch_with_files(client, *names):
    batch_id = client.post("/batches").json()["id"]
    files = [("files", (name, PDF, "application/pdf")) for name in names]
    r = client.post(f"/batches/{batch_id}/files", files=files)
    assert r.status_code == 200, r.text
    return batch_id, r.json()


class TestJobs:
    def test_create_and_fetch(self, client):
        r = client.post("/jobs", json={"title": "SRE", "skills": ["Linux"], "location": "Porto"})
        assert r.status_code == 201
        job = r.json()
        assert job["id"].startswith("job_")
        assert job["department"] == "General"
        assert job["applicants_count"] == 0

        assert client.get(f"/jobs/{job['id']}").json()["title"] == "SRE"
        assert [j["id"] for j in client.get("/jobs").json()] == [job["id"]]

    def test_missing_job(self, client):
        r = client.get("/jobs/job_nope")
        assert r.status_code == 404
        assert r.json()["error"] == "NotFoundError"

    def test_empty_title_rejected(self, client):
        assert client.post("/jobs", json={"title": ""}).status_code == 422


class TestBatches:
    def test_upload_and_remove(self, client):
        batch_id, body = _batch_with_files(client, "a.pdf", "b.pdf")
        assert [i["name"] for i in body["items"]] == ["a.pdf", "b.pdf"]
        assert all(i["status"] == "READY" for i in body["items"])

        item_id = body["items"][0]["id"]
        body = client.delete(f"/batches/{batch_id}/files/{item_id}").json()
        assert [i["name"] for i in body["items"]] == ["b.pdf"]

    def test_analyze_against_stored_job(self, client, analyzer):
        job = client.post("/jobs", json={"title": "Backend Engineer", "skills": ["Go"]}).json()
        analyzer.responses = [analysis_payload(score=92), RuntimeError("provider timeout")]
        batch_id, _ = _batch_with_files(client, "a.pdf", "b.pdf")

        r = client.post(f"/batches/{batch_id}/analyze", json={"job_id": job["id"]})
        assert r.status_code == 202

        body = _wait_until_idle(client, batch_id)
        assert [i["status"] for i in body["items"]] == ["COMPLETED", "ERROR"]
        assert body["items"][0]["result"]["match_score"] == 92
        assert body["last_error"] == "Failed to analyze b.pdf: provider timeout"
        assert body["report"]["job_id"] == job["id"]

        job = client.get(f"/jobs/{job['id']}").json()
        assert job["applicants_count"] == 1
        assert job["matches_count"] == 1

        [candidate] = client.get(f"/jobs/{job['id']}/candidates").json()
        assert candidate["source_file_name"] == "a.pdf"
        assert "resume_base64" not in candidate

    def test_analyze_with_uploaded_jd(self, client):
        batch_id, _ = _batch_with_files(client, "a.pdf")
        r = client.post(f"/batches/{batch_id}/analyze-with-jd",
                        files={"jd": ("jd.pdf", PDF, "application/pdf")})
        assert r.status_code == 202

        body = _wait_until_idle(client, batch_id)
        assert body["items"][0]["status"] == "COMPLETED"
        [job] = client.get("/jobs").json()
        assert job["title"] == "Data Engineer"
        assert job["applicants_count"] == 0

    def test_analyze_empty_batch(self, client):
        job = client.post("/jobs", json={"title": "SRE"}).json()
        batch_id = client.post("/batches").json()["id"]
        r = client.post(f"/batches/{batch_id}/analyze", json={"job_id": job["id"]})
        assert r.status_code == 400
        assert r.json()["detail"] == "Please upload at least one resume."

    def test_vanished_job_reported_on_batch(self, client):
        batch_id, _ = _batch_with_files(client, "a.pdf")
        client.post(f"/batches/{batch_id}/analyze", json={"job_id": "job_gone"})
        body = _wait_until_idle(client, batch_id)
        assert body["batch_error"].startswith("Analysis failed:")
        assert body["items"][0]["status"] == "READY"

    def test_unknown_batch(self, client):
        assert client.get("/batches/batch_missing").status_code == 404
        assert client.post("/batches/batch_missing/cancel").status_code == 404

    def test_cancel_idle_batch(self, client):
        batch_id = client.post("/batches").json()["id"]
        r = client.post(f"/batches/{batch_id}/cancel")
        assert r.status_code == 200
        assert r.json()["running"] is False

    def test_removing_an_item_deletes_its_file(self, client, registry):
        batch_id, body = _batch_with_files(client, "a.pdf", "b.pdf")
        first, second = [item.document.path for item in registry.get(batch_id).queue]
        client.delete(f"/batches/{batch_id}/files/{body['items'][0]['id']}")
        assert not first.exists()
        assert second.exists()

    def test_delete_batch_drops_state_and_files(self, client, registry):
        batch_id, _ = _batch_with_files(client, "a.pdf", "b.pdf")
        paths = [item.document.path for item in registry.get(batch_id).queue]
        assert all(p.exists() for p in paths)

        r = client.delete(f"/batches/{batch_id}")

        assert r.status_code == 204
        assert client.get(f"/batches/{batch_id}").status_code == 404
        assert not any(p.exists() for p in paths)

    def test_delete_batch_removes_job_description_file(self, client, registry):
        batch_id, _ = _batch_with_files(client, "a.pdf")
        client.post(f"/batches/{batch_id}/analyze-with-jd",
                    files={"jd": ("jd.pdf", PDF, "application/pdf")})
        _wait_until_idle(client, batch_id)
        jd_path = registry.get(batch_id).selection.document.path
        assert jd_path.exists()

        assert client.delete(f"/batches/{batch_id}").status_code == 204
        assert not jd_path.exists()

    def test_rejected_job_description_is_not_kept(self, client):
        batch_id = client.post("/batches").json()["id"]
        r = client.post(f"/batches/{batch_id}/analyze-with-jd",
                        files={"jd": ("orphan_jd.pdf", PDF, "application/pdf")})
        assert r.status_code == 400
        assert [n for n in os.listdir(settings.STORAGE_DIR) if n.endswith("_orphan_jd.pdf")] == []

    def test_delete_unknown_batch(self, client):
        assert client.delete("/batches/batch_missing").status_code == 404


def test_health(client):
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json() == {"status": "ok", "database": "sqlite"}


def test_startup_creates_tables():
    Base.metadata.drop_all(bind=engine)
    try:
        with TestClient(app) as c:
            assert c.get("/jobs").status_code == 200
    finally:
        Base.metadata.drop_all(bind=engine)


class TestBatchRegistry:
    @pytest.mark.asyncio
    async def test_running_batch_cannot_be_removed(self, build_scheduler, stored_job, make_resume):
        gate = asyncio.Event()

        async def blocking_analyzer(document, job_context):
            await gate.wait()
            return analysis_payload()

        registry = BatchRegistry(lambda: build_scheduler(blocking_analyzer))
        scheduler = registry.create()
        scheduler.add_files([make_resume()])
        task = scheduler.launch(JobSelection(job_id=stored_job["id"]))

        with pytest.raises(BatchInProgressError):
            registry.remove(scheduler.id)

        gate.set()
        await task
        assert registry.remove(scheduler.id) is scheduler
        with pytest.raises(NotFoundError):
            registry.get(scheduler.id)
