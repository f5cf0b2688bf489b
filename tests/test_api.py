"""Tests for the public and internal HTTP API."""

from unittest.mock import MagicMock
from uuid import UUID, uuid4

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from tests.conftest import QUEUE_SECRET
from tests.helpers import FrozenClock, WebhookReceiver, submit
from vidgen_engine.api.deps import get_queue_worker
from vidgen_engine.db.models import ApiKeyModel
from vidgen_engine.domain.enums import SceneStatus
from vidgen_engine.domain.errors import RateLimitExceededError
from vidgen_engine.domain.models import ScenePlan
from vidgen_engine.repositories.render_queue import RenderQueue
from vidgen_engine.repositories.scenes import SceneRepository
from vidgen_engine.services.api_keys import ApiKeyService
from vidgen_engine.services.queue_worker import QueueWorker
from vidgen_engine.services.webhooks import WebhookDispatcher

API = "/api/v1"


class TestAuthentication:
    def test_missing_key(self, test_client: TestClient) -> None:
        response = test_client.post(f"{API}/generate", json={"prompt": "Hello"})

        assert response.status_code == 401
        assert response.headers["WWW-Authenticate"] == "Bearer"
        assert response.json() == {"error": "unauthorized", "detail": "Invalid or missing API key"}

    @pytest.mark.parametrize("key", ["vg_live_unknown", "not-a-key"])
    def test_bad_key_looks_like_missing_key(self, test_client: TestClient, key: str) -> None:
        response = test_client.get(f"{API}/jobs", headers={"Authorization": f"Bearer {key}"})

        assert response.status_code == 401
        assert response.json()["detail"] == "Invalid or missing API key"

    def test_revoked_key(self, test_client: TestClient, session: Session, api_key, auth_headers) -> None:
        ApiKeyService(session).revoke(api_key.key.id)

        assert test_client.get(f"{API}/jobs", headers=auth_headers).status_code == 401

    def test_use_is_recorded(self, test_client: TestClient, session: Session, api_key, auth_headers) -> None:
        assert test_client.get(f"{API}/jobs", headers=auth_headers).status_code == 200

        key = session.get(ApiKeyModel, api_key.key.id, populate_existing=True)
        assert key.last_used_at is not None

    def test_rate_limited(
        self, test_client: TestClient, rate_limiter: MagicMock, api_key, auth_headers
    ) -> None:
        rate_limiter.enforce.side_effect = RateLimitExceededError(10, 42)

        response = test_client.post(f"{API}/generate", json={"prompt": "Hello"}, headers=auth_headers)

        assert response.status_code == 429
        assert response.headers["Retry-After"] == "42"
        assert response.json()["error"] == "rate_limited"
        rate_limiter.enforce.assert_called_once_with(str(api_key.key.id), 10)


class TestGenerate:
    def test_autonomous_submission(self, test_client: TestClient, auth_headers) -> None:
        response = test_client.post(
            f"{API}/generate",
            json={"prompt": "A sunrise over the mountains", "aspect_ratio": "9:16", "duration_seconds": 20},
            headers=auth_headers,
        )

        assert response.status_code == 202
        data = response.json()
        assert data["status"] == "queued"
        assert data["job_id"]
        assert data["webhook_delivery_id"] is None

        job = test_client.get(f"{API}/jobs/{data['job_id']}", headers=auth_headers).json()
        assert job["status"] == "pending"
        assert job["aspect_ratio"] == "9:16"
        assert job["project"]["id"] == data["project_id"]
        assert job["project"]["mode"] == "autonomous"

    def test_stitch_submission(self, test_client: TestClient, auth_headers) -> None:
        response = test_client.post(
            f"{API}/generate",
            json={
                "prompt": "Product montage",
                "webhook_url": "https://hooks.test/vidgen",
                "assets": [
                    {"type": "video", "url": "https://cdn.test/a.mp4"},
                    {"type": "image", "url": "https://cdn.test/b.png"},
                ],
            },
            headers=auth_headers,
        )

        assert response.status_code == 202
        data = response.json()
        assert data["webhook_delivery_id"]

        project = test_client.get(f"{API}/projects/{data['project_id']}", headers=auth_headers).json()
        assert project["mode"] == "asset_stitch"
        assert [s["status"] for s in project["scenes"]] == ["completed", "completed"]
        assert [s["media_type"] for s in project["scenes"]] == ["video", "image"]

    @pytest.mark.parametrize(
        "body",
        [
            {"prompt": "   "},
            {"prompt": "Hello", "duration_seconds": 1000},
            {"prompt": "Hello", "webhook_url": "ftp://hooks.test"},
            {"prompt": "Hello", "assets": [{"type": "gif", "url": "https://cdn.test/a.gif"}]},
            {"prompt": "Hello", "assets": [{"type": "audio", "url": "https://cdn.test/a.mp3"}]},
        ],
    )
    def test_invalid_input(self, test_client: TestClient, auth_headers, body: dict) -> None:
        response = test_client.post(f"{API}/generate", json=body, headers=auth_headers)

        assert response.status_code == 400
        assert response.json()["error"] == "validation_error"

    def test_schema_violation(self, test_client: TestClient, auth_headers) -> None:
        response = test_client.post(f"{API}/generate", json={"template": "cinematic_story"}, headers=auth_headers)

        assert response.status_code == 400
        assert response.json()["detail"][0]["field"] == "prompt"


class TestJobs:
    def test_list_own_jobs(
        self, test_client: TestClient, session: Session, owner_id: UUID, auth_headers
    ) -> None:
        submit(session, owner_id)
        submit(session, owner_id)
        submit(session, uuid4())

        data = test_client.get(f"{API}/jobs", headers=auth_headers).json()
        assert data["count"] == 2

        failed = test_client.get(f"{API}/jobs", params={"status": "failed"}, headers=auth_headers).json()
        assert failed["count"] == 0

        limited = test_client.get(f"{API}/jobs", params={"limit": 1}, headers=auth_headers).json()
        assert limited["count"] == 1

    def test_limit_bounds(self, test_client: TestClient, auth_headers) -> None:
        response = test_client.get(f"{API}/jobs", params={"limit": 101}, headers=auth_headers)

        assert response.status_code == 400

    def test_foreign_job_is_not_found(self, test_client: TestClient, session: Session, auth_headers) -> None:
        receipt = submit(session, uuid4())

        response = test_client.get(f"{API}/jobs/{receipt.job_id}", headers=auth_headers)

        assert response.status_code == 404
        assert response.json()["error"] == "not_found"

    def test_retry_exhausted_job(
        self, test_client: TestClient, session: Session, owner_id: UUID, auth_headers
    ) -> None:
        receipt = submit(session, owner_id)
        queue = RenderQueue(session)
        queue.claim_next()
        queue.fail(receipt.job_id, "narration failed", retryable=False)

        response = test_client.post(f"{API}/jobs/{receipt.job_id}/retry", headers=auth_headers)
        assert response.status_code == 409
        assert response.json()["error"] == "queue_exhausted"

        response = test_client.post(
            f"{API}/jobs/{receipt.job_id}/retry", params={"reset_attempts": True}, headers=auth_headers
        )
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "pending"
        assert data["attempts"] == 0
        assert data["max_attempts"] == 3
        assert data["project"]["status"] == "draft"

    def test_retry_job_that_has_attempts_left(
        self, test_client: TestClient, session: Session, owner_id: UUID, auth_headers
    ) -> None:
        receipt = submit(session, owner_id)
        queue = RenderQueue(session)
        queue.claim_next()
        queue.fail(receipt.job_id, "renderer timeout", retryable=True)

        response = test_client.post(f"{API}/jobs/{receipt.job_id}/retry", headers=auth_headers)

        assert response.status_code == 200
        assert response.json()["status"] == "failed"
        assert response.json()["attempts"] == 1
        assert queue.claim_next().id == receipt.job_id

    def test_retry_pending_job_is_conflict(
        self, test_client: TestClient, session: Session, owner_id: UUID, auth_headers
    ) -> None:
        receipt = submit(session, owner_id)

        response = test_client.post(f"{API}/jobs/{receipt.job_id}/retry", headers=auth_headers)

        assert response.status_code == 409
        assert response.json()["error"] == "invalid_state"


class TestProjects:
    def _project_with_failed_scene(self, session: Session, owner_id: UUID) -> UUID:
        receipt = submit(session, owner_id)
        scenes = SceneRepository(session)
        planned = scenes.add_planned(
            receipt.project_id,
            [
                ScenePlan(scene_index=i, description="", prompt=f"shot {i}", narration_text="", duration_seconds=5.0)
                for i in range(2)
            ],
        )
        scenes.compare_and_set(planned[1].id, [SceneStatus.PENDING], SceneStatus.FAILED, error_message="nsfw")
        session.commit()
        return receipt.project_id

    def test_get_project(self, test_client: TestClient, session: Session, owner_id: UUID, auth_headers) -> None:
        project_id = self._project_with_failed_scene(session, owner_id)

        data = test_client.get(f"{API}/projects/{project_id}", headers=auth_headers).json()

        assert data["id"] == str(project_id)
        assert [s["status"] for s in data["scenes"]] == ["pending", "failed"]
        assert data["scenes"][1]["error_message"] == "nsfw"

    def test_foreign_project(self, test_client: TestClient, session: Session, auth_headers) -> None:
        receipt = submit(session, uuid4())

        assert test_client.get(f"{API}/projects/{receipt.project_id}", headers=auth_headers).status_code == 404

    def test_retry_failed_scene(
        self,
        test_client: TestClient,
        session: Session,
        owner_id: UUID,
        auth_headers,
        dispatched_scenes: list[str],
    ) -> None:
        project_id = self._project_with_failed_scene(session, owner_id)
        scene = SceneRepository(session).get_by_index(project_id, 1)

        response = test_client.post(f"{API}/projects/{project_id}/scenes/1/retry", headers=auth_headers)

        assert response.status_code == 202
        assert response.json()["status"] == "pending"
        assert dispatched_scenes == [str(scene.id)]

    def test_retry_scene_that_is_not_failed(
        self,
        test_client: TestClient,
        session: Session,
        owner_id: UUID,
        auth_headers,
        dispatched_scenes: list[str],
    ) -> None:
        project_id = self._project_with_failed_scene(session, owner_id)

        response = test_client.post(f"{API}/projects/{project_id}/scenes/0/retry", headers=auth_headers)

        assert response.status_code == 409
        assert dispatched_scenes == []


class TestWebhookSubscriptions:
    def test_register_list_deactivate(self, test_client: TestClient, auth_headers) -> None:
        created = test_client.post(
            f"{API}/webhooks", json={"url": "https://hooks.test/vidgen"}, headers=auth_headers
        )
        assert created.status_code == 201
        subscription = created.json()
        assert subscription["secret"].startswith("whsec_")
        assert subscription["active"] is True

        listed = test_client.get(f"{API}/webhooks", headers=auth_headers).json()
        assert listed["count"] == 1
        assert listed["webhooks"][0]["secret"] is None

        deleted = test_client.delete(f"{API}/webhooks/{subscription['id']}", headers=auth_headers)
        assert deleted.status_code == 204

        listed = test_client.get(f"{API}/webhooks", headers=auth_headers).json()
        assert listed["webhooks"][0]["active"] is False

    def test_reregistering_rotates_secret(self, test_client: TestClient, auth_headers) -> None:
        body = {"url": "https://hooks.test/vidgen"}
        first = test_client.post(f"{API}/webhooks", json=body, headers=auth_headers).json()
        second = test_client.post(f"{API}/webhooks", json=body, headers=auth_headers).json()

        assert first["id"] == second["id"]
        assert first["secret"] != second["secret"]

    def test_rejects_non_http_url(self, test_client: TestClient, auth_headers) -> None:
        response = test_client.post(f"{API}/webhooks", json={"url": "mailto:ops@test"}, headers=auth_headers)

        assert response.status_code == 400

    def test_unknown_subscription(self, test_client: TestClient, auth_headers) -> None:
        assert test_client.delete(f"{API}/webhooks/{uuid4()}", headers=auth_headers).status_code == 404


class TestQueueEndpoints:
    @pytest.mark.parametrize("headers", [{}, {"Authorization": "Bearer wrong-secret"}])
    def test_requires_worker_secret(self, test_client: TestClient, headers: dict) -> None:
        assert test_client.post(f"{API}/queue/process", headers=headers).status_code == 401
        assert test_client.get(f"{API}/queue/process", headers=headers).status_code == 401

    def test_api_key_is_not_the_worker_secret(self, test_client: TestClient, auth_headers) -> None:
        assert test_client.post(f"{API}/queue/process", headers=auth_headers).status_code == 401

    def test_process_one_job(
        self,
        app,
        test_client: TestClient,
        session: Session,
        owner_id: UUID,
        clock: FrozenClock,
        render_queue: RenderQueue,
        director,
    ) -> None:
        worker = QueueWorker(
            session,
            render_queue,
            director,
            WebhookDispatcher(session, clock=clock, transport=WebhookReceiver().transport()),
            clock=clock,
        )
        app.dependency_overrides[get_queue_worker] = lambda: worker
        headers = {"Authorization": f"Bearer {QUEUE_SECRET}"}
        receipt = submit(session, owner_id, clock=clock)

        first = test_client.post(f"{API}/queue/process", headers=headers).json()
        second = test_client.post(f"{API}/queue/process", headers=headers).json()

        assert first["success"] is True
        assert first["status"] == "completed"
        assert first["job_id"] == str(receipt.job_id)
        assert first["output_url"] == f"http://media.test/final/{receipt.job_id}.mp4"
        assert second == {
            "success": True,
            "status": "idle",
            "job_id": None,
            "project_id": None,
            "output_url": None,
            "processing_seconds": None,
            "error": None,
        }

        stats = test_client.get(f"{API}/queue/process", headers=headers).json()
        assert stats == {"total": 1, "pending": 0, "processing": 0, "completed": 1, "failed": 0}
