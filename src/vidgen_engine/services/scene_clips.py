"""Per-scene clip generation state machine.

Each scene moves independently::

    pending -> generating -> completed
                          -> failed -> pending (explicit retry only)

Every transition is a compare-and-set on the current status, so two
invocations racing on the same scene cannot both start it.
"""

from collections.abc import Iterable
from uuid import UUID

from sqlalchemy.orm import Session

from vidgen_engine.adapters.video_gen.base import VideoGenProvider, VideoGenRequest
from vidgen_engine.config import settings
from vidgen_engine.db.models import RenderJobModel, SceneModel
from vidgen_engine.domain.enums import ProjectStatus, SceneStatus
from vidgen_engine.domain.errors import InvalidStateError
from vidgen_engine.logging import get_logger
from vidgen_engine.presets.templates import get_template
from vidgen_engine.repositories.projects import ProjectRepository
from vidgen_engine.repositories.render_queue import RenderQueue
from vidgen_engine.repositories.scenes import SceneRepository
from vidgen_engine.services.webhooks import WebhookDispatcher
from vidgen_engine.utils.clock import Clock, utc_now

logger = get_logger(__name__)

MAX_ERROR_LENGTH = 2000


class SceneClipService:
    """Drives scene clips through their lifecycle."""

    def __init__(
        self,
        session: Session,
        video_gen: VideoGenProvider,
        *,
        clock: Clock = utc_now,
    ) -> None:
        self.session = session
        self.video_gen = video_gen
        self.clock = clock
        self.scenes = SceneRepository(session)
        self.projects = ProjectRepository(session)

    async def generate(
        self,
        scene_id: UUID,
        *,
        from_statuses: Iterable[SceneStatus] = (SceneStatus.PENDING,),
    ) -> SceneStatus | None:
        """Generate the clip for one scene.

        Args:
            scene_id: Scene to generate
            from_statuses: Statuses the scene may be started from. The
                director, which holds the job lease, also restarts scenes
                left ``generating`` by a crashed run.

        Returns:
            The scene's final status, or None if it could not be started
            because it was not in one of ``from_statuses``.
        """
        scene = self.scenes.get(scene_id)
        started = self.scenes.compare_and_set(
            scene_id,
            from_statuses,
            SceneStatus.GENERATING,
            attempts=SceneModel.attempts + 1,
            error_message=None,
            updated_at=self.clock(),
        )
        self.session.commit()
        if not started:
            logger.info("scene_clip_not_startable", scene_id=str(scene_id), status=scene.status)
            return None

        project = self.projects.get(scene.project_id)
        template = get_template(project.style_template)
        request = VideoGenRequest(
            prompt=scene.prompt,
            duration_seconds=scene.duration_seconds or 5.0,
            aspect_ratio=project.aspect_ratio,
            negative_prompt=template.negative_prompt,
            motion_strength=template.motion_strength,
        )

        logger.info(
            "scene_clip_started",
            scene_id=str(scene_id),
            scene_index=scene.scene_index,
            provider=self.video_gen.name,
        )
        result = await self.video_gen.generate(request)

        if result.success and result.video_url:
            self.scenes.compare_and_set(
                scene_id,
                [SceneStatus.GENERATING],
                SceneStatus.COMPLETED,
                clip_url=result.video_url,
                duration_seconds=scene.duration_seconds or result.duration_seconds,
                updated_at=self.clock(),
            )
            self.session.commit()
            logger.info("scene_clip_completed", scene_id=str(scene_id), clip_url=result.video_url)
            return SceneStatus.COMPLETED

        error = result.error_message or "Clip provider returned no video"
        self.scenes.compare_and_set(
            scene_id,
            [SceneStatus.GENERATING],
            SceneStatus.FAILED,
            error_message=error[:MAX_ERROR_LENGTH],
            updated_at=self.clock(),
        )
        self.session.commit()
        logger.warning("scene_clip_failed", scene_id=str(scene_id), error=error[:200])
        return SceneStatus.FAILED

    def request_retry(self, project_id: UUID, scene_index: int, owner_id: UUID | None = None) -> SceneModel:
        """Move a failed scene back to pending so it can be regenerated.

        Raises:
            NotFoundError: Unknown project or scene, or project not owned.
            InvalidStateError: The scene is not failed.
        """
        if owner_id is not None:
            self.projects.get_for_owner(project_id, owner_id)
        scene = self.scenes.get_by_index(project_id, scene_index)
        moved = self.scenes.compare_and_set(
            scene.id,
            [SceneStatus.FAILED],
            SceneStatus.PENDING,
            updated_at=self.clock(),
        )
        if not moved:
            raise InvalidStateError(
                f"Scene {scene_index} of project {project_id} is {scene.status}, not failed"
            )
        self.session.commit()
        logger.info("scene_clip_retry_requested", project_id=str(project_id), scene_index=scene_index)
        return self.scenes.get(scene.id)

    def requeue_if_ready(
        self,
        project_id: UUID,
        queue: RenderQueue,
        webhooks: WebhookDispatcher,
    ) -> RenderJobModel | None:
        """Start a fresh render job once a failed project's scenes are all completed.

        Reopening the project is a compare-and-set from ``failed`` to ``draft``,
        so of several callers racing here only one enqueues a job.
        """
        scenes = self.scenes.list_for_project(project_id)
        if not scenes or any(s.status != SceneStatus.COMPLETED for s in scenes):
            return None

        if not self.projects.transition(
            project_id, ProjectStatus.FAILED, ProjectStatus.DRAFT, error_message=None
        ):
            self.session.rollback()
            return None

        project = self.projects.get(project_id)
        burn_subtitles = bool((project.subtitle_config or {}).get("burn_subtitles", True))
        job = queue.enqueue(
            project.id,
            project.owner_id,
            priority=settings.render_job_priority,
            aspect_ratio=project.aspect_ratio,
            burn_subtitles=burn_subtitles,
            commit=False,
        )
        webhooks.schedule_for_project(project, job)
        self.session.commit()

        logger.info("project_requeued_after_scene_retry", project_id=str(project_id), job_id=str(job.id))
        return job
