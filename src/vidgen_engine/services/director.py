"""Director pipeline: runs a claimed render job to a composed video.

Autonomous projects go through four checkpointed stages::

    content analysis -> narration -> scene clips -> composition

Each stage persists its output before the next one starts (analysis and
scene rows, narration URL, clip URLs), and a stage whose output is already
present is skipped. A job reclaimed after a crash therefore resumes where
the previous holder stopped instead of paying for the same generations
twice. Asset-stitch projects go straight to composition.

Between stages the director renews the job's lease; if renewal fails the
run stops with LeaseLostError and leaves the job to its new holder.
"""

import asyncio

from sqlalchemy.orm import Session

from vidgen_engine.db.models import ProjectModel, RenderJobModel
from vidgen_engine.domain.enums import OrchestrationModeKind, PipelineStage, SceneStatus
from vidgen_engine.domain.errors import LeaseLostError, ProviderError
from vidgen_engine.domain.models import ComposedVideo, RecipeClip
from vidgen_engine.logging import get_logger
from vidgen_engine.presets.templates import get_template
from vidgen_engine.repositories.projects import ProjectRepository
from vidgen_engine.repositories.render_queue import RenderQueue
from vidgen_engine.repositories.scenes import SceneRepository
from vidgen_engine.services.composition import Composer, build_recipe
from vidgen_engine.services.content_analysis import ContentAnalyzer
from vidgen_engine.services.narration import Narrator
from vidgen_engine.services.scene_clips import SceneClipService

logger = get_logger(__name__)


class Director:
    """Executes the generation pipeline for one claimed job."""

    def __init__(
        self,
        session: Session,
        queue: RenderQueue,
        *,
        analyzer: ContentAnalyzer,
        narrator: Narrator,
        clips: SceneClipService,
        composer: Composer,
    ) -> None:
        self.session = session
        self.queue = queue
        self.analyzer = analyzer
        self.narrator = narrator
        self.clips = clips
        self.composer = composer
        self.projects = ProjectRepository(session)
        self.scenes = SceneRepository(session)

    def _heartbeat(self, job: RenderJobModel) -> None:
        if not self.queue.renew_lease(job.id, job.lease_generation):
            raise LeaseLostError(job.id)

    async def run(self, job: RenderJobModel) -> ComposedVideo:
        """Run every outstanding stage for ``job`` and return the composed video.

        Raises:
            ProviderError: A stage failed; ``queue_retryable`` tells the
                caller whether the job should go back on the queue.
            LeaseLostError: The job's lease was lost mid-run.
        """
        project = self.projects.get(job.project_id)
        logger.info(
            "director_run_started",
            job_id=str(job.id),
            project_id=str(project.id),
            mode=project.mode,
            attempt=job.attempts,
        )

        if project.mode == OrchestrationModeKind.AUTONOMOUS:
            await self._analyze(project)
            self._heartbeat(job)
            await self._narrate(project)
            self._heartbeat(job)
            await self._generate_clips(project)
            self._heartbeat(job)

        return await self._compose(job, project)

    async def _analyze(self, project: ProjectModel) -> None:
        if project.analysis:
            logger.info("director_stage_skipped", stage=PipelineStage.CONTENT_ANALYSIS)
            return

        template = get_template(project.style_template)
        analysis = await self.analyzer.analyze(
            project.script_content, float(project.duration_seconds), template
        )
        self.projects.save_analysis(project, analysis)
        self.scenes.add_planned(project.id, analysis.scenes)
        self.session.commit()

    async def _narrate(self, project: ProjectModel) -> None:
        if project.narration_url:
            logger.info("director_stage_skipped", stage=PipelineStage.NARRATION)
            return

        voice = project.voice_id or get_template(project.style_template).voice
        narration = await self.narrator.narrate(project.id, project.narration_script or "", voice)
        self.projects.save_narration(project, narration)
        self.session.commit()

    async def _generate_clips(self, project: ProjectModel) -> None:
        scenes = self.scenes.list_for_project(project.id)
        outstanding = [
            s for s in scenes if s.status in (SceneStatus.PENDING, SceneStatus.GENERATING)
        ]
        if outstanding:
            await asyncio.gather(
                *(
                    self.clips.generate(
                        s.id, from_statuses=(SceneStatus.PENDING, SceneStatus.GENERATING)
                    )
                    for s in outstanding
                )
            )
        else:
            logger.info("director_stage_skipped", stage=PipelineStage.SCENE_CLIP)

        scenes = self.scenes.list_for_project(project.id)
        failed = [s.scene_index for s in scenes if s.status != SceneStatus.COMPLETED]
        if failed:
            raise ProviderError(
                PipelineStage.SCENE_CLIP,
                f"{len(failed)} of {len(scenes)} scene clips failed (scenes {failed}); "
                "retry them individually",
                provider=self.clips.video_gen.name,
            )

    async def _compose(self, job: RenderJobModel, project: ProjectModel) -> ComposedVideo:
        scenes = self.scenes.list_for_project(project.id)
        incomplete = [s.scene_index for s in scenes if s.status != SceneStatus.COMPLETED]
        if not scenes or incomplete:
            raise ProviderError(
                PipelineStage.COMPOSITION,
                f"Cannot compose: scenes not ready {incomplete}" if incomplete else "No scenes",
            )

        clips = [
            RecipeClip(
                scene_index=s.scene_index,
                url=s.clip_url or "",
                media_type=s.media_type,
                duration_seconds=s.duration_seconds,
            )
            for s in scenes
        ]
        recipe = build_recipe(
            project.id,
            clips,
            aspect_ratio=job.aspect_ratio,
            style_template=project.style_template,
            burn_subtitles=job.burn_subtitles,
            audio_url=project.narration_url,
            narration_script=project.narration_script,
            narration_duration_seconds=project.narration_duration_seconds,
        )
        return await self.composer.compose(job.id, recipe)
