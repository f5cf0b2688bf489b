"""Project persistence, including the director's stage checkpoints."""

from typing import Any
from uuid import UUID

from sqlalchemy import update
from sqlalchemy.orm import Session

from vidgen_engine.db.models import ProjectModel
from vidgen_engine.domain.enums import ProjectStatus
from vidgen_engine.domain.errors import NotFoundError
from vidgen_engine.domain.models import ContentAnalysis, Narration


class ProjectRepository:
    """Read/write access to projects. Callers own the transaction."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def add(self, project: ProjectModel) -> ProjectModel:
        self.session.add(project)
        self.session.flush()
        return project

    def get(self, project_id: UUID) -> ProjectModel:
        project = self.session.get(ProjectModel, project_id, populate_existing=True)
        if project is None:
            raise NotFoundError("Project", project_id)
        return project

    def get_for_owner(self, project_id: UUID, owner_id: UUID) -> ProjectModel:
        project = self.session.get(ProjectModel, project_id)
        if project is None or project.owner_id != owner_id:
            raise NotFoundError("Project", project_id)
        return project

    def set_status(
        self,
        project: ProjectModel,
        status: ProjectStatus,
        error_message: str | None = None,
    ) -> None:
        project.status = status
        project.error_message = error_message
        self.session.flush()

    def transition(
        self,
        project_id: UUID,
        expected: ProjectStatus,
        new_status: ProjectStatus,
        **values: Any,
    ) -> bool:
        """Move a project to ``new_status`` only if it is currently ``expected``.

        Concurrent callers racing on the same transition see exactly one
        winner; the rest get False.
        """
        result = self.session.execute(
            update(ProjectModel)
            .where(ProjectModel.id == project_id, ProjectModel.status == expected)
            .values(status=new_status, **values)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    def mark_completed(self, project: ProjectModel, video_url: str) -> None:
        """The only writer of ``video_url``; called once composition has succeeded."""
        project.status = ProjectStatus.COMPLETED
        project.video_url = video_url
        project.error_message = None
        self.session.flush()

    def save_analysis(self, project: ProjectModel, analysis: ContentAnalysis) -> None:
        project.analysis = analysis.to_dict()
        project.narration_script = analysis.narration_script
        if analysis.title:
            project.title = analysis.title[:255]
        self.session.flush()

    def load_analysis(self, project: ProjectModel) -> ContentAnalysis | None:
        data: dict[str, Any] | None = project.analysis
        return ContentAnalysis.from_dict(data) if data else None

    def save_narration(self, project: ProjectModel, narration: Narration) -> None:
        project.narration_url = narration.audio_url
        project.narration_duration_seconds = narration.duration_seconds
        project.narration_script = narration.script
        self.session.flush()

    def load_narration(self, project: ProjectModel) -> Narration | None:
        if not project.narration_url:
            return None
        return Narration(
            audio_url=project.narration_url,
            duration_seconds=project.narration_duration_seconds or 0.0,
            script=project.narration_script or "",
        )
