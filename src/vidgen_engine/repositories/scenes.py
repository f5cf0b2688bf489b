"""Scene persistence with compare-and-set status transitions."""

from collections.abc import Iterable
from typing import Any
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from vidgen_engine.db.models import SceneModel
from vidgen_engine.domain.enums import SceneStatus
from vidgen_engine.domain.errors import NotFoundError
from vidgen_engine.domain.models import ScenePlan, SubmittedAsset


class SceneRepository:
    """Read/write access to scenes. Callers own the transaction."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def add_planned(self, project_id: UUID, plans: Iterable[ScenePlan]) -> list[SceneModel]:
        """Persist analysed scenes as pending clips."""
        scenes = [
            SceneModel(
                project_id=project_id,
                scene_index=plan.scene_index,
                description=plan.description,
                prompt=plan.prompt,
                narration_text=plan.narration_text,
                duration_seconds=plan.duration_seconds,
                mood=plan.mood,
                camera_movement=plan.camera_movement,
                media_type="video",
                status=SceneStatus.PENDING,
                attempts=0,
            )
            for plan in plans
        ]
        self.session.add_all(scenes)
        self.session.flush()
        return scenes

    def add_supplied(self, project_id: UUID, assets: Iterable[SubmittedAsset]) -> list[SceneModel]:
        """Persist caller-supplied media as already completed clips."""
        scenes = [
            SceneModel(
                project_id=project_id,
                scene_index=index,
                prompt=f"Supplied {asset.type}",
                media_type=str(asset.type),
                status=SceneStatus.COMPLETED,
                clip_url=asset.url,
                attempts=0,
            )
            for index, asset in enumerate(assets)
        ]
        self.session.add_all(scenes)
        self.session.flush()
        return scenes

    def list_for_project(self, project_id: UUID) -> list[SceneModel]:
        stmt = (
            select(SceneModel)
            .where(SceneModel.project_id == project_id)
            .order_by(SceneModel.scene_index)
            .execution_options(populate_existing=True)
        )
        return list(self.session.execute(stmt).scalars().all())

    def get(self, scene_id: UUID) -> SceneModel:
        scene = self.session.get(SceneModel, scene_id, populate_existing=True)
        if scene is None:
            raise NotFoundError("Scene", scene_id)
        return scene

    def get_by_index(self, project_id: UUID, scene_index: int) -> SceneModel:
        stmt = select(SceneModel).where(
            SceneModel.project_id == project_id,
            SceneModel.scene_index == scene_index,
        )
        scene = self.session.execute(stmt).scalar_one_or_none()
        if scene is None:
            raise NotFoundError("Scene", f"{project_id}#{scene_index}")
        return scene

    def compare_and_set(
        self,
        scene_id: UUID,
        expected: Iterable[SceneStatus],
        new_status: SceneStatus,
        **values: Any,
    ) -> bool:
        """Move a scene to ``new_status`` only if it is currently in ``expected``."""
        result = self.session.execute(
            update(SceneModel)
            .where(SceneModel.id == scene_id, SceneModel.status.in_(list(expected)))
            .values(status=new_status, **values)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1
