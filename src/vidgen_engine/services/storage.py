"""Artifact storage for narration audio and final renders."""

import hashlib
import shutil
from dataclasses import dataclass
from pathlib import Path
from uuid import UUID

from vidgen_engine.adapters.renderer.base import RenderResult
from vidgen_engine.config import settings
from vidgen_engine.logging import get_logger

logger = get_logger(__name__)


@dataclass
class StoredAsset:
    """Where an artifact ended up."""

    url: str
    file_path: Path | None
    file_size_bytes: int | None
    checksum: str | None
    mime_type: str


class StorageService:
    """Local-disk artifact store served under a public URL prefix.

    Layout::

        {base_path}/audio/{project_id}.mp3
        {base_path}/final/{job_id}.mp4

    Writes are keyed by id, so a retried stage overwrites its earlier output
    instead of accumulating copies.
    """

    SUBDIRS = {
        "audio": "audio",
        "final_video": "final",
    }
    MIME_TYPES = {
        "audio": "audio/mpeg",
        "final_video": "video/mp4",
    }

    def __init__(
        self,
        base_path: Path | None = None,
        public_base_url: str | None = None,
        create_dirs: bool = True,
    ) -> None:
        self.base_path = base_path or Path(settings.storage_path)
        self.public_base_url = (public_base_url or settings.storage_public_base_url).rstrip("/")

        if create_dirs:
            for subdir in self.SUBDIRS.values():
                (self.base_path / subdir).mkdir(parents=True, exist_ok=True)

    def _path_for(self, asset_type: str, filename: str) -> Path:
        return self.base_path / self.SUBDIRS[asset_type] / filename

    def public_url(self, path: Path) -> str:
        relative = path.relative_to(self.base_path).as_posix()
        return f"{self.public_base_url}/{relative}"

    @staticmethod
    def _checksum(data: bytes) -> str:
        return hashlib.sha256(data).hexdigest()

    def store_bytes(self, data: bytes, asset_type: str, filename: str) -> StoredAsset:
        file_path = self._path_for(asset_type, filename)
        file_path.parent.mkdir(parents=True, exist_ok=True)
        file_path.write_bytes(data)

        logger.info("storage_write_completed", path=str(file_path), file_size=len(data))
        return StoredAsset(
            url=self.public_url(file_path),
            file_path=file_path,
            file_size_bytes=len(data),
            checksum=self._checksum(data),
            mime_type=self.MIME_TYPES[asset_type],
        )

    def store_narration(self, project_id: UUID, audio_data: bytes) -> StoredAsset:
        return self.store_bytes(audio_data, "audio", f"{project_id}.mp3")

    def publish_render(self, job_id: UUID, result: RenderResult) -> StoredAsset:
        """Make a successful render publicly reachable.

        Local renders are copied into ``final/``; cloud renders are already
        hosted and their URL is kept as is.
        """
        if result.output_path is not None:
            destination = self._path_for("final_video", f"{job_id}.mp4")
            destination.parent.mkdir(parents=True, exist_ok=True)
            shutil.copyfile(result.output_path, destination)
            size = destination.stat().st_size
            logger.info("storage_render_published", job_id=str(job_id), path=str(destination))
            return StoredAsset(
                url=self.public_url(destination),
                file_path=destination,
                file_size_bytes=size,
                checksum=self._checksum(destination.read_bytes()),
                mime_type=self.MIME_TYPES["final_video"],
            )

        if result.output_url:
            logger.info("storage_render_referenced", job_id=str(job_id), url=result.output_url[:100])
            return StoredAsset(
                url=result.output_url,
                file_path=None,
                file_size_bytes=result.file_size_bytes,
                checksum=None,
                mime_type=self.MIME_TYPES["final_video"],
            )

        raise ValueError("Render result has neither an output path nor an output URL")
