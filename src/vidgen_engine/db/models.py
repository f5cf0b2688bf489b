"""SQLAlchemy ORM models."""

from datetime import datetime
from typing import Any
from uuid import UUID as PyUUID
from uuid import uuid4

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    Uuid,
    true,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship
from sqlalchemy.sql import func

# JSONB on Postgres, plain JSON elsewhere (SQLite in tests)
JSONType = JSON().with_variant(JSONB(), "postgresql")


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


class ApiKeyModel(Base):
    """API key ORM model. Only the SHA-256 of the secret is stored."""

    __tablename__ = "api_keys"

    id: Mapped[PyUUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    owner_id: Mapped[PyUUID] = mapped_column(Uuid, nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    key_prefix: Mapped[str] = mapped_column(String(32), nullable=False)
    key_hash: Mapped[str] = mapped_column(String(64), nullable=False, unique=True)
    status: Mapped[str] = mapped_column(
        String(20), default="active", server_default="active", index=True
    )
    rate_limit_per_minute: Mapped[int] = mapped_column(Integer, default=10, server_default="10")
    last_used_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    expires_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )


class ProjectModel(Base):
    """Video project ORM model."""

    __tablename__ = "projects"

    id: Mapped[PyUUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    owner_id: Mapped[PyUUID] = mapped_column(Uuid, nullable=False, index=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    script_content: Mapped[str] = mapped_column(Text, nullable=False)
    style_template: Mapped[str] = mapped_column(String(100), nullable=False)
    mode: Mapped[str] = mapped_column(String(20), nullable=False)
    duration_seconds: Mapped[int] = mapped_column(Integer, default=30, server_default="30")
    aspect_ratio: Mapped[str] = mapped_column(String(10), default="16:9", server_default="16:9")
    subtitle_config: Mapped[dict[str, Any] | None] = mapped_column(JSONType, nullable=True)
    voice_id: Mapped[str | None] = mapped_column(String(100), nullable=True)
    webhook_url: Mapped[str | None] = mapped_column(String(2048), nullable=True)
    status: Mapped[str] = mapped_column(
        String(20), default="draft", server_default="draft", index=True
    )
    # Director checkpoints
    analysis: Mapped[dict[str, Any] | None] = mapped_column(JSONType, nullable=True)
    narration_script: Mapped[str | None] = mapped_column(Text, nullable=True)
    narration_url: Mapped[str | None] = mapped_column(String(2048), nullable=True)
    narration_duration_seconds: Mapped[float | None] = mapped_column(Float, nullable=True)
    video_url: Mapped[str | None] = mapped_column(String(2048), nullable=True)
    error_message: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), onupdate=func.now()
    )

    # Relationships
    scenes: Mapped[list["SceneModel"]] = relationship(
        "SceneModel",
        back_populates="project",
        cascade="all, delete-orphan",
        order_by="SceneModel.scene_index",
    )
    render_jobs: Mapped[list["RenderJobModel"]] = relationship(
        "RenderJobModel", back_populates="project", cascade="all, delete-orphan"
    )


class RenderJobModel(Base):
    """Render queue entry ORM model."""

    __tablename__ = "render_jobs"

    id: Mapped[PyUUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    project_id: Mapped[PyUUID] = mapped_column(
        Uuid, ForeignKey("projects.id", ondelete="CASCADE"), index=True
    )
    owner_id: Mapped[PyUUID] = mapped_column(Uuid, nullable=False, index=True)
    priority: Mapped[int] = mapped_column(Integer, default=0, server_default="0")
    status: Mapped[str] = mapped_column(String(20), default="pending", server_default="pending")
    attempts: Mapped[int] = mapped_column(Integer, default=0, server_default="0")
    max_attempts: Mapped[int] = mapped_column(Integer, default=3, server_default="3")
    next_retry_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    aspect_ratio: Mapped[str] = mapped_column(String(10), default="16:9", server_default="16:9")
    burn_subtitles: Mapped[bool] = mapped_column(Boolean, default=True, server_default=true())
    output_url: Mapped[str | None] = mapped_column(String(2048), nullable=True)
    error_message: Mapped[str | None] = mapped_column(Text, nullable=True)
    processing_seconds: Mapped[float | None] = mapped_column(Float, nullable=True)
    lease_expires_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    lease_generation: Mapped[int] = mapped_column(Integer, default=0, server_default="0")
    started_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), onupdate=func.now()
    )

    __table_args__ = (
        Index("ix_render_jobs_claim_order", "status", "priority", "created_at"),
        CheckConstraint("attempts <= max_attempts", name="ck_render_jobs_attempts"),
    )

    project: Mapped["ProjectModel"] = relationship("ProjectModel", back_populates="render_jobs")


class SceneModel(Base):
    """Scene clip ORM model."""

    __tablename__ = "scenes"

    id: Mapped[PyUUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    project_id: Mapped[PyUUID] = mapped_column(
        Uuid, ForeignKey("projects.id", ondelete="CASCADE"), index=True
    )
    scene_index: Mapped[int] = mapped_column(Integer, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    prompt: Mapped[str] = mapped_column(Text, nullable=False)
    narration_text: Mapped[str | None] = mapped_column(Text, nullable=True)
    duration_seconds: Mapped[float | None] = mapped_column(Float, nullable=True)
    mood: Mapped[str | None] = mapped_column(String(50), nullable=True)
    camera_movement: Mapped[str | None] = mapped_column(String(50), nullable=True)
    media_type: Mapped[str] = mapped_column(String(20), default="video", server_default="video")
    status: Mapped[str] = mapped_column(
        String(20), default="pending", server_default="pending", index=True
    )
    clip_url: Mapped[str | None] = mapped_column(String(2048), nullable=True)
    error_message: Mapped[str | None] = mapped_column(Text, nullable=True)
    attempts: Mapped[int] = mapped_column(Integer, default=0, server_default="0")
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), onupdate=func.now()
    )

    __table_args__ = (UniqueConstraint("project_id", "scene_index", name="uq_scene_index"),)

    project: Mapped["ProjectModel"] = relationship("ProjectModel", back_populates="scenes")


class WebhookSubscriptionModel(Base):
    """Registered webhook endpoint with its signing secret."""

    __tablename__ = "webhook_subscriptions"

    id: Mapped[PyUUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    owner_id: Mapped[PyUUID] = mapped_column(Uuid, nullable=False, index=True)
    url: Mapped[str] = mapped_column(String(2048), nullable=False)
    secret: Mapped[str] = mapped_column(String(128), nullable=False)
    active: Mapped[bool] = mapped_column(Boolean, default=True, server_default=true())
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    __table_args__ = (UniqueConstraint("owner_id", "url", name="uq_webhook_owner_url"),)


class WebhookDeliveryModel(Base):
    """One webhook notification and its delivery attempts."""

    __tablename__ = "webhook_deliveries"

    id: Mapped[PyUUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    project_id: Mapped[PyUUID] = mapped_column(
        Uuid, ForeignKey("projects.id", ondelete="CASCADE"), index=True
    )
    subscription_id: Mapped[PyUUID | None] = mapped_column(
        Uuid, ForeignKey("webhook_subscriptions.id", ondelete="SET NULL"), nullable=True
    )
    url: Mapped[str] = mapped_column(String(2048), nullable=False)
    status: Mapped[str] = mapped_column(
        String(20), default="pending", server_default="pending", index=True
    )
    payload: Mapped[dict[str, Any]] = mapped_column(JSONType, nullable=False)
    response_code: Mapped[int | None] = mapped_column(Integer, nullable=True)
    response_body: Mapped[str | None] = mapped_column(Text, nullable=True)
    attempts: Mapped[int] = mapped_column(Integer, default=0, server_default="0")
    max_attempts: Mapped[int] = mapped_column(Integer, default=3, server_default="3")
    next_retry_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    last_attempt_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    delivered_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    __table_args__ = (Index("ix_webhook_deliveries_due", "status", "next_retry_at"),)
