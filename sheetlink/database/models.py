"""SQLAlchemy models for plan, page, link and revision tables."""

import uuid
from datetime import datetime

from sqlalchemy import (
    Boolean,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    TIMESTAMP,
    UniqueConstraint,
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from sheetlink.core.database import Base


class Plan(Base):
    """An uploaded drawing set.

    ``analysis_in_progress`` together with ``analysis_version`` is the per-plan
    run lock taken by the sheet analysis pipeline.
    """

    __tablename__ = "plans"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    name: Mapped[str] = mapped_column(String, nullable=False)
    file_path: Mapped[str] = mapped_column(String, nullable=False)
    page_count: Mapped[int | None] = mapped_column(Integer, nullable=True)
    analysis_in_progress: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default="false"
    )
    analysis_version: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0, server_default="0"
    )
    analyzed_at: Mapped[datetime | None] = mapped_column(
        TIMESTAMP(timezone=True), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), server_default="NOW()"
    )
    updated_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), server_default="NOW()", onupdate=datetime.utcnow
    )

    pages: Mapped[list["PlanPage"]] = relationship(
        "PlanPage", back_populates="plan", cascade="all, delete-orphan"
    )


class PlanPage(Base):
    """Index entry for one physical sheet of a plan."""

    __tablename__ = "plan_pages"
    __table_args__ = (
        UniqueConstraint("plan_id", "page_number", name="uq_plan_pages_plan_page"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    plan_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("plans.id", ondelete="CASCADE"), nullable=False
    )
    page_number: Mapped[int] = mapped_column(Integer, nullable=False)
    sheet_number: Mapped[str | None] = mapped_column(String, nullable=True)
    page_title: Mapped[str | None] = mapped_column(String, nullable=True)
    discipline: Mapped[str | None] = mapped_column(String, nullable=True)
    page_description: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), server_default="NOW()"
    )
    updated_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), server_default="NOW()", onupdate=datetime.utcnow
    )

    plan: Mapped["Plan"] = relationship("Plan", back_populates="pages")


class PlanPageLink(Base):
    """A hyperlink hotspot from one sheet to another."""

    __tablename__ = "plan_page_links"
    __table_args__ = (
        UniqueConstraint("plan_id", "dedup_key", name="uq_plan_page_links_dedup_key"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    plan_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("plans.id", ondelete="CASCADE"), nullable=False, index=True
    )
    source_page: Mapped[int] = mapped_column(Integer, nullable=False)
    target_page: Mapped[int] = mapped_column(Integer, nullable=False)
    reference_text: Mapped[str] = mapped_column(String, nullable=False)
    target_sheet_number: Mapped[str | None] = mapped_column(String, nullable=True)
    target_title: Mapped[str | None] = mapped_column(String, nullable=True)
    x_norm: Mapped[float] = mapped_column(Float, nullable=False)
    y_norm: Mapped[float] = mapped_column(Float, nullable=False)
    width_norm: Mapped[float] = mapped_column(Float, nullable=False)
    height_norm: Mapped[float] = mapped_column(Float, nullable=False)
    confidence: Mapped[float | None] = mapped_column(Float, nullable=True)
    is_auto: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True, server_default="true"
    )
    dedup_key: Mapped[str] = mapped_column(String, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), server_default="NOW()"
    )


class PlanPageRevision(Base):
    """A revision entry for a sheet, grouped by normalized sheet key."""

    __tablename__ = "plan_page_revisions"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    plan_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("plans.id", ondelete="CASCADE"), nullable=False, index=True
    )
    target_page: Mapped[int] = mapped_column(Integer, nullable=False)
    sheet_number: Mapped[str | None] = mapped_column(String, nullable=True)
    normalized_sheet_key: Mapped[str] = mapped_column(String, nullable=False)
    revision_label: Mapped[str] = mapped_column(String, nullable=False)
    revision_sort: Mapped[int | None] = mapped_column(Integer, nullable=True)
    is_current: Mapped[bool | None] = mapped_column(Boolean, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), server_default="NOW()"
    )
