"""Data models for the sheet analysis pipeline.

This module defines the inputs (text runs, page records), outputs (links,
revision chains, unresolved references) and the run report produced by the
sheet analysis pipeline.
"""

from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, model_validator

from sheetlink.models.geometry import ReferenceKind


class TextRun(BaseModel):
    """A raw text item as produced by a PDF text layer.

    ``transform`` is the PDF text matrix ``[a, b, c, d, e, f]`` in bottom-up
    page units. It may be missing or malformed; such runs are skipped during
    geometry extraction.
    """

    text: str = Field(..., description="String content of the run")
    transform: Optional[List[float]] = Field(
        None, description="PDF text matrix [a, b, c, d, e, f]"
    )
    width: Optional[float] = Field(None, description="Run width in page units")
    height: Optional[float] = Field(None, description="Run height in page units")


class PageText(BaseModel):
    """Text layer of one page plus its unscaled viewport size."""

    page_number: int = Field(..., ge=1, description="1-indexed page number")
    viewport_width: float = Field(..., description="Unscaled viewport width")
    viewport_height: float = Field(..., description="Unscaled viewport height")
    runs: List[TextRun] = Field(default_factory=list)


class PageRecord(BaseModel):
    """Index metadata for one physical sheet, keyed by (plan, page number)."""

    model_config = ConfigDict(from_attributes=True)

    plan_id: Optional[UUID] = None
    page_number: int = Field(..., ge=1)
    sheet_number: Optional[str] = None
    page_title: Optional[str] = None
    discipline: Optional[str] = None
    page_description: Optional[str] = None


class PageLinkRecord(BaseModel):
    """A resolved link row, ready to be persisted."""

    model_config = ConfigDict(from_attributes=True)

    plan_id: Optional[UUID] = None
    source_page: int = Field(..., ge=1)
    target_page: int = Field(..., ge=1)
    reference_text: str
    normalized_ref: str = Field(..., min_length=1)
    target_sheet_number: Optional[str] = None
    target_title: Optional[str] = None
    x_norm: float = Field(..., ge=0.0, le=1.0)
    y_norm: float = Field(..., ge=0.0, le=1.0)
    width_norm: float = Field(..., ge=0.01, le=1.0)
    height_norm: float = Field(..., ge=0.01, le=1.0)
    confidence: Optional[float] = Field(None, ge=0.0, le=1.0)
    kind: ReferenceKind = ReferenceKind.SHEET_REF
    is_auto: bool = True
    dedup_key: str

    @model_validator(mode="after")
    def _reject_self_link(self) -> "PageLinkRecord":
        if self.source_page == self.target_page:
            raise ValueError("A link cannot point to its own source page")
        return self


class PageRevisionEntry(BaseModel):
    """One sheet revision inside a revision chain."""

    model_config = ConfigDict(from_attributes=True)

    plan_id: Optional[UUID] = None
    target_page: int
    sheet_number: Optional[str] = None
    normalized_sheet_key: Optional[str] = None
    revision_label: str = ""
    revision_sort: Optional[int] = None
    is_current: Optional[bool] = None


class RevisionGroup(BaseModel):
    """All revisions of one sheet, newest/active first."""

    sheet_key: str
    revisions: List[PageRevisionEntry]

    @property
    def current(self) -> PageRevisionEntry:
        return self.revisions[0]


class UnresolvedReference(BaseModel):
    """A detected reference with no destination page ("needs attention")."""

    source_page: int
    reference_text: str
    normalized_ref: str
    kind: ReferenceKind
    x_norm: float
    y_norm: float
    width_norm: float
    height_norm: float


class AnalysisResult(BaseModel):
    """Output of the pure analysis function."""

    links: List[PageLinkRecord] = Field(default_factory=list)
    revisions: List[RevisionGroup] = Field(default_factory=list)
    unresolved: List[UnresolvedReference] = Field(default_factory=list)


class AnalysisReport(BaseModel):
    """Summary of one persisted analysis run for a plan."""

    plan_id: UUID
    analysis_version: int
    total_pages: int
    failed_pages: List[int] = Field(default_factory=list)
    links_written: int = 0
    link_write_failed: bool = False
    unresolved: List[UnresolvedReference] = Field(default_factory=list)
    revisions: List[RevisionGroup] = Field(default_factory=list)

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "plan_id": "5f0c2a7e-1d3b-4c55-9a0e-3c2b1f6d8e90",
                "analysis_version": 3,
                "total_pages": 42,
                "failed_pages": [17],
                "links_written": 128,
                "link_write_failed": False,
                "unresolved": [],
                "revisions": [],
            }
        }
    )
