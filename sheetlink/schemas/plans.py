"""Response schemas for plan analysis endpoints."""

from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from sheetlink.models.sheet_models import PageRevisionEntry


class PageLinkResponse(BaseModel):
    """A persisted hotspot as returned to the viewer."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    source_page: int
    target_page: int
    reference_text: str
    target_sheet_number: Optional[str] = None
    target_title: Optional[str] = None
    x_norm: float
    y_norm: float
    width_norm: float
    height_norm: float
    confidence: Optional[float] = None
    is_auto: bool
    dedup_key: str


class PageLinksResponse(BaseModel):
    plan_id: UUID
    min_confidence: str
    total: int
    links: List[PageLinkResponse]
    analysis_workflow_id: Optional[str] = Field(
        None, description="Set when this request queued the plan's first analysis"
    )


class RevisionGroupResponse(BaseModel):
    sheet_key: str
    current_page: int = Field(..., description="Page of the active revision")
    revisions: List[PageRevisionEntry]


class PlanRevisionsResponse(BaseModel):
    plan_id: UUID
    total: int
    groups: List[RevisionGroupResponse]


class AnalysisStartedResponse(BaseModel):
    plan_id: UUID
    workflow_id: str
    status: str = "started"
