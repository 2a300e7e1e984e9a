"""Plan analysis, link and revision endpoints."""

from typing import Annotated, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession
from temporalio.client import Client as TemporalClient

from sheetlink.core.database import get_async_session as get_session
from sheetlink.core.exceptions import AnalysisInProgressError, PlanNotFoundError
from sheetlink.core.temporal_client import get_temporal_client, start_plan_analysis
from sheetlink.pipeline.sheet_analysis import ensure_plan_analyzed
from sheetlink.repositories.page_link_repository import PageLinkRepository
from sheetlink.repositories.page_revision_repository import PageRevisionRepository
from sheetlink.repositories.plan_page_repository import PlanPageRepository
from sheetlink.repositories.plan_repository import PlanRepository
from sheetlink.schemas.common import ApiResponse
from sheetlink.schemas.plans import (
    AnalysisStartedResponse,
    PageLinkResponse,
    PageLinksResponse,
    PlanRevisionsResponse,
    RevisionGroupResponse,
)
from sheetlink.services.overlay.hotspot_overlay import ConfidenceFilter
from sheetlink.services.revisions.revision_grouper import derive_revisions, group_revisions
from sheetlink.utils.logging import get_logger
from sheetlink.utils.responses import create_api_response, create_error_detail

LOGGER = get_logger(__name__)

router = APIRouter()


async def get_plan_repository(
    db_session: Annotated[AsyncSession, Depends(get_session)]
) -> PlanRepository:
    return PlanRepository(db_session)


async def get_page_repository(
    db_session: Annotated[AsyncSession, Depends(get_session)]
) -> PlanPageRepository:
    return PlanPageRepository(db_session)


async def get_link_repository(
    db_session: Annotated[AsyncSession, Depends(get_session)]
) -> PageLinkRepository:
    return PageLinkRepository(db_session)


async def get_revision_repository(
    db_session: Annotated[AsyncSession, Depends(get_session)]
) -> PageRevisionRepository:
    return PageRevisionRepository(db_session)


def _not_found(request: Request, error: PlanNotFoundError) -> HTTPException:
    error_detail = create_error_detail(
        title="Plan Not Found",
        status=status.HTTP_404_NOT_FOUND,
        detail=str(error),
        request=request
    )
    return HTTPException(status_code=404, detail=error_detail.model_dump(mode="json"))


def _conflict(request: Request, error: AnalysisInProgressError) -> HTTPException:
    error_detail = create_error_detail(
        title="Analysis In Progress",
        status=status.HTTP_409_CONFLICT,
        detail=str(error),
        request=request
    )
    return HTTPException(status_code=409, detail=error_detail.model_dump(mode="json"))


async def _start_workflow(plan_id: UUID) -> str:
    client = await get_temporal_client()
    return await start_plan_analysis(client, plan_id)


@router.post(
    "/{plan_id}/analysis",
    response_model=ApiResponse,
    status_code=status.HTTP_202_ACCEPTED,
    summary="Start sheet analysis for a plan",
    operation_id="start_plan_analysis",
)
async def start_analysis(
    request: Request,
    plan_id: UUID,
    plan_repository: Annotated[PlanRepository, Depends(get_plan_repository)],
    temporal_client: Annotated[TemporalClient, Depends(get_temporal_client)],
) -> ApiResponse:
    """Queue a sheet analysis run; only one run per plan may be in flight."""
    try:
        plan = await plan_repository.get_plan(plan_id)
        if plan.analysis_in_progress:
            raise AnalysisInProgressError(plan_id)
        workflow_id = await start_plan_analysis(temporal_client, plan_id)
    except PlanNotFoundError as e:
        raise _not_found(request, e)
    except AnalysisInProgressError as e:
        raise _conflict(request, e)

    return create_api_response(
        data=AnalysisStartedResponse(plan_id=plan_id, workflow_id=workflow_id),
        message="Plan analysis started",
        request=request
    )


@router.get(
    "/{plan_id}/links",
    response_model=ApiResponse,
    summary="List sheet links for a plan",
    operation_id="list_plan_links",
)
async def list_links(
    request: Request,
    plan_id: UUID,
    plan_repository: Annotated[PlanRepository, Depends(get_plan_repository)],
    link_repository: Annotated[PageLinkRepository, Depends(get_link_repository)],
    page_repository: Annotated[PlanPageRepository, Depends(get_page_repository)],
    min_confidence: ConfidenceFilter = Query(ConfidenceFilter.ALL),
    source_page: Optional[int] = Query(None, ge=1),
) -> ApiResponse:
    """Links of a plan filtered by confidence level and, optionally, source page.

    Opening a plan that has never been indexed queues its first analysis run.
    """
    try:
        plan = await plan_repository.get_plan(plan_id)
    except PlanNotFoundError as e:
        raise _not_found(request, e)

    workflow_id = await ensure_plan_analyzed(plan, page_repository, _start_workflow)

    rows = await link_repository.list_links(
        plan_id,
        min_confidence=min_confidence.threshold,
        source_page=source_page,
    )
    links = [PageLinkResponse.model_validate(row) for row in rows]

    return create_api_response(
        data=PageLinksResponse(
            plan_id=plan_id,
            min_confidence=min_confidence.value,
            total=len(links),
            links=links,
            analysis_workflow_id=workflow_id,
        ),
        message="Links retrieved successfully",
        request=request
    )


@router.get(
    "/{plan_id}/revisions",
    response_model=ApiResponse,
    summary="List revision chains for a plan",
    operation_id="list_plan_revisions",
)
async def list_revisions(
    request: Request,
    plan_id: UUID,
    plan_repository: Annotated[PlanRepository, Depends(get_plan_repository)],
    revision_repository: Annotated[PageRevisionRepository, Depends(get_revision_repository)],
    page_repository: Annotated[PlanPageRepository, Depends(get_page_repository)],
) -> ApiResponse:
    """Revision chains, newest first. Derived from the page index when none are stored."""
    try:
        await plan_repository.get_plan(plan_id)
    except PlanNotFoundError as e:
        raise _not_found(request, e)

    entries = await revision_repository.get_entries(plan_id)
    if entries:
        groups = group_revisions(entries)
    else:
        groups = derive_revisions(await page_repository.get_pages(plan_id))

    return create_api_response(
        data=PlanRevisionsResponse(
            plan_id=plan_id,
            total=len(groups),
            groups=[
                RevisionGroupResponse(
                    sheet_key=group.sheet_key,
                    current_page=group.current.target_page,
                    revisions=group.revisions,
                )
                for group in groups
            ],
        ),
        message="Revisions retrieved successfully",
        request=request
    )
