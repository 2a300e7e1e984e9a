"""Temporal client connection management and workflow start helpers."""

from typing import Optional
from uuid import UUID

from temporalio.client import Client as TemporalClient
from temporalio.exceptions import WorkflowAlreadyStartedError

from sheetlink.core.config import settings
from sheetlink.core.exceptions import AnalysisInProgressError
from sheetlink.utils.logging import get_logger

LOGGER = get_logger(__name__)

PLAN_ANALYSIS_WORKFLOW = "PlanAnalysisWorkflow"


def plan_analysis_workflow_id(plan_id: UUID) -> str:
    """Deterministic workflow id; at most one analysis per plan can be running."""
    return f"plan-analysis-{plan_id}"


class TemporalClientManager:
    """Lazily creates a Temporal client and keeps it around for reuse."""

    _client: Optional[TemporalClient] = None

    async def get_client(self) -> TemporalClient:
        if self._client is None:
            self._client = await TemporalClient.connect(
                f"{settings.temporal_host}:{settings.temporal_port}",
                namespace=settings.temporal_namespace,
            )
        return self._client

    async def close(self) -> None:
        # temporalio clients hold no closeable resources of their own
        self._client = None


_temporal_manager = TemporalClientManager()


async def get_temporal_client() -> TemporalClient:
    """Get Temporal client instance."""
    return await _temporal_manager.get_client()


async def close_temporal_client() -> None:
    await _temporal_manager.close()


async def start_plan_analysis(client: TemporalClient, plan_id: UUID) -> str:
    """Start the analysis workflow for a plan.

    Returns:
        The workflow id

    Raises:
        AnalysisInProgressError: If a run for this plan is still executing
    """
    workflow_id = plan_analysis_workflow_id(plan_id)
    try:
        await client.start_workflow(
            PLAN_ANALYSIS_WORKFLOW,
            {
                "plan_id": str(plan_id),
                "timeout_minutes": settings.analysis_timeout_minutes,
            },
            id=workflow_id,
            task_queue=settings.temporal_task_queue,
        )
    except WorkflowAlreadyStartedError as e:
        LOGGER.info(
            f"Analysis workflow already running for plan {plan_id}",
            extra={"plan_id": str(plan_id), "workflow_id": workflow_id}
        )
        raise AnalysisInProgressError(plan_id) from e

    LOGGER.info(
        f"Started analysis workflow for plan {plan_id}",
        extra={"plan_id": str(plan_id), "workflow_id": workflow_id}
    )
    return workflow_id
