"""Plan analysis activity for Temporal workflows."""

from uuid import UUID

from temporalio import activity
from temporalio.exceptions import ApplicationError

from sheetlink.core.database import async_session_maker
from sheetlink.core.exceptions import AnalysisInProgressError, PlanNotFoundError
from sheetlink.pipeline.sheet_analysis import SheetAnalysisPipeline
from sheetlink.repositories.plan_repository import PlanRepository
from sheetlink.utils.logging import get_logger

logger = get_logger(__name__)


def _report_progress(current: int, total: int) -> None:
    activity.heartbeat({"current_page": current, "total_pages": total})


@activity.defn(name="analyze_plan_sheets")
async def analyze_plan_sheets(plan_id: str) -> dict:
    """Extract, detect, resolve and persist links for every sheet of a plan."""
    activity.logger.info(
        "Starting sheet analysis",
        extra={"plan_id": plan_id}
    )

    try:
        async with async_session_maker() as session:
            plan = await PlanRepository(session).get_plan(UUID(plan_id))
            pipeline = SheetAnalysisPipeline(session)
            report = await pipeline.run(
                plan.id, plan.file_path, progress=_report_progress
            )
            return report.model_dump(mode="json")
    except (AnalysisInProgressError, PlanNotFoundError) as e:
        # Permanent failures; do not retry
        raise ApplicationError(str(e), type=type(e).__name__, non_retryable=True) from e
    except Exception as e:
        activity.logger.error(f"Sheet analysis failed: {e}", exc_info=True)
        raise
