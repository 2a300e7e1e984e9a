"""Workflow running sheet analysis for one plan."""

from datetime import timedelta
from typing import Dict, Optional

from temporalio import workflow
from temporalio.common import RetryPolicy


@workflow.defn(name="PlanAnalysisWorkflow")
class PlanAnalysisWorkflow:
    """Runs the sheet analysis activity for a plan.

    Started with the id ``plan-analysis-<plan_id>`` so only one run per plan
    can be in flight.
    """

    def __init__(self):
        self._status = "initialized"
        self._report: Optional[Dict] = None

    @workflow.query
    def get_status(self) -> dict:
        return {
            "status": self._status,
            "links_written": self._report.get("links_written") if self._report else None,
            "failed_pages": self._report.get("failed_pages") if self._report else None,
        }

    @workflow.run
    async def run(self, payload: Dict) -> dict:
        plan_id = payload["plan_id"]
        timeout_minutes = payload.get("timeout_minutes", 30)
        self._status = "processing"

        self._report = await workflow.execute_activity(
            "analyze_plan_sheets",
            plan_id,
            start_to_close_timeout=timedelta(minutes=timeout_minutes),
            heartbeat_timeout=timedelta(minutes=5),
            retry_policy=RetryPolicy(maximum_attempts=3),
        )

        self._status = "completed"
        return {
            "status": self._status,
            "plan_id": plan_id,
            "report": self._report,
        }
