"""Unit tests for the plan analysis activity and workflow start helper."""

import pytest
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch
from uuid import uuid4

from temporalio.exceptions import ApplicationError, WorkflowAlreadyStartedError
from temporalio.testing import ActivityEnvironment

from sheetlink.core.exceptions import AnalysisInProgressError
from sheetlink.core.temporal_client import plan_analysis_workflow_id, start_plan_analysis
from sheetlink.models.sheet_models import AnalysisReport
from sheetlink.temporal.activities import plan_analysis as activity_module


def _session_maker(session):
    maker = MagicMock()
    maker.return_value.__aenter__ = AsyncMock(return_value=session)
    maker.return_value.__aexit__ = AsyncMock(return_value=False)
    return maker


class TestAnalyzePlanSheetsActivity:
    """analyze_plan_sheets activity."""

    @pytest.mark.asyncio
    async def test_runs_pipeline_for_plan_file(self):
        plan_id = uuid4()
        plan = SimpleNamespace(id=plan_id, file_path="https://files.example.com/plans/set.pdf")
        report = AnalysisReport(plan_id=plan_id, analysis_version=2, total_pages=4, links_written=9)

        pipeline_cls = MagicMock()
        pipeline_cls.return_value.run = AsyncMock(return_value=report)
        plan_repository_cls = MagicMock()
        plan_repository_cls.return_value.get_plan = AsyncMock(return_value=plan)

        with patch.object(activity_module, "async_session_maker", _session_maker(AsyncMock())), \
                patch.object(activity_module, "SheetAnalysisPipeline", pipeline_cls), \
                patch.object(activity_module, "PlanRepository", plan_repository_cls):
            result = await ActivityEnvironment().run(activity_module.analyze_plan_sheets, str(plan_id))

        assert result["plan_id"] == str(plan_id)
        assert result["links_written"] == 9
        run_args = pipeline_cls.return_value.run.await_args
        assert run_args.args == (plan_id, "https://files.example.com/plans/set.pdf")
        assert run_args.kwargs["progress"] is activity_module._report_progress

    @pytest.mark.asyncio
    async def test_lock_conflict_is_not_retried(self):
        plan_id = uuid4()
        plan = SimpleNamespace(id=plan_id, file_path="/plans/set.pdf")

        pipeline_cls = MagicMock()
        pipeline_cls.return_value.run = AsyncMock(side_effect=AnalysisInProgressError(plan_id))
        plan_repository_cls = MagicMock()
        plan_repository_cls.return_value.get_plan = AsyncMock(return_value=plan)

        with patch.object(activity_module, "async_session_maker", _session_maker(AsyncMock())), \
                patch.object(activity_module, "SheetAnalysisPipeline", pipeline_cls), \
                patch.object(activity_module, "PlanRepository", plan_repository_cls):
            with pytest.raises(ApplicationError) as exc_info:
                await ActivityEnvironment().run(activity_module.analyze_plan_sheets, str(plan_id))

        assert exc_info.value.non_retryable is True
        assert exc_info.value.type == "AnalysisInProgressError"


class TestStartPlanAnalysis:
    """Workflow start helper."""

    @pytest.mark.asyncio
    async def test_uses_deterministic_workflow_id(self):
        plan_id = uuid4()
        client = MagicMock()
        client.start_workflow = AsyncMock()

        workflow_id = await start_plan_analysis(client, plan_id)

        assert workflow_id == f"plan-analysis-{plan_id}"
        assert workflow_id == plan_analysis_workflow_id(plan_id)
        args, kwargs = client.start_workflow.await_args
        assert args[0] == "PlanAnalysisWorkflow"
        assert args[1]["plan_id"] == str(plan_id)
        assert kwargs["id"] == workflow_id

    @pytest.mark.asyncio
    async def test_running_workflow_maps_to_conflict(self):
        plan_id = uuid4()
        client = MagicMock()
        client.start_workflow = AsyncMock(
            side_effect=WorkflowAlreadyStartedError(f"plan-analysis-{plan_id}", "PlanAnalysisWorkflow")
        )

        with pytest.raises(AnalysisInProgressError) as exc_info:
            await start_plan_analysis(client, plan_id)

        assert exc_info.value.plan_id == plan_id
