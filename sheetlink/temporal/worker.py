"""Temporal worker for plan analysis.

Connects to the Temporal server from settings and polls the plan analysis
task queue.
"""

import asyncio

from temporalio.client import Client
from temporalio.worker import Worker
from temporalio.worker.workflow_sandbox import SandboxedWorkflowRunner, SandboxRestrictions

from sheetlink.core.config import settings
from sheetlink.temporal.activities.plan_analysis import analyze_plan_sheets
from sheetlink.temporal.workflows.plan_analysis import PlanAnalysisWorkflow
from sheetlink.utils.logging import get_logger

logger = get_logger(__name__)

WORKFLOWS = [PlanAnalysisWorkflow]
ACTIVITIES = [analyze_plan_sheets]


async def connect_with_retries(max_retries: int = 5, retry_delay: int = 5) -> Client:
    for attempt in range(max_retries):
        try:
            logger.info(
                f"Connecting to Temporal server at {settings.temporal_host}:{settings.temporal_port} "
                f"(Attempt {attempt + 1}/{max_retries})"
            )
            return await Client.connect(
                target_host=f"{settings.temporal_host}:{settings.temporal_port}",
                namespace=settings.temporal_namespace,
            )
        except Exception as e:
            if attempt < max_retries - 1:
                logger.warning(f"Connection attempt {attempt + 1} failed: {e}. Retrying in {retry_delay}s...")
                await asyncio.sleep(retry_delay)
            else:
                logger.error(f"Failed to connect to Temporal server after {max_retries} attempts: {e}")
                raise


def build_worker(client: Client) -> Worker:
    return Worker(
        client,
        task_queue=settings.temporal_task_queue,
        workflows=WORKFLOWS,
        activities=ACTIVITIES,
        max_concurrent_activities=4,
        workflow_runner=SandboxedWorkflowRunner(
            restrictions=SandboxRestrictions.default.with_passthrough_all_modules()
        ),
    )


async def main():
    client = await connect_with_retries()
    worker = build_worker(client)
    logger.info(f"Worker polling task queue '{settings.temporal_task_queue}'")
    await worker.run()


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        logger.info("Worker stopped by user")
