import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession

from sheetlink.core.exceptions import AnalysisInProgressError, PlanNotFoundError
from sheetlink.database.models import Plan
from sheetlink.repositories.base_repository import BaseRepository


class PlanRepository(BaseRepository[Plan]):
    """Repository for plans and their per-plan analysis lock."""

    def __init__(self, session: AsyncSession):
        super().__init__(session, Plan)

    async def get_plan(self, plan_id: uuid.UUID) -> Plan:
        """Get a plan or raise PlanNotFoundError."""
        plan = await self.get_by_id(plan_id)
        if plan is None:
            raise PlanNotFoundError(f"Plan {plan_id} not found")
        return plan

    async def try_begin_analysis(self, plan_id: uuid.UUID) -> int:
        """Take the analysis lock for a plan.

        A single conditional UPDATE flips ``analysis_in_progress`` and bumps
        ``analysis_version``, so two concurrent callers can never both succeed.

        Returns:
            The new analysis version, which must be passed to finish_analysis

        Raises:
            AnalysisInProgressError: If another run holds the lock
            PlanNotFoundError: If the plan does not exist
        """
        stmt = (
            update(Plan)
            .where(Plan.id == plan_id, Plan.analysis_in_progress.is_(False))
            .values(
                analysis_in_progress=True,
                analysis_version=Plan.analysis_version + 1,
                updated_at=datetime.now(timezone.utc),
            )
            .returning(Plan.analysis_version)
        )
        result = await self.session.execute(stmt)
        version: Optional[int] = result.scalar_one_or_none()

        if version is None:
            await self.session.rollback()
            # Distinguish a missing plan from a held lock
            await self.get_plan(plan_id)
            raise AnalysisInProgressError(plan_id)

        await self.session.commit()
        self.logger.info(
            f"Acquired analysis lock for plan {plan_id}",
            extra={"plan_id": str(plan_id), "analysis_version": version}
        )
        return version

    async def finish_analysis(
        self,
        plan_id: uuid.UUID,
        version: int,
        page_count: Optional[int] = None,
        succeeded: bool = False,
    ) -> bool:
        """Release the lock taken by ``try_begin_analysis``.

        Only the run holding ``version`` may release it. ``analyzed_at`` is
        stamped only for a successful run. Returns True when the lock was
        released.
        """
        now = datetime.now(timezone.utc)
        values = {
            "analysis_in_progress": False,
            "updated_at": now,
        }
        if succeeded:
            values["analyzed_at"] = now
        if page_count is not None:
            values["page_count"] = page_count

        stmt = (
            update(Plan)
            .where(Plan.id == plan_id, Plan.analysis_version == version)
            .values(**values)
        )
        result = await self.session.execute(stmt)
        await self.session.commit()

        released = result.rowcount > 0
        if not released:
            self.logger.warning(
                f"Analysis lock for plan {plan_id} was not held by version {version}",
                extra={"plan_id": str(plan_id), "analysis_version": version}
            )
        return released
