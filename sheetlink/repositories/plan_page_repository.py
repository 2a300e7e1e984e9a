import uuid
from datetime import datetime, timezone
from typing import List, Sequence

from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.ext.asyncio import AsyncSession

from sheetlink.database.models import PlanPage
from sheetlink.models.sheet_models import PageRecord
from sheetlink.repositories.base_repository import BaseRepository


class PlanPageRepository(BaseRepository[PlanPage]):
    """Repository for the per-page sheet index of a plan."""

    def __init__(self, session: AsyncSession):
        super().__init__(session, PlanPage)

    async def get_pages(self, plan_id: uuid.UUID) -> List[PageRecord]:
        """Page records for a plan ordered by page number."""
        rows = await self.list_for_plan(plan_id, order_by=[PlanPage.page_number])
        return [PageRecord.model_validate(row) for row in rows]

    async def upsert_pages(self, plan_id: uuid.UUID, records: Sequence[PageRecord]) -> int:
        """Insert or replace page records keyed by (plan, page number).

        Does not commit; the caller owns the transaction.

        Returns:
            Number of records written
        """
        if not records:
            return 0

        now = datetime.now(timezone.utc)
        values = [
            {
                "plan_id": plan_id,
                "page_number": record.page_number,
                "sheet_number": record.sheet_number,
                "page_title": record.page_title,
                "discipline": record.discipline,
                "page_description": record.page_description,
                "updated_at": now,
            }
            for record in records
        ]

        stmt = insert(PlanPage).values(values)
        stmt = stmt.on_conflict_do_update(
            constraint="uq_plan_pages_plan_page",
            set_={
                "sheet_number": stmt.excluded.sheet_number,
                "page_title": stmt.excluded.page_title,
                "discipline": stmt.excluded.discipline,
                "page_description": stmt.excluded.page_description,
                "updated_at": stmt.excluded.updated_at,
            },
        )
        await self.session.execute(stmt)

        self.logger.debug(
            f"Upserted {len(values)} page records for plan {plan_id}",
            extra={"plan_id": str(plan_id), "pages": len(values)}
        )
        return len(values)
