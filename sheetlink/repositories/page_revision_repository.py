import uuid
from typing import List, Sequence

from sqlalchemy import delete, insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from sheetlink.core.exceptions import LinkPersistenceError
from sheetlink.database.models import PlanPageRevision
from sheetlink.models.sheet_models import PageRevisionEntry, RevisionGroup
from sheetlink.repositories.base_repository import BaseRepository


class PageRevisionRepository(BaseRepository[PlanPageRevision]):
    """Repository for sheet revision rows."""

    def __init__(self, session: AsyncSession):
        super().__init__(session, PlanPageRevision)

    async def get_entries(self, plan_id: uuid.UUID) -> List[PageRevisionEntry]:
        rows = await self.list_for_plan(plan_id, order_by=[PlanPageRevision.target_page])
        return [PageRevisionEntry.model_validate(row) for row in rows]

    async def replace_revisions(
        self,
        plan_id: uuid.UUID,
        groups: Sequence[RevisionGroup],
    ) -> int:
        """Replace all revision rows of a plan with freshly derived chains.

        Raises:
            LinkPersistenceError: If the write fails; the session is rolled back
        """
        rows = [
            {
                "id": uuid.uuid4(),
                "plan_id": plan_id,
                "target_page": entry.target_page,
                "sheet_number": entry.sheet_number,
                "normalized_sheet_key": entry.normalized_sheet_key or group.sheet_key,
                "revision_label": entry.revision_label,
                "revision_sort": entry.revision_sort,
                "is_current": entry.is_current,
            }
            for group in groups
            for entry in group.revisions
        ]

        try:
            await self.session.execute(
                delete(PlanPageRevision).where(PlanPageRevision.plan_id == plan_id)
            )
            if rows:
                await self.session.execute(insert(PlanPageRevision), rows)
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            self.logger.error(
                f"Failed to replace revisions for plan {plan_id}: {str(e)}",
                exc_info=True
            )
            raise LinkPersistenceError(
                f"Failed to replace revisions for plan {plan_id}", original_error=e
            ) from e

        return len(rows)
