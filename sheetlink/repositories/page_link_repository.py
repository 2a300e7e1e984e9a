import uuid
from typing import List, Optional, Sequence

from sqlalchemy import delete, insert, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from sheetlink.core.exceptions import LinkPersistenceError
from sheetlink.database.models import PlanPageLink
from sheetlink.models.sheet_models import PageLinkRecord
from sheetlink.repositories.base_repository import BaseRepository


class PageLinkRepository(BaseRepository[PlanPageLink]):
    """Repository for sheet-to-sheet hyperlinks."""

    def __init__(self, session: AsyncSession):
        super().__init__(session, PlanPageLink)

    async def replace_auto_links(
        self,
        plan_id: uuid.UUID,
        links: Sequence[PageLinkRecord],
    ) -> int:
        """Swap a plan's auto-generated links for a new set.

        Manually created links (``is_auto = False``) are left alone. The delete
        and the insert commit together; on failure the session is rolled back
        and the previous links remain.

        Raises:
            LinkPersistenceError: If the write fails
        """
        try:
            await self.session.execute(
                delete(PlanPageLink).where(
                    PlanPageLink.plan_id == plan_id,
                    PlanPageLink.is_auto.is_(True),
                )
            )
            if links:
                await self.session.execute(
                    insert(PlanPageLink),
                    [self._row(plan_id, link) for link in links],
                )
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            self.logger.error(
                f"Failed to replace links for plan {plan_id}: {str(e)}",
                exc_info=True
            )
            raise LinkPersistenceError(
                f"Failed to replace links for plan {plan_id}", original_error=e
            ) from e

        self.logger.info(
            f"Replaced auto links for plan {plan_id}",
            extra={"plan_id": str(plan_id), "links": len(links)}
        )
        return len(links)

    async def list_links(
        self,
        plan_id: uuid.UUID,
        min_confidence: Optional[float] = None,
        source_page: Optional[int] = None,
    ) -> List[PlanPageLink]:
        """Links for a plan, optionally filtered by confidence and source page.

        Links without a confidence score are excluded whenever a minimum is set.
        """
        query = select(PlanPageLink).where(PlanPageLink.plan_id == plan_id)
        if min_confidence is not None and min_confidence > 0:
            query = query.where(PlanPageLink.confidence >= min_confidence)
        if source_page is not None:
            query = query.where(PlanPageLink.source_page == source_page)
        query = query.order_by(
            PlanPageLink.source_page, PlanPageLink.y_norm, PlanPageLink.x_norm
        )

        result = await self.session.execute(query)
        return list(result.scalars().all())

    @staticmethod
    def _row(plan_id: uuid.UUID, link: PageLinkRecord) -> dict:
        return {
            "id": uuid.uuid4(),
            "plan_id": plan_id,
            "source_page": link.source_page,
            "target_page": link.target_page,
            "reference_text": link.reference_text,
            "target_sheet_number": link.target_sheet_number,
            "target_title": link.target_title,
            "x_norm": link.x_norm,
            "y_norm": link.y_norm,
            "width_norm": link.width_norm,
            "height_norm": link.height_norm,
            "confidence": link.confidence,
            "is_auto": link.is_auto,
            "dedup_key": link.dedup_key,
        }
