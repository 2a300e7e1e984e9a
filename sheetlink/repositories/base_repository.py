from typing import Generic, TypeVar, Type, Optional, List, Any, Dict
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func
from sqlalchemy.exc import SQLAlchemyError

from sheetlink.utils.logging import get_logger

# Define a generic type for SQLAlchemy models
ModelType = TypeVar("ModelType")

LOGGER = get_logger(__name__)


class BaseRepository(Generic[ModelType]):
    """Base repository with the lookups shared by every plan table.

    Write paths are table-specific (conditional lock updates, upserts, bulk
    replace) and live on the concrete repositories.
    """

    def __init__(self, session: AsyncSession, model: Type[ModelType]):
        """Initialize the repository.

        Args:
            session: SQLAlchemy async session
            model: The SQLAlchemy model class this repository manages
        """
        self.session = session
        self.model = model
        self.logger = LOGGER

    async def get_by_id(self, id: UUID) -> Optional[ModelType]:
        """Get a record by its ID, or None."""
        try:
            query = select(self.model).where(self.model.id == id)
            result = await self.session.execute(query)
            return result.scalar_one_or_none()
        except SQLAlchemyError as e:
            self.logger.error(
                f"Error retrieving {self.model.__name__} by ID {id}: {str(e)}",
                exc_info=True
            )
            raise

    async def list_for_plan(
        self,
        plan_id: UUID,
        filters: Optional[Dict[str, Any]] = None,
        order_by: Optional[List[Any]] = None,
    ) -> List[ModelType]:
        """All rows belonging to a plan.

        Args:
            plan_id: Plan to list rows for
            filters: Dictionary of field_name: value to filter by
            order_by: Columns to order by

        Returns:
            List of records
        """
        try:
            query = select(self.model).where(self.model.plan_id == plan_id)

            if filters:
                for field, value in filters.items():
                    if hasattr(self.model, field):
                        query = query.where(getattr(self.model, field) == value)

            if order_by:
                query = query.order_by(*order_by)

            result = await self.session.execute(query)
            return list(result.scalars().all())
        except SQLAlchemyError as e:
            self.logger.error(
                f"Error listing {self.model.__name__} for plan {plan_id}: {str(e)}",
                exc_info=True
            )
            raise

    async def count_for_plan(self, plan_id: UUID) -> int:
        """Count rows belonging to a plan."""
        try:
            query = (
                select(func.count())
                .select_from(self.model)
                .where(self.model.plan_id == plan_id)
            )
            result = await self.session.execute(query)
            return result.scalar_one()
        except SQLAlchemyError as e:
            self.logger.error(
                f"Error counting {self.model.__name__} for plan {plan_id}: {str(e)}",
                exc_info=True
            )
            raise
