"""
Write path for smells: create, partial update, delete and bulk actions.
"""
from sqlalchemy import select, update, delete
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm.exc import StaleDataError
from sqlalchemy.ext.asyncio import AsyncSession

from core.exceptions import ConflictException, ResourceNotFoundException, ValidationException
from core.logging import get_logger
from core.security import Principal
from models.models import Smell, utc_now
from schemas.smell import SmellCreate, SmellUpdate, SmellRead, SmellBulkRequest
from services.smell_query_service import SmellQueryService

logger = get_logger("smell_mutation_service")


class SmellMutationService:
    """Service for managing smell content. Every call is one transaction."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _title_taken(self, title: str, exclude_id: int = None) -> bool:
        stmt = select(Smell.id).where(Smell.title == title)
        if exclude_id is not None:
            stmt = stmt.where(Smell.id != exclude_id)
        return (await self.db.execute(stmt.limit(1))).scalar_one_or_none() is not None

    async def create_smell(self, data: SmellCreate, principal: Principal) -> SmellRead:
        if await self._title_taken(data.title):
            logger.warning("Duplicate smell title rejected", title=data.title, user_id=principal.user_id)
            raise ConflictException("A smell with this title already exists", field="title")

        smell = Smell(**data.model_dump())
        self.db.add(smell)
        try:
            await self.db.commit()
        except IntegrityError:
            # Lost a race with a concurrent create of the same title
            await self.db.rollback()
            logger.warning("Duplicate smell title rejected on insert", title=data.title)
            raise ConflictException("A smell with this title already exists", field="title")
        await self.db.refresh(smell)

        logger.info("Smell created", smell_id=smell.id, title=smell.title, user_id=principal.user_id)
        return SmellRead.model_validate(smell)

    async def update_smell(self, smell_id: int, data: SmellUpdate, principal: Principal) -> SmellRead:
        smell = await self.db.get(Smell, smell_id)
        if smell is None:
            raise ResourceNotFoundException("Smell not found")

        changes = data.model_dump(exclude_unset=True)
        if "title" in changes and changes["title"] != smell.title:
            if await self._title_taken(changes["title"], exclude_id=smell_id):
                logger.warning("Duplicate smell title rejected", title=changes["title"], smell_id=smell_id)
                raise ConflictException("A smell with this title already exists", field="title")

        for field, value in changes.items():
            setattr(smell, field, value)

        try:
            await self.db.commit()
        except StaleDataError:
            await self.db.rollback()
            raise ResourceNotFoundException("Smell not found")
        except IntegrityError:
            await self.db.rollback()
            raise ConflictException("A smell with this title already exists", field="title")

        logger.info("Smell updated", smell_id=smell_id, fields=sorted(changes), user_id=principal.user_id)
        return await SmellQueryService(self.db).get_smell(smell_id, principal)

    async def delete_smell(self, smell_id: int, principal: Principal) -> None:
        """Delete a smell; favorites and progress rows go with it."""
        result = await self.db.execute(delete(Smell).where(Smell.id == smell_id))
        if result.rowcount == 0:
            await self.db.rollback()
            raise ResourceNotFoundException("Smell not found")
        await self.db.commit()
        logger.info("Smell deleted", smell_id=smell_id, user_id=principal.user_id)

    async def bulk_action(self, request: SmellBulkRequest, principal: Principal) -> dict:
        """
        Apply one action to a set of smell ids in a single statement.

        Ids that do not exist are skipped, so ``affectedCount`` reports only
        the rows that were actually touched.
        """
        ids = sorted(set(request.smell_ids))
        if not ids:
            raise ValidationException("No smells selected", field="smellIds")

        if request.action == "delete":
            stmt = delete(Smell).where(Smell.id.in_(ids))
        elif request.action in ("publish", "unpublish"):
            stmt = (
                update(Smell)
                .where(Smell.id.in_(ids))
                .values(is_published=request.action == "publish", updated_at=utc_now())
            )
        else:
            category = request.data.category if request.data else None
            if category is None:
                raise ValidationException("Category is required for changeCategory", field="data.category")
            stmt = (
                update(Smell)
                .where(Smell.id.in_(ids))
                .values(category=category, updated_at=utc_now())
            )

        result = await self.db.execute(stmt.execution_options(synchronize_session=False))
        affected = result.rowcount
        await self.db.commit()

        logger.info("Bulk smell action applied",
                    action=request.action, requested=len(ids), affected=affected, user_id=principal.user_id)
        return {"success": True, "affected_count": affected, "action": request.action}
