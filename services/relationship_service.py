"""
Favorite and progress relations between a user and a smell.
"""
import enum
from typing import List, Type, Union
from sqlalchemy import select, delete
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from core.exceptions import ConflictException, ResourceNotFoundException
from core.logging import get_logger
from core.security import Principal
from models.models import Favorite, Progress, Smell, User
from services import activity_service

logger = get_logger("relationship_service")


class RelationKind(str, enum.Enum):
    favorite = "favorite"
    progress = "progress"


RELATION_MODELS = {
    RelationKind.favorite: Favorite,
    RelationKind.progress: Progress,
}

ACTIVITY_ACTIONS = {
    (RelationKind.favorite, "add"): activity_service.FAVORITE_ADDED,
    (RelationKind.favorite, "remove"): activity_service.FAVORITE_REMOVED,
    (RelationKind.progress, "add"): activity_service.PROGRESS_ADDED,
    (RelationKind.progress, "remove"): activity_service.PROGRESS_REMOVED,
}


class RelationshipService:
    """At most one row per (user, smell) for each relation kind; the unique constraint is the arbiter."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def list_relations(self, principal: Principal, kind: RelationKind) -> List[Union[Favorite, Progress]]:
        model: Type = RELATION_MODELS[kind]
        stmt = (
            select(model)
            .options(selectinload(model.smell))
            .where(model.user_id == principal.user_id)
            .order_by(model.created_at.desc(), model.id.desc())
        )
        return list((await self.db.execute(stmt)).scalars().all())

    async def add(self, principal: Principal, smell_id: int, kind: RelationKind) -> None:
        model = RELATION_MODELS[kind]

        if await self.db.get(Smell, smell_id) is None:
            raise ResourceNotFoundException("Smell not found")

        existing = await self.db.execute(
            select(model.id).where(model.user_id == principal.user_id, model.smell_id == smell_id)
        )
        if existing.scalar_one_or_none() is not None:
            logger.warning("Duplicate relation rejected",
                           kind=kind.value, user_id=principal.user_id, smell_id=smell_id)
            raise ConflictException(f"Smell is already in your {kind.value}", field="smellId")

        self.db.add(model(user_id=principal.user_id, smell_id=smell_id))
        activity_service.record(self.db, principal.user_id, ACTIVITY_ACTIONS[(kind, "add")],
                                resource_id=smell_id, resource_type="smell")
        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            await self._raise_for_lost_race(principal, smell_id, kind)

        logger.info("Relation added", kind=kind.value, user_id=principal.user_id, smell_id=smell_id)

    async def _raise_for_lost_race(self, principal: Principal, smell_id: int, kind: RelationKind):
        """A concurrent writer won: either the same pair was inserted, or the user or smell vanished."""
        model = RELATION_MODELS[kind]
        duplicate = await self.db.execute(
            select(model.id).where(model.user_id == principal.user_id, model.smell_id == smell_id)
        )
        if duplicate.scalar_one_or_none() is not None:
            logger.warning("Concurrent duplicate relation rejected",
                           kind=kind.value, user_id=principal.user_id, smell_id=smell_id)
            raise ConflictException(f"Smell is already in your {kind.value}", field="smellId")
        if await self.db.get(User, principal.user_id) is None:
            raise ResourceNotFoundException("User not found")
        raise ResourceNotFoundException("Smell not found")

    async def remove(self, principal: Principal, smell_id: int, kind: RelationKind) -> int:
        """Remove the pair if present; removing a missing relation is not an error."""
        model = RELATION_MODELS[kind]
        result = await self.db.execute(
            delete(model).where(model.user_id == principal.user_id, model.smell_id == smell_id)
        )
        removed = result.rowcount
        if removed:
            activity_service.record(self.db, principal.user_id, ACTIVITY_ACTIONS[(kind, "remove")],
                                    resource_id=smell_id, resource_type="smell")
        await self.db.commit()

        logger.info("Relation removed", kind=kind.value, user_id=principal.user_id,
                    smell_id=smell_id, removed=removed)
        return removed

    async def toggle(self, principal: Principal, smell_id: int, kind: RelationKind, action: str) -> str:
        if action == "add":
            await self.add(principal, smell_id, kind)
            return f"Added to {kind.value}"
        await self.remove(principal, smell_id, kind)
        return f"Removed from {kind.value}"
