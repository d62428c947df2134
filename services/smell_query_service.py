"""
Read path for smells: filtering, sorting, pagination and per-smell engagement counts.
"""
from typing import List, Optional, Tuple
from sqlalchemy import select, func, or_
from sqlalchemy.ext.asyncio import AsyncSession

from core.exceptions import ResourceNotFoundException
from core.logging import get_logger
from core.security import Principal
from models.models import Smell, Favorite, Progress, DIFFICULTY_ORDER
from schemas.smell import SmellQuery, SmellRead, SmellSortField, SortOrder, PublicationStatus

logger = get_logger("smell_query_service")


def favorites_count_column():
    return (
        select(func.count(Favorite.id))
        .where(Favorite.smell_id == Smell.id)
        .correlate(Smell)
        .scalar_subquery()
        .label("favorites_count")
    )


def progress_count_column():
    return (
        select(func.count(Progress.id))
        .where(Progress.smell_id == Smell.id)
        .correlate(Smell)
        .scalar_subquery()
        .label("progress_count")
    )


def annotated_smells():
    """SELECT smell, favorites_count, progress_count."""
    return select(Smell, favorites_count_column(), progress_count_column())


def to_smell_read(smell: Smell, favorites_count: int, progress_count: int) -> SmellRead:
    return SmellRead.model_validate(smell).model_copy(
        update={"favorites_count": favorites_count or 0, "progress_count": progress_count or 0}
    )


# Sorts the store can do itself; the rest are computed after fetching
SQL_SORT_COLUMNS = {
    SmellSortField.title: Smell.title,
    SmellSortField.created_at: Smell.created_at,
    SmellSortField.updated_at: Smell.updated_at,
    SmellSortField.category: Smell.category,
}


class SmellQueryService:
    """Service for listing and reading smells."""

    def __init__(self, db: AsyncSession):
        self.db = db

    def _filters(self, query: SmellQuery) -> list:
        filters = []
        if query.search and query.search.strip():
            term = query.search.strip()
            filters.append(or_(
                Smell.title.icontains(term, autoescape=True),
                Smell.description.icontains(term, autoescape=True),
                Smell.tags.icontains(term, autoescape=True),
            ))
        if query.categories:
            filters.append(Smell.category.in_(query.categories))
        if query.difficulties:
            filters.append(Smell.difficulty.in_(query.difficulties))
        if query.status == PublicationStatus.published:
            filters.append(Smell.is_published.is_(True))
        elif query.status == PublicationStatus.draft:
            filters.append(Smell.is_published.is_(False))
        return filters

    async def count_smells(self, query: SmellQuery) -> int:
        stmt = select(func.count()).select_from(Smell).where(*self._filters(query))
        return (await self.db.execute(stmt)).scalar_one()

    async def _fetch_page(self, query: SmellQuery) -> List[Tuple[Smell, int, int]]:
        filters = self._filters(query)
        descending = query.sort_order == SortOrder.desc

        if query.sort_by in SQL_SORT_COLUMNS:
            column = SQL_SORT_COLUMNS[query.sort_by]
            # id tiebreak keeps pages stable between identical requests
            order = (column.desc(), Smell.id.desc()) if descending else (column.asc(), Smell.id.asc())
            stmt = (
                annotated_smells()
                .where(*filters)
                .order_by(*order)
                .offset(query.offset)
                .limit(query.limit)
            )
            return [tuple(row) for row in (await self.db.execute(stmt)).all()]

        # popularity and difficulty: fetch the filtered set, sort in memory, then slice
        stmt = annotated_smells().where(*filters).order_by(Smell.created_at.desc(), Smell.id.desc())
        rows = [tuple(row) for row in (await self.db.execute(stmt)).all()]
        if query.sort_by == SmellSortField.popularity:
            key = lambda row: row[1] or 0
        else:
            key = lambda row: DIFFICULTY_ORDER[row[0].difficulty]
        # sorted() is stable with reverse=True, so ties keep newest-first order
        rows = sorted(rows, key=key, reverse=descending)
        return rows[query.offset:query.offset + query.limit]

    async def list_smells(self, query: SmellQuery) -> dict:
        """
        Return one page of smells matching the query.

        The shape is ``{smells, total, page, limit}`` with ``page`` derived
        from offset and limit.
        """
        total = await self.count_smells(query)
        rows = await self._fetch_page(query)
        smells = [to_smell_read(*row) for row in rows]

        logger.debug("Smells listed",
                     total=total, returned=len(smells),
                     sort_by=query.sort_by.value, sort_order=query.sort_order.value)
        return {
            "smells": smells,
            "total": total,
            "page": query.offset // query.limit + 1,
            "limit": query.limit,
        }

    async def get_smell(self, smell_id: int, principal: Optional[Principal] = None) -> SmellRead:
        """Published smells are visible to everyone, drafts only to moderators and admins."""
        stmt = annotated_smells().where(Smell.id == smell_id)
        row = (await self.db.execute(stmt)).one_or_none()
        if row is None:
            raise ResourceNotFoundException("Smell not found")

        smell, favorites, progress = row
        if not smell.is_published and not (principal and principal.is_moderator):
            logger.warning("Draft smell requested without privileges", smell_id=smell_id)
            raise ResourceNotFoundException("Smell not found")

        return to_smell_read(smell, favorites, progress)
