"""Catalog provider: loads the active price list as immutable snapshots."""
from typing import Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from tourquote.core.response_builders import build_catalog_snapshot
from tourquote.models.catalog_entry import CatalogEntry
from tourquote.schemas.catalog import CatalogEntry as CatalogSnapshot
from tourquote.schemas.catalog import CatalogFilter


def build_catalog_query(filters: Optional[CatalogFilter] = None):
    filters = filters or CatalogFilter()
    q = select(CatalogEntry)
    if filters.service_name:
        q = q.where(CatalogEntry.service_name.ilike(f"%{filters.service_name}%"))
    if filters.category:
        q = q.where(CatalogEntry.category == filters.category)
    if filters.location:
        q = q.where(CatalogEntry.location == filters.location)
    if filters.currency:
        q = q.where(CatalogEntry.currency == filters.currency)
    if filters.is_active is not None:
        q = q.where(CatalogEntry.is_active == filters.is_active)
    # stable order so the matcher's first-entry tie-break is reproducible
    return q.order_by(CatalogEntry.id)


async def get_active_catalog(
    db: AsyncSession,
    filters: Optional[CatalogFilter] = None,
) -> list[CatalogSnapshot]:
    filters = (filters or CatalogFilter()).model_copy(update={"is_active": True})
    res = await db.execute(build_catalog_query(filters))
    return [build_catalog_snapshot(entry) for entry in res.scalars().all()]
