"""Catalog entries: CRUD, soft delete and CSV import"""
import json
import logging
from datetime import datetime, timezone
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from tourquote.core.audit_log import log_catalog_change, log_audit
from tourquote.core.auth_utils import check_not_found
from tourquote.core.config import settings
from tourquote.core.enums import AuditAction, Currency, ImportStatus
from tourquote.core.response_builders import (
    build_catalog_entry_response,
    build_catalog_entry_response_list,
    build_import_response,
)
from tourquote.core.security import get_current_user, require_admin
from tourquote.db.session import get_db
from tourquote.models.catalog_entry import CatalogEntry
from tourquote.models.catalog_import import CatalogImport
from tourquote.schemas.catalog import (
    CatalogEntryCreate,
    CatalogEntryOut,
    CatalogEntryUpdate,
    CatalogFilter,
    CatalogImportOut,
)
from tourquote.services.catalog import build_catalog_query
from tourquote.services.catalog_import import parse_catalog_csv

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/catalog", tags=["catalog"])


@router.get("/", response_model=List[CatalogEntryOut])
async def list_entries(
    service_name: Optional[str] = Query(None),
    category: Optional[str] = Query(None),
    location: Optional[str] = Query(None),
    currency: Optional[Currency] = Query(None),
    is_active: Optional[bool] = Query(True),
    limit: int = Query(100, ge=1, le=1000),
    offset: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_db),
    current_user=Depends(get_current_user)
):
    filters = CatalogFilter(
        service_name=service_name,
        category=category,
        location=location,
        currency=currency,
        is_active=is_active,
    )
    q = build_catalog_query(filters).limit(limit).offset(offset)
    res = await db.execute(q)
    return build_catalog_entry_response_list(res.scalars().all())


@router.post("/", response_model=CatalogEntryOut, status_code=201)
async def create_entry(
    payload: CatalogEntryCreate,
    db: AsyncSession = Depends(get_db),
    current_user=Depends(require_admin)
):
    entry = CatalogEntry(**payload.model_dump())
    db.add(entry)
    await db.flush()
    await log_catalog_change(db, int(current_user.id), AuditAction.CREATE_CATALOG_ENTRY, entry.id, payload)
    await db.commit()
    await db.refresh(entry)
    return build_catalog_entry_response(entry)


@router.get("/imports/", response_model=List[CatalogImportOut])
async def list_imports(
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_db),
    current_user=Depends(require_admin)
):
    q = select(CatalogImport).order_by(CatalogImport.id.desc()).limit(limit).offset(offset)
    res = await db.execute(q)
    return [build_import_response(r) for r in res.scalars().all()]


@router.post("/import", response_model=CatalogImportOut, status_code=201)
async def import_csv(
    file: UploadFile = File(...),
    location: str = Form(..., min_length=1),
    db: AsyncSession = Depends(get_db),
    current_user=Depends(require_admin)
):
    if not (file.filename or "").lower().endswith(".csv"):
        raise HTTPException(status_code=400, detail="Only CSV files are allowed")

    raw = await file.read()
    if len(raw) > settings.MAX_UPLOAD_SIZE:
        raise HTTPException(status_code=413, detail="File too large")

    record = CatalogImport(
        filename=file.filename,
        location=location,
        status=ImportStatus.PROCESSING,
        uploaded_by=int(current_user.id),
    )
    db.add(record)
    await db.flush()

    try:
        parsed = parse_catalog_csv(raw.decode("utf-8-sig"), location)
    except (UnicodeDecodeError, ValueError) as e:
        logger.warning(f"Catalog import {record.id} failed: {e}")
        record.status = ImportStatus.FAILED
        record.error_log = json.dumps([{"row": 0, "error": str(e), "data": {}}])
        record.processed_at = datetime.now(timezone.utc)
        await db.commit()
        await db.refresh(record)
        return build_import_response(record)

    db.add_all([CatalogEntry(**entry.model_dump()) for entry in parsed.entries])

    record.status = ImportStatus.COMPLETED
    record.records_processed = parsed.records_processed
    record.records_failed = parsed.records_failed
    record.error_log = json.dumps([e.model_dump() for e in parsed.errors]) if parsed.errors else None
    record.processed_at = datetime.now(timezone.utc)

    await log_audit(
        db,
        int(current_user.id),
        AuditAction.IMPORT_CATALOG,
        {"filename": file.filename, "location": location, "rows": parsed.records_processed},
        resource_type="catalog_import",
        resource_id=record.id,
    )
    await db.commit()
    await db.refresh(record)
    return build_import_response(record)


@router.get("/{entry_id}", response_model=CatalogEntryOut)
async def get_entry(
    entry_id: int,
    db: AsyncSession = Depends(get_db),
    current_user=Depends(get_current_user)
):
    res = await db.execute(select(CatalogEntry).where(CatalogEntry.id == entry_id))
    entry = res.scalars().first()
    check_not_found(entry, "Catalog entry", entry_id)
    return build_catalog_entry_response(entry)


@router.put("/{entry_id}", response_model=CatalogEntryOut)
async def update_entry(
    entry_id: int,
    payload: CatalogEntryUpdate,
    db: AsyncSession = Depends(get_db),
    current_user=Depends(require_admin)
):
    res = await db.execute(select(CatalogEntry).where(CatalogEntry.id == entry_id))
    entry = res.scalars().first()
    check_not_found(entry, "Catalog entry", entry_id)

    for field, value in payload.model_dump(exclude_unset=True).items():
        setattr(entry, field, value)

    db.add(entry)
    await log_catalog_change(db, int(current_user.id), AuditAction.UPDATE_CATALOG_ENTRY, entry.id, payload)
    await db.commit()
    await db.refresh(entry)
    return build_catalog_entry_response(entry)


@router.delete("/{entry_id}")
async def deactivate_entry(
    entry_id: int,
    db: AsyncSession = Depends(get_db),
    current_user=Depends(require_admin)
):
    res = await db.execute(select(CatalogEntry).where(CatalogEntry.id == entry_id))
    entry = res.scalars().first()
    check_not_found(entry, "Catalog entry", entry_id)

    entry.is_active = False
    db.add(entry)
    await log_catalog_change(db, int(current_user.id), AuditAction.DEACTIVATE_CATALOG_ENTRY, entry.id)
    await db.commit()

    return {"deactivated": True}
