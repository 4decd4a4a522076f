from fastapi import APIRouter, Depends, Header, Query
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from typing import Optional, List

from tourquote.db.session import get_db
from tourquote.models.quotation import Quotation
from tourquote.schemas.quotation import QuotationCreate, QuotationOut
from tourquote.core.security import get_current_user
from tourquote.services.tasks import reprice_quotation
from tourquote.services.webhook import send_webhook, quotation_webhook_payload
from tourquote.utils.idempotency import get_idempotent, set_idempotent
from tourquote.core.audit_log import log_quotation_change
from tourquote.core.rate_limit import check_rate_limit
from tourquote.core.auth_utils import check_ownership, check_not_found, filter_by_owner
from tourquote.core.response_builders import build_quotation_response, build_quotation_response_list
from tourquote.core.enums import AuditAction

router = APIRouter(prefix="/quotations", tags=["quotations"])


@router.post("/", response_model=QuotationOut, status_code=201)
async def create_quotation(
    payload: QuotationCreate,
    idempotency_key: Optional[str] = Header(None),
    db: AsyncSession = Depends(get_db),
    current_user=Depends(get_current_user)
):
    await check_rate_limit(str(current_user.id))

    if idempotency_key:
        prev = await get_idempotent(idempotency_key)
        if prev:
            return prev

    bundle = payload.model_dump(mode="json")
    quotation = Quotation(
        title=payload.title,
        itinerary_text=payload.itinerary_text,
        num_people=payload.num_people,
        num_days=payload.num_days,
        detected_services=bundle["detected_services"],
        match_results=bundle["match_results"],
        pricing_config=bundle["pricing_config"],
        totals=bundle["totals"],
        created_by=int(current_user.id),
    )
    db.add(quotation)
    await db.flush()
    await log_quotation_change(db, int(current_user.id), AuditAction.CREATE_QUOTATION, quotation.id, payload)
    await db.commit()
    await db.refresh(quotation)

    await send_webhook(quotation_webhook_payload(quotation, "quotation.created"))

    out = build_quotation_response(quotation)
    if idempotency_key:
        await set_idempotent(idempotency_key, out.model_dump(mode="json"))
    return out


@router.get("/", response_model=List[QuotationOut])
async def list_quotations(
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_db),
    current_user=Depends(get_current_user)
):
    q = filter_by_owner(select(Quotation), Quotation, current_user)
    q = q.order_by(Quotation.id.desc()).limit(limit).offset(offset)
    res = await db.execute(q)
    return build_quotation_response_list(res.scalars().all())


@router.get("/{quotation_id}", response_model=QuotationOut)
async def get_quotation(
    quotation_id: int,
    db: AsyncSession = Depends(get_db),
    current_user=Depends(get_current_user)
):
    res = await db.execute(select(Quotation).where(Quotation.id == quotation_id))
    quotation = res.scalars().first()
    check_not_found(quotation, "Quotation", quotation_id)
    check_ownership(quotation, current_user, "Quotation")

    return build_quotation_response(quotation)


@router.delete("/{quotation_id}")
async def delete_quotation(
    quotation_id: int,
    db: AsyncSession = Depends(get_db),
    current_user=Depends(get_current_user)
):
    await check_rate_limit(str(current_user.id))

    res = await db.execute(select(Quotation).where(Quotation.id == quotation_id))
    quotation = res.scalars().first()
    check_not_found(quotation, "Quotation", quotation_id)
    check_ownership(quotation, current_user, "Quotation")

    await db.delete(quotation)
    await log_quotation_change(db, int(current_user.id), AuditAction.DELETE_QUOTATION, quotation_id)
    await db.commit()

    return {"deleted": True}


@router.post("/{quotation_id}/reprice", status_code=202)
async def reprice(
    quotation_id: int,
    db: AsyncSession = Depends(get_db),
    current_user=Depends(get_current_user)
):
    await check_rate_limit(str(current_user.id))

    res = await db.execute(select(Quotation).where(Quotation.id == quotation_id))
    quotation = res.scalars().first()
    check_not_found(quotation, "Quotation", quotation_id)
    check_ownership(quotation, current_user, "Quotation")

    await log_quotation_change(db, int(current_user.id), AuditAction.REPRICE_QUOTATION, quotation_id)
    await db.commit()
    reprice_quotation.delay(quotation_id)

    return {"status": "queued"}
