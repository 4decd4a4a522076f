import json
from tourquote.models.catalog_entry import CatalogEntry
from tourquote.models.catalog_import import CatalogImport
from tourquote.models.quotation import Quotation
from tourquote.schemas.catalog import CatalogEntry as CatalogSnapshot
from tourquote.schemas.catalog import CatalogEntryOut, CatalogImportOut
from tourquote.schemas.quotation import QuotationOut


def build_catalog_entry_response(entry: CatalogEntry) -> CatalogEntryOut:
    return CatalogEntryOut(
        id=entry.id,
        service_name=entry.service_name,
        category=entry.category,
        route_name=entry.route_name,
        location=entry.location,
        cost_basis=entry.cost_basis,
        unit=entry.unit,
        unit_price=entry.unit_price,
        currency=entry.currency,
        vehicle_type=entry.vehicle_type,
        passenger_capacity=entry.passenger_capacity,
        notes=entry.notes,
        is_active=entry.is_active,
        created_at=entry.created_at,
        updated_at=entry.updated_at,
    )


def build_catalog_snapshot(entry: CatalogEntry) -> CatalogSnapshot:
    """Immutable copy of a catalog row handed to the matcher."""
    return CatalogSnapshot.model_validate(entry)


def build_import_response(record: CatalogImport) -> CatalogImportOut:
    errors = json.loads(record.error_log) if record.error_log else []
    return CatalogImportOut(
        id=record.id,
        filename=record.filename,
        location=record.location,
        status=str(record.status),
        records_processed=record.records_processed or 0,
        records_failed=record.records_failed or 0,
        errors=errors,
        created_at=record.created_at,
        processed_at=record.processed_at,
    )


def build_quotation_response(quotation: Quotation) -> QuotationOut:
    return QuotationOut(
        id=quotation.id,
        title=quotation.title,
        itinerary_text=quotation.itinerary_text,
        num_people=quotation.num_people,
        num_days=quotation.num_days,
        detected_services=quotation.detected_services,
        match_results=quotation.match_results,
        pricing_config=quotation.pricing_config,
        totals=quotation.totals,
        created_by=quotation.created_by,
        created_at=quotation.created_at,
        updated_at=quotation.updated_at,
    )


def build_catalog_entry_response_list(entries: list) -> list:
    return [build_catalog_entry_response(entry) for entry in entries]


def build_quotation_response_list(quotations: list) -> list:
    return [build_quotation_response(q) for q in quotations]
