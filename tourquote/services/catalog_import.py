"""CSV price list import.

Expected columns (header names are trimmed, order does not matter):
Service Name, Category, Route Name, Cost Basis, Unit, Base Cost, Notes,
Vehicle Type, Passenger Capacity.

``Base Cost`` holds an amount with an optional currency marker, e.g.
"20 €", "$15", "30 EUR" or "." for a price that is not known yet.
"""
import csv
import io
import logging
import re
from dataclasses import dataclass, field
from typing import Optional

from pydantic import ValidationError

from tourquote.core.enums import CostBasis, Currency
from tourquote.core.metrics import catalog_import_rows
from tourquote.schemas.catalog import CatalogEntryCreate, ImportRowError

logger = logging.getLogger(__name__)

COLUMN_MAP = {
    "Service Name": "service_name",
    "Category": "category",
    "Route Name": "route_name",
    "Cost Basis": "cost_basis",
    "Unit": "unit",
    "Base Cost": "base_cost",
    "Notes": "notes",
    "Vehicle Type": "vehicle_type",
    "Passenger Capacity": "passenger_capacity",
}

CURRENCY_SYMBOLS = {"€": Currency.EUR, "$": Currency.USD, "£": Currency.GBP}
MISSING_PRICE_MARKERS = {"", ".", "-", "n/a"}

_AMOUNT_RE = re.compile(r"\d[\d.,]*")
_SEPARATOR_RE = re.compile(r"[.,]")
_CODE_RE = re.compile(r"\b([A-Z]{3})\b")


@dataclass
class ParsedCatalog:
    entries: list[CatalogEntryCreate] = field(default_factory=list)
    errors: list[ImportRowError] = field(default_factory=list)

    @property
    def records_processed(self) -> int:
        return len(self.entries)

    @property
    def records_failed(self) -> int:
        return len(self.errors)


def parse_amount(token: str) -> float:
    """Read "1,500.50", "1.500,50", "12,5" or "2,000".

    A final separator followed by one or two digits is the decimal point;
    every other separator groups thousands and must be followed by three
    digits. Anything else is ambiguous and rejected.
    """
    token = token.rstrip(".,")
    separators = _SEPARATOR_RE.findall(token)
    groups = _SEPARATOR_RE.split(token)
    if not separators:
        return float(token)

    fraction = ""
    if len(groups[-1]) in (1, 2):
        fraction = groups.pop()
        decimal_point = separators.pop()
        if decimal_point in separators:
            raise ValueError(f"Ambiguous amount in base cost: {token!r}")

    if separators:
        if len(set(separators)) > 1 or len(groups[0]) > 3 or any(len(g) != 3 for g in groups[1:]):
            raise ValueError(f"Ambiguous amount in base cost: {token!r}")

    whole = "".join(groups)
    return float(f"{whole}.{fraction}" if fraction else whole)


def parse_base_cost(raw: Optional[str]) -> tuple[float, Currency]:
    """Split a base cost cell into (amount, currency); missing prices are 0."""
    text = (raw or "").strip()
    if text.lower() in MISSING_PRICE_MARKERS:
        return 0.0, Currency.EUR

    currency = Currency.EUR
    for symbol, code in CURRENCY_SYMBOLS.items():
        if symbol in text:
            currency = code
            break
    else:
        code_match = _CODE_RE.search(text)
        if code_match:
            try:
                currency = Currency(code_match.group(1))
            except ValueError:
                raise ValueError(f"Unrecognized currency in base cost: {text!r}")

    amount_match = _AMOUNT_RE.search(text.replace(" ", ""))
    if not amount_match:
        raise ValueError(f"Could not read an amount from base cost: {text!r}")
    return parse_amount(amount_match.group(0)), currency


def normalize_cost_basis(raw: Optional[str]) -> CostBasis:
    text = (raw or "").strip().lower().replace(" ", "_").replace("-", "_")
    try:
        return CostBasis(text)
    except ValueError:
        raise ValueError(
            f"Unknown cost basis {raw!r}; expected one of {[c.value for c in CostBasis]}"
        )


def _clean(value) -> Optional[str]:
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def parse_row(record: dict, location: str) -> CatalogEntryCreate:
    mapped = {
        target: _clean(record.get(column))
        for column, target in COLUMN_MAP.items()
    }
    if not mapped["service_name"]:
        raise ValueError("Service Name is required")

    unit_price, currency = parse_base_cost(mapped.pop("base_cost"))
    return CatalogEntryCreate(
        **{k: v for k, v in mapped.items() if k != "cost_basis"},
        cost_basis=normalize_cost_basis(mapped["cost_basis"]),
        unit_price=unit_price,
        currency=currency,
        location=location,
        is_active=True,
    )


def parse_catalog_csv(content: str, location: str) -> ParsedCatalog:
    """Parse a price list, tagging every row with the import location.

    Bad rows are collected with their file line number (the header is
    line 1) instead of aborting the import.
    """
    if content.startswith("\ufeff"):
        content = content[1:]

    reader = csv.DictReader(io.StringIO(content), skipinitialspace=True)
    if reader.fieldnames is None:
        raise ValueError("CSV file is empty")
    reader.fieldnames = [name.strip() for name in reader.fieldnames]
    if "Service Name" not in reader.fieldnames:
        raise ValueError("CSV header must include a 'Service Name' column")

    result = ParsedCatalog()
    for record in reader:
        if not any(_clean(v) for v in record.values() if not isinstance(v, list)):
            continue
        try:
            result.entries.append(parse_row(record, location))
        except (ValueError, ValidationError) as e:
            result.errors.append(ImportRowError(
                row=reader.line_num,
                error=str(e),
                data={k: v for k, v in record.items() if k is not None},
            ))

    catalog_import_rows.labels(status="processed").inc(result.records_processed)
    catalog_import_rows.labels(status="failed").inc(result.records_failed)
    logger.info(
        f"Parsed catalog CSV for {location}: "
        f"{result.records_processed} rows ok, {result.records_failed} failed"
    )
    return result
