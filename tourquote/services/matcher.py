"""Catalog price matcher.

Each detected service is scored against every catalog entry:

- text overlap: 10 points per search term found in the entry text, max 30
- category keyword match: 40 points
- location containment: 20 points
- identical cost basis: 10 points

The best entry wins when it reaches ``MATCH_THRESHOLD``; ties keep the
entry that comes first in the catalog.
"""
import logging
import re
from typing import Iterable, Optional, Sequence

from tourquote.core.enums import ServiceCategory
from tourquote.core.metrics import services_matched
from tourquote.schemas.catalog import CatalogEntry
from tourquote.schemas.quote import MATCH_THRESHOLD, MatchResult
from tourquote.schemas.service import DetectedService

logger = logging.getLogger(__name__)

TEXT_POINTS_PER_TERM = 10
TEXT_POINTS_MAX = 30
CATEGORY_POINTS = 40
LOCATION_POINTS = 20
COST_BASIS_POINTS = 10
MAX_SCORE = 100

CATEGORY_KEYWORDS = {
    ServiceCategory.TRANSPORTATION: ("transport", "transfer", "car", "vehicle", "train", "flight", "boat"),
    ServiceCategory.GUIDE_PERSONNEL: ("guide", "driver", "personnel", "assistant", "representative"),
    ServiceCategory.ENTRANCE_FEES: ("entrance", "ticket", "admission", "fee", "site"),
    ServiceCategory.ACCOMMODATION: ("hotel", "accommodation", "resort", "cruise", "stay"),
    ServiceCategory.MEALS: ("meal", "lunch", "dinner", "breakfast", "food"),
    ServiceCategory.OPTIONAL_EXTRAS: ("optional", "extra", "show", "activity", "special"),
    ServiceCategory.OTHER: (),
}

MISSING_PRICE_HINTS = {
    ServiceCategory.TRANSPORTATION: 'Add a price for: "{description}" in {location}. Specify vehicle type and passenger capacity if applicable.',
    ServiceCategory.GUIDE_PERSONNEL: 'Add a price for: "{description}" in {location}. Specify if it\'s per day or per tour.',
    ServiceCategory.ENTRANCE_FEES: 'Add a price for: "{description}" entrance ticket. Usually priced per person.',
    ServiceCategory.ACCOMMODATION: 'Add a price for: "{description}" in {location}. Specify per night rate and room type.',
    ServiceCategory.MEALS: 'Add a price for: "{description}". Usually priced per person.',
    ServiceCategory.OPTIONAL_EXTRAS: 'Add a price for: "{description}" optional activity.',
    ServiceCategory.OTHER: 'Add a price for: "{description}" in your database.',
}

_WORD_RE = re.compile(r"[a-z0-9]+")
_MIN_WORD_LENGTH = 3
_STOPWORDS = frozenset({"and", "the", "for", "with", "from", "into", "via"})


def build_search_terms(service: DetectedService) -> list[str]:
    """Lower-cased terms looked up in the catalog entry text.

    The full description comes first, followed by its individual words so
    that "Airport pickup" also hits "Cairo Airport Pickup" word by word.
    """
    description = service.description.lower().strip()
    terms = [description]
    for word in _WORD_RE.findall(description):
        if len(word) >= _MIN_WORD_LENGTH and word not in _STOPWORDS:
            terms.append(word)
    terms.append(str(service.category).lower())
    if service.location:
        terms.append(service.location.lower().strip())

    seen = set()
    unique = []
    for term in terms:
        if term and term not in seen:
            seen.add(term)
            unique.append(term)
    return unique


def build_entry_text(entry: CatalogEntry) -> str:
    parts = [
        entry.service_name,
        entry.category,
        entry.route_name,
        entry.location,
        entry.vehicle_type,
    ]
    return " ".join(p for p in parts if p).lower()


def category_matches(category: str, entry_category: Optional[str]) -> bool:
    if not entry_category:
        return False
    keywords = CATEGORY_KEYWORDS.get(ServiceCategory(category), ())
    entry_category = entry_category.lower()
    return any(keyword in entry_category for keyword in keywords)


def location_matches(location: Optional[str], entry_location: Optional[str]) -> bool:
    if not location or not entry_location:
        return False
    return location.lower().strip() in entry_location.lower()


def score_entry(
    service: DetectedService,
    entry: CatalogEntry,
    search_terms: Optional[Sequence[str]] = None,
) -> int:
    """Score a catalog entry for a service, always within 0..100."""
    if search_terms is None:
        search_terms = build_search_terms(service)

    entry_text = build_entry_text(entry)
    text_hits = sum(1 for term in search_terms if term in entry_text)
    score = min(TEXT_POINTS_MAX, text_hits * TEXT_POINTS_PER_TERM)

    if category_matches(service.category, entry.category):
        score += CATEGORY_POINTS

    if location_matches(service.location, entry.location):
        score += LOCATION_POINTS

    if service.cost_basis == entry.cost_basis:
        score += COST_BASIS_POINTS

    return min(score, MAX_SCORE)


def missing_price_hint(service: DetectedService) -> str:
    template = MISSING_PRICE_HINTS.get(ServiceCategory(service.category))
    if template is None:
        return f'Add pricing data for "{service.description}"'
    return template.format(
        description=service.description,
        location=service.location or "unknown location",
    )


def find_best_entry(
    service: DetectedService,
    catalog: Sequence[CatalogEntry],
) -> tuple[Optional[CatalogEntry], int]:
    search_terms = build_search_terms(service)
    best_entry = None
    best_score = 0
    for entry in catalog:
        score = score_entry(service, entry, search_terms)
        # strict comparison keeps the first entry on ties
        if best_entry is None or score > best_score:
            best_entry = entry
            best_score = score
    return best_entry, best_score


def match_service(service: DetectedService, catalog: Sequence[CatalogEntry]) -> MatchResult:
    entry, score = find_best_entry(service, catalog)
    if entry is not None and score >= MATCH_THRESHOLD:
        return MatchResult(
            service=service,
            matched=True,
            price=entry.unit_price,
            currency=entry.currency,
            confidence=score,
            catalog_entry=entry,
        )
    return MatchResult(
        service=service,
        matched=False,
        confidence=score,
        hint=missing_price_hint(service),
    )


def match_services(
    services: Iterable[DetectedService],
    catalog: Sequence[CatalogEntry],
) -> list[MatchResult]:
    """Bind every service to its best catalog entry, in input order.

    Raw dicts are validated up front so a malformed service rejects the
    whole batch before any scoring happens.
    """
    validated = [
        s if isinstance(s, DetectedService) else DetectedService.model_validate(s)
        for s in services
    ]
    entries = [
        e if isinstance(e, CatalogEntry) else CatalogEntry.model_validate(e)
        for e in catalog
    ]

    results = [match_service(service, entries) for service in validated]

    matched = sum(1 for r in results if r.matched)
    services_matched.labels(outcome="matched").inc(matched)
    services_matched.labels(outcome="unmatched").inc(len(results) - matched)
    logger.info(
        f"Matched {matched}/{len(results)} services against {len(entries)} catalog entries"
    )
    return results
