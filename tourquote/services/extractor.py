"""Upstream service extraction.

Turns free itinerary text into ``DetectedService`` rows. Two backends:

- ``HttpServiceExtractor`` posts the text to an external extraction
  service and validates what comes back.
- ``KeywordServiceExtractor`` is deterministic and runs offline: it splits
  the text on "Day N" headings and looks for category keywords.

Both raise ``ExtractionError`` instead of returning an empty list, so the
caller never prices an itinerary nothing was detected in.
"""
import logging
import re
from typing import Optional, Protocol, Sequence

import httpx
from pydantic import ValidationError

from tourquote.core.config import settings
from tourquote.core.enums import CostBasis, ServiceCategory
from tourquote.core.metrics import track_extraction
from tourquote.schemas.service import DetectedService

logger = logging.getLogger(__name__)


class ExtractionError(Exception):
    """The upstream extractor failed or detected nothing usable."""


class ServiceExtractor(Protocol):
    async def extract(
        self, itinerary_text: str, num_days: int, num_people: int
    ) -> list[DetectedService]:
        ...


def validate_services(raw, num_days: int) -> list[DetectedService]:
    if isinstance(raw, dict):
        raw = raw.get("services")
    if not isinstance(raw, list):
        raise ExtractionError("Extractor returned an unexpected format")

    try:
        services = [DetectedService.model_validate(item) for item in raw]
    except ValidationError as e:
        raise ExtractionError(f"Extractor returned invalid services: {e.error_count()} errors") from e

    if not services:
        raise ExtractionError(
            "No services detected in itinerary. Provide a more detailed itinerary "
            "with specific services, locations and activities."
        )

    out_of_range = sorted({s.day for s in services if s.day > num_days})
    if out_of_range:
        raise ExtractionError(f"Extractor returned days beyond the itinerary length: {out_of_range}")

    return services


class HttpServiceExtractor:
    def __init__(
        self,
        url: str,
        api_key: Optional[str] = None,
        timeout: float = 60,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.url = url
        self.api_key = api_key
        self.timeout = timeout
        self._transport = transport

    @track_extraction("http")
    async def extract(
        self, itinerary_text: str, num_days: int, num_people: int
    ) -> list[DetectedService]:
        headers = {}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"

        payload = {
            "itinerary_text": itinerary_text,
            "num_days": num_days,
            "num_people": num_people,
        }
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.post(self.url, json=payload, headers=headers)
                response.raise_for_status()
                body = response.json()
        except httpx.TimeoutException as e:
            logger.warning(f"Extractor timed out after {self.timeout}s")
            raise ExtractionError("Service extractor timed out") from e
        except httpx.HTTPStatusError as e:
            logger.warning(f"Extractor returned status {e.response.status_code}")
            raise ExtractionError(f"Service extractor failed with status {e.response.status_code}") from e
        except (httpx.HTTPError, ValueError) as e:
            logger.warning(f"Extractor request failed: {e}")
            raise ExtractionError(f"Service extractor unavailable: {e}") from e

        services = validate_services(body, num_days)
        logger.info(f"Extracted {len(services)} services from itinerary")
        return services


CATEGORY_RULES = [
    (ServiceCategory.ACCOMMODATION, CostBasis.PER_NIGHT,
     ("hotel", "overnight", "accommodation", "resort", "check-in", "check in", "cabin", "dahabiya")),
    (ServiceCategory.TRANSPORTATION, CostBasis.PER_GROUP,
     ("airport", "transfer", "pickup", "pick-up", "drive", "train", "flight", "car", "boat", "felucca")),
    (ServiceCategory.GUIDE_PERSONNEL, CostBasis.PER_DAY,
     ("guide", "guided", "egyptologist", "driver", "representative")),
    (ServiceCategory.ENTRANCE_FEES, CostBasis.PER_PERSON,
     ("visit", "museum", "temple", "pyramid", "tomb", "valley of the kings", "entrance", "ticket")),
    (ServiceCategory.MEALS, CostBasis.PER_PERSON,
     ("breakfast", "lunch", "dinner", "meal")),
    (ServiceCategory.OPTIONAL_EXTRAS, CostBasis.PER_PERSON,
     ("balloon", "sound and light", "sound & light", "show", "optional", "camel")),
]

_DAY_HEADING = re.compile(r"^\s*day\s*(\d+)\b[\s:.\-]*", re.IGNORECASE | re.MULTILINE)
_SENTENCE_SPLIT = re.compile(r"(?<=[.;!?])\s+|\n+")


def _mentions(text: str, keyword: str) -> bool:
    return re.search(rf"\b{re.escape(keyword)}(?:s|es)?\b", text) is not None


class KeywordServiceExtractor:
    def __init__(self, cities: Optional[Sequence[str]] = None):
        self.cities = list(cities if cities is not None else settings.KNOWN_CITIES)

    def _find_city(self, text: str) -> Optional[str]:
        lowered = text.lower()
        found = [(lowered.find(c.lower()), c) for c in self.cities if c.lower() in lowered]
        if not found:
            return None
        return min(found)[1]

    def _split_days(self, itinerary_text: str, num_days: int) -> list[tuple[int, str]]:
        headings = list(_DAY_HEADING.finditer(itinerary_text))
        if not headings:
            return [(1, itinerary_text)] if num_days >= 1 else []

        days = []
        for i, heading in enumerate(headings):
            end = headings[i + 1].start() if i + 1 < len(headings) else len(itinerary_text)
            day = int(heading.group(1))
            if 1 <= day <= num_days:
                days.append((day, itinerary_text[heading.end():end]))
            else:
                logger.warning(f"Ignoring day {day} outside itinerary length {num_days}")
        return days

    def _detect(self, day: int, text: str, fallback_city: Optional[str]) -> list[DetectedService]:
        services = []
        day_city = self._find_city(text) or fallback_city
        for sentence in _SENTENCE_SPLIT.split(text):
            sentence = sentence.strip()
            if not sentence:
                continue
            lowered = sentence.lower()
            location = self._find_city(sentence) or day_city
            for category, cost_basis, keywords in CATEGORY_RULES:
                if any(_mentions(lowered, k) for k in keywords):
                    services.append(DetectedService(
                        day=day,
                        description=sentence.rstrip(".;!?"),
                        category=category,
                        cost_basis=cost_basis,
                        location=location,
                    ))
        return services

    @track_extraction("keyword")
    async def extract(
        self, itinerary_text: str, num_days: int, num_people: int
    ) -> list[DetectedService]:
        services = []
        city = None
        for day, text in self._split_days(itinerary_text, num_days):
            city = self._find_city(text) or city
            services.extend(self._detect(day, text, city))

        if not services:
            raise ExtractionError(
                "No services detected in itinerary. Provide a more detailed itinerary "
                "with specific services, locations and activities."
            )
        logger.info(f"Keyword extractor detected {len(services)} services")
        return services


def get_extractor() -> ServiceExtractor:
    """FastAPI dependency selecting the configured extraction backend."""
    if settings.EXTRACTOR_BACKEND == "http":
        if not settings.EXTRACTOR_URL:
            raise ExtractionError("EXTRACTOR_URL is not configured")
        return HttpServiceExtractor(
            settings.EXTRACTOR_URL,
            api_key=settings.EXTRACTOR_API_KEY,
            timeout=settings.EXTRACTOR_TIMEOUT,
        )
    return KeywordServiceExtractor()
