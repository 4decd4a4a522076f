import httpx
import asyncio
import logging
from tourquote.core.config import settings
from tourquote.core.metrics import webhook_deliveries

logger = logging.getLogger(__name__)


async def send_webhook(
    payload: dict,
    retries: int | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> bool:
    """Push a quotation bundle downstream, retrying with exponential backoff."""
    if not settings.WEBHOOK_URL:
        logger.debug("No WEBHOOK_URL configured, skipping quotation webhook")
        return False

    if retries is None:
        retries = settings.WEBHOOK_RETRIES

    backoff = 1.0
    quotation_id = payload.get("quotation_id")

    for attempt in range(1, retries + 1):
        try:
            async with httpx.AsyncClient(timeout=settings.WEBHOOK_TIMEOUT, transport=transport) as client:
                response = await client.post(settings.WEBHOOK_URL, json=payload)

                if 200 <= response.status_code < 300:
                    webhook_deliveries.labels(status="success").inc()
                    logger.info(f"Webhook delivery succeeded for quotation {quotation_id}")
                    return True
                else:
                    webhook_deliveries.labels(status="http_error").inc()
                    logger.warning(
                        f"Webhook delivery failed (attempt {attempt}/{retries}): "
                        f"Status {response.status_code} for quotation {quotation_id}"
                    )
        except httpx.TimeoutException:
            webhook_deliveries.labels(status="timeout").inc()
            logger.warning(
                f"Webhook timeout (attempt {attempt}/{retries}) for quotation {quotation_id}"
            )
        except Exception as e:
            webhook_deliveries.labels(status="error").inc()
            logger.warning(
                f"Webhook delivery error (attempt {attempt}/{retries}): {e} "
                f"for quotation {quotation_id}"
            )

        if attempt < retries:
            await asyncio.sleep(backoff)
            backoff *= 2.0

    logger.error(f"Webhook delivery failed after {retries} attempts for quotation {quotation_id}")
    return False


def quotation_webhook_payload(quotation, event: str) -> dict:
    return {
        "event": event,
        "quotation_id": quotation.id,
        "detected_services": quotation.detected_services,
        "match_results": quotation.match_results,
        "pricing_config": quotation.pricing_config,
        "totals": quotation.totals,
    }
