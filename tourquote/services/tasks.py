from celery import Celery
from tourquote.core.config import settings

celery_app = Celery(
    "tourquote",
    broker=settings.CELERY_BROKER_URL,
    backend=settings.CELERY_BACKEND,
)
celery_app.conf.task_routes = {"tourquote.services.tasks.reprice_quotation": {"queue": "reprice"}}

@celery_app.task(bind=True, max_retries=3)
def reprice_quotation(self, quotation_id: int):
    import asyncio
    from tourquote.services.tasks_internal import reprice_quotation_async

    try:
        return asyncio.run(reprice_quotation_async(quotation_id))
    except Exception as e:
        retry_kwargs = {"countdown": 2 ** self.request.retries}
        raise self.retry(exc=e, **retry_kwargs)
