"""
tasks/keepwarm_tasks.py
Periodic GET against the deployed API so the host never idles it out.
A failed ping is logged and forgotten; the next beat tries again.
"""

import logging
from typing import Optional

import httpx

from config.settings import settings
from tasks.celery_app import celery_app

logger = logging.getLogger(__name__)


@celery_app.task(name="tasks.keepwarm_tasks.ping_keep_warm_endpoint")
def ping_keep_warm_endpoint(url: Optional[str] = None) -> Optional[int]:
    """Returns the HTTP status code, or None when skipped or unreachable."""
    url = url or settings.CRON_ENDPOINT_URL
    if not url:
        logger.warning("CRON_ENDPOINT_URL is not set, skipping keep-warm ping")
        return None

    try:
        response = httpx.get(url, timeout=settings.CRON_TIMEOUT_SECONDS)
    except httpx.HTTPError as e:
        logger.error(f"Keep-warm ping to {url} failed: {e}")
        return None

    logger.info(f"Keep-warm ping to {url} returned {response.status_code}")
    return response.status_code
