"""
Celery tasks for background processing.

Tasks for the periodic expired-key sweep.
"""
import asyncio
import logging

from KeyActivationService.celery import app

from core.domain.value_objects import ErrorKind
from keys.infrastructure.factory import build_key_service

logger = logging.getLogger(__name__)


@app.task(bind=True, max_retries=3)
def sweep_expired_keys_task(self, dry_run: bool = False) -> dict:
    """
    Celery task for the expired-key sweep.

    The file lock taken by the store keeps this pass from interleaving
    with writes made by other processes. A StoreUnavailable outcome is
    retried with exponential backoff.

    Args:
        dry_run: Report without removing anything

    Returns:
        Outcome as a plain dictionary
    """
    service = build_key_service()
    outcome = asyncio.run(service.sweep_expired(dry_run=dry_run))

    if not outcome.ok:
        logger.warning("Expired key sweep failed: %s - %s", outcome.code, outcome.message)
        if outcome.kind is ErrorKind.STORE_UNAVAILABLE and self.request.retries < self.max_retries:
            raise self.retry(countdown=2 ** self.request.retries)

    return outcome.to_dict()
