import logging

from celery import shared_task
from django.db import OperationalError

from blood import models
from blood.exceptions import NotFound
from blood.services import fulfillment, lifecycle
from blood.services import sms as sms_service


logger = logging.getLogger(__name__)


@shared_task(bind=True, autoretry_for=(OperationalError,), retry_backoff=True, retry_kwargs={'max_retries': 3})
def match_donors_for_request(self, blood_request_id: int) -> dict:
    """Matching pass queued when a request is created.

    Transient database errors are retried; anything else is logged and
    dropped so the request keeps its last valid state.
    """

    try:
        result = fulfillment.run_matching_pass(blood_request_id)
    except OperationalError:
        raise
    except NotFound:
        logger.warning("Blood request %s disappeared before matching", blood_request_id)
        return {'status': 'missing'}
    except Exception:
        logger.exception("Matching pass failed for blood request %s", blood_request_id)
        return {'status': 'failed'}

    if result is None:
        return {'status': 'skipped'}
    return {'status': 'ok', 'notified': result.delivered, 'failed': len(result.failed_donor_ids)}


@shared_task
def expire_overdue_requests() -> int:
    transitions = lifecycle.expire_overdue_requests()
    if transitions:
        logger.info("Expired %d overdue blood request(s)", len(transitions))
    return len(transitions)


@shared_task(bind=True, autoretry_for=(Exception,), retry_backoff=True, retry_kwargs={'max_retries': 3})
def send_match_alert_sms(self, notification_id: int) -> None:
    notification = models.Notification.objects.select_related('recipient__donor', 'blood_request').get(pk=notification_id)
    sms_service.send_match_alert(notification)
