import logging

from celery import shared_task
from django.conf import settings
from django.core.mail import mail_admins

from ledger.exceptions import WalletError
from ledger.models import Notification
from ledger.models.base import ZERO
from ledger.services import HoldService, RechargeService

logger = logging.getLogger(__name__)


@shared_task
def send_wallet_notification(user_id, notification_type, title, message, data=None):
    """Store an in-app notification. Failures are logged, never retried."""
    try:
        notification = Notification.objects.create(
            user_id=user_id,
            notification_type=notification_type,
            title=title,
            message=message,
            data=data or {},
        )
    except Exception as exc:
        logger.exception(
            "Failed to store notification: user=%s type=%s error=%s",
            user_id,
            notification_type,
            str(exc),
        )
        return {"user_id": user_id, "status": "FAILED"}

    return {"user_id": user_id, "notification_id": notification.pk, "status": "SENT"}


@shared_task(bind=True, acks_late=True, max_retries=3, default_retry_delay=30)
def send_admin_notification(self, subject, message):
    """
    Email the payment admins (settings.ADMINS).

    Uses acks_late=True so the email is not lost if the worker dies
    mid-send; SMTP failures are retried with exponential backoff.
    """
    try:
        mail_admins(subject, message, fail_silently=False)
    except Exception as exc:
        logger.exception("Admin notification failed: subject=%s error=%s", subject, str(exc))
        raise self.retry(exc=exc, countdown=2**self.request.retries * 10)

    logger.info("Admin notification sent: subject=%s", subject)
    return {"subject": subject, "status": "SENT"}


@shared_task
def release_stale_holds(days_old=None, batch_size=100):
    """
    Periodic task: release ACTIVE holds older than WALLET_HOLD_EXPIRY_DAYS.

    A referral request nobody acted on should not keep the requester's money
    reserved forever. A hold that fails to release is reported in `errors`
    and does not stop the batch.

    Runs via Celery Beat once a day.
    """
    if days_old is None:
        days_old = getattr(settings, "WALLET_HOLD_EXPIRY_DAYS", 14)
    holds = HoldService.find_stale_holds(days_old, batch_size)

    if not holds:
        return {"found": 0, "released": 0, "amount_released": str(ZERO), "errors": []}

    logger.info("Found %d stale hold(s) older than %d days.", len(holds), days_old)

    released = 0
    amount_released = ZERO
    errors = []
    for hold in holds:
        try:
            HoldService.release_hold(hold.referral_request_id, reason="expired")
        except WalletError as exc:
            logger.warning(
                "Stale hold not released: hold=%s error=%s", hold.uuid, exc.message
            )
            errors.append(
                {"referral_request_id": str(hold.referral_request_id), "error": exc.message}
            )
            continue
        released += 1
        amount_released += hold.amount

    logger.info("Released %d stale hold(s), amount=%s.", released, amount_released)
    return {
        "found": len(holds),
        "released": released,
        "amount_released": str(amount_released),
        "errors": errors,
    }


@shared_task
def expire_stale_recharge_orders():
    """Periodic task: mark PENDING recharge orders past their expiry as EXPIRED."""
    return {"expired": RechargeService.expire_stale_orders()}
