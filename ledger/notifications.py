"""
Fire-and-forget notifications emitted by wallet operations.

Every notification is queued from a `transaction.on_commit` callback, so it is
only sent once the money movement it describes has been committed, and a
failure to queue it is logged instead of raised.
"""
import logging
from decimal import Decimal

from django.db import transaction

logger = logging.getLogger(__name__)


def mask_account(value):
    """Show only the first three and last two characters of payout details."""
    value = str(value or "")
    if len(value) <= 5:
        return "*" * len(value)
    return f"{value[:3]}{'*' * (len(value) - 5)}{value[-2:]}"


def _jsonable(data):
    return {
        key: str(value) if isinstance(value, Decimal) else value
        for key, value in (data or {}).items()
    }


def _queue_on_commit(task, **kwargs):
    def _send():
        try:
            task.delay(**kwargs)
        except Exception:
            logger.exception("Failed to queue %s", task.name)

    transaction.on_commit(_send)


def notify_user(user, notification_type, title, message, data=None):
    from ledger.tasks import send_wallet_notification

    _queue_on_commit(
        send_wallet_notification,
        user_id=user.pk,
        notification_type=notification_type,
        title=title,
        message=message,
        data=_jsonable(data),
    )


def notify_admins(subject, message):
    from ledger.tasks import send_admin_notification

    _queue_on_commit(send_admin_notification, subject=subject, message=message)
