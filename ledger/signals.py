import logging

from django.conf import settings
from django.db.models.signals import post_save
from django.dispatch import receiver

from ledger.services import WalletService

logger = logging.getLogger(__name__)


@receiver(post_save, sender=settings.AUTH_USER_MODEL)
def grant_welcome_bonus(sender, instance, created, raw=False, **kwargs):
    """Credit the welcome bonus to newly created users when it is enabled."""
    if not created or raw:
        return
    if not getattr(settings, "WALLET_WELCOME_BONUS", 0):
        return
    tx = WalletService.give_welcome_bonus(instance)
    if tx is not None:
        logger.info("Welcome bonus granted: user=%s tx=%s", instance.pk, tx.uuid)
