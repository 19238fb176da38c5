from django.conf import settings
from django.db import models

from ledger.models.base import ZERO, BaseModel, money_field


class BonusPack(BaseModel):
    """A recharge amount that earns a fixed bonus credit."""

    name = models.CharField(max_length=100)
    pay_amount = money_field()
    bonus_amount = money_field(default=ZERO)
    badge = models.CharField(max_length=50, blank=True, default="")
    is_active = models.BooleanField(default=True)

    def __str__(self):
        return f"{self.name} (pay {self.pay_amount}, bonus {self.bonus_amount})"


class PromoCode(BaseModel):
    class Type(models.TextChoices):
        FLAT_BONUS = "FLAT_BONUS", "Flat bonus"
        PERCENT_BONUS = "PERCENT_BONUS", "Percent bonus"

    code = models.CharField(max_length=50, unique=True)
    promo_type = models.CharField(max_length=20, choices=Type.choices)
    value = money_field()
    min_recharge_amount = money_field(default=ZERO)
    max_bonus_amount = money_field(null=True, blank=True)
    max_uses = models.PositiveIntegerField(null=True, blank=True)
    current_uses = models.PositiveIntegerField(default=0)
    per_user_limit = models.PositiveIntegerField(default=1)
    expires_at = models.DateTimeField(null=True, blank=True)
    is_active = models.BooleanField(default=True)
    description = models.CharField(max_length=255, blank=True, default="")

    def __str__(self):
        return self.code

    def save(self, *args, **kwargs):
        self.code = self.code.strip().upper()
        super().save(*args, **kwargs)


class PromoCodeUsage(BaseModel):
    promo_code = models.ForeignKey(
        PromoCode,
        on_delete=models.CASCADE,
        related_name="usages",
    )
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="promo_code_usages",
    )
    recharge_order = models.OneToOneField(
        "ledger.RechargeOrder",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="promo_usage",
    )
    recharge_amount = money_field()
    bonus_given = money_field()

    def __str__(self):
        return f"{self.promo_code} used by {self.user_id}"
