from decimal import Decimal

from django.db import models

ZERO = Decimal("0.00")


def money_field(**kwargs):
    """DecimalField used for every monetary column (2 decimal places)."""
    return models.DecimalField(max_digits=15, decimal_places=2, **kwargs)


class BaseModel(models.Model):
    """
    Abstract base model providing common timestamp fields.

    All concrete models in the ledger app inherit from this
    to get consistent created_at / updated_at tracking.
    """

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True
        ordering = ["-created_at", "-id"]
