from django.db import models
from rest_framework.permissions import BasePermission

PAYMENTS_ADMIN = "admin:payments"
EMPLOYER_GROUP = "Employer"


class Role(models.TextChoices):
    JOB_SEEKER = "JOB_SEEKER", "Job seeker"
    EMPLOYER = "EMPLOYER", "Employer"
    ADMIN = "ADMIN", "Admin"


_WALLET = frozenset({"read:wallet", "recharge:wallet", "withdraw:wallet"})

CAPABILITIES = {
    Role.JOB_SEEKER: frozenset(
        {"read:profile", "write:profile", "read:jobs", "apply:jobs", "read:applications"}
    )
    | _WALLET,
    Role.EMPLOYER: frozenset(
        {
            "read:profile",
            "write:profile",
            "read:jobs",
            "write:jobs",
            "read:applications",
            "write:applications",
            "read:organization",
            "write:organization",
        }
    )
    | _WALLET,
    Role.ADMIN: frozenset(
        {
            "read:profile",
            "write:profile",
            "read:users",
            "write:users",
            "delete:users",
            "read:jobs",
            "write:jobs",
            "delete:jobs",
            "read:applications",
            "write:applications",
            "delete:applications",
            "read:organizations",
            "write:organizations",
            "delete:organizations",
            "admin:system",
            PAYMENTS_ADMIN,
        }
    )
    | _WALLET,
}

DEFAULT_CAPABILITIES = frozenset({"read:profile"})


def capabilities_for(role) -> frozenset:
    """Capabilities granted to a role; unknown roles only read profiles."""
    try:
        return CAPABILITIES[Role(role)]
    except ValueError:
        return DEFAULT_CAPABILITIES


def role_for_user(user) -> Role:
    if user.is_staff or user.is_superuser:
        return Role.ADMIN
    if user.groups.filter(name=EMPLOYER_GROUP).exists():
        return Role.EMPLOYER
    return Role.JOB_SEEKER


def has_capability(user, capability) -> bool:
    if user is None or not user.is_authenticated:
        return False
    return capability in capabilities_for(role_for_user(user))


class HasCapability(BasePermission):
    """Allow authenticated users whose role grants `required_capability`."""

    required_capability = None
    message = "Insufficient permissions."

    def has_permission(self, request, view):
        return has_capability(request.user, self.required_capability)


class CanManagePayouts(HasCapability):
    required_capability = PAYMENTS_ADMIN
