import uuid

from django.contrib.auth import get_user_model

from ledger.models import WalletTransaction
from ledger.services import WalletService
from ledger.utils.razorpay import compute_payment_signature

User = get_user_model()

TEST_KEY_ID = "rzp_test_key"
TEST_KEY_SECRET = "rzp_test_secret"


def make_user(username="alice", **kwargs):
    return User.objects.create_user(
        username=username,
        email=f"{username}@example.com",
        password="pass-1234",
        **kwargs,
    )


def fund_wallet(user, amount, source=WalletTransaction.Source.ADMIN_BONUS):
    return WalletService.credit_wallet(user, amount, source, description="Test funding")


def earn(user, amount):
    """Credit withdrawable referral earnings."""
    return WalletService.credit_referral_earnings(user, amount, uuid.uuid4())


def signed_payment(order_id, payment_id="pay_TEST123"):
    """Payment confirmation as the Razorpay checkout posts it back."""
    return {
        "razorpay_order_id": order_id,
        "razorpay_payment_id": payment_id,
        "razorpay_signature": compute_payment_signature(order_id, payment_id),
    }


def gateway_order(order_id="order_TEST123"):
    return {"success": True, "response": {"id": order_id, "status": "created"}}
