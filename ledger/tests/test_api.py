import uuid
from decimal import Decimal
from unittest.mock import patch

from django.test import TestCase, override_settings
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken

from ledger.models import BonusPack, WalletTransaction, WithdrawalRequest
from ledger.services import HoldService, WalletService, WithdrawalService
from ledger.tests.utils import (
    TEST_KEY_ID,
    TEST_KEY_SECRET,
    earn,
    fund_wallet,
    gateway_order,
    make_user,
    signed_payment,
)


class APITestCase(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.user = make_user()
        self.client.force_authenticate(user=self.user)

    def assertEnvelopeError(self, response, status_code, error_code):
        self.assertEqual(response.status_code, status_code)
        self.assertFalse(response.data["success"])
        self.assertEqual(response.data["errorCode"], error_code)
        self.assertTrue(response.data["error"])


# ============================================================
# Authentication and error envelope
# ============================================================


class AuthenticationTest(APITestCase):
    def test_unauthenticated_request_is_rejected(self):
        self.client.force_authenticate(user=None)
        response = self.client.get(reverse("wallet-balance"))

        self.assertEnvelopeError(response, status.HTTP_401_UNAUTHORIZED, "not_authenticated")

    def test_jwt_bearer_token(self):
        client = APIClient()
        token = RefreshToken.for_user(self.user).access_token
        client.credentials(HTTP_AUTHORIZATION=f"Bearer {token}")

        response = client.get(reverse("wallet-balance"))
        self.assertEqual(response.status_code, status.HTTP_200_OK)

    def test_unhandled_error_is_hidden(self):
        with patch(
            "ledger.views.wallet.WalletService.get_wallet_stats",
            side_effect=RuntimeError("database on fire"),
        ), self.assertLogs("ledger.utils.responses", level="ERROR"):
            response = self.client.get(reverse("wallet-stats"))

        self.assertEnvelopeError(
            response, status.HTTP_500_INTERNAL_SERVER_ERROR, "InternalError"
        )
        self.assertNotIn("fire", response.data["error"])


# ============================================================
# Wallet, balance and transactions
# ============================================================


class WalletAPITest(APITestCase):
    def test_wallet_is_created_on_first_access(self):
        response = self.client.get(reverse("wallet"))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.data["success"])
        self.assertEqual(response.data["data"]["balance"], Decimal("0.00"))
        self.assertEqual(response.data["data"]["available_balance"], Decimal("0.00"))
        self.assertEqual(response.data["data"]["currency"], "INR")

    def test_balance(self):
        fund_wallet(self.user, 1000)
        HoldService.create_hold(self.user, 250, uuid.uuid4())

        data = self.client.get(reverse("wallet-balance")).data["data"]
        self.assertEqual(data["balance"], Decimal("1000.00"))
        self.assertEqual(data["hold_amount"], Decimal("250.00"))
        self.assertEqual(data["available_balance"], Decimal("750.00"))

    def test_stats(self):
        fund_wallet(self.user, 100)
        data = self.client.get(reverse("wallet-stats")).data["data"]
        self.assertEqual(data["total_credited"], Decimal("100.00"))
        self.assertEqual(data["transaction_count"], 1)

    def test_transactions_page_size_is_capped(self):
        for _ in range(3):
            fund_wallet(self.user, 10)

        response = self.client.get(reverse("wallet-transactions"), {"page_size": 500})

        data = response.data["data"]
        self.assertEqual(data["page_size"], 50)
        self.assertEqual(data["total"], 3)
        self.assertEqual(len(data["transactions"]), 3)
        self.assertEqual(data["current_balance"], Decimal("30.00"))

    def test_transactions_type_filter(self):
        fund_wallet(self.user, 10)
        response = self.client.get(reverse("wallet-transactions"), {"type": "debit"})
        self.assertEqual(response.data["data"]["total"], 0)

        response = self.client.get(reverse("wallet-transactions"), {"type": "bogus"})
        self.assertEnvelopeError(response, status.HTTP_400_BAD_REQUEST, "ValidationError")

    def test_holds(self):
        fund_wallet(self.user, 500)
        request_id = uuid.uuid4()
        HoldService.create_hold(self.user, 200, request_id)

        data = self.client.get(reverse("wallet-holds")).data["data"]
        self.assertEqual(len(data["holds"]), 1)
        self.assertEqual(data["holds"][0]["referral_request_id"], str(request_id))
        self.assertEqual(data["hold_amount"], Decimal("200.00"))
        self.assertEqual(data["available_balance"], Decimal("300.00"))


# ============================================================
# Debits
# ============================================================


class DebitAPITest(APITestCase):
    def setUp(self):
        super().setUp()
        fund_wallet(self.user, 100)

    def test_debit(self):
        response = self.client.post(
            reverse("wallet-debit"),
            {"amount": "40.00", "description": "Resume review"},
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["data"]["balance"], Decimal("60.00"))
        self.assertEqual(response.data["data"]["transaction"]["source"], "SERVICE_PURCHASE")

    def test_insufficient_balance(self):
        response = self.client.post(
            reverse("wallet-debit"),
            {"amount": "150.00", "description": "Too much"},
            format="json",
        )

        self.assertEnvelopeError(
            response, status.HTTP_400_BAD_REQUEST, "InsufficientBalanceError"
        )
        self.assertEqual(WalletService.get_balance(self.user)["balance"], Decimal("100.00"))

    def test_invalid_payloads(self):
        for payload in (
            {"description": "No amount"},
            {"amount": "0", "description": "Zero"},
            {"amount": "10.005", "description": "Sub-paisa"},
            {"amount": "10", "description": "Sneaky", "source": "REFERRAL_REQUEST"},
        ):
            with self.subTest(payload=payload):
                response = self.client.post(reverse("wallet-debit"), payload, format="json")
                self.assertEnvelopeError(
                    response, status.HTTP_400_BAD_REQUEST, "ValidationError"
                )

    def test_idempotency_key_header(self):
        for _ in range(2):
            response = self.client.post(
                reverse("wallet-debit"),
                {"amount": "25", "description": "Mock interview"},
                format="json",
                HTTP_IDEMPOTENCY_KEY="order-42",
            )
            self.assertEqual(response.status_code, status.HTTP_200_OK)

        self.assertEqual(WalletService.get_balance(self.user)["balance"], Decimal("75.00"))


# ============================================================
# Recharge
# ============================================================


@override_settings(RAZORPAY_KEY_ID=TEST_KEY_ID, RAZORPAY_KEY_SECRET=TEST_KEY_SECRET)
class RechargeAPITest(APITestCase):
    @patch("ledger.services.recharge.create_razorpay_order")
    def test_create_and_verify(self, mock_create):
        mock_create.return_value = gateway_order("order_API")

        response = self.client.post(
            reverse("recharge-create-order"), {"amount": "500"}, format="json"
        )
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        order = response.data["data"]
        self.assertEqual(order["razorpay_order_id"], "order_API")
        self.assertEqual(order["amount_paise"], 50000)
        self.assertEqual(order["key_id"], TEST_KEY_ID)
        self.assertEqual(order["status"], "PENDING")

        response = self.client.post(
            reverse("recharge-verify"), signed_payment("order_API", "pay_API"), format="json"
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["data"]["new_balance"], Decimal("500.00"))
        self.assertFalse(response.data["data"]["duplicate"])

        history = self.client.get(reverse("recharge-history")).data["data"]
        self.assertEqual(history["orders"][0]["status"], "PAID")

    @patch("ledger.services.recharge.create_razorpay_order")
    def test_gateway_failure(self, mock_create):
        mock_create.return_value = {"success": False, "response": {"error": "timeout"}}

        response = self.client.post(
            reverse("recharge-create-order"), {"amount": "500"}, format="json"
        )
        self.assertEnvelopeError(response, status.HTTP_502_BAD_GATEWAY, "PaymentGatewayError")

    def test_amount_above_maximum(self):
        response = self.client.post(
            reverse("recharge-create-order"), {"amount": "100001"}, format="json"
        )
        self.assertEnvelopeError(response, status.HTTP_400_BAD_REQUEST, "ValidationError")

    def test_verify_unknown_order(self):
        response = self.client.post(
            reverse("recharge-verify"), signed_payment("order_nope"), format="json"
        )
        self.assertEnvelopeError(response, status.HTTP_404_NOT_FOUND, "NotFoundError")

    def test_packs(self):
        BonusPack.objects.create(name="Starter", pay_amount=500, bonus_amount=50)

        packs = self.client.get(reverse("recharge-packs")).data["data"]["packs"]
        self.assertEqual(len(packs), 1)
        self.assertEqual(packs[0]["total_credit"], Decimal("550.00"))


# ============================================================
# Withdrawals
# ============================================================


class WithdrawalAPITest(APITestCase):
    def setUp(self):
        super().setUp()
        earn(self.user, 500)

    def test_withdrawable(self):
        data = self.client.get(reverse("wallet-withdrawable")).data["data"]
        self.assertEqual(data["withdrawable_balance"], Decimal("500.00"))
        self.assertTrue(data["can_withdraw"])

    def test_withdraw_masks_payout_details(self):
        response = self.client.post(
            reverse("wallet-withdraw"),
            {"amount": "300", "upi_id": "alice@okbank"},
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data["data"]["status"], "PENDING")
        self.assertEqual(response.data["data"]["upi_id"], "ali*******nk")

        history = self.client.get(reverse("wallet-withdrawals")).data["data"]
        self.assertEqual(history["total"], 1)

    def test_withdraw_requires_payout_details(self):
        for payload in (
            {"amount": "300"},
            {"amount": "300", "upi_id": "not-an-upi"},
            {"amount": "300", "bank_account_number": "12345", "bank_ifsc": "BAD"},
        ):
            with self.subTest(payload=payload):
                response = self.client.post(reverse("wallet-withdraw"), payload, format="json")
                self.assertEnvelopeError(
                    response, status.HTTP_400_BAD_REQUEST, "ValidationError"
                )
        self.assertEqual(WithdrawalRequest.objects.count(), 0)


class AdminWithdrawalAPITest(APITestCase):
    def setUp(self):
        super().setUp()
        earn(self.user, 500)
        self.withdrawal = WithdrawalService.request_withdrawal(
            self.user, 300, {"upi_id": "alice@okbank"}
        )
        self.admin = make_user("admin", is_staff=True)
        self.process_url = reverse(
            "admin-withdrawal-process", kwargs={"uuid": self.withdrawal.uuid}
        )

    def test_non_admin_is_forbidden(self):
        response = self.client.get(reverse("admin-withdrawals"))
        self.assertEnvelopeError(response, status.HTTP_403_FORBIDDEN, "permission_denied")

        response = self.client.post(self.process_url, {"action": "approve"}, format="json")
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_admin_lists_full_payout_details(self):
        self.client.force_authenticate(user=self.admin)

        data = self.client.get(reverse("admin-withdrawals"), {"status": "PENDING"}).data["data"]
        self.assertEqual(data["total"], 1)
        self.assertEqual(data["withdrawals"][0]["upi_id"], "alice@okbank")

    def test_admin_approves(self):
        self.client.force_authenticate(user=self.admin)

        response = self.client.post(
            self.process_url,
            {"action": "approve", "payment_reference": "UTR998877"},
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["data"]["status"], "COMPLETED")
        self.assertEqual(response.data["data"]["payment_reference"], "UTR998877")

    def test_reject_requires_reason_and_refunds(self):
        self.client.force_authenticate(user=self.admin)

        response = self.client.post(self.process_url, {"action": "reject"}, format="json")
        self.assertEnvelopeError(response, status.HTTP_400_BAD_REQUEST, "ValidationError")

        response = self.client.post(
            self.process_url,
            {"action": "reject", "rejection_reason": "UPI id closed"},
            format="json",
        )
        self.assertEqual(response.data["data"]["status"], "REJECTED")
        self.assertEqual(WalletService.get_balance(self.user)["balance"], Decimal("500.00"))
        self.assertTrue(
            WalletTransaction.objects.filter(source=WalletTransaction.Source.REFUND).exists()
        )
