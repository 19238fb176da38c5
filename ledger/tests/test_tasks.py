import uuid
from datetime import timedelta
from decimal import Decimal
from unittest.mock import patch

from django.core import mail
from django.db import DatabaseError
from django.test import TestCase, override_settings
from django.utils import timezone

from ledger.models import Notification, RechargeOrder, WalletHold
from ledger.notifications import mask_account, notify_admins, notify_user
from ledger.services import HoldService, RechargeService, WalletService
from ledger.tasks import (
    expire_stale_recharge_orders,
    release_stale_holds,
    send_admin_notification,
    send_wallet_notification,
)
from ledger.tests.utils import (
    TEST_KEY_ID,
    TEST_KEY_SECRET,
    fund_wallet,
    gateway_order,
    make_user,
)

# ============================================================
# Notification tasks
# ============================================================


class NotificationTaskTest(TestCase):
    def setUp(self):
        self.user = make_user()

    def test_send_wallet_notification_stores_notification(self):
        result = send_wallet_notification.apply(
            kwargs={
                "user_id": self.user.pk,
                "notification_type": Notification.Type.WALLET_CREDITED,
                "title": "Wallet credited",
                "message": "100.00 INR was added to your wallet.",
                "data": {"amount": "100.00"},
            }
        ).get()

        self.assertEqual(result["status"], "SENT")
        notification = Notification.objects.get(pk=result["notification_id"])
        self.assertEqual(notification.user, self.user)
        self.assertEqual(notification.data, {"amount": "100.00"})
        self.assertFalse(notification.is_read)

    def test_send_wallet_notification_failure_is_logged(self):
        with patch(
            "ledger.tasks.Notification.objects.create", side_effect=DatabaseError("down")
        ), self.assertLogs("ledger.tasks", level="ERROR"):
            result = send_wallet_notification.apply(
                args=(self.user.pk, Notification.Type.WALLET_DEBITED, "t", "m")
            ).get()

        self.assertEqual(result["status"], "FAILED")

    @override_settings(ADMINS=[("Payments", "payments@example.com")])
    def test_send_admin_notification_emails_admins(self):
        result = send_admin_notification.apply(
            kwargs={"subject": "New withdrawal request", "message": "Amount: 300"}
        ).get()

        self.assertEqual(result["status"], "SENT")
        self.assertEqual(len(mail.outbox), 1)
        self.assertIn("New withdrawal request", mail.outbox[0].subject)
        self.assertEqual(mail.outbox[0].to, ["payments@example.com"])


class NotifyTest(TestCase):
    def setUp(self):
        self.user = make_user()

    def test_mask_account(self):
        self.assertEqual(mask_account("123456789012"), "123*******12")
        self.assertEqual(mask_account("abc"), "***")
        self.assertEqual(mask_account(None), "")

    @patch("ledger.tasks.send_wallet_notification")
    def test_notify_user_queues_after_commit(self, mock_task):
        with self.captureOnCommitCallbacks(execute=True) as callbacks:
            notify_user(
                self.user,
                Notification.Type.WALLET_CREDITED,
                "Wallet credited",
                "10.00 INR was added.",
                {"amount": Decimal("10.00")},
            )
            mock_task.delay.assert_not_called()

        self.assertEqual(len(callbacks), 1)
        mock_task.delay.assert_called_once_with(
            user_id=self.user.pk,
            notification_type=Notification.Type.WALLET_CREDITED,
            title="Wallet credited",
            message="10.00 INR was added.",
            data={"amount": "10.00"},
        )

    @patch("ledger.tasks.send_wallet_notification")
    def test_wallet_credit_notifies_owner(self, mock_task):
        with self.captureOnCommitCallbacks(execute=True):
            fund_wallet(self.user, 100)

        mock_task.delay.assert_called_once()
        self.assertEqual(mock_task.delay.call_args.kwargs["user_id"], self.user.pk)

    @patch("ledger.tasks.send_admin_notification")
    def test_queue_failure_is_logged_not_raised(self, mock_task):
        mock_task.name = "ledger.tasks.send_admin_notification"
        mock_task.delay.side_effect = ConnectionError("broker down")

        with self.assertLogs("ledger.notifications", level="ERROR"):
            with self.captureOnCommitCallbacks(execute=True):
                notify_admins("subject", "message")

        mock_task.delay.assert_called_once_with(subject="subject", message="message")


# ============================================================
# Periodic tasks
# ============================================================


class ReleaseStaleHoldsTest(TestCase):
    def setUp(self):
        self.user = make_user()
        fund_wallet(self.user, 1000)

    def backdate(self, hold, days):
        WalletHold.objects.filter(pk=hold.pk).update(
            created_at=timezone.now() - timedelta(days=days)
        )

    def test_releases_old_active_holds(self):
        old = HoldService.create_hold(self.user, 300, uuid.uuid4())
        fresh = HoldService.create_hold(self.user, 200, uuid.uuid4())
        self.backdate(old, 20)

        result = release_stale_holds.apply(kwargs={"days_old": 14}).get()

        self.assertEqual(result["found"], 1)
        self.assertEqual(result["released"], 1)
        self.assertEqual(result["amount_released"], "300.00")
        self.assertEqual(result["errors"], [])
        old.refresh_from_db()
        fresh.refresh_from_db()
        self.assertEqual(old.status, WalletHold.Status.RELEASED)
        self.assertEqual(fresh.status, WalletHold.Status.ACTIVE)

        balance = WalletService.get_available_balance(self.user)
        self.assertEqual(balance["balance"], Decimal("1000.00"))
        self.assertEqual(balance["available_balance"], Decimal("800.00"))

    def test_nothing_to_release(self):
        result = release_stale_holds.apply().get()
        self.assertEqual(result["found"], 0)
        self.assertEqual(result["released"], 0)

    def test_zero_days_releases_every_active_hold(self):
        hold = HoldService.create_hold(self.user, 300, uuid.uuid4())
        WalletHold.objects.filter(pk=hold.pk).update(
            created_at=timezone.now() - timedelta(minutes=1)
        )

        self.assertEqual(release_stale_holds.apply().get()["found"], 0)
        result = release_stale_holds.apply(kwargs={"days_old": 0}).get()

        self.assertEqual(result["found"], 1)
        self.assertEqual(result["released"], 1)
        hold.refresh_from_db()
        self.assertEqual(hold.status, WalletHold.Status.RELEASED)

    def test_failed_release_is_reported_and_batch_continues(self):
        gone = HoldService.create_hold(self.user, 100, uuid.uuid4())
        HoldService.release_hold(gone.referral_request_id)
        old = HoldService.create_hold(self.user, 100, uuid.uuid4())

        with patch(
            "ledger.tasks.HoldService.find_stale_holds", return_value=[gone, old]
        ), self.assertLogs("ledger.tasks", level="WARNING"):
            result = release_stale_holds.apply(kwargs={"days_old": 14}).get()

        self.assertEqual(result["found"], 2)
        self.assertEqual(result["released"], 1)
        self.assertEqual(
            result["errors"][0]["referral_request_id"], str(gone.referral_request_id)
        )


@override_settings(RAZORPAY_KEY_ID=TEST_KEY_ID, RAZORPAY_KEY_SECRET=TEST_KEY_SECRET)
class ExpireRechargeOrdersTest(TestCase):
    @patch("ledger.services.recharge.create_razorpay_order")
    def test_expires_pending_orders_past_expiry(self, mock_create):
        user = make_user()
        mock_create.return_value = gateway_order("order_old")
        old = RechargeService.create_recharge_order(user, 500)
        mock_create.return_value = gateway_order("order_new")
        RechargeService.create_recharge_order(user, 500)
        RechargeOrder.objects.filter(pk=old.pk).update(
            expires_at=timezone.now() - timedelta(hours=1)
        )

        result = expire_stale_recharge_orders.apply().get()

        self.assertEqual(result, {"expired": 1})
        self.assertEqual(
            list(RechargeOrder.objects.values_list("status", flat=True).order_by("id")),
            [RechargeOrder.Status.EXPIRED, RechargeOrder.Status.PENDING],
        )
