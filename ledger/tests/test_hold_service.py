import threading
import uuid
from datetime import timedelta
from decimal import Decimal

from django.db import connection
from django.test import TestCase, TransactionTestCase
from django.utils import timezone

from ledger.exceptions import (
    AuthorizationError,
    InsufficientBalanceError,
    InvalidHoldStateError,
    NotFoundError,
    ValidationError,
)
from ledger.models import Wallet, WalletHold, WalletTransaction
from ledger.services import HoldService, WalletService
from ledger.tests.utils import fund_wallet, make_user

# ============================================================
# Creating holds
# ============================================================


class CreateHoldTest(TestCase):
    def setUp(self):
        self.user = make_user()
        fund_wallet(self.user, 1000)

    def test_hold_reduces_available_balance_only(self):
        hold = HoldService.create_hold(self.user, 400, uuid.uuid4(), "Referral at Acme")

        self.assertEqual(hold.status, WalletHold.Status.ACTIVE)
        balance = WalletService.get_available_balance(self.user)
        self.assertEqual(balance["balance"], Decimal("1000.00"))
        self.assertEqual(balance["hold_amount"], Decimal("400.00"))
        self.assertEqual(balance["available_balance"], Decimal("600.00"))

    def test_hold_above_available_balance_is_rejected(self):
        HoldService.create_hold(self.user, 600, uuid.uuid4())
        with self.assertRaises(InsufficientBalanceError):
            HoldService.create_hold(self.user, 600, uuid.uuid4())
        self.assertEqual(WalletHold.objects.count(), 1)

    def test_non_positive_amount_is_rejected(self):
        with self.assertRaises(ValidationError):
            HoldService.create_hold(self.user, 0, uuid.uuid4())

    def test_invalid_request_id_is_rejected(self):
        with self.assertRaises(ValidationError):
            HoldService.create_hold(self.user, 10, "not-a-uuid")

    def test_one_hold_per_referral_request(self):
        request_id = uuid.uuid4()
        HoldService.create_hold(self.user, 100, request_id)
        with self.assertRaises(ValidationError):
            HoldService.create_hold(self.user, 100, request_id)

    def test_suspended_wallet_cannot_hold(self):
        Wallet.objects.filter(user=self.user).update(status=Wallet.Status.SUSPENDED)
        with self.assertRaises(ValidationError):
            HoldService.create_hold(self.user, 100, uuid.uuid4())

    def test_sequential_holds_over_balance_only_first_succeeds(self):
        outcomes = []
        for _ in range(2):
            try:
                HoldService.create_hold(self.user, 600, uuid.uuid4())
                outcomes.append("ok")
            except InsufficientBalanceError:
                outcomes.append("insufficient")
        self.assertEqual(outcomes, ["ok", "insufficient"])


# ============================================================
# Settling holds
# ============================================================


class HoldLifecycleTest(TestCase):
    def setUp(self):
        self.user = make_user()
        fund_wallet(self.user, 1000)
        self.request_id = uuid.uuid4()
        self.hold = HoldService.create_hold(self.user, 400, self.request_id)
        self.tx_count = WalletTransaction.objects.count()

    def test_convert_debits_wallet_and_links_settlement(self):
        hold = HoldService.convert_hold(self.request_id, user=self.user)

        self.assertEqual(hold.status, WalletHold.Status.CONVERTED)
        self.assertIsNotNone(hold.converted_at)
        balance = WalletService.get_available_balance(self.user)
        self.assertEqual(balance["balance"], Decimal("600.00"))
        self.assertEqual(balance["available_balance"], Decimal("600.00"))

        self.assertEqual(WalletTransaction.objects.count(), self.tx_count + 1)
        settlement = hold.settlement
        self.assertEqual(settlement.transaction_type, WalletTransaction.TransactionType.DEBIT)
        self.assertEqual(settlement.amount, Decimal("400.00"))
        self.assertEqual(settlement.source, WalletTransaction.Source.REFERRAL_REQUEST)

    def test_release_records_no_transaction(self):
        hold = HoldService.release_hold(self.request_id, user=self.user)

        self.assertEqual(hold.status, WalletHold.Status.RELEASED)
        self.assertIsNotNone(hold.released_at)
        balance = WalletService.get_available_balance(self.user)
        self.assertEqual(balance["balance"], Decimal("1000.00"))
        self.assertEqual(balance["available_balance"], Decimal("1000.00"))
        self.assertEqual(WalletTransaction.objects.count(), self.tx_count)

    def test_terminal_holds_accept_no_transition(self):
        HoldService.convert_hold(self.request_id)
        with self.assertRaises(InvalidHoldStateError):
            HoldService.convert_hold(self.request_id)
        with self.assertRaises(InvalidHoldStateError):
            HoldService.release_hold(self.request_id)

        released = uuid.uuid4()
        HoldService.create_hold(self.user, 100, released)
        HoldService.release_hold(released)
        with self.assertRaises(InvalidHoldStateError):
            HoldService.convert_hold(released)
        with self.assertRaises(InvalidHoldStateError):
            HoldService.release_hold_with_deduction(released, 10)

        self.assertEqual(WalletService.get_balance(self.user)["balance"], Decimal("600.00"))

    def test_other_users_hold_is_forbidden(self):
        with self.assertRaises(AuthorizationError):
            HoldService.convert_hold(self.request_id, user=make_user("mallory"))
        self.hold.refresh_from_db()
        self.assertEqual(self.hold.status, WalletHold.Status.ACTIVE)

    def test_unknown_hold(self):
        with self.assertRaises(NotFoundError):
            HoldService.release_hold(uuid.uuid4())

    def test_release_with_deduction_charges_fee(self):
        hold, fee_tx = HoldService.release_hold_with_deduction(self.request_id, 50)

        self.assertEqual(hold.status, WalletHold.Status.RELEASED)
        self.assertEqual(fee_tx.amount, Decimal("50.00"))
        self.assertEqual(fee_tx.source, WalletTransaction.Source.CANCELLATION_FEE)
        balance = WalletService.get_available_balance(self.user)
        self.assertEqual(balance["balance"], Decimal("950.00"))
        self.assertEqual(balance["available_balance"], Decimal("950.00"))

    def test_cancellation_fee_is_capped_at_hold_amount(self):
        _, fee_tx = HoldService.release_hold_with_deduction(self.request_id, 10000)
        self.assertEqual(fee_tx.amount, Decimal("400.00"))

    def test_zero_fee_records_nothing(self):
        hold, fee_tx = HoldService.release_hold_with_deduction(self.request_id, 0)
        self.assertIsNone(fee_tx)
        self.assertEqual(hold.status, WalletHold.Status.RELEASED)
        self.assertEqual(WalletTransaction.objects.count(), self.tx_count)


# ============================================================
# Reads
# ============================================================


class HoldQueryTest(TestCase):
    def setUp(self):
        self.user = make_user()
        fund_wallet(self.user, 1000)

    def test_get_user_holds_filters_by_status(self):
        HoldService.create_hold(self.user, 100, uuid.uuid4())
        released = uuid.uuid4()
        HoldService.create_hold(self.user, 100, released)
        HoldService.release_hold(released)

        self.assertEqual(HoldService.get_user_holds(self.user).count(), 2)
        self.assertEqual(HoldService.get_user_holds(self.user, status="active").count(), 1)
        with self.assertRaises(ValidationError):
            HoldService.get_user_holds(self.user, status="EXPIRED")

    def test_get_hold_by_request_id(self):
        request_id = uuid.uuid4()
        hold = HoldService.create_hold(self.user, 100, request_id)
        self.assertEqual(HoldService.get_hold_by_request_id(str(request_id)).pk, hold.pk)
        self.assertIsNone(HoldService.get_hold_by_request_id(uuid.uuid4()))

    def test_find_stale_holds(self):
        old = HoldService.create_hold(self.user, 100, uuid.uuid4())
        HoldService.create_hold(self.user, 100, uuid.uuid4())
        WalletHold.objects.filter(pk=old.pk).update(
            created_at=timezone.now() - timedelta(days=20)
        )

        stale = HoldService.find_stale_holds(days_old=14)
        self.assertEqual([hold.pk for hold in stale], [old.pk])


# ============================================================
# Concurrency
# ============================================================


class ConcurrentHoldTest(TransactionTestCase):
    def claim_concurrently(self, user, amount, workers=2):
        barrier = threading.Barrier(workers)
        outcomes = []

        def claim():
            try:
                barrier.wait()
                HoldService.create_hold(user, amount, uuid.uuid4())
                outcomes.append("ok")
            except InsufficientBalanceError:
                outcomes.append("insufficient")
            except Exception as exc:
                outcomes.append(f"{type(exc).__name__}: {exc}")
            finally:
                connection.close()

        threads = [threading.Thread(target=claim) for _ in range(workers)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()
        return outcomes

    def test_two_concurrent_holds_over_balance_only_one_succeeds(self):
        for round_number in range(5):
            with self.subTest(round=round_number):
                user = make_user(f"racer{round_number}")
                fund_wallet(user, 1000)

                outcomes = self.claim_concurrently(user, 600)

                self.assertCountEqual(outcomes, ["ok", "insufficient"])
                balance = WalletService.get_available_balance(user)
                self.assertEqual(balance["hold_amount"], Decimal("600.00"))
                self.assertEqual(balance["available_balance"], Decimal("400.00"))
