import decimal
import uuid

import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Wallet",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("uuid", models.UUIDField(db_index=True, default=uuid.uuid4, editable=False, unique=True)),
                ("balance", models.DecimalField(decimal_places=2, default=decimal.Decimal("0.00"), max_digits=15)),
                ("currency", models.CharField(default="INR", max_length=3)),
                (
                    "status",
                    models.CharField(
                        choices=[("ACTIVE", "Active"), ("SUSPENDED", "Suspended")],
                        default="ACTIVE",
                        max_length=10,
                    ),
                ),
                ("last_transaction_at", models.DateTimeField(blank=True, null=True)),
                (
                    "user",
                    models.OneToOneField(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="wallet",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at", "-id"],
                "abstract": False,
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(("balance__gte", 0)),
                        name="wallet_balance_non_negative",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="WalletTransaction",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("uuid", models.UUIDField(db_index=True, default=uuid.uuid4, editable=False, unique=True)),
                (
                    "transaction_type",
                    models.CharField(choices=[("CREDIT", "Credit"), ("DEBIT", "Debit")], max_length=10),
                ),
                ("amount", models.DecimalField(decimal_places=2, max_digits=15)),
                ("balance_before", models.DecimalField(decimal_places=2, max_digits=15)),
                ("balance_after", models.DecimalField(decimal_places=2, max_digits=15)),
                (
                    "source",
                    models.CharField(
                        choices=[
                            ("RECHARGE", "Recharge"),
                            ("RECHARGE_BONUS", "Recharge bonus"),
                            ("REFERRAL_EARNINGS", "Referral earnings"),
                            ("REFERRAL_REQUEST", "Referral request"),
                            ("CANCELLATION_FEE", "Cancellation fee"),
                            ("WITHDRAWAL", "Withdrawal"),
                            ("REFUND", "Refund"),
                            ("NEW_USER_BONUS", "New user bonus"),
                            ("REFERRAL_BONUS", "Referral bonus"),
                            ("ADMIN_BONUS", "Admin bonus"),
                            ("POINTS_CONVERSION", "Points conversion"),
                            ("SERVICE_PURCHASE", "Service purchase"),
                        ],
                        max_length=30,
                    ),
                ),
                ("payment_reference", models.CharField(blank=True, max_length=100, null=True)),
                ("description", models.CharField(blank=True, default="", max_length=500)),
                (
                    "status",
                    models.CharField(
                        choices=[("COMPLETED", "Completed"), ("FAILED", "Failed")],
                        default="COMPLETED",
                        max_length=10,
                    ),
                ),
                (
                    "idempotency_key",
                    models.CharField(
                        blank=True,
                        editable=False,
                        help_text="Operation key (e.g. gateway payment id) that may credit or debit once.",
                        max_length=100,
                        null=True,
                        unique=True,
                    ),
                ),
                (
                    "wallet",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="transactions",
                        to="ledger.wallet",
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at", "-id"],
                "abstract": False,
                "indexes": [
                    models.Index(fields=["wallet", "created_at"], name="idx_tx_wallet_created"),
                    models.Index(fields=["wallet", "transaction_type"], name="idx_tx_wallet_type"),
                    models.Index(fields=["wallet", "source"], name="idx_tx_wallet_source"),
                ],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(("amount__gt", 0)),
                        name="wallet_transaction_amount_positive",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="WalletHold",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("uuid", models.UUIDField(db_index=True, default=uuid.uuid4, editable=False, unique=True)),
                (
                    "referral_request_id",
                    models.UUIDField(
                        help_text="Referral request this hold pays for. One hold per request.",
                        unique=True,
                    ),
                ),
                ("amount", models.DecimalField(decimal_places=2, max_digits=15)),
                (
                    "status",
                    models.CharField(
                        choices=[("ACTIVE", "Active"), ("CONVERTED", "Converted"), ("RELEASED", "Released")],
                        default="ACTIVE",
                        max_length=10,
                    ),
                ),
                ("description", models.CharField(blank=True, default="", max_length=500)),
                ("converted_at", models.DateTimeField(blank=True, null=True)),
                ("released_at", models.DateTimeField(blank=True, null=True)),
                (
                    "settlement",
                    models.OneToOneField(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="settled_hold",
                        to="ledger.wallettransaction",
                    ),
                ),
                (
                    "wallet",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="holds",
                        to="ledger.wallet",
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at", "-id"],
                "abstract": False,
                "indexes": [
                    models.Index(fields=["wallet", "status"], name="idx_hold_wallet_status"),
                    models.Index(fields=["status", "created_at"], name="idx_hold_status_created"),
                ],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(("amount__gt", 0)),
                        name="wallet_hold_amount_positive",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="BonusPack",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("name", models.CharField(max_length=100)),
                ("pay_amount", models.DecimalField(decimal_places=2, max_digits=15)),
                ("bonus_amount", models.DecimalField(decimal_places=2, default=decimal.Decimal("0.00"), max_digits=15)),
                ("badge", models.CharField(blank=True, default="", max_length=50)),
                ("is_active", models.BooleanField(default=True)),
            ],
            options={
                "ordering": ["-created_at", "-id"],
                "abstract": False,
            },
        ),
        migrations.CreateModel(
            name="PromoCode",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("code", models.CharField(max_length=50, unique=True)),
                (
                    "promo_type",
                    models.CharField(
                        choices=[("FLAT_BONUS", "Flat bonus"), ("PERCENT_BONUS", "Percent bonus")],
                        max_length=20,
                    ),
                ),
                ("value", models.DecimalField(decimal_places=2, max_digits=15)),
                (
                    "min_recharge_amount",
                    models.DecimalField(decimal_places=2, default=decimal.Decimal("0.00"), max_digits=15),
                ),
                ("max_bonus_amount", models.DecimalField(blank=True, decimal_places=2, max_digits=15, null=True)),
                ("max_uses", models.PositiveIntegerField(blank=True, null=True)),
                ("current_uses", models.PositiveIntegerField(default=0)),
                ("per_user_limit", models.PositiveIntegerField(default=1)),
                ("expires_at", models.DateTimeField(blank=True, null=True)),
                ("is_active", models.BooleanField(default=True)),
                ("description", models.CharField(blank=True, default="", max_length=255)),
            ],
            options={
                "ordering": ["-created_at", "-id"],
                "abstract": False,
            },
        ),
        migrations.CreateModel(
            name="RechargeOrder",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("uuid", models.UUIDField(db_index=True, default=uuid.uuid4, editable=False, unique=True)),
                ("amount", models.DecimalField(decimal_places=2, max_digits=15)),
                ("currency", models.CharField(default="INR", max_length=3)),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("PENDING", "Pending"),
                            ("PAID", "Paid"),
                            ("FAILED", "Failed"),
                            ("EXPIRED", "Expired"),
                        ],
                        default="PENDING",
                        max_length=10,
                    ),
                ),
                ("payment_gateway", models.CharField(default="razorpay", max_length=20)),
                ("gateway_order_id", models.CharField(max_length=100, unique=True)),
                ("gateway_payment_id", models.CharField(blank=True, max_length=100, null=True, unique=True)),
                ("gateway_signature", models.CharField(blank=True, default="", max_length=256)),
                ("receipt", models.CharField(max_length=40)),
                ("promo_code", models.CharField(blank=True, default="", max_length=50)),
                (
                    "bonus_credited",
                    models.DecimalField(decimal_places=2, default=decimal.Decimal("0.00"), max_digits=15),
                ),
                ("expires_at", models.DateTimeField()),
                ("paid_at", models.DateTimeField(blank=True, null=True)),
                ("error_message", models.TextField(blank=True, default="")),
                (
                    "bonus_pack",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="recharge_orders",
                        to="ledger.bonuspack",
                    ),
                ),
                (
                    "user",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="recharge_orders",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "wallet",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="recharge_orders",
                        to="ledger.wallet",
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at", "-id"],
                "abstract": False,
                "indexes": [
                    models.Index(fields=["status", "expires_at"], name="idx_recharge_status_expiry"),
                    models.Index(fields=["user", "created_at"], name="idx_recharge_user_created"),
                ],
            },
        ),
        migrations.CreateModel(
            name="PromoCodeUsage",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("recharge_amount", models.DecimalField(decimal_places=2, max_digits=15)),
                ("bonus_given", models.DecimalField(decimal_places=2, max_digits=15)),
                (
                    "promo_code",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="usages",
                        to="ledger.promocode",
                    ),
                ),
                (
                    "recharge_order",
                    models.OneToOneField(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="promo_usage",
                        to="ledger.rechargeorder",
                    ),
                ),
                (
                    "user",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="promo_code_usages",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at", "-id"],
                "abstract": False,
            },
        ),
        migrations.CreateModel(
            name="WithdrawalRequest",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("uuid", models.UUIDField(db_index=True, default=uuid.uuid4, editable=False, unique=True)),
                ("amount", models.DecimalField(decimal_places=2, max_digits=15)),
                (
                    "processing_fee",
                    models.DecimalField(decimal_places=2, default=decimal.Decimal("0.00"), max_digits=15),
                ),
                ("net_amount", models.DecimalField(decimal_places=2, max_digits=15)),
                ("upi_id", models.CharField(blank=True, default="", max_length=100)),
                ("bank_account_number", models.CharField(blank=True, default="", max_length=34)),
                ("bank_ifsc", models.CharField(blank=True, default="", max_length=11)),
                ("account_holder_name", models.CharField(blank=True, default="", max_length=150)),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("PENDING", "Pending"),
                            ("PROCESSING", "Processing"),
                            ("COMPLETED", "Completed"),
                            ("REJECTED", "Rejected"),
                        ],
                        default="PENDING",
                        max_length=10,
                    ),
                ),
                ("processed_at", models.DateTimeField(blank=True, null=True)),
                ("payment_reference", models.CharField(blank=True, default="", max_length=100)),
                ("rejection_reason", models.CharField(blank=True, default="", max_length=500)),
                (
                    "processed_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="processed_withdrawals",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "user",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="withdrawals",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "wallet",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="withdrawals",
                        to="ledger.wallet",
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at", "-id"],
                "abstract": False,
                "indexes": [
                    models.Index(fields=["user", "status"], name="idx_withdrawal_user_status"),
                    models.Index(fields=["status", "created_at"], name="idx_withdrawal_status_created"),
                ],
            },
        ),
        migrations.CreateModel(
            name="Notification",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "notification_type",
                    models.CharField(
                        choices=[
                            ("WALLET_CREDITED", "Wallet credited"),
                            ("WALLET_DEBITED", "Wallet debited"),
                            ("HOLD_CONVERTED", "Hold converted"),
                            ("HOLD_RELEASED", "Hold released"),
                            ("WITHDRAWAL_REQUESTED", "Withdrawal requested"),
                            ("WITHDRAWAL_APPROVED", "Withdrawal approved"),
                            ("WITHDRAWAL_REJECTED", "Withdrawal rejected"),
                        ],
                        max_length=30,
                    ),
                ),
                ("title", models.CharField(max_length=200)),
                ("message", models.TextField()),
                ("data", models.JSONField(blank=True, default=dict)),
                ("is_read", models.BooleanField(default=False)),
                (
                    "user",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="wallet_notifications",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at", "-id"],
                "abstract": False,
            },
        ),
    ]
