import logging

from rest_framework import status
from rest_framework.views import APIView

from ledger.serializers import (
    BonusPackSerializer,
    CreateRechargeOrderSerializer,
    RechargeOrderSerializer,
    TransactionSerializer,
    VerifyRechargeSerializer,
)
from ledger.services import PromoService, RechargeService
from ledger.utils.pagination import page_params
from ledger.utils.responses import success_response

logger = logging.getLogger(__name__)


class BonusPackListView(APIView):
    """GET /api/wallet/recharge/packs: Active recharge bonus packs."""

    def get(self, request, *args, **kwargs):
        packs = PromoService.get_active_packs()
        return success_response({"packs": BonusPackSerializer(packs, many=True).data})


class CreateRechargeOrderView(APIView):
    """
    POST /api/wallet/recharge/create-order: Open a Razorpay order.

    Request body: {"amount": <decimal>, "pack_id"?: <int>, "promo_code"?: "..."}
    """

    def post(self, request, *args, **kwargs):
        serializer = CreateRechargeOrderSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        order = RechargeService.create_recharge_order(
            request.user,
            serializer.validated_data["amount"],
            pack_id=serializer.validated_data.get("pack_id"),
            promo_code=serializer.validated_data.get("promo_code"),
        )
        return success_response(
            RechargeOrderSerializer(order).data,
            message="Recharge order created.",
            status_code=status.HTTP_201_CREATED,
        )


class VerifyRechargeView(APIView):
    """
    POST /api/wallet/recharge/verify: Confirm a Razorpay payment.

    Request body: {"razorpay_order_id", "razorpay_payment_id", "razorpay_signature"}
    Verifying an already credited payment again succeeds without crediting.
    """

    def post(self, request, *args, **kwargs):
        serializer = VerifyRechargeSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = RechargeService.verify_and_credit_wallet(
            request.user, **serializer.validated_data
        )
        tx = result["transaction"]
        return success_response(
            {
                "order": RechargeOrderSerializer(result["order"]).data,
                "transaction": TransactionSerializer(tx).data if tx else None,
                "amount_credited": result["order"].amount,
                "bonus_amount": result["bonus_amount"],
                "new_balance": result["new_balance"],
                "duplicate": result["duplicate"],
            },
            message=(
                "Payment already verified."
                if result["duplicate"]
                else "Wallet recharged successfully."
            ),
        )


class RechargeHistoryView(APIView):
    """GET /api/wallet/recharge/history"""

    def get(self, request, *args, **kwargs):
        page, page_size = page_params(request.query_params)
        history = RechargeService.get_recharge_history(request.user, page, page_size)
        history["orders"] = RechargeOrderSerializer(history["orders"], many=True).data
        return success_response(history)
