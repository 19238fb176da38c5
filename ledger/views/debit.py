import logging

from rest_framework.views import APIView

from ledger.serializers import DebitSerializer, TransactionSerializer
from ledger.services import WalletService
from ledger.utils.responses import success_response

logger = logging.getLogger(__name__)


class DebitView(APIView):
    """
    POST /api/wallet/debit: Pay for a service from the wallet.

    Request body: {"amount": "<decimal>", "description": "...", "source"?: "..."}
    An optional Idempotency-Key header makes retries safe.
    """

    def post(self, request, *args, **kwargs):
        serializer = DebitSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        idempotency_key = request.META.get("HTTP_IDEMPOTENCY_KEY")
        if idempotency_key:
            idempotency_key = f"debit:{request.user.pk}:{idempotency_key}"[:100]

        tx = WalletService.debit_wallet(
            request.user,
            serializer.validated_data["amount"],
            serializer.validated_data["source"],
            description=serializer.validated_data["description"],
            payment_reference=serializer.validated_data.get("payment_reference") or None,
            idempotency_key=idempotency_key,
        )
        return success_response(
            {
                "transaction": TransactionSerializer(tx).data,
                **WalletService.get_available_balance(request.user),
            },
            message="Wallet debited successfully.",
        )
