from rest_framework.views import APIView

from ledger.serializers import TransactionSerializer
from ledger.services import WalletService
from ledger.utils.pagination import page_params
from ledger.utils.responses import success_response


class TransactionListView(APIView):
    """
    GET /api/wallet/transactions: Ledger entries, newest first.

    Query params: page, page_size (max 50), type (CREDIT | DEBIT).
    """

    def get(self, request, *args, **kwargs):
        page, page_size = page_params(request.query_params)
        history = WalletService.get_transaction_history(
            request.user,
            page=page,
            page_size=page_size,
            transaction_type=request.query_params.get("type"),
        )
        history["transactions"] = TransactionSerializer(
            history["transactions"], many=True
        ).data
        return success_response(history)
