class WalletError(Exception):
    """
    Base class for ledger errors.

    Each subclass carries the HTTP status and error code the API layer
    renders into the response envelope.
    """

    status_code = 500
    error_code = "WalletError"
    default_message = "Wallet operation failed."

    def __init__(self, message=None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(WalletError):
    status_code = 400
    error_code = "ValidationError"
    default_message = "Invalid request."


class NotFoundError(WalletError):
    status_code = 404
    error_code = "NotFoundError"
    default_message = "Resource not found."


class InsufficientBalanceError(WalletError):
    status_code = 400
    error_code = "InsufficientBalanceError"
    default_message = "Insufficient wallet balance."


class InvalidHoldStateError(WalletError):
    status_code = 409
    error_code = "InvalidHoldState"
    default_message = "Hold is no longer active."


class AuthorizationError(WalletError):
    status_code = 403
    error_code = "AuthorizationError"
    default_message = "Insufficient permissions."


class PaymentGatewayError(WalletError):
    status_code = 502
    error_code = "PaymentGatewayError"
    default_message = "Payment gateway request failed."


class ImmutableLedgerError(WalletError):
    error_code = "ImmutableLedgerError"
    default_message = "Ledger entries cannot be modified or deleted."
