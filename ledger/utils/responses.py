import logging

from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler, set_rollback

from ledger.exceptions import WalletError

logger = logging.getLogger(__name__)

GENERIC_ERROR_MESSAGE = "Something went wrong. Please try again later."


def success_response(data=None, message=None, status_code=status.HTTP_200_OK):
    body = {"success": True, "data": data}
    if message:
        body["message"] = message
    return Response(body, status=status_code)


def error_response(message, error_code, status_code):
    return Response(
        {
            "success": False,
            "error": message,
            "message": message,
            "errorCode": error_code,
        },
        status=status_code,
    )


def _first_message(data):
    """Pull the first human-readable message out of DRF error data."""
    if isinstance(data, dict):
        if "detail" in data:
            return _first_message(data["detail"])
        for field, value in data.items():
            message = _first_message(value)
            if field == "non_field_errors":
                return message
            return f"{field}: {message}"
    if isinstance(data, (list, tuple)):
        return _first_message(data[0]) if data else ""
    return str(data)


def envelope_exception_handler(exc, context):
    """
    DRF exception handler rendering every failure in the wallet envelope.

    Ledger errors carry their own status and error code. DRF's exceptions
    (validation, authentication, throttling) keep their status. Anything else
    is logged with its traceback and answered with a generic 500.
    """
    if isinstance(exc, WalletError):
        set_rollback()
        if exc.status_code >= 500:
            logger.error("Wallet error %s: %s", exc.error_code, exc.message)
        return error_response(exc.message, exc.error_code, exc.status_code)

    response = exception_handler(exc, context)
    if response is not None:
        error_code = getattr(exc, "default_code", "error")
        if status.is_client_error(response.status_code) and error_code == "invalid":
            error_code = "ValidationError"
        envelope = error_response(
            _first_message(response.data), error_code, response.status_code
        )
        for header in ("WWW-Authenticate", "Retry-After"):
            if header in response:
                envelope[header] = response[header]
        return envelope

    view = context.get("view")
    logger.exception(
        "Unhandled error in %s: %s",
        view.__class__.__name__ if view else "unknown view",
        str(exc),
    )
    set_rollback()
    return error_response(
        GENERIC_ERROR_MESSAGE,
        "InternalError",
        status.HTTP_500_INTERNAL_SERVER_ERROR,
    )
