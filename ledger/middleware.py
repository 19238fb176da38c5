import json
import logging

logger = logging.getLogger(__name__)

REDACTED = "***"
SENSITIVE_FIELDS = frozenset(
    {
        "razorpay_signature",
        "bank_account_number",
        "bank_ifsc",
        "upi_id",
        "account_holder_name",
        "password",
        "access",
        "refresh",
    }
)


def redact(data):
    """Replace payout details, signatures and credentials with a placeholder."""
    if isinstance(data, dict):
        return {
            key: REDACTED if key in SENSITIVE_FIELDS else redact(value)
            for key, value in data.items()
        }
    if isinstance(data, list):
        return [redact(item) for item in data]
    return data


def _redacted_text(raw):
    try:
        return json.dumps(redact(json.loads(raw)))
    except ValueError:
        # Not JSON; form posts and plain text are not logged verbatim.
        return f"<{len(raw)} bytes not logged>"


class RequestResponseLoggingMiddleware:
    """
    Middleware that logs each request method, path, body,
    and the corresponding response content, with payout details
    and payment signatures redacted.
    """

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        request_body = ""
        content_type = request.META.get("CONTENT_TYPE", "")

        # Skip logging body for file uploads
        if "multipart/form-data" in content_type:
            request_body = "<Multipart form data - body not logged>"
        elif request.method in ["POST", "PUT", "PATCH"]:
            try:
                if request.body:
                    request_body = _redacted_text(request.body.decode("utf-8"))
            except UnicodeDecodeError:
                request_body = "<Could not decode body>"

        logger.info(
            "API Request: %s %s Body: %s",
            request.method,
            request.get_full_path(),
            request_body,
        )

        response = self.get_response(request)

        response_type = response.get("Content-Type", "")
        if not response_type.startswith("application/json"):
            response_content = f"<Content-Type: {response_type}>"
        elif getattr(response, "streaming", False):
            response_content = "<Streaming content>"
        else:
            try:
                response_content = _redacted_text(response.content.decode("utf-8"))
            except UnicodeDecodeError:
                response_content = "<Could not decode content>"

        logger.info(
            "API Response: %s %s Status: %s Content: %s",
            request.method,
            request.get_full_path(),
            response.status_code,
            response_content,
        )

        return response
