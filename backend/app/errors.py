"""
Error taxonomy for the contact endpoint and its JSON error envelope.

Every error raised by the normalizer, the pipeline or the dispatcher carries an
HTTP status. Client errors (< 500) expose a fixed, safe message; server errors
are logged with full detail and answered with a generic "Server error".
"""

from flask import Flask, current_app, jsonify
from werkzeug.exceptions import MethodNotAllowed as HTTPMethodNotAllowed
from werkzeug.exceptions import RequestEntityTooLarge

GENERIC_SERVER_ERROR = "Server error"
RATE_LIMITED_MESSAGE = "Too many requests"
DEFAULT_RETRY_AFTER = "60"


class ContactError(Exception):
    """Base class for errors surfaced by the contact flow."""

    status_code = 500
    default_message = GENERIC_SERVER_ERROR

    def __init__(self, message=None):
        self.message = message or self.default_message
        super().__init__(self.message)

    @property
    def is_server_error(self) -> bool:
        return self.status_code >= 500

    @property
    def public_message(self) -> str:
        """Message safe to send back to the caller."""
        if self.is_server_error:
            return GENERIC_SERVER_ERROR
        return self.message


class ValidationError(ContactError):
    status_code = 400
    default_message = "Invalid submission"


class MalformedInput(ContactError):
    status_code = 400
    default_message = "Invalid JSON"


class PayloadTooLarge(ContactError):
    status_code = 413
    default_message = "Payload too large"


class MethodNotAllowed(ContactError):
    status_code = 405
    default_message = "Method not allowed"


class ConfigurationError(ContactError):
    """Outbound mail is not configured (operator-fixable)."""

    status_code = 500


class DispatchError(ContactError):
    """The mail transport failed to deliver the message."""

    status_code = 500


def error_response(message: str, status_code: int):
    return jsonify(ok=False, error=message), status_code


def register_error_handlers(app: Flask) -> None:
    """Map the taxonomy (and the equivalent Werkzeug errors) to JSON responses."""

    @app.errorhandler(ContactError)
    def handle_contact_error(error: ContactError):
        if error.is_server_error:
            current_app.logger.error(
                "Contact request failed: %s",
                error.message,
                exc_info=error,
                extra={
                    "event": "contact.error",
                    "exception_type": type(error).__name__,
                },
            )
        else:
            current_app.logger.info(
                "Contact request rejected: %s",
                error.message,
                extra={
                    "event": "contact.rejected",
                    "status_code": error.status_code,
                },
            )
        return error_response(error.public_message, error.status_code)

    @app.errorhandler(HTTPMethodNotAllowed)
    def handle_method_not_allowed(error):
        response, status = error_response(MethodNotAllowed.default_message, 405)
        allowed = getattr(error, "valid_methods", None)
        if allowed:
            response.headers["Allow"] = ", ".join(sorted(allowed))
        return response, status

    @app.errorhandler(RequestEntityTooLarge)
    def handle_request_too_large(error):
        return error_response(PayloadTooLarge.default_message, 413)

    @app.errorhandler(429)
    def handle_rate_limit(error):
        retry_after = None
        try:
            retry_after = dict(error.get_headers()).get("Retry-After")
        except (AttributeError, TypeError, ValueError):
            retry_after = None

        current_app.logger.warning(
            "Rate limit exceeded",
            extra={"event": "contact.rate_limited", "limit": str(getattr(error, "limit", ""))},
        )

        response, status = error_response(RATE_LIMITED_MESSAGE, 429)
        # Flask-Limiter only fills Retry-After when RATELIMIT_HEADERS_ENABLED is on
        response.headers["Retry-After"] = retry_after or DEFAULT_RETRY_AFTER
        return response, status
