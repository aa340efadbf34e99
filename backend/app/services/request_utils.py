"""Request-related utilities."""
from flask import request as flask_request

from ..models import UNKNOWN_IP


def get_client_ip(req=None):
    """
    Obtains the client IP, honoring X-Forwarded-For when present.

    Falls back to the connection address and finally to ``"unknown"``;
    it never raises.

    Args:
        req: Flask request object. Defaults to the global request.
    """
    req = req or flask_request
    if req is None:
        return UNKNOWN_IP

    forwarded_for = req.headers.get("X-Forwarded-For", "")
    if forwarded_for:
        parts = [part.strip() for part in forwarded_for.split(",") if part.strip()]
        if parts:
            return parts[0]

    return req.remote_addr or UNKNOWN_IP
