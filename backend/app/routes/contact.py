"""Endpoint del formulario de contacto."""
from flask import current_app, jsonify, request

from . import api
from ..extensions import limiter
from ..services.mail import get_dispatcher
from ..services.normalizer import decode_body, parse_submission, read_body
from ..services.request_utils import get_client_ip
from ..services.validate import build_safe_message


def _contact_limit():
    return current_app.config.get("RATELIMIT_CONTACT", "10 per minute")


@api.route("/contact", methods=["POST", "OPTIONS"])
@limiter.limit(_contact_limit, methods=["POST"])
def contact_message():
    """Recibe mensajes del formulario de contacto del sitio estático."""
    if request.method == "OPTIONS":
        # Preflight CORS: Flask-CORS añade las cabeceras Access-Control-*
        return "", 204

    raw_body = read_body(
        request.stream,
        current_app.config["CONTACT_MAX_BODY_BYTES"],
        content_length=request.content_length,
    )
    data = decode_body(
        raw_body,
        request.mimetype,
        checkbox_consent=current_app.config.get("CONTACT_FORM_CHECKBOX_CONSENT", False),
    )
    submission = parse_submission(data)

    message = build_safe_message(submission, source_ip=get_client_ip(request))
    if message is None:
        current_app.logger.info(
            "Honeypot activado; se descarta el envío",
            extra={"event": "contact.honeypot"},
        )
        return jsonify(ok=True), 200

    get_dispatcher().send(message)
    current_app.logger.info("Mensaje de contacto enviado", extra={"event": "contact.sent"})
    return jsonify(ok=True), 200
