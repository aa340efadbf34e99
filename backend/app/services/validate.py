"""
Servicio de validación y saneamiento del formulario de contacto.

El orden es fijo: honeypot, reglas de negocio, endurecimiento contra inyección
de cabeceras y escape HTML. El primer fallo determina el error reportado.
"""

import re

from markupsafe import escape

from ..errors import ValidationError
from ..models import UNKNOWN_IP, SafeMessage

EMAIL_PATTERN = re.compile(r"[^\s@]+@[^\s@]+\.[^\s@]+")
LINE_BREAKS = re.compile(r"[\r\n]+")

MIN_NAME_LENGTH = 2
MIN_MESSAGE_LENGTH = 10

NAME_REQUIRED = "Name is required"
EMAIL_REQUIRED = "Valid email is required"
MESSAGE_TOO_SHORT = "Message is too short"
CONSENT_REQUIRED = "GDPR consent is required"


def is_email(value):
    """
    Verifica que el valor tenga la forma ``local@dominio.tld``.

    Args:
        value: Email a validar

    Returns:
        True si coincide con la forma básica, False en otro caso
    """
    if not isinstance(value, str):
        return False
    return EMAIL_PATTERN.fullmatch(value.strip()) is not None


def flatten_line(value):
    """Reemplaza cada secuencia de CR/LF por un espacio (texto de una sola línea)."""
    return LINE_BREAKS.sub(" ", value or "").strip()


def escape_html(value):
    """
    Escapa ``& < > " '`` como entidades HTML.

    No es idempotente: aplicar dos veces produce ``&amp;amp;``. El pipeline lo
    aplica exactamente una vez por campo.
    """
    return str(escape(value or ""))


def is_spam(raw):
    """El honeypot ``company`` debe llegar vacío; si trae algo, es un bot."""
    return bool(raw.company)


def validate_contact_submission(raw):
    """
    Aplica las reglas del formulario en orden fijo.

    Raises:
        ValidationError: con el mensaje de la primera regla que falla
    """
    if len(raw.name) < MIN_NAME_LENGTH:
        raise ValidationError(NAME_REQUIRED)
    if not is_email(raw.email):
        raise ValidationError(EMAIL_REQUIRED)
    if len(raw.message) < MIN_MESSAGE_LENGTH:
        raise ValidationError(MESSAGE_TOO_SHORT)
    if raw.gdpr is not True:
        raise ValidationError(CONSENT_REQUIRED)


def build_safe_message(raw, source_ip=UNKNOWN_IP):
    """
    Convierte un RawSubmission en un SafeMessage listo para enviar.

    Args:
        raw: RawSubmission ya normalizado
        source_ip: IP de origen (informativa)

    Returns:
        SafeMessage, o None si el honeypot detectó un bot. En ese caso el
        llamador responde como si hubiera tenido éxito y no envía nada.

    Raises:
        ValidationError: si alguna regla falla
    """
    if is_spam(raw):
        return None

    validate_contact_submission(raw)

    # name, email y phone pueden terminar en cabeceras (Subject, Reply-To)
    name = flatten_line(raw.name)
    email = flatten_line(raw.email)
    phone = flatten_line(raw.phone)

    return SafeMessage(
        name=escape_html(name),
        email=email,
        phone=escape_html(phone),
        message=escape_html(raw.message),
        consent_given=True,
        source_ip=source_ip or UNKNOWN_IP,
    )
