"""
Normalización del cuerpo de la petición de contacto.

Funciones:
- read_body: Lee el cuerpo con límite de tamaño en streaming
- decode_body: Convierte el cuerpo (JSON o form-encoded) en un dict
- sanitize: Normaliza saltos de línea, recorta y trunca un valor
- parse_submission: Construye un RawSubmission con valores acotados
"""

import json
from urllib.parse import parse_qsl

from ..errors import MalformedInput, PayloadTooLarge
from ..models import RawSubmission

READ_CHUNK_SIZE = 8192

FORM_MIMETYPE = "application/x-www-form-urlencoded"
# Valor por defecto que envían los navegadores para un checkbox marcado
FORM_CHECKBOX_ON = "on"

FIELD_LIMITS = {
    "name": 120,
    "email": 180,
    "phone": 60,
    "message": 4000,
    "company": 200,
}


def read_body(stream, limit, content_length=None):
    """
    Lee el cuerpo completo sin superar ``limit`` bytes.

    Args:
        stream: Objeto con ``read(size)`` (p. ej. ``request.stream``)
        limit: Máximo de bytes aceptados
        content_length: Longitud declarada por el cliente, si existe

    Returns:
        Los bytes leídos

    Raises:
        PayloadTooLarge: si el cuerpo declarado o leído excede el límite
    """
    if content_length is not None and content_length > limit:
        raise PayloadTooLarge()

    chunks = []
    total = 0
    while True:
        chunk = stream.read(READ_CHUNK_SIZE)
        if not chunk:
            break
        total += len(chunk)
        if total > limit:
            raise PayloadTooLarge()
        chunks.append(chunk)
    return b"".join(chunks)


def decode_body(raw, mimetype=None, checkbox_consent=False):
    """
    Decodifica el cuerpo en un diccionario.

    Todo lo que no sea form-encoded se interpreta como JSON. Un cuerpo vacío
    equivale a ``{}``.

    En form-encoded todos los valores son texto. Solo con ``checkbox_consent``
    el valor ``"on"`` de un checkbox ``gdpr`` se acepta como ``True``.

    Raises:
        MalformedInput: si el cuerpo no es un objeto JSON válido
    """
    try:
        text = raw.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise MalformedInput() from exc

    if not text.strip():
        return {}

    if mimetype == FORM_MIMETYPE:
        data = dict(parse_qsl(text, keep_blank_values=True))
        if checkbox_consent and data.get("gdpr") == FORM_CHECKBOX_ON:
            data["gdpr"] = True
        return data

    try:
        data = json.loads(text)
    except (ValueError, RecursionError) as exc:
        # anidamiento excesivo agota la pila del decodificador
        raise MalformedInput() from exc

    if not isinstance(data, dict):
        raise MalformedInput()
    return data


def sanitize(value, max_len):
    """
    Normaliza un valor de texto del formulario.

    Valores que no son ``str`` se tratan como vacíos. CRLF y CR sueltos pasan a
    LF, luego se recorta y se trunca a ``max_len``.
    """
    if not isinstance(value, str):
        return ""
    value = value.replace("\r\n", "\n").replace("\r", "\n")
    return value.strip()[:max_len]


def parse_submission(data):
    """
    Construye un RawSubmission a partir del cuerpo decodificado.

    ``gdpr`` solo es verdadero si es exactamente el booleano ``True``.
    """
    fields = {
        field: sanitize(data.get(field), max_len)
        for field, max_len in FIELD_LIMITS.items()
    }
    return RawSubmission(gdpr=data.get("gdpr") is True, **fields)
