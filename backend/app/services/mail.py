"""
Servicio de correo electrónico.

Funciones:
- resolve_mail_sender: Determina el remitente de correo configurado
- get_dispatcher: Devuelve el despachador de correo (creado una sola vez)
- MailDispatcher.send: Envía un SafeMessage al destinatario configurado
"""

import threading
from dataclasses import dataclass
from typing import Optional, Tuple, Union

from flask import Flask, current_app
from flask_mail import Message
from markupsafe import Markup

from ..errors import ConfigurationError, DispatchError
from ..extensions import mail
from ..models import SafeMessage

DISPATCHER_EXTENSION_KEY = "contact_dispatcher"
SUBJECT_PREFIX = "Contact form"

_dispatcher_lock = threading.Lock()


def resolve_mail_sender(config=None):
    """
    Determina el remitente de correo configurado.

    Prioriza MAIL_DEFAULT_SENDER sobre MAIL_USERNAME.
    Soporta strings individuales o tuplas (nombre, email).

    Returns:
        Remitente configurado (str o tuple) o None si no está disponible
    """
    config = config if config is not None else current_app.config
    sender = config.get('MAIL_DEFAULT_SENDER')

    if isinstance(sender, str):
        stripped = sender.strip()
        if stripped:
            return stripped
    elif isinstance(sender, (list, tuple)):
        cleaned = []
        for part in sender:
            if isinstance(part, str):
                part = part.strip()
            if part:
                cleaned.append(part)
        if cleaned:
            return tuple(cleaned)

    fallback = config.get('MAIL_USERNAME')
    if isinstance(fallback, str):
        fallback = fallback.strip()
        if fallback:
            return fallback
    return None


class PlainTextFormatter:
    """Cuerpo en texto plano."""

    name = "text"

    def subject(self, message: SafeMessage) -> str:
        return f"{SUBJECT_PREFIX}: {message.name}"

    def text(self, message: SafeMessage) -> str:
        lines = [
            "New message from contact form",
            "",
            f"Name: {message.name}",
            f"Email: {message.email}",
        ]
        if message.phone:
            lines.append(f"Phone: {message.phone}")
        lines.append(f"IP: {message.source_ip}")
        lines.extend(["", "Message:", message.message, ""])
        return "\n".join(lines)

    def html(self, message: SafeMessage) -> Optional[str]:
        return None


class HtmlFormatter(PlainTextFormatter):
    """Texto plano más una alternativa HTML."""

    name = "html"

    def html(self, message: SafeMessage) -> Optional[str]:
        # name, phone y message ya vienen escapados: se marcan como seguros para
        # no escaparlos dos veces. email e IP se escapan aquí.
        rows = [
            Markup("<p><strong>Name:</strong> {}</p>").format(Markup(message.name)),
            Markup("<p><strong>Email:</strong> {}</p>").format(message.email),
        ]
        if message.phone:
            rows.append(Markup("<p><strong>Phone:</strong> {}</p>").format(Markup(message.phone)))
        rows.append(Markup("<p><strong>IP:</strong> {}</p>").format(message.source_ip))
        body = Markup("<br>\n").join(Markup(line) for line in message.message.split("\n"))
        rows.append(Markup("<p><strong>Message:</strong></p>\n<p>{}</p>").format(body))
        content = Markup("\n").join(rows)
        return str(Markup("<h2>New message from contact form</h2>\n{}").format(content))


FORMATTERS = {
    PlainTextFormatter.name: PlainTextFormatter,
    HtmlFormatter.name: HtmlFormatter,
}


def get_formatter(name):
    try:
        return FORMATTERS[(name or PlainTextFormatter.name).strip().lower()]()
    except KeyError as exc:
        raise ConfigurationError(f"Unknown CONTACT_BODY_FORMAT: {name!r}") from exc


@dataclass(frozen=True)
class MailSettings:
    """Configuración tipada del transporte y del destino del formulario."""

    host: Optional[str]
    port: int
    use_ssl: bool
    use_tls: bool
    username: Optional[str]
    password: Optional[str]
    recipients: Tuple[str, ...]
    sender: Union[str, Tuple[str, ...], None]
    body_format: str = PlainTextFormatter.name

    @classmethod
    def from_config(cls, config) -> "MailSettings":
        recipients = config.get("CONTACT_RECIPIENTS") or ()
        if isinstance(recipients, str):
            recipients = [recipients]
        return cls(
            host=(config.get("MAIL_SERVER") or "").strip() or None,
            port=int(config.get("MAIL_PORT") or 587),
            use_ssl=bool(config.get("MAIL_USE_SSL", False)),
            use_tls=bool(config.get("MAIL_USE_TLS", False)),
            username=config.get("MAIL_USERNAME") or None,
            password=config.get("MAIL_PASSWORD") or None,
            recipients=tuple(r.strip() for r in recipients if r and r.strip()),
            sender=resolve_mail_sender(config),
            body_format=config.get("CONTACT_BODY_FORMAT") or PlainTextFormatter.name,
        )

    def missing(self):
        """Lista las claves obligatorias que faltan."""
        required = {
            "MAIL_TO": self.recipients,
            "SMTP_HOST": self.host,
            "SMTP_USER": self.username,
            "SMTP_PASS": self.password,
            "MAIL_FROM": self.sender,
        }
        return [key for key, value in required.items() if not value]

    def require(self) -> "MailSettings":
        missing = self.missing()
        if missing:
            raise ConfigurationError(f"Mail configuration incomplete: {', '.join(missing)}")
        return self


@dataclass(frozen=True)
class MailDispatcher:
    """Handle inmutable: solo guarda configuración, nunca estado por petición."""

    settings: MailSettings
    formatter: PlainTextFormatter

    def build_message(self, message: SafeMessage) -> Message:
        return Message(
            subject=self.formatter.subject(message),
            sender=self.settings.sender,
            recipients=list(self.settings.recipients),
            body=self.formatter.text(message),
            html=self.formatter.html(message),
            reply_to=message.email,
        )

    def send(self, message: SafeMessage) -> None:
        """
        Envía el mensaje por el relay SMTP.

        Raises:
            DispatchError: si el transporte falla (sin reintentos)
        """
        msg = self.build_message(message)
        try:
            mail.send(msg)
        except Exception as exc:
            raise DispatchError(f"Mail transport failed: {exc}") from exc


def create_dispatcher(config) -> MailDispatcher:
    settings = MailSettings.from_config(config).require()
    return MailDispatcher(settings=settings, formatter=get_formatter(settings.body_format))


def get_dispatcher(app: Optional[Flask] = None) -> MailDispatcher:
    """
    Devuelve el despachador de la aplicación, creándolo en el primer uso.

    La inicialización está protegida por un lock para que dos primeras
    peticiones concurrentes no lo construyan dos veces. Un error de
    configuración no se guarda: se vuelve a evaluar en la siguiente petición.

    Raises:
        ConfigurationError: si falta destinatario, remitente o credenciales
    """
    app = app or current_app._get_current_object()
    dispatcher = app.extensions.get(DISPATCHER_EXTENSION_KEY)
    if dispatcher is not None:
        return dispatcher

    with _dispatcher_lock:
        dispatcher = app.extensions.get(DISPATCHER_EXTENSION_KEY)
        if dispatcher is None:
            dispatcher = create_dispatcher(app.config)
            app.extensions[DISPATCHER_EXTENSION_KEY] = dispatcher
            app.logger.info(
                "Mail dispatcher initialized",
                extra={
                    "event": "mail.dispatcher_ready",
                    "body_format": dispatcher.formatter.name,
                    "recipients": len(dispatcher.settings.recipients),
                },
            )
    return dispatcher
