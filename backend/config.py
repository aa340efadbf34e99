"""Application configuration values."""
import os
import sys
import json
from typing import List, Optional
from dotenv import load_dotenv


# --- Cargar variables de entorno ---
load_dotenv()

DEFAULT_MAX_BODY_BYTES = 64 * 1024

_ENV_ALIASES = {
    "dev": "development",
    "development": "development",
    "prod": "production",
    "production": "production",
    "staging": "staging",
    "testing": "test",
    "tests": "test",
    "pytest": "test",
    "test": "test",
}


def _normalize_env(value: str) -> str:
    normalized = _ENV_ALIASES.get(value.strip().lower(), value.strip().lower())
    return normalized or "production"


def detect_runtime_env() -> str:
    """Determina el entorno actual (production, development, test)."""
    explicit = (
        os.getenv("APP_ENV")
        or os.getenv("FLASK_ENV")
        or os.getenv("ENV")
        or ""
    ).strip()
    if explicit:
        return _normalize_env(explicit)

    if os.getenv("PYTEST_CURRENT_TEST") or any("pytest" in arg for arg in sys.argv):
        return "test"

    debug_flag = os.getenv("FLASK_DEBUG", "").strip().lower()
    if debug_flag in {"1", "true", "on", "yes"}:
        return "development"

    return "production"


def env_flag(name: str, default: bool = False) -> bool:
    """
    Lee una bandera booleana del entorno.

    Solo el texto exacto "true" (sin importar mayúsculas ni espacios) es verdadero.
    Si la variable no existe se usa ``default``.
    """
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() == "true"


def env_int(name: str, default: int, minimum: Optional[int] = None) -> int:
    """Lee un entero del entorno, usando ``default`` si falta o no es válido."""
    try:
        value = int(os.getenv(name, str(default)))
    except (TypeError, ValueError):
        value = default
    if minimum is not None:
        value = max(minimum, value)
    return value


def parse_list_env(name: str) -> List[str]:
    raw = os.getenv(name, "").strip()
    if not raw:
        return []
    if raw.startswith("["):
        try:
            return [str(s) for s in json.loads(raw)]
        except ValueError:
            return []
    return [item.strip() for item in raw.split(",") if item.strip()]


def init_app_config(app) -> None:
    """Aplica valores derivados del entorno sin forzar evaluación temprana."""
    runtime_env = _normalize_env(
        str(app.config.get("APP_ENV", "") or app.config.get("ENV", "")).strip()
        or detect_runtime_env()
    )
    app.config["APP_ENV"] = runtime_env
    app.config["ENV"] = runtime_env

    if "TESTING" not in app.config:
        app.config["TESTING"] = runtime_env == "test"
    if "DEBUG" not in app.config:
        app.config["DEBUG"] = runtime_env == "development"

    try:
        max_body = int(app.config.get("CONTACT_MAX_BODY_BYTES", DEFAULT_MAX_BODY_BYTES))
    except (TypeError, ValueError):
        max_body = DEFAULT_MAX_BODY_BYTES
    app.config["CONTACT_MAX_BODY_BYTES"] = max(1, max_body)

    try:
        proxy_hops = int(app.config.get("PROXY_FIX_X_FOR") or 0)
    except (TypeError, ValueError):
        proxy_hops = 0
    app.config["PROXY_FIX_X_FOR"] = max(0, proxy_hops)

    body_format = str(app.config.get("CONTACT_BODY_FORMAT") or "text").strip().lower()
    app.config["CONTACT_BODY_FORMAT"] = body_format

    recipients = app.config.get("CONTACT_RECIPIENTS") or []
    if isinstance(recipients, str):
        recipients = [item.strip() for item in recipients.split(",") if item.strip()]
    app.config["CONTACT_RECIPIENTS"] = list(recipients)


class Config:
    _runtime = detect_runtime_env()
    TESTING = _runtime == "test"
    ENV = _runtime
    DEBUG = _runtime == "development"

    # --- correo saliente (SMTP relay vía Flask-Mail) ---
    MAIL_SERVER = os.getenv('SMTP_HOST') or os.getenv('MAIL_SERVER')
    MAIL_PORT = env_int('SMTP_PORT', 587, minimum=1)
    MAIL_USE_SSL = env_flag('SMTP_SECURE')
    # STARTTLS solo tiene sentido cuando la conexión no es SSL implícito
    MAIL_USE_TLS = env_flag('SMTP_STARTTLS', True) and not MAIL_USE_SSL
    MAIL_USERNAME = os.getenv('SMTP_USER') or os.getenv('MAIL_USERNAME')
    MAIL_PASSWORD = os.getenv('SMTP_PASS') or os.getenv('MAIL_PASSWORD')
    MAIL_DEFAULT_SENDER = os.getenv('MAIL_FROM', 'no-reply@example.com')

    # --- formulario de contacto ---
    CONTACT_RECIPIENTS = parse_list_env('MAIL_TO')
    CONTACT_BODY_FORMAT = os.getenv('CONTACT_BODY_FORMAT', 'text')
    CONTACT_MAX_BODY_BYTES = env_int('CONTACT_MAX_BODY_BYTES', DEFAULT_MAX_BODY_BYTES, minimum=1)
    # Formularios HTML sin JS: acepta gdpr=on como consentimiento
    CONTACT_FORM_CHECKBOX_CONSENT = env_flag('CONTACT_FORM_CHECKBOX_CONSENT')

    # --- CORS ---
    CORS_ORIGINS = parse_list_env('CORS_ORIGINS') or parse_list_env('CORS_ORIGIN')

    # --- Rate Limiting Configuration ---
    RATELIMIT_STORAGE_URI = os.getenv('RATELIMIT_STORAGE_URI', 'memory://')
    RATELIMIT_CONTACT = os.getenv('RATELIMIT_CONTACT', '10 per minute')

    # --- Proxy ---
    # Número de proxies de confianza delante de la app (0 = conexión directa)
    PROXY_FIX_X_FOR = env_int('PROXY_FIX_X_FOR', 0, minimum=0)

    # --- Logging Configuration ---
    LOG_LEVEL = os.getenv('LOG_LEVEL', None)  # None = auto-detect based on APP_ENV
    LOG_JSON_ENABLED = None  # None = auto-detect (True for production, False otherwise)
    _log_json_env = os.getenv('LOG_JSON_ENABLED', '').strip().lower()
    if _log_json_env in {'1', 'true', 'yes', 'on'}:
        LOG_JSON_ENABLED = True
    elif _log_json_env in {'0', 'false', 'no', 'off'}:
        LOG_JSON_ENABLED = False
    del _log_json_env

    # --- Sentry Configuration ---
    SENTRY_DSN = os.getenv('SENTRY_DSN')
    SENTRY_ENVIRONMENT = os.getenv('SENTRY_ENVIRONMENT')  # None = auto-detect from APP_ENV

    # 1.0 = 100% of transactions, 0.1 = 10% of transactions
    try:
        _traces_sample_rate = float(os.getenv('SENTRY_TRACES_SAMPLE_RATE', '0.1'))
    except ValueError:
        _traces_sample_rate = 0.1
    SENTRY_TRACES_SAMPLE_RATE = max(0.0, min(1.0, _traces_sample_rate))
    del _traces_sample_rate

    SENTRY_ENABLE_IN_DEV = env_flag('SENTRY_ENABLE_IN_DEV')
    APP_VERSION = os.getenv('APP_VERSION')
