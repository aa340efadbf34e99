# tests/conftest.py
import os
import sys
import pathlib

import pytest

# ---------- PATH raíz del repo ----------
THIS = pathlib.Path(__file__).resolve()
ROOT = THIS.parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from backend.app import create_app  # noqa: E402
from backend.app.extensions import mail  # noqa: E402


# ---------- Config de pruebas ----------
class TestConfig:
    TESTING = True
    APP_ENV = "test"
    LOG_LEVEL = None  # Auto-detect per APP_ENV during tests
    LOG_JSON_ENABLED = False
    MAIL_SUPPRESS_SEND = True
    MAIL_SERVER = "localhost"
    MAIL_PORT = 1025
    MAIL_USE_TLS = False
    MAIL_USE_SSL = False
    MAIL_USERNAME = "relay@example.com"
    MAIL_PASSWORD = "dummy"
    MAIL_DEFAULT_SENDER = "no-reply@example.com"
    CONTACT_RECIPIENTS = ["owner@example.com"]
    CONTACT_BODY_FORMAT = "text"
    CONTACT_MAX_BODY_BYTES = 64 * 1024
    CONTACT_FORM_CHECKBOX_CONSENT = False
    PROXY_FIX_X_FOR = 0
    CORS_ORIGINS = []
    SENTRY_DSN = None
    # Rate limiting - límite alto para que no interfiera con el resto de pruebas
    RATELIMIT_STORAGE_URI = "memory://"
    RATELIMIT_CONTACT = "1000 per minute"


@pytest.fixture(scope="session", autouse=True)
def _clean_env():
    """Fuerza el entorno de pruebas y evita usar credenciales SMTP reales."""
    saved = {key: os.environ.get(key) for key in ("APP_ENV", "SMTP_HOST", "SMTP_USER", "SMTP_PASS", "MAIL_TO")}
    for key in ("SMTP_HOST", "SMTP_USER", "SMTP_PASS", "MAIL_TO"):
        os.environ.pop(key, None)
    os.environ["APP_ENV"] = "test"

    yield

    for key, value in saved.items():
        if value is None:
            os.environ.pop(key, None)
        else:
            os.environ[key] = value


@pytest.fixture()
def app():
    # Una app por prueba: el despachador de correo se cachea por app
    return create_app(TestConfig)


@pytest.fixture()
def client(app):
    return app.test_client()


@pytest.fixture()
def mail_outbox(monkeypatch):
    sent = []

    def fake_send(message):
        sent.append(message)

    monkeypatch.setattr(mail, "send", fake_send)
    return sent


@pytest.fixture()
def valid_payload():
    return {
        "name": "Jo",
        "email": "jo@example.com",
        "message": "Hello there, need a quote",
        "gdpr": True,
    }


@pytest.fixture()
def make_app():
    """Crea una app con valores de configuración adicionales."""
    def _make(**overrides):
        config = type("OverrideConfig", (TestConfig,), overrides)
        return create_app(config)
    return _make
