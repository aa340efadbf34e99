"""Application factory for the contact relay backend."""
from flask import Flask
from werkzeug.middleware.proxy_fix import ProxyFix
from backend.config import Config, init_app_config

from .extensions import mail, cors, limiter
from .errors import register_error_handlers
from .logging_config import configure_logging, setup_request_logging

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "no-referrer",
}


def init_sentry(app: Flask) -> None:
    """
    Inicializa Sentry para monitoreo de errores y rendimiento.

    Solo se activa si:
    - SENTRY_DSN está configurado
    - El entorno es 'production', 'staging', o 'development' con SENTRY_ENABLE_IN_DEV=true
    """
    sentry_dsn = app.config.get('SENTRY_DSN')
    if not sentry_dsn:
        app.logger.info("Sentry no inicializado: SENTRY_DSN no configurado")
        return

    runtime_env = app.config.get('APP_ENV', 'production')
    enable_in_dev = app.config.get('SENTRY_ENABLE_IN_DEV', False)

    if runtime_env not in {'production', 'staging'}:
        if runtime_env == 'development' and enable_in_dev:
            app.logger.info("Sentry habilitado en development (SENTRY_ENABLE_IN_DEV=true)")
        else:
            app.logger.info(f"Sentry no inicializado: entorno '{runtime_env}' no es production/staging")
            return

    import sentry_sdk
    from sentry_sdk.integrations.flask import FlaskIntegration

    sentry_environment = app.config.get('SENTRY_ENVIRONMENT') or runtime_env
    traces_sample_rate = app.config.get('SENTRY_TRACES_SAMPLE_RATE', 0.1)

    sentry_sdk.init(
        dsn=sentry_dsn,
        environment=sentry_environment,
        integrations=[FlaskIntegration()],
        traces_sample_rate=traces_sample_rate,
        # Los datos del formulario son PII: nunca se envían a Sentry
        send_default_pii=False,
        release=app.config.get('APP_VERSION'),
    )

    app.logger.info(
        f"Sentry inicializado correctamente "
        f"[environment={sentry_environment}, traces_sample_rate={traces_sample_rate}]"
    )


def _init_cors(app: Flask) -> None:
    runtime_env = app.config.get("APP_ENV", "production")
    cors_origins = app.config.get("CORS_ORIGINS") or []

    if not cors_origins:
        if runtime_env == "production":
            app.logger.info("CORS_ORIGINS no configurado: solo se aceptan peticiones del mismo origen")
        else:
            cors_origins = "*"

    cors.init_app(
        app,
        resources={r"/api/*": {"origins": cors_origins}},
        methods=["POST", "OPTIONS"],
        allow_headers=["Content-Type"],
        vary_header=True,
    )


def create_app(config_object=Config) -> Flask:
    """
    Fábrica de la aplicación Flask.
    Configura la app
    """
    app = Flask(__name__)

    app.config.from_object(config_object)
    init_app_config(app)

    proxy_hops = app.config.get("PROXY_FIX_X_FOR", 0)
    if proxy_hops:
        app.wsgi_app = ProxyFix(app.wsgi_app, x_for=proxy_hops)

    configure_logging(app)
    setup_request_logging(app)
    register_error_handlers(app)

    init_sentry(app)

    mail.init_app(app)
    _init_cors(app)
    limiter.init_app(app)

    @app.after_request
    def apply_security_headers(response):
        for header, value in SECURITY_HEADERS.items():
            response.headers.setdefault(header, value)
        return response

    from .routes import api as api_blueprint

    app.register_blueprint(api_blueprint, url_prefix="/api")

    return app
