from flask_mail import Mail
from flask_cors import CORS
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address


mail = Mail()
cors = CORS()
# La clave es la dirección de la conexión: X-Forwarded-For solo cuenta
# cuando ProxyFix está habilitado con PROXY_FIX_X_FOR
limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[],  # No default limits, only explicit per-endpoint
)
