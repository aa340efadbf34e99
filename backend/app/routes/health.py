"""Health check del servicio."""

import os
from datetime import datetime, timezone
from flask import jsonify, current_app

from . import api
from ..services.mail import MailSettings


@api.get("/health")
def health_check():
    """Verifica estado del sistema: configuración de correo y carga del servidor."""
    settings = MailSettings.from_config(current_app.config)
    missing_mail = settings.missing()
    mail_status = "configured" if not missing_mail else "incomplete"

    load_ratio = None
    load_value = None
    cpu_count = os.cpu_count() or 1
    try:
        load_value = os.getloadavg()[0]
        load_ratio = load_value / max(cpu_count, 1)
    except (AttributeError, OSError):
        load_ratio = None

    def classify_system():
        if load_ratio is None:
            return "unknown"
        if load_ratio <= 0.6:
            return "ok"
        if load_ratio <= 1.5:
            return "warning"
        return "critical"

    indicators = {
        "mail": "ok" if not missing_mail else "critical",
        "system": classify_system(),
    }

    if missing_mail:
        overall = "error"
    elif indicators["system"] in {"warning", "critical"}:
        overall = "degraded"
    else:
        overall = "ok"

    # Solo se indica si la configuración está completa, nunca qué falta
    payload = {
        "status": overall,
        "mail_status": mail_status,
        "metrics": {
            "system_load": {
                "ratio": round(load_ratio, 2) if load_ratio is not None else None,
                "cores": cpu_count,
                "raw": round(load_value, 2) if load_value is not None else None,
            },
        },
        "indicators": indicators,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }

    status_code = 200 if not missing_mail else 503
    return jsonify(payload), status_code
