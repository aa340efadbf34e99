"""
Routes package - API endpoints.
"""
from flask import Blueprint

# Blueprint único para la API
api = Blueprint("api", __name__)

# Importar módulos de rutas después de crear blueprints para evitar circular imports
from . import (
    contact,
    health,
)

__all__ = ["api"]
