"""
Services package - contact flow business logic.

Este paquete contiene el normalizador de peticiones, el pipeline de validación
y el despachador de correo, sin dependencias de blueprints.
"""

__all__ = [
    "mail",
    "normalizer",
    "request_utils",
    "validate",
]
