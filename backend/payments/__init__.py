"""
Module 'payments': point d'entrée public de l'adaptateur Razorpay
(création d'ordre de paiement, conversion en paise, vérification de signature).
"""

from .razorpay_client import (
    is_configured,
    public_key_id,
    require_razorpay,
    to_minor_units,
    create_intent,
    compute_signature,
    verify_signature,
)

__all__ = [
    "is_configured",
    "public_key_id",
    "require_razorpay",
    "to_minor_units",
    "create_intent",
    "compute_signature",
    "verify_signature",
]
