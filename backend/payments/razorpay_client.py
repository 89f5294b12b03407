"""
Adaptateur Razorpay: centralise la configuration, la création d'ordres de paiement
et la vérification de signature HMAC.
"""
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, Optional
import hashlib
import hmac
import logging

from backend import config
from backend.utils.errors import GatewayError

logger = logging.getLogger(__name__)

NOT_CONFIGURED = "Passerelle de paiement non configurée. Ajoutez RAZORPAY_KEY_ID et RAZORPAY_KEY_SECRET."

# module backend.payments.razorpay_client
def is_configured() -> bool:
    return bool(config.RAZORPAY_KEY_ID and config.RAZORPAY_KEY_SECRET)

def public_key_id() -> str:
    """Identifiant public (key_id) transmis au widget; jamais le secret."""
    return config.RAZORPAY_KEY_ID

def require_razorpay():
    """
    Prépare et retourne un client Razorpay prêt à l’emploi.
    - GatewayError(500) si les clés sont absentes ou si le SDK n'est pas installé.
    """
    if not is_configured():
        raise GatewayError(NOT_CONFIGURED, status_code=500)
    try:
        import razorpay
    except ImportError as e:
        logger.error("payments.razorpay SDK indisponible: %s", e)
        raise GatewayError("Razorpay non installé (pip install razorpay).", status_code=500) from e
    return razorpay.Client(auth=(config.RAZORPAY_KEY_ID, config.RAZORPAY_KEY_SECRET))

def to_minor_units(amount: Any) -> int:
    """Montant en roupies -> paise (x100, arrondi au plus proche, sans dérive flottante)."""
    return int((Decimal(str(amount)) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))

def create_intent(
    *,
    amount_minor: int,
    currency: str,
    receipt: str,
    notes: Optional[Dict[str, Any]] = None,
) -> Dict[str, str]:
    """
    Crée un ordre de paiement Razorpay.
    - amount_minor: montant en plus petite unité (paise), > 0
    - receipt: identifiant de reçu unique (<= 40 caractères)
    - notes: métadonnées libres (ex {"customer": ..., "phone": ...})
    Retour: {"gateway_order_ref": "order_..."}
    Erreurs: GatewayError (configuration, rejet distant, timeout, réponse inattendue).
    """
    client = require_razorpay()
    payload = {
        "amount": int(amount_minor),
        "currency": currency,
        "receipt": receipt,
        "notes": notes or {},
    }
    try:
        order = client.order.create(data=payload, timeout=config.RAZORPAY_TIMEOUT_SECONDS)
    except Exception as e:
        logger.exception("payments.razorpay order.create failed receipt=%s amount=%s", receipt, amount_minor)
        raise GatewayError() from e

    order_ref = (order or {}).get("id") if isinstance(order, dict) else None
    if not order_ref:
        logger.error("payments.razorpay order.create returned no id receipt=%s response=%s", receipt, order)
        raise GatewayError()
    logger.info("payments.razorpay order created gateway_order_ref=%s receipt=%s amount=%s", order_ref, receipt, amount_minor)
    return {"gateway_order_ref": order_ref}

def compute_signature(gateway_order_ref: str, gateway_payment_ref: str, secret: str) -> str:
    """HMAC-SHA256 hexadécimal de "<order_ref>|<payment_ref>" avec le secret partagé."""
    message = f"{gateway_order_ref}|{gateway_payment_ref}".encode("utf-8")
    return hmac.new(secret.encode("utf-8"), message, hashlib.sha256).hexdigest()

def verify_signature(
    gateway_order_ref: str,
    gateway_payment_ref: str,
    signature: str,
    secret: Optional[str] = None,
) -> bool:
    """
    Vérifie côté serveur qu'un paiement provient bien de Razorpay.
    - Comparaison à temps constant (hmac.compare_digest).
    - Retourne False si une des références ou la signature est vide.
    - GatewayError(500) si aucun secret n'est configuré.
    """
    secret = secret if secret is not None else config.RAZORPAY_KEY_SECRET
    if not secret:
        raise GatewayError(NOT_CONFIGURED, status_code=500)
    if not gateway_order_ref or not gateway_payment_ref or not signature:
        return False
    expected = compute_signature(gateway_order_ref, gateway_payment_ref, secret)
    return hmac.compare_digest(expected.encode("utf-8"), str(signature).encode("utf-8"))
