"""Couche service du tunnel de commande (create -> verify).
Rôles:
- Phase 1: valider le panier, créer l'ordre Razorpay, enregistrer la commande « pending ».
- Phase 2: vérifier la signature Razorpay, passer la commande à « paid »,
  planifier les emails sans bloquer la réponse.
Intégration Razorpay:
- create_intent: montant en paise + receipt unique + notes (client, téléphone).
- verify_signature: HMAC(order_ref|payment_ref) calculé côté serveur, jamais cru côté client.
"""
from typing import Any, Callable, Dict, Iterable, Optional
from uuid import uuid4
import logging

from backend import config
from backend.checkout import pricing
from backend.notifications import mailer
from backend.orders import service as orders_service
from backend.payments import razorpay_client
from backend.utils.errors import PersistenceError, SignatureMismatchError

logger = logging.getLogger(__name__)

Schedule = Callable[..., Any]


def new_receipt_id() -> str:
    """Identifiant de reçu unique, <= 40 caractères (limite Razorpay)."""
    return f"{config.RECEIPT_PREFIX}_{uuid4().hex}"[:40]

def create_checkout(
    *,
    items: Optional[Iterable[Any]],
    address: Any,
    email: Optional[str] = None,
    user: Optional[Dict[str, Any]] = None,
    price_lookup: Optional[Callable] = None,
) -> Dict[str, Any]:
    """Phase 1: crée l'ordre de paiement puis la commande « pending ».
    - ValidationError du moteur de prix propagée telle quelle (aucun appel Razorpay).
    - GatewayError: aucune commande créée.
    - Échec d'écriture après un ordre Razorpay réussi: ordre distant orphelin loggé
      (il expirera côté Razorpay), PersistenceError pour l'appelant.
    Retour: payload pour le widget Razorpay (orderId, gatewayOrderRef, amount, currency, keyId, prefill).
    """
    validated = pricing.price_cart(items, address, price_lookup=price_lookup)
    amount_minor = razorpay_client.to_minor_units(validated.total)
    addr = validated.address
    intent = razorpay_client.create_intent(
        amount_minor=amount_minor,
        currency=config.RAZORPAY_CURRENCY,
        receipt=new_receipt_id(),
        notes={"customer": addr.get("name") or "", "phone": addr.get("phone") or ""},
    )
    gateway_order_ref = intent["gateway_order_ref"]

    user_id = (user or {}).get("id")
    try:
        order_id = orders_service.create_order(
            validated,
            gateway_order_ref,
            user_id=user_id,
            guest_email=email,
        )
    except PersistenceError:
        logger.error(
            "checkout.create orphaned razorpay order gateway_order_ref=%s amount=%s user_id=%s",
            gateway_order_ref, amount_minor, user_id,
        )
        raise

    return {
        "orderId": order_id,
        "gatewayOrderRef": gateway_order_ref,
        "amount": amount_minor,
        "currency": config.RAZORPAY_CURRENCY,
        "keyId": razorpay_client.public_key_id(),
        "prefill": {
            "name": addr.get("name") or "",
            "email": email or (user or {}).get("email") or "",
            "contact": addr.get("phone") or "",
        },
    }

def confirm_payment(
    *,
    order_id: str,
    gateway_order_ref: str,
    gateway_payment_ref: str,
    signature: str,
    schedule: Optional[Schedule] = None,
) -> Dict[str, Any]:
    """Phase 2: vérifie le paiement et marque la commande « paid ».
    - Signature invalide: SignatureMismatchError, état de la commande inchangé.
    - gateway_order_ref différent de celui enregistré: même rejet (une signature valide
      pour une commande ne peut pas en payer une autre).
    - Rejeu avec le même paiement: succès, sans nouvel email.
    - schedule(func, order): planificateur des emails (BackgroundTasks.add_task).
    """
    if not razorpay_client.verify_signature(gateway_order_ref, gateway_payment_ref, signature):
        logger.warning(
            "security: checkout.verify signature mismatch order_id=%s gateway_order_ref=%s gateway_payment_ref=%s",
            order_id, gateway_order_ref, gateway_payment_ref,
        )
        raise SignatureMismatchError()

    stored = orders_service.get_order(order_id)
    if stored.get("razorpay_order_id") != gateway_order_ref:
        logger.warning(
            "security: checkout.verify order ref mismatch order_id=%s stored=%s received=%s",
            order_id, stored.get("razorpay_order_id"), gateway_order_ref,
        )
        raise SignatureMismatchError()

    order, transitioned = orders_service.mark_paid(order_id, gateway_payment_ref, signature)
    if transitioned and schedule is not None:
        schedule(mailer.dispatch_order_notifications, order)
    return {"success": True, "orderId": order_id}
