"""Registre des commandes (Order Ledger) et sa machine à états.
Rôles:
- Créer une commande « pending » à partir d'un panier validé (instantané figé).
- Passer une commande à « paid » une seule fois, de façon idempotente (rejeu du même paiement).
- Mise à jour de statut côté admin, restreinte à un ensemble de valeurs.
- Projections en lecture (sans la signature Razorpay).
Les champs items/address/montants sont écrits une seule fois, à la création.
"""
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple
import logging

from backend.checkout.pricing import ValidatedOrder
from backend.orders import repository
from backend.utils.errors import InvalidStatusError, NotFoundError, PersistenceError

logger = logging.getLogger(__name__)

STATUS_PENDING = "pending"
STATUS_PAID = "paid"
STATUS_CANCELLED = "cancelled"
# Statuts de livraison modifiables par un admin ("paid" et "failed" exclus)
ADMIN_STATUSES = {STATUS_PENDING, "processing", "shipped", "delivered", STATUS_CANCELLED}

WRITE_ONCE_FIELDS = frozenset({
    "id", "user_id", "guest_email", "items", "address",
    "subtotal", "delivery_charge", "total", "razorpay_order_id", "created_at",
})

HIDDEN_FIELDS = ("razorpay_signature",)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()

def _checked_update(data: Dict[str, Any]) -> Dict[str, Any]:
    touched = WRITE_ONCE_FIELDS.intersection(data)
    if touched:
        raise ValueError(f"Champs en écriture unique: {sorted(touched)}")
    return data

def project_order(row: Dict[str, Any]) -> Dict[str, Any]:
    """Projection lecture seule d'une commande (masque la signature)."""
    return {k: v for k, v in (row or {}).items() if k not in HIDDEN_FIELDS}

# --- Création ---

def create_order(
    validated: ValidatedOrder,
    gateway_order_ref: str,
    user_id: Optional[str] = None,
    guest_email: Optional[str] = None,
) -> str:
    """Insère la commande en « pending » et retourne son id.
    - Montants persistés en chaînes '1000.00' (decimal côté base).
    - PersistenceError si l'insertion échoue.
    """
    snapshot = validated.model_dump(mode="json")
    row = {
        "user_id": user_id or None,
        "guest_email": guest_email or None,
        "items": snapshot["items"],
        "address": snapshot["address"],
        "subtotal": snapshot["subtotal"],
        "delivery_charge": snapshot["delivery_charge"],
        "total": snapshot["total"],
        "status": STATUS_PENDING,
        "razorpay_order_id": gateway_order_ref,
    }
    created = repository.insert_order(row)
    if not created or not created.get("id"):
        raise PersistenceError()
    order_id = str(created["id"])
    logger.info("orders.create id=%s razorpay_order_id=%s total=%s", order_id, gateway_order_ref, row["total"])
    return order_id

# --- Transitions ---

def mark_paid(order_id: str, gateway_payment_ref: str, signature: str) -> Tuple[Dict[str, Any], bool]:
    """Transition pending -> paid (une seule fois).
    Retour: (commande, transitioned)
    - transitioned=True: cette invocation a effectué la transition.
    - transitioned=False: rejeu idempotent (déjà payée avec le même razorpay_payment_id).
    Erreurs: NotFoundError (id inconnu), PersistenceError (écriture ou lecture en échec),
    InvalidStatusError (payée par un autre paiement, annulée ou en échec).
    """
    data = _checked_update({
        "status": STATUS_PAID,
        "razorpay_payment_id": gateway_payment_ref,
        "razorpay_signature": signature,
        "updated_at": _now(),
    })
    rows = repository.update_order_if_unpaid(order_id, STATUS_PENDING, data)
    if rows:
        logger.info("orders.mark_paid id=%s razorpay_payment_id=%s", order_id, gateway_payment_ref)
        return rows[0], True

    current = repository.get_order(order_id)
    if not current:
        raise NotFoundError()
    if current.get("razorpay_payment_id") == gateway_payment_ref:
        logger.info("orders.mark_paid replay id=%s razorpay_payment_id=%s status=%s", order_id, gateway_payment_ref, current.get("status"))
        return current, False
    if current.get("status") == STATUS_PENDING and not current.get("razorpay_payment_id"):
        # La condition était remplie: l'écriture elle-même a échoué
        logger.error("orders.mark_paid write failed id=%s razorpay_payment_id=%s", order_id, gateway_payment_ref)
        raise PersistenceError()
    logger.warning(
        "orders.mark_paid refused id=%s status=%s stored_payment=%s incoming_payment=%s",
        order_id, current.get("status"), current.get("razorpay_payment_id"), gateway_payment_ref,
    )
    raise InvalidStatusError("Commande déjà réglée ou clôturée")

def update_status(order_id: str, new_status: str) -> Dict[str, Any]:
    """Mise à jour admin du statut de livraison.
    - new_status doit appartenir à ADMIN_STATUSES, sinon InvalidStatusError.
    - NotFoundError si la commande n'existe pas.
    """
    status = str(new_status or "").strip().lower()
    if status not in ADMIN_STATUSES:
        raise InvalidStatusError()
    rows = repository.update_order(order_id, _checked_update({"status": status, "updated_at": _now()}))
    if not rows:
        if not repository.get_order(order_id):
            raise NotFoundError()
        raise PersistenceError()
    logger.info("orders.update_status id=%s status=%s", order_id, status)
    return rows[0]

# --- Lectures ---

def get_order(order_id: str) -> Dict[str, Any]:
    row = repository.get_order(order_id)
    if not row:
        raise NotFoundError()
    return row

def list_user_orders(user_id: str) -> List[Dict[str, Any]]:
    return [project_order(r) for r in repository.list_orders_by_user(user_id)]

def list_all_orders(limit: int = 100) -> List[Dict[str, Any]]:
    limit = max(1, min(int(limit), 500))
    return [project_order(r) for r in repository.list_orders(limit)]
