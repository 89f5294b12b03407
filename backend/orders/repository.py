"""
Accès aux données 'orders' (registre des commandes).
- Écritures via le client service-role (bypass RLS).
- Les fonctions retournent None / [] en cas d'erreur (loggée); le service traduit en erreurs métier.
- get_order lève PersistenceError: une lecture en échec ne doit pas passer pour « introuvable ».
"""
from typing import Any, Dict, List, Optional
import logging
import backend.infra.supabase_client as supabase_client
from backend.utils.errors import PersistenceError

logger = logging.getLogger(__name__)

ORDERS_TABLE = "orders"

# module backend.orders.repository
def insert_order(row: Dict[str, Any]) -> Optional[dict]:
    """Insère une commande et retourne la ligne créée (avec id), None si échec."""
    try:
        res = supabase_client.get_service_supabase().table(ORDERS_TABLE).insert(row).execute()
        rows = res.data or []
        return rows[0] if isinstance(rows, list) and rows else None
    except Exception:
        logger.exception("orders.repository.insert_order failed razorpay_order_id=%s", row.get("razorpay_order_id"))
        return None

def get_order(order_id: str) -> Optional[dict]:
    """Lit une commande par id (None si introuvable, PersistenceError si la lecture échoue)."""
    if not order_id:
        return None
    try:
        res = (
            supabase_client.get_service_supabase()
            .table(ORDERS_TABLE)
            .select("*")
            .eq("id", order_id)
            .limit(1)
            .execute()
        )
    except Exception as e:
        logger.exception("orders.repository.get_order failed id=%s", order_id)
        raise PersistenceError() from e
    rows = res.data or []
    return rows[0] if rows else None

def update_order_if_unpaid(order_id: str, expected_status: str, data: Dict[str, Any]) -> List[dict]:
    """
    Mise à jour conditionnelle atomique:
    UPDATE ... WHERE id=? AND status=expected_status AND razorpay_payment_id IS NULL.
    Retourne les lignes modifiées ([] si la condition n’est pas remplie).
    """
    try:
        res = (
            supabase_client.get_service_supabase()
            .table(ORDERS_TABLE)
            .update(data)
            .eq("id", order_id)
            .eq("status", expected_status)
            .is_("razorpay_payment_id", "null")
            .execute()
        )
        return res.data or []
    except Exception:
        logger.exception("orders.repository.update_order_if_unpaid failed id=%s expected=%s", order_id, expected_status)
        return []

def update_order(order_id: str, data: Dict[str, Any]) -> List[dict]:
    try:
        res = (
            supabase_client.get_service_supabase()
            .table(ORDERS_TABLE)
            .update(data)
            .eq("id", order_id)
            .execute()
        )
        return res.data or []
    except Exception:
        logger.exception("orders.repository.update_order failed id=%s", order_id)
        return []

def list_orders_by_user(user_id: str) -> List[dict]:
    """Commandes d'un utilisateur, les plus récentes d'abord."""
    if not user_id:
        return []
    try:
        res = (
            supabase_client.get_service_supabase()
            .table(ORDERS_TABLE)
            .select("*")
            .eq("user_id", user_id)
            .order("created_at", desc=True)
            .execute()
        )
        return res.data or []
    except Exception:
        logger.exception("orders.repository.list_orders_by_user failed user_id=%s", user_id)
        return []

def list_orders(limit: int = 100) -> List[dict]:
    """Toutes les commandes (admin), les plus récentes d'abord."""
    try:
        res = (
            supabase_client.get_service_supabase()
            .table(ORDERS_TABLE)
            .select("*")
            .order("created_at", desc=True)
            .limit(limit)
            .execute()
        )
        return res.data or []
    except Exception:
        logger.exception("orders.repository.list_orders failed limit=%s", limit)
        return []
