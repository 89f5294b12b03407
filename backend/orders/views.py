from typing import Any, Dict, Optional
from fastapi import APIRouter, Depends

from backend.orders import service as orders_service
from backend.utils.errors import NotFoundError
from backend.utils.security import get_optional_user, require_user

router = APIRouter(prefix="/api/v1/orders", tags=["Orders API"])


def can_view(order: Dict[str, Any], user: Optional[Dict[str, Any]]) -> bool:
    """Commande invité: visible avec son id. Commande d'un compte: propriétaire ou admin."""
    owner = order.get("user_id")
    if not owner:
        return True
    if not user:
        return False
    return str(owner) == str(user.get("id")) or user.get("role") == "admin"

@router.get("/my")
def my_orders(user: Dict[str, Any] = Depends(require_user)):
    return orders_service.list_user_orders(user["id"])

@router.get("/{order_id}")
def get_order(order_id: str, user: Optional[Dict[str, Any]] = Depends(get_optional_user)):
    order = orders_service.get_order(order_id)
    if not can_view(order, user):
        # 404 plutôt que 403: ne révèle pas l'existence de la commande
        raise NotFoundError()
    return orders_service.project_order(order)
