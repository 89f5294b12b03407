"""
API d'administration des commandes (rôle admin requis).
- GET /api/v1/admin/orders: liste (plus récentes d'abord, limite <= 500)
- PATCH /api/v1/admin/orders/{id}/status: suivi de livraison
"""
from typing import Any, Dict
from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, ConfigDict, Field
import logging

from backend.orders import service as orders_service
from backend.utils.security import require_admin

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/admin", tags=["Admin"])


class StatusUpdateRequest(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    status: str = Field(min_length=1)


@router.get("/orders")
def admin_list_orders(limit: int = Query(default=100, ge=1, le=500), user: Dict[str, Any] = Depends(require_admin)):
    return orders_service.list_all_orders(limit)

@router.patch("/orders/{order_id}/status")
def admin_update_status(order_id: str, req: StatusUpdateRequest, user: Dict[str, Any] = Depends(require_admin)):
    order = orders_service.update_status(order_id, req.status)
    logger.info("admin.update_status by=%s id=%s status=%s", user.get("email"), order_id, order.get("status"))
    return {"ok": True, "orderId": order_id, "status": order.get("status")}
