"""
Routes du tunnel de commande (API JSON).
- POST /api/v1/orders/create: panier + adresse -> ordre Razorpay + commande « pending »
- POST /api/v1/orders/verify: retour du widget Razorpay -> commande « paid » + emails en tâche de fond
Les erreurs métier (AppError) sont converties en {"error": ...} par les handlers globaux.
"""
from typing import Any, Dict, Optional
from fastapi import APIRouter, BackgroundTasks, Depends
import logging

from backend.checkout import service as checkout_service
from backend.checkout.schemas import CreateOrderRequest, VerifyPaymentRequest
from backend.utils.rate_limit import optional_rate_limit
from backend.utils.security import get_optional_user

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/orders", tags=["Orders API"])

# module backend.checkout.views
@router.post("/create", dependencies=[Depends(optional_rate_limit(times=10, seconds=60))])
def create_order(req: CreateOrderRequest, user: Optional[Dict[str, Any]] = Depends(get_optional_user)):
    # Route sync: SDK Razorpay et PostgREST sont bloquants (threadpool FastAPI)
    return checkout_service.create_checkout(
        items=req.items,
        address=req.address,
        email=req.email,
        user=user,
    )

@router.post("/verify")
def verify_payment(req: VerifyPaymentRequest, background_tasks: BackgroundTasks):
    return checkout_service.confirm_payment(
        order_id=req.order_id,
        gateway_order_ref=req.gateway_order_ref,
        gateway_payment_ref=req.gateway_payment_ref,
        signature=req.gateway_signature,
        schedule=background_tasks.add_task,
    )
