from typing import Any, Optional
from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict

from backend.coupons import service as coupons_service
from backend.utils.rate_limit import optional_rate_limit

router = APIRouter(prefix="/api/v1/coupons", tags=["Coupons API"])


class ApplyCouponRequest(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    code: Optional[str] = None
    subtotal: Optional[Any] = None


@router.post("/apply", dependencies=[Depends(optional_rate_limit(times=20, seconds=60))])
def apply_coupon(req: ApplyCouponRequest):
    return coupons_service.apply_coupon(req.code, req.subtotal)
