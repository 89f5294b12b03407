"""Codes promo: contrat numérique seulement (la remise n'est pas appliquée au total de commande)."""
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict
import logging

from backend.checkout.pricing import to_money
from backend.coupons import repository
from backend.utils.errors import NotFoundError, ValidationError

logger = logging.getLogger(__name__)


def compute_discount(coupon: Dict[str, Any], subtotal: Decimal) -> Decimal:
    """
    - percent: subtotal × valeur / 100, arrondi à la roupie (half-up)
    - fixed: min(valeur, subtotal)
    """
    value = to_money(coupon.get("discount_value")) or Decimal("0")
    if coupon.get("discount_type") == "percent":
        return (subtotal * value / Decimal(100)).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    return min(value, subtotal)

def _fmt(amount: Decimal) -> str:
    # 10.00 -> '10', 12.50 -> '12.5'
    text = f"{amount:f}"
    return text.rstrip("0").rstrip(".") if "." in text else text

def apply_coupon(code: Any, subtotal: Any) -> Dict[str, Any]:
    code = str(code or "").strip()
    amount = to_money(subtotal)
    if not code or not amount:
        raise ValidationError("Code et sous-total requis")

    coupon = repository.find_active_coupon(code)
    if not coupon:
        raise NotFoundError("Coupon invalide ou expiré")

    min_order = to_money(coupon.get("min_order")) or Decimal("0")
    if amount < min_order:
        raise ValidationError(f"Commande minimum de ₹{_fmt(min_order)} requise")

    discount = compute_discount(coupon, amount)
    if coupon.get("discount_type") == "percent":
        description = f"{_fmt(to_money(coupon.get('discount_value')) or Decimal('0'))}% off"
    else:
        description = f"₹{_fmt(discount)} off"
    logger.info("coupons.apply code=%s discount=%s", coupon.get("code"), discount)
    return {
        "discount": float(discount),
        "couponId": coupon.get("id"),
        "code": coupon.get("code"),
        "description": description,
    }
