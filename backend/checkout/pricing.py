"""
Moteur de tarification et de validation du panier (pas de Razorpay, pas d'écriture DB).

- Recalcule sous-total / livraison / total à partir des prix du catalogue.
- Le prix envoyé par le client n'est utilisé qu'en dernier recours (produit introuvable).
- Une seule lecture catalogue (batch) par panier.
"""
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Callable, Dict, Iterable, List, Optional
import logging

from pydantic import BaseModel, ConfigDict, Field

from backend.catalog import repository as catalog_repository
from backend.config import DELIVERY_CHARGE, DELIVERY_THRESHOLD
from backend.utils.errors import PersistenceError, ValidationError

logger = logging.getLogger(__name__)

MONEY_QUANT = Decimal("0.01")
MANDATORY_ADDRESS_FIELDS = ("name", "phone", "line1", "pincode")


class ValidatedLineItem(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str = ""
    price: Decimal
    qty: int = Field(ge=1)


class ValidatedOrder(BaseModel):
    """Brouillon de commande validé: instantané figé des lignes, adresse et montants."""
    model_config = ConfigDict(frozen=True)

    items: List[ValidatedLineItem]
    address: Dict[str, Any]
    subtotal: Decimal
    delivery_charge: Decimal
    total: Decimal


# module backend.checkout.pricing
def to_money(value: Any) -> Optional[Decimal]:
    """
    Convertit une valeur (str|int|float|Decimal) en montant Decimal arrondi au centime.
    - Retourne None si la valeur est absente, non numérique, infinie ou négative.
    """
    if value is None or isinstance(value, bool):
        return None
    try:
        amount = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return None
    if not amount.is_finite() or amount < 0:
        return None
    return amount.quantize(MONEY_QUANT, rounding=ROUND_HALF_UP)

def coerce_quantity(value: Any) -> int:
    """Quantité entière >= 1; 1 par défaut si absente ou invalide ("2.7" -> 2)."""
    if isinstance(value, bool):
        return 1
    try:
        qty = int(float(str(value).strip()))
    except (TypeError, ValueError, OverflowError):
        return 1
    return qty if qty >= 1 else 1

def delivery_charge_for(subtotal: Decimal) -> Decimal:
    """Livraison offerte si subtotal >= DELIVERY_THRESHOLD, sinon forfait DELIVERY_CHARGE."""
    if subtotal >= Decimal(DELIVERY_THRESHOLD):
        return Decimal("0.00")
    return Decimal(DELIVERY_CHARGE).quantize(MONEY_QUANT)

def validate_address(address: Any) -> Dict[str, Any]:
    """
    Vérifie les champs obligatoires (name, phone, line1, pincode) et retourne l'instantané dict.
    Soulève ValidationError si l'un d'eux est absent ou vide.
    """
    if address is None:
        data: Dict[str, Any] = {}
    elif hasattr(address, "model_dump"):
        data = address.model_dump()
    else:
        data = dict(address)
    if any(not str(data.get(field) or "").strip() for field in MANDATORY_ADDRESS_FIELDS):
        raise ValidationError("Adresse incomplète")
    return data

def price_cart(
    items: Optional[Iterable[Any]],
    address: Any,
    price_lookup: Optional[Callable[[List[str]], Optional[Dict[str, Any]]]] = None,
) -> ValidatedOrder:
    """
    Valide un panier client et calcule les montants faisant foi.
    - items: lignes {id, name, price (annoncé), qty}; au moins une ligne.
    - address: adresse de livraison (champs obligatoires vérifiés avant toute lecture).
    - price_lookup: lecture batch {id: prix}; par défaut le catalogue Supabase.
    Soulève ValidationError si le panier est vide, l'adresse incomplète, ou si une ligne
    n'a ni prix catalogue ni prix annoncé exploitable; PersistenceError si le catalogue est illisible.
    """
    lines = list(items or [])
    if not lines:
        raise ValidationError("Panier vide")
    address_snapshot = validate_address(address)

    lookup = price_lookup or catalog_repository.get_prices_by_ids
    distinct_ids = list(dict.fromkeys(str(item.id) for item in lines))
    try:
        catalog_prices = lookup(distinct_ids)
    except Exception:
        logger.exception("checkout.pricing catalog lookup raised ids=%s", distinct_ids)
        catalog_prices = None
    if catalog_prices is None:
        # Catalogue illisible: jamais de repli sur les prix annoncés
        raise PersistenceError()

    validated: List[ValidatedLineItem] = []
    subtotal = Decimal("0.00")
    for item in lines:
        product_id = str(item.id)
        qty = coerce_quantity(item.qty)
        unit_price = to_money(catalog_prices.get(product_id))
        if unit_price is None:
            unit_price = to_money(item.price)
            if unit_price is None:
                raise ValidationError(f"Prix indisponible pour l'article {product_id}")
            # Produit absent du catalogue: prix annoncé par le client (faille de confiance connue)
            logger.warning("checkout.pricing catalog miss, claimed price used product_id=%s price=%s", product_id, unit_price)
        subtotal += unit_price * qty
        validated.append(ValidatedLineItem(id=product_id, name=item.name or "", price=unit_price, qty=qty))

    subtotal = subtotal.quantize(MONEY_QUANT)
    delivery = delivery_charge_for(subtotal)
    return ValidatedOrder(
        items=validated,
        address=address_snapshot,
        subtotal=subtotal,
        delivery_charge=delivery,
        total=subtotal + delivery,
    )
