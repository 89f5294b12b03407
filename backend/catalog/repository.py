"""
Accès en lecture au catalogue (table 'products').
Source de vérité des prix: le panier client n'est jamais cru sur parole.
"""
from typing import Any, Dict, Iterable, List, Optional
import logging
import backend.infra.supabase_client as supabase_client

logger = logging.getLogger(__name__)

# module backend.catalog.repository
def fetch_products_by_ids(ids: List[str]) -> Optional[List[dict]]:
    """
    Récupère les produits (id, price) par leurs IDs en une seule requête.
    - [] si ids vide, None si la lecture échoue (ex: id non UUID rejeté par PostgREST, base indisponible).
    """
    if not ids:
        return []
    try:
        res = (
            supabase_client.get_supabase()
            .table("products")
            .select("id, price")
            .in_("id", [str(i) for i in ids])
            .execute()
        )
        return res.data or []
    except Exception:
        logger.exception("catalog.repository.fetch_products_by_ids failed ids=%s", ids)
        return None

def get_prices_by_ids(ids: Iterable[str]) -> Optional[Dict[str, Any]]:
    """
    Retourne {product_id: price} pour les IDs distincts demandés.
    Les produits introuvables sont absents du dict; None si le catalogue n'a pas pu être lu.
    """
    distinct = list(dict.fromkeys(str(i) for i in ids if i))
    products = fetch_products_by_ids(distinct)
    if products is None:
        return None
    return {
        str(p.get("id")): p.get("price")
        for p in products
        if p.get("id") is not None and p.get("price") is not None
    }
