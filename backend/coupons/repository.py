"""
Accès aux données 'coupons' (lecture seule).
Le filtre actif/insensible à la casse est fait en base; expiration et quota sont vérifiés en Python.
"""
from datetime import datetime, timezone
from typing import Any, Dict, Optional
import logging
import backend.infra.supabase_client as supabase_client

logger = logging.getLogger(__name__)

COUPONS_TABLE = "coupons"


def _parse_ts(value: Any) -> Optional[datetime]:
    if not value:
        return None
    if isinstance(value, datetime):
        ts = value
    else:
        try:
            ts = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
        except ValueError:
            return None
    return ts if ts.tzinfo else ts.replace(tzinfo=timezone.utc)

def is_usable(coupon: Dict[str, Any], now: Optional[datetime] = None) -> bool:
    """Actif, non expiré, quota non atteint."""
    if not coupon.get("active"):
        return False
    now = now or datetime.now(timezone.utc)
    expires_at = _parse_ts(coupon.get("expires_at"))
    if expires_at is not None and expires_at <= now:
        return False
    max_uses = coupon.get("max_uses")
    if max_uses is not None and int(coupon.get("uses_count") or 0) >= int(max_uses):
        return False
    return True

def find_active_coupon(code: str) -> Optional[dict]:
    """Coupon utilisable pour ce code (comparaison insensible à la casse), None sinon."""
    if not code:
        return None
    try:
        res = (
            supabase_client.get_supabase()
            .table(COUPONS_TABLE)
            .select("*")
            .ilike("code", code)
            .eq("active", True)
            .execute()
        )
        rows = res.data or []
    except Exception:
        logger.exception("coupons.repository.find_active_coupon failed code=%s", code)
        return None
    for row in rows:
        if str(row.get("code") or "").upper() == code.upper() and is_usable(row):
            return row
    return None
