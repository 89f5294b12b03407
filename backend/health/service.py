from urllib.parse import urlparse
import socket

from backend import config
import backend.infra.supabase_client as supabase_client
from backend.payments import razorpay_client
from backend.notifications import mailer

HEALTH_TABLES = ("products", "orders", "coupons")


def _check_table(client, name: str):
    try:
        res = client.table(name).select("id").limit(1).execute()
        cnt = len(res.data or [])
        return {"ok": True, "rows": cnt}
    except Exception as e:
        return {"ok": False, "error": str(e)}

def health_supabase_info():
    effective_url = config.SUPABASE_URL
    parsed = urlparse(effective_url) if effective_url else None
    hostname = parsed.hostname if parsed else None
    dns_ok = None
    dns_error = None
    if hostname:
        try:
            socket.getaddrinfo(hostname, 443)
            dns_ok = True
        except Exception as e:
            dns_ok = False
            dns_error = str(e)

    info = {
        "supabase_url": effective_url,
        "hostname": hostname,
        "dns_ok": dns_ok,
        "dns_error": dns_error,
        "connect_ok": False,
        "error": None,
        "tables": {},
    }
    try:
        client = supabase_client.get_supabase()
        for t in HEALTH_TABLES:
            info["tables"][t] = _check_table(client, t)
        info["connect_ok"] = True
    except Exception as e:
        info["error"] = str(e)
    return info

def health_payments_info():
    """Configuration effective (jamais les secrets): Razorpay et SMTP."""
    return {
        "razorpay": {
            "configured": razorpay_client.is_configured(),
            "key_id": razorpay_client.public_key_id() or None,
            "currency": config.RAZORPAY_CURRENCY,
        },
        "smtp": {
            "configured": mailer.is_configured(),
            "host": config.SMTP_HOST,
            "port": config.SMTP_PORT,
        },
        "delivery": {
            "threshold": config.DELIVERY_THRESHOLD,
            "charge": config.DELIVERY_CHARGE,
        },
    }
