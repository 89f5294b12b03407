"""
Notifications email des commandes (confirmation client + alerte admin).

- Rendu HTML via Jinja2 (templates/ à côté de ce module), envoi via aiosmtplib.
- Best-effort: envoi ignoré si SMTP non configuré ou sans destinataire.
- dispatch_order_notifications ne lève jamais: l'état de la commande fait foi, pas l'email.
"""
from decimal import Decimal, InvalidOperation
from email.message import EmailMessage
from pathlib import Path
from typing import Any, Dict, List
import logging

import aiosmtplib
from jinja2 import Environment, FileSystemLoader, select_autoescape

from backend import config

logger = logging.getLogger(__name__)

TEMPLATES_DIR = Path(__file__).resolve().parent / "templates"
SMTP_TIMEOUT_SECONDS = 15


def _to_decimal(value: Any) -> Decimal:
    try:
        return Decimal(str(value if value is not None else 0))
    except (InvalidOperation, ValueError):
        return Decimal("0")

def format_inr(amount: Any) -> str:
    """Formate un montant à l'indienne: 150000 -> '1,50,000', 1000.5 -> '1,000.50'."""
    value = _to_decimal(amount).quantize(Decimal("0.01"))
    sign = "-" if value < 0 else ""
    whole, _, frac = f"{abs(value):.2f}".partition(".")
    if len(whole) > 3:
        head, tail = whole[:-3], whole[-3:]
        groups: List[str] = []
        while len(head) > 2:
            groups.insert(0, head[-2:])
            head = head[:-2]
        if head:
            groups.insert(0, head)
        whole = ",".join(groups + [tail])
    return f"{sign}{whole}" if frac == "00" else f"{sign}{whole}.{frac}"

_env = Environment(
    loader=FileSystemLoader(str(TEMPLATES_DIR)),
    autoescape=select_autoescape(["html"]),
)
_env.filters["inr"] = format_inr

def short_order_id(order: Dict[str, Any]) -> str:
    return str(order.get("id") or "")[:8].upper()

def is_configured() -> bool:
    return bool(config.SMTP_USER and config.SMTP_PASS)

def _template_context(order: Dict[str, Any]) -> Dict[str, Any]:
    items = []
    for item in order.get("items") or []:
        qty = int(item.get("qty") or 1)
        items.append({**item, "qty": qty, "line_total": _to_decimal(item.get("price")) * qty})
    return {
        "order": order,
        "items": items,
        "address": order.get("address") or {},
        "short_id": short_order_id(order),
        "free_delivery": _to_decimal(order.get("delivery_charge")) == 0,
        "admin_url": f"{config.APP_URL}/admin",
    }

def render_order_confirmation(order: Dict[str, Any]) -> str:
    return _env.get_template("order_confirmation.html").render(**_template_context(order))

def render_admin_order_alert(order: Dict[str, Any]) -> str:
    return _env.get_template("admin_order_alert.html").render(**_template_context(order))

async def _send(to: str, subject: str, html: str) -> None:
    message = EmailMessage()
    message["From"] = config.SMTP_FROM
    message["To"] = to
    message["Subject"] = subject
    message.set_content("Votre client mail ne supporte pas le HTML.")
    message.add_alternative(html, subtype="html")
    await aiosmtplib.send(
        message,
        hostname=config.SMTP_HOST,
        port=config.SMTP_PORT,
        username=config.SMTP_USER,
        password=config.SMTP_PASS,
        use_tls=config.SMTP_SECURE,
        start_tls=not config.SMTP_SECURE,
        timeout=SMTP_TIMEOUT_SECONDS,
    )

# module backend.notifications.mailer
async def send_order_confirmation(order: Dict[str, Any]) -> bool:
    """
    Envoie la confirmation au client (address.email, sinon guest_email).
    Retour: True si un email a été envoyé, False si ignoré (SMTP absent / pas de destinataire).
    """
    if not is_configured():
        logger.debug("notifications.confirmation skipped (SMTP non configuré) order_id=%s", order.get("id"))
        return False
    to = (order.get("address") or {}).get("email") or order.get("guest_email")
    if not to:
        logger.debug("notifications.confirmation skipped (pas de destinataire) order_id=%s", order.get("id"))
        return False
    subject = f"Order Confirmed – #{short_order_id(order)} | AEON Jewellery"
    await _send(to, subject, render_order_confirmation(order))
    logger.info("notifications.confirmation sent order_id=%s", order.get("id"))
    return True

async def send_admin_order_alert(order: Dict[str, Any]) -> bool:
    """Envoie l'alerte « nouvelle commande » à ADMIN_EMAIL_NOTIFY (ou SMTP_USER)."""
    if not is_configured() or not config.ADMIN_EMAIL_NOTIFY:
        logger.debug("notifications.admin_alert skipped order_id=%s", order.get("id"))
        return False
    subject = f"New Order #{short_order_id(order)} – ₹{format_inr(order.get('total'))}"
    await _send(config.ADMIN_EMAIL_NOTIFY, subject, render_admin_order_alert(order))
    logger.info("notifications.admin_alert sent order_id=%s", order.get("id"))
    return True

async def dispatch_order_notifications(order: Dict[str, Any]) -> None:
    """
    Puits d'erreurs non propagateur: envoie confirmation + alerte admin,
    logge chaque échec et ne lève jamais (n'annule jamais le statut 'paid').
    """
    senders = (
        ("confirmation", send_order_confirmation),
        ("admin_alert", send_admin_order_alert),
    )
    for name, send in senders:
        try:
            await send(order)
        except Exception:
            logger.warning("notifications.%s failed order_id=%s", name, order.get("id"), exc_info=True)
