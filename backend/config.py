# backend.config
from pathlib import Path
import os
from dotenv import load_dotenv

# Calculer le chemin du projet puis charger .env de manière explicite
BASE_DIR = Path(__file__).resolve().parent.parent
ENV_PATH = BASE_DIR / ".env"
load_dotenv(dotenv_path=ENV_PATH, override=True)

"""
Configuration centrale du backend.

- Charge le fichier .env à la racine du projet (BASE_DIR/.env)
- Normalise et expose les secrets/URLs (Supabase, Razorpay, SMTP)
- Expose les règles de tarification (seuil de livraison gratuite, frais fixes)
- Sécurité cookies, CORS/hosts
"""

def _clean_env(v: str) -> str:
    """
    Nettoie une valeur d'environnement:
    - supprime les espaces et guillemets (simples, doubles) et backticks
    - retourne toujours une chaîne (jamais None)
    """
    return (v or "").strip().strip("'").strip('"').strip("`")

def _int_env(name: str, default: int) -> int:
    """Lit un entier depuis l'environnement, retombe sur default si absent/invalide."""
    try:
        return int(_clean_env(os.getenv(name) or "") or default)
    except ValueError:
        return default

# Supabase: URLs et clés (public/anon/service)
# - SUPABASE_URL peut parfois être sans schéma: on préfixe en https:// si nécessaire
SUPABASE_URL = _clean_env(os.getenv("SUPABASE_URL") or os.getenv("NEXT_PUBLIC_SUPABASE_URL") or "")
SUPABASE_KEY = _clean_env(os.getenv("SUPABASE_KEY") or os.getenv("SUPABASE_ANON_KEY") or "")
SUPABASE_ANON = _clean_env(os.getenv("SUPABASE_ANON_KEY") or "")
SUPABASE_SERVICE_KEY = _clean_env(os.getenv("SUPABASE_SERVICE_KEY") or "")

if SUPABASE_URL and not SUPABASE_URL.startswith("http"):
    SUPABASE_URL = "https://" + SUPABASE_URL
if SUPABASE_URL.endswith("/"):
    SUPABASE_URL = SUPABASE_URL.rstrip("/")

# Cookies/ Sécurité
COOKIE_SECURE = (os.getenv("COOKIE_SECURE", "false").lower() == "true")
SESSION_SECRET_KEY = os.getenv("SESSION_SECRET_KEY", "replace_me_with_a_long_random_secret")

# CORS (dev)
CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]
ALLOWED_HOSTS = [h.strip() for h in os.getenv("ALLOWED_HOSTS", "localhost,127.0.0.1,testserver").split(",") if h.strip()]

# Razorpay: key_id partageable avec le front, key_secret jamais exposé
RAZORPAY_KEY_ID = _clean_env(os.getenv("RAZORPAY_KEY_ID") or "")
RAZORPAY_KEY_SECRET = _clean_env(os.getenv("RAZORPAY_KEY_SECRET") or "")
RAZORPAY_CURRENCY = _clean_env(os.getenv("RAZORPAY_CURRENCY") or "INR")
RAZORPAY_TIMEOUT_SECONDS = _int_env("RAZORPAY_TIMEOUT_SECONDS", 10)
RECEIPT_PREFIX = _clean_env(os.getenv("RECEIPT_PREFIX") or "aeon")

# Livraison: gratuite à partir de ₹999, sinon forfait ₹99
DELIVERY_THRESHOLD = _int_env("DELIVERY_THRESHOLD", 999)
DELIVERY_CHARGE = _int_env("DELIVERY_CHARGE", 99)

# SMTP (Gmail App Password, Brevo, Mailgun...)
SMTP_HOST = _clean_env(os.getenv("SMTP_HOST") or "smtp.gmail.com")
SMTP_PORT = _int_env("SMTP_PORT", 587)
SMTP_SECURE = (os.getenv("SMTP_SECURE", "false").lower() == "true")
SMTP_USER = _clean_env(os.getenv("SMTP_USER") or "")
SMTP_PASS = _clean_env(os.getenv("SMTP_PASS") or "")
SMTP_FROM = _clean_env(os.getenv("SMTP_FROM") or "") or f"AEON Jewellery <{SMTP_USER}>"
ADMIN_EMAIL_NOTIFY = _clean_env(os.getenv("ADMIN_EMAIL_NOTIFY") or "") or SMTP_USER

APP_URL = _clean_env(os.getenv("APP_URL") or "http://localhost:8000").rstrip("/")
