# marketplace.config
from pathlib import Path
import os
from dotenv import load_dotenv

# Calculer le chemin du projet puis charger .env de manière explicite
BASE_DIR = Path(__file__).resolve().parent.parent
ENV_PATH = BASE_DIR / ".env"
load_dotenv(dotenv_path=ENV_PATH, override=False)

"""
Configuration centrale du service de checkout.

- Charge le fichier .env à la racine du projet (BASE_DIR/.env)
- Normalise et expose les secrets/URLs (Supabase, passerelle de paiement)
- Expose les règles de valorisation par défaut (livraison, frais plateforme)
- Expose les options de l'orchestration (mode d'allocation, réservation de stock)
"""

def _clean_env(v: str) -> str:
    """
    Nettoie une valeur d'environnement:
    - supprime les espaces et guillemets (simples, doubles) et backticks
    - retourne toujours une chaîne (jamais None)
    """
    return (v or "").strip().strip("'").strip('"').strip("`")

def _env_flag(name: str, default: str = "false") -> bool:
    return _clean_env(os.getenv(name, default)).lower() in ("1", "true", "yes")

def _env_float(name: str, default: float) -> float:
    raw = _clean_env(os.getenv(name) or "")
    try:
        return float(raw) if raw else default
    except ValueError:
        return default

# Supabase: URLs et clés (anon/service)
# - SUPABASE_URL peut parfois être sans schéma: on préfixe en https:// si nécessaire
SUPABASE_URL = _clean_env(os.getenv("SUPABASE_URL") or "")
SUPABASE_ANON = _clean_env(os.getenv("SUPABASE_ANON_KEY") or os.getenv("SUPABASE_KEY") or "")
SUPABASE_SERVICE_KEY = _clean_env(os.getenv("SUPABASE_SERVICE_KEY") or "")

if SUPABASE_URL and not SUPABASE_URL.startswith("http"):
    SUPABASE_URL = "https://" + SUPABASE_URL
if SUPABASE_URL.endswith("/"):
    SUPABASE_URL = SUPABASE_URL.rstrip("/")

# Tables et fonctions côté base
ORDERS_TABLE = os.getenv("ORDERS_TABLE", "seller_orders")
ADDRESSES_TABLE = os.getenv("ADDRESSES_TABLE", "addresses")
PRODUCTS_TABLE = os.getenv("PRODUCTS_TABLE", "products")

# Passerelle de paiement (API REST compatible Razorpay)
GATEWAY_KEY_ID = _clean_env(os.getenv("GATEWAY_KEY_ID") or os.getenv("RAZORPAY_KEY_ID") or "")
GATEWAY_KEY_SECRET = _clean_env(os.getenv("GATEWAY_KEY_SECRET") or os.getenv("RAZORPAY_KEY_SECRET") or "")
GATEWAY_API_URL = _clean_env(os.getenv("GATEWAY_API_URL") or "https://api.razorpay.com/v1").rstrip("/")
GATEWAY_CURRENCY = _clean_env(os.getenv("GATEWAY_CURRENCY") or "INR")
GATEWAY_TIMEOUT_SECONDS = _env_float("GATEWAY_TIMEOUT_SECONDS", 10.0)

# Règles de valorisation par défaut (collaborateur de valorisation)
FREE_SHIPPING_THRESHOLD = _env_float("FREE_SHIPPING_THRESHOLD", 499)
FLAT_SHIPPING_FEE = _env_float("FLAT_SHIPPING_FEE", 40)
PLATFORM_FEE = _env_float("PLATFORM_FEE", 15)

# Orchestration
# - independent: arrondi par vendeur et par composante (dérive bornée acceptée)
# - remainder_last: le reste d'arrondi est affecté au dernier vendeur (conservation exacte)
FEE_ALLOCATION_MODE = _clean_env(os.getenv("FEE_ALLOCATION_MODE") or "independent").lower()
STOCK_RESERVATION_ENABLED = _env_flag("STOCK_RESERVATION_ENABLED", "true")

# CORS / hôtes
CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]
ALLOWED_HOSTS = [h.strip() for h in os.getenv("ALLOWED_HOSTS", "localhost,127.0.0.1,testserver").split(",") if h.strip()]

COOKIE_SECURE = (os.getenv("COOKIE_SECURE", "false").lower() == "true")
