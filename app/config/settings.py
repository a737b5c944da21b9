import json
import os
from functools import lru_cache
from dotenv import load_dotenv

# Carica variabili da .env se esiste
load_dotenv()

# Valori di default sicuri per lo sviluppo (evitano errori all'import)
DEFAULT_TXT_DIR = os.getenv("DEFAULT_TXT_FILES_DIR", "./txt-files")
DEFAULT_FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:3000")
DEFAULT_JWT_SECRET = os.getenv("JWT_SECRET", "dev-secret-change-this")
DEFAULT_JWT_EXPIRES = int(os.getenv("JWT_EXPIRES_SECONDS", str(24 * 3600)))
DEFAULT_PORT = int(os.getenv("PORT", "3001"))


def _get_first_env(keys: list[str], default: str) -> str:
    """Restituisce il primo valore definito tra più chiavi d'ambiente."""
    for k in keys:
        v = os.getenv(k)
        if v:
            return v
    return default


def _as_bool(value: str) -> bool:
    return str(value).strip().lower() in ("1", "true", "yes", "si", "on")


@lru_cache()
def get_app_env() -> str:
    return _get_first_env(["APP_ENV", "NODE_ENV"], "production")


def is_development() -> bool:
    return get_app_env().lower() == "development"


@lru_cache()
def get_port() -> int:
    try:
        return int(_get_first_env(["PORT"], str(DEFAULT_PORT)))
    except Exception:
        return DEFAULT_PORT


@lru_cache()
def get_frontend_urls() -> list[str]:
    """Origini CORS ammesse, separate da virgola.

    Variabili accettate:
    - FRONTEND_URLS (lista)
    - FRONTEND_URL (singola origine, compatibilità)
    """
    raw = _get_first_env(["FRONTEND_URLS", "FRONTEND_URL"], DEFAULT_FRONTEND_URL)
    return [o.strip() for o in raw.split(",") if o.strip()]


# Google Sheets
@lru_cache()
def get_google_sheet_id() -> str:
    return _get_first_env([
        "GOOGLE_SHEET_ID",
        "SPREADSHEET_ID",
    ], "")


@lru_cache()
def get_google_credentials_info() -> dict:
    """Credenziali del service account come dizionario.

    Accetta JSON inline (GOOGLE_APPLICATION_CREDENTIALS_JSON) oppure il
    percorso di un file (GOOGLE_APPLICATION_CREDENTIALS).
    """
    raw = _get_first_env(["GOOGLE_APPLICATION_CREDENTIALS_JSON"], "")
    if raw:
        try:
            return json.loads(raw)
        except ValueError:
            return {}
    path = _get_first_env(["GOOGLE_APPLICATION_CREDENTIALS"], "")
    if path and os.path.exists(path):
        with open(path, encoding="utf-8") as fh:
            return json.load(fh)
    return {}


@lru_cache()
def get_sheet_fatture() -> str:
    return _get_first_env(["SHEET_FATTURE"], "Fatture")


@lru_cache()
def get_sheet_movimentazioni() -> str:
    return _get_first_env(["SHEET_MOVIMENTAZIONI"], "Movimentazioni")


@lru_cache()
def get_sheet_negozi() -> str:
    return _get_first_env(["SHEET_NEGOZI"], "Negozi")


# File TXT
@lru_cache()
def get_txt_files_dir() -> str:
    return _get_first_env([
        "TXT_FILES_DIR",
        "TXT_DIR",
    ], DEFAULT_TXT_DIR)


# Parser DDT
@lru_cache()
def get_ddt_strict_quantity() -> bool:
    """Se attivo, le righe con pipe e quantità non numerica vengono scartate."""
    return _as_bool(_get_first_env(["DDT_STRICT_QUANTITY"], "false"))


# Auth
@lru_cache()
def get_jwt_secret() -> str:
    return _get_first_env([
        "JWT_SECRET",
    ], DEFAULT_JWT_SECRET)


@lru_cache()
def get_jwt_expires_seconds() -> int:
    try:
        return int(_get_first_env([
            "JWT_EXPIRES_SECONDS",
        ], str(DEFAULT_JWT_EXPIRES)))
    except Exception:
        return DEFAULT_JWT_EXPIRES


@lru_cache()
def get_utenti_json() -> str:
    return _get_first_env(["UTENTI_JSON"], "[]")


@lru_cache()
def get_negozi_json() -> str:
    return _get_first_env(["NEGOZI_JSON"], "")


# Notifiche SMTP
@lru_cache()
def get_notifier_smtp_host() -> str:
    return _get_first_env(["NOTIFIER_SMTP_HOST", "SMTP_HOST"], "")


@lru_cache()
def get_notifier_smtp_port() -> int:
    try:
        return int(_get_first_env(["NOTIFIER_SMTP_PORT", "SMTP_PORT"], "587"))
    except Exception:
        return 587


@lru_cache()
def get_notifier_smtp_user() -> str:
    return _get_first_env(["NOTIFIER_SMTP_USER", "SMTP_USER"], "")


@lru_cache()
def get_notifier_smtp_password() -> str:
    return _get_first_env(["NOTIFIER_SMTP_PASSWORD", "SMTP_PASSWORD"], "")


@lru_cache()
def get_notifier_smtp_from() -> str:
    return _get_first_env(["NOTIFIER_SMTP_FROM", "SMTP_FROM"], "")


@lru_cache()
def get_notifier_smtp_starttls() -> bool:
    return _as_bool(_get_first_env(["NOTIFIER_SMTP_STARTTLS"], "true"))


@lru_cache()
def get_notifier_destinatari() -> list[str]:
    raw = _get_first_env(["NOTIFIER_DESTINATARI", "NOTIFIER_TO"], "")
    return [d.strip() for d in raw.split(",") if d.strip()]
