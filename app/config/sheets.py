from functools import lru_cache
import logging
import threading

from google.oauth2 import service_account
from googleapiclient.discovery import build

from app.config.settings import (
    get_google_credentials_info,
    get_google_sheet_id,
    get_negozi_json,
    get_sheet_fatture,
    get_sheet_movimentazioni,
    get_sheet_negozi,
    get_txt_files_dir,
)
from app.domain.exceptions import UpstreamUnavailable
from app.infrastructure.directory_locale import DirectoryLocale
from app.infrastructure.foglio_google import FoglioGoogle
from app.services.negozi import DirectoryNegozi

logger = logging.getLogger("sheets")

SCOPES = ["https://www.googleapis.com/auth/spreadsheets"]

# Il trasporto HTTP del client non è thread-safe: un client per thread
_locale = threading.local()


@lru_cache()
def get_google_credentials():
    """Credenziali del service account, condivise da tutti i thread."""
    info = dict(get_google_credentials_info())
    if not info.get("private_key"):
        raise UpstreamUnavailable("Credenziali Google mancanti")
    # Le chiavi passate via variabile d'ambiente arrivano spesso con \n letterali
    info["private_key"] = info["private_key"].replace("\\n", "\n")
    return service_account.Credentials.from_service_account_info(info, scopes=SCOPES)


def get_sheets_service():
    """Client Google Sheets v4 del thread corrente."""
    service = getattr(_locale, "service", None)
    if service is None:
        service = build("sheets", "v4", credentials=get_google_credentials(), cache_discovery=False)
        _locale.service = service
    return service


def get_fatture_store() -> FoglioGoogle:
    """Dependency per il foglio delle fatture"""
    return FoglioGoogle(get_sheets_service, get_google_sheet_id(), get_sheet_fatture())


def get_movimenti_store() -> FoglioGoogle:
    """Dependency per il foglio delle movimentazioni"""
    return FoglioGoogle(get_sheets_service, get_google_sheet_id(), get_sheet_movimentazioni())


@lru_cache()
def get_negozi_directory() -> DirectoryNegozi:
    """Anagrafica negozi: da NEGOZI_JSON se definita, altrimenti dal foglio Negozi."""
    raw = get_negozi_json()
    if raw:
        return DirectoryNegozi.from_json(raw)
    foglio = FoglioGoogle(get_sheets_service, get_google_sheet_id(), get_sheet_negozi())
    negozi = DirectoryNegozi.from_rows(foglio.get_rows())
    logger.info("Caricati %d negozi dal foglio %s", len(negozi), get_sheet_negozi())
    return negozi


def get_directory_txt() -> DirectoryLocale:
    return DirectoryLocale(get_txt_files_dir())


def init_google_services() -> bool:
    """Verifica all'avvio che il client Sheets sia configurabile; non interrompe l'avvio."""
    try:
        get_sheets_service()
        logger.info("Google Sheets: pronto (foglio %s)", get_google_sheet_id() or "non configurato")
        return True
    except Exception as e:
        logger.warning("Google Sheets non inizializzato: %s", e)
        return False
