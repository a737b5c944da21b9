"""
Utilità per una gestione coerente degli errori nei controller.
"""
from fastapi import HTTPException, status
from typing import Optional
import logging

from app.config.settings import is_development
from app.domain.exceptions import ErroreDominio, NotFound, UpstreamUnavailable, ValidationError

logger = logging.getLogger(__name__)


def handle_error(
    error: Exception,
    operation: str,
    default_message: str = "Errore interno del server",
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
    log_error: bool = True
) -> HTTPException:
    """
    Gestisce un errore imprevisto e restituisce l'HTTPException da sollevare.

    Il dettaglio tecnico viene esposto solo in sviluppo.

    Args:
        error: eccezione catturata
        operation: descrizione dell'operazione fallita
        default_message: messaggio mostrato all'utente
        status_code: codice HTTP
        log_error: se registrare l'errore nei log
    """
    if log_error:
        logger.error(f"Errore in {operation}: {str(error)}", exc_info=True)

    detail = f"{default_message}: {error}" if is_development() and str(error) else default_message
    return HTTPException(status_code=status_code, detail=detail)


def handle_validation_error(
    message: str,
    field: Optional[str] = None
) -> HTTPException:
    """
    Gestisce errori di validazione.

    Returns:
        HTTPException con codice 400
    """
    detail = f"Errore di validazione in {field}: {message}" if field else message
    return HTTPException(
        status_code=status.HTTP_400_BAD_REQUEST,
        detail=detail
    )


def handle_domain_error(error: ErroreDominio, operation: str) -> HTTPException:
    """
    Converte le eccezioni di dominio nel codice HTTP corrispondente.

    - ValidationError -> 400
    - NotFound -> 404
    - UpstreamUnavailable -> 503 (riprovabile)
    """
    if isinstance(error, ValidationError):
        return handle_validation_error(error.message, error.field)
    if isinstance(error, NotFound):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=error.message)
    if isinstance(error, UpstreamUnavailable):
        logger.error(f"Servizio esterno non disponibile in {operation}: {error.message}")
        return HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Servizio dati temporaneamente non disponibile, riprova",
        )
    return handle_error(error, operation)
