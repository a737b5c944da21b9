"""
Eccezioni del dominio, indipendenti dal livello HTTP.
"""
from typing import Optional


class ErroreDominio(Exception):
    """Base per tutti gli errori applicativi."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(ErroreDominio):
    """Input mancante o non valido; la richiesta viene rifiutata prima di qualsiasi scrittura."""

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field


class NotFound(ErroreDominio):
    pass


class UpstreamUnavailable(ErroreDominio):
    """Il foglio Google (o altro servizio esterno) non è raggiungibile."""
    pass
