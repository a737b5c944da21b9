"""
Codifica dello storico modifiche nella colonna storico_modifiche.

Lo storico è informativo e non autoritativo: un valore corrotto viene
trattato come storico vuoto invece di bloccare l'operazione.
"""
import json
import logging
from datetime import datetime, timezone
from typing import Iterable, List, Optional, Tuple

from pydantic import ValidationError as PydanticValidationError

from app.domain.models.storico import ModificaStorico

logger = logging.getLogger(__name__)


def format_date_it(momento: Optional[datetime] = None) -> str:
    """Data leggibile in formato italiano, es. 15/01/2024, 10:30:00."""
    momento = momento or datetime.now()
    return momento.strftime("%d/%m/%Y, %H:%M:%S")


def decode(raw: Optional[str]) -> List[ModificaStorico]:
    if not raw or not raw.strip():
        return []
    try:
        dati = json.loads(raw)
        if not isinstance(dati, list):
            raise ValueError("lo storico non è una lista")
        return [ModificaStorico.model_validate(voce) for voce in dati]
    except (ValueError, TypeError, PydanticValidationError) as e:
        logger.warning("Storico modifiche non leggibile, considerato vuoto: %s", e)
        return []


def encode(modifiche: Iterable[ModificaStorico]) -> str:
    return json.dumps([m.model_dump() for m in modifiche], ensure_ascii=False)


def _nuova_voce(campo: str, valore_precedente: Optional[str], valore_nuovo: Optional[str], modificato_da: Optional[str]) -> ModificaStorico:
    adesso = datetime.now(timezone.utc)
    return ModificaStorico(
        timestamp=adesso.isoformat(),
        campo=campo,
        valore_precedente="" if valore_precedente is None else str(valore_precedente),
        valore_nuovo="" if valore_nuovo is None else str(valore_nuovo),
        modificato_da=modificato_da or "",
        data_modifica=format_date_it(adesso.astimezone()),
    )


def append(
    raw: Optional[str],
    campo: str,
    valore_precedente: Optional[str],
    valore_nuovo: Optional[str],
    modificato_da: Optional[str],
) -> str:
    """Aggiunge una voce e restituisce il nuovo valore da salvare (non salva nulla)."""
    storico = decode(raw)
    storico.append(_nuova_voce(campo, valore_precedente, valore_nuovo, modificato_da))
    return encode(storico)


def append_many(
    raw: Optional[str],
    modifiche: Iterable[Tuple[str, Optional[str], Optional[str]]],
    modificato_da: Optional[str],
) -> str:
    """Come append, per più campi (campo, precedente, nuovo) con una sola codifica."""
    storico = decode(raw)
    for campo, precedente, nuovo in modifiche:
        storico.append(_nuova_voce(campo, precedente, nuovo, modificato_da))
    return encode(storico)
