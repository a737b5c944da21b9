import json
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field


class RigaErrore(BaseModel):
    """Discrepanza su una singola riga del DDT (ordinato vs ricevuto)."""
    riga: int
    codice: str = ""
    prodotto: str = ""
    unita_misura: str = ""
    quantita_ordinata: Optional[float] = None
    quantita_ricevuta: Optional[float] = None
    motivo: str = ""


class RigaSegnalata(RigaErrore):
    """Riga inviata dal frontend; solo quelle con modificato=True finiscono nella segnalazione."""
    modificato: bool = False


class ErroriConsegna(BaseModel):
    """Segnalazione strutturata salvata nella colonna errori_consegna."""
    timestamp: str
    data_consegna: str
    utente: str
    righe_con_errori: List[RigaErrore] = Field(default_factory=list)
    note_aggiuntive: str = ""
    righe_modificate: int = 0
    righe_totali: int = 0

    def serializza(self) -> str:
        return self.model_dump_json()

    @classmethod
    def deserializza(cls, raw: Optional[str]) -> Optional["ErroriConsegna"]:
        """None se la colonna è vuota o non contiene una segnalazione valida."""
        if not raw or not raw.strip():
            return None
        try:
            return cls.model_validate_json(raw)
        except ValueError:
            return None


class TipoErrore(str, Enum):
    NESSUNO = "nessuno"
    STRUTTURATO = "strutturato"
    NOTA = "nota"
    CONVERSIONE = "conversione"


@dataclass(frozen=True)
class StatoErrori:
    """Stato di errore unico risolto dai tre canali storici.

    Priorità: segnalazione strutturata, poi nota libera, poi errori di
    conversione. Le tre colonne restano scritte e lette così come sono.
    """
    tipo: TipoErrore
    dettaglio: str = ""

    @property
    def ha_errori(self) -> bool:
        return self.tipo is not TipoErrore.NESSUNO

    @classmethod
    def da_campi(cls, errori_consegna: Optional[str], note: Optional[str], item_noconv: Optional[str]) -> "StatoErrori":
        if errori_consegna and errori_consegna.strip():
            return cls(TipoErrore.STRUTTURATO, errori_consegna.strip())
        if note and note.strip():
            return cls(TipoErrore.NOTA, note.strip())
        if item_noconv and item_noconv.strip():
            return cls(TipoErrore.CONVERSIONE, item_noconv.strip())
        return cls(TipoErrore.NESSUNO)


def should_have_error_suffix(note: Optional[str], item_noconv: Optional[str], errori_consegna: Optional[str]) -> bool:
    return StatoErrori.da_campi(errori_consegna, note, item_noconv).ha_errori


def errori_consegna_as_dict(raw: Optional[str]) -> Optional[dict]:
    """Per le risposte API: la segnalazione decodificata, o il testo grezzo se non è JSON valido."""
    if not raw or not raw.strip():
        return None
    try:
        valore = json.loads(raw)
        return valore if isinstance(valore, dict) else {"testo": raw}
    except ValueError:
        return {"testo": raw}
