from pydantic import BaseModel, Field
from typing import Optional, Any, Dict

from app.domain.constants import COLONNE_FATTURE, STATO_CONSEGNATO, STATO_PENDING, STATI_CONSEGNATO_LEGACY
from app.domain.models.errori import StatoErrori


def normalizza_stato(valore: Optional[str]) -> str:
    """Riporta i valori storici della colonna stato ai due stati ammessi."""
    if (valore or "").strip() in STATI_CONSEGNATO_LEGACY:
        return STATO_CONSEGNATO
    return STATO_PENDING


class Fattura(BaseModel):
    """Riga tipizzata del foglio fatture.

    Tutte le colonne arrivano come stringhe dal foglio; la conversione
    avviene qui e non nella logica di business.
    """
    id: str
    numero: str = ""
    fornitore: str = ""
    data_emissione: str = ""
    punto_vendita: str = ""
    codice_fornitore: str = ""
    stato: str = STATO_PENDING
    data_consegna: str = ""
    confermato_da: str = ""
    txt: str = ""
    testo_ddt: str = ""
    note: str = ""
    item_noconv: str = ""
    errori_consegna: str = ""
    storico_modifiche: str = ""
    totale: str = ""

    @classmethod
    def from_row(cls, riga) -> "Fattura":
        valori = {}
        for col in COLONNE_FATTURE:
            valore = riga.get(col) or ""
            # I testi multi-riga vanno conservati così come sono
            valori[col] = valore if col in ("txt", "testo_ddt") else valore.strip()
        valori["stato"] = normalizza_stato(valori.get("stato"))
        return cls(**valori)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Fattura":
        valori = {col: "" if data.get(col) is None else str(data.get(col)) for col in COLONNE_FATTURE}
        valori["stato"] = normalizza_stato(valori.get("stato"))
        return cls(**valori)

    @property
    def consegnata(self) -> bool:
        return self.stato == STATO_CONSEGNATO

    @property
    def stato_errori(self) -> StatoErrori:
        return StatoErrori.da_campi(
            errori_consegna=self.errori_consegna,
            note=self.note,
            item_noconv=self.item_noconv,
        )

    @property
    def ha_errori(self) -> bool:
        return self.stato_errori.ha_errori


class FatturaOut(BaseModel):
    id: str
    numero: str
    fornitore: str
    data_emissione: str
    punto_vendita: str
    codice_fornitore: str
    stato: str
    consegnata: bool
    data_consegna: Optional[str] = None
    confermato_da: Optional[str] = None
    testo_ddt: str = ""
    note: str = ""
    item_noconv: str = ""
    errori_consegna: Optional[Dict[str, Any]] = None
    ha_errori: bool = False
    stato_errori: str = Field("nessuno", description="strutturato | nota | conversione | nessuno")
    totale: str = ""
    numero_modifiche: int = 0
