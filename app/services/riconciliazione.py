"""
Servizio di aggiornamento delle fatture.

Ciclo di vita: pending -> consegnato (conferma o segnalazione errori);
una fattura consegnata resta consegnata e ogni modifica successiva viene
registrata nello storico modifiche.
"""
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from app.domain.constants import CAMPI_MODIFICABILI, STATO_CONSEGNATO, STATO_PENDING
from app.domain.exceptions import ValidationError
from app.domain.models.fattura import Fattura, normalizza_stato
from app.services import storico_modifiche
from app.services.file_txt import EsitoGenerazione, GestoreFileTxt
from app.utils.date_helpers import validate_data_consegna

logger = logging.getLogger(__name__)


@dataclass
class EsitoAggiornamento:
    fattura: Fattura
    modifiche: List[Tuple[str, str, str]] = field(default_factory=list)
    diventata_consegnata: bool = False
    file_txt: Optional[EsitoGenerazione] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.fattura.id,
            "stato": self.fattura.stato,
            "modifiche_registrate": len(self.modifiche),
            "campi_modificati": [m[0] for m in self.modifiche],
            "diventata_consegnata": self.diventata_consegnata,
            "file_txt": self.file_txt.to_dict() if self.file_txt else None,
        }


def _valore(valore: Any) -> str:
    return "" if valore is None else str(valore)


def calcola_modifiche(riga, updates: Dict[str, Any]) -> List[Tuple[str, str, str]]:
    """(campo, precedente, nuovo) per ogni campo il cui valore cambia davvero."""
    modifiche = []
    for campo, nuovo in updates.items():
        precedente = riga.get(campo)
        if campo == "stato":
            precedente = normalizza_stato(precedente)
        nuovo_str = _valore(nuovo)
        if precedente != nuovo_str:
            modifiche.append((campo, precedente, nuovo_str))
    return modifiche


class ServizioRiconciliazione:
    def __init__(self, repo_fatture, gestore_txt: GestoreFileTxt):
        self.repo_fatture = repo_fatture
        self.gestore_txt = gestore_txt

    def _valida_updates(self, updates: Dict[str, Any], stato_attuale: str) -> Dict[str, Any]:
        if not updates:
            raise ValidationError("Nessun campo da aggiornare", "updates")
        non_ammessi = sorted(set(updates) - CAMPI_MODIFICABILI)
        if non_ammessi:
            raise ValidationError(f"Campi non modificabili: {', '.join(non_ammessi)}", non_ammessi[0])

        pulito = {campo: _valore(valore) for campo, valore in updates.items()}
        if "stato" in pulito:
            if pulito["stato"] not in (STATO_PENDING, STATO_CONSEGNATO):
                raise ValidationError("Stato non valido", "stato")
            if stato_attuale == STATO_CONSEGNATO and pulito["stato"] == STATO_PENDING:
                raise ValidationError("Una fattura consegnata non può tornare in attesa", "stato")
        if pulito.get("data_consegna"):
            pulito["data_consegna"] = validate_data_consegna(pulito["data_consegna"])
        return pulito

    def rigenera_file(self, fattura: Fattura, is_modification: bool) -> Optional[EsitoGenerazione]:
        """Generazione best-effort: un errore viene registrato e non propagato."""
        try:
            return self.gestore_txt.genera(fattura, is_modification=is_modification)
        except Exception as e:
            logger.error("Errore generazione file TXT per fattura %s: %s", fattura.id, e, exc_info=True)
            return None

    def update(self, id_fattura: str, updates: Dict[str, Any], actor_email: Optional[str]) -> EsitoAggiornamento:
        """
        Aggiorna i campi di una fattura.

        Se la fattura è già consegnata, ogni campo che cambia valore produce
        una voce nello storico modifiche. Dopo il salvataggio, se la fattura
        è consegnata e qualcosa è cambiato, il file TXT viene rigenerato.
        """
        riga = self.repo_fatture.get_riga(id_fattura)
        precedente = Fattura.from_row(riga)
        pulito = self._valida_updates(updates, precedente.stato)

        modifiche: List[Tuple[str, str, str]] = []
        if precedente.consegnata:
            modifiche = calcola_modifiche(riga, pulito)
            if modifiche:
                riga.set(
                    "storico_modifiche",
                    storico_modifiche.append_many(riga.get("storico_modifiche"), modifiche, actor_email),
                )

        for campo, valore in pulito.items():
            riga.set(campo, valore)
        riga.save()

        attuale = Fattura.from_row(riga)
        diventata = attuale.consegnata and not precedente.consegnata
        esito = EsitoAggiornamento(fattura=attuale, modifiche=modifiche, diventata_consegnata=diventata)
        if modifiche:
            logger.info("Fattura %s: registrate %d modifiche da %s", attuale.id, len(modifiche), actor_email)

        if attuale.consegnata and (diventata or modifiche):
            esito.file_txt = self.rigenera_file(attuale, is_modification=not diventata)
        return esito

    def confirm(
        self,
        id_fattura: str,
        data_consegna: str,
        email: str,
        note: Optional[str] = None,
    ) -> EsitoAggiornamento:
        if not id_fattura or not str(id_fattura).strip():
            raise ValidationError("ID fattura obbligatorio", "id")
        updates: Dict[str, Any] = {
            "stato": STATO_CONSEGNATO,
            "data_consegna": validate_data_consegna(data_consegna),
            "confermato_da": email,
        }
        if note and note.strip():
            updates["note"] = note.strip()
        return self.update(id_fattura, updates, email)
