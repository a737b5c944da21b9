"""
Segnalazione di errori di consegna rispetto alle righe del DDT.
"""
import logging
import math
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Sequence

from app.domain.constants import STATO_CONSEGNATO
from app.domain.exceptions import ValidationError
from app.domain.models.errori import ErroriConsegna, RigaErrore, RigaSegnalata
from app.domain.models.fattura import Fattura
from app.services import storico_modifiche
from app.services.notificatore_errori import NotificaErrore, NotificatoreErrori, render_notifica
from app.services.parser_ddt import parse_ddt
from app.services.riconciliazione import ServizioRiconciliazione, calcola_modifiche
from app.utils.date_helpers import validate_data_consegna

logger = logging.getLogger(__name__)


def _esegui_subito(funzione: Callable[..., Any], *args: Any) -> None:
    funzione(*args)


def completa_da_ddt(righe: Sequence[RigaSegnalata], testo_ddt: Optional[str]) -> List[RigaErrore]:
    """
    Converte le righe segnalate in RigaErrore, completando codice, prodotto,
    unità e quantità ordinata dalla riga del DDT con lo stesso numero.
    """
    per_numero = {r.numero_riga: r for r in parse_ddt(testo_ddt)}
    risultato = []
    for segnalata in righe:
        dati = segnalata.model_dump(exclude={"modificato"})
        origine = per_numero.get(segnalata.riga)
        if origine is not None:
            dati["codice"] = dati["codice"] or origine.codice
            dati["prodotto"] = dati["prodotto"] or origine.prodotto
            dati["unita_misura"] = dati["unita_misura"] or origine.unita_misura
            if dati["quantita_ordinata"] is None and not math.isnan(origine.quantita):
                dati["quantita_ordinata"] = origine.quantita
        risultato.append(RigaErrore(**dati))
    return risultato


class ServizioSegnalazioneErrori:
    def __init__(
        self,
        repo_fatture,
        riconciliazione: ServizioRiconciliazione,
        notificatore: Optional[NotificatoreErrori] = None,
        dispatch: Optional[Callable[..., None]] = None,
    ):
        self.repo_fatture = repo_fatture
        self.riconciliazione = riconciliazione
        self.notificatore = notificatore
        # dispatch(funzione, *args): es. BackgroundTasks.add_task per non attendere l'invio
        self.dispatch = dispatch or _esegui_subito

    def _invia_notifica(self, notifica: NotificaErrore) -> None:
        try:
            if self.notificatore is not None:
                self.notificatore.invia(notifica)
        except Exception as e:
            logger.warning("Invio notifica errori fallito per fattura %s: %s", notifica.id_fattura, e)

    def report_error(
        self,
        id_fattura: str,
        data_consegna: str,
        righe: Sequence[RigaSegnalata],
        note: Optional[str],
        email: str,
    ) -> Dict[str, Any]:
        """
        Registra una segnalazione di errori e segna la fattura come consegnata.

        Una nuova segnalazione sostituisce quella precedente; se la fattura
        era già consegnata il valore precedente resta nello storico modifiche.
        """
        data = validate_data_consegna(data_consegna)
        righe = list(righe or [])
        modificate = [r for r in righe if r.modificato]
        note_pulite = (note or "").strip()
        if not modificate and not note_pulite:
            raise ValidationError("Segnala almeno una riga modificata o inserisci una nota", "righe")

        riga = self.repo_fatture.get_riga(id_fattura)
        precedente = Fattura.from_row(riga)

        errori = ErroriConsegna(
            timestamp=datetime.now(timezone.utc).isoformat(),
            data_consegna=data,
            utente=email,
            righe_con_errori=completa_da_ddt(modificate, precedente.testo_ddt),
            note_aggiuntive=note_pulite,
            righe_modificate=len(modificate),
            righe_totali=len(righe),
        )
        updates = {
            "errori_consegna": errori.serializza(),
            "stato": STATO_CONSEGNATO,
            "data_consegna": data,
            "confermato_da": email,
        }

        if precedente.consegnata:
            modifiche = calcola_modifiche(riga, updates)
            if modifiche:
                riga.set(
                    "storico_modifiche",
                    storico_modifiche.append_many(riga.get("storico_modifiche"), modifiche, email),
                )
        for campo, valore in updates.items():
            riga.set(campo, valore)
        riga.save()
        logger.info(
            "Errori consegna registrati per fattura %s da %s (%d righe su %d)",
            precedente.id, email, len(modificate), len(righe),
        )

        attuale = Fattura.from_row(riga)
        try:
            self.dispatch(self._invia_notifica, render_notifica(attuale, errori))
        except Exception as e:
            logger.warning("Impossibile accodare la notifica per fattura %s: %s", attuale.id, e)

        esito_txt = self.riconciliazione.rigenera_file(attuale, is_modification=precedente.consegnata)

        return {
            "success": True,
            "message": "Errori di consegna registrati",
            "id": attuale.id,
            "stato": attuale.stato,
            "errori_consegna": errori.model_dump(),
            "file_txt": esito_txt.to_dict() if esito_txt else None,
        }
