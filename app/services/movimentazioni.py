"""
Trasferimenti di merce tra punti vendita.

Ogni invio genera un numero di documento di trasferimento condiviso da tutte
le righe e una fattura sintetica (stato pending) per il negozio di
destinazione, che la conferma come una normale consegna.
"""
import logging
import time
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence

from app.domain.constants import STATO_MOVIMENTO_IN_CORSO, STATO_PENDING
from app.domain.exceptions import ValidationError
from app.domain.models.ddt import RigaDDT
from app.services.file_txt import sanitize
from app.services.parser_ddt import reconstruct_raw

logger = logging.getLogger(__name__)


@dataclass
class RigaTrasferimento:
    prodotto: str
    quantita: float
    unita_misura: str = "PZ"
    codice: str = ""


class ServizioMovimentazioni:
    def __init__(self, repo_movimentazioni, repo_fatture, negozi):
        self.repo_movimentazioni = repo_movimentazioni
        self.repo_fatture = repo_fatture
        self.negozi = negozi

    @staticmethod
    def _valida(origine: str, destinazione: str, righe: Sequence[RigaTrasferimento]) -> None:
        if not origine or not origine.strip():
            raise ValidationError("Negozio di origine obbligatorio", "origine")
        if not destinazione or not destinazione.strip():
            raise ValidationError("Negozio di destinazione obbligatorio", "destinazione")
        if origine.strip() == destinazione.strip():
            raise ValidationError("Origine e destinazione devono essere diverse", "destinazione")
        if not righe:
            raise ValidationError("Inserisci almeno un prodotto", "righe")
        for idx, r in enumerate(righe, start=1):
            if not r.prodotto or not r.prodotto.strip():
                raise ValidationError(f"Prodotto mancante alla riga {idx}", "prodotto")
            if r.quantita is None or r.quantita <= 0:
                raise ValidationError(f"Quantità non valida alla riga {idx}", "quantita")

    def genera_numero_ddt(self, codice_origine: str, adesso: Optional[datetime] = None) -> str:
        adesso = adesso or datetime.now()
        return f"TRF-{adesso.strftime('%Y%m%d')}-{adesso.strftime('%H%M%S')}-{sanitize(codice_origine)}"

    @staticmethod
    def testo_trasferimento(righe: Sequence[RigaTrasferimento]) -> str:
        return reconstruct_raw(
            RigaDDT(
                numero_riga=idx,
                codice=r.codice or sanitize(r.prodotto).upper()[:12],
                prodotto=r.prodotto.strip().replace("|", "/"),
                unita_misura=r.unita_misura or "PZ",
                quantita=float(r.quantita),
                riga_originale="",
            )
            for idx, r in enumerate(righe, start=1)
        )

    def crea_fattura_trasferimento(self, numero_ddt: str, origine: str, destinazione: str, testo: str, adesso: datetime) -> Dict[str, Any]:
        """Crea la fattura sintetica; se esiste già una fattura con lo stesso numero non fa nulla."""
        esistente = self.repo_fatture.trova_per_numero(numero_ddt)
        if esistente is not None:
            logger.info("Fattura per il trasferimento %s già presente (%s)", numero_ddt, esistente.id)
            return {"creata": False, "id": esistente.id}

        id_fattura = f"ddt_{int(time.time() * 1000)}_{numero_ddt}"
        self.repo_fatture.crea({
            "id": id_fattura,
            "numero": numero_ddt,
            "fornitore": f"Trasferimento da {origine}",
            "data_emissione": adesso.date().isoformat(),
            "punto_vendita": destinazione,
            "codice_fornitore": self.negozi.codice_per(origine),
            "stato": STATO_PENDING,
            "txt": testo,
            "testo_ddt": testo,
        })
        logger.info("Creata fattura %s per il trasferimento %s verso %s", id_fattura, numero_ddt, destinazione)
        return {"creata": True, "id": id_fattura}

    def crea_movimentazioni(
        self,
        origine: str,
        destinazione: str,
        righe: Sequence[RigaTrasferimento],
        utente: str,
        numero_ddt: Optional[str] = None,
    ) -> Dict[str, Any]:
        self._valida(origine, destinazione, righe)
        origine, destinazione = origine.strip(), destinazione.strip()
        adesso = datetime.now()
        codice_origine = self.negozi.codice_per(origine)
        codice_destinazione = self.negozi.codice_per(destinazione)
        numero_ddt = numero_ddt or self.genera_numero_ddt(codice_origine, adesso)
        testo = self.testo_trasferimento(righe)
        nome_file = f"{numero_ddt}_{sanitize(origine)}_{sanitize(destinazione)}.txt"

        movimenti: List[Dict[str, Any]] = []
        for idx, r in enumerate(righe, start=1):
            movimenti.append({
                "id": f"{numero_ddt}-{idx}",
                "data_movimento": adesso.strftime("%d/%m/%Y"),
                "timestamp": adesso.isoformat(),
                "origine": origine,
                "codice_origine": codice_origine,
                "prodotto": r.prodotto.strip(),
                "quantita": str(r.quantita),
                "unita_misura": r.unita_misura or "PZ",
                "destinazione": destinazione,
                "codice_destinazione": codice_destinazione,
                "stato": STATO_MOVIMENTO_IN_CORSO,
                "txt_content": testo,
                "txt_filename": nome_file,
                "creato_da": utente,
                "ddt_number": numero_ddt,
            })
        self.repo_movimentazioni.registrar(movimenti)
        logger.info("Registrate %d movimentazioni %s -> %s (%s)", len(movimenti), origine, destinazione, numero_ddt)

        fattura = self.crea_fattura_trasferimento(numero_ddt, origine, destinazione, testo, adesso)
        return {
            "success": True,
            "ddt_number": numero_ddt,
            "movimentazioni": len(movimenti),
            "txt_filename": nome_file,
            "fattura": fattura,
        }
