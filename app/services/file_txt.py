"""
Gestione dei file TXT generati per le fatture consegnate.

Nome file:
    {numero}_{data_consegna}_{fornitore}_{codice_negozio}[_ERRORI].txt

Per ogni fattura esiste al massimo un file attivo: prima di scrivere il nuovo
file, quelli precedenti della stessa fattura vengono copiati in un backup
(REPLACED_...) e rimossi. Nessun file viene cancellato o sovrascritto senza
una copia di backup recuperabile.
"""
import logging
import re
import time
from dataclasses import dataclass, asdict
from typing import Any, Dict, List, Optional

from app.domain.constants import (
    CODICE_NEGOZIO_SCONOSCIUTO,
    ESTENSIONE_TXT,
    MARCATORE_BACKUP,
    PREFISSO_BACKUP_ELIMINATO,
    PREFISSO_BACKUP_SOSTITUITO,
    SUFFISSO_ERRORI,
)
from app.domain.exceptions import NotFound
from app.domain.models.errori import should_have_error_suffix
from app.domain.models.fattura import Fattura

logger = logging.getLogger(__name__)

_CARATTERI_NON_SICURI = re.compile(r'[/\\:*?"<>|\s]+')
_UNDERSCORE_RIPETUTI = re.compile(r"_+")
_DATA_NEL_NOME = re.compile(r"(\d{4}-\d{2}-\d{2})")


def sanitize(valore: Optional[str]) -> str:
    """Rende un valore utilizzabile come parte di un nome file."""
    testo = _CARATTERI_NON_SICURI.sub("_", (valore or "").strip())
    testo = _UNDERSCORE_RIPETUTI.sub("_", testo)
    return testo.strip("_")


def build_filename(numero: str, data_consegna: str, fornitore: str, codice_negozio: str, ha_errori: bool) -> str:
    suffisso = SUFFISSO_ERRORI if ha_errori else ""
    return (
        f"{sanitize(numero)}_{data_consegna}_{sanitize(fornitore)}_"
        f"{sanitize(codice_negozio) or CODICE_NEGOZIO_SCONOSCIUTO}{suffisso}{ESTENSIONE_TXT}"
    )


def is_backup(nome: str) -> bool:
    return MARCATORE_BACKUP in nome


def ha_suffisso_errori(nome: str) -> bool:
    return nome.endswith(f"{SUFFISSO_ERRORI}{ESTENSIONE_TXT}")


def aggiungi_suffisso_errori(nome: str) -> str:
    if ha_suffisso_errori(nome):
        return nome
    if nome.endswith(ESTENSIONE_TXT):
        return f"{nome[:-len(ESTENSIONE_TXT)]}{SUFFISSO_ERRORI}{ESTENSIONE_TXT}"
    return f"{nome}{SUFFISSO_ERRORI}"


def codice_negozio_da_nome(nome: str) -> str:
    """Ultimo segmento del nome file (prima di _ERRORI e dell'estensione)."""
    base = nome[:-len(ESTENSIONE_TXT)] if nome.endswith(ESTENSIONE_TXT) else nome
    if base.endswith(SUFFISSO_ERRORI):
        base = base[:-len(SUFFISSO_ERRORI)]
    return base.rsplit("_", 1)[-1] if "_" in base else ""


def nome_originale(nome: str) -> str:
    """Nome del file attivo da cui è stato ricavato un backup."""
    if not is_backup(nome):
        return nome
    base = nome.split(MARCATORE_BACKUP, 1)[0]
    for prefisso in (PREFISSO_BACKUP_SOSTITUITO, PREFISSO_BACKUP_ELIMINATO):
        if base.startswith(prefisso):
            return base[len(prefisso):]
    return base


def visibile_per(nome: str, codice_negozio: Optional[str]) -> bool:
    """Con codice_negozio None (admin) tutti i file sono visibili."""
    if codice_negozio is None:
        return True
    return codice_negozio_da_nome(nome_originale(nome)) == sanitize(codice_negozio)


def appartiene_a(nome: str, numero: str) -> bool:
    """True se il file è stato generato per la fattura con questo numero.

    Il numero deve essere seguito direttamente dalla data: "10_2024-..."
    appartiene alla fattura "10", "10_A_2024-..." alla fattura "10 A".
    """
    numero_pulito = sanitize(numero)
    if not numero_pulito:
        return False
    return re.match(rf"{re.escape(numero_pulito)}_\d{{4}}-\d{{2}}-\d{{2}}_", nome) is not None


def _epoch_ms() -> int:
    return int(time.time() * 1000)


@dataclass
class EsitoGenerazione:
    generato: bool
    filename: Optional[str] = None
    size: int = 0
    ha_errori: bool = False
    sostituiti: int = 0
    is_modification: bool = False
    motivo: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class ContenutoFile:
    filename: str
    content: str
    ha_errori: bool
    rinominato: bool = False


class GestoreFileTxt:
    def __init__(self, directory, negozi):
        self.directory = directory
        self.negozi = negozi

    def filename_per(self, fattura: Fattura) -> str:
        return build_filename(
            fattura.numero,
            fattura.data_consegna,
            fattura.fornitore,
            self.negozi.codice_per(fattura.punto_vendita),
            fattura.ha_errori,
        )

    def file_della_fattura(self, numero: str) -> List[str]:
        """File attivi (non backup) che appartengono alla fattura con questo numero."""
        return [
            nome for nome in self.directory.list()
            if appartiene_a(nome, numero) and nome.endswith(ESTENSIONE_TXT) and not is_backup(nome)
        ]

    def _nome_backup(self, nome: str, prefisso: str = "") -> str:
        ms = _epoch_ms()
        candidato = f"{prefisso}{nome}{MARCATORE_BACKUP}{ms}"
        # Due backup dello stesso file nello stesso millisecondo non devono sovrascriversi
        while self.directory.exists(candidato):
            ms += 1
            candidato = f"{prefisso}{nome}{MARCATORE_BACKUP}{ms}"
        return candidato

    def _backup(self, nome: str, prefisso: str = "") -> str:
        nome_backup = self._nome_backup(nome, prefisso)
        self.directory.write(nome_backup, self.directory.read(nome))
        return nome_backup

    def genera(self, fattura: Fattura, is_modification: bool = False) -> EsitoGenerazione:
        """
        Scrive (o sostituisce) il file TXT di una fattura.

        Se mancano numero, data_consegna o fornitore, o il contenuto è vuoto,
        non scrive nulla e restituisce un esito con generato=False.
        """
        mancanti = [c for c in ("numero", "data_consegna", "fornitore") if not getattr(fattura, c).strip()]
        if mancanti:
            logger.info("File TXT non generato per fattura %s: campi mancanti %s", fattura.id, mancanti)
            return EsitoGenerazione(generato=False, motivo=f"campi mancanti: {', '.join(mancanti)}")
        if not fattura.txt or not fattura.txt.strip():
            logger.info("File TXT non generato per fattura %s: contenuto vuoto", fattura.id)
            return EsitoGenerazione(generato=False, motivo="contenuto vuoto")

        ha_errori = should_have_error_suffix(fattura.note, fattura.item_noconv, fattura.errori_consegna)
        filename = self.filename_per(fattura)

        precedenti = self.file_della_fattura(fattura.numero)
        for nome in precedenti:
            nome_backup = self._backup(nome, PREFISSO_BACKUP_SOSTITUITO)
            self.directory.delete(nome)
            logger.info("File TXT precedente %s archiviato in %s", nome, nome_backup)

        contenuto = fattura.txt.encode("utf-8")
        self.directory.write(filename, contenuto)
        logger.info(
            "File TXT %s %s (%d byte, errori=%s, sostituiti=%d)",
            filename, "rigenerato" if is_modification else "creato", len(contenuto), ha_errori, len(precedenti),
        )
        return EsitoGenerazione(
            generato=True,
            filename=filename,
            size=len(contenuto),
            ha_errori=ha_errori,
            sostituiti=len(precedenti),
            is_modification=is_modification,
        )

    def leggi(self, filename: str, fattura: Optional[Fattura] = None) -> ContenutoFile:
        """
        Legge il contenuto di un file TXT.

        Se la fattura indica errori ma il nome del file non ha il suffisso
        _ERRORI, il file viene rinominato prima della lettura. Se la
        rinomina fallisce si serve comunque il file con il vecchio nome.
        """
        nome = filename
        rinominato = False
        ha_errori = fattura.ha_errori if fattura is not None else ha_suffisso_errori(filename)

        if fattura is not None and ha_errori and not ha_suffisso_errori(filename):
            nuovo_nome = aggiungi_suffisso_errori(filename)
            try:
                if self.directory.exists(nuovo_nome):
                    # Due file attivi per la stessa fattura: quello _ERRORI va in backup prima di essere sostituito
                    nome_backup = self._backup(nuovo_nome, PREFISSO_BACKUP_SOSTITUITO)
                    self.directory.delete(nuovo_nome)
                    logger.info("File TXT %s archiviato in %s prima della rinomina", nuovo_nome, nome_backup)
                self.directory.rename(filename, nuovo_nome)
                nome = nuovo_nome
                rinominato = True
                logger.info("File TXT %s rinominato in %s", filename, nuovo_nome)
            except (OSError, NotFound) as e:
                logger.warning("Impossibile rinominare %s in %s: %s", filename, nuovo_nome, e)

        contenuto = self.directory.read(nome).decode("utf-8", errors="replace")
        return ContenutoFile(filename=nome, content=contenuto, ha_errori=ha_errori, rinominato=rinominato)

    def modifica(self, filename: str, contenuto: str) -> Dict[str, Any]:
        """Sovrascrive il contenuto dopo averne salvato una copia {nome}.backup.{ms}."""
        nome_backup = self._backup(filename)
        dati = contenuto.encode("utf-8")
        self.directory.write(filename, dati)
        logger.info("File TXT %s modificato (backup %s)", filename, nome_backup)
        return {"filename": filename, "size": len(dati), "backup": nome_backup}

    def elimina(self, filename: str) -> Dict[str, Any]:
        nome_backup = self._backup(filename, PREFISSO_BACKUP_ELIMINATO)
        self.directory.delete(filename)
        logger.info("File TXT %s eliminato (backup %s)", filename, nome_backup)
        return {"filename": filename, "backup": nome_backup}

    def info(self, filename: str) -> Dict[str, Any]:
        st = self.directory.stat(filename)
        return {
            "filename": filename,
            "size": st["size"],
            "created": st["created"],
            "modified": st["modified"],
            "ha_errori": ha_suffisso_errori(filename),
            "backup": is_backup(filename),
        }

    def elenco(self, include_backup: bool = False, codice_negozio: Optional[str] = None) -> List[Dict[str, Any]]:
        """File ordinati dal più recente; i backup solo se richiesti."""
        nomi = [
            n for n in self.directory.list()
            if ((include_backup and is_backup(n)) or (n.endswith(ESTENSIONE_TXT) and not is_backup(n)))
            and visibile_per(n, codice_negozio)
        ]
        files = [self.info(n) for n in nomi]
        return sorted(files, key=lambda f: f["modified"], reverse=True)

    def trova_per_data(self, data: str, codice_negozio: Optional[str] = None) -> Optional[str]:
        """Primo file (il più recente) il cui nome contiene la data."""
        for info in self.elenco(codice_negozio=codice_negozio):
            if data in info["filename"]:
                return info["filename"]
        return None

    def statistiche_per_data(self, codice_negozio: Optional[str] = None) -> Dict[str, Dict[str, Any]]:
        statistiche: Dict[str, Dict[str, Any]] = {}
        for nome in self.directory.list():
            if is_backup(nome) or not nome.endswith(ESTENSIONE_TXT) or not visibile_per(nome, codice_negozio):
                continue
            match = _DATA_NEL_NOME.search(nome)
            if not match:
                continue
            voce = statistiche.setdefault(match.group(1), {"count": 0, "con_errori": 0, "files": []})
            voce["count"] += 1
            voce["files"].append(nome)
            if ha_suffisso_errori(nome):
                voce["con_errori"] += 1
        return statistiche
