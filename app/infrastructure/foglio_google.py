"""
Accesso a un foglio Google Sheets come tabella di righe con colonne nominate.

La prima riga del foglio contiene i nomi delle colonne. Tutti i valori sono
stringhe; non ci sono transazioni né vincoli oltre alla presenza delle colonne.
"""
import logging
from typing import Any, Callable, Dict, List, Optional

from googleapiclient.discovery import Resource
from googleapiclient.errors import HttpError

from app.domain.exceptions import UpstreamUnavailable, ValidationError

logger = logging.getLogger(__name__)


def column_letter(indice: int) -> str:
    """Lettera di colonna 1-based in notazione A1 (1 -> A, 27 -> AA)."""
    lettere = ""
    while indice > 0:
        indice, resto = divmod(indice - 1, 26)
        lettere = chr(65 + resto) + lettere
    return lettere


class Riga:
    """Una riga del foglio, modificabile in memoria e salvata con save()."""

    def __init__(self, foglio: "FoglioGoogle", numero_riga: int, valori: Dict[str, str]):
        self._foglio = foglio
        self.numero_riga = numero_riga
        self._valori = valori

    def get(self, campo: str) -> str:
        valore = self._valori.get(campo)
        return "" if valore is None else str(valore)

    def set(self, campo: str, valore: Any) -> None:
        if campo not in self._foglio.intestazioni:
            raise ValidationError(f"Colonna sconosciuta: {campo}", campo)
        self._valori[campo] = "" if valore is None else str(valore)

    def save(self) -> None:
        self._foglio.salva_riga(self)

    def to_dict(self) -> Dict[str, str]:
        return {col: self.get(col) for col in self._foglio.intestazioni}


class FoglioGoogle:
    """Foglio di uno spreadsheet.

    get_service restituisce il client Sheets da usare per ogni chiamata: il
    foglio può essere condiviso tra thread senza condividere il client.
    """

    def __init__(self, get_service: Callable[[], Resource], spreadsheet_id: str, nome_foglio: str):
        self._get_service = get_service
        self.spreadsheet_id = spreadsheet_id
        self.nome_foglio = nome_foglio
        self.intestazioni: List[str] = []

    def _values(self):
        return self._get_service().spreadsheets().values()

    def _carica(self) -> List[List[str]]:
        try:
            resp = self._values().get(
                spreadsheetId=self.spreadsheet_id,
                range=f"{self.nome_foglio}!A1:ZZ",
            ).execute()
        except (HttpError, OSError) as e:
            logger.error("Errore lettura foglio %s: %s", self.nome_foglio, e)
            raise UpstreamUnavailable(f"Foglio {self.nome_foglio} non raggiungibile") from e
        valori = resp.get("values", [])
        self.intestazioni = [str(h).strip() for h in valori[0]] if valori else []
        return valori[1:] if valori else []

    def get_rows(self) -> List[Riga]:
        righe = self._carica()
        risultato = []
        for idx, valori in enumerate(righe):
            dati = {col: (valori[i] if i < len(valori) else "") for i, col in enumerate(self.intestazioni)}
            # +2: intestazione e indice 1-based
            risultato.append(Riga(self, idx + 2, dati))
        return risultato

    def get_row(self, predicate: Callable[[Riga], bool]) -> Optional[Riga]:
        for riga in self.get_rows():
            if predicate(riga):
                return riga
        return None

    def salva_riga(self, riga: Riga) -> None:
        if not self.intestazioni:
            self._carica()
        ultima = column_letter(len(self.intestazioni))
        intervallo = f"{self.nome_foglio}!A{riga.numero_riga}:{ultima}{riga.numero_riga}"
        try:
            self._values().update(
                spreadsheetId=self.spreadsheet_id,
                range=intervallo,
                valueInputOption="RAW",
                body={"values": [[riga.get(col) for col in self.intestazioni]]},
            ).execute()
        except (HttpError, OSError) as e:
            logger.error("Errore salvataggio riga %s del foglio %s: %s", riga.numero_riga, self.nome_foglio, e)
            raise UpstreamUnavailable(f"Impossibile salvare sul foglio {self.nome_foglio}") from e

    def append_rows(self, oggetti: List[Dict[str, Any]]) -> None:
        if not oggetti:
            return
        if not self.intestazioni:
            self._carica()
        valori = [
            ["" if o.get(col) is None else str(o.get(col)) for col in self.intestazioni]
            for o in oggetti
        ]
        try:
            self._values().append(
                spreadsheetId=self.spreadsheet_id,
                range=f"{self.nome_foglio}!A:{column_letter(len(self.intestazioni))}",
                valueInputOption="RAW",
                insertDataOption="INSERT_ROWS",
                body={"values": valori},
            ).execute()
        except (HttpError, OSError) as e:
            logger.error("Errore inserimento righe nel foglio %s: %s", self.nome_foglio, e)
            raise UpstreamUnavailable(f"Impossibile scrivere sul foglio {self.nome_foglio}") from e

    def add_row(self, oggetto: Dict[str, Any]) -> None:
        self.append_rows([oggetto])
