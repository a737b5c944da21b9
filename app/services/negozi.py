"""
Anagrafica dei punti vendita, usata per risolvere il codice negozio.
"""
import json
import logging
from dataclasses import dataclass, asdict
from types import MappingProxyType
from typing import Iterable, List, Mapping, Optional

from app.domain.constants import CODICE_NEGOZIO_SCONOSCIUTO

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Negozio:
    nome: str
    codice: str
    indirizzo: str = ""
    citta: str = ""
    attivo: bool = True

    def to_dict(self) -> dict:
        return asdict(self)


def _chiave(nome: Optional[str]) -> str:
    return " ".join((nome or "").split()).lower()


class DirectoryNegozi:
    """Tabella in sola lettura nome negozio -> Negozio."""

    def __init__(self, negozi: Iterable[Negozio]):
        self._per_nome: Mapping[str, Negozio] = MappingProxyType({_chiave(n.nome): n for n in negozi})

    def __len__(self) -> int:
        return len(self._per_nome)

    def trova(self, nome: Optional[str]) -> Optional[Negozio]:
        return self._per_nome.get(_chiave(nome))

    def codice_per(self, nome: Optional[str]) -> str:
        negozio = self.trova(nome)
        if negozio and negozio.codice:
            return negozio.codice
        logger.warning("Codice negozio non trovato per '%s', uso %s", nome, CODICE_NEGOZIO_SCONOSCIUTO)
        return CODICE_NEGOZIO_SCONOSCIUTO

    def elenco(self) -> List[Negozio]:
        return sorted(self._per_nome.values(), key=lambda n: n.nome)

    @classmethod
    def from_json(cls, raw: str) -> "DirectoryNegozi":
        """Da JSON: lista di oggetti {nome, codice, indirizzo?, citta?, attivo?}."""
        dati = json.loads(raw) if raw else []
        return cls(
            Negozio(
                nome=str(d.get("nome", "")).strip(),
                codice=str(d.get("codice", "")).strip(),
                indirizzo=str(d.get("indirizzo", "")).strip(),
                citta=str(d.get("citta", "")).strip(),
                attivo=bool(d.get("attivo", True)),
            )
            for d in dati
            if d.get("nome")
        )

    @classmethod
    def from_rows(cls, righe) -> "DirectoryNegozi":
        """Dalle righe del foglio Negozi (colonne nome, codice, indirizzo, citta, attivo)."""
        return cls(
            Negozio(
                nome=r.get("nome").strip(),
                codice=r.get("codice").strip(),
                indirizzo=r.get("indirizzo").strip(),
                citta=r.get("citta").strip(),
                attivo=r.get("attivo").strip().upper() in ("TRUE", "1", "SI", ""),
            )
            for r in righe
            if r.get("nome").strip()
        )
