"""
Anagrafica statica degli utenti (operatori dei punti vendita e admin).
"""
import json
import logging
from dataclasses import dataclass
from functools import lru_cache
from types import MappingProxyType
from typing import Iterable, List, Mapping, Optional

import bcrypt

from app.config.settings import get_utenti_json
from app.domain.constants import RUOLO_ADMIN, RUOLO_OPERATORE

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Utente:
    email: str
    password_hash: str
    nome: str
    ruolo: str
    punto_vendita: str = ""

    @property
    def is_admin(self) -> bool:
        return self.ruolo == RUOLO_ADMIN

    def to_public_dict(self) -> dict:
        return {
            "email": self.email,
            "nome": self.nome,
            "ruolo": self.ruolo,
            "punto_vendita": self.punto_vendita,
        }


class DirectoryUtenti:
    """Tabella in sola lettura indicizzata per email (minuscolo)."""

    def __init__(self, utenti: Iterable[Utente]):
        self._per_email: Mapping[str, Utente] = MappingProxyType({u.email.lower(): u for u in utenti})

    def __len__(self) -> int:
        return len(self._per_email)

    def trova(self, email: Optional[str]) -> Optional[Utente]:
        return self._per_email.get((email or "").strip().lower())

    def elenco(self) -> List[Utente]:
        return list(self._per_email.values())

    def autentica(self, email: str, password: str) -> Optional[Utente]:
        utente = self.trova(email)
        if utente is None or not password:
            return None
        try:
            if bcrypt.checkpw(password.encode("utf-8"), utente.password_hash.encode("utf-8")):
                return utente
        except ValueError:
            logger.warning("Hash password non valido per l'utente %s", utente.email)
        return None

    @classmethod
    def from_json(cls, raw: str) -> "DirectoryUtenti":
        dati = json.loads(raw) if raw else []
        utenti = []
        for d in dati:
            ruolo = str(d.get("ruolo") or RUOLO_OPERATORE).strip()
            if ruolo not in (RUOLO_ADMIN, RUOLO_OPERATORE):
                logger.warning("Ruolo sconosciuto '%s' per %s, uso %s", ruolo, d.get("email"), RUOLO_OPERATORE)
                ruolo = RUOLO_OPERATORE
            utenti.append(Utente(
                email=str(d.get("email", "")).strip(),
                password_hash=str(d.get("password_hash", "")),
                nome=str(d.get("nome", "")).strip(),
                ruolo=ruolo,
                punto_vendita=str(d.get("punto_vendita", "")).strip(),
            ))
        return cls(u for u in utenti if u.email)


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=12)).decode("utf-8")


@lru_cache()
def get_directory_utenti() -> DirectoryUtenti:
    try:
        return DirectoryUtenti.from_json(get_utenti_json())
    except ValueError as e:
        logger.error("UTENTI_JSON non valido: %s", e)
        return DirectoryUtenti([])
