from typing import Any, Dict, List, Optional
import logging

from app.domain.constants import COLONNE_FATTURE
from app.domain.exceptions import NotFound
from app.domain.models.fattura import Fattura

logger = logging.getLogger(__name__)


class RepositorioFatture:
    """Fatture sul foglio Google: una riga per documento di trasporto."""

    def __init__(self, store):
        self.store = store

    def get_riga(self, id_fattura: str):
        """Riga grezza del foglio; NotFound se assente."""
        id_str = str(id_fattura).strip()
        riga = self.store.get_row(lambda r: r.get("id").strip() == id_str)
        if riga is None:
            raise NotFound(f"Fattura {id_str} non trovata")
        return riga

    def obtener(self, id_fattura: str) -> Fattura:
        return Fattura.from_row(self.get_riga(id_fattura))

    def trova_per_numero(self, numero: str) -> Optional[Fattura]:
        numero = (numero or "").strip()
        if not numero:
            return None
        riga = self.store.get_row(lambda r: r.get("numero").strip() == numero)
        return Fattura.from_row(riga) if riga is not None else None

    def listar(
        self,
        *,
        punto_vendita: Optional[str] = None,
        stato: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> List[Fattura]:
        risultato: List[Fattura] = []
        for idx, riga in enumerate(self.store.get_rows()):
            if not riga.get("numero").strip():
                logger.warning("Riga %d ignorata: manca il numero documento", idx + 2)
                continue
            fattura = Fattura.from_row(riga)
            if punto_vendita and fattura.punto_vendita != punto_vendita:
                continue
            if stato and fattura.stato != stato:
                continue
            risultato.append(fattura)
            if limit and len(risultato) >= limit:
                break
        return risultato

    def crea(self, dati: Dict[str, Any]) -> Fattura:
        riga = {col: dati.get(col, "") for col in COLONNE_FATTURE}
        self.store.add_row(riga)
        return Fattura.from_dict(riga)
