from typing import Any, Dict, List, Optional

from app.domain.constants import COLONNE_MOVIMENTAZIONI
from app.domain.models.movimento import Movimento


class RepositorioMovimentazioni:
    def __init__(self, store):
        self.store = store

    def listar(self, *, punto_vendita: Optional[str] = None) -> List[Movimento]:
        movimenti = [Movimento.from_row(r) for r in self.store.get_rows()]
        if punto_vendita:
            movimenti = [m for m in movimenti if punto_vendita in (m.origine, m.destinazione)]
        return movimenti

    def registrar(self, movimenti: List[Dict[str, Any]]) -> None:
        """Inserisce tutte le righe con un'unica scrittura."""
        self.store.append_rows([{col: m.get(col, "") for col in COLONNE_MOVIMENTAZIONI} for m in movimenti])
