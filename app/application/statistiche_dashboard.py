from concurrent.futures import ThreadPoolExecutor
from typing import Any, Dict
import logging

from app.infrastructure.repositorio_fatture import RepositorioFatture
from app.infrastructure.repositorio_movimentazioni import RepositorioMovimentazioni

logger = logging.getLogger(__name__)


class StatisticheDashboard:
    def __init__(self, repo_fatture: RepositorioFatture, repo_movimentazioni: RepositorioMovimentazioni, utenti, negozi):
        self.repo_fatture = repo_fatture
        self.repo_movimentazioni = repo_movimentazioni
        self.utenti = utenti
        self.negozi = negozi

    def execute(self) -> Dict[str, Any]:
        """
        Riepilogo per la dashboard admin:
        - fatture totali, in attesa, consegnate e con errori
        - movimentazioni totali
        - utenti e negozi configurati

        Fatture e movimentazioni si leggono in parallelo; un errore in una
        delle due letture fa fallire l'intera richiesta.
        """
        with ThreadPoolExecutor(max_workers=2) as executor:
            futuro_fatture = executor.submit(self.repo_fatture.listar)
            futuro_movimenti = executor.submit(self.repo_movimentazioni.listar)
            fatture = futuro_fatture.result()
            movimenti = futuro_movimenti.result()

        consegnate = [f for f in fatture if f.consegnata]
        con_errori = [f for f in consegnate if f.ha_errori]
        logger.info(
            "Dashboard: %d fatture (%d consegnate, %d con errori), %d movimentazioni",
            len(fatture), len(consegnate), len(con_errori), len(movimenti),
        )
        return {
            "invoices": {
                "total": len(fatture),
                "pending": len(fatture) - len(consegnate),
                "confirmed": len(consegnate),
                "con_errori": len(con_errori),
            },
            "movimentazioni": {"total": len(movimenti)},
            "users": {"total": len(self.utenti)},
            "stores": {"total": len(self.negozi)},
        }
