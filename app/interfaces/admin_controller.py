from fastapi import APIRouter, Depends, Query, Response
from typing import List, Optional
from datetime import datetime
import logging

from app.application.esporta_fatture_excel import EsportaFattureExcel
from app.application.statistiche_dashboard import StatisticheDashboard
from app.auth.dependencies import UtenteCorrente, require_admin
from app.auth.utenti import DirectoryUtenti, get_directory_utenti
from app.config.sheets import get_negozi_directory
from app.domain.exceptions import ErroreDominio
from app.domain.models.fattura import FatturaOut
from app.domain.models.movimento import Movimento
from app.infrastructure.repositorio_fatture import RepositorioFatture
from app.infrastructure.repositorio_movimentazioni import RepositorioMovimentazioni
from app.interfaces.dependencies import get_repo_fatture, get_repo_movimentazioni
from app.services.negozi import DirectoryNegozi
from app.utils.error_handlers import handle_domain_error, handle_error
from app.utils.fattura_helpers import format_fattura

router = APIRouter(prefix="/api/admin", tags=["Admin"])

logger = logging.getLogger("admin")


@router.get("/dashboard", response_model=dict)
def dashboard(
    user: UtenteCorrente = Depends(require_admin),
    repo_fatture: RepositorioFatture = Depends(get_repo_fatture),
    repo_movimentazioni: RepositorioMovimentazioni = Depends(get_repo_movimentazioni),
    utenti: DirectoryUtenti = Depends(get_directory_utenti),
    negozi: DirectoryNegozi = Depends(get_negozi_directory),
):
    try:
        return StatisticheDashboard(repo_fatture, repo_movimentazioni, utenti, negozi).execute()
    except ErroreDominio as e:
        raise handle_domain_error(e, "dashboard admin")
    except Exception as e:
        raise handle_error(e, "dashboard admin", "Errore nel caricamento della dashboard")


@router.get("/invoices", response_model=List[FatturaOut])
def tutte_le_fatture(
    stato: Optional[str] = Query(None),
    punto_vendita: Optional[str] = Query(None),
    user: UtenteCorrente = Depends(require_admin),
    repo: RepositorioFatture = Depends(get_repo_fatture),
):
    try:
        fatture = repo.listar(punto_vendita=punto_vendita, stato=stato)
        consegnate = sum(1 for f in fatture if f.consegnata)
        logger.info("Admin: caricate %d fatture (%d consegnate, %d in attesa)", len(fatture), consegnate, len(fatture) - consegnate)
        return [format_fattura(f) for f in fatture]
    except ErroreDominio as e:
        raise handle_domain_error(e, "elenco fatture admin")
    except Exception as e:
        raise handle_error(e, "elenco fatture admin", "Errore nel caricamento delle fatture")


@router.get("/movimentazioni", response_model=List[Movimento])
def tutte_le_movimentazioni(
    user: UtenteCorrente = Depends(require_admin),
    repo: RepositorioMovimentazioni = Depends(get_repo_movimentazioni),
):
    try:
        return repo.listar()
    except ErroreDominio as e:
        raise handle_domain_error(e, "elenco movimentazioni admin")
    except Exception as e:
        raise handle_error(e, "elenco movimentazioni admin", "Errore nel caricamento delle movimentazioni")


@router.get("/stores", response_model=List[dict])
def negozi_configurati(
    user: UtenteCorrente = Depends(require_admin),
    negozi: DirectoryNegozi = Depends(get_negozi_directory),
):
    return [n.to_dict() for n in negozi.elenco()]


@router.get("/users", response_model=List[dict])
def utenti_configurati(
    user: UtenteCorrente = Depends(require_admin),
    utenti: DirectoryUtenti = Depends(get_directory_utenti),
):
    # Gli hash delle password non escono mai dal server
    return [u.to_public_dict() for u in utenti.elenco()]


@router.get("/export")
def esportare_fatture(
    user: UtenteCorrente = Depends(require_admin),
    repo: RepositorioFatture = Depends(get_repo_fatture),
):
    try:
        contenuto = EsportaFattureExcel(repo.listar()).execute()
    except ErroreDominio as e:
        raise handle_domain_error(e, "export fatture")
    except Exception as e:
        raise handle_error(e, "export fatture", "Errore durante l'export")

    filename = f"export_fatture_{datetime.now().strftime('%Y%m%d_%H%M%S')}.xlsx"
    return Response(
        content=contenuto,
        media_type="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        headers={"Content-Disposition": f"attachment; filename={filename}"},
    )
