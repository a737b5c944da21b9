from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query, status
from pydantic import BaseModel, Field
from typing import Any, Dict, List, Optional
import logging

from app.auth.dependencies import UtenteCorrente, get_current_user
from app.domain.constants import STATO_CONSEGNATO, STATO_PENDING
from app.domain.exceptions import ErroreDominio
from app.domain.models.errori import RigaSegnalata
from app.domain.models.fattura import Fattura, FatturaOut
from app.infrastructure.repositorio_fatture import RepositorioFatture
from app.interfaces.dependencies import (
    get_notificatore_errori,
    get_repo_fatture,
    get_servizio_riconciliazione,
)
from app.services import storico_modifiche
from app.services.notificatore_errori import NotificatoreErrori
from app.services.parser_ddt import parse_ddt
from app.services.riconciliazione import ServizioRiconciliazione
from app.services.segnalazione_errori import ServizioSegnalazioneErrori
from app.utils.error_handlers import handle_domain_error, handle_error
from app.utils.fattura_helpers import format_fattura

router = APIRouter(prefix="/api", tags=["Fatture"])

logger = logging.getLogger("fatture")


class ConfermaIn(BaseModel):
    data_consegna: str = Field(..., description="Data di consegna (YYYY-MM-DD), non futura")
    note: Optional[str] = Field(None, description="Nota di consegna facoltativa")


class AggiornamentoIn(BaseModel):
    updates: Dict[str, Any] = Field(..., description="Campi da aggiornare, es. {'note': 'Scatola danneggiata'}")


class SegnalazioneIn(BaseModel):
    data_consegna: str
    righe: List[RigaSegnalata] = Field(default_factory=list, description="Righe del DDT con l'esito del controllo")
    note: Optional[str] = Field(None, description="Note libere sulla consegna")


class TestoDDTIn(BaseModel):
    testo: str
    strict: Optional[bool] = None


def _verifica_accesso(fattura: Fattura, user: UtenteCorrente) -> None:
    """Un operatore vede solo le fatture del proprio punto vendita."""
    if not user.is_admin and fattura.punto_vendita != user.punto_vendita:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Fattura di un altro punto vendita")


def _carica_fattura(repo: RepositorioFatture, id_fattura: str, user: UtenteCorrente) -> Fattura:
    fattura = repo.obtener(id_fattura)
    _verifica_accesso(fattura, user)
    return fattura


def _risultato_ddt(testo: Optional[str], strict: Optional[bool] = None) -> Dict[str, Any]:
    documento = parse_ddt(testo, strict=strict)
    righe = documento.righe
    return {
        "righe": [r.to_dict() for r in righe],
        "totale_righe": len(righe),
        "righe_scartate": documento.righe_scartate,
        "numeri_scartati": documento.numeri_scartati,
    }


@router.get("/fatture", response_model=List[FatturaOut])
def listar_fatture(
    stato: Optional[str] = Query(None, description="pending | consegnato"),
    punto_vendita: Optional[str] = Query(None, description="Solo admin: filtra per punto vendita"),
    user: UtenteCorrente = Depends(get_current_user),
    repo: RepositorioFatture = Depends(get_repo_fatture),
):
    if stato and stato not in (STATO_PENDING, STATO_CONSEGNATO):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Stato non valido")
    try:
        filtro_negozio = punto_vendita if user.is_admin else user.punto_vendita
        fatture = repo.listar(punto_vendita=filtro_negozio, stato=stato)
        return [format_fattura(f) for f in fatture]
    except ErroreDominio as e:
        raise handle_domain_error(e, "elenco fatture")
    except Exception as e:
        raise handle_error(e, "elenco fatture", "Errore nel caricamento delle fatture")


@router.get("/fatture/{id_fattura}", response_model=FatturaOut)
def obtener_fattura(
    id_fattura: str,
    user: UtenteCorrente = Depends(get_current_user),
    repo: RepositorioFatture = Depends(get_repo_fatture),
):
    try:
        return format_fattura(_carica_fattura(repo, id_fattura, user))
    except ErroreDominio as e:
        raise handle_domain_error(e, f"lettura fattura {id_fattura}")
    except HTTPException:
        raise
    except Exception as e:
        raise handle_error(e, f"lettura fattura {id_fattura}")


@router.post("/fatture/{id_fattura}/confirm")
def confermare_fattura(
    id_fattura: str,
    payload: ConfermaIn,
    user: UtenteCorrente = Depends(get_current_user),
    repo: RepositorioFatture = Depends(get_repo_fatture),
    servizio: ServizioRiconciliazione = Depends(get_servizio_riconciliazione),
):
    try:
        _carica_fattura(repo, id_fattura, user)
        esito = servizio.confirm(id_fattura, payload.data_consegna, user.email, payload.note)
        return {
            "success": True,
            "message": "Fattura confermata con successo",
            "data_consegna": esito.fattura.data_consegna,
            "confermato_da": esito.fattura.confermato_da,
            **esito.to_dict(),
        }
    except ErroreDominio as e:
        raise handle_domain_error(e, f"conferma fattura {id_fattura}")
    except HTTPException:
        raise
    except Exception as e:
        raise handle_error(e, f"conferma fattura {id_fattura}", "Errore nella conferma della fattura")


@router.patch("/fatture/{id_fattura}")
def aggiornare_fattura(
    id_fattura: str,
    payload: AggiornamentoIn,
    user: UtenteCorrente = Depends(get_current_user),
    repo: RepositorioFatture = Depends(get_repo_fatture),
    servizio: ServizioRiconciliazione = Depends(get_servizio_riconciliazione),
):
    try:
        _carica_fattura(repo, id_fattura, user)
        esito = servizio.update(id_fattura, payload.updates, user.email)
        return {"success": True, **esito.to_dict()}
    except ErroreDominio as e:
        raise handle_domain_error(e, f"aggiornamento fattura {id_fattura}")
    except HTTPException:
        raise
    except Exception as e:
        raise handle_error(e, f"aggiornamento fattura {id_fattura}", "Errore nell'aggiornamento della fattura")


@router.post("/fatture/{id_fattura}/report-error")
def segnalare_errori(
    id_fattura: str,
    payload: SegnalazioneIn,
    background_tasks: BackgroundTasks,
    user: UtenteCorrente = Depends(get_current_user),
    repo: RepositorioFatture = Depends(get_repo_fatture),
    riconciliazione: ServizioRiconciliazione = Depends(get_servizio_riconciliazione),
    notificatore: NotificatoreErrori = Depends(get_notificatore_errori),
):
    # La notifica parte dopo la risposta: un invio lento o fallito non la ritarda
    servizio = ServizioSegnalazioneErrori(repo, riconciliazione, notificatore, dispatch=background_tasks.add_task)
    try:
        _carica_fattura(repo, id_fattura, user)
        return servizio.report_error(id_fattura, payload.data_consegna, payload.righe, payload.note, user.email)
    except ErroreDominio as e:
        raise handle_domain_error(e, f"segnalazione errori fattura {id_fattura}")
    except HTTPException:
        raise
    except Exception as e:
        raise handle_error(e, f"segnalazione errori fattura {id_fattura}", "Errore nella segnalazione")


@router.get("/fatture/{id_fattura}/righe-ddt")
def righe_ddt_fattura(
    id_fattura: str,
    user: UtenteCorrente = Depends(get_current_user),
    repo: RepositorioFatture = Depends(get_repo_fatture),
):
    try:
        fattura = _carica_fattura(repo, id_fattura, user)
        return {"id": fattura.id, "numero": fattura.numero, **_risultato_ddt(fattura.testo_ddt)}
    except ErroreDominio as e:
        raise handle_domain_error(e, f"righe DDT fattura {id_fattura}")
    except HTTPException:
        raise
    except Exception as e:
        raise handle_error(e, f"righe DDT fattura {id_fattura}")


@router.get("/fatture/{id_fattura}/storico")
def storico_fattura(
    id_fattura: str,
    user: UtenteCorrente = Depends(get_current_user),
    repo: RepositorioFatture = Depends(get_repo_fatture),
):
    try:
        fattura = _carica_fattura(repo, id_fattura, user)
        modifiche = storico_modifiche.decode(fattura.storico_modifiche)
        return {"id": fattura.id, "totale": len(modifiche), "modifiche": [m.model_dump() for m in modifiche]}
    except ErroreDominio as e:
        raise handle_domain_error(e, f"storico fattura {id_fattura}")
    except HTTPException:
        raise
    except Exception as e:
        raise handle_error(e, f"storico fattura {id_fattura}")


@router.post("/ddt/parse")
def analizzare_ddt(payload: TestoDDTIn, user: UtenteCorrente = Depends(get_current_user)):
    return _risultato_ddt(payload.testo, strict=payload.strict)
