from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field
from typing import List, Optional
import logging

from app.auth.dependencies import UtenteCorrente, get_current_user
from app.domain.exceptions import ErroreDominio
from app.domain.models.movimento import Movimento
from app.infrastructure.repositorio_movimentazioni import RepositorioMovimentazioni
from app.interfaces.dependencies import get_repo_movimentazioni, get_servizio_movimentazioni
from app.services.movimentazioni import RigaTrasferimento, ServizioMovimentazioni
from app.utils.error_handlers import handle_domain_error, handle_error

router = APIRouter(prefix="/api", tags=["Movimentazioni"])

logger = logging.getLogger("movimentazioni")


class RigaTrasferimentoIn(BaseModel):
    prodotto: str
    quantita: float = Field(..., gt=0)
    unita_misura: str = "PZ"
    codice: str = ""


class TrasferimentoIn(BaseModel):
    destinazione: str = Field(..., description="Punto vendita di destinazione")
    origine: Optional[str] = Field(None, description="Solo admin: punto vendita di origine")
    righe: List[RigaTrasferimentoIn] = Field(default_factory=list)


@router.get("/movimentazioni", response_model=List[Movimento])
def listar_movimentazioni(
    user: UtenteCorrente = Depends(get_current_user),
    repo: RepositorioMovimentazioni = Depends(get_repo_movimentazioni),
):
    try:
        return repo.listar(punto_vendita=None if user.is_admin else user.punto_vendita)
    except ErroreDominio as e:
        raise handle_domain_error(e, "elenco movimentazioni")
    except Exception as e:
        raise handle_error(e, "elenco movimentazioni", "Errore nel caricamento delle movimentazioni")


@router.post("/movimentazioni", status_code=status.HTTP_201_CREATED)
def creare_movimentazioni(
    payload: TrasferimentoIn,
    user: UtenteCorrente = Depends(get_current_user),
    servizio: ServizioMovimentazioni = Depends(get_servizio_movimentazioni),
):
    origine = payload.origine if user.is_admin and payload.origine else user.punto_vendita
    if not origine:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Punto vendita di origine non definito")
    righe = [
        RigaTrasferimento(prodotto=r.prodotto, quantita=r.quantita, unita_misura=r.unita_misura, codice=r.codice)
        for r in payload.righe
    ]
    try:
        return servizio.crea_movimentazioni(origine, payload.destinazione, righe, user.email)
    except ErroreDominio as e:
        raise handle_domain_error(e, "creazione movimentazioni")
    except Exception as e:
        raise handle_error(e, "creazione movimentazioni", "Errore nel salvataggio delle movimentazioni")
