from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from pydantic import BaseModel
from typing import Any, Dict, List, Optional
import logging

from app.auth.dependencies import UtenteCorrente, get_current_user
from app.config.sheets import get_negozi_directory
from app.domain.exceptions import ErroreDominio, UpstreamUnavailable
from app.domain.models.fattura import Fattura
from app.infrastructure.repositorio_fatture import RepositorioFatture
from app.interfaces.dependencies import get_gestore_txt, get_repo_fatture
from app.services.file_txt import GestoreFileTxt, is_backup, visibile_per
from app.services.negozi import DirectoryNegozi
from app.utils.error_handlers import handle_domain_error, handle_error
from app.utils.fattura_helpers import fattura_per_file

router = APIRouter(prefix="/api/txt-files", tags=["File TXT"])

logger = logging.getLogger("file_txt")


class ContenutoIn(BaseModel):
    content: str


def _codice_utente(user: UtenteCorrente, negozi: DirectoryNegozi) -> Optional[str]:
    """None per gli admin (nessun filtro), altrimenti il codice del negozio dell'operatore."""
    if user.is_admin:
        return None
    return negozi.codice_per(user.punto_vendita)


def _verifica_visibile(filename: str, codice: Optional[str]) -> None:
    if not visibile_per(filename, codice):
        # Stesso esito di un file inesistente
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="File non trovato")


def _fattura_del_file(repo: RepositorioFatture, filename: str) -> Optional[Fattura]:
    try:
        return fattura_per_file(repo.listar(), filename)
    except UpstreamUnavailable as e:
        logger.warning("Fattura del file %s non verificabile: %s", filename, e)
        return None


@router.get("", response_model=List[dict])
def listar_file(
    include_backup: bool = Query(False, description="Includi i file di backup"),
    user: UtenteCorrente = Depends(get_current_user),
    gestore: GestoreFileTxt = Depends(get_gestore_txt),
    negozi: DirectoryNegozi = Depends(get_negozi_directory),
):
    try:
        return gestore.elenco(include_backup=include_backup, codice_negozio=_codice_utente(user, negozi))
    except ErroreDominio as e:
        raise handle_domain_error(e, "elenco file TXT")
    except Exception as e:
        raise handle_error(e, "elenco file TXT", "Errore nella lettura dei file")


@router.get("/stats-by-date", response_model=Dict[str, Any])
def statistiche_per_data(
    user: UtenteCorrente = Depends(get_current_user),
    gestore: GestoreFileTxt = Depends(get_gestore_txt),
    negozi: DirectoryNegozi = Depends(get_negozi_directory),
):
    try:
        return gestore.statistiche_per_data(codice_negozio=_codice_utente(user, negozi))
    except ErroreDominio as e:
        raise handle_domain_error(e, "statistiche file TXT")
    except Exception as e:
        raise handle_error(e, "statistiche file TXT", "Errore nel calcolo delle statistiche")


@router.get("/download-by-date/{data}")
def scaricare_per_data(
    data: str,
    user: UtenteCorrente = Depends(get_current_user),
    gestore: GestoreFileTxt = Depends(get_gestore_txt),
    negozi: DirectoryNegozi = Depends(get_negozi_directory),
):
    try:
        filename = gestore.trova_per_data(data, codice_negozio=_codice_utente(user, negozi))
        if filename is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Nessun file trovato per questa data")
        return Response(
            content=gestore.directory.read(filename),
            media_type="text/plain; charset=utf-8",
            headers={"Content-Disposition": f'attachment; filename="{filename}"'},
        )
    except ErroreDominio as e:
        raise handle_domain_error(e, f"download file del {data}")
    except HTTPException:
        raise
    except Exception as e:
        raise handle_error(e, f"download file del {data}", "Errore nel download del file")


@router.get("/{filename}", response_model=Dict[str, Any])
def info_file(
    filename: str,
    user: UtenteCorrente = Depends(get_current_user),
    gestore: GestoreFileTxt = Depends(get_gestore_txt),
    negozi: DirectoryNegozi = Depends(get_negozi_directory),
):
    try:
        _verifica_visibile(filename, _codice_utente(user, negozi))
        return gestore.info(filename)
    except ErroreDominio as e:
        raise handle_domain_error(e, f"info file {filename}")
    except HTTPException:
        raise
    except Exception as e:
        raise handle_error(e, f"info file {filename}")


@router.get("/{filename}/content", response_model=Dict[str, Any])
def contenuto_file(
    filename: str,
    user: UtenteCorrente = Depends(get_current_user),
    gestore: GestoreFileTxt = Depends(get_gestore_txt),
    negozi: DirectoryNegozi = Depends(get_negozi_directory),
    repo: RepositorioFatture = Depends(get_repo_fatture),
):
    try:
        _verifica_visibile(filename, _codice_utente(user, negozi))
        if not gestore.directory.exists(filename):
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="File non trovato")
        fattura = None if is_backup(filename) else _fattura_del_file(repo, filename)
        letto = gestore.leggi(filename, fattura)
        return {
            "filename": letto.filename,
            "content": letto.content,
            "ha_errori": letto.ha_errori,
            "rinominato": letto.rinominato,
        }
    except ErroreDominio as e:
        raise handle_domain_error(e, f"contenuto file {filename}")
    except HTTPException:
        raise
    except Exception as e:
        raise handle_error(e, f"contenuto file {filename}")


@router.put("/{filename}/content", response_model=Dict[str, Any])
def modificare_file(
    filename: str,
    payload: ContenutoIn,
    user: UtenteCorrente = Depends(get_current_user),
    gestore: GestoreFileTxt = Depends(get_gestore_txt),
    negozi: DirectoryNegozi = Depends(get_negozi_directory),
):
    try:
        _verifica_visibile(filename, _codice_utente(user, negozi))
        if is_backup(filename):
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="I file di backup non sono modificabili")
        esito = gestore.modifica(filename, payload.content)
        logger.info("File %s modificato da %s", filename, user.email)
        return {"success": True, **esito}
    except ErroreDominio as e:
        raise handle_domain_error(e, f"modifica file {filename}")
    except HTTPException:
        raise
    except Exception as e:
        raise handle_error(e, f"modifica file {filename}", "Errore nella modifica del file")


@router.delete("/{filename}", response_model=Dict[str, Any])
def eliminare_file(
    filename: str,
    user: UtenteCorrente = Depends(get_current_user),
    gestore: GestoreFileTxt = Depends(get_gestore_txt),
    negozi: DirectoryNegozi = Depends(get_negozi_directory),
):
    try:
        _verifica_visibile(filename, _codice_utente(user, negozi))
        if is_backup(filename):
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="I file di backup non si eliminano")
        esito = gestore.elimina(filename)
        logger.info("File %s eliminato da %s", filename, user.email)
        return {"success": True, **esito}
    except ErroreDominio as e:
        raise handle_domain_error(e, f"eliminazione file {filename}")
    except HTTPException:
        raise
    except Exception as e:
        raise handle_error(e, f"eliminazione file {filename}", "Errore nell'eliminazione del file")
