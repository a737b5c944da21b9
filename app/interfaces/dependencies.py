from fastapi import Depends

from app.config.sheets import get_directory_txt, get_fatture_store, get_movimenti_store, get_negozi_directory
from app.infrastructure.directory_locale import DirectoryLocale
from app.infrastructure.repositorio_fatture import RepositorioFatture
from app.infrastructure.repositorio_movimentazioni import RepositorioMovimentazioni
from app.services.file_txt import GestoreFileTxt
from app.services.movimentazioni import ServizioMovimentazioni
from app.services.negozi import DirectoryNegozi
from app.services.notificatore_errori import NotificatoreErrori
from app.services.riconciliazione import ServizioRiconciliazione


# Dependency per i repository
def get_repo_fatture(store=Depends(get_fatture_store)):
    return RepositorioFatture(store)


def get_repo_movimentazioni(store=Depends(get_movimenti_store)):
    return RepositorioMovimentazioni(store)


def get_gestore_txt(
    directory: DirectoryLocale = Depends(get_directory_txt),
    negozi: DirectoryNegozi = Depends(get_negozi_directory),
):
    return GestoreFileTxt(directory, negozi)


def get_servizio_riconciliazione(
    repo: RepositorioFatture = Depends(get_repo_fatture),
    gestore: GestoreFileTxt = Depends(get_gestore_txt),
):
    return ServizioRiconciliazione(repo, gestore)


def get_notificatore_errori():
    return NotificatoreErrori()


def get_servizio_movimentazioni(
    repo_movimentazioni: RepositorioMovimentazioni = Depends(get_repo_movimentazioni),
    repo_fatture: RepositorioFatture = Depends(get_repo_fatture),
    negozi: DirectoryNegozi = Depends(get_negozi_directory),
):
    return ServizioMovimentazioni(repo_movimentazioni, repo_fatture, negozi)
