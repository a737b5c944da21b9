import pytest
from fastapi.testclient import TestClient

from app.auth.utenti import DirectoryUtenti, Utente, get_directory_utenti, hash_password
from app.config.sheets import get_directory_txt, get_fatture_store, get_movimenti_store, get_negozi_directory
from app.domain.constants import COLONNE_FATTURE, COLONNE_MOVIMENTAZIONI
from app.infrastructure.directory_locale import DirectoryLocale
from app.infrastructure.repositorio_fatture import RepositorioFatture
from app.interfaces.dependencies import get_notificatore_errori
from app.services.file_txt import GestoreFileTxt
from app.services.negozi import DirectoryNegozi, Negozio
from app.services.riconciliazione import ServizioRiconciliazione
from fakes import FakeStore, NotificatoreFinto, fattura_dati
from main import app


@pytest.fixture
def negozi():
    return DirectoryNegozi([
        Negozio(nome="Store X", codice="SX01", citta="Milano"),
        Negozio(nome="Pizzeria Centro", codice="PC02", citta="Torino"),
    ])


@pytest.fixture
def directory(tmp_path):
    return DirectoryLocale(tmp_path / "txt-files")


@pytest.fixture
def gestore(directory, negozi):
    return GestoreFileTxt(directory, negozi)


@pytest.fixture
def store_fatture():
    return FakeStore(COLONNE_FATTURE, [fattura_dati()])


@pytest.fixture
def store_movimenti():
    return FakeStore(COLONNE_MOVIMENTAZIONI)


@pytest.fixture
def repo_fatture(store_fatture):
    return RepositorioFatture(store_fatture)


@pytest.fixture
def riconciliazione(repo_fatture, gestore):
    return ServizioRiconciliazione(repo_fatture, gestore)


@pytest.fixture(scope="session")
def utenti():
    password = hash_password("segreta")
    return DirectoryUtenti([
        Utente(email="op@pizzeria.it", password_hash=password, nome="Operatore", ruolo="operatore", punto_vendita="Store X"),
        Utente(email="admin@pizzeria.it", password_hash=password, nome="Admin", ruolo="admin"),
    ])


@pytest.fixture
def notificatore():
    return NotificatoreFinto()


@pytest.fixture
def client(store_fatture, store_movimenti, directory, negozi, utenti, notificatore):
    app.dependency_overrides[get_fatture_store] = lambda: store_fatture
    app.dependency_overrides[get_movimenti_store] = lambda: store_movimenti
    app.dependency_overrides[get_directory_txt] = lambda: directory
    app.dependency_overrides[get_negozi_directory] = lambda: negozi
    app.dependency_overrides[get_directory_utenti] = lambda: utenti
    app.dependency_overrides[get_notificatore_errori] = lambda: notificatore
    yield TestClient(app)
    app.dependency_overrides.clear()
