import threading
from concurrent.futures import ThreadPoolExecutor

import pytest

from app.config import sheets


class ClientFinto:
    def spreadsheets(self):
        return self

    def values(self):
        return self


@pytest.fixture
def client_costruiti(monkeypatch):
    costruiti = []

    def build_finto(nome, versione, credentials, cache_discovery):
        client = ClientFinto()
        costruiti.append(client)
        return client

    monkeypatch.setattr(sheets, "get_google_credentials", lambda: "credenziali")
    monkeypatch.setattr(sheets, "build", build_finto)
    monkeypatch.setattr(sheets, "_locale", threading.local())
    return costruiti


def test_stesso_client_nello_stesso_thread(client_costruiti):
    assert sheets.get_sheets_service() is sheets.get_sheets_service()
    assert len(client_costruiti) == 1


def test_ogni_thread_ha_il_suo_client(client_costruiti):
    principale = sheets.get_sheets_service()
    with ThreadPoolExecutor(max_workers=1) as pool:
        altro = pool.submit(sheets.get_sheets_service).result()

    assert altro is not principale
    assert len(client_costruiti) == 2


def test_foglio_condiviso_usa_il_client_del_thread_chiamante(client_costruiti):
    foglio = sheets.FoglioGoogle(sheets.get_sheets_service, "sheet-id", "Fatture")

    nel_principale = foglio._values()
    with ThreadPoolExecutor(max_workers=1) as pool:
        nel_worker = pool.submit(foglio._values).result()

    assert nel_principale is not nel_worker
    assert nel_principale is foglio._values()
