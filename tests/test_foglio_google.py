import pytest

from app.domain.exceptions import UpstreamUnavailable, ValidationError
from app.infrastructure.foglio_google import FoglioGoogle, column_letter


class _Richiesta:
    def __init__(self, risultato):
        self._risultato = risultato

    def execute(self):
        if isinstance(self._risultato, Exception):
            raise self._risultato
        return self._risultato


class ValoriFinti:
    def __init__(self, righe):
        self.righe = righe
        self.chiamate = []

    def get(self, spreadsheetId, range):
        self.chiamate.append(("get", range))
        return _Richiesta({"values": self.righe})

    def update(self, spreadsheetId, range, valueInputOption, body):
        self.chiamate.append(("update", range, body["values"]))
        return _Richiesta({})

    def append(self, spreadsheetId, range, valueInputOption, insertDataOption, body):
        self.chiamate.append(("append", range, body["values"]))
        return _Richiesta({})


class ServizioFinto:
    def __init__(self, valori):
        self.valori = valori

    def spreadsheets(self):
        return self

    def values(self):
        return self.valori


@pytest.fixture
def valori():
    return ValoriFinti([["id", "numero", "note"], ["F1", "1001"], ["F2", "1002", "ok"]])


@pytest.fixture
def foglio(valori):
    return FoglioGoogle(lambda: ServizioFinto(valori), "sheet-id", "Fatture")


def test_column_letter():
    assert column_letter(1) == "A"
    assert column_letter(26) == "Z"
    assert column_letter(27) == "AA"


def test_righe_con_celle_mancanti(foglio):
    righe = foglio.get_rows()
    assert [r.numero_riga for r in righe] == [2, 3]
    assert righe[0].get("note") == ""
    assert righe[1].to_dict() == {"id": "F2", "numero": "1002", "note": "ok"}
    assert righe[0].get("colonna_assente") == ""


def test_salvataggio_riscrive_la_riga_intera(foglio, valori):
    riga = foglio.get_row(lambda r: r.get("id") == "F2")
    riga.set("note", "Box damaged")
    riga.save()

    assert valori.chiamate[-1] == ("update", "Fatture!A3:C3", [["F2", "1002", "Box damaged"]])


def test_colonna_sconosciuta(foglio):
    riga = foglio.get_rows()[0]
    with pytest.raises(ValidationError):
        riga.set("inesistente", "x")


def test_append_in_una_sola_chiamata(foglio, valori):
    foglio.append_rows([{"id": "F3", "numero": "1003"}, {"id": "F4", "note": None}])

    operazione, intervallo, righe = valori.chiamate[-1]
    assert operazione == "append"
    assert intervallo == "Fatture!A:C"
    assert righe == [["F3", "1003", ""], ["F4", "", ""]]


def test_errore_di_rete(valori):
    valori.get = lambda spreadsheetId, range: _Richiesta(OSError("timeout"))
    foglio = FoglioGoogle(lambda: ServizioFinto(valori), "sheet-id", "Fatture")
    with pytest.raises(UpstreamUnavailable):
        foglio.get_rows()
