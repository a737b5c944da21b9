import re
from datetime import datetime

import pytest

from app.domain.exceptions import ValidationError
from app.infrastructure.repositorio_movimentazioni import RepositorioMovimentazioni
from app.services.movimentazioni import RigaTrasferimento, ServizioMovimentazioni
from app.services.parser_ddt import parse_ddt


@pytest.fixture
def servizio(store_movimenti, repo_fatture, negozi):
    return ServizioMovimentazioni(RepositorioMovimentazioni(store_movimenti), repo_fatture, negozi)


def _righe():
    return [
        RigaTrasferimento(prodotto="Mozzarella fior di latte", quantita=4, unita_misura="KG"),
        RigaTrasferimento(prodotto="Farina 00", quantita=2.5, unita_misura="SAC", codice="F00"),
    ]


@pytest.mark.parametrize("origine,destinazione,righe", [
    ("", "Pizzeria Centro", _righe()),
    ("Store X", " ", _righe()),
    ("Store X", "Store X", _righe()),
    ("Store X", "Pizzeria Centro", []),
    ("Store X", "Pizzeria Centro", [RigaTrasferimento(prodotto="", quantita=1)]),
    ("Store X", "Pizzeria Centro", [RigaTrasferimento(prodotto="Olio", quantita=0)]),
])
def test_trasferimenti_non_validi(servizio, store_movimenti, store_fatture, origine, destinazione, righe):
    with pytest.raises(ValidationError):
        servizio.crea_movimentazioni(origine, destinazione, righe, "op@pizzeria.it")
    assert store_movimenti.dati == []
    assert len(store_fatture.dati) == 1


def test_numero_ddt(servizio):
    numero = servizio.genera_numero_ddt("SX01", datetime(2024, 3, 9, 14, 5, 7))
    assert numero == "TRF-20240309-140507-SX01"


def test_crea_movimentazioni_con_una_sola_scrittura(servizio, store_movimenti, store_fatture):
    risultato = servizio.crea_movimentazioni("Store X", "Pizzeria Centro", _righe(), "op@pizzeria.it")

    assert store_movimenti.scritture_append == 1
    assert len(store_movimenti.dati) == 2
    numero = risultato["ddt_number"]
    assert re.match(r"TRF-\d{8}-\d{6}-SX01$", numero)
    assert {m["ddt_number"] for m in store_movimenti.dati} == {numero}
    assert [m["id"] for m in store_movimenti.dati] == [f"{numero}-1", f"{numero}-2"]
    assert store_movimenti.dati[0]["codice_destinazione"] == "PC02"
    assert store_movimenti.dati[0]["stato"] == "in_corso"
    assert risultato["txt_filename"] == f"{numero}_Store_X_Pizzeria_Centro.txt"


def test_fattura_sintetica_per_la_destinazione(servizio, store_fatture):
    risultato = servizio.crea_movimentazioni("Store X", "Pizzeria Centro", _righe(), "op@pizzeria.it")

    assert risultato["fattura"]["creata"] is True
    fattura = store_fatture.riga(risultato["fattura"]["id"])
    assert fattura["numero"] == risultato["ddt_number"]
    assert fattura["fornitore"] == "Trasferimento da Store X"
    assert fattura["punto_vendita"] == "Pizzeria Centro"
    assert fattura["codice_fornitore"] == "SX01"
    assert fattura["stato"] == "pending"

    righe = parse_ddt(fattura["testo_ddt"], strict=False).righe
    assert [(r.codice, r.quantita, r.unita_misura) for r in righe] == [
        ("MOZZARELLA_F", 4, "KG"),
        ("F00", 2.5, "SAC"),
    ]


def test_stesso_numero_non_duplica_la_fattura(servizio, store_fatture):
    primo = servizio.crea_movimentazioni("Store X", "Pizzeria Centro", _righe(), "op@pizzeria.it", numero_ddt="TRF-X")
    secondo = servizio.crea_movimentazioni("Store X", "Pizzeria Centro", _righe(), "op@pizzeria.it", numero_ddt="TRF-X")

    assert primo["fattura"]["creata"] is True
    assert secondo["fattura"] == {"creata": False, "id": primo["fattura"]["id"]}
    assert len([d for d in store_fatture.dati if d["numero"] == "TRF-X"]) == 1


def test_listar_per_punto_vendita(servizio, store_movimenti):
    servizio.crea_movimentazioni("Store X", "Pizzeria Centro", _righe(), "op@pizzeria.it")
    repo = RepositorioMovimentazioni(store_movimenti)

    assert len(repo.listar(punto_vendita="Pizzeria Centro")) == 2
    assert len(repo.listar(punto_vendita="Store X")) == 2
    assert repo.listar(punto_vendita="Altro") == []
