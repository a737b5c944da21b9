import json
from datetime import date, timedelta

import pytest

from app.domain.exceptions import NotFound, ValidationError
from app.services import storico_modifiche
from fakes import file_attivi, file_backup


def test_conferma_fattura_pending(riconciliazione, store_fatture, directory):
    esito = riconciliazione.confirm("F1", "2024-01-15", "op@pizzeria.it")

    riga = store_fatture.riga("F1")
    assert riga["stato"] == "consegnato"
    assert riga["data_consegna"] == "2024-01-15"
    assert riga["confermato_da"] == "op@pizzeria.it"
    assert riga["storico_modifiche"] == ""
    assert esito.diventata_consegnata
    assert esito.modifiche == []
    assert esito.file_txt.filename == "1001_2024-01-15_Acme_SX01.txt"
    assert file_attivi(directory) == ["1001_2024-01-15_Acme_SX01.txt"]


def test_conferma_accetta_data_italiana_e_nota(riconciliazione, store_fatture):
    riconciliazione.confirm("F1", "15/01/2024", "op@pizzeria.it", note="  consegna parziale ")
    riga = store_fatture.riga("F1")
    assert riga["data_consegna"] == "2024-01-15"
    assert riga["note"] == "consegna parziale"


def test_modifica_dopo_la_consegna_registra_lo_storico(riconciliazione, store_fatture, directory):
    riconciliazione.confirm("F1", "2024-01-15", "op@pizzeria.it")

    esito = riconciliazione.update("F1", {"note": "Box damaged"}, "admin@pizzeria.it")

    voci = storico_modifiche.decode(store_fatture.riga("F1")["storico_modifiche"])
    assert len(voci) == 1
    assert voci[0].campo == "note"
    assert voci[0].valore_precedente == ""
    assert voci[0].valore_nuovo == "Box damaged"
    assert voci[0].modificato_da == "admin@pizzeria.it"

    assert esito.file_txt.filename == "1001_2024-01-15_Acme_SX01_ERRORI.txt"
    assert file_attivi(directory) == ["1001_2024-01-15_Acme_SX01_ERRORI.txt"]
    backup = file_backup(directory)
    assert len(backup) == 1
    assert backup[0].startswith("REPLACED_1001_2024-01-15_Acme_SX01.txt")


def test_lo_storico_cresce_solo_in_coda(riconciliazione, store_fatture):
    riconciliazione.confirm("F1", "2024-01-15", "op@pizzeria.it")
    viste = []
    for i in range(4):
        riconciliazione.update("F1", {"note": f"nota {i}"}, "op@pizzeria.it")
        viste.append(storico_modifiche.decode(store_fatture.riga("F1")["storico_modifiche"]))

    for prima, dopo in zip(viste, viste[1:]):
        assert len(dopo) == len(prima) + 1
        assert dopo[:len(prima)] == prima
    assert [v.valore_nuovo for v in viste[-1]] == ["nota 0", "nota 1", "nota 2", "nota 3"]
    assert viste[-1][2].valore_precedente == "nota 1"


def test_aggiornamento_senza_cambiamenti_non_registra_nulla(riconciliazione, store_fatture, directory):
    riconciliazione.confirm("F1", "2024-01-15", "op@pizzeria.it", note="ok")
    prima = list(directory.list())

    esito = riconciliazione.update("F1", {"note": "ok", "stato": "consegnato"}, "op@pizzeria.it")

    assert esito.modifiche == []
    assert esito.file_txt is None
    assert store_fatture.riga("F1")["storico_modifiche"] == ""
    assert directory.list() == prima


def test_modifiche_su_fattura_pending_non_finiscono_nello_storico(riconciliazione, store_fatture, directory):
    esito = riconciliazione.update("F1", {"note": "da verificare"}, "op@pizzeria.it")

    assert store_fatture.riga("F1")["note"] == "da verificare"
    assert store_fatture.riga("F1")["storico_modifiche"] == ""
    assert esito.file_txt is None
    assert directory.list() == []


def test_fattura_consegnata_non_torna_pending(riconciliazione, store_fatture):
    riconciliazione.confirm("F1", "2024-01-15", "op@pizzeria.it")
    salvataggi = store_fatture.salvataggi

    with pytest.raises(ValidationError) as exc:
        riconciliazione.update("F1", {"stato": "pending"}, "op@pizzeria.it")

    assert exc.value.field == "stato"
    assert store_fatture.salvataggi == salvataggi


def test_data_futura_rifiutata(riconciliazione, store_fatture):
    domani = (date.today() + timedelta(days=1)).isoformat()
    with pytest.raises(ValidationError) as exc:
        riconciliazione.confirm("F1", domani, "op@pizzeria.it")
    assert exc.value.field == "data_consegna"
    assert store_fatture.riga("F1")["stato"] == "pending"


@pytest.mark.parametrize("updates", [{}, {"numero": "999"}, {"stato": "annullato"}])
def test_aggiornamenti_non_validi(riconciliazione, updates):
    with pytest.raises(ValidationError):
        riconciliazione.update("F1", updates, "op@pizzeria.it")


def test_errore_file_txt_non_blocca_l_aggiornamento(riconciliazione, gestore, store_fatture, monkeypatch):
    def genera_fallito(fattura, is_modification=False):
        raise OSError("disco pieno")

    monkeypatch.setattr(gestore, "genera", genera_fallito)

    esito = riconciliazione.confirm("F1", "2024-01-15", "op@pizzeria.it")

    assert esito.file_txt is None
    assert store_fatture.riga("F1")["stato"] == "consegnato"


def test_fattura_inesistente(riconciliazione):
    with pytest.raises(NotFound):
        riconciliazione.confirm("NOPE", "2024-01-15", "op@pizzeria.it")


def test_id_vuoto(riconciliazione):
    with pytest.raises(ValidationError):
        riconciliazione.confirm("  ", "2024-01-15", "op@pizzeria.it")


def test_esito_serializzabile(riconciliazione):
    esito = riconciliazione.confirm("F1", "2024-01-15", "op@pizzeria.it")
    dati = esito.to_dict()
    assert dati["stato"] == "consegnato"
    assert dati["file_txt"]["filename"] == "1001_2024-01-15_Acme_SX01.txt"
    json.dumps(dati)
