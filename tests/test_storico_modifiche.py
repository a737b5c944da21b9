import json
import re
from datetime import datetime

from app.services import storico_modifiche


def test_decode_vuoto_e_corrotto():
    assert storico_modifiche.decode(None) == []
    assert storico_modifiche.decode("   ") == []
    assert storico_modifiche.decode("{non json") == []
    assert storico_modifiche.decode('{"campo": "note"}') == []


def test_append_aggiunge_in_coda_senza_toccare_le_voci_esistenti():
    raw = storico_modifiche.append("", "note", "", "Scatola danneggiata", "op@pizzeria.it")
    raw = storico_modifiche.append(raw, "data_consegna", "2024-01-15", "2024-01-16", "admin@pizzeria.it")

    voci = storico_modifiche.decode(raw)
    assert [v.campo for v in voci] == ["note", "data_consegna"]
    assert voci[0].valore_precedente == ""
    assert voci[0].valore_nuovo == "Scatola danneggiata"
    assert voci[0].modificato_da == "op@pizzeria.it"
    assert voci[1].valore_precedente == "2024-01-15"
    assert re.match(r"\d{2}/\d{2}/\d{4}, \d{2}:\d{2}:\d{2}$", voci[1].data_modifica)
    assert datetime.fromisoformat(voci[1].timestamp)


def test_append_valori_mancanti_diventano_stringa_vuota():
    raw = storico_modifiche.append(None, "note", None, None, None)
    voce = json.loads(raw)[0]
    assert voce["valore_precedente"] == ""
    assert voce["valore_nuovo"] == ""
    assert voce["modificato_da"] == ""


def test_append_su_storico_corrotto_riparte_da_lista_vuota():
    raw = storico_modifiche.append("not-json", "note", "a", "b", "x@y.it")
    assert len(storico_modifiche.decode(raw)) == 1


def test_append_many_mantiene_l_ordine():
    raw = storico_modifiche.append("", "stato", "pending", "consegnato", "a@b.it")
    raw = storico_modifiche.append_many(raw, [("note", "", "n1"), ("item_noconv", "", "x")], "a@b.it")
    assert [v.campo for v in storico_modifiche.decode(raw)] == ["stato", "note", "item_noconv"]


def test_format_date_it():
    assert storico_modifiche.format_date_it(datetime(2024, 1, 5, 9, 3, 7)) == "05/01/2024, 09:03:07"
