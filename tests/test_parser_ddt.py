import logging
import math

from app.services.parser_ddt import DocumentoDDT, parse_ddt, parse_ddt_line, reconstruct_raw


def test_documento_con_due_formati_e_riga_non_riconosciuta(caplog):
    testo = "D7264 | BIB PEPSI COLA 33CL | KAR | 3\n19332_FETTINE CARCIOFO - 33 KG\nGARBAGE LINE"
    with caplog.at_level(logging.WARNING):
        documento = parse_ddt(testo, strict=False)
    righe = documento.righe

    assert [r.codice for r in righe] == ["D7264", "19332"]
    assert righe[0].prodotto == "BIB PEPSI COLA 33CL"
    assert righe[0].unita_misura == "KAR"
    assert righe[0].quantita == 3
    assert righe[1].prodotto == "FETTINE CARCIOFO"
    assert righe[1].quantita == 33
    assert righe[1].unita_misura == "KG"
    assert documento.numeri_scartati == [3]
    assert "righe non riconosciute" in caplog.text


def test_numeri_riga_riferiti_al_testo_originale():
    testo = "\nA1 | Uno | PZ | 1\n\n   \nB2 | Due | PZ | 2\n"
    righe = parse_ddt(testo, strict=False).righe
    assert [r.numero_riga for r in righe] == [2, 5]


def test_righe_non_valide_non_interrompono_il_parsing():
    valide = ["A1 | Uno | PZ | 1", "B2_Due - 2 KG", "C3 | Tre | CF | 4,5"]
    non_valide = ["solo testo", "X | Y | Z", "NOUNDERSCORE - 3 KG", "D4_Nome - abc KG"]
    testo = "\n".join([valide[0], non_valide[0], valide[1], non_valide[1], non_valide[2], valide[2], non_valide[3]])

    documento = parse_ddt(testo, strict=False)

    assert len(documento.righe) == 3
    assert documento.righe_scartate == 4
    assert documento.righe[2].quantita == 4.5


def test_documento_riutilizzabile():
    documento = DocumentoDDT("A1 | Uno | PZ | 1\nB2_Due - 2 KG", strict=False)
    assert list(documento) == list(documento)
    assert len(list(documento)) == 2


def test_underscore_nome_con_underscore_e_unita_ultima_parola():
    riga = parse_ddt_line("19332_FETTINE_DI CARCIOFO - 2,5 CONF DA 6", 7)
    assert riga.codice == "19332"
    assert riga.prodotto == "FETTINE_DI CARCIOFO"
    assert riga.quantita == 2.5
    assert riga.unita_misura == "6"
    assert riga.numero_riga == 7


def test_underscore_senza_unita_scartata():
    assert parse_ddt_line("19332_FETTINE - 33") is None


def test_pipe_quantita_non_numerica_lenient_e_strict():
    lenient = parse_ddt_line("D1 | Prodotto | PZ | n/d", strict=False)
    assert lenient is not None
    assert math.isnan(lenient.quantita)
    assert lenient.to_dict()["quantita"] is None

    assert parse_ddt_line("D1 | Prodotto | PZ | n/d", strict=True) is None


def test_pipe_richiede_quattro_campi():
    assert parse_ddt_line("D1 | Prodotto | PZ | 3 | extra", strict=False) is None


def test_riscrittura_e_nuovo_parsing_danno_le_stesse_righe():
    testo = "D7264 | BIB PEPSI COLA 33CL | KAR | 3\n19332_FETTINE CARCIOFO - 33 KG\nA9 | Mozzarella | KG | 2,5"
    prima = parse_ddt(testo, strict=False).righe
    dopo = parse_ddt(reconstruct_raw(prima), strict=False).righe

    def chiave(r):
        return (r.codice, r.prodotto, r.unita_misura, r.quantita)

    assert [chiave(r) for r in dopo] == [chiave(r) for r in prima]


def test_reconstruct_raw_quantita_intere_senza_decimali():
    righe = parse_ddt("A1 | Uno | PZ | 3\nB2_Due - 2,5 KG", strict=False).righe
    assert reconstruct_raw(righe) == "A1 | Uno | PZ | 3\nB2 | Due | KG | 2.5"


def test_quantita_infinita_resta_infinita_dopo_la_riscrittura():
    riga = parse_ddt_line("D1 | Prodotto | PZ | 1e400", strict=False)
    assert math.isinf(riga.quantita)

    testo = reconstruct_raw([riga])
    assert testo == "D1 | Prodotto | PZ | inf"
    assert math.isinf(parse_ddt_line(testo, strict=False).quantita)

    negativa = parse_ddt_line("D1 | Prodotto | PZ | -1e400", strict=False)
    assert reconstruct_raw([negativa]) == "D1 | Prodotto | PZ | -inf"


def test_quantita_non_numerica_riscritta_come_nan():
    riga = parse_ddt_line("D1 | Prodotto | PZ | n/d", strict=False)
    testo = reconstruct_raw([riga])
    assert testo == "D1 | Prodotto | PZ | NaN"
    assert math.isnan(parse_ddt_line(testo, strict=False).quantita)
