"""
Utilità per formattare i dati delle fatture nelle risposte API.
"""
from typing import Dict, Any, List, Optional

from app.domain.models.errori import errori_consegna_as_dict
from app.domain.models.fattura import Fattura
from app.services import storico_modifiche
from app.services.file_txt import appartiene_a


def format_fattura(fattura: Fattura) -> Dict[str, Any]:
    """
    Converte una Fattura nel formato di FatturaOut.

    Args:
        fattura: fattura letta dal foglio

    Returns:
        Dizionario con i campi derivati (consegnata, ha_errori, stato_errori)
    """
    stato_errori = fattura.stato_errori
    return {
        "id": fattura.id,
        "numero": fattura.numero,
        "fornitore": fattura.fornitore,
        "data_emissione": fattura.data_emissione,
        "punto_vendita": fattura.punto_vendita,
        "codice_fornitore": fattura.codice_fornitore,
        "stato": fattura.stato,
        "consegnata": fattura.consegnata,
        "data_consegna": fattura.data_consegna or None,
        "confermato_da": fattura.confermato_da or None,
        "testo_ddt": fattura.testo_ddt,
        "note": fattura.note,
        "item_noconv": fattura.item_noconv,
        "errori_consegna": errori_consegna_as_dict(fattura.errori_consegna),
        "ha_errori": stato_errori.ha_errori,
        "stato_errori": stato_errori.tipo.value,
        "totale": fattura.totale,
        "numero_modifiche": len(storico_modifiche.decode(fattura.storico_modifiche)),
    }


def fattura_per_file(fatture: List[Fattura], filename: str) -> Optional[Fattura]:
    """Fattura a cui appartiene un file TXT, in base al numero che precede la data nel nome."""
    return next((f for f in fatture if appartiene_a(filename, f.numero)), None)
