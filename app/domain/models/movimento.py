from pydantic import BaseModel

from app.domain.constants import COLONNE_MOVIMENTAZIONI, STATO_MOVIMENTO_IN_CORSO


class Movimento(BaseModel):
    id: str
    data_movimento: str = ""
    timestamp: str = ""
    origine: str = ""
    codice_origine: str = ""
    prodotto: str = ""
    quantita: str = ""
    unita_misura: str = ""
    destinazione: str = ""
    codice_destinazione: str = ""
    stato: str = STATO_MOVIMENTO_IN_CORSO
    txt_content: str = ""
    txt_filename: str = ""
    creato_da: str = ""
    ddt_number: str = ""

    @classmethod
    def from_row(cls, riga) -> "Movimento":
        valori = {col: (riga.get(col) or "") for col in COLONNE_MOVIMENTAZIONI}
        valori["stato"] = valori["stato"] or STATO_MOVIMENTO_IN_CORSO
        return cls(**valori)
