from dataclasses import dataclass, asdict
import math


@dataclass(frozen=True)
class RigaDDT:
    """
    Riga del documento di trasporto ricavata da testo_ddt.
    Non viene mai salvata: si ricalcola ogni volta dal testo.
    """
    numero_riga: int  # 1-based, riferito al testo originale
    codice: str
    prodotto: str
    unita_misura: str
    quantita: float
    riga_originale: str

    def to_dict(self) -> dict:
        dati = asdict(self)
        # NaN non è JSON valido
        if math.isnan(self.quantita):
            dati["quantita"] = None
        return dati
