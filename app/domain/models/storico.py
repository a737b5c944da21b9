from pydantic import BaseModel, ConfigDict


class ModificaStorico(BaseModel):
    """Una modifica a un campo della fattura, registrata dopo la consegna."""
    model_config = ConfigDict(frozen=True)

    timestamp: str
    campo: str
    valore_precedente: str = ""
    valore_nuovo: str = ""
    modificato_da: str = ""
    data_modifica: str = ""
