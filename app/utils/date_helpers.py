"""
Validazione delle date ricevute dal frontend o lette dal foglio.
"""
from datetime import date, datetime
from typing import Optional

from app.domain.exceptions import ValidationError

FORMATI_DATA = ("%Y-%m-%d", "%d/%m/%Y", "%Y-%m-%dT%H:%M:%S")


def parse_data(valore: Optional[str]) -> Optional[date]:
    """
    Interpreta una data in formato ISO (YYYY-MM-DD) o italiano (DD/MM/YYYY).

    Returns:
        date o None se il valore è vuoto o non interpretabile
    """
    if not valore or not str(valore).strip():
        return None
    testo = str(valore).strip()
    for fmt in FORMATI_DATA:
        try:
            return datetime.strptime(testo, fmt).date()
        except ValueError:
            continue
    return None


def validate_data_consegna(valore: Optional[str], oggi: Optional[date] = None) -> str:
    """
    Valida la data di consegna e la restituisce in formato YYYY-MM-DD.

    Raises:
        ValidationError se manca, non è una data valida o è nel futuro
    """
    if not valore or not str(valore).strip():
        raise ValidationError("La data di consegna è obbligatoria", "data_consegna")
    data = parse_data(valore)
    if data is None:
        raise ValidationError("Formato data non valido", "data_consegna")
    if data > (oggi or date.today()):
        raise ValidationError("La data di consegna non può essere nel futuro", "data_consegna")
    return data.isoformat()
