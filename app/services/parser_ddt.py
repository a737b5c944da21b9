"""
Parser delle righe del documento di trasporto (DDT).

Sono supportati due formati di riga:

  A) separato da pipe:      ``codice | prodotto | unità | quantità``
  B) underscore e trattino: ``codice_prodotto - quantità unità``

Una riga non riconosciuta non interrompe mai il parsing del documento:
viene scartata, registrata nei log e conteggiata.
"""
import logging
import math
from typing import Iterable, Iterator, List, Optional

from app.config import settings
from app.domain.models.ddt import RigaDDT

logger = logging.getLogger(__name__)

SEPARATORE_PIPE = "|"
SEPARATORE_TRATTINO = " - "


def _parse_float(valore: str) -> float:
    """Converte una quantità testuale; accetta la virgola decimale. NaN se non numerica."""
    testo = (valore or "").strip().replace(",", ".")
    if not testo:
        return math.nan
    try:
        return float(testo)
    except ValueError:
        return math.nan


def _parse_pipe(riga: str, numero_riga: int, strict: bool) -> Optional[RigaDDT]:
    campi = [c.strip() for c in riga.split(SEPARATORE_PIPE)]
    if len(campi) != 4:
        return None
    codice, prodotto, unita, quantita_raw = campi
    quantita = _parse_float(quantita_raw)
    if strict and not math.isfinite(quantita):
        return None
    return RigaDDT(
        numero_riga=numero_riga,
        codice=codice,
        prodotto=prodotto,
        unita_misura=unita,
        quantita=quantita,
        riga_originale=riga,
    )


def _parse_underscore(riga: str, numero_riga: int) -> Optional[RigaDDT]:
    if "_" not in riga or SEPARATORE_TRATTINO not in riga:
        return None
    sinistra, destra = riga.split(SEPARATORE_TRATTINO, 1)
    if "_" not in sinistra:
        return None
    codice, prodotto = sinistra.split("_", 1)
    token = destra.split()
    if len(token) < 2:
        return None
    quantita = _parse_float(token[0])
    if not math.isfinite(quantita):
        return None
    return RigaDDT(
        numero_riga=numero_riga,
        codice=codice.strip(),
        prodotto=prodotto.strip(),
        unita_misura=token[-1],
        quantita=quantita,
        riga_originale=riga,
    )


def parse_ddt_line(riga: str, numero_riga: int = 1, strict: Optional[bool] = None) -> Optional[RigaDDT]:
    """
    Interpreta una singola riga di DDT.

    Args:
        riga: testo della riga (viene comunque ripulito dagli spazi)
        numero_riga: numero 1-based della riga nel documento originale
        strict: se True, le righe con pipe e quantità non numerica sono scartate;
            se None si usa l'impostazione DDT_STRICT_QUANTITY

    Returns:
        RigaDDT oppure None se la riga non corrisponde a nessun formato
    """
    testo = (riga or "").strip()
    if not testo:
        return None
    if strict is None:
        strict = settings.get_ddt_strict_quantity()

    if SEPARATORE_PIPE in testo:
        risultato = _parse_pipe(testo, numero_riga, strict)
        if risultato is not None:
            return risultato
    return _parse_underscore(testo, numero_riga)


class DocumentoDDT:
    """Risultato del parsing di un testo DDT.

    L'iterazione rilegge ogni volta il testo: l'oggetto è riutilizzabile e
    non conserva stato tra un'iterazione e l'altra.
    """

    def __init__(self, testo: Optional[str], strict: Optional[bool] = None):
        self.testo = testo or ""
        self.strict = settings.get_ddt_strict_quantity() if strict is None else strict

    def _candidati(self) -> Iterator[tuple[int, str]]:
        for numero, riga in enumerate(self.testo.splitlines(), start=1):
            riga = riga.strip()
            if riga:
                yield numero, riga

    def __iter__(self) -> Iterator[RigaDDT]:
        for numero, riga in self._candidati():
            parsed = parse_ddt_line(riga, numero, strict=self.strict)
            if parsed is not None:
                yield parsed

    @property
    def righe(self) -> List[RigaDDT]:
        return list(self)

    @property
    def numeri_scartati(self) -> List[int]:
        return [
            numero for numero, riga in self._candidati()
            if parse_ddt_line(riga, numero, strict=self.strict) is None
        ]

    @property
    def righe_scartate(self) -> int:
        return len(self.numeri_scartati)


def parse_ddt(testo: Optional[str], strict: Optional[bool] = None) -> DocumentoDDT:
    """Interpreta un intero testo DDT; le righe scartate vengono registrate nei log."""
    documento = DocumentoDDT(testo, strict=strict)
    scartate = documento.numeri_scartati
    if scartate:
        logger.warning("DDT: %d righe non riconosciute (righe %s)", len(scartate), scartate)
    return documento


def _formatta_quantita(quantita: float) -> str:
    if math.isnan(quantita):
        return "NaN"
    if math.isfinite(quantita) and quantita == int(quantita):
        return str(int(quantita))
    return repr(quantita)


def reconstruct_raw(righe: Iterable[RigaDDT]) -> str:
    """Ricostruisce un testo DDT (formato con pipe) a partire dalle righe interpretate."""
    return "\n".join(
        f"{r.codice} | {r.prodotto} | {r.unita_misura} | {_formatta_quantita(r.quantita)}"
        for r in righe
    )
