from datetime import datetime
from io import BytesIO
from typing import List, Optional

import openpyxl
from openpyxl.styles import Alignment, Font, PatternFill
from openpyxl.utils import get_column_letter

from app.domain.models.fattura import Fattura

COLONNE_EXPORT = [
    ("Numero", "numero", 18),
    ("Data emissione", "data_emissione", 15),
    ("Fornitore", "fornitore", 30),
    ("Punto vendita", "punto_vendita", 22),
    ("Totale", "totale", 12),
    ("Stato", "stato", 13),
    ("Data consegna", "data_consegna", 15),
    ("Confermato da", "confermato_da", 28),
    ("Note", "note", 40),
]


class EsportaFattureExcel:
    def __init__(self, fatture: List[Fattura]):
        self.fatture = fatture

    def execute(self, generato_il: Optional[datetime] = None) -> bytes:
        """Cartella di lavoro .xlsx con una riga per fattura e la colonna errori."""
        generato_il = generato_il or datetime.now()
        wb = openpyxl.Workbook()
        ws = wb.active
        ws.title = "Fatture"

        header_fill = PatternFill(start_color="B71C1C", end_color="B71C1C", fill_type="solid")
        header_font = Font(bold=True, color="FFFFFF", size=11)
        errori_fill = PatternFill(start_color="FFEBEE", end_color="FFEBEE", fill_type="solid")

        ws["A1"] = f"Esportazione fatture del {generato_il.strftime('%d/%m/%Y %H:%M:%S')}"
        ws["A1"].font = Font(size=10, italic=True)

        intestazioni = [titolo for titolo, _, _ in COLONNE_EXPORT] + ["Errori"]
        for col, titolo in enumerate(intestazioni, start=1):
            cella = ws.cell(row=3, column=col, value=titolo)
            cella.fill = header_fill
            cella.font = header_font
            cella.alignment = Alignment(horizontal="center", vertical="center")

        for riga, fattura in enumerate(self.fatture, start=4):
            for col, (_, campo, _) in enumerate(COLONNE_EXPORT, start=1):
                ws.cell(row=riga, column=col, value=getattr(fattura, campo))
            stato_errori = fattura.stato_errori
            cella_errori = ws.cell(row=riga, column=len(COLONNE_EXPORT) + 1, value=stato_errori.tipo.value)
            if stato_errori.ha_errori:
                cella_errori.fill = errori_fill

        for col, (_, _, larghezza) in enumerate(COLONNE_EXPORT, start=1):
            ws.column_dimensions[get_column_letter(col)].width = larghezza
        ws.column_dimensions[get_column_letter(len(COLONNE_EXPORT) + 1)].width = 14
        ws.freeze_panes = "A4"

        output = BytesIO()
        wb.save(output)
        return output.getvalue()
