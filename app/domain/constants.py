"""
Costanti del dominio dell'applicazione.
"""
from typing import List

# Stati della fattura
STATO_PENDING = 'pending'
STATO_CONSEGNATO = 'consegnato'

# Valori legacy presenti nel foglio prima della normalizzazione
STATI_CONSEGNATO_LEGACY = ['consegnato', 'Consegnato', 'TRUE', 'true']

# Ruoli utente
RUOLO_OPERATORE = 'operatore'
RUOLO_ADMIN = 'admin'

# Colonne del foglio fatture
COLONNE_FATTURE: List[str] = [
    'id',
    'numero',
    'fornitore',
    'data_emissione',
    'punto_vendita',
    'codice_fornitore',
    'stato',
    'data_consegna',
    'confermato_da',
    'txt',
    'testo_ddt',
    'note',
    'item_noconv',
    'errori_consegna',
    'storico_modifiche',
    'totale',
]

# Campi che l'utente può modificare con l'aggiornamento generico
CAMPI_MODIFICABILI = {
    'stato',
    'data_consegna',
    'confermato_da',
    'txt',
    'testo_ddt',
    'note',
    'item_noconv',
    'errori_consegna',
}

# Colonne del foglio movimentazioni
COLONNE_MOVIMENTAZIONI: List[str] = [
    'id',
    'data_movimento',
    'timestamp',
    'origine',
    'codice_origine',
    'prodotto',
    'quantita',
    'unita_misura',
    'destinazione',
    'codice_destinazione',
    'stato',
    'txt_content',
    'txt_filename',
    'creato_da',
    'ddt_number',
]

STATO_MOVIMENTO_IN_CORSO = 'in_corso'

# File TXT
ESTENSIONE_TXT = '.txt'
SUFFISSO_ERRORI = '_ERRORI'
CODICE_NEGOZIO_SCONOSCIUTO = 'UNKNOWN'
PREFISSO_BACKUP_SOSTITUITO = 'REPLACED_'
PREFISSO_BACKUP_ELIMINATO = 'DELETED_'
MARCATORE_BACKUP = '.backup.'

