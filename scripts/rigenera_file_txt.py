#!/usr/bin/env python3
"""Script CLI per rigenerare i file TXT delle fatture consegnate.

Serve per il ripristino manuale quando una sostituzione si è interrotta a
metà (nessun file o due file attivi per la stessa fattura).
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from dotenv import load_dotenv


def _configure_paths() -> None:
    """Aggiunge la radice del backend a `sys.path` per importare `app.*`."""
    root = Path(__file__).resolve().parents[1]
    if str(root) not in sys.path:
        sys.path.insert(0, str(root))


_configure_paths()

from app.config.sheets import get_directory_txt, get_fatture_store, get_negozi_directory  # noqa: E402
from app.domain.constants import STATO_CONSEGNATO  # noqa: E402
from app.infrastructure.repositorio_fatture import RepositorioFatture  # noqa: E402
from app.services.file_txt import GestoreFileTxt  # noqa: E402


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Rigenera i file TXT di tutte le fatture consegnate con contenuto."
    )
    parser.add_argument(
        "--numero",
        dest="numero",
        help="Rigenera solo la fattura con questo numero documento.",
    )
    parser.add_argument(
        "--log-level",
        dest="log_level",
        default="INFO",
        help="Livello di logging (DEBUG, INFO, WARNING, ERROR).",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Mostra quali file verrebbero scritti senza toccare la cartella.",
    )
    return parser.parse_args(argv)


def rigenera(repo: RepositorioFatture, gestore: GestoreFileTxt, numero: str | None = None, dry_run: bool = False) -> int:
    """Rigenera i file e restituisce quante fatture sono state elaborate."""
    fatture = [
        f for f in repo.listar(stato=STATO_CONSEGNATO)
        if f.txt.strip() and (not numero or f.numero == numero)
    ]
    logging.info("Fatture consegnate con contenuto TXT: %s", len(fatture))

    elaborate = 0
    for fattura in fatture:
        if dry_run:
            logging.info(
                "SIMULAZIONE -> fattura=%s | file=%s | esistenti=%s",
                fattura.id,
                gestore.filename_per(fattura),
                gestore.file_della_fattura(fattura.numero),
            )
        else:
            esito = gestore.genera(fattura, is_modification=True)
            logging.info("Fattura %s -> %s", fattura.id, esito.filename or esito.motivo)
        elaborate += 1
    return elaborate


def main(argv=None) -> int:
    load_dotenv()
    args = parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.log_level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s - %(message)s",
    )

    try:
        repo = RepositorioFatture(get_fatture_store())
        gestore = GestoreFileTxt(get_directory_txt(), get_negozi_directory())
        totale = rigenera(repo, gestore, numero=args.numero, dry_run=args.dry_run)
        if args.dry_run:
            logging.info("Simulazione completata. Fatture da rigenerare: %s", totale)
        else:
            logging.info("File TXT rigenerati: %s", totale)
        return 0
    except Exception:
        logging.exception("Errore nella rigenerazione dei file TXT")
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
