from datetime import datetime
from pathlib import Path
from typing import Dict, List, Union

from app.domain.exceptions import NotFound, ValidationError


class DirectoryLocale:
    """Directory dei file TXT generati; opera solo su nomi semplici, mai su percorsi."""

    def __init__(self, base_path: Union[str, Path]):
        self.base_path = Path(base_path)

    def _percorso(self, nome: str) -> Path:
        if not nome or "/" in nome or "\\" in nome or nome in (".", ".."):
            raise ValidationError(f"Nome file non valido: {nome}", "filename")
        return self.base_path / nome

    def _ensure(self) -> None:
        self.base_path.mkdir(parents=True, exist_ok=True)

    def list(self) -> List[str]:
        self._ensure()
        return sorted(p.name for p in self.base_path.iterdir() if p.is_file())

    def exists(self, nome: str) -> bool:
        return self._percorso(nome).is_file()

    def read(self, nome: str) -> bytes:
        percorso = self._percorso(nome)
        if not percorso.is_file():
            raise NotFound(f"File non trovato: {nome}")
        return percorso.read_bytes()

    def write(self, nome: str, contenuto: bytes) -> None:
        self._ensure()
        self._percorso(nome).write_bytes(contenuto)

    def rename(self, vecchio: str, nuovo: str) -> None:
        origine = self._percorso(vecchio)
        if not origine.is_file():
            raise NotFound(f"File non trovato: {vecchio}")
        destinazione = self._percorso(nuovo)
        if destinazione.exists():
            raise FileExistsError(f"File già presente: {nuovo}")
        origine.rename(destinazione)

    def delete(self, nome: str) -> None:
        percorso = self._percorso(nome)
        if not percorso.is_file():
            raise NotFound(f"File non trovato: {nome}")
        percorso.unlink()

    def stat(self, nome: str) -> Dict[str, object]:
        percorso = self._percorso(nome)
        if not percorso.is_file():
            raise NotFound(f"File non trovato: {nome}")
        st = percorso.stat()
        return {
            "size": st.st_size,
            "created": datetime.fromtimestamp(st.st_ctime),
            "modified": datetime.fromtimestamp(st.st_mtime),
        }
