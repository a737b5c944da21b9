import time
from dataclasses import dataclass
from typing import Optional

import jwt
from fastapi import Depends, Header, HTTPException, status

from app.config.settings import get_jwt_expires_seconds, get_jwt_secret
from app.domain.constants import RUOLO_ADMIN


@dataclass(frozen=True)
class UtenteCorrente:
    email: str
    ruolo: str
    punto_vendita: str = ""
    nome: str = ""

    @property
    def is_admin(self) -> bool:
        return self.ruolo == RUOLO_ADMIN


def crea_token(email: str, ruolo: str, punto_vendita: str, nome: str = "") -> str:
    now = int(time.time())
    payload = {
        "sub": email,
        "email": email,
        "ruolo": ruolo,
        "punto_vendita": punto_vendita,
        "name": nome,
        "iss": "local",
        "iat": now,
        "exp": now + int(get_jwt_expires_seconds()),
    }
    return jwt.encode(payload, get_jwt_secret(), algorithm="HS256")


def get_current_user(authorization: Optional[str] = Header(default=None)) -> UtenteCorrente:
    """Utente corrente decodificato da Authorization: Bearer <jwt>."""
    if not authorization or not authorization.lower().startswith("bearer "):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Token non fornito")
    token = authorization.split(" ", 1)[1]
    try:
        data = jwt.decode(token, get_jwt_secret(), algorithms=["HS256"])
    except jwt.PyJWTError:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Token non valido o scaduto")
    return UtenteCorrente(
        email=data.get("email") or data.get("sub") or "",
        ruolo=data.get("ruolo") or "",
        punto_vendita=data.get("punto_vendita") or "",
        nome=data.get("name") or "",
    )


def require_admin(user: UtenteCorrente = Depends(get_current_user)) -> UtenteCorrente:
    if not user.is_admin:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Accesso negato: solo admin")
    return user
