from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel

from app.auth.dependencies import UtenteCorrente, crea_token, get_current_user
from app.auth.utenti import DirectoryUtenti, get_directory_utenti


router = APIRouter(prefix="/api/auth", tags=["Auth"])


class LoginIn(BaseModel):
    email: str
    password: str


class UtenteOut(BaseModel):
    email: str
    nome: str = ""
    ruolo: str
    punto_vendita: str = ""


class LoginOut(BaseModel):
    token: str
    user: UtenteOut


@router.post("/login", response_model=LoginOut)
def login(payload: LoginIn, utenti: DirectoryUtenti = Depends(get_directory_utenti)):
    """Verifica le credenziali e restituisce un JWT locale."""
    if not payload.email or not payload.password:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Email e password richiesti")
    utente = utenti.autentica(payload.email, payload.password)
    if utente is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Credenziali non valide")
    token = crea_token(utente.email, utente.ruolo, utente.punto_vendita, utente.nome)
    return {"token": token, "user": utente.to_public_dict()}


@router.get("/verify")
def verify(user: UtenteCorrente = Depends(get_current_user)):
    return {
        "valid": True,
        "user": {"email": user.email, "ruolo": user.ruolo, "punto_vendita": user.punto_vendita},
    }


@router.get("/me")
def me(user: UtenteCorrente = Depends(get_current_user)):
    return {"user": {"email": user.email, "nome": user.nome, "ruolo": user.ruolo, "punto_vendita": user.punto_vendita}}


@router.post("/logout")
def logout(user: UtenteCorrente = Depends(get_current_user)):
    # Il token è stateless: il client lo scarta
    return {"message": "Logout effettuato con successo"}
