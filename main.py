import time
from datetime import datetime, timezone

from fastapi import FastAPI, Depends, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import logging
from app.interfaces.fatture_controller import router as fatture_router
from app.interfaces.file_txt_controller import router as file_txt_router
from app.interfaces.movimentazioni_controller import router as movimentazioni_router
from app.interfaces.admin_controller import router as admin_router
from app.auth.routes import router as auth_router
from app.auth.dependencies import UtenteCorrente, get_current_user
from app.config.settings import get_app_env, get_frontend_urls, get_port, get_txt_files_dir
from app.config.sheets import init_google_services
from app.domain.exceptions import ErroreDominio
from app.utils.error_handlers import handle_domain_error

TITLE = "API Consegne Pizzerie"
VERSION = "1.0.0"

_avvio = time.monotonic()

app = FastAPI(
    title=TITLE,
    version=VERSION,
    description="API per la conferma delle consegne, la segnalazione errori sui DDT e i trasferimenti tra punti vendita"
)

# Middleware CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=get_frontend_urls(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Configurazione logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("main")

# Registro dei router
app.include_router(auth_router)
app.include_router(fatture_router)
app.include_router(file_txt_router)
app.include_router(movimentazioni_router)
app.include_router(admin_router)


# Errori di dominio sollevati fuori dai controller (es. nelle dependency del foglio)
@app.exception_handler(ErroreDominio)
def errore_dominio_handler(request: Request, exc: ErroreDominio):
    http_exc = handle_domain_error(exc, f"{request.method} {request.url.path}")
    return JSONResponse(status_code=http_exc.status_code, content={"detail": http_exc.detail})


def _stato_servizio() -> dict:
    return {
        "status": "ok",
        "title": TITLE,
        "version": VERSION,
        "environment": get_app_env(),
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "uptime": round(time.monotonic() - _avvio, 3),
    }


# Health check
@app.get("/health", tags=["Status"])
def health_check():
    return _stato_servizio()


@app.get("/api/health", tags=["Status"])
def api_health_check():
    return _stato_servizio()


@app.get("/api/info", tags=["Status"])
def info(user: UtenteCorrente = Depends(get_current_user)):
    return {
        "version": VERSION,
        "user": {"email": user.email, "ruolo": user.ruolo, "punto_vendita": user.punto_vendita},
    }


@app.on_event("startup")
def startup_event():
    logger.info("Avvio %s %s (ambiente %s)", TITLE, VERSION, get_app_env())
    logger.info("Cartella file TXT: %s", get_txt_files_dir())
    # Il servizio parte anche senza Google Sheets: le richieste risponderanno 503
    init_google_services()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=get_port())
