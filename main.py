"""
Aplicação principal FastAPI do console de alocação de galpões
"""
import logging
import os

from dotenv import load_dotenv
from fastapi import FastAPI, Depends, Request
from fastapi.responses import JSONResponse

from routers import farms_router, sheds_router, slots_router, animals_router, assign_router, session_router
from services.session_service import AllocationSession, SessionHaltedError, get_session

load_dotenv()

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

# Criar app FastAPI
app = FastAPI(title="Alocação de Galpões", description="Console de alocação de animais em slots de galpão")

app.include_router(farms_router)
app.include_router(sheds_router)
app.include_router(slots_router)
app.include_router(animals_router)
app.include_router(assign_router)
app.include_router(session_router)


@app.exception_handler(SessionHaltedError)
async def session_halted_handler(request: Request, exc: SessionHaltedError):
    """Modo interrompido: nada é buscado até POST /session/reload"""
    return JSONResponse(
        status_code=503,
        content={"detail": str(exc), "halted": True, "reload": "/session/reload"},
    )


@app.on_event("startup")
async def startup_event():
    """Carga inicial das fazendas (uma única vez)"""
    try:
        await get_session().initialize()
    except SessionHaltedError as e:
        logger.error("Console iniciado em modo interrompido: %s", e)


@app.get("/")
async def dashboard(session: AllocationSession = Depends(get_session)):
    """Resumo do console"""
    return {
        "session": session.status(),
        "farms": len(session.farms),
        "sheds": len(session.sheds),
        "stats": session.stats(),
        "pending": len(session.buffer),
    }
