"""
Rotas de estado e recarga da sessão
"""
from fastapi import APIRouter, Depends
from schemas.session_schemas import SessionStatusResponse
from services.session_service import AllocationSession, get_session

router = APIRouter(prefix="/session", tags=["session"])


@router.get("", response_model=SessionStatusResponse)
async def get_status(session: AllocationSession = Depends(get_session)):
    """
    Estado atual (inclui o modo interrompido)
    """
    return SessionStatusResponse(**session.status())


@router.post("/reload", response_model=SessionStatusResponse)
async def reload_session(session: AllocationSession = Depends(get_session)):
    """
    Recarga manual completa: limpa tudo e busca as fazendas de novo
    """
    await session.reload()
    return SessionStatusResponse(**session.status())
