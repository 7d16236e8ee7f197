"""
Rotas de fazendas e seleção de fazenda
"""
from dataclasses import asdict
from fastapi import APIRouter, Depends
from typing import List
from schemas.farm_schemas import FarmResponse, ShedResponse, SelectFarmRequest, SelectFarmResponse
from services.session_service import AllocationSession, get_session

router = APIRouter(prefix="/farms", tags=["farms"])


@router.get("", response_model=List[FarmResponse])
async def list_farms(session: AllocationSession = Depends(get_session)):
    """
    Lista as fazendas (carregadas uma única vez por sessão)
    """
    farms = await session.initialize()
    return [FarmResponse(**asdict(f)) for f in farms]


@router.post("/select", response_model=SelectFarmResponse)
async def select_farm(
    request: SelectFarmRequest,
    session: AllocationSession = Depends(get_session)
):
    """
    Seleciona a fazenda e carrega galpões e animais não alocados
    """
    await session.initialize()
    current = await session.select_farm(request.farm_id)

    return SelectFarmResponse(
        success=current,
        farm_id=session.selected_farm_id,
        sheds=[ShedResponse(**asdict(s)) for s in session.sheds],
        animals=len(session.pool),
        error=None if current or not request.farm_id else "Seleção alterada durante a carga"
    )


@router.get("/sheds", response_model=List[ShedResponse])
async def list_sheds(session: AllocationSession = Depends(get_session)):
    """
    Galpões da fazenda selecionada
    """
    return [ShedResponse(**asdict(s)) for s in session.sheds]
