"""
Rotas de interação com slots do galpão
"""
from fastapi import APIRouter, Depends, HTTPException
from schemas.slot_schemas import SlotClickRequest, SlotClickResponse, SlotDetailResponse
from services.session_service import AllocationSession, get_session
from services.staging_service import StagingError

router = APIRouter(prefix="/slots", tags=["slots"])


@router.post("/{label}/click", response_model=SlotClickResponse)
async def click_slot(
    label: str,
    request: SlotClickRequest = None,
    session: AllocationSession = Depends(get_session)
):
    """
    Clique num slot: marca/desmarca a alocação pendente do animal
    selecionado, ou retorna o handoff de detalhe se o slot estiver ocupado
    """
    force = request.force if request else False
    try:
        result = session.click_slot(label, force=force)
    except StagingError as e:
        return SlotClickResponse(success=False, slot_label=label, error=str(e))

    return SlotClickResponse(success=True, **result)


@router.get("/{label}/detail", response_model=SlotDetailResponse)
async def get_slot_detail(
    label: str,
    session: AllocationSession = Depends(get_session)
):
    """
    Detalhe do animal na posição (dados do backend)
    """
    try:
        result = await session.slot_detail(label)
    except StagingError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return SlotDetailResponse(**result)
