"""
Rotas de seleção de galpão e grade de slots
"""
from dataclasses import asdict
from fastapi import APIRouter, Depends, HTTPException
from schemas.farm_schemas import SelectShedRequest
from schemas.slot_schemas import GridResponse, OccupantResponse, ShedStatsResponse, SlotResponse
from services.session_service import AllocationSession, get_session
from services.staging_service import StagingError

router = APIRouter(prefix="/sheds", tags=["sheds"])


def build_grid_response(session: AllocationSession) -> GridResponse:
    """Monta a grade com o estado derivado de cada slot"""
    slots = []
    for view in session.slot_views():
        slot = view["slot"]
        slots.append(SlotResponse(
            label=slot.label,
            status=slot.status,
            state=view["state"],
            row_context=slot.row_context,
            occupant=OccupantResponse(**asdict(slot.occupant)) if slot.occupant else None,
            pending_animal_id=view["pending_animal_id"]
        ))

    return GridResponse(
        farm_id=session.selected_farm_id,
        shed_id=session.selected_shed_id,
        loading=session.loading_grid,
        slots=slots,
        stats=ShedStatsResponse(**session.stats())
    )


@router.post("/select", response_model=GridResponse)
async def select_shed(
    request: SelectShedRequest,
    session: AllocationSession = Depends(get_session)
):
    """
    Seleciona o galpão e reconcilia a grade (buffer é descartado)
    """
    try:
        await session.select_shed(request.shed_id)
    except StagingError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return build_grid_response(session)


@router.get("/grid", response_model=GridResponse)
async def get_grid(session: AllocationSession = Depends(get_session)):
    """
    Grade atual com pendências do operador
    """
    return build_grid_response(session)


@router.get("/stats", response_model=ShedStatsResponse)
async def get_stats(session: AllocationSession = Depends(get_session)):
    """
    Capacidade, alocados, disponíveis, pendentes no pool e no buffer
    """
    return ShedStatsResponse(**session.stats())
