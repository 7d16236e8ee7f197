"""
Rotas de alocações pendentes e commit do lote
"""
from fastapi import APIRouter, Depends
from schemas.assignment_schemas import CommitResponse, PendingAllocationsResponse, PendingAllocationItem
from services.session_service import AllocationSession, get_session
from services.staging_service import StagingError

router = APIRouter(prefix="/assign", tags=["assign"])


@router.get("/pending", response_model=PendingAllocationsResponse)
async def get_pending(session: AllocationSession = Depends(get_session)):
    """
    Alocações pendentes (ainda não enviadas)
    """
    return PendingAllocationsResponse(
        shed_id=session.selected_shed_id,
        pending=[
            PendingAllocationItem(slot_label=p.slot_label, animal_id=p.animal_id)
            for p in session.buffer.entries()
        ]
    )


@router.post("/commit", response_model=CommitResponse)
async def commit_allocations(session: AllocationSession = Depends(get_session)):
    """
    Valida as pendências contra a grade atual e envia um lote ao backend.
    Em sucesso a grade e o pool são recarregados; em falha o buffer é mantido.
    """
    try:
        result = await session.commit()
    except StagingError as e:
        return CommitResponse(success=False, error=str(e))

    return CommitResponse(
        success=result["success"],
        sent=result["sent"],
        allocations=result["allocations"],
        dropped=result["dropped"],
        error=result.get("error")
    )
