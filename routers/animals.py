"""
Rotas do pool de animais não alocados
"""
from dataclasses import asdict
from fastapi import APIRouter, Depends
from schemas.animal_schemas import AnimalResponse, UnallocatedAnimalsResponse, SelectAnimalRequest, SelectAnimalResponse
from services.session_service import AllocationSession, get_session
from services.staging_service import StagingError

router = APIRouter(prefix="/animals", tags=["animals"])


@router.get("/unallocated", response_model=UnallocatedAnimalsResponse)
async def list_unallocated(session: AllocationSession = Depends(get_session)):
    """
    Animais elegíveis da fazenda selecionada
    """
    animals = []
    for animal in session.pool:
        data = asdict(animal)
        data.pop("raw", None)
        animals.append(AnimalResponse(**data))

    return UnallocatedAnimalsResponse(
        farm_id=session.selected_farm_id,
        loading=session.loading_animals,
        selected_animal_id=session.selected_animal_id,
        animals=animals
    )


@router.post("/select", response_model=SelectAnimalResponse)
async def select_animal(
    request: SelectAnimalRequest,
    session: AllocationSession = Depends(get_session)
):
    """
    Seleciona o animal que será usado nos próximos cliques
    """
    try:
        animal_id = session.select_animal(request.animal_id)
    except StagingError as e:
        return SelectAnimalResponse(success=False, animal_id=request.animal_id, error=str(e))
    return SelectAnimalResponse(success=True, animal_id=animal_id)
