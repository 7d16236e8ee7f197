from pydantic import BaseModel
from typing import Any, List, Optional
from models.slot import SlotState, SlotStatus


class OccupantResponse(BaseModel):
    """Animal que ocupa o slot"""
    animal_id: Optional[str] = None
    tag: Optional[str] = None
    image: Optional[str] = None
    onboarded_at: Optional[str] = None

    class Config:
        from_attributes = True


class SlotResponse(BaseModel):
    """Response de um slot da grade"""
    label: str
    status: SlotStatus
    state: SlotState
    row_context: Optional[str] = None
    occupant: Optional[OccupantResponse] = None
    pending_animal_id: Optional[str] = None


class ShedStatsResponse(BaseModel):
    """Resumo do galpão selecionado"""
    capacity: int
    allocated: int
    available: int
    pending: int
    staged: int


class GridResponse(BaseModel):
    """Grade reconciliada do galpão selecionado"""
    farm_id: Optional[str] = None
    shed_id: Optional[str] = None
    loading: bool = False
    slots: List[SlotResponse]
    stats: ShedStatsResponse


class SlotClickRequest(BaseModel):
    """Request de clique num slot"""
    force: bool = False


class DetailHandoffResponse(BaseModel):
    """Dados para o visualizador de detalhes do animal"""
    parkingId: str
    farmId: Optional[str] = None
    shedId: Optional[str] = None
    rowContext: Optional[str] = None


class SlotClickResponse(BaseModel):
    """Response do clique: staged, unstaged ou detail"""
    success: bool
    action: Optional[str] = None
    slot_label: Optional[str] = None
    animal_id: Optional[str] = None
    state: Optional[SlotState] = None
    detail: Optional[DetailHandoffResponse] = None
    error: Optional[str] = None


class SlotDetailResponse(BaseModel):
    """Handoff e dados do backend para o slot ocupado"""
    handoff: DetailHandoffResponse
    details: Optional[Any] = None
    error: Optional[str] = None
