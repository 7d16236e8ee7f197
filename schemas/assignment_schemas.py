from pydantic import BaseModel
from typing import List, Optional, Union


class PendingAllocationItem(BaseModel):
    """Alocação pendente no buffer"""
    slot_label: str
    animal_id: str


class PendingAllocationsResponse(BaseModel):
    """Conteúdo do buffer do operador"""
    shed_id: Optional[str] = None
    pending: List[PendingAllocationItem]


class AllocationItem(BaseModel):
    """Registro enviado ao backend"""
    animal_id: Union[int, str]
    row_number: str
    parking_id: str


class DroppedItem(BaseModel):
    """Entrada descartada na validação"""
    slot_label: str
    animal_id: str
    reason: str


class CommitResponse(BaseModel):
    """Response do commit do lote"""
    success: bool
    sent: bool = False
    allocations: List[AllocationItem] = []
    dropped: List[DroppedItem] = []
    error: Optional[str] = None
