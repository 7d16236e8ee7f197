from pydantic import BaseModel
from typing import List, Optional


class FarmResponse(BaseModel):
    """Response de uma fazenda"""
    farm_id: str
    farm_name: str
    location: Optional[str] = None

    class Config:
        from_attributes = True


class ShedResponse(BaseModel):
    """Response de um galpão"""
    shed_id: str
    shed_name: str
    capacity: Optional[int] = None

    class Config:
        from_attributes = True


class SelectFarmRequest(BaseModel):
    """Request de seleção de fazenda (None limpa a seleção)"""
    farm_id: Optional[str] = None


class SelectFarmResponse(BaseModel):
    """Response da seleção de fazenda"""
    success: bool
    farm_id: Optional[str] = None
    sheds: List[ShedResponse] = []
    animals: int = 0
    error: Optional[str] = None


class SelectShedRequest(BaseModel):
    """Request de seleção de galpão"""
    shed_id: Optional[str] = None
