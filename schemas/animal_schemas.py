from pydantic import BaseModel
from typing import List, Optional


class AnimalResponse(BaseModel):
    """Animal não alocado"""
    id: str
    tag: str
    type: str
    image: str
    display_text: Optional[str] = None
    investor_name: Optional[str] = None
    onboarded_at: Optional[str] = None

    class Config:
        from_attributes = True


class UnallocatedAnimalsResponse(BaseModel):
    farm_id: Optional[str] = None
    loading: bool = False
    selected_animal_id: Optional[str] = None
    animals: List[AnimalResponse]


class SelectAnimalRequest(BaseModel):
    """Request de seleção de animal (None limpa a seleção)"""
    animal_id: Optional[str] = None


class SelectAnimalResponse(BaseModel):
    success: bool
    animal_id: Optional[str] = None
    error: Optional[str] = None
