from pydantic import BaseModel
from typing import Optional


class SessionStatusResponse(BaseModel):
    """Estado da sessão do console"""
    initialized: bool
    halted: bool
    halt_reason: Optional[str] = None
    farm_id: Optional[str] = None
    shed_id: Optional[str] = None
    animal_id: Optional[str] = None
    loading_animals: bool = False
    loading_grid: bool = False
    generation: int = 0
