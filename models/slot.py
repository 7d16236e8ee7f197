from dataclasses import dataclass
from typing import Optional
import enum


class SlotStatus(str, enum.Enum):
    AVAILABLE = "Available"
    OCCUPIED = "Occupied"


class SlotState(str, enum.Enum):
    """Estado derivado do slot (grade + buffer), nunca armazenado"""
    AVAILABLE = "AVAILABLE"
    OCCUPIED = "OCCUPIED"
    PENDING_VALID = "PENDING_VALID"
    PENDING_INVALID = "PENDING_INVALID"


@dataclass
class Occupant:
    """Animal que ocupa um slot segundo o backend"""
    animal_id: Optional[str] = None
    tag: Optional[str] = None
    image: Optional[str] = None
    onboarded_at: Optional[str] = None


@dataclass
class Slot:
    """Posição de um galpão, recalculada a cada seleção"""
    label: str  # "B12"
    status: SlotStatus = SlotStatus.AVAILABLE
    row_context: Optional[str] = None  # "R1".."R4"
    occupant: Optional[Occupant] = None
    position_id: Optional[str] = None
    rfid: Optional[str] = None

    @property
    def occupied(self) -> bool:
        return self.status == SlotStatus.OCCUPIED
