from dataclasses import dataclass
from typing import Union


@dataclass(frozen=True)
class PendingAllocation:
    """Intenção não confirmada: slot -> animal"""
    slot_label: str
    animal_id: str


@dataclass
class AllocationRecord:
    """Registro enviado ao backend no commit"""
    animal_id: Union[int, str]
    row_number: str  # "R1".."R4"
    parking_id: str

    def to_payload(self) -> dict:
        return {
            "animal_id": self.animal_id,
            "row_number": self.row_number,
            "parking_id": self.parking_id,
        }


@dataclass
class DroppedAllocation:
    """Entrada removida na validação do commit"""
    slot_label: str
    animal_id: str
    reason: str  # "occupied", "unknown_slot", "unresolvable_row"
