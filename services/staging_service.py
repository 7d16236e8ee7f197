"""
Buffer de alocações pendentes (slot -> animal) do operador
Garante que um animal ocupa no máximo um slot pendente
"""
from typing import Dict, Iterable, List, Optional

from models.allocation import PendingAllocation
from models.slot import Slot, SlotState


class StagingError(Exception):
    """Requisito do operador não atendido (sem animal, sem galpão...)"""


class AllocationStagingBuffer:
    """Mapa em memória, de escritor único, da intenção não confirmada"""

    def __init__(self):
        self._entries: Dict[str, str] = {}

    def toggle_stage(self, slot_label: str, animal_id: Optional[str]) -> bool:
        """
        Alterna a alocação pendente do slot para o animal.
        - slot já mapeado para o animal: remove (desfaz)
        - caso contrário: remove o animal de qualquer outro slot e mapeia

        Retorna True se o slot ficou pendente, False se foi liberado.
        """
        if not animal_id:
            raise StagingError("Selecione um animal primeiro")

        if self._entries.get(slot_label) == animal_id:
            del self._entries[slot_label]
            return False

        previous = self.slot_for_animal(animal_id)
        if previous is not None:
            del self._entries[previous]
        self._entries[slot_label] = animal_id
        return True

    def unstage(self, slot_label: str) -> Optional[str]:
        return self._entries.pop(slot_label, None)

    def discard(self, slot_labels: Iterable[str]) -> None:
        for label in slot_labels:
            self._entries.pop(label, None)

    def clear(self) -> None:
        self._entries.clear()

    def slot_for_animal(self, animal_id: str) -> Optional[str]:
        for label, staged in self._entries.items():
            if staged == animal_id:
                return label
        return None

    def animal_for_slot(self, slot_label: str) -> Optional[str]:
        return self._entries.get(slot_label)

    def entries(self) -> List[PendingAllocation]:
        return [PendingAllocation(slot_label=k, animal_id=v) for k, v in self._entries.items()]

    def as_dict(self) -> Dict[str, str]:
        return dict(self._entries)

    def __contains__(self, slot_label) -> bool:
        return slot_label in self._entries

    def __len__(self) -> int:
        return len(self._entries)


def derive_slot_state(slot: Slot, buffer: AllocationStagingBuffer) -> SlotState:
    """Available/Occupied, ou pendente válido/inválido se estiver no buffer"""
    if slot.label in buffer:
        return SlotState.PENDING_INVALID if slot.occupied else SlotState.PENDING_VALID
    return SlotState.OCCUPIED if slot.occupied else SlotState.AVAILABLE
