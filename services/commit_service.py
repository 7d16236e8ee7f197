"""
Serviço de confirmação (commit) das alocações pendentes de um galpão
Valida contra a grade mais recente e envia um único lote por galpão
"""
import logging
import re
from dataclasses import asdict
from typing import Dict, List, Optional, Tuple, Union

from models.allocation import AllocationRecord, DroppedAllocation, PendingAllocation
from models.animal import Animal
from models.slot import Slot
from services.codecs import LabelError, letter_to_row
from services.farmvest_client import FarmvestAPIError
from services.pool_service import UnallocatedPool
from services.staging_service import AllocationStagingBuffer

logger = logging.getLogger(__name__)

_ROW_PREFIX_RE = re.compile(r"^(R[1-4])")


class AllocationCommitService:
    """Valida, monta e envia o lote de alocações"""

    @staticmethod
    def validate(
        entries: List[PendingAllocation],
        grid: List[Slot],
    ) -> Tuple[List[PendingAllocation], List[DroppedAllocation]]:
        """Mantém apenas entradas cujo slot está disponível na grade atual"""
        slots = {slot.label: slot for slot in grid}
        kept, dropped = [], []
        for entry in entries:
            slot = slots.get(entry.slot_label)
            if slot is None:
                dropped.append(DroppedAllocation(entry.slot_label, entry.animal_id, "unknown_slot"))
            elif slot.occupied:
                dropped.append(DroppedAllocation(entry.slot_label, entry.animal_id, "occupied"))
            else:
                kept.append(entry)
        return kept, dropped

    @staticmethod
    def resolve_animal_id(animal: Optional[Animal], staged_id: str) -> Union[int, str]:
        """
        Ordem: animal_id numérico explícito; primeiro de uuid/rfid/id com
        dígitos extraíveis; senão o id cru.
        """
        raw = animal.raw if animal else {}
        explicit = raw.get("animal_id")
        if isinstance(explicit, int) and not isinstance(explicit, bool):
            return explicit
        if isinstance(explicit, str) and explicit.strip().isdigit():
            return int(explicit.strip())

        candidates = [
            raw.get("uuid"),
            raw.get("rfid") or raw.get("rfid_tag_number"),
            raw.get("id"),
        ]
        for value in candidates:
            digits = re.sub(r"\D", "", str(value)) if value is not None else ""
            if digits:
                return int(digits)

        fallback = explicit if explicit not in (None, "") else staged_id
        logger.warning("Animal %s sem id numérico; enviando id cru %r", staged_id, fallback)
        return fallback

    @staticmethod
    def resolve_row_number(label: str) -> str:
        """Ex.: B12 -> R2; R1-1 -> R1"""
        text = label.strip().upper()
        match = _ROW_PREFIX_RE.match(text)
        if match:
            return match.group(1)
        return letter_to_row(text[:1])

    @staticmethod
    def build_batch(
        entries: List[PendingAllocation],
        grid: List[Slot],
        animals: Dict[str, Animal],
    ) -> Tuple[List[AllocationRecord], List[DroppedAllocation]]:
        kept, dropped = AllocationCommitService.validate(entries, grid)

        records = []
        for entry in kept:
            try:
                row_number = AllocationCommitService.resolve_row_number(entry.slot_label)
            except LabelError:
                dropped.append(DroppedAllocation(entry.slot_label, entry.animal_id, "unresolvable_row"))
                continue
            records.append(AllocationRecord(
                animal_id=AllocationCommitService.resolve_animal_id(animals.get(entry.animal_id), entry.animal_id),
                row_number=row_number,
                parking_id=entry.slot_label,
            ))
        return records, dropped

    @staticmethod
    async def commit(
        client,
        shed_id: str,
        buffer: AllocationStagingBuffer,
        grid: List[Slot],
        pool: UnallocatedPool,
    ) -> dict:
        """
        Confirma o buffer do galpão.

        Retorna:
            {
                "success": bool,
                "sent": bool,
                "allocations": [{animal_id, row_number, parking_id}],
                "dropped": [{slot_label, animal_id, reason}],
                "error": str | None
            }
        """
        records, dropped = AllocationCommitService.build_batch(buffer.entries(), grid, pool.by_id())

        # Entradas descartadas deixam de ser pendentes em qualquer caso
        buffer.discard(d.slot_label for d in dropped)
        for d in dropped:
            logger.warning("Alocação %s -> %s descartada: %s", d.slot_label, d.animal_id, d.reason)

        result = {
            "success": False,
            "sent": False,
            "allocations": [r.to_payload() for r in records],
            "dropped": [asdict(d) for d in dropped],
            "error": None,
        }

        if not records:
            result["error"] = "Nenhuma alocação válida para enviar"
            return result

        try:
            response = await client.allocate_animals(shed_id, result["allocations"])
        except FarmvestAPIError as e:
            logger.error("Falha ao alocar no galpão %s: %s", shed_id, e)
            result["sent"] = True
            result["error"] = f"Falha na alocação: {e.detail or e}"
            return result

        # o buffer fica com quem chamou: a seleção pode ter mudado durante o envio
        logger.info("Galpão %s: %d alocações confirmadas", shed_id, len(records))
        result.update({"success": True, "sent": True, "response": response})
        return result
