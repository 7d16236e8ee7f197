"""
Serviço de reconciliação da ocupação de um galpão
Junta a resposta de posições e a de animais alocados numa lista única
de slots, sobre a grade sintetizada pela capacidade
"""
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from models.slot import Occupant, Slot, SlotStatus
from services.codecs import (
    LabelError, ROW_KEYS, canonical_key, generate_grid, is_row_key,
    parse_label, row_to_letter,
)
from services.payloads import as_text, extract_records, first_present, onboarded_at

logger = logging.getLogger(__name__)

AVAILABLE = SlotStatus.AVAILABLE.value
OCCUPIED = SlotStatus.OCCUPIED.value


@dataclass
class RawPosition:
    """Entrada de posição normalizada, ainda sem rótulo resolvido"""
    raw_label: Any
    status: Optional[str] = None
    row_context: Optional[str] = None
    position_id: Optional[str] = None
    rfid: Optional[str] = None
    image: Optional[str] = None
    animal_id: Optional[str] = None


def _position_from(item: Any, default_status: str, row_context: Optional[str] = None) -> Optional[RawPosition]:
    if isinstance(item, (str, int)) and not isinstance(item, bool):
        return RawPosition(raw_label=item, status=default_status, row_context=row_context)
    if not isinstance(item, dict):
        return None

    label = first_present(item, "position_name", "label", "id")
    context = first_present(item, "_rowContext") or row_context or item.get("row_number")
    return RawPosition(
        raw_label=label,
        status=as_text(item.get("status")) or default_status,
        row_context=as_text(context),
        position_id=as_text(item.get("id")),
        rfid=as_text(first_present(item, "rfid_tag_number", "rfid")),
        image=as_text(first_present(item, "animal_image", "image")),
        animal_id=as_text(item.get("animal_id")),
    )


# ---------------------------------------------------------------------------
# Detectores de formato. Cada um retorna None quando o formato não se aplica.
# ---------------------------------------------------------------------------

def detect_flat_list(payload: Any) -> Optional[List[RawPosition]]:
    """["A1", "A2"] ou [{position_name, status}, ...]"""
    if not isinstance(payload, list):
        return None
    return [p for p in (_position_from(i, AVAILABLE) for i in payload) if p]


def detect_available_filled(payload: Any) -> Optional[List[RawPosition]]:
    """{available: [...], filled: [...]}"""
    if not isinstance(payload, dict):
        return None
    available = payload.get("available")
    filled = payload.get("filled")
    if not isinstance(available, list) and not isinstance(filled, list):
        return None

    positions = []
    for item in available if isinstance(available, list) else []:
        positions.append(_position_from(item, AVAILABLE))
    for item in filled if isinstance(filled, list) else []:
        positions.append(_position_from(item, OCCUPIED))
    return [p for p in positions if p]


def detect_row_keyed(payload: Any) -> Optional[List[RawPosition]]:
    """{R1: [...], R2: [...]}"""
    if not isinstance(payload, dict):
        return None
    row_items = [
        (key, value) for key, value in payload.items()
        if is_row_key(key) and isinstance(value, list)
    ]
    if not row_items:
        return None

    positions = []
    for key, items in sorted(row_items, key=lambda kv: ROW_KEYS.index(kv[0].strip().upper())):
        row = key.strip().upper()
        for item in items:
            positions.append(_position_from(item, AVAILABLE, row))
    return [p for p in positions if p]


def detect_object_map(payload: Any) -> Optional[List[RawPosition]]:
    """{"x": {position_name, status}, ...}"""
    if not isinstance(payload, dict):
        return None
    items = [v for v in payload.values() if isinstance(v, dict) and v.get("position_name")]
    if not items:
        return None
    return [p for p in (_position_from(i, AVAILABLE) for i in items) if p]


POSITION_SHAPES: List[Callable[[Any], Optional[List[RawPosition]]]] = [
    detect_flat_list,
    detect_available_filled,
    detect_row_keyed,
    detect_object_map,
]


def parse_positions(payload: Any) -> List[RawPosition]:
    """Aplica os detectores em ordem fixa; tenta um nível abaixo de `data`."""
    candidates = [payload]
    if isinstance(payload, dict) and "data" in payload:
        candidates.append(payload["data"])

    for candidate in candidates:
        for detector in POSITION_SHAPES:
            positions = detector(candidate)
            if positions is not None:
                return positions
    return []


def parse_allocated_animals(payload: Any) -> List[dict]:
    return extract_records(payload, ("animals", "allocations")) or []


# ---------------------------------------------------------------------------
# Índice de ocupação
# ---------------------------------------------------------------------------

@dataclass
class OccupancyIndex:
    """Animais alocados indexados por rótulo curto, parking_id e RFID"""
    by_label: Dict[str, dict] = field(default_factory=dict)
    by_rfid: Dict[str, dict] = field(default_factory=dict)

    @classmethod
    def build(cls, records: List[dict]) -> "OccupancyIndex":
        index = cls()
        for record in records:
            for key in _record_keys(record):
                index.by_label.setdefault(key, record)
            rfid = as_text(first_present(record, "rfid_tag_number", "rfid"))
            if rfid:
                index.by_rfid.setdefault(rfid.upper(), record)
        return index

    def find(self, slot: Slot) -> Optional[dict]:
        probes = [slot.label.strip().upper(), canonical_key(slot.label)]
        for probe in probes:
            if probe and probe in self.by_label:
                return self.by_label[probe]
        if slot.rfid:
            return self.by_rfid.get(slot.rfid.upper())
        return None

    def __len__(self):
        return len(self.by_label) + len(self.by_rfid)


def _record_keys(record: dict) -> List[str]:
    parking_id = as_text(record.get("parking_id"))
    if not parking_id:
        return []
    raw = parking_id.upper()
    keys = [raw]

    row = as_text(record.get("row_number"))
    if raw.isdigit() and is_row_key(row):
        keys.append(f"{row_to_letter(row)}{int(raw)}")

    short = canonical_key(raw)
    if short:
        keys.append(short)
    return keys


def _occupant_from(record: dict) -> Occupant:
    images = record.get("images")
    image = first_present(record, "animal_image", "image")
    if not image and isinstance(images, list) and images:
        image = images[0]

    return Occupant(
        animal_id=as_text(first_present(record, "animal_id", "id", "uuid")),
        tag=as_text(first_present(record, "rfid_tag_number", "rfid")),
        image=as_text(image),
        onboarded_at=onboarded_at(record),
    )


# ---------------------------------------------------------------------------
# Reconciliação
# ---------------------------------------------------------------------------

class OccupancyReconciler:
    """Transformação pura: (posições, animais alocados, capacidade) -> slots"""

    @staticmethod
    def to_slots(positions: List[RawPosition]) -> List[Slot]:
        """Resolve os rótulos; entradas inutilizáveis são descartadas"""
        slots = []
        for position in positions:
            try:
                label = parse_label(position.raw_label, position.row_context)
            except LabelError as e:
                logger.debug("Posição ignorada (%s): %r", e, position)
                continue

            row_context = position.row_context.upper() if is_row_key(position.row_context) else None
            available = (position.status or AVAILABLE).strip().lower() == "available"
            occupant = None
            if not available and (position.animal_id or position.image):
                occupant = Occupant(animal_id=position.animal_id, tag=position.rfid, image=position.image)

            slots.append(Slot(
                label=label,
                status=SlotStatus.AVAILABLE if available else SlotStatus.OCCUPIED,
                row_context=row_context,
                position_id=position.position_id,
                rfid=position.rfid,
                occupant=occupant,
            ))
        return slots

    @staticmethod
    def overlay(baseline: List[str], upstream: List[Slot]) -> List[Slot]:
        """
        Sobrepõe as posições do backend à grade base pela chave canônica.
        Posições fora da grade vão ao final, na ordem do backend.
        """
        by_key: Dict[str, Slot] = {}
        order: List[str] = []
        for slot in upstream:
            key = canonical_key(slot.label) or slot.label.strip().upper()
            existing = by_key.get(key)
            if existing is None:
                by_key[key] = slot
                order.append(key)
            elif slot.occupied:
                # duplicata: ocupado prevalece, com seu animal e RFID
                existing.status = SlotStatus.OCCUPIED
                existing.occupant = slot.occupant or existing.occupant
                existing.rfid = slot.rfid or existing.rfid

        result = []
        for label in baseline:
            slot = by_key.pop(label, None)
            result.append(slot if slot else Slot(label=label))
        result.extend(by_key[key] for key in order if key in by_key)
        return result

    @staticmethod
    def merge_occupants(slots: List[Slot], index: OccupancyIndex) -> List[Slot]:
        """Animal encontrado marca o slot como ocupado e anexa seus dados"""
        for slot in slots:
            record = index.find(slot)
            if record is None:
                continue
            occupant = _occupant_from(record)
            if slot.occupant and not occupant.image:
                occupant.image = slot.occupant.image
            slot.occupant = occupant
            slot.status = SlotStatus.OCCUPIED
        return slots

    @staticmethod
    def reconcile(positions_payload: Any, allocated_payload: Any, capacity: int) -> List[Slot]:
        """
        Retorna ao menos `capacity` slots. Sem posições utilizáveis,
        usa a grade sintetizada toda disponível (fallback).
        """
        upstream = OccupancyReconciler.to_slots(parse_positions(positions_payload))
        baseline = generate_grid(capacity)

        if not upstream:
            logger.info("Posições vazias; usando grade sintetizada de %d slots", len(baseline))
            slots = [Slot(label=label) for label in baseline]
        else:
            slots = OccupancyReconciler.overlay(baseline, upstream)

        index = OccupancyIndex.build(parse_allocated_animals(allocated_payload))
        slots = OccupancyReconciler.merge_occupants(slots, index)

        occupied = sum(1 for s in slots if s.occupied)
        logger.info("Grade reconciliada: %d slots, %d ocupados", len(slots), occupied)
        return slots
