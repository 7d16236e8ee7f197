"""
Pool de animais não alocados de uma fazenda
Normaliza a resposta do backend para registros Animal
"""
import logging
import os
from typing import Any, Dict, List, Optional

from dotenv import load_dotenv

from models.animal import Animal
from services.payloads import as_text, extract_records, first_present, onboarded_at

load_dotenv()

logger = logging.getLogger(__name__)


class UnallocatedPool:
    """Lista de animais elegíveis; somente leitura para o buffer"""

    FALLBACK_IMAGE = os.getenv("FALLBACK_ANIMAL_IMAGE", "/buffalo_green_icon.png")
    PLACEHOLDER_MARKERS = [
        m.strip().lower()
        for m in os.getenv("PLACEHOLDER_IMAGE_MARKERS", "via.placeholder.com,placeholder").split(",")
        if m.strip()
    ]

    def __init__(self, animals: Optional[List[Animal]] = None):
        self.animals: List[Animal] = animals or []

    @classmethod
    def is_placeholder(cls, url: Optional[str]) -> bool:
        if not url:
            return True
        lowered = url.lower()
        return any(marker in lowered for marker in cls.PLACEHOLDER_MARKERS)

    @classmethod
    def pick_image(cls, record: dict) -> str:
        """Primeira imagem de `images`, depois `image`; senão a imagem padrão"""
        candidates = []
        images = record.get("images")
        if isinstance(images, list) and images:
            candidates.append(images[0])
        candidates.append(record.get("image"))

        for candidate in candidates:
            if isinstance(candidate, str) and candidate.strip() and not cls.is_placeholder(candidate.strip()):
                return candidate.strip()
        return cls.FALLBACK_IMAGE

    @classmethod
    def normalize(cls, payload: Any) -> List[Animal]:
        records = extract_records(payload, ("unallocated_animals", "animals")) or []

        animals = []
        seen = set()
        for idx, record in enumerate(records):
            natural_id = as_text(first_present(
                record, "animal_id", "rfid_tag_number", "rfid", "uuid", "id"
            ))
            animal_id = natural_id or f"animal-{idx}"
            if animal_id in seen:
                animal_id = f"{animal_id}-{idx}"
            seen.add(animal_id)

            animals.append(Animal(
                id=animal_id,
                tag=as_text(first_present(record, "rfid_tag_number", "rfid", "animal_id")) or str(idx),
                type=as_text(first_present(record, "animal_type", "role")) or "Animal",
                image=cls.pick_image(record),
                display_text=as_text(record.get("display_text")),
                investor_name=as_text(record.get("investor_name")),
                onboarded_at=onboarded_at(record),
                raw=record,
            ))
        return animals

    @classmethod
    def from_payload(cls, payload: Any) -> "UnallocatedPool":
        pool = cls(cls.normalize(payload))
        logger.info("Pool carregado: %d animais não alocados", len(pool))
        return pool

    def find(self, animal_id: Optional[str]) -> Optional[Animal]:
        if animal_id is None:
            return None
        for animal in self.animals:
            if animal.id == animal_id:
                return animal
        return None

    def by_id(self) -> Dict[str, Animal]:
        return {a.id: a for a in self.animals}

    def __len__(self):
        return len(self.animals)

    def __iter__(self):
        return iter(self.animals)
