"""
Normalização das listas de fazendas e galpões
"""
import logging
import os
from typing import Any, List, Optional

from dotenv import load_dotenv

from models.farm import Farm, Shed
from services.payloads import as_text, extract_records, first_present

load_dotenv()

logger = logging.getLogger(__name__)


class FarmService:
    DEFAULT_SHED_CAPACITY = int(os.getenv("DEFAULT_SHED_CAPACITY", "300"))

    @staticmethod
    def normalize_farms(payload: Any) -> List[Farm]:
        farms = []
        for record in extract_records(payload, ("farms",)) or []:
            farm_id = as_text(first_present(record, "farm_id", "id"))
            if not farm_id:
                continue
            farms.append(Farm(
                farm_id=farm_id,
                farm_name=as_text(first_present(record, "farm_name", "name")) or "Unnamed Farm",
                location=as_text(record.get("location")),
            ))
        return farms

    @staticmethod
    def normalize_sheds(payload: Any) -> List[Shed]:
        sheds = []
        for record in extract_records(payload, ("sheds",)) or []:
            shed_id = as_text(first_present(record, "shed_id", "id"))
            if not shed_id:
                continue
            sheds.append(Shed(
                shed_id=shed_id,
                shed_name=as_text(first_present(record, "shed_name", "name")) or shed_id,
                capacity=FarmService.parse_capacity(record.get("capacity")),
            ))
        return sheds

    @staticmethod
    def parse_capacity(value) -> Optional[int]:
        try:
            capacity = int(value)
        except (TypeError, ValueError):
            return None
        return capacity if capacity > 0 else None

    @staticmethod
    def capacity_for(shed: Optional[Shed]) -> int:
        """Capacidade do galpão ou o padrão configurado"""
        if shed is not None and shed.capacity:
            return shed.capacity
        logger.debug("Galpão sem capacidade; usando %d", FarmService.DEFAULT_SHED_CAPACITY)
        return FarmService.DEFAULT_SHED_CAPACITY
