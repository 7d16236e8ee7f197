from dataclasses import dataclass
from typing import Optional


@dataclass
class Farm:
    farm_id: str
    farm_name: str
    location: Optional[str] = None


@dataclass
class Shed:
    """Galpão com capacidade fixa de slots"""
    shed_id: str
    shed_name: str
    capacity: Optional[int] = None
