from dataclasses import dataclass, field
from typing import Optional


@dataclass
class Animal:
    """Animal não alocado, elegível para um slot"""
    id: str
    tag: str
    type: str
    image: str
    display_text: Optional[str] = None
    investor_name: Optional[str] = None
    onboarded_at: Optional[str] = None
    raw: dict = field(default_factory=dict, repr=False)
