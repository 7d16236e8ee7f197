from .assignment_schemas import CommitResponse, PendingAllocationsResponse
from .animal_schemas import AnimalResponse, UnallocatedAnimalsResponse, SelectAnimalRequest, SelectAnimalResponse
from .farm_schemas import FarmResponse, ShedResponse, SelectFarmRequest, SelectFarmResponse, SelectShedRequest
from .session_schemas import SessionStatusResponse
from .slot_schemas import SlotResponse, GridResponse, SlotClickRequest, SlotClickResponse, SlotDetailResponse

__all__ = [
    "CommitResponse",
    "PendingAllocationsResponse",
    "AnimalResponse",
    "UnallocatedAnimalsResponse",
    "SelectAnimalRequest",
    "SelectAnimalResponse",
    "FarmResponse",
    "ShedResponse",
    "SelectFarmRequest",
    "SelectFarmResponse",
    "SelectShedRequest",
    "SessionStatusResponse",
    "SlotResponse",
    "GridResponse",
    "SlotClickRequest",
    "SlotClickResponse",
    "SlotDetailResponse",
]
