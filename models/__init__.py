from .slot import Slot, SlotStatus, SlotState, Occupant
from .animal import Animal
from .farm import Farm, Shed
from .allocation import PendingAllocation, AllocationRecord, DroppedAllocation

__all__ = [
    "Slot", "SlotStatus", "SlotState", "Occupant", "Animal", "Farm", "Shed",
    "PendingAllocation", "AllocationRecord", "DroppedAllocation",
]
