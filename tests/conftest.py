"""Fixtures compartilhadas: backend FarmVest em memória e sessão."""

import asyncio
import copy

import pytest

from services.farmvest_client import FarmvestAPIError
from services.session_service import AllocationSession


FARMS = [
    {"farm_id": 1, "farm_name": "Kurnool Farm", "location": "KURNOOL"},
    {"farm_id": 2, "farm_name": "Guntur Farm", "location": "GUNTUR"},
]

SHEDS = {
    "1": {"data": [
        {"shed_id": 10, "shed_name": "Shed A", "capacity": 12},
        {"shed_id": 11, "shed_name": "Shed B", "capacity": 8},
    ]},
    "2": [{"id": 20, "shed_name": "Shed C", "capacity": 4}],
}

UNALLOCATED = {
    "1": {"data": {"unallocated_animals": [
        {"animal_id": 42, "rfid_tag_number": "RFID-0042", "animal_type": "Buffalo",
         "images": ["https://cdn.example.com/42.jpg"]},
        {"animal_id": 7, "rfid_tag_number": "RFID-0007", "animal_type": "Calf",
         "image": "https://via.placeholder.com/100?text=No+Img"},
        {"animal_id": "BUF-9", "rfid_tag_number": "RF9", "animal_type": "Buffalo"},
    ]}},
    "2": [],
}

POSITIONS = {
    "10": {"data": [
        {"position_name": "A1", "status": "Available"},
        {"position_name": "B2", "status": "Occupied"},
    ]},
    "11": [],
    "20": [],
}

ALLOCATED = {
    "10": [{"parking_id": "SHED10-C3", "rfid_tag_number": "RFID-0100", "animal_id": 100}],
    "11": [],
    "20": [],
}


class StubFarmvestClient:
    """Backend em memória com a mesma interface do FarmvestClient"""

    def __init__(self):
        self.farms = copy.deepcopy(FARMS)
        self.sheds = copy.deepcopy(SHEDS)
        self.unallocated = copy.deepcopy(UNALLOCATED)
        self.positions = copy.deepcopy(POSITIONS)
        self.allocated = copy.deepcopy(ALLOCATED)
        self.fail = set()
        self.gates = {}
        self.calls = []
        self.allocate_calls = []

    async def _enter(self, name, key=None):
        self.calls.append((name, key))
        gate = self.gates.get((name, key))
        if gate is not None:
            await gate.wait()
        if name in self.fail:
            raise FarmvestAPIError(f"{name} falhou", status_code=500, detail="erro simulado")

    def count(self, name):
        return sum(1 for call, _ in self.calls if call == name)

    async def get_all_farms(self):
        await self._enter("get_all_farms")
        return {"farms": self.farms}

    async def get_sheds(self, farm_id):
        await self._enter("get_sheds", str(farm_id))
        return self.sheds.get(str(farm_id), [])

    async def get_shed_positions(self, shed_id):
        await self._enter("get_shed_positions", str(shed_id))
        return self.positions.get(str(shed_id), [])

    async def get_allocated_animals(self, farm_id, shed_id):
        await self._enter("get_allocated_animals", str(shed_id))
        return list(self.allocated.get(str(shed_id), []))

    async def get_unallocated_animals(self, farm_id):
        await self._enter("get_unallocated_animals", str(farm_id))
        return copy.deepcopy(self.unallocated.get(str(farm_id), []))

    async def allocate_animals(self, shed_id, allocations):
        await self._enter("allocate_animals", str(shed_id))
        self.allocate_calls.append((str(shed_id), allocations))

        # espelha o backend: o animal sai do pool e passa a ocupar o slot
        for farm_id, payload in self.unallocated.items():
            records = payload["data"]["unallocated_animals"] if isinstance(payload, dict) else payload
            for item in allocations:
                for record in list(records):
                    if str(record.get("animal_id")) == str(item["animal_id"]):
                        records.remove(record)
                        self.allocated.setdefault(str(shed_id), []).append({
                            "parking_id": item["parking_id"],
                            "row_number": item["row_number"],
                            "rfid_tag_number": record.get("rfid_tag_number"),
                            "animal_id": record.get("animal_id"),
                        })
        return {"status": "success", "allocated": len(allocations)}

    async def get_animal_position_details(self, parking_id, farm_id=None, shed_id=None, row_number=None):
        await self._enter("get_animal_position_details", parking_id)
        return {"parking_id": parking_id, "row_number": row_number, "animal": {"rfid_tag_number": "RFID-0100"}}


@pytest.fixture
def stub_client():
    return StubFarmvestClient()


@pytest.fixture
def session(stub_client):
    return AllocationSession(stub_client)


@pytest.fixture
def ready_session(session):
    """Sessão com fazenda 1 e galpão 10 selecionados"""
    async def prepare():
        await session.initialize()
        await session.select_farm("1")
        await session.select_shed("10")

    asyncio.run(prepare())
    return session
