"""Testes do pool de animais não alocados e da lista de galpões."""

import pytest

from models.farm import Shed
from services.farm_service import FarmService
from services.pool_service import UnallocatedPool


def test_pool_accepts_the_known_shapes():
    record = {"animal_id": 1, "rfid_tag_number": "T1"}
    for payload in (
        [record],
        {"unallocated_animals": [record]},
        {"animals": [record]},
        {"data": [record]},
        {"data": {"unallocated_animals": [record]}},
    ):
        assert [a.id for a in UnallocatedPool.normalize(payload)] == ["1"]


@pytest.mark.parametrize("payload", [None, "x", {"foo": []}, {"data": {"foo": 1}}])
def test_pool_with_unknown_shape_is_empty(payload):
    assert UnallocatedPool.normalize(payload) == []


def test_animal_fields_are_normalized():
    animals = UnallocatedPool.normalize([{
        "animal_id": 42,
        "rfid_tag_number": "RFID-0042",
        "animal_type": "Buffalo",
        "images": ["https://cdn.example.com/42.jpg"],
        "investor_name": "Ravi",
        "investment_details": {"order_date": "2024-01-10"},
    }])

    animal = animals[0]
    assert animal.id == "42"
    assert animal.tag == "RFID-0042"
    assert animal.type == "Buffalo"
    assert animal.image == "https://cdn.example.com/42.jpg"
    assert animal.investor_name == "Ravi"
    assert animal.onboarded_at == "2024-01-10"
    assert animal.raw["animal_id"] == 42


def test_ids_fall_back_and_stay_unique():
    animals = UnallocatedPool.normalize([
        {"rfid": "R-1"},
        {"uuid": "u-1"},
        {},
        {"animal_id": "dup"},
        {"animal_id": "dup"},
    ])

    assert [a.id for a in animals] == ["R-1", "u-1", "animal-2", "dup", "dup-4"]
    assert animals[2].tag == "2"
    assert animals[2].type == "Animal"


@pytest.mark.parametrize("record", [
    {},
    {"image": ""},
    {"image": "https://via.placeholder.com/150"},
    {"images": ["https://example.com/placeholder.png"]},
    {"images": []},
])
def test_missing_or_placeholder_image_uses_fallback(record):
    assert UnallocatedPool.pick_image(record) == UnallocatedPool.FALLBACK_IMAGE


def test_image_falls_back_from_images_to_image():
    record = {"images": ["https://via.placeholder.com/1"], "image": "https://cdn.example.com/a.jpg"}
    assert UnallocatedPool.pick_image(record) == "https://cdn.example.com/a.jpg"


def test_find_and_iteration():
    pool = UnallocatedPool.from_payload([{"animal_id": 1}, {"animal_id": 2}])

    assert len(pool) == 2
    assert pool.find("2").id == "2"
    assert pool.find("3") is None
    assert pool.find(None) is None
    assert [a.id for a in pool] == ["1", "2"]
    assert set(pool.by_id()) == {"1", "2"}


def test_normalize_farms_and_sheds():
    farms = FarmService.normalize_farms({"farms": [
        {"farm_id": 1, "farm_name": "Kurnool"},
        {"id": "2"},
        {"farm_name": "sem id"},
    ]})
    sheds = FarmService.normalize_sheds({"data": [
        {"shed_id": 10, "shed_name": "Shed A", "capacity": "12"},
        {"id": 11, "capacity": 0},
    ]})

    assert [(f.farm_id, f.farm_name) for f in farms] == [("1", "Kurnool"), ("2", "Unnamed Farm")]
    assert [(s.shed_id, s.shed_name, s.capacity) for s in sheds] == [("10", "Shed A", 12), ("11", "11", None)]


def test_capacity_defaults_when_missing():
    assert FarmService.capacity_for(Shed("10", "Shed A", 12)) == 12
    assert FarmService.capacity_for(Shed("11", "Shed B")) == FarmService.DEFAULT_SHED_CAPACITY
    assert FarmService.capacity_for(None) == FarmService.DEFAULT_SHED_CAPACITY
