"""Testes da sessão: seleção, respostas obsoletas, modo interrompido e commit."""

import asyncio

import pytest

from models.slot import SlotState
from services.session_service import SessionHaltedError
from services.staging_service import StagingError


def grid_labels(session):
    return [slot.label for slot in session.grid]


def test_farms_are_loaded_once(session, stub_client):
    async def run():
        await asyncio.gather(session.initialize(), session.initialize())
        return await session.initialize()

    farms = asyncio.run(run())

    assert [f.farm_id for f in farms] == ["1", "2"]
    assert stub_client.count("get_all_farms") == 1


def test_failed_farm_load_halts_the_session(session, stub_client):
    stub_client.fail.add("get_all_farms")

    with pytest.raises(SessionHaltedError):
        asyncio.run(session.initialize())

    assert session.halted
    with pytest.raises(SessionHaltedError):
        asyncio.run(session.initialize())
    with pytest.raises(SessionHaltedError):
        asyncio.run(session.select_farm("1"))
    assert stub_client.count("get_all_farms") == 1
    assert stub_client.count("get_sheds") == 0


def test_reload_leaves_halted_mode(session, stub_client):
    stub_client.fail.add("get_all_farms")
    with pytest.raises(SessionHaltedError):
        asyncio.run(session.initialize())

    stub_client.fail.clear()
    farms = asyncio.run(session.reload())

    assert not session.halted
    assert len(farms) == 2
    assert stub_client.count("get_all_farms") == 2


def test_select_farm_loads_sheds_and_pool(session):
    async def run():
        await session.initialize()
        return await session.select_farm(1)

    assert asyncio.run(run()) is True
    assert [s.shed_id for s in session.sheds] == ["10", "11"]
    assert [a.id for a in session.pool] == ["42", "7", "BUF-9"]
    assert session.grid == []


def test_select_shed_reconciles_grid(ready_session):
    slots = {slot.label: slot for slot in ready_session.grid}

    assert len(ready_session.grid) == 12
    assert not slots["A1"].occupied
    assert slots["B2"].occupied
    assert slots["C3"].occupied
    assert slots["C3"].occupant.tag == "RFID-0100"
    assert ready_session.stats() == {
        "capacity": 12, "allocated": 2, "available": 10, "pending": 3, "staged": 0,
    }


def test_failed_grid_fetch_falls_back_to_synthesized_grid(session, stub_client):
    stub_client.fail.add("get_shed_positions")

    async def run():
        await session.initialize()
        await session.select_farm("1")
        return await session.select_shed("10")

    assert asyncio.run(run()) is True
    slots = {slot.label: slot for slot in session.grid}
    assert len(slots) == 12
    assert slots["C3"].occupied
    assert not slots["B2"].occupied


def test_select_shed_without_farm_fails(session):
    asyncio.run(session.initialize())
    with pytest.raises(StagingError):
        asyncio.run(session.select_shed("10"))


def test_stale_grid_response_is_discarded(session, stub_client):
    async def run():
        await session.initialize()
        await session.select_farm("1")

        gate = asyncio.Event()
        stub_client.gates[("get_shed_positions", "10")] = gate
        slow = asyncio.ensure_future(session.select_shed("10"))
        for _ in range(3):
            await asyncio.sleep(0)

        fresh = await session.select_shed("11")
        gate.set()
        return await slow, fresh

    slow, fresh = asyncio.run(run())

    assert slow is False
    assert fresh is True
    assert session.selected_shed_id == "11"
    assert len(session.grid) == 8
    assert not any(slot.occupied for slot in session.grid)


def test_stale_farm_response_is_discarded(session, stub_client):
    async def run():
        await session.initialize()

        gate = asyncio.Event()
        stub_client.gates[("get_sheds", "1")] = gate
        slow = asyncio.ensure_future(session.select_farm("1"))
        for _ in range(3):
            await asyncio.sleep(0)

        await session.select_farm("2")
        gate.set()
        return await slow

    assert asyncio.run(run()) is False
    assert session.selected_farm_id == "2"
    assert [s.shed_id for s in session.sheds] == ["20"]
    assert len(session.pool) == 0


def test_click_requires_animal_and_known_slot(ready_session):
    with pytest.raises(StagingError):
        ready_session.click_slot("A1")
    ready_session.select_animal("42")
    with pytest.raises(StagingError):
        ready_session.click_slot("Z99")


def test_select_animal_outside_pool_fails(ready_session):
    with pytest.raises(StagingError):
        ready_session.select_animal("999")
    assert ready_session.select_animal(None) is None


def test_click_without_shed_fails(session):
    async def run():
        await session.initialize()
        await session.select_farm("1")

    asyncio.run(run())
    session.select_animal("42")
    with pytest.raises(StagingError):
        session.click_slot("A1")


def test_click_toggles_pending_allocation(ready_session):
    ready_session.select_animal("42")

    staged = ready_session.click_slot("a1")
    assert staged["action"] == "staged"
    assert staged["state"] == SlotState.PENDING_VALID
    assert ready_session.buffer.as_dict() == {"A1": "42"}

    moved = ready_session.click_slot("D1")
    assert moved["action"] == "staged"
    assert ready_session.buffer.as_dict() == {"D1": "42"}

    undone = ready_session.click_slot("D1")
    assert undone["action"] == "unstaged"
    assert len(ready_session.buffer) == 0


def test_click_on_occupied_slot_opens_detail(ready_session):
    ready_session.select_animal("42")

    result = ready_session.click_slot("B2")

    assert result["action"] == "detail"
    assert result["detail"] == {"parkingId": "B2", "farmId": "1", "shedId": "10", "rowContext": "R2"}
    assert len(ready_session.buffer) == 0


def test_forced_click_on_occupied_slot_is_pending_invalid(ready_session):
    ready_session.select_animal("42")

    result = ready_session.click_slot("B2", force=True)

    assert result["state"] == SlotState.PENDING_INVALID
    views = {v["slot"].label: v for v in ready_session.slot_views()}
    assert views["B2"]["state"] == SlotState.PENDING_INVALID
    assert views["B2"]["pending_animal_id"] == "42"


def test_slot_detail_forwards_handoff(ready_session, stub_client):
    detail = asyncio.run(ready_session.slot_detail("C3"))

    assert detail["handoff"]["rowContext"] == "R3"
    assert detail["details"]["parking_id"] == "C3"
    assert detail["error"] is None
    assert ("get_animal_position_details", "C3") in stub_client.calls


def test_changing_shed_or_farm_clears_buffer(ready_session):
    ready_session.select_animal("42")
    ready_session.click_slot("A1")

    asyncio.run(ready_session.select_shed("11"))
    assert len(ready_session.buffer) == 0

    ready_session.select_animal("42")
    ready_session.click_slot("A1")
    asyncio.run(ready_session.select_farm("2"))
    assert len(ready_session.buffer) == 0
    assert ready_session.selected_shed_id is None
    assert ready_session.selected_animal_id is None


def test_commit_success_resyncs_grid_and_pool(ready_session, stub_client):
    ready_session.select_animal("42")
    ready_session.click_slot("A1")
    ready_session.select_animal("7")
    ready_session.click_slot("D1")

    result = asyncio.run(ready_session.commit())

    assert result["success"] is True
    assert stub_client.allocate_calls == [("10", [
        {"animal_id": 42, "row_number": "R1", "parking_id": "A1"},
        {"animal_id": 7, "row_number": "R4", "parking_id": "D1"},
    ])]
    assert len(ready_session.buffer) == 0
    assert ready_session.selected_animal_id is None

    slots = {slot.label: slot for slot in ready_session.grid}
    assert slots["A1"].occupied
    assert slots["D1"].occupied
    assert [a.id for a in ready_session.pool] == ["BUF-9"]


def test_commit_drops_entries_for_occupied_slots(ready_session, stub_client):
    ready_session.select_animal("42")
    ready_session.click_slot("A1")
    ready_session.select_animal("7")
    ready_session.click_slot("B2", force=True)

    result = asyncio.run(ready_session.commit())

    assert result["success"] is True
    assert stub_client.allocate_calls == [("10", [{"animal_id": 42, "row_number": "R1", "parking_id": "A1"}])]
    assert result["dropped"] == [{"slot_label": "B2", "animal_id": "7", "reason": "occupied"}]


def test_commit_with_only_invalid_entries_sends_nothing(ready_session, stub_client):
    ready_session.select_animal("7")
    ready_session.click_slot("C3", force=True)

    result = asyncio.run(ready_session.commit())

    assert result["success"] is False
    assert stub_client.allocate_calls == []
    assert len(ready_session.buffer) == 0


def test_commit_failure_keeps_buffer_and_grid(ready_session, stub_client):
    stub_client.fail.add("allocate_animals")
    ready_session.select_animal("42")
    ready_session.click_slot("A1")
    positions_before = stub_client.count("get_shed_positions")

    result = asyncio.run(ready_session.commit())

    assert result["success"] is False
    assert result["error"]
    assert ready_session.buffer.as_dict() == {"A1": "42"}
    assert ready_session.selected_animal_id == "42"
    assert stub_client.count("get_shed_positions") == positions_before


def test_concurrent_commit_is_rejected(ready_session, stub_client):
    ready_session.select_animal("42")
    ready_session.click_slot("A1")

    async def run():
        gate = asyncio.Event()
        stub_client.gates[("allocate_animals", "10")] = gate
        first = asyncio.ensure_future(ready_session.commit())
        for _ in range(3):
            await asyncio.sleep(0)
        with pytest.raises(StagingError):
            await ready_session.commit()
        gate.set()
        return await first

    assert asyncio.run(run())["success"] is True
    assert len(stub_client.allocate_calls) == 1


def test_commit_finishing_after_shed_change_keeps_new_selection(ready_session, stub_client):
    ready_session.select_animal("42")
    ready_session.click_slot("A1")

    async def run():
        gate = asyncio.Event()
        stub_client.gates[("allocate_animals", "10")] = gate
        pending = asyncio.ensure_future(ready_session.commit())
        for _ in range(3):
            await asyncio.sleep(0)

        await ready_session.select_shed("11")
        ready_session.select_animal("7")
        ready_session.click_slot("B1")
        gate.set()
        return await pending

    result = asyncio.run(run())

    assert result["success"] is True
    assert stub_client.allocate_calls == [("10", [{"animal_id": 42, "row_number": "R1", "parking_id": "A1"}])]
    assert ready_session.selected_shed_id == "11"
    assert ready_session.buffer.as_dict() == {"B1": "7"}
    assert ready_session.selected_animal_id == "7"
    assert len(ready_session.grid) == 8


def test_commit_keeps_entries_staged_after_it_was_sent(ready_session, stub_client):
    ready_session.select_animal("42")
    ready_session.click_slot("A1")

    async def run():
        gate = asyncio.Event()
        stub_client.gates[("allocate_animals", "10")] = gate
        pending = asyncio.ensure_future(ready_session.commit())
        for _ in range(3):
            await asyncio.sleep(0)

        ready_session.select_animal("7")
        ready_session.click_slot("D1")
        gate.set()
        return await pending

    assert asyncio.run(run())["success"] is True
    assert ready_session.buffer.as_dict() == {"D1": "7"}


def test_resync_keeps_shed_list_when_shed_fetch_fails(ready_session, stub_client):
    stub_client.fail.add("get_sheds")
    ready_session.select_animal("42")
    ready_session.click_slot("A1")

    result = asyncio.run(ready_session.commit())

    assert result["success"] is True
    assert [s.shed_id for s in ready_session.sheds] == ["10", "11"]
    assert len(ready_session.grid) == 12
    assert {slot.label: slot for slot in ready_session.grid}["A1"].occupied
    assert ready_session.find_slot("D75") is None


def test_shed_fetch_failure_on_new_farm_leaves_no_sheds(session, stub_client):
    stub_client.fail.add("get_sheds")

    async def run():
        await session.initialize()
        return await session.select_farm("1")

    assert asyncio.run(run()) is True
    assert session.sheds == []
    assert len(session.pool) == 3


def test_clearing_shed_resets_loading_flag(ready_session, stub_client):
    async def run():
        gate = asyncio.Event()
        stub_client.gates[("get_shed_positions", "11")] = gate
        slow = asyncio.ensure_future(ready_session.select_shed("11"))
        for _ in range(3):
            await asyncio.sleep(0)
        assert ready_session.loading_grid is True

        assert await ready_session.select_shed(None) is False
        assert ready_session.loading_grid is False
        gate.set()
        return await slow

    assert asyncio.run(run()) is False
    assert ready_session.loading_grid is False
    assert ready_session.grid == []


def test_clearing_farm_resets_loading_flags(session, stub_client):
    async def run():
        await session.initialize()
        gate = asyncio.Event()
        stub_client.gates[("get_sheds", "2")] = gate
        slow = asyncio.ensure_future(session.select_farm("2"))
        for _ in range(3):
            await asyncio.sleep(0)
        assert session.loading_animals is True

        assert await session.select_farm(None) is False
        gate.set()
        return await slow

    assert asyncio.run(run()) is False
    assert session.loading_animals is False
    assert session.loading_grid is False
    assert session.sheds == []
