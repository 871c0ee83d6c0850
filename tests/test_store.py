import pytest

from repair_planner.errors import WorkOrderConflictError
from repair_planner.schemas import WorkOrder
from repair_planner.seed_data import sample_parts, sample_technicians, seed_store
from repair_planner.store import RecordStore
from tests.fakes import part, technician


@pytest.mark.asyncio
async def test_technician_status_query_returns_insertion_order(store):
    await store.upsert_technician(technician("T-2", ["a"], 1))
    await store.upsert_technician(technician("T-1", ["b"], 2))
    await store.upsert_technician(technician("T-3", ["c"], 3, status="busy"))
    available = await store.query_technicians_by_status("available")
    assert [t.id for t in available] == ["T-2", "T-1"]


@pytest.mark.asyncio
async def test_upsert_replaces_existing_document(store):
    await store.upsert_technician(technician("T-1", ["a"], 1))
    await store.upsert_technician(technician("T-1", ["a"], 1, status="busy"))
    assert await store.query_technicians_by_status("available") == []
    busy = await store.query_technicians_by_status("busy")
    assert [t.id for t in busy] == ["T-1"]


@pytest.mark.asyncio
async def test_parts_query_by_numbers(store):
    await store.upsert_part(part("P-1", "AAA"))
    await store.upsert_part(part("P-2", "BBB"))
    await store.upsert_part(part("P-3", "CCC"))
    found = await store.query_parts_by_numbers(["CCC", "AAA", "ZZZ"])
    assert sorted(p.part_number for p in found) == ["AAA", "CCC"]


@pytest.mark.asyncio
async def test_empty_part_list_does_not_touch_the_database(tmp_path):
    unreachable = RecordStore(str(tmp_path / "missing" / "nowhere.db"))
    assert await unreachable.query_parts_by_numbers([]) == []


@pytest.mark.asyncio
async def test_create_work_order_stamps_created_at_and_etag(store):
    draft = WorkOrder(work_order_number="WO-20260115-AB12", machine_id="TCP-001", title="Fix", status="")
    saved = await store.create_work_order(draft)
    assert saved.id
    assert saved.status == "pending"
    assert saved.created_at is not None
    assert saved.etag
    assert draft.created_at is None

    loaded = await store.get_work_order(saved.id)
    assert loaded is not None
    assert loaded.work_order_number == "WO-20260115-AB12"
    assert loaded.etag == saved.etag
    assert loaded.created_at == saved.created_at


@pytest.mark.asyncio
async def test_duplicate_id_in_same_partition_conflicts(store):
    await store.create_work_order(WorkOrder(id="wo-1", title="first"))
    with pytest.raises(WorkOrderConflictError) as excinfo:
        await store.create_work_order(WorkOrder(id="wo-1", title="second"))
    assert excinfo.value.work_order_id == "wo-1"
    assert "already exists" in str(excinfo.value)
    loaded = await store.get_work_order("wo-1")
    assert loaded.title == "first"


@pytest.mark.asyncio
async def test_same_id_in_another_status_partition_is_allowed(store):
    await store.create_work_order(WorkOrder(id="wo-1", status="pending"))
    await store.create_work_order(WorkOrder(id="wo-1", status="in_progress"))
    assert (await store.get_work_order("wo-1", status="in_progress")).status == "in_progress"


@pytest.mark.asyncio
async def test_list_work_orders_filters_by_status_and_limits(store):
    for idx in range(3):
        await store.create_work_order(WorkOrder(id=f"wo-{idx}", status="pending"))
    await store.create_work_order(WorkOrder(id="wo-done", status="completed"))
    pending = await store.list_work_orders(status="pending")
    assert [wo.id for wo in pending] == ["wo-0", "wo-1", "wo-2"]
    latest = await store.list_work_orders(limit=2)
    assert [wo.id for wo in latest] == ["wo-2", "wo-done"]


def test_container_names_are_validated():
    with pytest.raises(ValueError):
        RecordStore("x.db", work_orders_container="work orders; DROP TABLE")


@pytest.mark.asyncio
async def test_seed_store_loads_sample_records(tmp_path):
    seeded = RecordStore(str(tmp_path / "seed.db"))
    await seed_store(seeded)
    available = await seeded.query_technicians_by_status("available")
    assert len(available) == sum(1 for t in sample_technicians() if t.current_status == "available")
    numbers = [p.part_number for p in sample_parts()]
    assert len(await seeded.query_parts_by_numbers(numbers)) == len(numbers)
