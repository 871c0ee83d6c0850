import asyncio

import pytest

import repair_planner_cli
from repair_planner.schemas import RepairTask, WorkOrder, WorkOrderPartUsage
from repair_planner.store import RecordStore
from tests.fakes import FakeGenerationClient


@pytest.fixture
def cli_env(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    for key in ("GENERATION_BASE_URL", "MODEL_DEPLOYMENT_NAME", "REPAIR_PLANNER_ENV_OVERRIDES_CONFIG"):
        monkeypatch.delenv(key, raising=False)
    db_path = tmp_path / "cli.db"
    monkeypatch.setenv("DATABASE_PATH", str(db_path))
    return db_path


def test_seed_then_show(cli_env, capsys):
    assert repair_planner_cli.main(["seed"]) == 0
    store = RecordStore(str(cli_env))
    saved = asyncio.run(
        store.create_work_order(
            WorkOrder(
                work_order_number="WO-20260115-AB12",
                machine_id="TCP-001",
                title="Repair heater",
                tasks=[RepairTask(sequence=1, title="Lock out", safety_notes="LOTO first")],
                parts_used=[WorkOrderPartUsage(part_id="P-001", part_number="TCP-HTR-4KW", quantity=1)],
            )
        )
    )
    capsys.readouterr()

    assert repair_planner_cli.main(["show", saved.id]) == 0
    out = capsys.readouterr().out
    assert "Work Order #: WO-20260115-AB12" in out
    assert "Assigned To: Unassigned" in out
    assert "1. Lock out" in out
    assert "Safety: LOTO first" in out
    assert "- TCP-HTR-4KW (Qty: 1)" in out


def test_show_missing_work_order(cli_env, capsys):
    assert repair_planner_cli.main(["show", "nope"]) == 1
    assert "not found" in capsys.readouterr().out


def test_plan_without_model_reports_configuration_error(cli_env, capsys):
    assert repair_planner_cli.main(["plan"]) == 2
    assert "MODEL_DEPLOYMENT_NAME" in capsys.readouterr().out


def test_no_command_prints_help(cli_env):
    assert repair_planner_cli.main([]) == 1


def test_plan_saves_sample_fault_work_order(cli_env, monkeypatch, capsys):
    fake = FakeGenerationClient()
    monkeypatch.setattr(repair_planner_cli, "build_generation_client", lambda settings: fake)
    assert repair_planner_cli.main(["seed"]) == 0
    capsys.readouterr()

    assert repair_planner_cli.main(["plan"]) == 0
    out = capsys.readouterr().out
    assert "Machine: TCP-001" in out
    assert "Work Order #: WO-20260115-AB12" in out
    assert "Assigned To: Unassigned" in out
    assert fake.closed is True
    assert "curing_temperature_excessive" in fake.calls[0]["prompt"]
    saved = asyncio.run(RecordStore(str(cli_env)).list_work_orders())
    assert [wo.work_order_number for wo in saved] == ["WO-20260115-AB12"]


def test_plan_with_unreadable_fault_file_closes_client(cli_env, monkeypatch, tmp_path):
    fake = FakeGenerationClient()
    monkeypatch.setattr(repair_planner_cli, "build_generation_client", lambda settings: fake)
    with pytest.raises(FileNotFoundError):
        repair_planner_cli.main(["plan", "--fault", str(tmp_path / "missing.json")])
    assert fake.closed is True
    assert fake.calls == []
