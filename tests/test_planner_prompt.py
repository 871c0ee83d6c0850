from datetime import datetime, timedelta, timezone

import pytest

from repair_planner import agents
from repair_planner.planner import NO_PARTS_LINE, NO_TECHNICIANS_LINE, PlanRequester, build_prompt
from tests.fakes import FakeGenerationClient, curing_fault, scenario_parts, technician


SKILLS = ["thermal_controls", "plc_programming"]
PARTS = ["TCP-HTR-4KW", "GEN-TS-K400"]


def test_prompt_lists_fault_requirements_and_resources_in_order():
    techs = [
        technician("T-101", SKILLS, 5, name="Ana Lima"),
        technician("T-102", ["thermal_controls"], 10, name="Ben Ortiz"),
    ]
    prompt = build_prompt(curing_fault(), SKILLS, PARTS, techs, scenario_parts())
    assert "- Machine ID: TCP-001" in prompt
    assert "- Severity: high" in prompt
    assert "- Detected At: 2026-01-15 08:30:00 UTC" in prompt
    assert "thermal_controls, plc_programming" in prompt
    assert "TCP-HTR-4KW, GEN-TS-K400" in prompt
    assert "- Ana Lima (ID: T-101, Skills: thermal_controls, plc_programming, Experience: 5 years)" in prompt
    assert prompt.index("T-101") < prompt.index("T-102")
    assert "- Part TCP-HTR-4KW (ID: P-001, Part#: TCP-HTR-4KW, Available: 4)" in prompt
    sections = ["DIAGNOSED FAULT:", "REQUIRED SKILLS:", "REQUIRED PARTS:", "AVAILABLE TECHNICIANS", "AVAILABLE PARTS:"]
    positions = [prompt.index(s) for s in sections]
    assert positions == sorted(positions)


def test_empty_resources_render_explicit_none_markers():
    prompt = build_prompt(curing_fault(fault_type="mystery"), ["general_maintenance"], [], [], [])
    assert NO_TECHNICIANS_LINE in prompt
    assert NO_PARTS_LINE in prompt
    assert "REQUIRED PARTS:\nNone" in prompt


def test_detected_at_is_rendered_in_utc():
    local = datetime(2026, 1, 15, 10, 30, 0, tzinfo=timezone(timedelta(hours=2)))
    prompt = build_prompt(curing_fault(detected_at=local), SKILLS, PARTS, [], [])
    assert "- Detected At: 2026-01-15 08:30:00 UTC" in prompt


def test_same_inputs_give_same_prompt():
    techs = [technician("T-101", SKILLS, 5)]
    first = build_prompt(curing_fault(), SKILLS, PARTS, techs, scenario_parts())
    second = build_prompt(curing_fault(), SKILLS, PARTS, techs, scenario_parts())
    assert first == second


@pytest.mark.asyncio
async def test_requester_sends_system_instructions_once():
    fake = FakeGenerationClient(responses=["{}"])
    requester = PlanRequester(fake, max_tokens=1024)
    raw = await requester.invoke("plan this")
    assert raw == "{}"
    assert len(fake.calls) == 1
    assert fake.calls[0]["system"] == agents.REPAIR_PLANNER_SYSTEM
    assert fake.calls[0]["prompt"] == "plan this"
    assert fake.calls[0]["max_tokens"] == 1024
