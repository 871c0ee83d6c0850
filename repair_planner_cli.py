import argparse
import asyncio
import json
import sys
from pathlib import Path
from typing import List, Optional

from repair_planner.config import load_settings, configure_logging
from repair_planner.errors import ConfigurationError, InvalidPlanError
from repair_planner.main import build_generation_client, build_store
from repair_planner.orchestrator import RepairPlanner
from repair_planner.schemas import DiagnosedFault, WorkOrder
from repair_planner.seed_data import sample_fault, seed_store


def _print_fault(fault: DiagnosedFault) -> None:
    print("=== Diagnosed Fault ===")
    print(f"Machine: {fault.machine_id}")
    print(f"Fault: {fault.fault_type}")
    print(f"Severity: {fault.severity}")
    print(f"Description: {fault.description}")
    print(f"Estimated Downtime: {fault.estimated_downtime_minutes} minutes\n")


def print_work_order(work_order: WorkOrder) -> None:
    print("=== Work Order ===")
    print(f"Work Order #: {work_order.work_order_number}")
    print(f"Machine: {work_order.machine_id}")
    print(f"Title: {work_order.title}")
    print(f"Type: {work_order.type}")
    print(f"Priority: {work_order.priority}")
    print(f"Status: {work_order.status}")
    print(f"Assigned To: {work_order.assigned_to or 'Unassigned'}")
    print(f"Estimated Duration: {work_order.estimated_duration} minutes")
    if work_order.created_at is not None:
        print(f"Created: {work_order.created_at:%Y-%m-%d %H:%M:%S} UTC")
    print(f"\nDescription: {work_order.description}")

    if work_order.tasks:
        print(f"\n=== Repair Tasks ({len(work_order.tasks)}) ===")
        for task in sorted(work_order.tasks, key=lambda t: t.sequence):
            print(f"\n{task.sequence}. {task.title}")
            print(f"   Description: {task.description}")
            print(f"   Duration: {task.estimated_duration_minutes} minutes")
            print(f"   Skills: {', '.join(task.required_skills)}")
            if task.safety_notes:
                print(f"   Safety: {task.safety_notes}")

    if work_order.parts_used:
        print(f"\n=== Parts Required ({len(work_order.parts_used)}) ===")
        for part in work_order.parts_used:
            print(f"- {part.part_number} (Qty: {part.quantity})")
    else:
        print("\n=== Parts Required ===")
        print("No parts required for this repair")

    if work_order.notes:
        print(f"\nNotes: {work_order.notes}")
    print(f"\nWork Order ID: {work_order.id}")


def _load_fault(path: Optional[str]) -> DiagnosedFault:
    if not path:
        return sample_fault()
    return DiagnosedFault.model_validate(json.loads(Path(path).read_text()))


async def run_seed(args: argparse.Namespace) -> int:
    settings = load_settings()
    store = build_store(settings)
    await seed_store(store)
    print(f"Seeded sample technicians and parts into {settings.database_path}")
    return 0


async def run_plan(args: argparse.Namespace) -> int:
    settings = load_settings()
    try:
        client = build_generation_client(settings)
    except ConfigurationError as exc:
        print(f"Configuration error: {exc}")
        return 2
    try:
        store = build_store(settings)
        await store.init()
        fault = _load_fault(args.fault)
        endpoint = settings.generation_endpoint
        print(f"Generation endpoint: {endpoint.base_url}")
        print(f"Model: {endpoint.model_id}")
        print(f"Database: {settings.database_path}\n")
        _print_fault(fault)
        planner = RepairPlanner(store, client)
        work_order = await planner.plan_and_create_work_order(fault)
    except InvalidPlanError as exc:
        print(f"Error: {exc}")
        snippet = exc.snippet()
        if snippet:
            print(f"\nResponse: {snippet}")
        return 1
    finally:
        await client.close()
    print_work_order(work_order)
    return 0


async def run_show(args: argparse.Namespace) -> int:
    settings = load_settings()
    store = build_store(settings)
    await store.init()
    work_order = await store.get_work_order(args.work_order_id)
    if work_order is None:
        print(f"Work order {args.work_order_id} not found")
        return 1
    print_work_order(work_order)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Repair Planner CLI")
    subparsers = parser.add_subparsers(dest="command")

    subparsers.add_parser("seed", help="Load sample technicians and parts")

    plan = subparsers.add_parser("plan", help="Plan and save a work order for a fault")
    plan.add_argument("--fault", help="Path to a diagnosed fault JSON file (defaults to a sample)")

    show = subparsers.add_parser("show", help="Print a saved work order")
    show.add_argument("work_order_id", help="Work order id")

    return parser


COMMANDS = {"seed": run_seed, "plan": run_plan, "show": run_show}


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    handler = COMMANDS.get(args.command)
    if handler is None:
        parser.print_help()
        return 1
    configure_logging(load_settings())
    return asyncio.run(handler(args))


if __name__ == "__main__":
    sys.exit(main())
