import asyncio
import logging
import uuid
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from .fault_mapping import map_requirements
from .plan_parser import normalize_work_order, parse_plan_response
from .planner import PlanRequester, build_prompt
from .resolver import ResourceResolver
from .schemas import DiagnosedFault, WorkOrder


logger = logging.getLogger(__name__)

STAGE_PENDING = "pending"
STAGE_MAPPING = "mapping"
STAGE_RESOLVING = "resolving"
STAGE_REQUESTING = "requesting"
STAGE_PARSING = "parsing"
STAGE_PERSISTING = "persisting"
STAGE_COMPLETED = "completed"
STAGE_FAILED = "failed"

PIPELINE_STAGES = (STAGE_MAPPING, STAGE_RESOLVING, STAGE_REQUESTING, STAGE_PARSING, STAGE_PERSISTING)

EventCallback = Callable[[str, Dict[str, Any]], None]


def new_run_id() -> str:
    return uuid.uuid4().hex


@dataclass
class PlanningRun:
    """State of one fault-to-work-order run.

    ``work_order`` holds the normalized order once parsing succeeds and the
    persisted record after completion.
    """

    run_id: str
    machine_id: str
    fault_type: str
    stage: str = STAGE_PENDING
    failed_stage: Optional[str] = None
    error: Optional[BaseException] = None
    work_order: Optional[WorkOrder] = None
    history: List[str] = field(default_factory=list)


class RepairPlanner:
    """Runs mapping, resolving, requesting, parsing and persisting in order.

    Failures are logged with the fault and stage, recorded on the run and
    re-raised unchanged; there are no retries between stages.
    """

    def __init__(
        self,
        store: Any,
        generation_client: Any,
        *,
        resolver: Optional[ResourceResolver] = None,
        requester: Optional[PlanRequester] = None,
        on_event: Optional[EventCallback] = None,
    ):
        self.store = store
        self.resolver = resolver or ResourceResolver(store)
        self.requester = requester or PlanRequester(generation_client)
        self.on_event = on_event

    def _emit(self, event_type: str, run: PlanningRun, detail: Optional[Dict[str, Any]] = None) -> None:
        if self.on_event is None:
            return
        payload = {"run_id": run.run_id, "machine_id": run.machine_id, "stage": run.stage}
        if detail:
            payload.update(detail)
        self.on_event(event_type, payload)

    def _enter(self, run: PlanningRun, stage: str) -> None:
        run.stage = stage
        run.history.append(stage)
        self._emit("stage", run)

    def _fail(self, run: PlanningRun, exc: BaseException) -> None:
        run.failed_stage = run.stage
        run.error = exc
        run.stage = STAGE_FAILED
        run.history.append(STAGE_FAILED)
        self._emit("failed", run, {"failed_stage": run.failed_stage, "error": str(exc) or type(exc).__name__})

    async def plan_and_create_work_order(
        self,
        fault: DiagnosedFault,
        run: Optional[PlanningRun] = None,
    ) -> WorkOrder:
        run = run or PlanningRun(run_id=new_run_id(), machine_id=fault.machine_id, fault_type=fault.fault_type)
        logger.info(
            "Starting repair planning for machine %s, fault: %s (run %s)",
            fault.machine_id,
            fault.fault_type,
            run.run_id,
        )
        try:
            self._enter(run, STAGE_MAPPING)
            requirements = map_requirements(fault.fault_type)
            logger.info(
                "Required skills: %s, Required parts: %s",
                ", ".join(requirements.skills),
                ", ".join(requirements.part_numbers),
            )

            self._enter(run, STAGE_RESOLVING)
            resources = await self.resolver.resolve(requirements.skills, requirements.part_numbers)
            logger.info(
                "Found %d available technicians and %d parts",
                len(resources.technicians),
                len(resources.parts),
            )

            self._enter(run, STAGE_REQUESTING)
            prompt = build_prompt(
                fault,
                requirements.skills,
                requirements.part_numbers,
                resources.technicians,
                resources.parts,
            )
            logger.debug("Planning prompt: %s", prompt)
            raw_text = await self.requester.invoke(prompt)

            self._enter(run, STAGE_PARSING)
            draft = parse_plan_response(raw_text)
            work_order = normalize_work_order(draft, fault, resources.technicians)
            run.work_order = work_order

            self._enter(run, STAGE_PERSISTING)
            saved = await self.store.create_work_order(work_order)
        except asyncio.CancelledError as exc:
            logger.warning(
                "Repair planning cancelled for machine %s, fault %s at stage %s",
                fault.machine_id,
                fault.fault_type,
                run.stage,
            )
            self._fail(run, exc)
            raise
        except Exception as exc:
            logger.error(
                "Failed to plan and create work order for machine %s, fault %s at stage %s: %s",
                fault.machine_id,
                fault.fault_type,
                run.stage,
                exc,
            )
            self._fail(run, exc)
            raise

        run.work_order = saved
        run.stage = STAGE_COMPLETED
        run.history.append(STAGE_COMPLETED)
        self._emit("completed", run, {"work_order_id": saved.id})
        logger.info(
            "Work order %s created successfully for machine %s",
            saved.work_order_number,
            saved.machine_id,
        )
        return saved

    async def persist_with_new_id(self, work_order: WorkOrder) -> WorkOrder:
        """Retry persistence once under a fresh id after a conflict.

        Callers opt into this explicitly; the planning run itself never retries.
        """
        retry = work_order.model_copy(update={"id": str(uuid.uuid4()), "etag": None})
        logger.info("Retrying persistence of work order %s as %s", work_order.work_order_number, retry.id)
        return await self.store.create_work_order(retry)
