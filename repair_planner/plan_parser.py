"""Read generated repair plans and turn them into consistent work orders.

Parsing is two separate steps so a broken fence and broken JSON fail with
different errors:

* ``extract_json`` strips an optional markdown code fence.
* ``parse_work_order`` decodes the JSON into a ``WorkOrderDraft``.

``normalize_work_order`` then fills defaults and drops anything that cannot be
trusted, returning a new ``WorkOrder`` without touching the draft.
"""

import json
import logging
import re
import uuid
from collections import Counter
from datetime import datetime, timezone
from typing import Callable, List, Optional, Sequence

from pydantic import ValidationError

from .errors import MalformedResponseError, PlanSchemaError
from .schemas import (
    DEFAULT_PRIORITY,
    DEFAULT_STATUS,
    DEFAULT_TYPE,
    DiagnosedFault,
    RepairTask,
    Technician,
    WorkOrder,
    WorkOrderDraft,
    WorkOrderPartUsage,
)


logger = logging.getLogger(__name__)

FENCE = "```"
_OPENING_FENCE_RE = re.compile(r"^```[A-Za-z0-9_+-]*[ \t]*(?:\r?\n)?")
WORK_ORDER_NUMBER_RE = re.compile(r"^WO-\d{8}-[0-9A-Z]{4}$")


def extract_json(raw_text: str) -> str:
    text = (raw_text or "").strip()
    if text.startswith(FENCE):
        text = _OPENING_FENCE_RE.sub("", text, count=1)
    if text.endswith(FENCE):
        text = text[: -len(FENCE)]
    text = text.strip()
    if not text:
        raise MalformedResponseError("Generated plan is empty after removing code fences", raw_text)
    return text


def parse_work_order(json_text: str, raw_text: Optional[str] = None) -> WorkOrderDraft:
    raw = raw_text if raw_text is not None else json_text
    try:
        data = json.loads(json_text)
    except (ValueError, RecursionError) as exc:
        # JSONDecodeError, oversized integer literals and pathological nesting.
        logger.error("Failed to parse generated plan as JSON. Response: %s", raw)
        raise PlanSchemaError(f"Generated plan is not valid JSON: {exc}", raw) from exc
    if not isinstance(data, dict):
        logger.error("Generated plan is not a JSON object. Response: %s", raw)
        raise PlanSchemaError("Generated plan is not a JSON object", raw)
    try:
        return WorkOrderDraft.model_validate(data)
    except ValidationError as exc:
        fields = ", ".join(".".join(str(p) for p in err["loc"]) for err in exc.errors())
        logger.error("Generated plan does not match the work order schema (%s). Response: %s", fields, raw)
        raise PlanSchemaError(f"Generated plan does not match the work order schema: {fields}", raw) from exc


def parse_plan_response(raw_text: str) -> WorkOrderDraft:
    return parse_work_order(extract_json(raw_text), raw_text)


def generate_work_order_number(now: Optional[datetime] = None) -> str:
    moment = now or datetime.now(timezone.utc)
    if moment.tzinfo is not None:
        moment = moment.astimezone(timezone.utc)
    return f"WO-{moment:%Y%m%d}-{uuid.uuid4().hex[:4].upper()}"


def _new_id() -> str:
    return str(uuid.uuid4())


def _normalize_tasks(draft: WorkOrderDraft) -> List[RepairTask]:
    tasks: List[RepairTask] = []
    for index, task in enumerate(draft.tasks or []):
        tasks.append(
            RepairTask(
                sequence=task.sequence or index + 1,
                title=task.title or "",
                description=task.description or "",
                estimated_duration_minutes=task.estimated_duration_minutes,
                required_skills=list(task.required_skills or []),
                safety_notes=task.safety_notes,
            )
        )
    # Duplicate generator-assigned sequences are kept as-is and only reported.
    duplicates = sorted(seq for seq, count in Counter(t.sequence for t in tasks).items() if count > 1)
    if duplicates:
        logger.warning("Duplicate task sequence numbers left as generated: %s", duplicates)
    return tasks


def normalize_work_order(
    draft: WorkOrderDraft,
    fault: DiagnosedFault,
    candidates: Sequence[Technician],
    *,
    now: Optional[datetime] = None,
    id_factory: Callable[[], str] = _new_id,
) -> WorkOrder:
    """Fill defaults and validate a draft against the run's fault and candidates."""
    work_order_id = draft.id or id_factory()

    status = draft.status or DEFAULT_STATUS
    priority = draft.priority or DEFAULT_PRIORITY
    order_type = draft.type or DEFAULT_TYPE

    work_order_number = draft.work_order_number or generate_work_order_number(now)

    machine_id = draft.machine_id or fault.machine_id

    assigned_to = draft.assigned_to
    if assigned_to and assigned_to not in {t.id for t in candidates}:
        logger.warning(
            "Assigned technician %s not found in available list, leaving work order unassigned",
            assigned_to,
        )
        assigned_to = None

    tasks = _normalize_tasks(draft)

    parts_used = [
        WorkOrderPartUsage(part_id=p.part_id or "", part_number=p.part_number or "", quantity=p.quantity)
        for p in draft.parts_used or []
    ]

    return WorkOrder(
        id=work_order_id,
        work_order_number=work_order_number,
        machine_id=machine_id,
        title=draft.title or "",
        description=draft.description or "",
        type=order_type,
        priority=priority,
        status=status,
        assigned_to=assigned_to,
        estimated_duration=draft.estimated_duration,
        tasks=tasks,
        parts_used=parts_used,
        notes=draft.notes or "",
    )
