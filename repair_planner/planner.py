import logging
from datetime import datetime, timezone
from typing import Any, List, Optional, Sequence

from . import agents
from .schemas import DiagnosedFault, Part, Technician


logger = logging.getLogger(__name__)

NO_TECHNICIANS_LINE = "- None found: no available technicians match the required skills"
NO_PARTS_LINE = "- None found: no matching parts in inventory"
NONE_REQUIRED = "None"


def _utc_text(value: datetime) -> str:
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc)
    return value.strftime("%Y-%m-%d %H:%M:%S")


def _join(values: Sequence[str], sep: str = ", ") -> str:
    return sep.join(values) if values else NONE_REQUIRED


def technician_summary(technician: Technician) -> str:
    return (
        f"- {technician.name} (ID: {technician.id}, Skills: {', '.join(technician.skills)}, "
        f"Experience: {technician.experience_years} years)"
    )


def part_summary(part: Part) -> str:
    return f"- {part.name} (ID: {part.id}, Part#: {part.part_number}, Available: {part.quantity_available})"


def build_prompt(
    fault: DiagnosedFault,
    required_skills: Sequence[str],
    required_part_numbers: Sequence[str],
    technicians: Sequence[Technician],
    parts: Sequence[Part],
) -> str:
    """Assemble the planning request. Same inputs always give the same text."""
    technician_lines = [technician_summary(t) for t in technicians] or [NO_TECHNICIANS_LINE]
    part_lines = [part_summary(p) for p in parts] or [NO_PARTS_LINE]
    lines: List[str] = [
        "DIAGNOSED FAULT:",
        f"- Machine ID: {fault.machine_id}",
        f"- Fault Type: {fault.fault_type}",
        f"- Severity: {fault.severity}",
        f"- Description: {fault.description}",
        f"- Detected At: {_utc_text(fault.detected_at)} UTC",
        f"- Estimated Downtime: {fault.estimated_downtime_minutes} minutes",
        f"- Recommended Actions: {_join(fault.recommended_actions, '; ')}",
        "",
        "REQUIRED SKILLS:",
        _join(required_skills),
        "",
        "REQUIRED PARTS:",
        _join(required_part_numbers),
        "",
        "AVAILABLE TECHNICIANS (sorted by qualification):",
        *technician_lines,
        "",
        "AVAILABLE PARTS:",
        *part_lines,
        "",
        "Generate a comprehensive repair plan as a JSON work order.",
    ]
    return "\n".join(lines)


class PlanRequester:
    """Sends one planning prompt to the generation service; no retries."""

    def __init__(self, generation_client: Any, system_prompt: Optional[str] = None, max_tokens: int = 2048):
        self.generation_client = generation_client
        self.system_prompt = system_prompt or agents.REPAIR_PLANNER_SYSTEM
        self.max_tokens = max_tokens

    async def invoke(self, prompt: str) -> str:
        logger.info("Invoking generation service for repair plan")
        raw_text = await self.generation_client.complete(
            prompt, system=self.system_prompt, max_tokens=self.max_tokens
        )
        logger.debug("Generation response: %s", raw_text)
        return raw_text
