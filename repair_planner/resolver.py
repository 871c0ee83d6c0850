import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, List, Sequence

from .schemas import AVAILABLE_STATUS, Part, Technician


logger = logging.getLogger(__name__)


@dataclass
class ResolvedResources:
    technicians: List[Technician] = field(default_factory=list)
    parts: List[Part] = field(default_factory=list)
    missing_part_numbers: List[str] = field(default_factory=list)


def matching_skill_count(technician: Technician, required: Sequence[str]) -> int:
    wanted = {skill.lower() for skill in required}
    return sum(1 for skill in technician.skills if skill.lower() in wanted)


def rank_technicians(technicians: Sequence[Technician], required_skills: Sequence[str]) -> List[Technician]:
    """Keep technicians with at least one required skill, best qualified first.

    Order is matching skill count desc, then experience desc; remaining ties
    keep the fetch order (``sorted`` is stable).
    """
    if not required_skills:
        return []
    scored = [(t, matching_skill_count(t, required_skills)) for t in technicians]
    scored = [(t, count) for t, count in scored if count > 0]
    scored = sorted(scored, key=lambda item: (-item[1], -item[0].experience_years))
    return [t for t, _ in scored]


def missing_part_numbers(requested: Sequence[str], parts: Sequence[Part]) -> List[str]:
    found = {p.part_number for p in parts}
    return [pn for pn in requested if pn not in found]


class ResourceResolver:
    """Turns required skills and part numbers into records from the store."""

    def __init__(self, store: Any):
        self.store = store

    async def find_available_technicians(self, required_skills: Sequence[str]) -> List[Technician]:
        skills = list(required_skills)
        if not skills:
            logger.info("No skills requested, returning no technicians")
            return []
        logger.info("Querying technicians with skills: %s", ", ".join(skills))
        technicians = await self.store.query_technicians_by_status(AVAILABLE_STATUS)
        ranked = rank_technicians(technicians, skills)
        logger.info("Found %d available technicians with matching skills", len(ranked))
        return ranked

    async def find_parts(self, part_numbers: Sequence[str]) -> List[Part]:
        requested = list(part_numbers)
        if not requested:
            logger.info("No parts requested, returning empty list")
            return []
        logger.info("Fetching parts: %s", ", ".join(requested))
        parts = await self.store.query_parts_by_numbers(requested)
        logger.info("Found %d parts out of %d requested", len(parts), len(requested))
        missing = missing_part_numbers(requested, parts)
        if missing:
            logger.warning("Parts not found in inventory: %s", ", ".join(missing))
        return parts

    async def resolve(self, required_skills: Sequence[str], part_numbers: Sequence[str]) -> ResolvedResources:
        lookups = [
            asyncio.ensure_future(self.find_available_technicians(required_skills)),
            asyncio.ensure_future(self.find_parts(part_numbers)),
        ]
        try:
            technicians, parts = await asyncio.gather(*lookups)
        except BaseException:
            # One lookup failed; stop the other and wait for it before re-raising.
            for task in lookups:
                task.cancel()
            await asyncio.gather(*lookups, return_exceptions=True)
            raise
        return ResolvedResources(
            technicians=technicians,
            parts=parts,
            missing_part_numbers=missing_part_numbers(list(part_numbers), parts),
        )
