from typing import Optional


class ConfigurationError(RuntimeError):
    """A required endpoint or credential is missing at startup."""


class GenerationError(RuntimeError):
    """The generation service answered without usable content."""


class InvalidPlanError(ValueError):
    """The generated plan could not be read as a work order.

    ``raw_text`` keeps the untouched service output for diagnostics.
    """

    def __init__(self, message: str, raw_text: Optional[str] = None):
        super().__init__(message)
        self.raw_text = raw_text or ""

    def snippet(self, limit: int = 500) -> str:
        text = self.raw_text.strip()
        if len(text) <= limit:
            return text
        return text[:limit] + "..."


class MalformedResponseError(InvalidPlanError):
    """Nothing parseable was left after stripping code fences."""


class PlanSchemaError(InvalidPlanError):
    """The payload is not valid JSON or does not match the work order schema."""


class WorkOrderConflictError(RuntimeError):
    def __init__(self, work_order_id: str):
        super().__init__(f"Work order with ID {work_order_id} already exists")
        self.work_order_id = work_order_id
