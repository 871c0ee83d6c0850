from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field, StrictStr, field_validator, model_validator


Severity = Literal["critical", "high", "medium", "low"]
Priority = Literal["critical", "high", "medium", "low"]
WorkOrderType = Literal["corrective", "preventive", "emergency"]

DEFAULT_STATUS = "pending"
DEFAULT_PRIORITY: Priority = "medium"
DEFAULT_TYPE: WorkOrderType = "corrective"
AVAILABLE_STATUS = "available"


def coerce_int(value: Any) -> Any:
    """Accept an integer or a numeric string such as "90"; reject anything else."""
    if value is None:
        return value
    if isinstance(value, bool):
        raise ValueError("expected a number, got a boolean")
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if value.is_integer():
            return int(value)
        raise ValueError(f"expected a whole number, got {value!r}")
    if isinstance(value, str):
        text = value.strip()
        try:
            return int(text)
        except ValueError:
            pass
        try:
            number = float(text)
        except ValueError:
            raise ValueError(f"expected a number, got {value!r}") from None
        if number.is_integer():
            return int(number)
        raise ValueError(f"expected a whole number, got {value!r}")
    raise ValueError(f"expected a number, got {type(value).__name__}")


class DiagnosedFault(BaseModel):
    machine_id: str = Field(alias="machineId")
    fault_type: str = Field(alias="faultType")
    severity: Severity
    description: str = ""
    detected_at: datetime = Field(alias="detectedAt")
    recommended_actions: List[str] = Field(default_factory=list, alias="recommendedActions")
    estimated_downtime_minutes: int = Field(default=0, ge=0, alias="estimatedDowntimeMinutes")

    model_config = {"frozen": True, "populate_by_name": True}


class TechnicianContactInfo(BaseModel):
    email: str = ""
    phone: str = ""


class Technician(BaseModel):
    id: str
    name: str = ""
    department: str = ""
    skills: List[str] = Field(default_factory=list)
    certifications: List[str] = Field(default_factory=list)
    experience_years: int = Field(default=0, ge=0, alias="experienceYears")
    current_status: str = Field(default="", alias="currentStatus")
    shift: str = ""
    contact_info: TechnicianContactInfo = Field(default_factory=TechnicianContactInfo, alias="contactInfo")

    model_config = {"populate_by_name": True, "extra": "ignore"}


class Part(BaseModel):
    id: str
    part_number: str = Field(alias="partNumber")
    name: str = ""
    description: str = ""
    category: str = ""
    quantity_available: int = Field(default=0, ge=0, alias="quantityAvailable")
    reorder_point: int = Field(default=0, ge=0, alias="reorderPoint")
    unit_cost: Decimal = Field(default=Decimal("0"), ge=0, alias="unitCost")
    location: str = ""
    supplier: str = ""
    lead_time_days: int = Field(default=0, ge=0, alias="leadTimeDays")

    model_config = {"populate_by_name": True, "extra": "ignore"}


class RepairTask(BaseModel):
    sequence: int = 0
    title: str = ""
    description: str = ""
    estimated_duration_minutes: int = Field(default=0, ge=0, alias="estimatedDurationMinutes")
    required_skills: List[str] = Field(default_factory=list, alias="requiredSkills")
    safety_notes: Optional[str] = Field(default=None, alias="safetyNotes")

    model_config = {"populate_by_name": True}


class WorkOrderPartUsage(BaseModel):
    part_id: str = Field(default="", alias="partId")
    part_number: str = Field(default="", alias="partNumber")
    quantity: int = Field(default=1, gt=0)

    model_config = {"populate_by_name": True}


class WorkOrder(BaseModel):
    id: str = ""
    work_order_number: str = Field(default="", alias="workOrderNumber")
    machine_id: str = Field(default="", alias="machineId")
    title: str = ""
    description: str = ""
    type: WorkOrderType = DEFAULT_TYPE
    priority: Priority = DEFAULT_PRIORITY
    status: str = DEFAULT_STATUS
    assigned_to: Optional[str] = Field(default=None, alias="assignedTo")
    created_at: Optional[datetime] = Field(default=None, alias="createdAt")
    estimated_duration: int = Field(default=0, ge=0, alias="estimatedDuration")
    tasks: List[RepairTask] = Field(default_factory=list)
    parts_used: List[WorkOrderPartUsage] = Field(default_factory=list, alias="partsUsed")
    notes: str = ""
    etag: Optional[str] = Field(default=None, alias="_etag")

    model_config = {"populate_by_name": True, "extra": "ignore"}

    def to_document(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


# Drafts mirror what the generation service sends back. Text fields take strings
# only and enums take their exact values; only the minute/quantity/sequence
# fields accept numeric strings. Keys match field names case-insensitively;
# an exact match wins over a case-folded one.


class _DraftModel(BaseModel):
    @model_validator(mode="before")
    @classmethod
    def _fold_key_case(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        lookup: Dict[str, str] = {}
        for name, info in cls.model_fields.items():
            target = info.alias or name
            lookup[name.lower()] = target
            lookup[target.lower()] = target
        folded: Dict[Any, Any] = {}
        for key, value in data.items():
            target = lookup.get(key.lower(), key) if isinstance(key, str) else key
            if key != target and target in data:
                continue
            folded[target] = value
        return folded


class DraftRepairTask(_DraftModel):
    sequence: int = Field(default=0, ge=0)
    title: Optional[StrictStr] = None
    description: Optional[StrictStr] = None
    estimated_duration_minutes: int = Field(default=0, ge=0, alias="estimatedDurationMinutes")
    required_skills: Optional[List[StrictStr]] = Field(default=None, alias="requiredSkills")
    safety_notes: Optional[StrictStr] = Field(default=None, alias="safetyNotes")

    model_config = {"populate_by_name": True, "extra": "ignore"}

    @field_validator("sequence", "estimated_duration_minutes", mode="before")
    @classmethod
    def _numeric(cls, value: Any) -> Any:
        value = coerce_int(value)
        return 0 if value is None else value


class DraftPartUsage(_DraftModel):
    part_id: Optional[StrictStr] = Field(default=None, alias="partId")
    part_number: Optional[StrictStr] = Field(default=None, alias="partNumber")
    quantity: int = Field(default=1, gt=0)

    model_config = {"populate_by_name": True, "extra": "ignore"}

    @field_validator("quantity", mode="before")
    @classmethod
    def _numeric(cls, value: Any) -> Any:
        value = coerce_int(value)
        return 1 if value is None else value


class WorkOrderDraft(_DraftModel):
    id: Optional[StrictStr] = None
    work_order_number: Optional[StrictStr] = Field(default=None, alias="workOrderNumber")
    machine_id: Optional[StrictStr] = Field(default=None, alias="machineId")
    title: Optional[StrictStr] = None
    description: Optional[StrictStr] = None
    type: Optional[WorkOrderType] = None
    priority: Optional[Priority] = None
    status: Optional[StrictStr] = None
    assigned_to: Optional[StrictStr] = Field(default=None, alias="assignedTo")
    estimated_duration: int = Field(default=0, ge=0, alias="estimatedDuration")
    tasks: Optional[List[DraftRepairTask]] = None
    parts_used: Optional[List[DraftPartUsage]] = Field(default=None, alias="partsUsed")
    notes: Optional[StrictStr] = None

    model_config = {"populate_by_name": True, "extra": "ignore"}

    @field_validator("estimated_duration", mode="before")
    @classmethod
    def _numeric(cls, value: Any) -> Any:
        value = coerce_int(value)
        return 0 if value is None else value

    @field_validator("type", "priority", "status", "assigned_to", mode="before")
    @classmethod
    def _blank_is_unset(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value


class FaultRequirements(BaseModel):
    skills: List[str] = Field(default_factory=list)
    part_numbers: List[str] = Field(default_factory=list)

    model_config = {"frozen": True}
