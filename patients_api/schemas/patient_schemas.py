from datetime import date, datetime
from enum import Enum
from typing import Any, ClassVar, Dict, List, Optional, Type
import uuid

from pydantic import (
    BaseModel,
    ConfigDict,
    EmailStr,
    Field,
    TypeAdapter,
    ValidationError,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel

from patients_api.core.pagination import PaginationParams


class PatientStatus(str, Enum):
    """Usual patient status values. Stored as free text, not enforced."""

    ACTIVE = "Active"
    INTAKE = "Intake"
    PENDING = "Pending"
    ARCHIVED = "Archived"
    ON_HOLD = "On Hold"
    DISCHARGED = "Discharged"


class InsuranceStatus(str, Enum):
    """Usual insurance status values. Stored as free text, not enforced."""

    ACTIVE = "Active"
    INACTIVE = "Inactive"
    PENDING_APPROVAL = "Pending Approval"
    DENIED = "Denied"


class SortOrder(str, Enum):
    ASC = "asc"
    DESC = "desc"


# Payload fields holding calendar dates
DATE_FIELDS = (
    "intake_date",
    "last_interaction_date",
    "next_appointment_date",
    "date_of_birth",
)

_DATETIME_ADAPTER = TypeAdapter(datetime)

# Wire names accepted by ``sortBy``
SORTABLE_FIELDS = (
    "name",
    "email",
    "status",
    "intakeDate",
    "createdAt",
    "lastInteractionDate",
    "nextAppointmentDate",
)
DEFAULT_SORT_FIELD = "createdAt"


# ============= Payload Schemas =============
class PayloadSchema(BaseModel):
    """
    Base for submitted form / JSON payloads.

    Keys may be camelCase (as the dashboard forms send them) or snake_case.
    Blank strings are what an untouched form input submits, so they are
    read as "not supplied".

    Subclasses list a human-readable message per field in ``ISSUE_MESSAGES``;
    fields without one fall back to pydantic's own message.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
        extra="ignore",
    )

    ISSUE_MESSAGES: ClassVar[Dict[str, str]] = {}

    @model_validator(mode="before")
    @classmethod
    def blank_strings_to_none(cls, data: Any) -> Any:
        if isinstance(data, dict):
            return {
                key: (None if isinstance(value, str) and not value.strip() else value)
                for key, value in data.items()
            }
        return data

    @field_validator(*DATE_FIELDS, mode="before", check_fields=False)
    @classmethod
    def datetimes_to_dates(cls, value: Any) -> Any:
        """Accept full timestamps (e.g. ``toISOString()`` output) for date fields."""
        if isinstance(value, datetime):
            return value.date()
        if isinstance(value, str) and "T" in value:
            try:
                return _DATETIME_ADAPTER.validate_python(value).date()
            except ValidationError:
                return value
        return value

    @classmethod
    def _field_for(cls, loc_item: Any) -> Optional[str]:
        for name, info in cls.model_fields.items():
            if loc_item == name or loc_item == info.alias:
                return name
        return None

    @classmethod
    def issues_from(cls, exc: ValidationError) -> List[str]:
        """Translate a ValidationError into ordered, de-duplicated messages."""
        issues: List[str] = []
        for error in exc.errors():
            field = cls._field_for(error["loc"][0]) if error["loc"] else None
            message = cls.ISSUE_MESSAGES.get(field) if field else None
            if message is None:
                label = error["loc"][0] if error["loc"] else "payload"
                message = f"{label}: {error['msg']}"
            if message not in issues:
                issues.append(message)
        return issues


class PatientCreateSchema(PayloadSchema):
    """Schema for adding a new patient."""

    ISSUE_MESSAGES = {
        "name": "Name is required.",
        "email": "Invalid email address.",
        "status": "Status is required.",
        "intake_date": "Intake date is required and must be a valid date.",
        "last_interaction_date": "Last interaction date must be a valid date.",
        "next_appointment_date": "Next appointment date must be a valid date.",
        "date_of_birth": "Date of birth must be a valid date.",
    }

    name: str = Field(min_length=1)
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    patient_id_internal: Optional[str] = None
    assigned_staff_id: Optional[str] = None
    status: str = Field(min_length=1)
    last_interaction_date: Optional[date] = None
    next_appointment_date: Optional[date] = None
    insurance_status: Optional[str] = None
    intake_date: date
    date_of_birth: Optional[date] = None


class PatientUpdateSchema(PayloadSchema):
    """
    Schema for editing a patient.

    Only ``id`` is required. Every other field is an optional patch entry;
    ``changes()`` returns exactly the entries that were supplied.
    """

    ISSUE_MESSAGES = {
        "id": "Invalid patient ID.",
        "name": "Name is required.",
        "email": "Invalid email address.",
        "status": "Status is required.",
        "intake_date": "Intake date must be a valid date.",
        "last_interaction_date": "Last interaction date must be a valid date.",
        "next_appointment_date": "Next appointment date must be a valid date.",
        "date_of_birth": "Date of birth must be a valid date.",
    }

    id: uuid.UUID
    name: Optional[str] = Field(default=None, min_length=1)
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    patient_id_internal: Optional[str] = None
    assigned_staff_id: Optional[str] = None
    status: Optional[str] = Field(default=None, min_length=1)
    last_interaction_date: Optional[date] = None
    next_appointment_date: Optional[date] = None
    insurance_status: Optional[str] = None
    intake_date: Optional[date] = None
    date_of_birth: Optional[date] = None

    def changes(self) -> Dict[str, Any]:
        return {
            field: value
            for field, value in self.model_dump(exclude={"id"}).items()
            if value is not None
        }


class PatientArchiveSchema(PayloadSchema):
    ISSUE_MESSAGES = {"id": "Invalid patient ID."}

    id: uuid.UUID


class PatientStatusUpdateSchema(PayloadSchema):
    ISSUE_MESSAGES = {
        "id": "Invalid patient ID.",
        "status": "Status cannot be empty.",
    }

    id: uuid.UUID
    status: str = Field(min_length=1)


# ============= Mutation Results =============
class MutationOutcome(str, Enum):
    SUCCESS = "success"
    INVALID = "invalid"
    NOT_FOUND = "not_found"
    NO_CHANGES = "no_changes"
    ERROR = "error"


class MutationResult(BaseModel):
    """
    Result of a create / update / archive / status mutation.

    ``submitted_fields`` echoes the raw payload (serialized as ``fields``) so
    a form can be re-populated after a failed submission.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    outcome: MutationOutcome
    message: str
    issues: Optional[List[str]] = None
    submitted_fields: Optional[Dict[str, str]] = Field(default=None, alias="fields")
    id: Optional[str] = None
    status: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.outcome in (MutationOutcome.SUCCESS, MutationOutcome.NO_CHANGES)

    def to_body(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


# ============= Query Schemas =============
class PatientFilters(BaseModel):
    """
    Filter values a caller hands to the list query explicitly.

    An empty ``search_term`` or ``status_filter`` means "no filter".
    """

    search_term: str = ""
    status_filter: str = ""

    def as_query(self) -> Dict[str, str]:
        query: Dict[str, str] = {}
        if self.search_term.strip():
            query["search"] = self.search_term.strip()
        if self.status_filter.strip():
            query["status"] = self.status_filter.strip()
        return query


class PatientListParams(PaginationParams):
    """Parameters accepted by the patients list query."""

    sort_by: Optional[str] = None
    sort_order: Optional[str] = None
    search: Optional[str] = None
    status: Optional[str] = None
    is_archived: Optional[bool] = None

    @classmethod
    def from_filters(
        cls: Type["PatientListParams"], filters: PatientFilters, **kwargs: Any
    ) -> "PatientListParams":
        return cls(**{**filters.as_query(), **kwargs})

    def resolved_sort(self) -> tuple[str, SortOrder]:
        """
        Effective (field, order) pair.

        Unknown fields fall back to ``createdAt desc`` whatever order was asked
        for; for known fields only an explicit ``asc`` sorts ascending.
        """
        if self.sort_by not in SORTABLE_FIELDS:
            return DEFAULT_SORT_FIELD, SortOrder.DESC
        if (self.sort_order or "").strip().lower() == SortOrder.ASC.value:
            return self.sort_by, SortOrder.ASC
        return self.sort_by, SortOrder.DESC


# ============= Response Schemas =============
class PatientResponseSchema(BaseModel):
    """Patient as returned to the dashboard."""

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, from_attributes=True
    )

    id: uuid.UUID
    name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    patient_id_internal: Optional[str] = None
    assigned_staff_id: Optional[str] = None
    status: str
    last_interaction_date: Optional[date] = None
    next_appointment_date: Optional[date] = None
    insurance_status: Optional[str] = None
    intake_date: date
    date_of_birth: Optional[date] = None
    is_archived: bool
    created_at: datetime
    updated_at: datetime
