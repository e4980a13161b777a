from typing import Any, Dict, List, Optional
import uuid

from sqlalchemy import Select, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from patients_api.core.utils import next_timestamp, utcnow
from patients_api.models.patient_model import Patient
from patients_api.schemas.patient_schemas import PatientListParams, SortOrder


# Only these columns may be referenced from ``sortBy``
SORT_COLUMNS = {
    "name": Patient.name,
    "email": Patient.email,
    "status": Patient.status,
    "intakeDate": Patient.intake_date,
    "createdAt": Patient.created_at,
    "lastInteractionDate": Patient.last_interaction_date,
    "nextAppointmentDate": Patient.next_appointment_date,
}


class PatientRepository:
    """Repository layer for patient data access."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_patient_by_id(self, patient_id: uuid.UUID) -> Optional[Patient]:
        """Get patient by ID, archived or not."""
        result = await self.db.execute(select(Patient).where(Patient.id == patient_id))
        return result.scalars().first()

    async def create_patient(self, patient: Patient) -> Patient:
        """Insert a new patient with matching creation and update stamps."""
        now = utcnow()
        patient.created_at = now
        patient.updated_at = now
        if patient.is_archived is None:
            patient.is_archived = False
        self.db.add(patient)
        await self.db.commit()
        await self.db.refresh(patient)
        return patient

    async def update_patient(self, patient: Patient, changes: Dict[str, Any]) -> Patient:
        """Apply ``changes`` to ``patient`` and stamp ``updated_at``."""
        for field, value in changes.items():
            setattr(patient, field, value)
        patient.updated_at = next_timestamp(patient.updated_at)
        self.db.add(patient)
        await self.db.commit()
        await self.db.refresh(patient)
        return patient

    async def archive_patient(self, patient: Patient) -> Patient:
        """Soft delete a patient."""
        return await self.update_patient(patient, {"is_archived": True})

    async def rollback(self) -> None:
        await self.db.rollback()

    def build_list_query(self, params: PatientListParams) -> Select:
        """Filtered, unordered select for the list view."""
        query = select(Patient)

        if params.search:
            query = query.where(
                or_(
                    Patient.name.icontains(params.search, autoescape=True),
                    Patient.email.icontains(params.search, autoescape=True),
                )
            )

        if params.status:
            query = query.where(Patient.status == params.status)

        if params.is_archived is not None:
            query = query.where(Patient.is_archived == params.is_archived)

        return query

    async def list_patients_paginated(
        self, params: PatientListParams
    ) -> tuple[List[Patient], int]:
        """
        Get one page of patients plus the total number of matches.

        Args:
            params: Pagination, sort, search and filter parameters

        Returns:
            Tuple of (list of patients, total count)
        """
        query = self.build_list_query(params)

        count_query = select(func.count()).select_from(query.subquery())
        total_result = await self.db.execute(count_query)
        total_count = total_result.scalar() or 0

        sort_field, sort_order = params.resolved_sort()
        column = SORT_COLUMNS[sort_field]
        if sort_order == SortOrder.ASC:
            query = query.order_by(column.asc(), Patient.id.asc())
        else:
            query = query.order_by(column.desc(), Patient.id.desc())

        paginated_query = query.offset(params.skip).limit(params.limit)
        result = await self.db.execute(paginated_query)
        return list(result.scalars().all()), total_count

    async def count_patients(self) -> int:
        result = await self.db.execute(select(func.count()).select_from(Patient))
        return result.scalar() or 0
