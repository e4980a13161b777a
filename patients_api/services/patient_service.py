from typing import Any, Dict, Mapping, Optional
import uuid

from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from patients_api.core.pagination import PaginatedResponse, Paginator
from patients_api.core.revalidation import (
    PATIENTS_LIST_PATH,
    ViewRefreshSignal,
    patient_detail_path,
    view_refresh,
)
from patients_api.core.utils import logger
from patients_api.models.patient_model import Patient
from patients_api.repositories.patient_repo import PatientRepository
from patients_api.schemas.patient_schemas import (
    MutationOutcome,
    MutationResult,
    PatientArchiveSchema,
    PatientCreateSchema,
    PatientListParams,
    PatientResponseSchema,
    PatientStatusUpdateSchema,
    PatientUpdateSchema,
)


def _echo(raw: Mapping[str, Any]) -> Dict[str, str]:
    """Submitted values as strings, for re-populating a form."""
    return {str(key): str(value) for key, value in raw.items() if value is not None}


def _raw_id(raw: Mapping[str, Any]) -> Optional[str]:
    value = raw.get("id")
    return None if value is None else str(value)


class PatientQueryService:
    """Read side: the paginated list and single-record lookup."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.repo = PatientRepository(self.db)

    async def list_patients(
        self, params: PatientListParams
    ) -> PaginatedResponse[PatientResponseSchema]:
        """
        Get one page of patients with count metadata.

        Archived patients are included unless ``params.is_archived`` says
        otherwise. Store errors propagate to the caller.
        """
        patients, total_items = await self.repo.list_patients_paginated(params)
        return PaginatedResponse[PatientResponseSchema](
            data=[PatientResponseSchema.model_validate(p) for p in patients],
            meta=Paginator.create_page_meta(total_items, params.page, params.limit),
        )

    async def get_patient(self, patient_id: uuid.UUID) -> Optional[Patient]:
        return await self.repo.get_patient_by_id(patient_id)


class PatientMutationService:
    """
    Write side: create, edit, archive and status changes.

    Every operation validates the submitted payload before touching the
    store and reports back through a ``MutationResult`` instead of raising.
    Successful writes emit the view refresh signal so cached list and detail
    views are re-queried.
    """

    def __init__(self, db: AsyncSession, refresh: ViewRefreshSignal = view_refresh):
        self.db = db
        self.repo = PatientRepository(self.db)
        self.refresh = refresh

    async def _store_failed(self, event: str, **context: Any) -> None:
        logger.log_error({"event": event, **context}, exc_info=True)
        try:
            await self.repo.rollback()
        except Exception:
            logger.log_warning({"event": "rollback_failed", "after": event}, exc_info=True)

    async def create_patient(self, payload: Mapping[str, Any]) -> MutationResult:
        raw = dict(payload)
        try:
            data = PatientCreateSchema.model_validate(raw)
        except ValidationError as e:
            return MutationResult(
                outcome=MutationOutcome.INVALID,
                message="Failed to add patient. Please check the fields.",
                issues=PatientCreateSchema.issues_from(e),
                submitted_fields=_echo(raw),
            )

        try:
            patient = await self.repo.create_patient(Patient(**data.model_dump()))
        except Exception:
            await self._store_failed("patient_creation_error")
            return MutationResult(
                outcome=MutationOutcome.ERROR,
                message="An unexpected error occurred while adding the patient.",
                submitted_fields=_echo(raw),
            )

        logger.log_info({"event": "patient_created", "patient_id": str(patient.id)})
        self.refresh.emit(PATIENTS_LIST_PATH)
        return MutationResult(
            outcome=MutationOutcome.SUCCESS,
            message="Patient added successfully.",
            id=str(patient.id),
        )

    async def update_patient(self, payload: Mapping[str, Any]) -> MutationResult:
        raw = dict(payload)
        try:
            data = PatientUpdateSchema.model_validate(raw)
        except ValidationError as e:
            return MutationResult(
                outcome=MutationOutcome.INVALID,
                message="Failed to update patient. Please check the fields.",
                issues=PatientUpdateSchema.issues_from(e),
                submitted_fields=_echo(raw),
            )

        changes = data.changes()
        if not changes:
            return MutationResult(
                outcome=MutationOutcome.NO_CHANGES,
                message="No changes provided to update.",
                id=str(data.id),
            )

        try:
            patient = await self.repo.get_patient_by_id(data.id)
            if patient is None:
                return MutationResult(
                    outcome=MutationOutcome.NOT_FOUND,
                    message="Failed to update patient. Patient not found.",
                    id=str(data.id),
                )
            await self.repo.update_patient(patient, changes)
        except Exception:
            await self._store_failed("patient_update_error", patient_id=str(data.id))
            return MutationResult(
                outcome=MutationOutcome.ERROR,
                message="An unexpected error occurred while updating the patient.",
                submitted_fields=_echo(raw),
                id=str(data.id),
            )

        logger.log_info(
            {
                "event": "patient_updated",
                "patient_id": str(data.id),
                "fields": sorted(changes),
            }
        )
        self.refresh.emit(PATIENTS_LIST_PATH, patient_detail_path(data.id))
        return MutationResult(
            outcome=MutationOutcome.SUCCESS,
            message="Patient updated successfully.",
            id=str(data.id),
        )

    async def archive_patient(self, payload: Mapping[str, Any]) -> MutationResult:
        raw = dict(payload)
        try:
            data = PatientArchiveSchema.model_validate(raw)
        except ValidationError as e:
            return MutationResult(
                outcome=MutationOutcome.INVALID,
                message="Failed to archive patient. Invalid patient ID.",
                issues=PatientArchiveSchema.issues_from(e),
                id=_raw_id(raw),
            )

        try:
            patient = await self.repo.get_patient_by_id(data.id)
            if patient is None:
                return MutationResult(
                    outcome=MutationOutcome.NOT_FOUND,
                    message="Failed to archive patient. Patient not found.",
                    id=str(data.id),
                )
            await self.repo.archive_patient(patient)
        except Exception:
            await self._store_failed("patient_archive_error", patient_id=str(data.id))
            return MutationResult(
                outcome=MutationOutcome.ERROR,
                message="An unexpected error occurred while archiving the patient.",
                id=str(data.id),
            )

        logger.log_info({"event": "patient_archived", "patient_id": str(data.id)})
        self.refresh.emit(PATIENTS_LIST_PATH, patient_detail_path(data.id))
        return MutationResult(
            outcome=MutationOutcome.SUCCESS,
            message="Patient archived successfully.",
            id=str(data.id),
        )

    async def update_patient_status(self, payload: Mapping[str, Any]) -> MutationResult:
        raw = dict(payload)
        try:
            data = PatientStatusUpdateSchema.model_validate(raw)
        except ValidationError as e:
            status_value = raw.get("status")
            return MutationResult(
                outcome=MutationOutcome.INVALID,
                message="Failed to update patient status. Invalid data.",
                issues=PatientStatusUpdateSchema.issues_from(e),
                id=_raw_id(raw),
                status=None if status_value is None else str(status_value),
            )

        try:
            patient = await self.repo.get_patient_by_id(data.id)
            if patient is None:
                return MutationResult(
                    outcome=MutationOutcome.NOT_FOUND,
                    message="Failed to update status. Patient not found.",
                    id=str(data.id),
                    status=data.status,
                )
            await self.repo.update_patient(patient, {"status": data.status})
        except Exception:
            await self._store_failed(
                "patient_status_update_error", patient_id=str(data.id)
            )
            return MutationResult(
                outcome=MutationOutcome.ERROR,
                message="An unexpected error occurred while updating patient status.",
                id=str(data.id),
                status=data.status,
            )

        logger.log_info(
            {
                "event": "patient_status_updated",
                "patient_id": str(data.id),
                "status": data.status,
            }
        )
        self.refresh.emit(PATIENTS_LIST_PATH, patient_detail_path(data.id))
        return MutationResult(
            outcome=MutationOutcome.SUCCESS,
            message="Patient status updated successfully.",
            id=str(data.id),
            status=data.status,
        )
