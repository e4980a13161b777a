import traceback
import uuid
from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends, Query, status
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from patients_api.api.dependencies import get_db
from patients_api.config.config import settings
from patients_api.core.pagination import PaginatedResponse
from patients_api.core.utils import logger
from patients_api.schemas.patient_schemas import (
    MutationOutcome,
    MutationResult,
    PatientListParams,
    PatientResponseSchema,
)
from patients_api.services.patient_service import (
    PatientMutationService,
    PatientQueryService,
)


router = APIRouter(prefix="/patients", tags=["patients"])


_OUTCOME_STATUS = {
    MutationOutcome.SUCCESS: status.HTTP_200_OK,
    MutationOutcome.NO_CHANGES: status.HTTP_200_OK,
    MutationOutcome.INVALID: 422,
    MutationOutcome.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    MutationOutcome.ERROR: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def _mutation_response(
    result: MutationResult, success_code: int = status.HTTP_200_OK
) -> JSONResponse:
    code = _OUTCOME_STATUS[result.outcome]
    if result.outcome == MutationOutcome.SUCCESS:
        code = success_code
    return JSONResponse(status_code=code, content=result.to_body())


def _not_found() -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_404_NOT_FOUND,
        content={"message": "Patient not found"},
    )


# ============= Query Routes =============
@router.get("", response_model=PaginatedResponse[PatientResponseSchema])
async def list_patients(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=settings.DEFAULT_PAGE_LIMIT, ge=1),
    sort_by: Optional[str] = Query(default=None, alias="sortBy"),
    sort_order: Optional[str] = Query(default=None, alias="sortOrder"),
    search: Optional[str] = None,
    patient_status: Optional[str] = Query(default=None, alias="status"),
    is_archived: Optional[bool] = Query(default=None, alias="isArchived"),
    db: AsyncSession = Depends(get_db),
):
    """
    Get a page of patients.

    Args:
        page: Page number, starting at 1
        limit: Items per page
        sort_by: One of name, email, status, intakeDate, createdAt,
            lastInteractionDate, nextAppointmentDate; anything else sorts by
            createdAt descending
        sort_order: ``asc`` or ``desc``
        search: Case-insensitive substring matched against name and email
        patient_status: Exact status to match
        is_archived: Restrict to archived (true) or active (false) records

    Returns:
        PaginatedResponse: ``{data, meta}``
    """
    params = PatientListParams(
        page=page,
        limit=limit,
        sort_by=sort_by,
        sort_order=sort_order,
        search=search or None,
        status=patient_status or None,
        is_archived=is_archived,
    )
    service = PatientQueryService(db)
    try:
        return await service.list_patients(params)

    except Exception as e:
        logger.log_error(
            {
                "event": "list_patients_error",
                "error": str(e),
                "error_type": type(e).__name__,
                "traceback": traceback.format_exc(),
            }
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"message": "Failed to fetch patients"},
        )


@router.get("/{patient_id}", response_model=PatientResponseSchema)
async def get_patient(
    patient_id: str,
    db: AsyncSession = Depends(get_db),
):
    """Get a single patient by ID."""
    try:
        parsed_id = uuid.UUID(patient_id)
    except ValueError:
        return _not_found()

    service = PatientQueryService(db)
    try:
        patient = await service.get_patient(parsed_id)

    except Exception as e:
        logger.log_error(
            {"event": "get_patient_error", "patient_id": patient_id, "error": str(e)},
            exc_info=True,
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"message": "Failed to fetch patient"},
        )

    if patient is None:
        return _not_found()
    return PatientResponseSchema.model_validate(patient)


# ============= Mutation Routes =============
@router.post(
    "",
    response_model=MutationResult,
    status_code=status.HTTP_201_CREATED,
)
async def create_patient(
    payload: Dict[str, Any] = Body(...),
    db: AsyncSession = Depends(get_db),
):
    """
    Add a patient.

    ``name``, ``status`` and ``intakeDate`` are required. Validation problems
    come back as a 422 with ``issues`` and the submitted ``fields``.
    """
    result = await PatientMutationService(db).create_patient(payload)
    return _mutation_response(result, success_code=status.HTTP_201_CREATED)


@router.patch("/{patient_id}", response_model=MutationResult)
async def update_patient(
    patient_id: str,
    payload: Dict[str, Any] = Body(...),
    db: AsyncSession = Depends(get_db),
):
    """Apply the supplied fields to a patient; omitted fields are left alone."""
    result = await PatientMutationService(db).update_patient(
        {**payload, "id": patient_id}
    )
    return _mutation_response(result)


@router.post("/{patient_id}/archive", response_model=MutationResult)
async def archive_patient(
    patient_id: str,
    db: AsyncSession = Depends(get_db),
):
    result = await PatientMutationService(db).archive_patient({"id": patient_id})
    return _mutation_response(result)


@router.patch("/{patient_id}/status", response_model=MutationResult)
async def update_patient_status(
    patient_id: str,
    payload: Optional[Dict[str, Any]] = Body(default=None),
    db: AsyncSession = Depends(get_db),
):
    """Set a patient's status. Any non-empty text is accepted."""
    result = await PatientMutationService(db).update_patient_status(
        {**(payload or {}), "id": patient_id}
    )
    return _mutation_response(result)
