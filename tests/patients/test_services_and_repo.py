"""
Service Layer Tests

Tests for query / mutation business logic and the repository beneath it.
"""
import math
import uuid
from datetime import date

import pytest
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from patients_api.core.revalidation import ViewRefreshSignal
from patients_api.db.seed import build_sample_patients, seed_patients
from patients_api.repositories.patient_repo import PatientRepository
from patients_api.schemas.patient_schemas import (
    MutationOutcome,
    PatientFilters,
    PatientListParams,
)
from patients_api.services.patient_service import (
    PatientMutationService,
    PatientQueryService,
)


@pytest.fixture
def signal() -> ViewRefreshSignal:
    return ViewRefreshSignal()


@pytest.mark.asyncio
@pytest.mark.unit
class TestPatientMutationService:
    """Test PatientMutationService business logic."""

    async def test_create_sets_matching_timestamps(
        self, db_session: AsyncSession, signal: ViewRefreshSignal
    ):
        service = PatientMutationService(db_session, refresh=signal)

        result = await service.create_patient(
            {"name": "Jane Doe", "status": "Intake", "intakeDate": "2024-01-01"}
        )

        assert result.outcome == MutationOutcome.SUCCESS
        patient = await PatientRepository(db_session).get_patient_by_id(uuid.UUID(result.id))
        assert patient.created_at == patient.updated_at
        assert patient.is_archived is False
        assert patient.intake_date == date(2024, 1, 1)

    async def test_create_accepts_snake_case_keys(self, db_session: AsyncSession, signal):
        service = PatientMutationService(db_session, refresh=signal)

        result = await service.create_patient(
            {
                "name": "Jane Doe",
                "status": "Intake",
                "intake_date": "2024-01-01",
                "assigned_staff_id": "S12345",
            }
        )

        patient = await PatientRepository(db_session).get_patient_by_id(uuid.UUID(result.id))
        assert patient.assigned_staff_id == "S12345"

    async def test_update_leaves_unsupplied_fields(
        self, db_session: AsyncSession, make_patient, signal
    ):
        patient = await make_patient(
            "Fox Mulder",
            email="fox@example.com",
            insurance_status="Active",
            date_of_birth=date(1961, 10, 13),
        )
        before = patient.updated_at
        service = PatientMutationService(db_session, refresh=signal)

        result = await service.update_patient(
            {"id": str(patient.id), "status": "Discharged", "insuranceStatus": None}
        )

        assert result.outcome == MutationOutcome.SUCCESS
        await db_session.refresh(patient)
        assert patient.status == "Discharged"
        assert patient.insurance_status == "Active"
        assert patient.email == "fox@example.com"
        assert patient.date_of_birth == date(1961, 10, 13)
        assert patient.updated_at > before
        assert patient.created_at <= patient.updated_at

    async def test_consecutive_updates_strictly_increase_updated_at(
        self, db_session: AsyncSession, make_patient, signal
    ):
        patient = await make_patient("Fox Mulder")
        service = PatientMutationService(db_session, refresh=signal)
        stamps = [patient.updated_at]

        for phone in ("1", "2", "3"):
            await service.update_patient({"id": str(patient.id), "phone": phone})
            await db_session.refresh(patient)
            stamps.append(patient.updated_at)

        assert stamps == sorted(set(stamps))

    async def test_update_without_changes_skips_store(
        self, db_session: AsyncSession, signal, monkeypatch
    ):
        async def must_not_be_called(self, patient_id):
            raise AssertionError("store accessed")

        monkeypatch.setattr(PatientRepository, "get_patient_by_id", must_not_be_called)
        service = PatientMutationService(db_session, refresh=signal)

        result = await service.update_patient({"id": str(uuid.uuid4())})

        assert result.outcome == MutationOutcome.NO_CHANGES
        assert result.ok

    async def test_not_found_changes_nothing(
        self, db_session: AsyncSession, make_patient, signal
    ):
        patient = await make_patient("Dana Scully")
        before = patient.updated_at
        events = []
        signal.subscribe(events.append)
        service = PatientMutationService(db_session, refresh=signal)
        missing = str(uuid.uuid4())

        update = await service.update_patient({"id": missing, "name": "Other"})
        archive = await service.archive_patient({"id": missing})
        status = await service.update_patient_status({"id": missing, "status": "Active"})

        assert update.outcome == MutationOutcome.NOT_FOUND
        assert archive.outcome == MutationOutcome.NOT_FOUND
        assert status.outcome == MutationOutcome.NOT_FOUND
        assert events == []
        await db_session.refresh(patient)
        assert patient.name == "Dana Scully"
        assert patient.updated_at == before
        assert await PatientRepository(db_session).count_patients() == 1

    async def test_archive_twice(self, db_session: AsyncSession, make_patient, signal):
        patient = await make_patient("Walter Skinner")
        service = PatientMutationService(db_session, refresh=signal)

        first = await service.archive_patient({"id": str(patient.id)})
        second = await service.archive_patient({"id": str(patient.id)})

        assert first.outcome == second.outcome == MutationOutcome.SUCCESS
        await db_session.refresh(patient)
        assert patient.is_archived is True

    async def test_status_is_free_text(self, db_session: AsyncSession, make_patient, signal):
        patient = await make_patient("Monica Reyes")
        service = PatientMutationService(db_session, refresh=signal)

        result = await service.update_patient_status(
            {"id": str(patient.id), "status": "Transferred Out"}
        )

        assert result.outcome == MutationOutcome.SUCCESS
        await db_session.refresh(patient)
        assert patient.status == "Transferred Out"

    async def test_success_emits_refresh_paths(
        self, db_session: AsyncSession, make_patient, signal
    ):
        patient = await make_patient("John Doggett")
        events = []
        signal.subscribe(events.append)
        service = PatientMutationService(db_session, refresh=signal)

        await service.archive_patient({"id": str(patient.id)})

        assert events == [["/dashboard/patients", f"/dashboard/patients/{patient.id}"]]

    async def test_store_failure_reports_generic_error(
        self, db_session: AsyncSession, make_patient, signal, monkeypatch
    ):
        patient = await make_patient("John Doggett")

        async def broken_update(self, patient, changes):
            raise SQLAlchemyError("deadlock detected")

        monkeypatch.setattr(PatientRepository, "update_patient", broken_update)
        service = PatientMutationService(db_session, refresh=signal)

        result = await service.update_patient_status(
            {"id": str(patient.id), "status": "Active"}
        )

        assert result.outcome == MutationOutcome.ERROR
        assert result.message == "An unexpected error occurred while updating patient status."
        assert not result.ok

    async def test_transport_failure_reports_generic_error(
        self, db_session: AsyncSession, make_patient, signal, monkeypatch
    ):
        patient = await make_patient("John Doggett")
        events = []
        signal.subscribe(events.append)

        async def refused(self, patient):
            raise ConnectionRefusedError("connection refused")

        monkeypatch.setattr(PatientRepository, "archive_patient", refused)
        service = PatientMutationService(db_session, refresh=signal)

        result = await service.archive_patient({"id": str(patient.id)})

        assert result.outcome == MutationOutcome.ERROR
        assert result.message == "An unexpected error occurred while archiving the patient."
        assert events == []

    async def test_failed_rollback_still_reports_error(
        self, db_session: AsyncSession, signal, monkeypatch, caplog
    ):
        async def refused(self, patient):
            raise ConnectionRefusedError("connection refused")

        async def dead_rollback(self):
            raise OSError("connection reset")

        monkeypatch.setattr(PatientRepository, "create_patient", refused)
        monkeypatch.setattr(PatientRepository, "rollback", dead_rollback)
        service = PatientMutationService(db_session, refresh=signal)

        result = await service.create_patient(
            {"name": "Jane Doe", "status": "Intake", "intakeDate": "2024-01-01"}
        )

        assert result.outcome == MutationOutcome.ERROR
        assert result.message == "An unexpected error occurred while adding the patient."
        assert result.submitted_fields["name"] == "Jane Doe"
        assert "rollback_failed" in caplog.text


@pytest.mark.asyncio
@pytest.mark.unit
class TestPatientQueryService:
    """Test PatientQueryService list semantics."""

    @pytest.mark.parametrize("limit", [1, 3, 4, 7, 20])
    async def test_total_pages_matches_ceiling(
        self, db_session: AsyncSession, make_patient, limit
    ):
        for i in range(7):
            await make_patient(f"Patient {i}", minutes_ago=i)
        service = PatientQueryService(db_session)

        page = await service.list_patients(PatientListParams(limit=limit))

        assert page.meta.total_items == 7
        assert page.meta.total_pages == math.ceil(7 / limit)
        assert len(page.data) <= limit

    async def test_filters_passed_explicitly(self, db_session: AsyncSession, make_patient):
        await make_patient("Alice Walker", status="Active")
        await make_patient("Alice Cooper", status="Discharged")
        await make_patient("Bob Stone", status="Active")
        filters = PatientFilters(search_term="alice", status_filter="Active")
        service = PatientQueryService(db_session)

        page = await service.list_patients(PatientListParams.from_filters(filters, limit=5))

        assert [p.name for p in page.data] == ["Alice Walker"]
        assert page.meta.limit == 5

    async def test_get_patient_includes_archived(
        self, db_session: AsyncSession, make_patient
    ):
        patient = await make_patient("Archived", is_archived=True)

        found = await PatientQueryService(db_session).get_patient(patient.id)

        assert found is not None
        assert found.is_archived is True


@pytest.mark.asyncio
@pytest.mark.unit
class TestPatientRepository:
    """Test PatientRepository data access methods."""

    async def test_count_patients(self, db_session: AsyncSession, make_patient):
        repo = PatientRepository(db_session)
        assert await repo.count_patients() == 0

        await make_patient("One")
        await make_patient("Two")

        assert await repo.count_patients() == 2

    async def test_list_ties_are_stable_across_pages(
        self, db_session: AsyncSession, make_patient
    ):
        for i in range(6):
            await make_patient(f"Same Name {i}", status="Active")
        repo = PatientRepository(db_session)

        seen = []
        for page in (1, 2, 3):
            items, _ = await repo.list_patients_paginated(
                PatientListParams(page=page, limit=2, sort_by="status")
            )
            seen.extend(p.id for p in items)

        assert len(set(seen)) == 6

    async def test_seed_patients(self, db_session: AsyncSession):
        inserted = await seed_patients(db_session, count=12, seed=7)
        again = await seed_patients(db_session, count=12, seed=7)

        assert inserted == 12
        assert again == 0
        assert await PatientRepository(db_session).count_patients() == 12


@pytest.mark.unit
def test_sample_patients_have_consistent_timelines():
    for patient in build_sample_patients(50, seed=3):
        assert patient.created_at <= patient.updated_at
        assert patient.is_archived is False
        assert patient.name
        assert patient.status
