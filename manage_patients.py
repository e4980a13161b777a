#!/usr/bin/env python
"""
Patient records management CLI

Usage:
    python manage_patients.py seed [count]    # Insert sample patients (default 25)
    python manage_patients.py list [page]     # Show a page of patients, newest first
    python manage_patients.py show <id>       # Show one patient
"""
import asyncio
import sys
import uuid

from patients_api.core.logging import setup_logging
from patients_api.db.seed import seed_patients
from patients_api.db.session import AsyncSessionLocal as async_session_maker
from patients_api.db.session import engine
from patients_api.schemas.patient_schemas import PatientListParams
from patients_api.services.patient_service import PatientQueryService


async def seed(count: int):
    async with async_session_maker() as db:
        inserted = await seed_patients(db, count)
    if inserted:
        print(f"Inserted {inserted} sample patients.")
    else:
        print(f"Already have {count} or more patients. Seeding skipped.")


async def list_patients(page: int):
    async with async_session_maker() as db:
        result = await PatientQueryService(db).list_patients(
            PatientListParams(page=page, limit=20)
        )

    if not result.data:
        print("No patients found.")
        return

    print(f"\n{'ID':<38} {'Name':<28} {'Status':<12} {'Intake':<12} {'Archived'}")
    print("-" * 100)
    for patient in result.data:
        print(
            f"{str(patient.id):<38} {patient.name:<28} {patient.status:<12} "
            f"{patient.intake_date.isoformat():<12} {'yes' if patient.is_archived else 'no'}"
        )
    meta = result.meta
    print(f"\nPage {meta.page} of {meta.total_pages} ({meta.total_items} patients)")


async def show_patient(patient_id: str):
    try:
        parsed = uuid.UUID(patient_id)
    except ValueError:
        print(f"'{patient_id}' is not a valid patient ID.")
        return

    async with async_session_maker() as db:
        patient = await PatientQueryService(db).get_patient(parsed)

    if patient is None:
        print(f"Patient '{patient_id}' not found.")
        return

    for column in patient.__table__.columns:
        print(f"{column.name:<24} {getattr(patient, column.name)}")


async def run(action: str, args: list):
    try:
        if action == "seed":
            await seed(int(args[0]) if args else 25)
        elif action == "list":
            await list_patients(int(args[0]) if args else 1)
        elif action == "show":
            if not args:
                print("Error: patient ID required")
                sys.exit(1)
            await show_patient(args[0])
        else:
            print(f"Unknown action: {action}")
            print(__doc__)
            sys.exit(1)
    finally:
        await engine.dispose()


def main():
    if len(sys.argv) < 2:
        print(__doc__)
        sys.exit(1)

    setup_logging()
    asyncio.run(run(sys.argv[1].lower(), sys.argv[2:]))


if __name__ == "__main__":
    main()
