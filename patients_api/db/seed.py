"""Sample patients for local development databases."""

import random
import string
from datetime import date, datetime, timedelta
from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from patients_api.core.utils import logger, utcnow
from patients_api.models.patient_model import Patient
from patients_api.repositories.patient_repo import PatientRepository
from patients_api.schemas.patient_schemas import InsuranceStatus, PatientStatus


FIRST_NAMES = [
    "John", "Sarah", "Michael", "Emily", "Robert",
    "Jessica", "David", "Jennifer", "James", "Lisa",
]
LAST_NAMES = [
    "Smith", "Johnson", "Williams", "Brown", "Jones",
    "Garcia", "Miller", "Davis", "Rodriguez", "Martinez",
]


def _between(rng: random.Random, start: datetime, end: datetime) -> datetime:
    span = max((end - start).total_seconds(), 0)
    return start + timedelta(seconds=rng.uniform(0, span))


def _code(rng: random.Random, length: int) -> str:
    return "".join(rng.choices(string.ascii_uppercase + string.digits, k=length))


def build_sample_patient(rng: random.Random, now: Optional[datetime] = None) -> Patient:
    """One plausible, non-archived patient with a consistent timeline."""
    now = now or utcnow()
    created_at = now - timedelta(days=rng.uniform(1, 730))
    updated_at = _between(rng, created_at, now)
    intake_date = _between(rng, created_at, updated_at).date()

    last_interaction: Optional[date] = None
    if rng.random() < 0.7:
        last_interaction = _between(
            rng, datetime.combine(intake_date, datetime.min.time()), now
        ).date()

    next_appointment: Optional[date] = None
    if rng.random() < 0.5:
        next_appointment = (updated_at + timedelta(days=rng.uniform(1, 365))).date()

    age_days = rng.randint(18 * 365, 85 * 365)
    first, last = rng.choice(FIRST_NAMES), rng.choice(LAST_NAMES)

    return Patient(
        name=f"{first} {last}",
        email=f"{first}.{last}{rng.randint(1, 999)}@example.com".lower(),
        phone=f"+1{rng.randint(2000000000, 9999999999)}",
        patient_id_internal=f"P{_code(rng, 8)}",
        assigned_staff_id=f"S{_code(rng, 6)}" if rng.random() < 0.8 else None,
        status=rng.choice(list(PatientStatus)).value,
        insurance_status=rng.choice(list(InsuranceStatus)).value,
        last_interaction_date=last_interaction,
        next_appointment_date=next_appointment,
        intake_date=intake_date,
        date_of_birth=(now - timedelta(days=age_days)).date(),
        is_archived=False,
        created_at=created_at,
        updated_at=updated_at,
    )


def build_sample_patients(count: int, seed: Optional[int] = None) -> List[Patient]:
    rng = random.Random(seed)
    now = utcnow()
    return [build_sample_patient(rng, now) for _ in range(count)]


async def seed_patients(db: AsyncSession, count: int = 25, seed: Optional[int] = None) -> int:
    """
    Insert ``count`` sample patients unless the table already holds that many.

    Returns the number of rows inserted.
    """
    existing = await PatientRepository(db).count_patients()
    if existing >= count:
        logger.log_info(
            {"event": "seed_skipped", "existing": existing, "requested": count}
        )
        return 0

    patients = build_sample_patients(count, seed)
    db.add_all(patients)
    await db.commit()
    logger.log_info({"event": "patients_seeded", "count": len(patients)})
    return len(patients)
