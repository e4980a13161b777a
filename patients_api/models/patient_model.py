import uuid
from datetime import date, datetime
from typing import Optional

from sqlalchemy import Boolean, Date, DateTime, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from patients_api.core.utils import utcnow
from patients_api.db.base import Base


class Patient(Base):
    """A patient record managed from the practice dashboard."""

    __tablename__ = "patients"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )

    # Contact details
    name: Mapped[str] = mapped_column(Text, nullable=False, index=True)
    email: Mapped[Optional[str]] = mapped_column(Text, nullable=True, index=True)
    phone: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Free-form references; assigned_staff_id has no foreign key yet
    patient_id_internal: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    assigned_staff_id: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Free text, see PatientStatus / InsuranceStatus for the usual values
    status: Mapped[str] = mapped_column(Text, nullable=False, index=True)
    insurance_status: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Care timeline
    last_interaction_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    next_appointment_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    intake_date: Mapped[date] = mapped_column(Date, nullable=False)
    date_of_birth: Mapped[Optional[date]] = mapped_column(Date, nullable=True)

    is_archived: Mapped[bool] = mapped_column(
        Boolean, default=False, nullable=False, index=True
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=utcnow, nullable=False, index=True
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=utcnow, nullable=False
    )

    def __repr__(self) -> str:
        return f"<Patient id={self.id} name={self.name!r} status={self.status!r}>"
