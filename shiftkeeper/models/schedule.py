import uuid
from datetime import date, datetime, time, timezone

from sqlalchemy import String, DateTime, ForeignKey, Time, Date, JSON, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from shiftkeeper.core.database import Base


class ScheduleTemplate(Base):
    __tablename__ = "schedule_templates"

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    company_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("companies.id", ondelete="CASCADE"), nullable=False)

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    shift_start: Mapped[time] = mapped_column(Time, nullable=False)
    shift_end: Mapped[time] = mapped_column(Time, nullable=False)  # <= shift_start: endet am Folgetag
    workdays: Mapped[list] = mapped_column(JSON, nullable=False)  # [1,2,3,4,5] = Mo–Fr, 0 = So

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )

    assignments: Mapped[list["EmployeeSchedule"]] = relationship(back_populates="template")

    @property
    def is_overnight(self) -> bool:
        return self.shift_end <= self.shift_start


class EmployeeSchedule(Base):
    __tablename__ = "employee_schedules"
    __table_args__ = (UniqueConstraint("employee_id", "valid_from", name="uq_employee_schedule_from"),)

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    employee_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("employees.id", ondelete="CASCADE"), nullable=False)
    template_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("schedule_templates.id"), nullable=False)

    valid_from: Mapped[date] = mapped_column(Date, nullable=False)
    valid_to: Mapped[date | None] = mapped_column(Date, nullable=True)  # None = unbefristet

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )

    employee: Mapped["Employee"] = relationship(back_populates="schedules")
    template: Mapped["ScheduleTemplate"] = relationship(back_populates="assignments")

    def is_valid_on(self, day: date) -> bool:
        return self.valid_from <= day and (self.valid_to is None or self.valid_to >= day)
