"""
OpsLedger Backend — Project & Assignment Models
=================================================

What:  ORM models for `projects` and the `project_employees` join table.
Why:   A project's assignment list (employee + part-time flag) is what the
       reporting layer turns into labor cost and billed days.

Date semantics:
    [start_date, end_date] is inclusive on both ends. actual_end_date is
    only known once the project is Completed; the difference to end_date
    feeds "weeks over deadline".
"""

import uuid
from datetime import date
from typing import List, Optional

from sqlalchemy import (
    Boolean,
    Date,
    Enum,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base, SoftDeleteMixin, TimestampMixin
from app.models.employee import Employee
from app.models.enums import ProjectStatus, ProjectType, SalesChannel, sql_enum_values


class Project(SoftDeleteMixin, TimestampMixin, Base):
    __tablename__ = "projects"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)
    actual_end_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True, default=None)
    project_type: Mapped[ProjectType] = mapped_column(
        Enum(ProjectType, name="project_type", values_callable=sql_enum_values),
        nullable=False,
    )
    hourly_rate: Mapped[float] = mapped_column(Float, nullable=False)
    project_value_bam: Mapped[float] = mapped_column(Float, nullable=False)
    project_velocity: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    sales_channel: Mapped[SalesChannel] = mapped_column(
        Enum(SalesChannel, name="sales_channel", values_callable=sql_enum_values),
        nullable=False,
    )
    project_status: Mapped[ProjectStatus] = mapped_column(
        Enum(ProjectStatus, name="project_status", values_callable=sql_enum_values),
        nullable=False,
        default=ProjectStatus.ACTIVE,
    )

    employees: Mapped[List["ProjectEmployee"]] = relationship(
        back_populates="project",
        cascade="all, delete-orphan",
    )

    def __repr__(self) -> str:
        return f"<Project(id={self.id}, name='{self.name}', status='{self.project_status.value}')>"


class ProjectEmployee(Base):
    """An employee's assignment to a project, full-time or part-time."""

    __tablename__ = "project_employees"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    project_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("projects.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    employee_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("employees.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    part_time: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    project: Mapped[Project] = relationship(back_populates="employees")
    employee: Mapped[Employee] = relationship(back_populates="projects")

    __table_args__ = (
        UniqueConstraint("project_id", "employee_id", name="uq_project_employee"),
    )
