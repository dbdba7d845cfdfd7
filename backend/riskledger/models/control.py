from datetime import date, datetime

from sqlalchemy import Boolean, Date, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base


class ControlFramework(Base):
    __tablename__ = "control_frameworks"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    version: Mapped[str | None] = mapped_column(String(50))
    description: Mapped[str | None] = mapped_column(Text)
    is_active: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)


class FrameworkControl(Base):
    __tablename__ = "framework_controls"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    framework_id: Mapped[int] = mapped_column(ForeignKey("control_frameworks.id", ondelete="CASCADE"), nullable=False)
    control_code: Mapped[str] = mapped_column(String(50), nullable=False)
    title: Mapped[str] = mapped_column(String(400), nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    # planned / partially_implemented / implemented / not_implemented / not_applicable
    implementation_status: Mapped[str] = mapped_column(String(30), default="not_implemented", nullable=False)
    # derived from findings, never edited directly
    compliance_status: Mapped[str] = mapped_column(String(30), default="not_assessed", nullable=False)
    next_review_date: Mapped[date | None] = mapped_column(Date)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)


class InternalControl(Base):
    __tablename__ = "internal_controls"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    internal_control_code: Mapped[str] = mapped_column(String(50), nullable=False)
    title: Mapped[str] = mapped_column(String(400), nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    owner_id: Mapped[int | None] = mapped_column(Integer)
    compliance_status: Mapped[str] = mapped_column(String(30), default="not_assessed", nullable=False)
    next_review_date: Mapped[date | None] = mapped_column(Date)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)


class ControlFinding(Base):
    __tablename__ = "control_findings"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    # exactly one of the two owners is set
    internal_control_id: Mapped[int | None] = mapped_column(ForeignKey("internal_controls.id", ondelete="SET NULL"))
    framework_control_id: Mapped[int | None] = mapped_column(ForeignKey("framework_controls.id", ondelete="SET NULL"))
    finding_type: Mapped[str] = mapped_column(String(40), nullable=False)
    title: Mapped[str] = mapped_column(String(400), nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    status: Mapped[str] = mapped_column(String(20), default="Open", nullable=False)
    identified_date: Mapped[date] = mapped_column(Date, default=date.today, nullable=False)
    due_date: Mapped[date | None] = mapped_column(Date)
    closed_date: Mapped[date | None] = mapped_column(Date)
    assigned_to: Mapped[int | None] = mapped_column(Integer)
    remediation_plan: Mapped[str | None] = mapped_column(Text)
    remediation_notes: Mapped[str | None] = mapped_column(Text)
    created_by: Mapped[int | None] = mapped_column(Integer)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)
