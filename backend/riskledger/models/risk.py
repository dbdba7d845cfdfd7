from datetime import date, datetime

from sqlalchemy import Boolean, Date, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base


class Risk(Base):
    __tablename__ = "risks"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    risk_code: Mapped[str | None] = mapped_column(String(30), unique=True)
    title: Mapped[str] = mapped_column(String(400), nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    category: Mapped[str | None] = mapped_column(String(100))
    owner_id: Mapped[int | None] = mapped_column(Integer)

    # ── Inherent (before treatment) ──
    inherent_severity: Mapped[str] = mapped_column(String(20), nullable=False)
    inherent_likelihood: Mapped[str] = mapped_column(String(20), nullable=False)
    inherent_score: Mapped[int | None] = mapped_column(Integer)

    # ── Net / residual (after treatment) ──
    # residual_* is written only by the treatment residual calculator
    net_severity: Mapped[str | None] = mapped_column(String(20))
    net_likelihood: Mapped[str | None] = mapped_column(String(20))
    residual_likelihood: Mapped[str | None] = mapped_column(String(20))
    residual_score: Mapped[int | None] = mapped_column(Integer)
    residual_rating: Mapped[str | None] = mapped_column(String(20))
    residual_updated_at: Mapped[datetime | None] = mapped_column(DateTime)

    status: Mapped[str] = mapped_column(String(30), default="draft", nullable=False)
    treatment_plan: Mapped[str | None] = mapped_column(Text)
    review_date: Mapped[date | None] = mapped_column(Date)
    is_archived: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    created_by: Mapped[int | None] = mapped_column(Integer)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)


class RiskTreatment(Base):
    __tablename__ = "risk_treatments"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    risk_id: Mapped[int] = mapped_column(ForeignKey("risks.id", ondelete="CASCADE"), nullable=False)
    title: Mapped[str] = mapped_column(String(400), nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    strategy: Mapped[str | None] = mapped_column(String(30))
    assigned_to: Mapped[int | None] = mapped_column(Integer)
    status: Mapped[str] = mapped_column(String(20), default="planned", nullable=False)
    due_date: Mapped[date | None] = mapped_column(Date)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime)
    residual_severity: Mapped[str | None] = mapped_column(String(20))
    residual_likelihood: Mapped[str | None] = mapped_column(String(20))
    created_by: Mapped[int | None] = mapped_column(Integer)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)


class TreatmentControl(Base):
    __tablename__ = "treatment_controls"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    treatment_id: Mapped[int] = mapped_column(ForeignKey("risk_treatments.id", ondelete="CASCADE"), nullable=False)
    internal_control_id: Mapped[int] = mapped_column(ForeignKey("internal_controls.id", ondelete="CASCADE"), nullable=False)
    implementation_status: Mapped[str] = mapped_column(String(20), default="planned", nullable=False)
    notes: Mapped[str | None] = mapped_column(Text)
    created_by: Mapped[int | None] = mapped_column(Integer)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)
