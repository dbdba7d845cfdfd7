from datetime import datetime

from sqlalchemy import JSON, Boolean, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base


class RiskAppetite(Base):
    __tablename__ = "risk_appetites"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    matrix_id: Mapped[int | None] = mapped_column(ForeignKey("risk_matrices.id"))
    owner_id: Mapped[int | None] = mapped_column(Integer)
    narrative_statement: Mapped[str | None] = mapped_column(Text)
    escalation_criteria: Mapped[str | None] = mapped_column(Text)
    reporting_cadence: Mapped[str | None] = mapped_column(String(50))
    is_active: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)


class RiskAppetiteBand(Base):
    """Labelled inclusive score range [min_score, max_score].

    Bands of one appetite may overlap or leave gaps; the matcher takes the
    first band in sort_order that contains a score.
    """
    __tablename__ = "risk_appetite_bands"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    appetite_id: Mapped[int] = mapped_column(ForeignKey("risk_appetites.id", ondelete="CASCADE"), nullable=False)
    band: Mapped[str] = mapped_column(String(50), nullable=False)
    label: Mapped[str | None] = mapped_column(String(100))
    min_score: Mapped[int] = mapped_column(Integer, nullable=False)
    max_score: Mapped[int] = mapped_column(Integer, nullable=False)
    acceptance_role: Mapped[str | None] = mapped_column(String(100))
    authorized_actions: Mapped[list | None] = mapped_column(JSON)
    color: Mapped[str | None] = mapped_column(String(20))
    description: Mapped[str | None] = mapped_column(Text)
    sort_order: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)
