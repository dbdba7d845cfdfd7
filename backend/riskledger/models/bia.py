from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base


class BiaAssessment(Base):
    __tablename__ = "bia_assessments"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    primary_asset_id: Mapped[int] = mapped_column(ForeignKey("primary_assets.id", ondelete="CASCADE"), nullable=False)
    risk_appetite_id: Mapped[int | None] = mapped_column(ForeignKey("risk_appetites.id"))
    bia_owner: Mapped[str | None] = mapped_column(String(200))
    notes: Mapped[str | None] = mapped_column(Text)
    high_threshold: Mapped[int] = mapped_column(Integer, nullable=False)
    rto_hours: Mapped[int | None] = mapped_column(Integer)
    rpo_hours: Mapped[int | None] = mapped_column(Integer)
    mtd_hours: Mapped[int | None] = mapped_column(Integer)

    # Derived on save from the impact timeline
    derived_criticality: Mapped[str | None] = mapped_column(String(20))
    time_to_high_bucket: Mapped[str | None] = mapped_column(String(10))

    last_assessed_at: Mapped[datetime | None] = mapped_column(DateTime)
    next_review_at: Mapped[datetime | None] = mapped_column(DateTime)
    created_by: Mapped[int | None] = mapped_column(Integer)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)


class BiaImpactTimeline(Base):
    __tablename__ = "bia_impact_timeline"
    __table_args__ = (UniqueConstraint("bia_assessment_id", "time_bucket"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    bia_assessment_id: Mapped[int] = mapped_column(ForeignKey("bia_assessments.id", ondelete="CASCADE"), nullable=False)
    time_bucket: Mapped[str] = mapped_column(String(10), nullable=False)
    impact_level_id: Mapped[int] = mapped_column(ForeignKey("matrix_impact_levels.id"), nullable=False)
    rationale: Mapped[str | None] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)
