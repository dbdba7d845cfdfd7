"""RiskLedger core schema: matrices, appetite, risks and treatments, controls and
findings, assets and BIA, governance registers, dashboard, audit log.

Revision ID: 001_riskledger_core
Revises:
"""
from alembic import op
import sqlalchemy as sa

revision = "001_riskledger_core"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps(updated: bool = True) -> list[sa.Column]:
    cols = [sa.Column("created_at", sa.DateTime, nullable=False, server_default=sa.func.now())]
    if updated:
        cols.append(sa.Column("updated_at", sa.DateTime, nullable=False, server_default=sa.func.now()))
    return cols


def _level_table(name: str) -> None:
    op.create_table(
        name,
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("matrix_id", sa.Integer, sa.ForeignKey("risk_matrices.id", ondelete="CASCADE"), nullable=False),
        sa.Column("level", sa.Integer, nullable=False),
        sa.Column("label", sa.String(100), nullable=False),
        sa.Column("description", sa.Text),
        sa.Column("color", sa.String(20)),
        *_timestamps(updated=False),
        sa.UniqueConstraint("matrix_id", "level"),
    )


def upgrade() -> None:
    # ── risk matrix ──
    op.create_table(
        "risk_matrices",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("size", sa.Integer, nullable=False, server_default="5"),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default="0"),
        *_timestamps(),
    )
    _level_table("matrix_likelihood_levels")
    _level_table("matrix_impact_levels")

    # ── risk appetite ──
    op.create_table(
        "risk_appetites",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("matrix_id", sa.Integer, sa.ForeignKey("risk_matrices.id")),
        sa.Column("owner_id", sa.Integer),
        sa.Column("narrative_statement", sa.Text),
        sa.Column("escalation_criteria", sa.Text),
        sa.Column("reporting_cadence", sa.String(50)),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default="0"),
        *_timestamps(),
    )
    op.create_table(
        "risk_appetite_bands",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("appetite_id", sa.Integer, sa.ForeignKey("risk_appetites.id", ondelete="CASCADE"), nullable=False),
        sa.Column("band", sa.String(50), nullable=False),
        sa.Column("label", sa.String(100)),
        sa.Column("min_score", sa.Integer, nullable=False),
        sa.Column("max_score", sa.Integer, nullable=False),
        sa.Column("acceptance_role", sa.String(100)),
        sa.Column("authorized_actions", sa.JSON),
        sa.Column("color", sa.String(20)),
        sa.Column("description", sa.Text),
        sa.Column("sort_order", sa.Integer, nullable=False, server_default="0"),
        *_timestamps(updated=False),
    )

    # ── controls ──
    op.create_table(
        "control_frameworks",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("version", sa.String(50)),
        sa.Column("description", sa.Text),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default="0"),
        *_timestamps(),
    )
    op.create_table(
        "framework_controls",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("framework_id", sa.Integer, sa.ForeignKey("control_frameworks.id", ondelete="CASCADE"), nullable=False),
        sa.Column("control_code", sa.String(50), nullable=False),
        sa.Column("title", sa.String(400), nullable=False),
        sa.Column("description", sa.Text),
        sa.Column("implementation_status", sa.String(30), nullable=False, server_default="not_implemented"),
        sa.Column("compliance_status", sa.String(30), nullable=False, server_default="not_assessed"),
        sa.Column("next_review_date", sa.Date),
        *_timestamps(),
    )
    op.create_index("ix_framework_controls_framework", "framework_controls", ["framework_id"])
    op.create_table(
        "internal_controls",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("internal_control_code", sa.String(50), nullable=False),
        sa.Column("title", sa.String(400), nullable=False),
        sa.Column("description", sa.Text),
        sa.Column("owner_id", sa.Integer),
        sa.Column("compliance_status", sa.String(30), nullable=False, server_default="not_assessed"),
        sa.Column("next_review_date", sa.Date),
        *_timestamps(),
    )
    op.create_table(
        "control_findings",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("internal_control_id", sa.Integer, sa.ForeignKey("internal_controls.id", ondelete="SET NULL")),
        sa.Column("framework_control_id", sa.Integer, sa.ForeignKey("framework_controls.id", ondelete="SET NULL")),
        sa.Column("finding_type", sa.String(40), nullable=False),
        sa.Column("title", sa.String(400), nullable=False),
        sa.Column("description", sa.Text),
        sa.Column("status", sa.String(20), nullable=False, server_default="Open"),
        sa.Column("identified_date", sa.Date, nullable=False),
        sa.Column("due_date", sa.Date),
        sa.Column("closed_date", sa.Date),
        sa.Column("assigned_to", sa.Integer),
        sa.Column("remediation_plan", sa.Text),
        sa.Column("remediation_notes", sa.Text),
        sa.Column("created_by", sa.Integer),
        *_timestamps(),
    )
    op.create_index("ix_control_findings_internal", "control_findings", ["internal_control_id"])
    op.create_index("ix_control_findings_framework", "control_findings", ["framework_control_id"])

    # ── risks and treatments ──
    op.create_table(
        "risks",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("risk_code", sa.String(30), unique=True),
        sa.Column("title", sa.String(400), nullable=False),
        sa.Column("description", sa.Text),
        sa.Column("category", sa.String(100)),
        sa.Column("owner_id", sa.Integer),
        sa.Column("inherent_severity", sa.String(20), nullable=False),
        sa.Column("inherent_likelihood", sa.String(20), nullable=False),
        sa.Column("inherent_score", sa.Integer),
        sa.Column("net_severity", sa.String(20)),
        sa.Column("net_likelihood", sa.String(20)),
        sa.Column("residual_likelihood", sa.String(20)),
        sa.Column("residual_score", sa.Integer),
        sa.Column("residual_rating", sa.String(20)),
        sa.Column("residual_updated_at", sa.DateTime),
        sa.Column("status", sa.String(30), nullable=False, server_default="draft"),
        sa.Column("treatment_plan", sa.Text),
        sa.Column("review_date", sa.Date),
        sa.Column("is_archived", sa.Boolean, nullable=False, server_default="0"),
        sa.Column("created_by", sa.Integer),
        *_timestamps(),
    )
    op.create_table(
        "risk_treatments",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("risk_id", sa.Integer, sa.ForeignKey("risks.id", ondelete="CASCADE"), nullable=False),
        sa.Column("title", sa.String(400), nullable=False),
        sa.Column("description", sa.Text),
        sa.Column("strategy", sa.String(30)),
        sa.Column("assigned_to", sa.Integer),
        sa.Column("status", sa.String(20), nullable=False, server_default="planned"),
        sa.Column("due_date", sa.Date),
        sa.Column("completed_at", sa.DateTime),
        sa.Column("residual_severity", sa.String(20)),
        sa.Column("residual_likelihood", sa.String(20)),
        sa.Column("created_by", sa.Integer),
        *_timestamps(),
    )
    op.create_index("ix_risk_treatments_risk", "risk_treatments", ["risk_id"])
    op.create_table(
        "treatment_controls",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("treatment_id", sa.Integer, sa.ForeignKey("risk_treatments.id", ondelete="CASCADE"), nullable=False),
        sa.Column("internal_control_id", sa.Integer, sa.ForeignKey("internal_controls.id", ondelete="CASCADE"), nullable=False),
        sa.Column("implementation_status", sa.String(20), nullable=False, server_default="planned"),
        sa.Column("notes", sa.Text),
        sa.Column("created_by", sa.Integer),
        *_timestamps(updated=False),
    )

    # ── assets and BIA ──
    op.create_table(
        "primary_assets",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(400), nullable=False),
        sa.Column("description", sa.Text),
        sa.Column("asset_type", sa.String(50)),
        sa.Column("owner_id", sa.Integer),
        sa.Column("criticality", sa.String(20)),
        sa.Column("rto_hours", sa.Integer),
        sa.Column("rpo_hours", sa.Integer),
        sa.Column("mtd_hours", sa.Integer),
        sa.Column("bia_id", sa.Integer),
        sa.Column("bia_completed", sa.Boolean, nullable=False, server_default="0"),
        *_timestamps(),
    )
    op.create_table(
        "secondary_assets",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(400), nullable=False),
        sa.Column("primary_asset_id", sa.Integer, sa.ForeignKey("primary_assets.id", ondelete="SET NULL")),
        sa.Column("asset_type", sa.String(50)),
        sa.Column("criticality", sa.String(20)),
        *_timestamps(),
    )
    op.create_table(
        "bia_assessments",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("primary_asset_id", sa.Integer, sa.ForeignKey("primary_assets.id", ondelete="CASCADE"), nullable=False),
        sa.Column("risk_appetite_id", sa.Integer, sa.ForeignKey("risk_appetites.id")),
        sa.Column("bia_owner", sa.String(200)),
        sa.Column("notes", sa.Text),
        sa.Column("high_threshold", sa.Integer, nullable=False),
        sa.Column("rto_hours", sa.Integer),
        sa.Column("rpo_hours", sa.Integer),
        sa.Column("mtd_hours", sa.Integer),
        sa.Column("derived_criticality", sa.String(20)),
        sa.Column("time_to_high_bucket", sa.String(10)),
        sa.Column("last_assessed_at", sa.DateTime),
        sa.Column("next_review_at", sa.DateTime),
        sa.Column("created_by", sa.Integer),
        *_timestamps(),
    )
    op.create_table(
        "bia_impact_timeline",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("bia_assessment_id", sa.Integer, sa.ForeignKey("bia_assessments.id", ondelete="CASCADE"), nullable=False),
        sa.Column("time_bucket", sa.String(10), nullable=False),
        sa.Column("impact_level_id", sa.Integer, sa.ForeignKey("matrix_impact_levels.id"), nullable=False),
        sa.Column("rationale", sa.Text),
        *_timestamps(updated=False),
        sa.UniqueConstraint("bia_assessment_id", "time_bucket"),
    )

    # ── governance registers ──
    op.create_table(
        "policies",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("title", sa.String(400), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="draft"),
        sa.Column("owner_id", sa.Integer),
        sa.Column("review_by_date", sa.Date),
        *_timestamps(),
    )
    op.create_table(
        "vendors",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("services_provided", sa.Text),
        sa.Column("criticality", sa.String(20)),
        sa.Column("last_assessment_date", sa.Date),
        sa.Column("next_assessment_date", sa.Date),
        *_timestamps(),
    )
    op.create_table(
        "evidence_items",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(400), nullable=False),
        sa.Column("internal_control_id", sa.Integer, sa.ForeignKey("internal_controls.id", ondelete="SET NULL")),
        sa.Column("storage_key", sa.String(500)),
        sa.Column("expires_at", sa.Date),
        sa.Column("uploaded_by", sa.Integer),
        *_timestamps(updated=False),
    )

    # ── dashboard ──
    op.create_table(
        "dashboard_thresholds",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("threshold_key", sa.String(50), nullable=False, unique=True),
        sa.Column("threshold_name", sa.String(200), nullable=False),
        sa.Column("threshold_value", sa.Float, nullable=False),
        sa.Column("threshold_unit", sa.String(20), nullable=False, server_default="count"),
        sa.Column("description", sa.Text),
        sa.Column("category", sa.String(50), nullable=False),
        sa.Column("updated_at", sa.DateTime, nullable=False, server_default=sa.func.now()),
    )
    op.create_table(
        "dashboard_snapshots",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("snapshot_date", sa.Date, nullable=False),
        sa.Column("metrics", sa.JSON, nullable=False),
        *_timestamps(updated=False),
    )
    op.create_index("ix_dashboard_snapshots_date", "dashboard_snapshots", ["snapshot_date"])

    # ── audit ──
    op.create_table(
        "audit_log",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("user_id", sa.Integer),
        sa.Column("module", sa.String(50), nullable=False),
        sa.Column("action", sa.String(30), nullable=False),
        sa.Column("entity_type", sa.String(50), nullable=False),
        sa.Column("entity_id", sa.Integer, nullable=False),
        sa.Column("field_name", sa.String(100)),
        sa.Column("old_value", sa.Text),
        sa.Column("new_value", sa.Text),
        sa.Column("ip_address", sa.String(45)),
        *_timestamps(updated=False),
    )
    op.create_index("ix_audit_log_entity", "audit_log", ["entity_type", "entity_id"])


def downgrade() -> None:
    for table in (
        "audit_log",
        "dashboard_snapshots", "dashboard_thresholds",
        "evidence_items", "vendors", "policies",
        "bia_impact_timeline", "bia_assessments", "secondary_assets", "primary_assets",
        "treatment_controls", "risk_treatments", "risks",
        "control_findings", "internal_controls", "framework_controls", "control_frameworks",
        "risk_appetite_bands", "risk_appetites",
        "matrix_impact_levels", "matrix_likelihood_levels", "risk_matrices",
    ):
        op.drop_table(table)
