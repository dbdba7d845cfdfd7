from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, Field


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True)


# ────────────────────────────────────────────────
# Metric sections (all counts default to zero)
# ────────────────────────────────────────────────

class RiskLevelCounts(_Frozen):
    critical: int = 0
    high: int = 0
    medium: int = 0
    low: int = 0


class RiskMetrics(_Frozen):
    total: int = 0
    registered: int = 0
    open: int = 0             # pending_review / approved / active / monitoring
    treated: int = 0
    accepted: int = 0         # live risks with an "accept" treatment still in play
    closed: int = 0
    by_level: RiskLevelCounts = RiskLevelCounts()


class ControlMetrics(_Frozen):
    total: int = 0
    overdue: int = 0
    internal_total: int = 0
    internal_overdue: int = 0
    compliant: int = 0
    minor_deviation: int = 0
    major_deviation: int = 0
    not_assessed: int = 0
    usable_for_mitigation: int = 0


class FindingMetrics(_Frozen):
    total: int = 0
    open: int = 0
    in_progress: int = 0
    closed: int = 0
    accepted: int = 0
    major_deviations: int = 0
    minor_deviations: int = 0
    opportunities: int = 0


class PolicyMetrics(_Frozen):
    total: int = 0
    overdue: int = 0
    draft: int = 0
    published: int = 0


class VendorMetrics(_Frozen):
    total: int = 0
    assessments_due: int = 0


class AssetMetrics(_Frozen):
    primary: int = 0
    secondary: int = 0
    deviations: int = 0


class EvidenceMetrics(_Frozen):
    total: int = 0
    expiring_soon: int = 0
    controls_without_evidence: int = 0


class FrameworkCompliance(_Frozen):
    framework_id: int
    framework_name: str
    total_controls: int = 0
    implemented: int = 0
    partially_implemented: int = 0
    not_implemented: int = 0
    compliance_percentage: int = 0


class ComplianceMetrics(_Frozen):
    frameworks: tuple[FrameworkCompliance, ...] = ()
    average_compliance: int = 0


class AppetiteViolation(_Frozen):
    risk_id: int
    risk_name: str
    score: int
    band: str
    band_label: str
    reason: str               # no_band | escalation_band


class AppetiteMetrics(_Frozen):
    appetite_id: int | None = None
    appetite_name: str | None = None
    violations: int = 0
    details: tuple[AppetiteViolation, ...] = ()


class DashboardMetrics(_Frozen):
    risks: RiskMetrics = RiskMetrics()
    controls: ControlMetrics = ControlMetrics()
    findings: FindingMetrics = FindingMetrics()
    policies: PolicyMetrics = PolicyMetrics()
    vendors: VendorMetrics = VendorMetrics()
    assets: AssetMetrics = AssetMetrics()
    evidence: EvidenceMetrics = EvidenceMetrics()
    compliance: ComplianceMetrics = ComplianceMetrics()
    risk_appetite: AppetiteMetrics = AppetiteMetrics()


# ────────────────────────────────────────────────
# Detail lists
# ────────────────────────────────────────────────

class OverdueItem(_Frozen):
    id: int
    name: str
    due_date: date
    days_overdue: int


class OverdueDetails(_Frozen):
    controls: tuple[OverdueItem, ...] = ()
    policies: tuple[OverdueItem, ...] = ()
    vendors: tuple[OverdueItem, ...] = ()


class UncoveredControl(_Frozen):
    id: int
    title: str
    code: str


class ExpiringEvidence(_Frozen):
    id: int
    name: str
    expires_at: date


class AssetDeviation(_Frozen):
    asset_id: int
    asset_name: str
    criticality: str | None = None
    derived_criticality: str


class ThresholdOut(_Frozen):
    id: int
    threshold_key: str
    threshold_name: str
    threshold_value: float
    threshold_unit: str
    description: str | None = None
    category: str
    model_config = ConfigDict(frozen=True, from_attributes=True)


class Insight(_Frozen):
    threshold_key: str
    title: str
    description: str
    severity: str             # critical | high | medium | low
    category: str
    value: float
    threshold: float
    recommendation: str


# ────────────────────────────────────────────────
# Top-level snapshot
# ────────────────────────────────────────────────

class DashboardSnapshotOut(_Frozen):
    """Everything the dashboard shows, computed in one pass."""
    success: bool = True
    generated_at: datetime
    metrics: DashboardMetrics = DashboardMetrics()
    insights: tuple[Insight, ...] = ()
    overdue_details: OverdueDetails = OverdueDetails()
    asset_deviations: tuple[AssetDeviation, ...] = ()
    controls_without_evidence: tuple[UncoveredControl, ...] = ()
    evidence_expiring_soon: tuple[ExpiringEvidence, ...] = ()
    thresholds: tuple[ThresholdOut, ...] = ()
    unavailable: tuple[str, ...] = ()


class StoredSnapshotOut(BaseModel):
    id: int
    snapshot_date: date
    metrics: dict
    created_at: datetime
    model_config = {"from_attributes": True}


class ThresholdUpdate(BaseModel):
    threshold_value: float = Field(..., ge=0)
    model_config = {"extra": "forbid"}
