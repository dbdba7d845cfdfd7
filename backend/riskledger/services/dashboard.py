"""
Dashboard aggregation service.

Read-only fan-out across every register. Each section is computed on its
own; a section whose table cannot be read comes back zero-valued and is
listed in `unavailable`, so "nothing to show" and "could not compute" stay
distinguishable. The only write here is take_snapshot().
"""
from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from datetime import date, datetime, timedelta
from typing import Any, TypeVar

from riskledger.config import settings
from riskledger.exceptions import CollaboratorUnavailable
from riskledger.schemas.dashboard import (
    AppetiteMetrics,
    AppetiteViolation,
    AssetDeviation,
    AssetMetrics,
    ComplianceMetrics,
    ControlMetrics,
    DashboardMetrics,
    DashboardSnapshotOut,
    EvidenceMetrics,
    ExpiringEvidence,
    FindingMetrics,
    FrameworkCompliance,
    Insight,
    OverdueDetails,
    OverdueItem,
    PolicyMetrics,
    RiskLevelCounts,
    RiskMetrics,
    ThresholdOut,
    UncoveredControl,
    VendorMetrics,
)
from riskledger.services import appetite, compliance, risk_scoring
from riskledger.services.store import RecordStore

logger = logging.getLogger(__name__)

T = TypeVar("T")

OPEN_RISK_STATUSES = ("pending_review", "approved", "active", "monitoring")


# ──────────────────────────────────────────────
# Helpers
# ──────────────────────────────────────────────

def _overdue(rows: list[Any], field: str, name_field: str, today: date) -> list[OverdueItem]:
    out = []
    for r in rows:
        due = getattr(r, field)
        if due is not None and due < today:
            out.append(OverdueItem(
                id=r.id, name=getattr(r, name_field), due_date=due,
                days_overdue=(today - due).days,
            ))
    return sorted(out, key=lambda i: i.days_overdue, reverse=True)


class _Collector:
    """Runs sections one after another, degrading each on a failed read."""

    def __init__(self, store: RecordStore):
        self.store = store
        self.unavailable: list[str] = []

    async def run(self, name: str, section: Callable[[], Awaitable[T]], default: T) -> T:
        try:
            return await section()
        except CollaboratorUnavailable as exc:
            logger.warning("Dashboard section '%s' unavailable: %s", name, exc.message)
            await self.store.rollback()
            self.unavailable.append(name)
            return default


# ══════════════════════════════════════════════
#  SECTIONS
# ══════════════════════════════════════════════

async def _risks(store: RecordStore) -> RiskMetrics:
    risks = await store.query("risks", is_archived=False)
    by_level = {"critical": 0, "high": 0, "medium": 0, "low": 0}
    for r in risks:
        by_level[risk_scoring.level(risk_scoring.current_score(r))] += 1
    accepting = {
        t.risk_id for t in await store.query(
            "risk_treatments", strategy="accept", status__ne="cancelled",
        )
    }
    return RiskMetrics(
        total=len(risks),
        registered=len(risks),
        open=sum(1 for r in risks if r.status in OPEN_RISK_STATUSES),
        treated=sum(1 for r in risks if r.status == "treated"),
        accepted=sum(1 for r in risks if r.id in accepting),
        closed=sum(1 for r in risks if r.status == "closed"),
        by_level=RiskLevelCounts(**by_level),
    )


async def _controls(store: RecordStore, today: date) -> tuple[ControlMetrics, list[OverdueItem]]:
    internal = await store.query("internal_controls")
    framework = await store.query("framework_controls")
    statuses = [c.compliance_status for c in (*internal, *framework)]
    internal_overdue = _overdue(internal, "next_review_date", "title", today)
    framework_overdue = _overdue(framework, "next_review_date", "title", today)
    metrics = ControlMetrics(
        total=len(internal) + len(framework),
        overdue=len(internal_overdue) + len(framework_overdue),
        internal_total=len(internal),
        internal_overdue=len(internal_overdue),
        compliant=statuses.count("compliant"),
        minor_deviation=statuses.count("minor_deviation"),
        major_deviation=statuses.count("major_deviation"),
        not_assessed=statuses.count("not_assessed"),
        usable_for_mitigation=sum(1 for s in statuses if compliance.is_usable_for_risk_mitigation(s)),
    )
    return metrics, internal_overdue


async def _findings(store: RecordStore) -> FindingMetrics:
    return FindingMetrics(**compliance.summarize_findings(await store.query("control_findings")))


async def _policies(store: RecordStore, today: date) -> tuple[PolicyMetrics, list[OverdueItem]]:
    policies = await store.query("policies")
    overdue = _overdue([p for p in policies if p.status != "archived"], "review_by_date", "title", today)
    return PolicyMetrics(
        total=len(policies),
        overdue=len(overdue),
        draft=sum(1 for p in policies if p.status == "draft"),
        published=sum(1 for p in policies if p.status == "published"),
    ), overdue


async def _vendors(store: RecordStore, today: date) -> tuple[VendorMetrics, list[OverdueItem]]:
    vendors = await store.query("vendors")
    due = sum(1 for v in vendors if v.next_assessment_date is not None and v.next_assessment_date <= today)
    return VendorMetrics(total=len(vendors), assessments_due=due), \
        _overdue(vendors, "next_assessment_date", "name", today)


async def _assets(store: RecordStore) -> tuple[AssetMetrics, list[AssetDeviation]]:
    primary = await store.query("primary_assets")
    secondary = await store.count("secondary_assets")
    bias = {b.id: b for b in await store.query("bia_assessments")}
    deviations = []
    for asset in primary:
        bia = bias.get(asset.bia_id) if asset.bia_completed else None
        if bia is not None and bia.derived_criticality and asset.criticality != bia.derived_criticality:
            deviations.append(AssetDeviation(
                asset_id=asset.id, asset_name=asset.name,
                criticality=asset.criticality, derived_criticality=bia.derived_criticality,
            ))
    return AssetMetrics(primary=len(primary), secondary=secondary, deviations=len(deviations)), deviations


async def _evidence(
    store: RecordStore, today: date,
) -> tuple[EvidenceMetrics, list[UncoveredControl], list[ExpiringEvidence]]:
    items = await store.query("evidence_items", order_by="expires_at")
    horizon = today + timedelta(days=settings.EVIDENCE_EXPIRY_WINDOW_DAYS)
    covered = {e.internal_control_id for e in items if e.internal_control_id is not None}
    uncovered = [
        UncoveredControl(id=c.id, title=c.title, code=c.internal_control_code)
        for c in await store.query("internal_controls", order_by="internal_control_code")
        if c.id not in covered
    ]
    expiring = [
        ExpiringEvidence(id=e.id, name=e.name, expires_at=e.expires_at)
        for e in items if e.expires_at is not None and today <= e.expires_at <= horizon
    ]
    return EvidenceMetrics(
        total=len(items),
        expiring_soon=len(expiring),
        controls_without_evidence=len(uncovered),
    ), uncovered, expiring


async def _compliance(store: RecordStore) -> ComplianceMetrics:
    frameworks = []
    for fw in await store.query("control_frameworks", order_by="name"):
        controls = await store.query("framework_controls", framework_id=fw.id)
        statuses = [c.implementation_status for c in controls]
        implemented = statuses.count("implemented")
        total = len(controls)
        frameworks.append(FrameworkCompliance(
            framework_id=fw.id,
            framework_name=fw.name,
            total_controls=total,
            implemented=implemented,
            partially_implemented=statuses.count("partially_implemented"),
            not_implemented=statuses.count("not_implemented"),
            compliance_percentage=round(implemented / total * 100) if total else 0,
        ))
    average = round(sum(f.compliance_percentage for f in frameworks) / len(frameworks)) if frameworks else 0
    return ComplianceMetrics(frameworks=tuple(frameworks), average_compliance=average)


async def _risk_appetite(store: RecordStore) -> AppetiteMetrics:
    active, bands = await appetite.active_bands(store)
    if active is None:
        return AppetiteMetrics()
    risks = await store.query("risks", is_archived=False)
    details = tuple(AppetiteViolation(**v) for v in appetite.appetite_violations(risks, bands))
    return AppetiteMetrics(
        appetite_id=active.id, appetite_name=active.name,
        violations=len(details), details=details,
    )


async def _thresholds(store: RecordStore) -> tuple[ThresholdOut, ...]:
    rows = await store.query("dashboard_thresholds", order_by=["category", "threshold_key"])
    return tuple(ThresholdOut.model_validate(t) for t in rows)


# ══════════════════════════════════════════════
#  INSIGHTS
# ══════════════════════════════════════════════

# threshold_key -> (metric getter, "max" | "min", category, title, recommendation)
INSIGHT_RULES: dict[str, tuple[Callable[[DashboardMetrics], float], str, str, str, str]] = {
    "open_risks_max": (
        lambda m: m.risks.open, "max", "risk",
        "Open risk backlog above limit",
        "Prioritise treatment plans for the highest scoring open risks.",
    ),
    "critical_risks_max": (
        lambda m: m.risks.by_level.critical, "max", "risk",
        "Critical risks above limit",
        "Escalate critical risks to their owners and agree treatment dates.",
    ),
    "appetite_violations_max": (
        lambda m: m.risk_appetite.violations, "max", "risk",
        "Risks outside appetite",
        "Review risks with no matching band or an escalation band with the appetite owner.",
    ),
    "overdue_controls_max": (
        lambda m: m.controls.overdue, "max", "controls",
        "Control reviews overdue",
        "Schedule the overdue control reviews and update next review dates.",
    ),
    "major_deviations_max": (
        lambda m: m.findings.major_deviations, "max", "controls",
        "Open major deviations",
        "Agree remediation plans for every open major deviation.",
    ),
    "overdue_policies_max": (
        lambda m: m.policies.overdue, "max", "compliance",
        "Policy reviews overdue",
        "Assign owners to re-review and republish the overdue policies.",
    ),
    "vendor_assessments_due_max": (
        lambda m: m.vendors.assessments_due, "max", "vendors",
        "Vendor assessments due",
        "Send assessment questionnaires to vendors past their review date.",
    ),
    "evidence_expiring_max": (
        lambda m: m.evidence.expiring_soon, "max", "evidence",
        "Evidence about to expire",
        "Collect fresh evidence before the current items expire.",
    ),
    "asset_deviations_max": (
        lambda m: m.assets.deviations, "max", "assets",
        "Asset criticality differs from BIA",
        "Align asset criticality with the latest business impact analysis.",
    ),
    "compliance_min_pct": (
        lambda m: m.compliance.average_compliance, "min", "compliance",
        "Framework compliance below target",
        "Focus implementation effort on the least compliant framework.",
    ),
}


def _severity(value: float, limit: float, direction: str) -> str:
    """How far past the threshold a metric is: up to 1.5x medium, 2x high, beyond critical."""
    if direction == "min":
        ratio = (limit / value) if value else float("inf")
    else:
        ratio = (value / limit) if limit else float("inf")
    if ratio > 2:
        return "critical"
    if ratio > 1.5:
        return "high"
    return "medium"


def build_insights(metrics: DashboardMetrics, thresholds: tuple[ThresholdOut, ...]) -> tuple[Insight, ...]:
    out = []
    for t in thresholds:
        rule = INSIGHT_RULES.get(t.threshold_key)
        if rule is None:
            continue
        getter, direction, category, title, recommendation = rule
        value = float(getter(metrics))
        breached = value < t.threshold_value if direction == "min" else value > t.threshold_value
        if not breached:
            continue
        out.append(Insight(
            threshold_key=t.threshold_key,
            title=title,
            description=f"{t.threshold_name}: {value:g} against a threshold of {t.threshold_value:g} {t.threshold_unit}",
            severity=_severity(value, t.threshold_value, direction),
            category=category,
            value=value,
            threshold=t.threshold_value,
            recommendation=recommendation,
        ))
    order = {"critical": 0, "high": 1, "medium": 2, "low": 3}
    return tuple(sorted(out, key=lambda i: order[i.severity]))


# ══════════════════════════════════════════════
#  SNAPSHOT
# ══════════════════════════════════════════════

async def build_dashboard(store: RecordStore, today: date | None = None) -> DashboardSnapshotOut:
    today = today or date.today()
    c = _Collector(store)

    risks = await c.run("risks", lambda: _risks(store), RiskMetrics())
    controls, overdue_controls = await c.run("controls", lambda: _controls(store, today), (ControlMetrics(), []))
    findings = await c.run("findings", lambda: _findings(store), FindingMetrics())
    policies, overdue_policies = await c.run("policies", lambda: _policies(store, today), (PolicyMetrics(), []))
    vendors, overdue_vendors = await c.run("vendors", lambda: _vendors(store, today), (VendorMetrics(), []))
    assets, deviations = await c.run("assets", lambda: _assets(store), (AssetMetrics(), []))
    evidence, uncovered, expiring = await c.run(
        "evidence", lambda: _evidence(store, today), (EvidenceMetrics(), [], []),
    )
    frameworks = await c.run("compliance", lambda: _compliance(store), ComplianceMetrics())
    risk_appetite = await c.run("risk_appetite", lambda: _risk_appetite(store), AppetiteMetrics())
    thresholds = await c.run("thresholds", lambda: _thresholds(store), ())

    metrics = DashboardMetrics(
        risks=risks, controls=controls, findings=findings, policies=policies,
        vendors=vendors, assets=assets, evidence=evidence,
        compliance=frameworks, risk_appetite=risk_appetite,
    )
    if c.unavailable:
        logger.info("Dashboard built with %d unavailable section(s)", len(c.unavailable))
    return DashboardSnapshotOut(
        success=not c.unavailable,
        generated_at=datetime.utcnow(),
        metrics=metrics,
        insights=build_insights(metrics, thresholds),
        overdue_details=OverdueDetails(
            controls=tuple(overdue_controls),
            policies=tuple(overdue_policies),
            vendors=tuple(overdue_vendors),
        ),
        asset_deviations=tuple(deviations),
        controls_without_evidence=tuple(uncovered),
        evidence_expiring_soon=tuple(expiring),
        thresholds=thresholds,
        unavailable=tuple(c.unavailable),
    )


async def take_snapshot(store: RecordStore, today: date | None = None) -> Any:
    """Persist today's metrics; a second call on the same day overwrites the first."""
    today = today or date.today()
    dashboard = await build_dashboard(store, today)
    metrics = dashboard.metrics.model_dump(mode="json")
    existing = await store.query("dashboard_snapshots", snapshot_date=today)
    if existing:
        row = await store.update("dashboard_snapshots", existing[0].id, {"metrics": metrics})
    else:
        row = await store.insert("dashboard_snapshots", {"snapshot_date": today, "metrics": metrics})
    await store.commit()
    logger.info("Dashboard snapshot stored for %s", today)
    return row


async def list_snapshots(store: RecordStore, days: int = 30, today: date | None = None) -> list[Any]:
    since = (today or date.today()) - timedelta(days=days)
    return await store.query("dashboard_snapshots", snapshot_date__gte=since, order_by="snapshot_date")
