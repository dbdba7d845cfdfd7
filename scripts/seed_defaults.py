"""
Seed script: default 5x5 risk matrix, board risk appetite and dashboard thresholds.
Run: cd backend && python ../scripts/seed_defaults.py

Idempotent: each block is skipped when its table already has rows.
"""
import asyncio
import os
import sys
from pathlib import Path

# Ensure backend is on path
sys.path.insert(0, str(Path(__file__).resolve().parent.parent / "backend"))
os.chdir(str(Path(__file__).resolve().parent.parent / "backend"))

from riskledger.database import async_session, engine  # noqa: E402
from riskledger.services.store import RecordStore  # noqa: E402


LIKELIHOOD = [
    ("Rare", "May occur only in exceptional circumstances", "#16a34a"),
    ("Unlikely", "Could occur at some time", "#84cc16"),
    ("Possible", "Might occur at some time", "#eab308"),
    ("Likely", "Will probably occur in most circumstances", "#f97316"),
    ("Almost certain", "Expected to occur in most circumstances", "#dc2626"),
]

IMPACT = [
    ("Minimal", "No noticeable effect on operations", "#16a34a"),
    ("Minor", "Short disruption, handled within the team", "#84cc16"),
    ("Moderate", "Service degraded, management attention required", "#eab308"),
    ("Major", "Critical service down, regulatory exposure", "#f97316"),
    ("Severe", "Prolonged outage, significant financial or legal harm", "#dc2626"),
]

BANDS = [
    {"band": "low", "label": "Accept", "min_score": 1, "max_score": 5,
     "acceptance_role": "Risk owner", "authorized_actions": ["accept", "monitor"], "color": "#16a34a"},
    {"band": "medium", "label": "Tolerate with controls", "min_score": 6, "max_score": 11,
     "acceptance_role": "Department head", "authorized_actions": ["treat", "monitor"], "color": "#eab308"},
    {"band": "high", "label": "Treat", "min_score": 12, "max_score": 19,
     "acceptance_role": "CISO", "authorized_actions": ["treat", "escalate"], "color": "#f97316"},
    {"band": "critical", "label": "Unacceptable", "min_score": 20, "max_score": 25,
     "acceptance_role": "Management board", "authorized_actions": ["escalate", "avoid"], "color": "#dc2626"},
]

# threshold_key must match a rule in riskledger.services.dashboard
THRESHOLDS = [
    ("open_risks_max", "Open risks", 25, "count", "risk"),
    ("critical_risks_max", "Critical risks", 0, "count", "risk"),
    ("appetite_violations_max", "Risks outside appetite", 0, "count", "risk"),
    ("overdue_controls_max", "Overdue control reviews", 5, "count", "controls"),
    ("major_deviations_max", "Open major deviations", 0, "count", "controls"),
    ("overdue_policies_max", "Overdue policy reviews", 2, "count", "compliance"),
    ("compliance_min_pct", "Average framework compliance", 80, "percent", "compliance"),
    ("vendor_assessments_due_max", "Vendor assessments due", 3, "count", "vendors"),
    ("evidence_expiring_max", "Evidence expiring soon", 5, "count", "evidence"),
    ("asset_deviations_max", "Assets with criticality unlike BIA", 0, "count", "assets"),
]


async def seed():
    async with async_session() as s:
        store = RecordStore(s)

        if await store.count("risk_matrices"):
            print("risk_matrices not empty, skipping matrix")
        else:
            m = await store.insert("risk_matrices", {"name": "Default 5x5", "size": 5, "is_active": True})
            for collection, scale in (("matrix_likelihood_levels", LIKELIHOOD), ("matrix_impact_levels", IMPACT)):
                for level, (label, description, color) in enumerate(scale, 1):
                    await store.insert(collection, {
                        "matrix_id": m.id, "level": level, "label": label,
                        "description": description, "color": color,
                    })
            print(f"Created matrix #{m.id} with {len(LIKELIHOOD)}x{len(IMPACT)} levels")

        if await store.count("risk_appetites"):
            print("risk_appetites not empty, skipping appetite")
        else:
            a = await store.insert("risk_appetites", {
                "name": "Board risk appetite",
                "narrative_statement": "Low appetite for risks to customer data and service availability.",
                "escalation_criteria": "Any score of 12 or more, or a score outside every band.",
                "reporting_cadence": "quarterly",
                "is_active": True,
            })
            for order, band in enumerate(BANDS):
                await store.insert("risk_appetite_bands", {**band, "appetite_id": a.id, "sort_order": order})
            print(f"Created appetite #{a.id} with {len(BANDS)} bands")

        existing = {t.threshold_key for t in await store.query("dashboard_thresholds")}
        added = 0
        for key, name, value, unit, category in THRESHOLDS:
            if key in existing:
                continue
            await store.insert("dashboard_thresholds", {
                "threshold_key": key, "threshold_name": name, "threshold_value": value,
                "threshold_unit": unit, "category": category,
            })
            added += 1
        print(f"Added {added} dashboard thresholds")

        await store.commit()

    await engine.dispose()
    print("Seed complete!")


if __name__ == "__main__":
    asyncio.run(seed())
