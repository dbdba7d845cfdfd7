#!/usr/bin/env python3
"""RiskLedger: database check after migration.

Run from backend/ (with the venv active):
    python ../scripts/verify_db.py

Checks:
  1. Connection (DATABASE_URL from env or backend/.env)
  2. Every table the models need
  3. Alembic version
  4. Seed data (active matrix, active appetite, thresholds)
  5. Dashboard thresholds match the insight rules
"""
import asyncio
import os
import sys
from pathlib import Path

# Set path to backend/
backend_dir = Path(__file__).resolve().parent.parent / "backend"
sys.path.insert(0, str(backend_dir))
os.chdir(str(backend_dir))

from sqlalchemy import inspect, text  # noqa: E402
from sqlalchemy.exc import DBAPIError  # noqa: E402

from riskledger.database import engine  # noqa: E402
from riskledger.models import Base  # noqa: E402
from riskledger.services.dashboard import INSIGHT_RULES  # noqa: E402

GREEN = "\033[92m"
RED = "\033[91m"
YELLOW = "\033[93m"
BLUE = "\033[94m"
NC = "\033[0m"

EXPECTED_REVISION = "001_riskledger_core"


def ok(msg):
    print(f"  {GREEN}[OK]{NC} {msg}")

def fail(msg):
    print(f"  {RED}[FAIL]{NC} {msg}")

def warn(msg):
    print(f"  {YELLOW}[!]{NC} {msg}")

def step(msg):
    print(f"\n{BLUE}=== {msg} ==={NC}")


SEED_CHECKS = [
    ("SELECT COUNT(*) FROM risk_matrices WHERE is_active = 1", "active risk matrix", 1),
    ("SELECT COUNT(*) FROM matrix_impact_levels", "impact levels", 3),
    ("SELECT COUNT(*) FROM risk_appetites WHERE is_active = 1", "active risk appetite", 1),
    ("SELECT COUNT(*) FROM risk_appetite_bands", "appetite bands", 1),
    ("SELECT COUNT(*) FROM dashboard_thresholds", "dashboard thresholds", 1),
]


async def main():
    errors = 0

    step("1. Connection")
    print(f"  URL: {engine.url.render_as_string(hide_password=True)}")
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        ok("Connection OK")
    except DBAPIError as e:
        fail(f"Cannot connect: {e}")
        sys.exit(1)

    async with engine.connect() as conn:
        # ── 2. Tables ──
        step("2. Tables")
        existing = set(await conn.run_sync(lambda c: inspect(c).get_table_names()))
        required = sorted(Base.metadata.tables) + ["alembic_version"]
        print(f"  Found {len(existing)} tables")
        missing = [t for t in required if t not in existing]
        if missing:
            fail(f"Missing tables ({len(missing)}): {', '.join(missing)}")
            errors += len(missing)
        else:
            ok(f"All {len(required)} required tables exist")

        # ── 3. Alembic ──
        step("3. Alembic version")
        try:
            ver = (await conn.execute(text("SELECT version_num FROM alembic_version"))).scalar() or "EMPTY"
            if ver == EXPECTED_REVISION:
                ok(f"Alembic: {ver} (latest)")
            else:
                warn(f"Alembic: {ver} (expected: {EXPECTED_REVISION})")
        except DBAPIError as e:
            fail(f"alembic_version: {e}")
            errors += 1

        # ── 4. Seed data ──
        step("4. Seed data")
        for sql, label, min_count in SEED_CHECKS:
            try:
                count = (await conn.execute(text(sql))).scalar()
                if count >= min_count:
                    ok(f"{label}: {count} (>= {min_count})")
                else:
                    warn(f"{label}: {count} (expected >= {min_count}); run scripts/seed_defaults.py")
            except DBAPIError as e:
                fail(f"{label}: {e}")
                errors += 1

        # ── 5. Threshold keys ──
        step("5. Threshold keys")
        try:
            keys = {row[0] for row in await conn.execute(text("SELECT threshold_key FROM dashboard_thresholds"))}
            unknown = sorted(keys - set(INSIGHT_RULES))
            if unknown:
                warn(f"No insight rule for: {', '.join(unknown)}")
            else:
                ok(f"{len(keys)} thresholds, all with an insight rule")
        except DBAPIError as e:
            fail(f"dashboard_thresholds: {e}")
            errors += 1

    await engine.dispose()

    step("Summary")
    if errors == 0:
        ok("Database is in good shape!")
    else:
        fail(f"Found {errors} problem(s) to fix")

    return errors


if __name__ == "__main__":
    errors = asyncio.run(main())
    sys.exit(1 if errors > 0 else 0)
