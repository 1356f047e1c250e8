#!/usr/bin/env python3
"""
FIX ADMISSION SEQUENCE
Raises a school's admission counter to the highest admission number already
issued for a year, so the next generated number does not collide with
imported or hand-entered learners.

Usage:
    python3 scripts/fix_admission_sequence.py <tenant_id> <academic_year> <learners.csv> [column] [--actor <name>]

The CSV must contain the admission numbers in `column` (default: admission_number).
The counter is never lowered; the change is written to the audit log.
"""

import asyncio
import logging
import sys
from pathlib import Path
from uuid import UUID

import pandas as pd

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from school_records.api.container import build_services
from school_records.config import get_settings

logging.basicConfig(level=logging.INFO, format="%(message)s")


async def reconcile(tenant_id: UUID, academic_year: int, identifiers, actor: str):
    services = build_services(get_settings())
    try:
        return await services.identifiers.reconcile_sequence(tenant_id, academic_year, identifiers, actor)
    finally:
        await services.engine.dispose()


def main(argv):
    actor = "fix_admission_sequence"
    if "--actor" in argv:
        index = argv.index("--actor")
        actor = argv[index + 1] if index + 1 < len(argv) else actor
        argv = argv[:index] + argv[index + 2:]

    if len(argv) < 3:
        print("ERROR: Missing arguments")
        print(__doc__)
        return 1

    tenant_id = UUID(argv[0])
    academic_year = int(argv[1])
    csv_path = Path(argv[2]).expanduser()
    column = argv[3] if len(argv) > 3 else "admission_number"

    learners = pd.read_csv(csv_path, dtype=str, encoding="utf-8-sig")
    if column not in learners.columns:
        print(f"✗ Column {column!r} not found in {csv_path} (columns: {list(learners.columns)})")
        return 1

    identifiers = learners[column].dropna().astype(str).tolist()
    print(f"📊 Checking {len(identifiers)} admission numbers for {academic_year}...")

    result = asyncio.run(reconcile(tenant_id, academic_year, identifiers, actor))

    print(f"  Counter before:   {result.counter_value}")
    print(f"  Highest issued:   {result.max_issued}")
    print(f"  Unparseable rows: {result.skipped}")
    if result.updated:
        print(f"✅ {result.scope_key} counter raised to {result.new_value}")
    else:
        print(f"✓ {result.scope_key} counter already up to date")
    return 0


if __name__ == "__main__":
    sys.exit(main(sys.argv[1:]))
