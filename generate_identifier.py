#!/usr/bin/env python3
"""
Simple wrapper to issue an admission or staff number for a tenant
Usage:
    python3 generate_identifier.py <tenant_id> admission <academic_year> [branch_code]
    python3 generate_identifier.py <tenant_id> staff
"""

import asyncio
import sys
from pathlib import Path
from uuid import UUID

# Add src to path
sys.path.insert(0, str(Path(__file__).parent / "src"))

from school_records.api.container import build_services
from school_records.config import get_settings
from school_records.exceptions import SchoolRecordsError


async def issue(tenant_id: UUID, kind: str, args) -> str:
    services = build_services(get_settings())
    try:
        if kind == "staff":
            return await services.identifiers.generate_staff_number(tenant_id)
        academic_year = int(args[0])
        branch_code = args[1] if len(args) > 1 else None
        return await services.identifiers.generate_admission_number(tenant_id, branch_code, academic_year)
    finally:
        await services.engine.dispose()


def main(argv):
    if len(argv) < 2 or argv[1] not in ("admission", "staff") or (argv[1] == "admission" and len(argv) < 3):
        print("ERROR: Missing arguments")
        print(__doc__)
        return 1

    tenant_id = UUID(argv[0])
    try:
        identifier = asyncio.run(issue(tenant_id, argv[1], argv[2:]))
    except SchoolRecordsError as exc:
        print(f"✗ {type(exc).__name__}: {exc}")
        return 2

    print(identifier)
    return 0


if __name__ == "__main__":
    sys.exit(main(sys.argv[1:]))
