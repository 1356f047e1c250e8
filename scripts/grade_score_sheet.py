#!/usr/bin/env python3
"""
SCORE SHEET GRADER
Grades an exported score sheet and writes one row per learner and learning area.

Usage:
    python3 scripts/grade_score_sheet.py <scores.csv> <output.csv> [summative.csv] [--cbc] [--tenant <uuid>]

Without --tenant every assessment type uses SIMPLE_AVERAGE and the default
bands. With --tenant the tenant's aggregation configs and default grading
system are loaded from SCHOOL_RECORDS_DATABASE_URL.
"""

import asyncio
import logging
import sys
from pathlib import Path
from uuid import UUID

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from school_records.api.container import build_services
from school_records.config import get_settings
from school_records.core.calculators.rubric import default_ranges
from school_records.core.models.grading import GradingSystemType
from school_records.core.processors.score_sheet import ScoreSheetProcessor

logging.basicConfig(level=logging.INFO, format="%(message)s")


async def load_tenant_processor(tenant_id: UUID, system_type: GradingSystemType) -> ScoreSheetProcessor:
    """Processor configured from the tenant's stored configs and bands"""
    services = build_services(get_settings())
    try:
        configs = await services.grading.list_aggregation_configs(tenant_id)
        ranges = await services.grading.get_ranges(tenant_id, system_type)
    finally:
        await services.engine.dispose()

    print(f"  Loaded {len(configs)} aggregation configs, {len(ranges)} bands")
    return ScoreSheetProcessor(configs, ranges)


def main(argv):
    args = [a for a in argv if not a.startswith("--")]
    system_type = GradingSystemType.CBC if "--cbc" in argv else GradingSystemType.SUMMATIVE

    tenant_id = None
    if "--tenant" in argv:
        index = argv.index("--tenant")
        if index + 1 >= len(argv):
            print("ERROR: --tenant needs a tenant id")
            return 1
        tenant_id = UUID(argv[index + 1])
        args = [a for a in args if a != argv[index + 1]]

    if len(args) < 2:
        print("ERROR: Missing arguments")
        print(__doc__)
        return 1

    scores_path = Path(args[0]).expanduser()
    output_path = Path(args[1]).expanduser()
    summative_path = Path(args[2]).expanduser() if len(args) > 2 else None

    print("=" * 70)
    print("SCORE SHEET GRADER")
    print("=" * 70)
    print(f"  Scores:    {scores_path}")
    print(f"  Summative: {summative_path or '-'}")
    print(f"  Bands:     {system_type.value}")

    if tenant_id is not None:
        processor = asyncio.run(load_tenant_processor(tenant_id, system_type))
    else:
        processor = ScoreSheetProcessor(ranges=default_ranges(system_type))

    scores = processor.load_csv(scores_path)
    summative = processor.load_csv(summative_path) if summative_path else None

    results = processor.grade_learners(scores, summative, progress=True)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    results.to_csv(output_path, index=False)

    print(f"\n✅ Graded {len(results)} rows -> {output_path}")
    for error in processor.validation_errors:
        print(f"⚠️  {error}")

    if len(results):
        print("\n📊 Band distribution:")
        for code, count in results["band_code"].value_counts().items():
            print(f"  {code:>4}: {count}")
    return 0


if __name__ == "__main__":
    sys.exit(main(sys.argv[1:]))
