"""
SCHOOL RECORDS CORE - Identifier sequencing and score aggregation
Per-tenant admission/staff numbers and grading computations for the school platform

SUBSYSTEMS:
✅ Sequence Store & Generator: gap-free, duplicate-free counters per (tenant, scope)
✅ Identifier Formatter/Parser: ADM/STF numbers with configurable branch prefix placement
✅ Grading Configuration Resolver: most specific aggregation rule wins
✅ Aggregation Engine: average, best-N, drop-lowest-N, weighted, median
✅ Rubric Mapper: percentage to grade/rating band and back
"""

__version__ = "1.0.0"
