"""
Integration Tests for the Identifier Service

Tests for:
- Admission numbers in every tenant format
- Staff numbers
- Branch / tenant validation
- Preview, reset and reconciliation
"""

import asyncio
from uuid import uuid4

import pytest

from school_records.api.services.identifier_service import IdentifierService
from school_records.core.identifier_formatter import parse_identifier
from school_records.core.models.identifiers import FormatType, IdentifierKind, IdentifierScope
from school_records.exceptions import InvalidConfiguration, NotFound


@pytest.fixture
def identifiers(services) -> IdentifierService:
    return services.identifiers


class TestAdmissionNumbers:
    async def test_prefix_start(self, identifiers, test_tenant):
        first = await identifiers.generate_admission_number(test_tenant.id, "KB", 2025)
        second = await identifiers.generate_admission_number(test_tenant.id, "KB", 2025)

        assert first == "KB-ADM-2025-001"
        assert second == "KB-ADM-2025-002"

    async def test_sequence_is_shared_by_branches(self, identifiers, test_tenant):
        await identifiers.generate_admission_number(test_tenant.id, "KB", 2025)
        other_branch = await identifiers.generate_admission_number(test_tenant.id, "NRB", 2025)

        assert other_branch == "NRB-ADM-2025-002"

    async def test_new_year_restarts(self, identifiers, test_tenant):
        await identifiers.generate_admission_number(test_tenant.id, "KB", 2025)
        assert await identifiers.generate_admission_number(test_tenant.id, "KB", 2026) == "KB-ADM-2026-001"

    async def test_branch_code_is_case_insensitive(self, identifiers, test_tenant):
        assert await identifiers.generate_admission_number(test_tenant.id, "kb", 2025) == "KB-ADM-2025-001"

    @pytest.mark.parametrize(
        "format_type,separator,expected",
        [
            ("NO_SCOPE_PREFIX", "-", "ADM-2025-001"),
            ("PREFIX_MIDDLE", "/", "ADM/KB/2025/001"),
            ("PREFIX_END", ".", "ADM.2025.001.KB"),
            ("BRANCH_PREFIX_START", "_", "KB_ADM_2025_001"),
        ],
    )
    async def test_tenant_formats(self, identifiers, make_tenant, format_type, separator, expected):
        tenant = await make_tenant(format_type, separator)
        branch = None if format_type == "NO_SCOPE_PREFIX" else "KB"

        assert await identifiers.generate_admission_number(tenant.id, branch, 2025) == expected

    async def test_concurrent_generation_is_unique(self, identifiers, test_tenant):
        k = 15
        issued = await asyncio.gather(
            *(
                identifiers.generate_admission_number(test_tenant.id, "KB" if i % 2 else "NRB", 2025)
                for i in range(k)
            )
        )

        sequences = [parse_identifier(i, FormatType.PREFIX_START, "-").sequence for i in issued]
        assert sorted(sequences) == list(range(1, k + 1))

    async def test_unknown_tenant(self, identifiers):
        with pytest.raises(NotFound):
            await identifiers.generate_admission_number(uuid4(), "KB", 2025)

    async def test_unknown_branch(self, identifiers, test_tenant):
        with pytest.raises(NotFound):
            await identifiers.generate_admission_number(test_tenant.id, "XYZ", 2025)

    async def test_unknown_branch_issues_nothing(self, identifiers, test_tenant):
        with pytest.raises(NotFound):
            await identifiers.generate_admission_number(test_tenant.id, "XYZ", 2025)

        assert await identifiers.generate_admission_number(test_tenant.id, "KB", 2025) == "KB-ADM-2025-001"

    async def test_prefix_format_needs_branch(self, identifiers, test_tenant):
        with pytest.raises(InvalidConfiguration):
            await identifiers.generate_admission_number(test_tenant.id, None, 2025)

    async def test_bad_tenant_format(self, identifiers, make_tenant):
        tenant = await make_tenant("SOMETHING_ELSE")
        with pytest.raises(InvalidConfiguration):
            await identifiers.generate_admission_number(tenant.id, "KB", 2025)


class TestStaffNumbers:
    async def test_staff_numbers(self, identifiers, test_tenant):
        assert await identifiers.generate_staff_number(test_tenant.id) == "STF-0001"
        assert await identifiers.generate_staff_number(test_tenant.id) == "STF-0002"

    async def test_staff_and_admission_counters_are_separate(self, identifiers, test_tenant):
        await identifiers.generate_admission_number(test_tenant.id, "KB", 2025)
        assert await identifiers.generate_staff_number(test_tenant.id) == "STF-0001"

    async def test_staff_uses_tenant_separator(self, identifiers, make_tenant):
        tenant = await make_tenant("PREFIX_END", "/")
        assert await identifiers.generate_staff_number(tenant.id) == "STF/0001"

    async def test_bad_separator_is_invalid_configuration(self, identifiers, make_tenant):
        tenant = await make_tenant("PREFIX_START", "A")

        with pytest.raises(InvalidConfiguration):
            await identifiers.generate_staff_number(tenant.id)
        with pytest.raises(InvalidConfiguration):
            await identifiers.generate_admission_number(tenant.id, "KB", 2025)


class TestPreviewAndReset:
    async def test_preview_before_first_issue(self, identifiers, test_tenant):
        scope = IdentifierScope(academic_year=2025, branch_code="KB")
        assert await identifiers.preview_next_identifier(test_tenant.id, scope) is None

    async def test_preview_does_not_consume(self, identifiers, test_tenant):
        scope = IdentifierScope(academic_year=2025, branch_code="KB")
        await identifiers.generate_identifier(test_tenant.id, scope)

        preview = await identifiers.preview_next_identifier(test_tenant.id, scope)
        again = await identifiers.preview_next_identifier(test_tenant.id, scope)

        assert preview == again == "KB-ADM-2025-002"
        assert await identifiers.generate_identifier(test_tenant.id, scope) == preview

    async def test_preview_branches(self, identifiers, test_tenant):
        await identifiers.generate_admission_number(test_tenant.id, "KB", 2025)

        previews = await identifiers.preview_branches(test_tenant.id, 2025)

        assert previews == [
            {"branch_code": "KB", "branch_name": "Kibera", "next_identifier": "KB-ADM-2025-002"},
            {"branch_code": "NRB", "branch_name": "Nairobi West", "next_identifier": "NRB-ADM-2025-002"},
        ]

    async def test_reset(self, identifiers, test_tenant):
        scope = IdentifierScope(kind=IdentifierKind.STAFF)
        for _ in range(3):
            await identifiers.generate_identifier(test_tenant.id, scope)

        previous = await identifiers.reset_sequence(test_tenant.id, scope, 100, actor="principal")

        assert previous == 3
        assert await identifiers.generate_staff_number(test_tenant.id) == "STF-0101"

    async def test_reset_unknown_tenant(self, identifiers):
        with pytest.raises(NotFound):
            await identifiers.reset_sequence(uuid4(), IdentifierScope(kind=IdentifierKind.STAFF))


class TestReconcile:
    async def test_counter_raised_to_highest_issued(self, identifiers, test_tenant):
        existing = ["KB-ADM-2025-007", "NRB-ADM-2025-012", "KB-ADM-2024-099", "legacy-42", " KB-ADM-2025-003 "]

        result = await identifiers.reconcile_sequence(test_tenant.id, 2025, existing, actor="import")

        assert result.scope_key == "ADM:2025"
        assert result.counter_value == 0
        assert result.max_issued == 12
        assert result.updated is True
        assert result.skipped == 1
        assert await identifiers.generate_admission_number(test_tenant.id, "KB", 2025) == "KB-ADM-2025-013"

    async def test_counter_ahead_is_left_alone(self, identifiers, test_tenant):
        for _ in range(20):
            await identifiers.generate_admission_number(test_tenant.id, "KB", 2025)

        result = await identifiers.reconcile_sequence(test_tenant.id, 2025, ["KB-ADM-2025-005"])

        assert result.updated is False
        assert result.new_value == 20
