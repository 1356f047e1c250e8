"""
Identifier endpoints - generate, preview, reset and parse admission / staff numbers
"""

from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import ValidationError

from school_records.api.dependencies import get_identifier_service
from school_records.api.schemas import (
    BranchPreview,
    GenerateIdentifierRequest,
    IdentifierResponse,
    ParseIdentifierRequest,
    ParseIdentifierResponse,
    PreviewResponse,
    ResetSequenceRequest,
    ResetSequenceResponse,
)
from school_records.api.services.identifier_service import IdentifierService
from school_records.core.identifier_formatter import parse_identifier
from school_records.core.models.identifiers import IdentifierKind, IdentifierScope

router = APIRouter(prefix="/api/v1", tags=["identifiers"])


def _scope(kind: IdentifierKind, academic_year: Optional[int], branch_code: Optional[str] = None) -> IdentifierScope:
    try:
        return IdentifierScope(kind=kind, academic_year=academic_year, branch_code=branch_code)
    except ValidationError as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=exc.errors(include_url=False, include_context=False),
        )


@router.post(
    "/tenants/{tenant_id}/identifiers",
    response_model=IdentifierResponse,
    status_code=status.HTTP_201_CREATED,
)
async def generate_identifier(
    tenant_id: UUID,
    request: GenerateIdentifierRequest,
    service: IdentifierService = Depends(get_identifier_service),
):
    """Issue the next admission or staff number"""
    scope = _scope(request.kind, request.academic_year, request.branch_code)
    identifier = await service.generate_identifier(tenant_id, scope)
    return IdentifierResponse(identifier=identifier, kind=scope.kind, scope_key=scope.scope_key)


@router.get("/tenants/{tenant_id}/identifiers/preview", response_model=PreviewResponse)
async def preview_next_identifier(
    tenant_id: UUID,
    kind: IdentifierKind = Query(IdentifierKind.ADMISSION),
    academic_year: Optional[int] = Query(None, ge=1000, le=9999),
    branch_code: Optional[str] = Query(None),
    service: IdentifierService = Depends(get_identifier_service),
):
    """Next identifier without issuing it; null before the first issue"""
    scope = _scope(kind, academic_year, branch_code)
    next_identifier = await service.preview_next_identifier(tenant_id, scope)
    return PreviewResponse(next_identifier=next_identifier, kind=scope.kind, scope_key=scope.scope_key)


@router.get("/tenants/{tenant_id}/identifiers/preview/branches", response_model=List[BranchPreview])
async def preview_branches(
    tenant_id: UUID,
    academic_year: int = Query(..., ge=1000, le=9999),
    service: IdentifierService = Depends(get_identifier_service),
):
    """Next admission number for every branch of the school"""
    return await service.preview_branches(tenant_id, academic_year)


@router.post("/tenants/{tenant_id}/sequences/reset", response_model=ResetSequenceResponse)
async def reset_sequence(
    tenant_id: UUID,
    request: ResetSequenceRequest,
    service: IdentifierService = Depends(get_identifier_service),
):
    """Administrative counter reset (audited)"""
    scope = _scope(request.kind, request.academic_year)
    previous = await service.reset_sequence(tenant_id, scope, request.value, request.actor)
    return ResetSequenceResponse(scope_key=scope.scope_key, previous_value=previous, new_value=request.value)


@router.post("/identifiers/parse", response_model=ParseIdentifierResponse)
async def parse(request: ParseIdentifierRequest):
    """Recover sequence, year and prefix from a formatted identifier"""
    parsed = parse_identifier(
        request.identifier,
        request.format_type,
        request.separator,
        request.token,
        request.zero_pad_width,
        request.has_year,
    )
    return ParseIdentifierResponse(**parsed.model_dump())
