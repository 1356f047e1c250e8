"""
Grading endpoints - config resolution, aggregation and band lookup
"""

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query

from school_records.api.dependencies import get_grading_service
from school_records.api.schemas import (
    AggregateRequest,
    AggregateResponse,
    BandRequest,
    BandResponse,
    GradingConfigResponse,
)
from school_records.api.services.grading_service import GradingService
from school_records.core.calculators.aggregation import aggregate, available_strategies
from school_records.core.calculators.resolver import default_grading_config
from school_records.core.models.grading import strategy_from_tag

router = APIRouter(prefix="/api/v1", tags=["grading"])


@router.get("/tenants/{tenant_id}/grading/config", response_model=GradingConfigResponse)
async def resolve_grading_config(
    tenant_id: UUID,
    assessment_type: str = Query(..., min_length=1),
    grade: Optional[str] = Query(None),
    learning_area: Optional[str] = Query(None),
    service: GradingService = Depends(get_grading_service),
):
    """Most specific aggregation config, or the SIMPLE_AVERAGE fallback"""
    config = await service.get_aggregation_config(tenant_id, assessment_type, grade, learning_area)
    if config is None:
        fallback = default_grading_config(assessment_type)
        return GradingConfigResponse(**fallback.model_dump(exclude={"tenant_id"}), is_default=True)
    return GradingConfigResponse(**config.model_dump(exclude={"tenant_id"}))


@router.get("/grading/strategies")
async def list_strategies():
    return available_strategies()


@router.post("/grading/aggregate", response_model=AggregateResponse)
async def aggregate_scores(request: AggregateRequest):
    """Aggregate raw scores with one strategy; bad input degrades to 0"""
    strategy = strategy_from_tag(request.strategy, request.n)
    result = aggregate(request.scores, strategy)
    return AggregateResponse(result=result, strategy=strategy.tag, count=len(request.scores))


@router.post("/tenants/{tenant_id}/grading/band", response_model=BandResponse)
async def map_percentage_to_band(
    tenant_id: UUID,
    request: BandRequest,
    service: GradingService = Depends(get_grading_service),
):
    """Band for a percentage under the tenant's default grading system"""
    band = await service.map_percentage(tenant_id, request.percentage, request.system_type)
    return BandResponse(percentage=request.percentage, band=band)
