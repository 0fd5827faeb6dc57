"""Duplicate integration consolidation routes."""

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from api_registry.consolidation import ConsolidationError, ConsolidationPlan, PlanUnsafe
from api_registry.db.dependencies import get_db
from api_registry.schemas.common import ApiResponse, ErrorDetail, ErrorResponse
from api_registry.schemas.consolidation import (
    ConsolidationExecuteRequest,
    ConsolidationPlanRequest,
    MigrationResultRead,
    RecommendationRead,
    ValidationResultRead,
)
from api_registry.services.consolidation import consolidate, get_recommendation, validate_plan

router = APIRouter(prefix="/consolidation")

_ERROR_RESPONSES = {
    404: {"model": ErrorResponse},
    409: {"model": ErrorResponse},
    422: {"model": ErrorResponse},
    423: {"model": ErrorResponse},
    503: {"model": ErrorResponse},
}


@router.get("/recommendation", response_model=ApiResponse[RecommendationRead], responses=_ERROR_RESPONSES)
def get_consolidation_recommendation(
    candidate_ids: list[str] = Query(default=[]),
    pattern: list[str] = Query(default=[]),
    db: Session = Depends(get_db),
) -> ApiResponse[RecommendationRead]:
    """Score candidate integrations and propose which one survives."""

    try:
        recommendation = get_recommendation(db, candidate_ids, pattern)
    except ConsolidationError as exc:
        raise _http_error(exc) from exc
    return ApiResponse(data=RecommendationRead.from_recommendation(recommendation))


@router.post("/validate", response_model=ApiResponse[ValidationResultRead], responses=_ERROR_RESPONSES)
def post_consolidation_validate(
    payload: ConsolidationPlanRequest,
    db: Session = Depends(get_db),
) -> ApiResponse[ValidationResultRead]:
    """Report whether a plan is safe and which endpoints it would lose."""

    try:
        result = validate_plan(db, ConsolidationPlan(payload.keep_id, tuple(payload.remove_ids)))
    except ConsolidationError as exc:
        raise _http_error(exc) from exc
    return ApiResponse(data=ValidationResultRead.from_result(result))


@router.post("/execute", response_model=ApiResponse[MigrationResultRead], responses=_ERROR_RESPONSES)
def post_consolidation_execute(
    payload: ConsolidationExecuteRequest,
    db: Session = Depends(get_db),
) -> ApiResponse[MigrationResultRead]:
    """Migrate endpoints and delete duplicates; partial failures are listed in ``errors``."""

    try:
        result = consolidate(
            db,
            ConsolidationPlan(payload.keep_id, tuple(payload.remove_ids)),
            force=payload.force,
        )
    except ConsolidationError as exc:
        raise _http_error(exc) from exc
    return ApiResponse(data=MigrationResultRead.from_result(result))


def _http_error(exc: ConsolidationError) -> HTTPException:
    detail = ErrorDetail(code=exc.code, message=str(exc))
    if isinstance(exc, PlanUnsafe):
        detail.validation = ValidationResultRead.from_result(exc.validation).model_dump()
    return HTTPException(status_code=exc.status_code, detail=detail.model_dump())
