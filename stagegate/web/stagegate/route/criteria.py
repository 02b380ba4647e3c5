"""Criteria catalog routes."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from stagegate.auth.middleware import AuthContext, get_current_user
from stagegate.core import di
from stagegate.review.catalog import CriteriaCatalog

from ..view.criteria import CriteriaListResponse, CriterionResponse, GuidelinesResponse

router = APIRouter(prefix="/api/criteria", tags=["criteria"])


@router.get("", operation_id="list_criteria")
@di.inject
def list_criteria(
    auth: AuthContext = Depends(get_current_user),
    catalog: CriteriaCatalog = Depends(di.Provide["review.catalog"]),
) -> CriteriaListResponse:
    """The criteria every evaluation is scored against, in display order."""
    criteria = [
        CriterionResponse(
            criterion_id=c.criterion_id,
            name=c.name,
            weight=c.weight,
            description=c.description,
            guidelines=GuidelinesResponse(
                excellent=c.guidelines.excellent,
                average=c.guidelines.average,
                poor=c.guidelines.poor,
            ),
        )
        for c in catalog.list_criteria()
    ]
    return CriteriaListResponse(criteria=criteria, total_weight=sum(c.weight for c in criteria))
