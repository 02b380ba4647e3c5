"""Review export and reporting routes."""

from __future__ import annotations

import datetime

from fastapi import APIRouter, Depends, Query, Response

from stagegate.auth.middleware import AuthContext, get_current_user
from stagegate.core import di
from stagegate.model import Decision, ExportFormat, ProjectID, ProjectStage, UserID
from stagegate.review import export as export_service
from stagegate.review.export import ReviewFilters, ReviewSummary
from stagegate.storage import Session

router = APIRouter(prefix="/api/reviews", tags=["reviews"])


def review_filters(
    project_id: ProjectID | None = None,
    stage: ProjectStage | None = None,
    reviewer_id: UserID | None = None,
    decision: Decision | None = None,
    is_completed: bool | None = None,
    created_after: datetime.datetime | None = None,
    created_before: datetime.datetime | None = None,
) -> ReviewFilters:
    return ReviewFilters(
        project_id=project_id,
        stage=stage,
        reviewer_id=reviewer_id,
        decision=decision,
        is_completed=is_completed,
        created_after=created_after,
        created_before=created_before,
    )


@router.get("/export", operation_id="export_reviews")
@di.inject
def export_reviews(
    fmt: ExportFormat = Query(ExportFormat.CSV, alias="format"),
    filters: ReviewFilters = Depends(review_filters),
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(di.Manage["storage.persistent.session"]),
) -> Response:
    """Download matching gate reviews as an attachment."""
    export = export_service.export_reviews(auth.user, fmt, filters, session=session)
    return Response(
        content=export.content,
        media_type=export.media_type,
        headers={"Content-Disposition": f'attachment; filename="{export.filename}"'},
    )


@router.get("/summary", operation_id="summarize_reviews")
@di.inject
def summarize_reviews(
    filters: ReviewFilters = Depends(review_filters),
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(di.Manage["storage.persistent.session"]),
) -> ReviewSummary:
    records = export_service.find_reviews(auth.user, filters, session=session)
    return export_service.summarize(records)
