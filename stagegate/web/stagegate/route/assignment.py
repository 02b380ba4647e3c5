"""Reviewer assignment routes."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query, status

from stagegate.auth.middleware import AuthContext, get_current_user
from stagegate.core import di
from stagegate.model import ProjectID, ProjectStage, ReviewAssignment
from stagegate.review import assignment as assignment_service
from stagegate.storage import Session

from ..view.assignment import AssignmentListResponse, AssignmentResponse, AssignReviewersRequest

router = APIRouter(prefix="/api/projects/{project_id}/stages/{stage}/assignments", tags=["assignments"])


def _assignment_response(assignment: ReviewAssignment) -> AssignmentResponse:
    return AssignmentResponse(
        assignment_id=assignment.assignment_id,
        project_id=assignment.project_id,
        stage=assignment.stage,
        review_round=assignment.review_round,
        reviewer_id=assignment.reviewer_id,
        assigned_by=assignment.assigned_by,
        due_date=assignment.due_date,
        instructions=assignment.instructions,
        status=assignment.status,
        create_time=assignment.create_time,
    )


@router.post("", operation_id="assign_reviewers", status_code=status.HTTP_201_CREATED)
@di.inject
def assign_reviewers(
    project_id: ProjectID,
    stage: ProjectStage,
    request: AssignReviewersRequest,
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(di.Manage["storage.persistent.session"]),
) -> AssignmentListResponse:
    """Assign reviewers; the response lists only the assignments this call created."""
    created = assignment_service.assign_reviewers(
        auth.user,
        project_id,
        stage,
        request.reviewer_ids,
        due_date=request.due_date,
        instructions=request.instructions,
        session=session,
    )
    return AssignmentListResponse(assignments=[_assignment_response(a) for a in created])


@router.get("", operation_id="list_assignments")
@di.inject
def list_assignments(
    project_id: ProjectID,
    stage: ProjectStage,
    review_round: int | None = Query(None, alias="round", ge=1),
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(di.Manage["storage.persistent.session"]),
) -> AssignmentListResponse:
    assignments = assignment_service.list_assignments(project_id, stage, review_round, session=session)
    return AssignmentListResponse(assignments=[_assignment_response(a) for a in assignments])
