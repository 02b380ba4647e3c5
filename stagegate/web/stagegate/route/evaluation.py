"""Evaluation routes: drafts, submission and live preview."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from stagegate.auth.middleware import AuthContext, get_current_user
from stagegate.core import di
from stagegate.model import Evaluation, ProjectID, ProjectStage, UserID
from stagegate.review import evaluation as evaluation_service
from stagegate.review.catalog import CriteriaCatalog
from stagegate.review.matrix import EvaluationMatrix
from stagegate.review.validator import validate
from stagegate.storage import Session

from ..view.evaluation import EvaluationPreviewResponse, EvaluationRequest, EvaluationResponse, ValidationResponse

router = APIRouter(tags=["evaluations"])

Prefix = "/api/projects/{project_id}/stages/{stage}/evaluation"


def _matrix(catalog: CriteriaCatalog, request: EvaluationRequest) -> EvaluationMatrix:
    matrix = EvaluationMatrix(catalog)
    for criterion_id, score in request.scores.items():
        matrix.set_score(criterion_id, score)
    matrix.set_comments(request.comments)
    matrix.set_decision(request.decision)
    return matrix


def _evaluation_response(evaluation: Evaluation) -> EvaluationResponse:
    return EvaluationResponse(
        evaluation_id=evaluation.evaluation_id,
        project_id=evaluation.project_id,
        stage=evaluation.stage,
        review_round=evaluation.review_round,
        reviewer_id=evaluation.reviewer_id,
        scores=evaluation.scores,
        comments=evaluation.comments,
        decision=evaluation.decision,
        weighted_score=evaluation.weighted_score,
        total_score=evaluation.total_score,
        is_completed=evaluation.is_completed,
        submitted_at=evaluation.submitted_at,
        update_time=evaluation.update_time,
    )


@router.post("/api/evaluations/preview", operation_id="preview_evaluation")
@di.inject
def preview_evaluation(
    request: EvaluationRequest,
    auth: AuthContext = Depends(get_current_user),
    catalog: CriteriaCatalog = Depends(di.Provide["review.catalog"]),
    min_comment_length: int = Depends(di.Provide["config.review.min_comment_length"]),
) -> EvaluationPreviewResponse:
    """Score and validate an evaluation without saving it."""
    matrix = _matrix(catalog, request)
    result = validate(matrix, min_comment_length=min_comment_length)
    return EvaluationPreviewResponse(
        weighted_score=matrix.compute_weighted_score(),
        total_score=matrix.compute_total_score(),
        validation=ValidationResponse(is_valid=result.is_valid, errors=list(result.errors)),
    )


@router.put(Prefix, operation_id="save_evaluation_draft")
@di.inject
def save_draft(
    project_id: ProjectID,
    stage: ProjectStage,
    request: EvaluationRequest,
    auth: AuthContext = Depends(get_current_user),
    catalog: CriteriaCatalog = Depends(di.Provide["review.catalog"]),
    session: Session = Depends(di.Manage["storage.persistent.session"]),
) -> EvaluationResponse:
    evaluation = evaluation_service.save_draft(auth.user, project_id, stage, _matrix(catalog, request), session=session)
    return _evaluation_response(evaluation)


@router.post(f"{Prefix}/submit", operation_id="submit_evaluation")
@di.inject
def submit_evaluation(
    project_id: ProjectID,
    stage: ProjectStage,
    request: EvaluationRequest,
    auth: AuthContext = Depends(get_current_user),
    catalog: CriteriaCatalog = Depends(di.Provide["review.catalog"]),
    session: Session = Depends(di.Manage["storage.persistent.session"]),
) -> EvaluationResponse:
    evaluation = evaluation_service.submit_evaluation(
        auth.user, project_id, stage, _matrix(catalog, request), session=session
    )
    return _evaluation_response(evaluation)


@router.get(Prefix, operation_id="get_evaluation")
@di.inject
def get_evaluation(
    project_id: ProjectID,
    stage: ProjectStage,
    reviewer_id: UserID | None = None,
    review_round: int | None = Query(None, alias="round", ge=1),
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(di.Manage["storage.persistent.session"]),
) -> EvaluationResponse:
    """The caller's evaluation, or with reviewer_id, another reviewer's."""
    evaluation = evaluation_service.get_evaluation(
        auth.user, project_id, stage, reviewer_id, review_round, session=session
    )
    return _evaluation_response(evaluation)
