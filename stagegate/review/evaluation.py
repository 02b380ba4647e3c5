from __future__ import annotations

from stagegate.core import di
from stagegate.core.provider import LoggingProvider, TimestampProvider
from stagegate.model import ActivityAction, Evaluation, NotificationEvent, Project, ProjectID, ProjectStage, User, \
    UserID, UserRole
from stagegate.notification import service as notification
from stagegate.storage import activity as activity_storage
from stagegate.storage import assignment as assignment_storage
from stagegate.storage import evaluation as evaluation_storage
from stagegate.storage import project as project_storage
from stagegate.storage import session as session_storage
from stagegate.storage import Session
from stagegate.storage import user as user_storage

from . import stage as project_stage
from .error import Forbidden, InvalidStateTransition, NotFound, ValidationFailed
from .matrix import EvaluationMatrix
from .permission import Permission, require_permission
from .validator import validate


def _reviewable(
    actor: User, project_id: ProjectID, stage: ProjectStage, *, session: Session
) -> tuple[Project, int]:
    """The project and the round actor may still review it in at stage. Call inside a transaction."""
    project = project_storage.get(project_id, session=session)
    if project is None:
        raise NotFound(f"project {project_id} does not exist")
    if project.status.is_terminal:
        raise InvalidStateTransition(f"project {project_id} is {project.status.value}; no further reviews")
    review_round = project_stage.review_round(project, stage, session=session)
    if session_storage.get_approval(project_id, stage, review_round=review_round, session=session) is not None:
        raise InvalidStateTransition(f"the {stage.label} review of {project_id} has already been approved")
    assignment = assignment_storage.get(
        project_id=project_id, stage=stage, review_round=review_round, reviewer_id=actor.user_id, session=session
    )
    if assignment is None:
        raise Forbidden(actor.user_id, f"review {project_id} at {stage.label} without an assignment")
    return project, review_round


def _save(
    actor: User,
    project_id: ProjectID,
    stage: ProjectStage,
    matrix: EvaluationMatrix,
    *,
    submit: bool,
    session: Session,
    utcnow: TimestampProvider,
) -> tuple[Project, Evaluation]:
    project, review_round = _reviewable(actor, project_id, stage, session=session)
    existing = evaluation_storage.get(
        project_id=project_id, stage=stage, review_round=review_round, reviewer_id=actor.user_id, session=session
    )
    if existing is not None and existing.is_completed:
        raise InvalidStateTransition(f"{existing.evaluation_id} has been submitted and can no longer change")

    score = matrix.compute_weighted_score()
    values = dict(
        scores=matrix.scores,
        comments=matrix.comments,
        decision=matrix.decision,
        weighted_score=score,
        total_score=matrix.compute_total_score(),
        is_completed=submit,
        submitted_at=utcnow() if submit else None,
    )
    if existing is None:
        evaluation = evaluation_storage.create(
            project_id=project_id,
            stage=stage,
            review_round=review_round,
            reviewer_id=actor.user_id,
            session=session,
            **values,
        )
    else:
        evaluation = evaluation_storage.update(existing.evaluation_id, session=session, **values)
    return project, evaluation


def save_draft(
    actor: User,
    project_id: ProjectID,
    stage: ProjectStage,
    matrix: EvaluationMatrix,
    *,
    session: Session = di.Provide["storage.persistent.session"],
    utcnow: TimestampProvider = di.Provide["utcnow"],
    logging: LoggingProvider = di.Provide["logging"],
) -> Evaluation:
    """Save actor's evaluation for (project_id, stage) without submitting it.

    Drafts are not validated; the matrix has already range-checked the scores.
    """
    logger = logging.get_logger()
    require_permission(actor, Permission.ConductReviews, action="save a review")
    with session.begin():
        _, evaluation = _save(actor, project_id, stage, matrix, submit=False, session=session, utcnow=utcnow)

    logger.debug(
        "saved draft evaluation",
        extra={"evaluation_id": evaluation.evaluation_id, "scored": len(evaluation.scores)},
    )
    return evaluation


def submit_evaluation(
    actor: User,
    project_id: ProjectID,
    stage: ProjectStage,
    matrix: EvaluationMatrix,
    *,
    min_comment_length: int = di.Provide["config.review.min_comment_length"],
    session: Session = di.Provide["storage.persistent.session"],
    utcnow: TimestampProvider = di.Provide["utcnow"],
    logging: LoggingProvider = di.Provide["logging"],
) -> Evaluation:
    """Validate and submit actor's evaluation. A submitted evaluation is final.

    Raises:
        ValidationFailed: carrying every validation error, not just the first
    """
    logger = logging.get_logger()
    require_permission(actor, Permission.ConductReviews, action="submit a review")

    result = validate(matrix, min_comment_length=min_comment_length)
    if not result.is_valid:
        raise ValidationFailed(result.errors)

    with session.begin():
        project, evaluation = _save(actor, project_id, stage, matrix, submit=True, session=session, utcnow=utcnow)
        activity_storage.create(
            project_id=project_id,
            user_id=actor.user_id,
            action=ActivityAction.ReviewSubmitted,
            details={
                "stage": stage,
                "review_round": evaluation.review_round,
                "evaluation_id": evaluation.evaluation_id,
                "decision": evaluation.decision,
                "score": evaluation.total_score,
            },
            session=session,
        )
        # the project lead and the people who run review sessions
        recipients: list[UserID] = [project.lead_id]
        for user in user_storage.find(roles=(UserRole.Admin, UserRole.Gatekeeper), session=session):
            recipients.append(user.user_id)

    logger.info(
        "submitted evaluation",
        extra={
            "evaluation_id": evaluation.evaluation_id,
            "project_id": project_id,
            "stage": stage.value,
            "decision": evaluation.decision.value if evaluation.decision else None,
            "score": evaluation.total_score,
        },
    )

    for recipient_id in dict.fromkeys(recipients):
        if recipient_id == actor.user_id:
            continue
        notification.notify(
            recipient_id,
            NotificationEvent.ReviewSubmitted,
            {
                "project_id": project_id,
                "project_name": project.name,
                "stage": stage,
                "stage_label": stage.label,
                "reviewer_name": actor.name,
                "decision": evaluation.decision,
                "score": evaluation.total_score,
            },
            session=session,
        )
    return evaluation


def get_evaluation(
    actor: User,
    project_id: ProjectID,
    stage: ProjectStage,
    reviewer_id: UserID | None = None,
    review_round: int | None = None,
    *,
    session: Session = di.Provide["storage.persistent.session"],
) -> Evaluation:
    """A reviewer's evaluation; actor's own unless reviewer_id names someone else.

    Without review_round, the round project_stage.review_round() picks.
    """
    reviewer_id = reviewer_id or actor.user_id
    if reviewer_id != actor.user_id:
        require_permission(actor, Permission.ViewReviews, action="view another reviewer's review")
    with session.begin():
        project = project_storage.get(project_id, session=session)
        if project is None:
            raise NotFound(f"project {project_id} does not exist")
        if review_round is None:
            review_round = project_stage.review_round(project, stage, session=session)
        evaluation = evaluation_storage.get(
            project_id=project_id, stage=stage, review_round=review_round, reviewer_id=reviewer_id, session=session
        )
    if evaluation is None:
        raise NotFound(f"no evaluation by {reviewer_id} of {project_id} at {stage.label}")
    return evaluation
