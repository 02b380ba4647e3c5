from __future__ import annotations

import typing as t

import sqlalchemy.exc

from stagegate.core import di
from stagegate.core.provider import LoggingProvider, TimestampProvider
from stagegate.model import ActivityAction, Decision, NotificationEvent, Project, ProjectID, ProjectStage, \
    ReviewSession, SessionApproval, User
from stagegate.notification import service as notification
from stagegate.storage import activity as activity_storage
from stagegate.storage import project as project_storage
from stagegate.storage import session as session_storage
from stagegate.storage import Session

from . import stage as project_stage
from .error import IncompleteReviews, NotFound
from .permission import Permission, require_permission


def aggregate_decision(decisions: t.Mapping[Decision, int] | t.Iterable[Decision]) -> Decision:
    """The most severe decision any reviewer made: STOP, then HOLD, then RECYCLE, then GO."""
    if isinstance(decisions, t.Mapping):
        decisions = [d for d, n in decisions.items() if n > 0]
    decisions = list(decisions)
    if not decisions:
        raise ValueError("no decisions to aggregate")
    return max(decisions, key=lambda d: d.severity)


def _project(project_id: ProjectID, *, for_update: bool = False, session: Session) -> Project:
    project = project_storage.get(project_id, for_update=for_update, session=session)
    if project is None:
        raise NotFound(f"project {project_id} does not exist")
    return project


def _load(project_id: ProjectID, stage: ProjectStage, review_round: int, *, session: Session) -> ReviewSession:
    counts = session_storage.counts(project_id, stage, review_round=review_round, session=session)
    return ReviewSession(
        project_id=project_id,
        stage=stage,
        review_round=review_round,
        total=counts.total,
        completed=counts.completed,
        average_score=counts.average_score,
        decisions=session_storage.decisions(project_id, stage, review_round=review_round, session=session),
        approval=session_storage.get_approval(project_id, stage, review_round=review_round, session=session),
    )


def get_session(
    project_id: ProjectID,
    stage: ProjectStage,
    review_round: int | None = None,
    *,
    session: Session = di.Provide["storage.persistent.session"],
) -> ReviewSession:
    """Completion and scores of one round of the (project_id, stage) review, computed fresh from storage.

    Without review_round, the round project_stage.review_round() picks.
    """
    with session.begin():
        project = _project(project_id, session=session)
        if review_round is None:
            review_round = project_stage.review_round(project, stage, session=session)
        return _load(project_id, stage, review_round, session=session)


def list_approvals(
    project_id: ProjectID,
    *,
    session: Session = di.Provide["storage.persistent.session"],
) -> tuple[SessionApproval, ...]:
    """The project's gate history: every approved round, oldest first."""
    with session.begin():
        _project(project_id, session=session)
        return session_storage.find_approvals(project_id, session=session)


def approve_session(
    actor: User,
    project_id: ProjectID,
    stage: ProjectStage,
    final_decision: Decision | None = None,
    comments: str | None = None,
    *,
    session: Session = di.Provide["storage.persistent.session"],
    utcnow: TimestampProvider = di.Provide["utcnow"],
    logging: LoggingProvider = di.Provide["logging"],
) -> ReviewSession:
    """Close the open round of the (project_id, stage) review and move the project on.

    Completion is checked in the same transaction that records the approval.
    The decision applied is final_decision if the approver gives one, else
    aggregate_decision() over the submitted reviews. Approving a round that
    is already approved changes nothing and returns it as it stands.

    Returns:
        The round just approved (or found approved)

    Raises:
        IncompleteReviews: if any assigned reviewer has not submitted, or
            nobody is assigned (missing == 0)
        InvalidStateTransition: if the project cannot move from where it is
    """
    logger = logging.get_logger()
    require_permission(actor, Permission.ManageReviewSessions, action="approve a review session")
    extra: dict[str, t.Any] = {"project_id": project_id, "stage": stage.value, "actor_id": actor.user_id}

    try:
        with session.begin():
            project = _project(project_id, for_update=True, session=session)
            review_round = project_stage.review_round(project, stage, session=session)
            extra["review_round"] = review_round
            if session_storage.get_approval(project_id, stage, review_round=review_round, session=session) is not None:
                logger.info("review session already approved", extra=extra)
                return _load(project_id, stage, review_round, session=session)

            counts = session_storage.counts(project_id, stage, review_round=review_round, session=session)
            if counts.total == 0 or counts.completed < counts.total:
                logger.info("review session incomplete", extra={**extra, **counts._asdict()})
                raise IncompleteReviews(missing=counts.total - counts.completed)

            decision = final_decision or aggregate_decision(
                session_storage.decisions(project_id, stage, review_round=review_round, session=session)
            )
            transition = project_stage.on_session_approved(project_id, stage, decision, session=session)
            session_storage.create_approval(
                project_id=project_id,
                stage=stage,
                review_round=review_round,
                approved_by=actor.user_id,
                decision=decision,
                average_score=counts.average_score,
                comments=comments,
                from_status=transition.from_status,
                to_stage=transition.to_stage,
                to_status=transition.to_status,
                approved_at=utcnow(),
                session=session,
            )
            activity_storage.create(
                project_id=project_id,
                user_id=actor.user_id,
                action=ActivityAction.ReviewSessionApproved,
                details={
                    "stage": stage,
                    "review_round": review_round,
                    "decision": decision,
                    "overridden": final_decision is not None,
                    "average_score": counts.average_score,
                    "reviews": counts.total,
                    "to_stage": transition.to_stage,
                    "to_status": transition.to_status,
                    "next_round": transition.to_round,
                    "comments": comments,
                },
                session=session,
            )
    except sqlalchemy.exc.IntegrityError:
        # a concurrent approval of the same round got there first; ours was rolled back
        with session.begin():
            approved_round = extra.get("review_round")
            if approved_round is None or session_storage.get_approval(
                project_id, stage, review_round=approved_round, session=session
            ) is None:
                raise
            logger.info("review session approved concurrently", extra=extra)
            return _load(project_id, stage, approved_round, session=session)

    logger.info(
        "approved review session",
        extra={**extra, "decision": decision.value, "average_score": counts.average_score},
    )
    notification.notify(
        project.lead_id,
        NotificationEvent.ProjectStatusChanged,
        {
            "project_id": project_id,
            "project_name": project.name,
            "decision": decision,
            "reason": f"after a {decision.value} decision",
            "average_score": counts.average_score,
            "from_stage": transition.from_stage,
            "from_stage_label": transition.from_stage.label,
            "from_status": transition.from_status,
            "to_stage": transition.to_stage,
            "to_stage_label": transition.to_stage.label,
            "to_status": transition.to_status,
            "comments": comments,
        },
        session=session,
    )
    return get_session(project_id, stage, review_round, session=session)
