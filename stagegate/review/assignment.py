from __future__ import annotations

import datetime
import typing as t

from stagegate.core import di
from stagegate.core.provider import LoggingProvider, TimestampProvider
from stagegate.model import ActivityAction, NotificationEvent, ProjectID, ProjectStage, ReviewAssignment, User, \
    UserID
from stagegate.notification import service as notification
from stagegate.storage import activity as activity_storage
from stagegate.storage import assignment as assignment_storage
from stagegate.storage import project as project_storage
from stagegate.storage import session as session_storage
from stagegate.storage import Session
from stagegate.storage import user as user_storage

from . import stage as project_stage
from .error import AlreadyAssigned, InvalidInput, InvalidStateTransition, NotFound, RoleIneligible
from .permission import can_review, Permission, require_permission

DuplicatePolicy = t.Literal["skip", "reject"]


def assign_reviewers(
    actor: User,
    project_id: ProjectID,
    stage: ProjectStage,
    reviewer_ids: t.Iterable[UserID],
    *,
    due_date: datetime.datetime | None = None,
    instructions: str | None = None,
    duplicates: DuplicatePolicy = di.Provide["config.review.duplicate_assignment"],
    session: Session = di.Provide["storage.persistent.session"],
    utcnow: TimestampProvider = di.Provide["utcnow"],
    logging: LoggingProvider = di.Provide["logging"],
) -> tuple[ReviewAssignment, ...]:
    """Put reviewers on the panel for the open round of the (project_id, stage) review.

    Either every new reviewer is assigned or none is. Reviewers who are already
    assigned are skipped, or rejected with AlreadyAssigned when duplicates is
    "reject". Each newly assigned reviewer is notified once the assignments
    are committed.

    Returns:
        The assignments created by this call, in the order requested
    """
    logger = logging.get_logger()

    # a set of IDs, but keep the caller's order for stable assignment order
    requested = list(dict.fromkeys(reviewer_ids))
    if not requested:
        raise InvalidInput("at least one reviewer is required")
    require_permission(actor, Permission.AssignReviewers, action="assign reviewers")

    with session.begin():
        project = project_storage.get(project_id, session=session)
        if project is None:
            raise NotFound(f"project {project_id} does not exist")
        if project.status.is_terminal:
            raise InvalidStateTransition(f"project {project_id} is {project.status.value}; no further reviews")
        review_round = project_stage.review_round(project, stage, session=session)
        if session_storage.get_approval(project_id, stage, review_round=review_round, session=session) is not None:
            raise InvalidStateTransition(f"the {stage.label} review of {project_id} has already been approved")

        reviewers = {u.user_id: u for u in user_storage.find(user_ids=requested, session=session)}
        ineligible = [r for r in requested if r not in reviewers or not can_review(reviewers[r].role)]
        if ineligible:
            raise RoleIneligible(ineligible)

        existing = assignment_storage.assigned_reviewers(
            project_id, stage, review_round=review_round, session=session
        )
        duplicate = [r for r in requested if r in existing]
        if duplicate and duplicates == "reject":
            raise AlreadyAssigned(duplicate)

        now = utcnow()
        created: list[ReviewAssignment] = []
        for n, reviewer_id in enumerate(r for r in requested if r not in existing):
            created.append(
                assignment_storage.create(
                    project_id=project_id,
                    stage=stage,
                    review_round=review_round,
                    reviewer_id=reviewer_id,
                    assigned_by=actor.user_id,
                    due_date=due_date,
                    instructions=instructions,
                    # one microsecond apart so creation order is the request order
                    create_time=now + datetime.timedelta(microseconds=n),
                    session=session,
                )
            )

        if created and not existing:
            # the first panel member opens this round of the gate review
            activity_storage.create(
                project_id=project_id,
                user_id=actor.user_id,
                action=ActivityAction.GateReviewCreated,
                details={"stage": stage, "review_round": review_round},
                create_time=now,
                session=session,
            )
        if created:
            activity_storage.create(
                project_id=project_id,
                user_id=actor.user_id,
                action=ActivityAction.ReviewersAssigned,
                details={
                    "stage": stage,
                    "review_round": review_round,
                    "reviewer_ids": [a.reviewer_id for a in created],
                    "skipped": duplicate,
                    "due_date": due_date,
                },
                create_time=now + datetime.timedelta(milliseconds=1),
                session=session,
            )

    logger.info(
        "assigned reviewers",
        extra={
            "project_id": project_id,
            "stage": stage.value,
            "review_round": review_round,
            "assigned": [a.reviewer_id for a in created],
            "skipped": duplicate,
        },
    )

    for assignment in created:
        notification.notify(
            assignment.reviewer_id,
            NotificationEvent.ReviewAssigned,
            {
                "project_id": project_id,
                "project_name": project.name,
                "stage": stage,
                "stage_label": stage.label,
                "assigned_by_name": actor.name,
                "due_date": due_date,
                "instructions": instructions,
            },
            session=session,
        )
    return tuple(created)


def list_assignments(
    project_id: ProjectID,
    stage: ProjectStage,
    review_round: int | None = None,
    *,
    session: Session = di.Provide["storage.persistent.session"],
) -> tuple[ReviewAssignment, ...]:
    """Assignments for one round of (project_id, stage), oldest first, each with its current status.

    Without review_round, the round project_stage.review_round() picks.
    """
    with session.begin():
        project = project_storage.get(project_id, session=session)
        if project is None:
            raise NotFound(f"project {project_id} does not exist")
        if review_round is None:
            review_round = project_stage.review_round(project, stage, session=session)
        return assignment_storage.find(project_id=project_id, stage=stage, review_round=review_round, session=session)
