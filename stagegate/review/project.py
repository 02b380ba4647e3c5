from __future__ import annotations

import typing as t

from stagegate.core import di
from stagegate.core.provider import LoggingProvider
from stagegate.lib import NotSet
from stagegate.model import ActivityAction, ActivityLog, NotificationEvent, Project, ProjectID, ProjectStage, \
    ProjectStatus, RedFlagSeverity, User, UserID
from stagegate.notification import service as notification
from stagegate.storage import activity as activity_storage
from stagegate.storage import project as project_storage
from stagegate.storage import Session
from stagegate.storage import user as user_storage

from . import stage as project_stage
from .error import InvalidInput, InvalidStateTransition, NotFound
from .permission import has_permission, Permission, require_permission


def create_project(
    actor: User,
    *,
    name: str,
    lead_id: UserID,
    cluster: str | None = None,
    session: Session = di.Provide["storage.persistent.session"],
    logging: LoggingProvider = di.Provide["logging"],
) -> Project:
    """Register a project at Stage 0, ACTIVE."""
    logger = logging.get_logger()
    require_permission(actor, Permission.ManageProjects, action="create a project")
    if not name.strip():
        raise InvalidInput("project name must not be blank")

    with session.begin():
        if user_storage.get(lead_id, session=session) is None:
            raise InvalidInput(f"project lead {lead_id} does not exist")
        project = project_storage.create(name=name.strip(), lead_id=lead_id, cluster=cluster, session=session)
        activity_storage.create(
            project_id=project.project_id,
            user_id=actor.user_id,
            action=ActivityAction.ProjectCreated,
            details={"name": project.name, "lead_id": lead_id, "cluster": cluster},
            session=session,
        )

    logger.info("created project", extra={"project_id": project.project_id, "actor_id": actor.user_id})
    return project


def get_project(
    project_id: ProjectID,
    *,
    session: Session = di.Provide["storage.persistent.session"],
) -> Project:
    with session.begin():
        project = project_storage.get(project_id, session=session)
    if project is None:
        raise NotFound(f"project {project_id} does not exist")
    return project


def _locked(project_id: ProjectID, *, session: Session) -> Project:
    project = project_storage.get(project_id, for_update=True, session=session)
    if project is None:
        raise NotFound(f"project {project_id} does not exist")
    return project


def _move(
    project: Project,
    *,
    stage: ProjectStage | None = None,
    status: ProjectStatus | None = None,
    review_round: int | None = None,
    session: Session,
) -> None:
    moved = project_storage.transition(
        project.project_id,
        expected_stage=project.stage,
        expected_status=project.status,
        expected_round=project.review_round,
        stage=stage or project.stage,
        status=status or project.status,
        review_round=review_round,
        session=session,
    )
    if not moved:
        raise InvalidStateTransition(f"project {project.project_id} changed state during the update")


def _notify_status_change(
    actor: User,
    before: Project,
    after: Project,
    reason: str,
    comments: str | None = None,
    *,
    session: Session,
) -> None:
    """Tell the project lead the project moved, unless they moved it themselves."""
    if after.lead_id == actor.user_id:
        return
    notification.notify(
        after.lead_id,
        NotificationEvent.ProjectStatusChanged,
        {
            "project_id": after.project_id,
            "project_name": after.name,
            "decision": None,
            "reason": reason,
            "average_score": None,
            "from_stage": before.stage,
            "from_stage_label": before.stage.label,
            "from_status": before.status,
            "to_stage": after.stage,
            "to_stage_label": after.stage.label,
            "to_status": after.status,
            "comments": comments,
        },
        session=session,
    )


def update_project(
    actor: User,
    project_id: ProjectID,
    *,
    name: str | NotSet = NotSet(),
    cluster: str | None | NotSet = NotSet(),
    lead_id: UserID | NotSet = NotSet(),
    status: ProjectStatus | None = None,
    session: Session = di.Provide["storage.persistent.session"],
    logging: LoggingProvider = di.Provide["logging"],
) -> Project:
    """Change a project's details and, with status, its status at the current stage.

    Admins and gatekeepers may update any project; a project lead only their
    own. A status change puts a held project back to work, clears a red flag,
    or terminates the project. COMPLETED is only reached by approving the
    final gate review.

    Raises:
        InvalidInput: for a blank name, an unknown lead or a COMPLETED status
        InvalidStateTransition: if the project is finished
    """
    logger = logging.get_logger()
    if not isinstance(name, NotSet):
        if not name.strip():
            raise InvalidInput("project name must not be blank")
        name = name.strip()
    if status is ProjectStatus.Completed:
        raise InvalidInput("a project is completed by approving its final gate review")

    with session.begin():
        before = _locked(project_id, session=session)
        if not has_permission(actor.role, Permission.ManageProjects) and before.lead_id != actor.user_id:
            require_permission(actor, Permission.ManageProjects, action="update a project")
        if before.status.is_terminal:
            raise InvalidStateTransition(f"project {project_id} is {before.status.value}")
        if not isinstance(lead_id, NotSet) and user_storage.get(lead_id, session=session) is None:
            raise InvalidInput(f"project lead {lead_id} does not exist")

        changes: dict[str, t.Any] = {
            field: value
            for field, value in (("name", name), ("cluster", cluster), ("lead_id", lead_id))
            if not isinstance(value, NotSet)
        }
        project_storage.update(project_id, **changes, session=session)
        status_changed = status is not None and status is not before.status
        if status_changed:
            _move(before, status=status, session=session)
            changes.update(from_status=before.status, status=status)
        after = _locked(project_id, session=session)

        activity_storage.create(
            project_id=project_id,
            user_id=actor.user_id,
            action=ActivityAction.ProjectUpdated,
            details=changes,
            session=session,
        )

    logger.info(
        "updated project",
        extra={"project_id": project_id, "actor_id": actor.user_id, "fields": sorted(changes)},
    )
    if status_changed:
        _notify_status_change(actor, before, after, f"after an update by {actor.name}", session=session)
    return after


def update_stage(
    actor: User,
    project_id: ProjectID,
    stage: ProjectStage,
    *,
    session: Session = di.Provide["storage.persistent.session"],
    logging: LoggingProvider = di.Provide["logging"],
) -> Project:
    """Put a project at stage outside of a gate review, e.g. to correct a mistake.

    The project opens a new round of stage's gate review; rounds already
    approved there stay approved.
    """
    logger = logging.get_logger()
    require_permission(actor, Permission.ManageProjects, action="move a project between stages")

    with session.begin():
        before = _locked(project_id, session=session)
        if before.status.is_terminal:
            raise InvalidStateTransition(f"project {project_id} is {before.status.value}")
        if before.stage is stage:
            return before
        review_round = project_stage.opening_round(project_id, stage, session=session)
        _move(before, stage=stage, review_round=review_round, session=session)
        after = _locked(project_id, session=session)
        activity_storage.create(
            project_id=project_id,
            user_id=actor.user_id,
            action=ActivityAction.StageUpdated,
            details={"from_stage": before.stage, "to_stage": stage, "review_round": review_round},
            session=session,
        )

    logger.info(
        "moved project between stages",
        extra={"project_id": project_id, "from_stage": before.stage.value, "to_stage": stage.value},
    )
    _notify_status_change(actor, before, after, f"after a stage change by {actor.name}", session=session)
    return after


def raise_red_flag(
    actor: User,
    project_id: ProjectID,
    *,
    title: str,
    description: str,
    severity: RedFlagSeverity = RedFlagSeverity.Medium,
    session: Session = di.Provide["storage.persistent.session"],
    logging: LoggingProvider = di.Provide["logging"],
) -> Project:
    """Flag a problem with a project and put it in RED_FLAG status.

    The flag itself is kept in the project's activity log. A project already
    flagged stays flagged and records the new flag too.
    """
    logger = logging.get_logger()
    require_permission(actor, Permission.RaiseRedFlags, action="raise a red flag")
    if not title.strip():
        raise InvalidInput("a red flag needs a title")

    with session.begin():
        before = _locked(project_id, session=session)
        if before.status.is_terminal:
            raise InvalidStateTransition(f"project {project_id} is {before.status.value}")
        if before.status is not ProjectStatus.RedFlag:
            _move(before, status=ProjectStatus.RedFlag, session=session)
        after = _locked(project_id, session=session)
        activity_storage.create(
            project_id=project_id,
            user_id=actor.user_id,
            action=ActivityAction.RedFlagRaised,
            details={
                "title": title.strip(),
                "description": description,
                "severity": severity,
                "from_status": before.status,
            },
            session=session,
        )

    logger.warning(
        "red flag raised",
        extra={"project_id": project_id, "actor_id": actor.user_id, "severity": severity.value},
    )
    if before.status is not after.status:
        _notify_status_change(
            actor, before, after, f"after {actor.name} raised a red flag: {title.strip()}", description, session=session
        )
    return after


def list_activity(
    project_id: ProjectID,
    *,
    limit: int | None = None,
    session: Session = di.Provide["storage.persistent.session"],
) -> tuple[ActivityLog, ...]:
    """The project's activity, newest first."""
    with session.begin():
        if project_storage.get(project_id, session=session) is None:
            raise NotFound(f"project {project_id} does not exist")
        return activity_storage.find(project_id=project_id, limit=limit, session=session)
