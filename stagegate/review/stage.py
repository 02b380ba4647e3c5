"""Where a project goes after a gate review session is approved.

A stage is reviewed in rounds. A project starts each stage in the round after
the last one approved there (round 1 the first time). An approval that leaves
the project at its stage, RECYCLE or HOLD, opens the next round, so the stage
can be reviewed again.
"""

from __future__ import annotations

import typing as t

from stagegate.core import di
from stagegate.core.provider import LoggingProvider
from stagegate.model import Decision, Project, ProjectID, ProjectStage, ProjectStatus
from stagegate.storage import assignment as assignment_storage
from stagegate.storage import project as project_storage
from stagegate.storage import session as session_storage
from stagegate.storage import Session

from .error import InvalidStateTransition, NotFound


class Transition(t.NamedTuple):
    from_stage: ProjectStage
    from_status: ProjectStatus
    to_stage: ProjectStage
    to_status: ProjectStatus
    from_round: int = 1
    to_round: int = 1


def next_state(stage: ProjectStage, decision: Decision) -> tuple[ProjectStage, ProjectStatus]:
    match decision:
        case Decision.Go if stage.is_final:
            return stage, ProjectStatus.Completed
        case Decision.Go:
            return stage.next(), ProjectStatus.Active
        case Decision.Recycle:
            return stage, ProjectStatus.Active
        case Decision.Hold:
            return stage, ProjectStatus.OnHold
        case Decision.Stop:
            return stage, ProjectStatus.Terminated
    raise ValueError(decision)


def opening_round(project_id: ProjectID, stage: ProjectStage, *, session: Session) -> int:
    """The round a project starts in when it arrives at stage."""
    return (session_storage.latest_approved_round(project_id, stage, session=session) or 0) + 1


def review_round(project: Project, stage: ProjectStage, *, session: Session) -> int:
    """The round of project's gate review at stage that callers act on.

    At the project's current stage that is its open round. A stage it has left
    keeps the last round held there, and one it has not reached yet is
    reviewed in the round it will open with.
    """
    if project.stage is stage:
        return project.review_round
    latest = assignment_storage.latest_round(project.project_id, stage, session=session)
    return latest or opening_round(project.project_id, stage, session=session)


def plan_transition(
    project: Project,
    stage: ProjectStage,
    decision: Decision,
    *,
    next_stage_round: int = 1,
) -> Transition:
    """The transition approving project's open review at stage would make.

    next_stage_round is the round the project opens with if it moves on.

    Raises:
        InvalidStateTransition: if the project is finished or not at stage
    """
    if project.status.is_terminal:
        raise InvalidStateTransition(f"project {project.project_id} is {project.status.value}")
    if project.stage is not stage:
        raise InvalidStateTransition(
            f"project {project.project_id} is at {project.stage.label}, not {stage.label}"
        )
    to_stage, to_status = next_state(stage, decision)
    if to_stage is not stage:
        to_round = next_stage_round
    elif to_status.is_terminal:
        to_round = project.review_round
    else:
        to_round = project.review_round + 1
    return Transition(project.stage, project.status, to_stage, to_status, project.review_round, to_round)


def on_session_approved(
    project_id: ProjectID,
    stage: ProjectStage,
    decision: Decision,
    *,
    session: Session = di.Provide["storage.persistent.session"],
    logging: LoggingProvider = di.Provide["logging"],
) -> Transition:
    """Apply decision to the project. Call inside the approving transaction.

    The update only matches the project in the state it was read in, so two
    racing approvals cannot both move it.
    """
    logger = logging.get_logger()
    extra = {"project_id": project_id, "stage": stage.value, "decision": decision.value}

    project = project_storage.get(project_id, for_update=True, session=session)
    if project is None:
        raise NotFound(f"project {project_id} does not exist")
    try:
        transition = plan_transition(
            project,
            stage,
            decision,
            next_stage_round=opening_round(project_id, next_state(stage, decision)[0], session=session),
        )
    except InvalidStateTransition:
        logger.error(
            "rejected stage transition",
            extra={**extra, "current_stage": project.stage.value, "current_status": project.status.value},
        )
        raise

    moved = project_storage.transition(
        project_id,
        expected_stage=transition.from_stage,
        expected_status=transition.from_status,
        expected_round=transition.from_round,
        stage=transition.to_stage,
        status=transition.to_status,
        review_round=transition.to_round,
        session=session,
    )
    if not moved:
        logger.error("project changed state during approval", extra=extra)
        raise InvalidStateTransition(f"project {project_id} changed state during approval")

    logger.info(
        "project moved",
        extra={
            **extra,
            "to_stage": transition.to_stage.value,
            "to_status": transition.to_status.value,
            "to_round": transition.to_round,
        },
    )
    return transition
