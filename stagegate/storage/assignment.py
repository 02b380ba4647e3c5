from __future__ import annotations

import datetime
import typing as t

import sqlalchemy as sqla

from stagegate.core import di
from stagegate.model import AssignmentID, AssignmentStatus, ProjectID, ProjectStage, ReviewAssignment, UserID

from . import Session
from .table import evaluations, review_assignments


def _select() -> sqla.Select[t.Any]:
    """Assignments with their status derived from the reviewer's evaluation in the same round."""
    return sqla.select(
        review_assignments.__table__,
        sqla.func.coalesce(evaluations.is_completed, sqla.false()).label("is_completed"),
    ).outerjoin(
        evaluations,
        sqla.and_(
            evaluations.project_id == review_assignments.project_id,
            evaluations.stage == review_assignments.stage,
            evaluations.review_round == review_assignments.review_round,
            evaluations.reviewer_id == review_assignments.reviewer_id,
        ),
    )


def _to_model(row: t.Mapping[str, t.Any]) -> ReviewAssignment:
    data = dict(row)
    completed = data.pop("is_completed")
    return ReviewAssignment(
        **data,
        status=AssignmentStatus.Completed if completed else AssignmentStatus.Pending,
    )


def get(
    assignment_id: AssignmentID | None = None,
    *,
    project_id: ProjectID | None = None,
    stage: ProjectStage | None = None,
    review_round: int = 1,
    reviewer_id: UserID | None = None,
    session: Session = di.Provide["storage.persistent.session"],
) -> ReviewAssignment | None:
    """Get an assignment by ID, or by its (project_id, stage, review_round, reviewer_id) key."""
    if assignment_id is not None:
        stmt = _select().where(review_assignments.assignment_id == assignment_id)
    elif project_id is not None and stage is not None and reviewer_id is not None:
        stmt = _select().where(
            review_assignments.project_id == project_id,
            review_assignments.stage == stage,
            review_assignments.review_round == review_round,
            review_assignments.reviewer_id == reviewer_id,
        )
    else:
        raise ValueError("Either assignment_id or all of project_id, stage and reviewer_id must be provided")

    row = session.execute(stmt).mappings().one_or_none()
    return _to_model(row) if row else None


def find(
    *,
    project_id: ProjectID | None = None,
    stage: ProjectStage | None = None,
    review_round: int | None = None,
    reviewer_id: UserID | None = None,
    session: Session = di.Provide["storage.persistent.session"],
) -> tuple[ReviewAssignment, ...]:
    """Find assignments matching criteria, oldest first."""
    stmt = _select()
    if project_id is not None:
        stmt = stmt.where(review_assignments.project_id == project_id)
    if stage is not None:
        stmt = stmt.where(review_assignments.stage == stage)
    if review_round is not None:
        stmt = stmt.where(review_assignments.review_round == review_round)
    if reviewer_id is not None:
        stmt = stmt.where(review_assignments.reviewer_id == reviewer_id)
    stmt = stmt.order_by(review_assignments.create_time, review_assignments.assignment_id)
    rows = session.execute(stmt).mappings().all()
    return tuple(_to_model(row) for row in rows)


def assigned_reviewers(
    project_id: ProjectID,
    stage: ProjectStage,
    *,
    review_round: int = 1,
    session: Session = di.Provide["storage.persistent.session"],
) -> set[UserID]:
    """IDs of every reviewer already assigned to one round of (project_id, stage)."""
    stmt = sqla.select(review_assignments.reviewer_id).where(
        review_assignments.project_id == project_id,
        review_assignments.stage == stage,
        review_assignments.review_round == review_round,
    )
    return set(session.execute(stmt).scalars().all())


def latest_round(
    project_id: ProjectID,
    stage: ProjectStage,
    *,
    session: Session = di.Provide["storage.persistent.session"],
) -> int | None:
    """The highest round anyone has been assigned to at (project_id, stage), if any."""
    stmt = sqla.select(sqla.func.max(review_assignments.review_round)).where(
        review_assignments.project_id == project_id,
        review_assignments.stage == stage,
    )
    return session.execute(stmt).scalar_one()


def create(
    *,
    project_id: ProjectID,
    stage: ProjectStage,
    reviewer_id: UserID,
    assigned_by: UserID,
    review_round: int = 1,
    due_date: datetime.datetime | None = None,
    instructions: str | None = None,
    create_time: datetime.datetime | None = None,
    session: Session = di.Provide["storage.persistent.session"],
) -> ReviewAssignment:
    """Create a new assignment.

    create_time defaults to the database clock; callers creating several
    assignments at once pass it explicitly so their order is stable.
    """
    assignment_id = AssignmentID()
    values: dict[str, t.Any] = dict(
        assignment_id=assignment_id,
        project_id=project_id,
        stage=stage,
        review_round=review_round,
        reviewer_id=reviewer_id,
        assigned_by=assigned_by,
        due_date=due_date,
        instructions=instructions,
    )
    if create_time is not None:
        values.update(create_time=create_time, update_time=create_time)
    session.execute(sqla.insert(review_assignments).values(**values))
    session.flush()
    result = get(assignment_id, session=session)
    assert result is not None
    return result
