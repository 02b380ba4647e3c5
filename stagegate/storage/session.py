"""Review session aggregates, computed from assignments and evaluations.

Nothing about a session is stored except its approval. Every function works
on one round of a (project, stage) gate review.
"""

from __future__ import annotations

import datetime
import decimal
import typing as t

import sqlalchemy as sqla

from stagegate.core import di
from stagegate.lib.util import round2
from stagegate.model import Decision, ProjectID, ProjectStage, ProjectStatus, SessionApproval, UserID

from . import Session
from .table import evaluations, review_assignments, session_approvals


class SessionCounts(t.NamedTuple):
    total: int
    completed: int
    average_score: decimal.Decimal


def _assigned_evaluations() -> sqla.sql.expression.ColumnElement[bool]:
    # only evaluations from reviewers who are actually assigned count
    return sqla.and_(
        evaluations.project_id == review_assignments.project_id,
        evaluations.stage == review_assignments.stage,
        evaluations.review_round == review_assignments.review_round,
        evaluations.reviewer_id == review_assignments.reviewer_id,
    )


def counts(
    project_id: ProjectID,
    stage: ProjectStage,
    *,
    review_round: int = 1,
    session: Session = di.Provide["storage.persistent.session"],
) -> SessionCounts:
    """Assignment count, completed count and mean total score of completed evaluations."""
    completed = sqla.and_(evaluations.is_completed == sqla.true())
    stmt = (
        sqla
        .select(
            sqla.func.count(review_assignments.assignment_id).label("total"),
            sqla.func.count(sqla.case((completed, evaluations.evaluation_id))).label("completed"),
            sqla.func.avg(sqla.case((completed, evaluations.total_score))).label("average_score"),
        )
        .select_from(review_assignments)
        .outerjoin(evaluations, _assigned_evaluations())
        .where(
            review_assignments.project_id == project_id,
            review_assignments.stage == stage,
            review_assignments.review_round == review_round,
        )
    )
    row = session.execute(stmt).mappings().one()
    return SessionCounts(
        total=row["total"],
        completed=row["completed"],
        average_score=round2(row["average_score"]),
    )


def decisions(
    project_id: ProjectID,
    stage: ProjectStage,
    *,
    review_round: int = 1,
    session: Session = di.Provide["storage.persistent.session"],
) -> dict[Decision, int]:
    """How many completed evaluations picked each decision."""
    stmt = (
        sqla
        .select(evaluations.decision, sqla.func.count().label("n"))
        .select_from(review_assignments)
        .join(evaluations, _assigned_evaluations())
        .where(
            review_assignments.project_id == project_id,
            review_assignments.stage == stage,
            review_assignments.review_round == review_round,
            evaluations.is_completed == sqla.true(),
            evaluations.decision.is_not(None),
        )
        .group_by(evaluations.decision)
    )
    return {decision: n for decision, n in session.execute(stmt).all()}


def get_approval(
    project_id: ProjectID,
    stage: ProjectStage,
    *,
    review_round: int = 1,
    session: Session = di.Provide["storage.persistent.session"],
) -> SessionApproval | None:
    stmt = sqla.select(session_approvals.__table__).where(
        session_approvals.project_id == project_id,
        session_approvals.stage == stage,
        session_approvals.review_round == review_round,
    )
    row = session.execute(stmt).mappings().one_or_none()
    return SessionApproval(**row) if row else None


def latest_approved_round(
    project_id: ProjectID,
    stage: ProjectStage,
    *,
    session: Session = di.Provide["storage.persistent.session"],
) -> int | None:
    """The last round of (project_id, stage) to be approved, if any was."""
    stmt = sqla.select(sqla.func.max(session_approvals.review_round)).where(
        session_approvals.project_id == project_id,
        session_approvals.stage == stage,
    )
    return session.execute(stmt).scalar_one()


def find_approvals(
    project_id: ProjectID,
    *,
    stage: ProjectStage | None = None,
    session: Session = di.Provide["storage.persistent.session"],
) -> tuple[SessionApproval, ...]:
    """Every approval recorded for a project, oldest first."""
    stmt = sqla.select(session_approvals.__table__).where(session_approvals.project_id == project_id)
    if stage is not None:
        stmt = stmt.where(session_approvals.stage == stage)
    stmt = stmt.order_by(session_approvals.approved_at, session_approvals.review_round)
    return tuple(SessionApproval(**row) for row in session.execute(stmt).mappings().all())


def create_approval(
    *,
    project_id: ProjectID,
    stage: ProjectStage,
    approved_by: UserID,
    decision: Decision,
    average_score: decimal.Decimal,
    from_status: ProjectStatus,
    to_stage: ProjectStage,
    to_status: ProjectStatus,
    approved_at: datetime.datetime,
    review_round: int = 1,
    comments: str | None = None,
    session: Session = di.Provide["storage.persistent.session"],
) -> SessionApproval:
    """Record the approval of one round of (project_id, stage).

    Raises:
        sqlalchemy.exc.IntegrityError: If that round has already been approved
    """
    stmt = sqla.insert(session_approvals).values(
        project_id=project_id,
        stage=stage,
        review_round=review_round,
        approved_by=approved_by,
        decision=decision,
        average_score=average_score,
        comments=comments,
        from_status=from_status,
        to_stage=to_stage,
        to_status=to_status,
        approved_at=approved_at,
    )
    session.execute(stmt)
    session.flush()
    return get_approval(project_id, stage, review_round=review_round, session=session)  # type: ignore[return-value]
