from __future__ import annotations

import datetime
import decimal
import typing as t

import sqlalchemy as sqla
import sqlalchemy.orm

from stagegate.core import di
from stagegate.lib import NotSet
from stagegate.model import Decision, Evaluation, EvaluationID, ProjectID, ProjectStage, UserID

from . import Session
from .table import evaluations, projects, users


def get(
    evaluation_id: EvaluationID | None = None,
    *,
    project_id: ProjectID | None = None,
    stage: ProjectStage | None = None,
    review_round: int = 1,
    reviewer_id: UserID | None = None,
    session: Session = di.Provide["storage.persistent.session"],
) -> Evaluation | None:
    """Get an evaluation by ID, or by its (project_id, stage, review_round, reviewer_id) key."""
    if evaluation_id is not None:
        stmt = sqla.select(evaluations.__table__).where(evaluations.evaluation_id == evaluation_id)
    elif project_id is not None and stage is not None and reviewer_id is not None:
        stmt = sqla.select(evaluations.__table__).where(
            evaluations.project_id == project_id,
            evaluations.stage == stage,
            evaluations.review_round == review_round,
            evaluations.reviewer_id == reviewer_id,
        )
    else:
        raise ValueError("Either evaluation_id or all of project_id, stage and reviewer_id must be provided")

    row = session.execute(stmt).mappings().one_or_none()
    return Evaluation(**row) if row else None


def find(
    *,
    project_id: ProjectID | None = None,
    stage: ProjectStage | None = None,
    review_round: int | None = None,
    reviewer_id: UserID | None = None,
    is_completed: bool | None = None,
    session: Session = di.Provide["storage.persistent.session"],
) -> tuple[Evaluation, ...]:
    """Find evaluations matching criteria, oldest first."""
    stmt = sqla.select(evaluations.__table__)
    if project_id is not None:
        stmt = stmt.where(evaluations.project_id == project_id)
    if stage is not None:
        stmt = stmt.where(evaluations.stage == stage)
    if review_round is not None:
        stmt = stmt.where(evaluations.review_round == review_round)
    if reviewer_id is not None:
        stmt = stmt.where(evaluations.reviewer_id == reviewer_id)
    if is_completed is not None:
        stmt = stmt.where(evaluations.is_completed == is_completed)
    rows = session.execute(stmt.order_by(evaluations.create_time)).mappings().all()
    return tuple(Evaluation(**row) for row in rows)


def create(
    *,
    project_id: ProjectID,
    stage: ProjectStage,
    reviewer_id: UserID,
    scores: dict[str, int],
    comments: str,
    decision: Decision | None,
    weighted_score: decimal.Decimal,
    total_score: decimal.Decimal,
    review_round: int = 1,
    is_completed: bool = False,
    submitted_at: datetime.datetime | None = None,
    session: Session = di.Provide["storage.persistent.session"],
) -> Evaluation:
    """Create a new evaluation (a draft unless is_completed)."""
    evaluation_id = EvaluationID()
    stmt = sqla.insert(evaluations).values(
        evaluation_id=evaluation_id,
        project_id=project_id,
        stage=stage,
        review_round=review_round,
        reviewer_id=reviewer_id,
        scores=scores,
        comments=comments,
        decision=decision,
        weighted_score=weighted_score,
        total_score=total_score,
        is_completed=is_completed,
        submitted_at=submitted_at,
    )
    session.execute(stmt)
    session.flush()
    return get(evaluation_id, session=session)  # type: ignore[return-value]


def update(
    evaluation_id: EvaluationID,
    *,
    scores: dict[str, int] | NotSet = NotSet(),
    comments: str | NotSet = NotSet(),
    decision: Decision | None | NotSet = NotSet(),
    weighted_score: decimal.Decimal | NotSet = NotSet(),
    total_score: decimal.Decimal | NotSet = NotSet(),
    is_completed: bool | NotSet = NotSet(),
    submitted_at: datetime.datetime | None | NotSet = NotSet(),
    session: Session = di.Provide["storage.persistent.session"],
) -> Evaluation:
    """Update a draft evaluation.

    Submitted evaluations never match, so they cannot be changed through here.

    Raises:
        KeyError: If evaluation_id does not correspond to a draft evaluation
    """
    values: dict[str, t.Any] = {}
    if not isinstance(scores, NotSet):
        values["scores"] = scores
    if not isinstance(comments, NotSet):
        values["comments"] = comments
    if not isinstance(decision, NotSet):
        values["decision"] = decision
    if not isinstance(weighted_score, NotSet):
        values["weighted_score"] = weighted_score
    if not isinstance(total_score, NotSet):
        values["total_score"] = total_score
    if not isinstance(is_completed, NotSet):
        values["is_completed"] = is_completed
    if not isinstance(submitted_at, NotSet):
        values["submitted_at"] = submitted_at

    if not values:
        values["evaluation_id"] = evaluation_id

    stmt = (
        sqla
        .update(evaluations)
        .where(evaluations.evaluation_id == evaluation_id, evaluations.is_completed == sqla.false())
        .values(**values)
    )
    result = session.execute(stmt)
    if result.rowcount == 0:  # pyright: ignore[reportAttributeAccessIssue]
        raise KeyError(f"Draft evaluation {evaluation_id} not found")

    session.flush()
    return get(evaluation_id, session=session)  # type: ignore[return-value]


def report(
    *,
    project_id: ProjectID | None = None,
    stage: ProjectStage | None = None,
    reviewer_id: UserID | None = None,
    decision: Decision | None = None,
    is_completed: bool | None = None,
    created_after: datetime.datetime | None = None,
    created_before: datetime.datetime | None = None,
    session: Session = di.Provide["storage.persistent.session"],
) -> tuple[dict[str, t.Any], ...]:
    """Evaluations joined with their project, project lead and reviewer, newest first.

    created_after is inclusive, created_before exclusive.
    """
    reviewer = sqla.orm.aliased(users)
    lead = sqla.orm.aliased(users)
    stmt = (
        sqla
        .select(
            evaluations.__table__,
            projects.name.label("project_name"),
            projects.cluster,
            projects.status.label("project_status"),
            projects.stage.label("current_stage"),
            lead.name.label("project_lead"),
            reviewer.name.label("reviewer_name"),
            reviewer.email.label("reviewer_email"),
            reviewer.role.label("reviewer_role"),
        )
        .join(projects, projects.project_id == evaluations.project_id)
        .join(lead, lead.user_id == projects.lead_id)
        .join(reviewer, reviewer.user_id == evaluations.reviewer_id)
    )
    if project_id is not None:
        stmt = stmt.where(evaluations.project_id == project_id)
    if stage is not None:
        stmt = stmt.where(evaluations.stage == stage)
    if reviewer_id is not None:
        stmt = stmt.where(evaluations.reviewer_id == reviewer_id)
    if decision is not None:
        stmt = stmt.where(evaluations.decision == decision)
    if is_completed is not None:
        stmt = stmt.where(evaluations.is_completed == is_completed)
    if created_after is not None:
        stmt = stmt.where(evaluations.create_time >= created_after)
    if created_before is not None:
        stmt = stmt.where(evaluations.create_time < created_before)
    stmt = stmt.order_by(evaluations.create_time.desc(), evaluations.evaluation_id)
    return tuple(dict(row) for row in session.execute(stmt).mappings().all())
