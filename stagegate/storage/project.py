from __future__ import annotations

import typing as t

import sqlalchemy as sqla

from stagegate.core import di
from stagegate.lib import NotSet
from stagegate.model import Project, ProjectID, ProjectStage, ProjectStatus, UserID

from . import Session
from .table import projects


def get(
    project_id: ProjectID,
    *,
    for_update: bool = False,
    session: Session = di.Provide["storage.persistent.session"],
) -> Project | None:
    """Get a project by ID.

    With for_update, the row is locked until the transaction ends (ignored by
    SQLite, which serializes writers anyway).
    """
    stmt = sqla.select(projects.__table__).where(projects.project_id == project_id)
    if for_update:
        stmt = stmt.with_for_update()
    row = session.execute(stmt).mappings().one_or_none()
    return Project(**row) if row else None


def find(
    *,
    lead_id: UserID | None = None,
    stage: ProjectStage | None = None,
    status: ProjectStatus | None = None,
    session: Session = di.Provide["storage.persistent.session"],
) -> tuple[Project, ...]:
    """Find projects matching criteria."""
    stmt = sqla.select(projects.__table__)
    if lead_id is not None:
        stmt = stmt.where(projects.lead_id == lead_id)
    if stage is not None:
        stmt = stmt.where(projects.stage == stage)
    if status is not None:
        stmt = stmt.where(projects.status == status)
    rows = session.execute(stmt.order_by(projects.name)).mappings().all()
    return tuple(Project(**row) for row in rows)


def create(
    *,
    name: str,
    lead_id: UserID,
    cluster: str | None = None,
    stage: ProjectStage = ProjectStage.Stage0,
    status: ProjectStatus = ProjectStatus.Active,
    session: Session = di.Provide["storage.persistent.session"],
) -> Project:
    """Create a new project."""
    project_id = ProjectID()
    stmt = sqla.insert(projects).values(
        project_id=project_id,
        name=name,
        lead_id=lead_id,
        cluster=cluster,
        stage=stage,
        status=status,
    )
    session.execute(stmt)
    session.flush()
    return get(project_id, session=session)  # type: ignore[return-value]


def update(
    project_id: ProjectID,
    *,
    name: str | NotSet = NotSet(),
    cluster: str | None | NotSet = NotSet(),
    lead_id: UserID | NotSet = NotSet(),
    session: Session = di.Provide["storage.persistent.session"],
) -> Project:
    """Update descriptive fields of a project. Stage and status only move via transition().

    Raises:
        KeyError: If project_id does not correspond to a project
    """
    values: dict[str, t.Any] = {}
    if not isinstance(name, NotSet):
        values["name"] = name
    if not isinstance(cluster, NotSet):
        values["cluster"] = cluster
    if not isinstance(lead_id, NotSet):
        values["lead_id"] = lead_id

    if not values:
        # No-op update to verify project exists
        values["project_id"] = project_id

    result = session.execute(sqla.update(projects).where(projects.project_id == project_id).values(**values))
    if result.rowcount == 0:  # pyright: ignore[reportAttributeAccessIssue]
        raise KeyError(f"Project {project_id} not found")

    session.flush()
    return get(project_id, session=session)  # type: ignore[return-value]


def transition(
    project_id: ProjectID,
    *,
    expected_stage: ProjectStage,
    expected_status: ProjectStatus,
    expected_round: int | None = None,
    stage: ProjectStage,
    status: ProjectStatus,
    review_round: int | None = None,
    session: Session = di.Provide["storage.persistent.session"],
) -> bool:
    """Move a project to (stage, status) only if it is still at (expected_stage, expected_status).

    expected_round, when given, must also match; review_round, when given,
    becomes the project's open review round.

    Returns:
        True if the row was updated, False if the project was not where the
        caller expected it to be (or does not exist)
    """
    conditions = [
        projects.project_id == project_id,
        projects.stage == expected_stage,
        projects.status == expected_status,
    ]
    if expected_round is not None:
        conditions.append(projects.review_round == expected_round)
    values: dict[str, t.Any] = dict(stage=stage, status=status)
    if review_round is not None:
        values["review_round"] = review_round

    stmt = sqla.update(projects).where(*conditions).values(**values)
    result = session.execute(stmt)
    session.flush()
    return bool(result.rowcount)  # pyright: ignore[reportAttributeAccessIssue]
