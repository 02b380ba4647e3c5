"""CLI commands for projects."""

from __future__ import annotations

import typing as t

from sqlalchemy.orm import Session

import stagegate.lib.cli as click
from stagegate.core import di
from stagegate.model import ProjectID, ProjectStage, ProjectStatus, RedFlagSeverity, User
from stagegate.review import project as project_service
from stagegate.review import session as session_service
from stagegate.storage import project as project_storage
from stagegate.storage import user as user_storage


def resolve_actor(email: str, session: Session) -> User:
    """The user a command acts as."""
    with session.begin():
        actor = user_storage.get(email=email, session=session)
    if actor is None:
        raise click.ClickException(f"no user with email '{email}'")
    return actor


@click.group("project")
def project():
    """Create and inspect projects."""
    ...


@project.command("create")
@click.argument("name")
@click.option("--lead", "lead_email", required=True, help="Email of the project lead")
@click.option("--cluster", default=None)
@click.option("--as", "actor_email", required=True, help="Email of the user creating the project")
@di.inject
def project_create(
    name: str,
    lead_email: str,
    cluster: str | None,
    actor_email: str,
    session: Session = di.Provide["storage.persistent.session"],
) -> None:
    actor = resolve_actor(actor_email, session)
    lead = resolve_actor(lead_email, session)
    created = project_service.create_project(
        actor, name=name, lead_id=lead.user_id, cluster=cluster, session=session
    )
    click.echo(f"Created project: {created.name}")
    click.echo(f"  ID: {created.project_id}")
    click.echo(f"  State: {created.stage.label}, {created.status.value}")


@project.command("list")
@click.option("--stage", type=click.EnumType(ProjectStage), default=None)
@di.inject
def project_list(
    stage: ProjectStage | None,
    session: Session = di.Provide["storage.persistent.session"],
) -> None:
    with session.begin():
        projects = project_storage.find(stage=stage, session=session)

    if not projects:
        click.echo("No projects found.")
        return

    click.echo(f"{'ID':<30} {'Name':<30} {'Stage':<8} {'Status':<15}")
    click.echo("-" * 85)
    for pr in projects:
        click.echo(f"{str(pr.project_id):<30} {pr.name:<30} {pr.stage.label:<8} {pr.status.value:<15}")


@project.command("show")
@click.argument("project_id")
@di.inject
def project_show(
    project_id: str,
    session: Session = di.Provide["storage.persistent.session"],
) -> None:
    """Show a project, its review sessions and recent activity.

    PROJECT_ID is the project's key, e.g. proj$...
    """
    found = project_service.get_project(ProjectID(project_id), session=session)
    click.echo(f"Project: {found.name}")
    click.echo(f"  ID: {found.project_id}")
    click.echo(f"  Cluster: {found.cluster or '-'}")
    click.echo(f"  State: {found.stage.label}, {found.status.value}, review round {found.review_round}")

    approvals = session_service.list_approvals(found.project_id, session=session)
    if approvals:
        click.echo("\nGate history:")
        for approval in approvals:
            click.echo(
                f"  {approval.approved_at:%Y-%m-%d} {approval.stage.label} round {approval.review_round}: "
                f"{approval.decision.value} -> {approval.to_stage.label}, {approval.to_status.value}"
            )

    click.echo("\nReview sessions:")
    for stage in ProjectStage:
        review_session = session_service.get_session(found.project_id, stage, session=session)
        if review_session.total == 0:
            continue
        click.echo(
            f"  - {stage.label} round {review_session.review_round}: {review_session.state.value}, "
            f"{review_session.completed}/{review_session.total} complete, "
            f"average {review_session.average_score}"
        )

    click.echo("\nRecent activity:")
    for entry in project_service.list_activity(found.project_id, limit=10, session=session):
        click.echo(f"  {entry.create_time:%Y-%m-%d %H:%M} {entry.action.value}")


@project.command("update")
@click.argument("project_id")
@click.option("--name", default=None)
@click.option("--cluster", default=None)
@click.option("--lead", "lead_email", default=None, help="Email of the new project lead")
@click.option("--status", type=click.EnumType(ProjectStatus), default=None)
@click.option("--as", "actor_email", required=True, help="Email of the user updating the project")
@di.inject
def project_update(
    project_id: str,
    name: str | None,
    cluster: str | None,
    lead_email: str | None,
    status: ProjectStatus | None,
    actor_email: str,
    session: Session = di.Provide["storage.persistent.session"],
) -> None:
    """Change a project's details or status, e.g. resume a project on hold."""
    actor = resolve_actor(actor_email, session)
    changes: dict[str, t.Any] = {}
    if name is not None:
        changes["name"] = name
    if cluster is not None:
        changes["cluster"] = cluster
    if lead_email is not None:
        changes["lead_id"] = resolve_actor(lead_email, session).user_id
    updated = project_service.update_project(actor, ProjectID(project_id), **changes, status=status, session=session)
    click.echo(f"Updated project: {updated.name}")
    click.echo(f"  State: {updated.stage.label}, {updated.status.value}")


@project.command("set-stage")
@click.argument("project_id")
@click.argument("stage", type=click.EnumType(ProjectStage))
@click.option("--as", "actor_email", required=True, help="Email of the user moving the project")
@di.inject
def project_set_stage(
    project_id: str,
    stage: ProjectStage,
    actor_email: str,
    session: Session = di.Provide["storage.persistent.session"],
) -> None:
    """Move a project to STAGE without a gate review."""
    actor = resolve_actor(actor_email, session)
    moved = project_service.update_stage(actor, ProjectID(project_id), stage, session=session)
    click.echo(f"{moved.name} is at {moved.stage.label}, review round {moved.review_round}")


@project.command("flag")
@click.argument("project_id")
@click.argument("title")
@click.option("--description", default="")
@click.option("--severity", type=click.EnumType(RedFlagSeverity), default=RedFlagSeverity.Medium.value)
@click.option("--as", "actor_email", required=True, help="Email of the user raising the flag")
@di.inject
def project_flag(
    project_id: str,
    title: str,
    description: str,
    severity: RedFlagSeverity,
    actor_email: str,
    session: Session = di.Provide["storage.persistent.session"],
) -> None:
    """Raise a red flag on a project."""
    actor = resolve_actor(actor_email, session)
    flagged = project_service.raise_red_flag(
        actor, ProjectID(project_id), title=title, description=description, severity=severity, session=session
    )
    click.echo(f"{flagged.name} is {flagged.status.value}")


command = project
