"""CLI commands for gate reviews."""

from __future__ import annotations

import sys
from pathlib import Path

from sqlalchemy.orm import Session

import stagegate.lib.cli as click
from stagegate.core import di
from stagegate.model import Decision, ExportFormat, ProjectID, ProjectStage
from stagegate.review import assignment as assignment_service
from stagegate.review import export as export_service
from stagegate.review import session as session_service
from stagegate.review.export import ReviewFilters

from .project import resolve_actor


@click.group("review")
def review():
    """Assign, approve and export gate reviews."""
    ...


@review.command("assign")
@click.argument("project_id")
@click.argument("stage", type=click.EnumType(ProjectStage))
@click.argument("reviewer_emails", nargs=-1, required=True)
@click.option("--instructions", default=None)
@click.option("--as", "actor_email", required=True, help="Email of the user assigning reviewers")
@di.inject
def review_assign(
    project_id: str,
    stage: ProjectStage,
    reviewer_emails: tuple[str, ...],
    instructions: str | None,
    actor_email: str,
    session: Session = di.Provide["storage.persistent.session"],
) -> None:
    """Assign reviewers to a project's gate review.

    REVIEWER_EMAILS are the emails of the reviewers to add.
    """
    actor = resolve_actor(actor_email, session)
    reviewers = [resolve_actor(email, session) for email in reviewer_emails]
    created = assignment_service.assign_reviewers(
        actor,
        ProjectID(project_id),
        stage,
        [r.user_id for r in reviewers],
        instructions=instructions,
        session=session,
    )
    click.echo(f"Assigned {len(created)} reviewer(s); {len(reviewers) - len(created)} already assigned.")


@review.command("session")
@click.argument("project_id")
@click.argument("stage", type=click.EnumType(ProjectStage))
@click.option("--round", "review_round", type=int, default=None, help="An earlier round; defaults to the open one")
@di.inject
def review_session(
    project_id: str,
    stage: ProjectStage,
    review_round: int | None,
    session: Session = di.Provide["storage.persistent.session"],
) -> None:
    """Show the state of a gate review."""
    rs = session_service.get_session(ProjectID(project_id), stage, review_round, session=session)
    click.echo(f"{rs.stage.label} round {rs.review_round}: {rs.state.value}")
    click.echo(f"  Reviews: {rs.completed}/{rs.total} complete")
    click.echo(f"  Average score: {rs.average_score}")
    for decision, count in rs.decisions.items():
        click.echo(f"  {decision.value}: {count}")
    if rs.approval is not None:
        click.echo(f"  Approved {rs.approval.decision.value} at {rs.approval.approved_at:%Y-%m-%d %H:%M}")


@review.command("approve")
@click.argument("project_id")
@click.argument("stage", type=click.EnumType(ProjectStage))
@click.option("--decision", type=click.EnumType(Decision), default=None, help="Override the reviewers' decision")
@click.option("--comments", default=None)
@click.option("--as", "actor_email", required=True, help="Email of the approving user")
@di.inject
def review_approve(
    project_id: str,
    stage: ProjectStage,
    decision: Decision | None,
    comments: str | None,
    actor_email: str,
    session: Session = di.Provide["storage.persistent.session"],
) -> None:
    """Approve a completed gate review and move the project on."""
    actor = resolve_actor(actor_email, session)
    rs = session_service.approve_session(
        actor, ProjectID(project_id), stage, final_decision=decision, comments=comments, session=session
    )
    assert rs.approval is not None
    click.echo(
        f"Approved {rs.approval.decision.value}: project now {rs.approval.to_stage.label}, "
        f"{rs.approval.to_status.value}"
    )


@review.command("export")
@click.option("--format", "fmt", type=click.EnumType(ExportFormat), default=ExportFormat.CSV)
@click.option("--project", "project_id", default=None)
@click.option("--stage", type=click.EnumType(ProjectStage), default=None)
@click.option("--decision", type=click.EnumType(Decision), default=None)
@click.option("--completed/--pending", "is_completed", default=None)
@click.option("--output", "-O", type=click.Path(dir_okay=False, path_type=Path), default=None)
@click.option("--as", "actor_email", required=True, help="Email of the exporting user")
@di.inject
def review_export(
    fmt: ExportFormat,
    project_id: str | None,
    stage: ProjectStage | None,
    decision: Decision | None,
    is_completed: bool | None,
    output: Path | None,
    actor_email: str,
    session: Session = di.Provide["storage.persistent.session"],
) -> None:
    """Export gate reviews to a file, or stdout."""
    actor = resolve_actor(actor_email, session)
    filters = ReviewFilters(
        project_id=ProjectID(project_id) if project_id else None,
        stage=stage,
        decision=decision,
        is_completed=is_completed,
    )
    export = export_service.export_reviews(actor, fmt, filters, session=session)
    if output is None:
        sys.stdout.write(export.content)
    else:
        output.write_text(export.content, encoding="utf8")
        click.echo(f"Wrote {export.count} review(s) to {output}")


command = review
