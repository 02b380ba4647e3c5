"""Gate review data for reporting, as CSV or JSON."""

from __future__ import annotations

import collections
import csv
import datetime
import decimal
import io
import typing as t

import pydantic as p

from stagegate.core import di
from stagegate.core.provider import LoggingProvider, TimestampProvider
from stagegate.lib import json
from stagegate.lib.util import round2
from stagegate.model import BaseModel, Decision, EvaluationID, ExportFormat, ProjectID, ProjectStage, \
    ProjectStatus, User, UserID, UserRole
from stagegate.storage import evaluation as evaluation_storage
from stagegate.storage import Session

from .permission import Permission, require_permission

NotAvailable = "N/A"

CSVHeader = (
    "Review ID",
    "Project ID",
    "Project Name",
    "Cluster",
    "Project Lead",
    "Project Status",
    "Current Stage",
    "Review Stage",
    "Review Round",
    "Reviewer Name",
    "Reviewer Email",
    "Reviewer Role",
    "Decision",
    "Score",
    "Comments",
    "Submitted At",
    "Is Completed",
    "Created At",
    "Updated At",
)


class ReviewFilters(BaseModel):
    project_id: ProjectID | None = None
    stage: ProjectStage | None = None
    reviewer_id: UserID | None = None
    decision: Decision | None = None
    is_completed: bool | None = None
    # inclusive / exclusive bounds on when the review was started
    created_after: datetime.datetime | None = None
    created_before: datetime.datetime | None = None


class ReviewRecord(BaseModel):
    evaluation_id: EvaluationID
    project_id: ProjectID
    project_name: str
    cluster: str | None
    project_lead: str
    project_status: ProjectStatus
    current_stage: ProjectStage
    stage: ProjectStage
    review_round: int
    reviewer_id: UserID
    reviewer_name: str
    reviewer_email: str
    reviewer_role: UserRole
    scores: dict[str, int]
    decision: Decision | None
    total_score: decimal.Decimal
    comments: str
    submitted_at: datetime.datetime | None
    is_completed: bool
    create_time: datetime.datetime
    update_time: datetime.datetime

    def csv_row(self) -> tuple[str, ...]:
        return (
            str(self.evaluation_id),
            str(self.project_id),
            self.project_name,
            self.cluster or NotAvailable,
            self.project_lead or NotAvailable,
            self.project_status.value,
            self.current_stage.value,
            self.stage.value,
            str(self.review_round),
            self.reviewer_name or NotAvailable,
            self.reviewer_email,
            self.reviewer_role.value,
            self.decision.value if self.decision else NotAvailable,
            str(self.total_score) if self.is_completed else NotAvailable,
            self.comments,
            self.submitted_at.isoformat() if self.submitted_at else NotAvailable,
            "Yes" if self.is_completed else "No",
            self.create_time.isoformat(),
            self.update_time.isoformat(),
        )


class ReviewSummary(BaseModel):
    total: int
    completed: int
    pending: int
    # percent, e.g. 66.67
    completion_rate: decimal.Decimal
    by_decision: dict[str, int]
    by_stage: dict[str, int]
    by_reviewer: dict[str, int]


class Export(t.NamedTuple):
    content: str
    media_type: str
    filename: str
    count: int


def find_reviews(
    actor: User,
    filters: ReviewFilters,
    *,
    session: Session = di.Provide["storage.persistent.session"],
) -> tuple[ReviewRecord, ...]:
    require_permission(actor, Permission.ExportReviews, action="export reviews")
    with session.begin():
        rows = evaluation_storage.report(**filters.model_dump(by_alias=False), session=session)
    return tuple(ReviewRecord(**row) for row in rows)


def to_csv(records: t.Iterable[ReviewRecord]) -> str:
    buf = io.StringIO()
    writer = csv.writer(buf)
    writer.writerow(CSVHeader)
    for record in records:
        writer.writerow(record.csv_row())
    return buf.getvalue()


def to_json(records: t.Iterable[ReviewRecord]) -> str:
    return json.dumps([r.model_dump(mode="json") for r in records], indent=2)


def export_reviews(
    actor: User,
    fmt: ExportFormat,
    filters: ReviewFilters | None = None,
    *,
    session: Session = di.Provide["storage.persistent.session"],
    utcnow: TimestampProvider = di.Provide["utcnow"],
    logging: LoggingProvider = di.Provide["logging"],
) -> Export:
    """Gate reviews matching filters, newest first, serialized as fmt."""
    logger = logging.get_logger()
    filters = filters or ReviewFilters()
    records = find_reviews(actor, filters, session=session)

    match fmt:
        case ExportFormat.CSV:
            content, media_type = to_csv(records), "text/csv"
        case ExportFormat.JSON:
            content, media_type = to_json(records), "application/json"

    filename = f"gate-reviews-export-{utcnow().date().isoformat()}.{fmt.value}"
    logger.info(
        "exported reviews",
        extra={
            "actor_id": actor.user_id,
            "format": fmt.value,
            "count": len(records),
            "filters": filters.model_dump(exclude_none=True),
        },
    )
    return Export(content=content, media_type=media_type, filename=filename, count=len(records))


def summarize(records: t.Sequence[ReviewRecord]) -> ReviewSummary:
    total = len(records)
    completed = sum(1 for r in records if r.is_completed)
    rate = round2(decimal.Decimal(completed * 100) / total) if total else round2(0)

    by_decision = collections.Counter(r.decision.value for r in records if r.decision is not None)
    by_stage = collections.Counter(r.stage.value for r in records)
    by_reviewer = collections.Counter(r.reviewer_name for r in records)
    return ReviewSummary(
        total=total,
        completed=completed,
        pending=total - completed,
        completion_rate=rate,
        by_decision=dict(by_decision),
        by_stage=dict(by_stage),
        by_reviewer=dict(by_reviewer),
    )
