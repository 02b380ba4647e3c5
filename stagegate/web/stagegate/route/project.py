"""Project routes."""

from __future__ import annotations

import typing as t

from fastapi import APIRouter, Depends, Query, status

from stagegate.auth.middleware import AuthContext, get_current_user
from stagegate.core import di
from stagegate.model import Project, ProjectID
from stagegate.review import project as project_service
from stagegate.storage import Session

from ..view.project import ActivityListResponse, ActivityResponse, ProjectCreateRequest, ProjectResponse, \
    ProjectUpdateRequest, RedFlagRequest, StageUpdateRequest

router = APIRouter(prefix="/api/projects", tags=["projects"])


def _project_response(project: Project) -> ProjectResponse:
    return ProjectResponse(
        project_id=project.project_id,
        name=project.name,
        cluster=project.cluster,
        lead_id=project.lead_id,
        stage=project.stage,
        status=project.status,
        review_round=project.review_round,
        create_time=project.create_time,
        update_time=project.update_time,
    )


@router.post("", operation_id="create_project", status_code=status.HTTP_201_CREATED)
@di.inject
def create_project(
    request: ProjectCreateRequest,
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(di.Manage["storage.persistent.session"]),
) -> ProjectResponse:
    project = project_service.create_project(
        auth.user,
        name=request.name,
        lead_id=request.lead_id,
        cluster=request.cluster,
        session=session,
    )
    return _project_response(project)


@router.get("/{project_id}", operation_id="get_project")
@di.inject
def get_project(
    project_id: ProjectID,
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(di.Manage["storage.persistent.session"]),
) -> ProjectResponse:
    return _project_response(project_service.get_project(project_id, session=session))


@router.patch("/{project_id}", operation_id="update_project")
@di.inject
def update_project(
    project_id: ProjectID,
    request: ProjectUpdateRequest,
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(di.Manage["storage.persistent.session"]),
) -> ProjectResponse:
    """Change the fields present in the body. A status change notifies the project lead."""
    changes: dict[str, t.Any] = {
        field: getattr(request, field)
        for field in request.model_fields_set & {"name", "cluster", "lead_id"}
        if field == "cluster" or getattr(request, field) is not None
    }
    project = project_service.update_project(
        auth.user,
        project_id,
        **changes,
        status=request.status,
        session=session,
    )
    return _project_response(project)


@router.post("/{project_id}/stage", operation_id="update_project_stage")
@di.inject
def update_stage(
    project_id: ProjectID,
    request: StageUpdateRequest,
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(di.Manage["storage.persistent.session"]),
) -> ProjectResponse:
    project = project_service.update_stage(auth.user, project_id, request.stage, session=session)
    return _project_response(project)


@router.post("/{project_id}/red-flags", operation_id="raise_red_flag", status_code=status.HTTP_201_CREATED)
@di.inject
def raise_red_flag(
    project_id: ProjectID,
    request: RedFlagRequest,
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(di.Manage["storage.persistent.session"]),
) -> ProjectResponse:
    """Flag a problem with the project, putting it in RED_FLAG status."""
    project = project_service.raise_red_flag(
        auth.user,
        project_id,
        title=request.title,
        description=request.description,
        severity=request.severity,
        session=session,
    )
    return _project_response(project)


@router.get("/{project_id}/activity", operation_id="list_project_activity")
@di.inject
def list_activity(
    project_id: ProjectID,
    limit: int | None = Query(None, ge=1, le=500),
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(di.Manage["storage.persistent.session"]),
) -> ActivityListResponse:
    """The project's activity log, newest first."""
    entries = project_service.list_activity(project_id, limit=limit, session=session)
    return ActivityListResponse(
        activity=[
            ActivityResponse(
                activity_id=a.activity_id,
                user_id=a.user_id,
                action=a.action,
                details=a.details,
                create_time=a.create_time,
            )
            for a in entries
        ]
    )
