"""Route aggregation for the Stagegate web application."""

from fastapi import APIRouter

from . import assignment, auth, criteria, evaluation, export, notification, project, session

router = APIRouter()
router.include_router(auth.router)
router.include_router(criteria.router)
router.include_router(project.router)
router.include_router(assignment.router)
router.include_router(evaluation.router)
router.include_router(session.router)
router.include_router(export.router)
router.include_router(notification.router)
