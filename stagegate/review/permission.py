"""Which roles may do what with gate reviews."""

from __future__ import annotations

import enum
import logging

from stagegate.model import User, UserRole

from .error import Forbidden

logger = logging.getLogger(__name__)


class Permission(enum.Enum):
    ViewReviews = "can_view_reviews"
    ConductReviews = "can_conduct_reviews"
    AssignReviewers = "can_assign_reviewers"
    ManageReviewSessions = "can_manage_review_sessions"
    ExportReviews = "can_export_reviews"
    ManageProjects = "can_manage_projects"
    RaiseRedFlags = "can_raise_red_flags"
    ManageUsers = "can_manage_users"


_ReviewPanel = frozenset({
    Permission.ViewReviews,
    Permission.ConductReviews,
    Permission.AssignReviewers,
    Permission.ManageReviewSessions,
    Permission.ExportReviews,
    Permission.ManageProjects,
    Permission.RaiseRedFlags,
})

RolePermissions: dict[UserRole, frozenset[Permission]] = {
    UserRole.Admin: frozenset(Permission),
    UserRole.Gatekeeper: _ReviewPanel,
    UserRole.Reviewer: frozenset({Permission.ViewReviews, Permission.ConductReviews, Permission.RaiseRedFlags}),
    UserRole.ProjectLead: frozenset({Permission.ViewReviews, Permission.ExportReviews, Permission.RaiseRedFlags}),
    UserRole.Researcher: frozenset(),
    UserRole.User: frozenset(),
    UserRole.Custom: frozenset(),
}

ReviewerRoles = frozenset({UserRole.Admin, UserRole.Gatekeeper, UserRole.Reviewer})


def has_permission(role: UserRole, permission: Permission) -> bool:
    return permission in RolePermissions.get(role, frozenset())


def permissions(role: UserRole) -> frozenset[Permission]:
    return RolePermissions.get(role, frozenset())


def can_review(role: UserRole) -> bool:
    """Whether a user with this role may be assigned as a reviewer."""
    return role in ReviewerRoles


def require_permission(actor: User, permission: Permission, *, action: str) -> None:
    """Raise Forbidden unless actor's role grants permission."""
    if not has_permission(actor.role, permission):
        logger.warning(
            "permission denied",
            extra={
                "actor_id": actor.user_id,
                "role": actor.role.value,
                "permission": permission.value,
                "action": action,
            },
        )
        raise Forbidden(actor.user_id, action)
