from __future__ import annotations

import typing as t

from stagegate.model import UserID


class ReviewError(Exception):
    """Base class for gate review failures."""


class InvalidInput(ReviewError, ValueError):
    """A value is malformed or out of range; nothing was changed."""


class ValidationFailed(ReviewError):
    """An evaluation does not pass review validation."""

    def __init__(self, errors: t.Sequence[str]):
        self.errors = tuple(errors)
        super().__init__("; ".join(self.errors))


class Forbidden(ReviewError):
    def __init__(self, actor_id: UserID, action: str):
        self.actor_id = actor_id
        self.action = action
        super().__init__(f"{actor_id} is not permitted to {action}")


class NotFound(ReviewError, LookupError):
    pass


class RoleIneligible(ReviewError):
    """One or more reviewers may not review (unknown, or role not allowed)."""

    def __init__(self, reviewer_ids: t.Iterable[UserID]):
        self.reviewer_ids = tuple(reviewer_ids)
        super().__init__(f"not eligible to review: {', '.join(self.reviewer_ids)}")


class AlreadyAssigned(ReviewError):
    def __init__(self, reviewer_ids: t.Iterable[UserID]):
        self.reviewer_ids = tuple(reviewer_ids)
        super().__init__(f"already assigned: {', '.join(self.reviewer_ids)}")


class IncompleteReviews(ReviewError):
    def __init__(self, missing: int):
        self.missing = missing
        if missing:
            message = f"{missing} review(s) still pending"
        else:
            message = "no reviewers are assigned"
        super().__init__(message)


class InvalidStateTransition(ReviewError):
    pass
